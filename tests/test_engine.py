from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest
from docx import Document as new_document

from manusmith.config import EngineConfig
from manusmith.dto import AuthorMetadata, ConversionRequest, FormattingPreferences
from manusmith.engine import ManuscriptEngine, default_output_path
from manusmith.errors import FormatParseError, InvalidArgument, IOFailure, UnsupportedConversion


def _italic_docx(path):
    d = new_document()
    p = d.add_paragraph("The ship ")
    r = p.add_run("Pequod")
    r.italic = True
    p.add_run(" sailed.")
    d.save(str(path))
    return path


def _request(src, dst, italic=True):
    return ConversionRequest(
        input_path=Path(src),
        output_path=Path(dst),
        author=AuthorMetadata(author="Ishmael", title="Whale Notes", words="1,200"),
        formatting=FormattingPreferences(italic_to_underline=italic),
    )


def test_convert_document_docx_to_docx(tmp_path):
    src = _italic_docx(tmp_path / "in.docx")
    dst = tmp_path / "out.docx"
    res = ManuscriptEngine().convert_document(_request(src, dst))
    assert res.runs_rewritten == 1
    assert (res.source_format, res.target_format) == ("docx", "docx")

    d = new_document(str(dst))
    assert d.paragraphs[0].text == "The ship Pequod sailed."
    r = d.paragraphs[0].runs[1]
    assert r.underline and not r.italic
    assert d.core_properties.author == "Ishmael"
    assert d.core_properties.title == "Whale Notes"
    # the source is not modified
    assert new_document(str(src)).paragraphs[0].runs[1].italic


def test_convert_document_without_rewrite(tmp_path):
    src = _italic_docx(tmp_path / "in.docx")
    dst = tmp_path / "out.docx"
    res = ManuscriptEngine().convert_document(_request(src, dst, italic=False))
    assert res.runs_rewritten == 0
    assert new_document(str(dst)).paragraphs[0].runs[1].italic


def test_convert_document_other_pairs_use_pipeline(tmp_path):
    src = _italic_docx(tmp_path / "in.docx")
    dst = tmp_path / "out.txt"
    res = ManuscriptEngine().convert_document(_request(src, dst))
    assert dst.read_text(encoding="utf-8") == "The ship Pequod sailed.\n"
    assert res.target_format == "txt"


def test_convert_document_requires_request():
    with pytest.raises(InvalidArgument):
        ManuscriptEngine().convert_document(None)
    with pytest.raises(ValueError):
        ManuscriptEngine().convert_document(ConversionRequest(input_path=None, output_path=Path("x.docx")))


def test_convert_document_corrupt_docx(tmp_path):
    src = tmp_path / "bad.docx"
    src.write_bytes(b"not a docx")
    with pytest.raises(FormatParseError):
        ManuscriptEngine().convert_document(_request(src, tmp_path / "out.docx"))
    assert not (tmp_path / "out.docx").exists()


def test_convert_document_missing_input(tmp_path):
    with pytest.raises(IOFailure):
        ManuscriptEngine().convert_document(_request(tmp_path / "gone.docx", tmp_path / "out.docx"))


def test_quick_convert_unsupported_leaves_nothing(tmp_path):
    src = _italic_docx(tmp_path / "in.docx")
    with pytest.raises(UnsupportedConversion):
        ManuscriptEngine().quick_convert(src, tmp_path / "in.pdf")
    assert not (tmp_path / "in.pdf").exists()


def test_quick_convert_txt_to_docx(tmp_path):
    src = tmp_path / "draft.txt"
    src.write_text("one\ntwo\n", encoding="utf-8")
    dst = default_output_path(src)
    assert dst == tmp_path / "draft_converted.docx"
    res = ManuscriptEngine().quick_convert(src, dst)
    assert res.paragraphs == 2
    assert [p.text for p in new_document(str(dst)).paragraphs] == ["one", "two"]


def test_quick_convert_requires_paths():
    with pytest.raises(InvalidArgument):
        ManuscriptEngine().quick_convert(None, "x.txt")


def test_default_output_path(tmp_path):
    assert default_output_path("a/story.docx") == Path("a/story_converted.txt")
    assert default_output_path("notes.MD", tmp_path) == tmp_path / "notes_converted.txt"
    assert default_output_path("x.odt").name == "x_converted.txt"
    assert default_output_path("x.rtf").name == "x_converted.txt"
    with pytest.raises(UnsupportedConversion):
        default_output_path("x.pdf")


def test_normalize_text_uses_configured_default_profile():
    engine = ManuscriptEngine(EngineConfig(default_profile="EN"))
    assert engine.normalize_text('said "hi"') == "said “hi”"
    assert engine.normalize_text('said "hi"', "HU") == "said „hi”"
    assert engine.normalize_text(None) is None


def test_custom_rule_pack(tmp_path):
    pack = tmp_path / "rules.yml"
    pack.write_text(
        "generic: []\n"
        "profiles:\n"
        "  EN:\n"
        "    - id: en.amp\n"
        "      search: ' & '\n"
        "      replace: ' and '\n"
        "      literal: true\n",
        encoding="utf-8",
    )
    engine = ManuscriptEngine(EngineConfig(rule_pack=str(pack)))
    assert engine.normalize_text("salt & pepper -- x", "EN") == "salt and pepper -- x"


def test_broken_rule_pack(tmp_path):
    pack = tmp_path / "rules.yml"
    pack.write_text("generic:\n  - search: 'x'\n", encoding="utf-8")
    with pytest.raises(InvalidArgument):
        ManuscriptEngine(EngineConfig(rule_pack=str(pack)))


def test_convert_document_async(tmp_path):
    engine = ManuscriptEngine()
    jobs = []
    for i in range(4):
        src = _italic_docx(tmp_path / f"in{i}.docx")
        jobs.append(_request(src, tmp_path / f"out{i}.docx"))
    with ThreadPoolExecutor(max_workers=2) as ex:
        futures = [engine.convert_document_async(r, ex) for r in jobs]
        results = [f.result() for f in futures]
    assert [r.runs_rewritten for r in results] == [1, 1, 1, 1]


def test_convert_document_async_surfaces_errors(tmp_path):
    with ThreadPoolExecutor(max_workers=1) as ex:
        fut = ManuscriptEngine().convert_document_async(None, ex)
        with pytest.raises(InvalidArgument):
            fut.result()
