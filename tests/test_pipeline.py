import os

import pytest
from docx import Document as new_document

from manusmith.adapters.docx_adapter import read_docx
from manusmith.dto import AuthorMetadata
from manusmith.errors import FormatParseError, IOFailure, UnsupportedConversion
from manusmith.pipeline import convert_file, select_pair, supported_conversions


def _listing(d):
    return sorted(os.listdir(d))


def test_txt_to_docx_and_back_preserves_lines(tmp_path):
    lines = ["First line", "  indented", "trailing spaces   ", "", "tab\tinside", "last"]
    src = tmp_path / "story.txt"
    src.write_text("\n".join(lines) + "\n", encoding="utf-8")

    docx = tmp_path / "story.docx"
    res = convert_file(src, docx)
    assert res.paragraphs == len(lines)
    assert read_docx(str(docx)).text_lines() == lines

    back = tmp_path / "back.txt"
    convert_file(docx, back)
    assert back.read_text(encoding="utf-8") == "\n".join(lines) + "\n"


def test_crlf_input(tmp_path):
    src = tmp_path / "win.txt"
    src.write_bytes(b"one\r\ntwo\r\n")
    out = tmp_path / "win.docx"
    convert_file(src, out)
    assert read_docx(str(out)).text_lines() == ["one", "two"]


def test_extension_match_is_case_insensitive(tmp_path):
    src = tmp_path / "UPPER.TXT"
    src.write_text("x\n", encoding="utf-8")
    res = convert_file(src, tmp_path / "out.DOCX")
    assert (res.source_format, res.target_format) == ("txt", "docx")


def test_md_to_txt(tmp_path):
    src = tmp_path / "notes.md"
    src.write_text("# Heading\n\nA *styled* paragraph.\n", encoding="utf-8")
    out = tmp_path / "notes.txt"
    convert_file(src, out)
    assert out.read_text(encoding="utf-8") == "Heading\nA styled paragraph.\n"


def test_rtf_to_docx_keeps_italics(tmp_path):
    src = tmp_path / "s.rtf"
    src.write_bytes(rb"{\rtf1\ansi Plain {\i slanted} text.\par}")
    out = tmp_path / "s.docx"
    convert_file(src, out, rewrite_italics=True)
    d = new_document(str(out))
    runs = d.paragraphs[0].runs
    assert [r.text for r in runs] == ["Plain ", "slanted", " text."]
    assert runs[1].underline and not runs[1].italic


def test_author_is_stamped_into_docx(tmp_path):
    src = tmp_path / "a.txt"
    src.write_text("hello\n", encoding="utf-8")
    out = tmp_path / "a.docx"
    convert_file(src, out, author=AuthorMetadata(author="Jane Roe", title="The Tide"))
    props = new_document(str(out)).core_properties
    assert props.author == "Jane Roe"
    assert props.title == "The Tide"


def test_empty_input_gives_empty_output(tmp_path):
    for name in ("e.txt", "e.docx", "e.md", "e.odt", "e.rtf"):
        (tmp_path / name).write_bytes(b"")
    convert_file(tmp_path / "e.txt", tmp_path / "out.docx")
    assert read_docx(str(tmp_path / "out.docx")).text_lines() == []
    for name in ("e.docx", "e.md", "e.odt", "e.rtf"):
        out = tmp_path / f"{name}.txt"
        convert_file(tmp_path / name, out)
        assert out.read_bytes() == b""


def test_unsupported_pair_creates_nothing(tmp_path):
    src = tmp_path / "a.docx"
    new_document().save(str(src))
    before = _listing(tmp_path)
    with pytest.raises(UnsupportedConversion) as ei:
        convert_file(src, tmp_path / "a.pdf")
    assert (ei.value.source_ext, ei.value.target_ext) == ("docx", "pdf")
    assert _listing(tmp_path) == before


def test_same_format_pair_is_unsupported():
    with pytest.raises(UnsupportedConversion):
        select_pair("txt", "TXT")


def test_corrupt_docx_leaves_no_output(tmp_path):
    src = tmp_path / "bad.docx"
    src.write_bytes(b"PK\x03\x04 definitely not a package")
    with pytest.raises(FormatParseError):
        convert_file(src, tmp_path / "bad.txt")
    assert _listing(tmp_path) == ["bad.docx"]


def test_existing_output_untouched_on_failure(tmp_path):
    src = tmp_path / "bad.docx"
    src.write_bytes(b"garbage")
    out = tmp_path / "out.txt"
    out.write_text("previous\n", encoding="utf-8")
    with pytest.raises(FormatParseError):
        convert_file(src, out)
    assert out.read_text(encoding="utf-8") == "previous\n"
    assert _listing(tmp_path) == ["bad.docx", "out.txt"]


def test_missing_input(tmp_path):
    with pytest.raises(IOFailure) as ei:
        convert_file(tmp_path / "nope.txt", tmp_path / "nope.docx")
    assert isinstance(ei.value, OSError)
    assert "nope.txt" in str(ei.value)


def test_missing_output_directory(tmp_path):
    src = tmp_path / "a.txt"
    src.write_text("x\n", encoding="utf-8")
    with pytest.raises(IOFailure):
        convert_file(src, tmp_path / "missing" / "a.docx")


def test_supported_conversions_cover_minimum_table():
    pairs = set(supported_conversions())
    for pair in [("txt", "docx"), ("docx", "txt"), ("md", "txt"), ("odt", "txt"), ("rtf", "txt")]:
        assert pair in pairs
