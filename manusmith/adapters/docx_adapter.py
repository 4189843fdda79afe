from __future__ import annotations
from typing import Callable, Iterator, List, Optional, Tuple, TypeVar
from pathlib import Path
import logging
import re
import zipfile

from docx import Document as open_document
from docx.document import Document as DocxDocument
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml import OxmlElement
from docx.shared import Length, Pt
from docx.table import Table
from docx.text.hyperlink import Hyperlink
from docx.text.paragraph import Paragraph as DocxParagraphProxy
from docx.text.run import Run as DocxRunProxy
from lxml import etree

from manusmith.dto import AuthorMetadata
from manusmith.errors import FormatParseError, IOFailure
from manusmith.model import Document, Paragraph, Run, RunStyle, Underline

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PARSE_ERRORS = (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError, etree.XMLSyntaxError)
# characters XML 1.0 cannot carry; python-docx refuses them
_XML_ILLEGAL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def xml_safe(text: str) -> str:
    return _XML_ILLEGAL.sub("", text)


def _best_effort(getter: Callable[[], T], default: T, what: str) -> T:
    # a malformed attribute is dropped rather than failing the whole document
    try:
        return getter()
    except Exception as e:
        logger.debug("Could not read run %s, omitting it: %s", what, e)
        return default


def _font_size(run: DocxRunProxy) -> Optional[int]:
    size = run.font.size
    if size is None:
        return None
    pt = int(round(size.pt))
    return pt if pt > 0 else None


def read_style(run: DocxRunProxy) -> RunStyle:
    """Run-level formatting as a RunStyle; unreadable attributes are omitted."""
    return RunStyle(
        italic=_best_effort(lambda: bool(run.italic), False, "italic"),
        bold=_best_effort(lambda: bool(run.bold), False, "bold"),
        underline=Underline.SINGLE if _best_effort(lambda: bool(run.underline), False, "underline") else Underline.NONE,
        font_family=_best_effort(lambda: run.font.name, None, "font family"),
        font_size=_best_effort(lambda: _font_size(run), None, "font size"),
    )


def apply_style(run: DocxRunProxy, style: RunStyle) -> None:
    if style.italic:
        run.italic = True
    if style.bold:
        run.bold = True
    if style.underline == Underline.SINGLE:
        run.underline = True
    if style.font_family:
        run.font.name = style.font_family
    if style.font_size:
        run.font.size = Pt(style.font_size)


class DocxRun:
    """A run of a python-docx paragraph seen through the model's Run shape."""

    def __init__(self, proxy: DocxRunProxy):
        self.proxy = proxy

    @property
    def text(self) -> str:
        return self.proxy.text

    @property
    def style(self) -> RunStyle:
        return read_style(self.proxy)


class DocxParagraph:
    """
    Index-addressable run sequence over a python-docx paragraph.

    Edits go straight to the underlying XML, so every element and property
    the model does not know about (bookmarks, paragraph properties, other
    runs) is left in place.
    """

    def __init__(self, proxy: DocxParagraphProxy):
        self.proxy = proxy
        # (index, parent, position, exact font size) of the last removed run
        self._slot: Optional[Tuple[int, etree._Element, int, Optional[Length]]] = None

    def _r_elements(self) -> list:
        # runs wrapped in hyperlinks are part of the visible text too
        return self.proxy._p.xpath("./w:r | ./w:hyperlink/w:r")

    @property
    def runs(self) -> List[DocxRun]:
        return [DocxRun(DocxRunProxy(r, self.proxy)) for r in self._r_elements()]

    @property
    def text(self) -> str:
        return "".join(r.text for r in self.runs)

    def remove_run(self, index: int) -> None:
        r = self._r_elements()[index]
        size = _best_effort(lambda: DocxRunProxy(r, self.proxy).font.size, None, "font size")
        parent = r.getparent()
        pos = parent.index(r)
        parent.remove(r)
        self._slot = (index, parent, pos, size)

    def insert_run(self, index: int, text: str, style: RunStyle) -> DocxRunProxy:
        new_r = OxmlElement("w:r")
        exact_size = None
        if self._slot is not None and self._slot[0] == index:
            _, parent, pos, exact_size = self._slot
            parent.insert(pos, new_r)
        else:
            r_lst = self._r_elements()
            if index < len(r_lst):
                r_lst[index].addprevious(new_r)
            else:
                self.proxy._p.append(new_r)
        self._slot = None
        run = DocxRunProxy(new_r, self.proxy)
        run.text = xml_safe(text)
        apply_style(run, style)
        if style.font_size and exact_size is not None:
            # RunStyle holds whole points; keep fractional sizes such as 10.5pt
            run.font.size = exact_size
        return run


def open_docx(path: str) -> DocxDocument:
    p = Path(path)
    if not p.is_file():
        raise IOFailure(str(p), "Input file does not exist")
    try:
        return open_document(str(p))
    except _PARSE_ERRORS as e:
        raise FormatParseError(str(p), "docx", f"Unable to open or read {p} as docx: {e}") from e


def iter_paragraphs(doc: DocxDocument) -> Iterator[DocxParagraphProxy]:
    """Body paragraphs followed by the paragraphs inside table cells."""
    yield from doc.paragraphs
    for table in doc.tables:
        seen = set()
        for row in table.rows:
            for cell in row.cells:
                if id(cell._tc) in seen:
                    continue
                seen.add(id(cell._tc))
                yield from cell.paragraphs


def docx_paragraphs(doc: DocxDocument) -> List[DocxParagraph]:
    return [DocxParagraph(p) for p in iter_paragraphs(doc)]


def _model_paragraph(proxy: DocxParagraphProxy) -> Paragraph:
    runs: List[Run] = []
    for item in proxy.iter_inner_content():
        # hyperlinks carry their own runs
        for r in (item.runs if isinstance(item, Hyperlink) else [item]):
            runs.append(Run(text=r.text, style=read_style(r)))
    return Paragraph(runs=runs)


def _table_row_paragraphs(table: Table) -> List[Paragraph]:
    out: List[Paragraph] = []
    for row in table.rows:
        cells: List[str] = []
        seen = set()
        for cell in row.cells:
            if id(cell._tc) in seen:
                continue
            seen.add(id(cell._tc))
            cells.append(cell.text)
        out.append(Paragraph.plain("\t".join(cells)))
    return out


def read_docx(path: str) -> Document:
    """Read a .docx into the model: paragraphs and table rows in body order."""
    doc = open_docx(path)
    model = Document()
    try:
        for block in doc.iter_inner_content():
            if isinstance(block, Table):
                model.paragraphs.extend(_table_row_paragraphs(block))
            else:
                model.paragraphs.append(_model_paragraph(block))
    except _PARSE_ERRORS as e:
        raise FormatParseError(path, "docx", f"Unable to parse the body of {path}: {e}") from e
    return model


def new_docx() -> DocxDocument:
    d = open_document()
    # start from an empty body; the section properties stay
    for p in list(d.paragraphs):
        p._element.getparent().remove(p._element)
    return d


def stamp_author(d: DocxDocument, meta: Optional[AuthorMetadata]) -> None:
    if meta is None:
        return
    if meta.author and meta.author.strip():
        d.core_properties.author = meta.author.strip()
    if meta.title and meta.title.strip():
        d.core_properties.title = meta.title.strip()


def write_docx(model: Document, out_path: str, author: Optional[AuthorMetadata] = None) -> str:
    d = new_docx()
    for para in model.paragraphs:
        p = d.add_paragraph()
        for r in para.runs:
            run = p.add_run(xml_safe(r.text))
            apply_style(run, r.style)
    stamp_author(d, author)
    d.save(out_path)
    return out_path
