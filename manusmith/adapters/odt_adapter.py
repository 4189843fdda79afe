from __future__ import annotations
from typing import List
import zipfile

from lxml import etree

from manusmith.errors import FormatParseError
from manusmith.model import Document, Paragraph

ODT_CONTENT_XML = "content.xml"
TEXT_NS = "urn:oasis:names:tc:opendocument:xmlns:text:1.0"
OFFICE_NS = "urn:oasis:names:tc:opendocument:xmlns:office:1.0"

_P = f"{{{TEXT_NS}}}p"
_H = f"{{{TEXT_NS}}}h"
_S = f"{{{TEXT_NS}}}s"
_TAB = f"{{{TEXT_NS}}}tab"
_BR = f"{{{TEXT_NS}}}line-break"
# annotations and footnote bodies are not part of the visible paragraph
_SKIP = {f"{{{TEXT_NS}}}note", f"{{{OFFICE_NS}}}annotation", f"{{{TEXT_NS}}}tracked-changes"}


def _space_count(el: etree._Element) -> int:
    try:
        return max(1, int(el.get(f"{{{TEXT_NS}}}c", "1")))
    except ValueError:
        return 1


def _collect(el: etree._Element, out: List[str]) -> None:
    if el.text:
        out.append(el.text)
    for child in el:
        tag = child.tag
        if not isinstance(tag, str):
            pass  # comments, processing instructions
        elif tag == _S:
            out.append(" " * _space_count(child))
        elif tag == _TAB:
            out.append("\t")
        elif tag == _BR:
            out.append("\n")
        elif tag in _SKIP or tag in (_P, _H):
            # nested paragraphs (frames, notes) are visited on their own
            pass
        else:
            _collect(child, out)
        if child.tail:
            out.append(child.tail)


def paragraph_text(el: etree._Element) -> str:
    parts: List[str] = []
    _collect(el, parts)
    return "".join(parts)


def read_odt(path: str) -> Document:
    """All text:p and text:h elements in document order, one paragraph each."""
    try:
        with zipfile.ZipFile(path, "r") as zf:
            xml_bytes = zf.read(ODT_CONTENT_XML)
    except (zipfile.BadZipFile, KeyError) as e:
        raise FormatParseError(path, "odt", f"Unable to open or read {path} as odt") from e
    try:
        root = etree.fromstring(xml_bytes)
    except etree.XMLSyntaxError as e:
        raise FormatParseError(path, "odt", f"Unable to parse XML in {path}") from e

    doc = Document()
    for el in root.iter(_P, _H):
        if any(anc.tag in _SKIP for anc in el.iterancestors()):
            continue
        doc.paragraphs.append(Paragraph.plain(paragraph_text(el)))
    return doc
