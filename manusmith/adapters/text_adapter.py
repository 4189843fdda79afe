from __future__ import annotations
from typing import List
import re

from manusmith.errors import FormatParseError
from manusmith.model import Document, Paragraph

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> List[str]:
    """Split on \\n, \\r\\n and \\r; a final terminator does not add an empty line."""
    if not text:
        return []
    lines = _LINE_BREAK.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def read_text_file(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise FormatParseError(path, "text", f"{path} is not valid UTF-8 text: {e}") from e


def read_txt(path: str) -> Document:
    """Each input line becomes one paragraph holding a single unstyled run."""
    return Document(paragraphs=[Paragraph.plain(line) for line in split_lines(read_text_file(path))])


def render_txt(doc: Document) -> str:
    lines = doc.text_lines()
    return ("\n".join(lines) + "\n") if lines else ""


def write_txt(doc: Document, out_path: str) -> str:
    with open(out_path, "w", encoding="utf-8", newline="") as f:
        f.write(render_txt(doc))
    return out_path
