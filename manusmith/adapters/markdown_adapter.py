"""
Markdown reader.

Parses Markdown into a markdown-it token tree (CommonMark plus tables and
strikethrough) and flattens it into the document model: one paragraph per
block (paragraph, heading, list item, table row, code line). Inline markup is
dropped from the text; emphasis and strong emphasis survive as run styles.
"""
from __future__ import annotations
from typing import List, Optional, Sequence

from markdown_it import MarkdownIt
from markdown_it.token import Token

from manusmith.adapters.text_adapter import read_text_file, split_lines
from manusmith.model import Document, Paragraph, Run, RunStyle


def _parser() -> MarkdownIt:
    return MarkdownIt("commonmark").enable(["table", "strikethrough"])


class _RunBuilder:
    def __init__(self):
        self.paragraph = Paragraph()
        self.italic = 0
        self.bold = 0

    def add(self, text: str) -> None:
        self.paragraph.append_text(text, RunStyle(italic=self.italic > 0, bold=self.bold > 0))


def _inline_runs(children: Optional[Sequence[Token]]) -> List[Run]:
    b = _RunBuilder()
    for tok in children or []:
        t = tok.type
        if t in ("text", "code_inline"):
            b.add(tok.content)
        elif t == "softbreak":
            b.add(" ")
        elif t == "hardbreak":
            b.add("\n")
        elif t == "em_open":
            b.italic += 1
        elif t == "em_close":
            b.italic -= 1
        elif t == "strong_open":
            b.bold += 1
        elif t == "strong_close":
            b.bold -= 1
        elif t == "image":
            b.add(tok.content)
        # link_open/close, s_open/close and html_inline carry no visible text
    return b.paragraph.runs


def _plain_text(children: Optional[Sequence[Token]]) -> str:
    return "".join(r.text for r in _inline_runs(children))


def markdown_to_document(text: str) -> Document:
    doc = Document()
    row: Optional[List[str]] = None
    for tok in _parser().parse(text):
        t = tok.type
        if t == "tr_open":
            row = []
        elif t == "tr_close":
            doc.paragraphs.append(Paragraph.plain("\t".join(row or [])))
            row = None
        elif t == "inline":
            if row is not None:
                row.append(_plain_text(tok.children))
            else:
                doc.paragraphs.append(Paragraph(runs=_inline_runs(tok.children)))
        elif t in ("fence", "code_block"):
            doc.paragraphs.extend(Paragraph.plain(line) for line in split_lines(tok.content))
    return doc


def markdown_to_text(text: str) -> str:
    return "\n".join(markdown_to_document(text).text_lines())


def read_markdown(path: str) -> Document:
    return markdown_to_document(read_text_file(path))
