"""
Run-Level Style Rewriter

Replaces every italic, non-empty, not-yet-underlined run with an underlined
run carrying the same text, bold flag, font family and font size.

Runs are visited from the highest index to the lowest so that removing a
run and inserting its replacement never shifts a run still to be visited.
The paragraph's visible text is unchanged by the rewrite.
"""
from __future__ import annotations
from typing import Iterable, List, Protocol
import logging

from manusmith.model import RunStyle, Underline

logger = logging.getLogger(__name__)


class RunLike(Protocol):
    text: str
    style: RunStyle


class ParagraphLike(Protocol):
    @property
    def runs(self) -> List[RunLike]: ...

    def remove_run(self, index: int): ...

    def insert_run(self, index: int, text: str, style: RunStyle): ...


def qualifies(run: RunLike) -> bool:
    style = run.style
    return bool(run.text) and style.italic and style.underline == Underline.NONE


def rewrite_paragraph(paragraph: ParagraphLike) -> int:
    rewritten = 0
    runs = paragraph.runs
    for i in range(len(runs) - 1, -1, -1):
        run = runs[i]
        if not qualifies(run):
            continue
        text = run.text
        style = run.style.with_underline()
        paragraph.remove_run(i)
        paragraph.insert_run(i, text, style)
        rewritten += 1
    return rewritten


def italic_to_underline(paragraphs: Iterable[ParagraphLike]) -> int:
    """
    Rewrite italic runs as underlined runs in every paragraph.

    Args:
        paragraphs: In-memory model paragraphs or docx paragraph views

    Returns:
        Number of runs rewritten
    """
    total = 0
    for p in paragraphs:
        total += rewrite_paragraph(p)
    logger.info("Italic-to-underline: rewrote %d run(s)", total)
    return total
