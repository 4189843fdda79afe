from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional


class Underline(str, Enum):
    NONE = "none"
    SINGLE = "single"


@dataclass(frozen=True)
class RunStyle:
    italic: bool = False
    bold: bool = False
    underline: Underline = Underline.NONE
    font_family: Optional[str] = None
    font_size: Optional[int] = None  # points

    def __post_init__(self):
        if self.font_size is not None and self.font_size <= 0:
            raise ValueError(f"font_size must be a positive integer, got {self.font_size}")

    def with_underline(self) -> "RunStyle":
        """The italic -> underline substitution: same text attributes, no italic, single underline."""
        return replace(self, italic=False, underline=Underline.SINGLE)


@dataclass
class Run:
    text: str = ""
    style: RunStyle = field(default_factory=RunStyle)

    def __post_init__(self):
        if self.text is None:
            self.text = ""


@dataclass
class Paragraph:
    runs: List[Run] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(r.text for r in self.runs)

    def remove_run(self, index: int) -> Run:
        return self.runs.pop(index)

    def insert_run(self, index: int, text: str, style: RunStyle) -> Run:
        run = Run(text=text, style=style)
        self.runs.insert(index, run)
        return run

    def append_text(self, text: str, style: RunStyle) -> None:
        """Append text, extending the last run when it has the same style."""
        if not text:
            return
        if self.runs and self.runs[-1].style == style:
            self.runs[-1].text += text
        else:
            self.runs.append(Run(text=text, style=style))

    @classmethod
    def plain(cls, text: str) -> "Paragraph":
        return cls(runs=[Run(text=text)])


@dataclass
class Document:
    paragraphs: List[Paragraph] = field(default_factory=list)

    def text_lines(self) -> List[str]:
        return [p.text for p in self.paragraphs]
