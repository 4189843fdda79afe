from __future__ import annotations
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict


@dataclass(frozen=True)
class AuthorMetadata:
    author: str = ""
    address: str = ""
    email: str = ""
    phone: str = ""
    title: str = ""
    words: str = ""  # free-form word count, e.g. "4,500"


@dataclass(frozen=True)
class FormattingPreferences:
    italic_to_underline: bool = False


@dataclass(frozen=True)
class ConversionRequest:
    input_path: Path
    output_path: Path
    author: AuthorMetadata = field(default_factory=AuthorMetadata)
    formatting: FormattingPreferences = field(default_factory=FormattingPreferences)


@dataclass
class ConversionResult:
    input_path: str
    output_path: str
    source_format: str
    target_format: str
    paragraphs: int = 0
    runs_rewritten: int = 0
    duration_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
