"""
Rich-text (RTF) reader.

A small tokenizer over RTF control words, groups and text. Paragraph marks
become paragraphs, character formatting (\\i, \\b, \\ul, \\fs) becomes run
styles, and non-visible destinations (font and colour tables, stylesheet,
info, pictures, ignorable \\* groups) are skipped.
"""
from __future__ import annotations
from dataclasses import dataclass, replace
from typing import List, Optional
import logging
import re

from manusmith.errors import FormatParseError
from manusmith.model import Document, Paragraph, RunStyle, Underline

logger = logging.getLogger(__name__)

_TOKEN = re.compile(
    r"\\([a-zA-Z]+)(-?\d+)? ?"   # control word with optional parameter
    r"|\\'([0-9a-fA-F]{2})"      # hex-escaped byte
    r"|\\([^a-zA-Z])"            # control symbol
    r"|([{}])"                   # group
    r"|[\r\n]+"                  # source line breaks carry no meaning
    r"|([^\\{}\r\n]+)"           # text
)

_SKIP_DESTINATIONS = {
    "fonttbl", "colortbl", "stylesheet", "info", "pict", "object", "header", "headerl",
    "headerr", "headerf", "footer", "footerl", "footerr", "footerf", "footnote",
    "fldinst", "themedata", "colorschememapping", "latentstyles", "datastore",
    "xmlnstbl", "listtable", "listoverridetable", "rsidtbl", "generator", "filetbl",
    "revtbl", "mmathPr", "nonshppict", "bkmkstart", "bkmkend",
}

_CHAR_WORDS = {
    "tab": "\t",
    "line": "\n",
    "emdash": "\u2014",
    "endash": "\u2013",
    "bullet": "\u2022",
    "lquote": "\u2018",
    "rquote": "\u2019",
    "ldblquote": "\u201c",
    "rdblquote": "\u201d",
    "emspace": "\u2003",
    "enspace": "\u2002",
}

_CHAR_SYMBOLS = {
    "\\": "\\",
    "{": "{",
    "}": "}",
    "~": "\u00a0",
    "_": "\u2011",
    "-": "",  # optional hyphen
}


@dataclass(frozen=True)
class _GroupState:
    style: RunStyle = RunStyle()
    skip: bool = False
    uc: int = 1


class _RtfReader:
    def __init__(self, path: str, source: str):
        self.path = path
        self.source = source
        self.codepage = "cp1252"
        self.doc = Document()
        self.current = Paragraph()
        self.stack: List[_GroupState] = []
        self.state = _GroupState()
        self.pending_skip = 0
        self.high_surrogate: Optional[int] = None

    def fail(self, message: str) -> FormatParseError:
        return FormatParseError(self.path, "rtf", f"Unable to parse {self.path} as rtf: {message}")

    def emit(self, text: str) -> None:
        if self.state.skip or not text:
            return
        if self.pending_skip:
            dropped = min(self.pending_skip, len(text))
            text = text[dropped:]
            self.pending_skip -= dropped
        self.current.append_text(text, self.state.style)

    def end_paragraph(self) -> None:
        if self.state.skip:
            return
        self.doc.paragraphs.append(self.current)
        self.current = Paragraph()

    def set_style(self, **changes) -> None:
        self.state = replace(self.state, style=replace(self.state.style, **changes))

    def control_word(self, word: str, param: Optional[int]) -> None:
        on = param is None or param != 0
        if word in _SKIP_DESTINATIONS:
            self.state = replace(self.state, skip=True)
        elif word == "ansicpg" and param:
            self.codepage = f"cp{param}"
        elif word == "par":
            self.end_paragraph()
        elif word in _CHAR_WORDS:
            self.emit(_CHAR_WORDS[word])
        elif word == "u" and param is not None:
            self.unicode_char(param + 65536 if param < 0 else param)
            self.pending_skip = self.state.uc
        elif word == "uc" and param is not None:
            self.state = replace(self.state, uc=max(0, param))
        elif word == "i":
            self.set_style(italic=on)
        elif word == "b":
            self.set_style(bold=on)
        elif word == "ul":
            self.set_style(underline=Underline.SINGLE if on else Underline.NONE)
        elif word == "ulnone":
            self.set_style(underline=Underline.NONE)
        elif word == "fs" and param:
            self.set_style(font_size=max(1, param // 2))
        elif word == "plain":
            self.set_style(italic=False, bold=False, underline=Underline.NONE, font_size=None)

    def unicode_char(self, code: int) -> None:
        if 0xD800 <= code <= 0xDBFF:
            self.high_surrogate = code
            return
        if 0xDC00 <= code <= 0xDFFF:
            if self.high_surrogate is None:
                return  # lone low surrogate
            code = 0x10000 + ((self.high_surrogate - 0xD800) << 10) + (code - 0xDC00)
        self.high_surrogate = None
        self.emit(chr(code))

    def hex_byte(self, hh: str) -> None:
        if self.pending_skip:
            self.pending_skip -= 1
            return
        try:
            self.emit(bytes([int(hh, 16)]).decode(self.codepage, errors="replace"))
        except LookupError:
            self.emit(bytes([int(hh, 16)]).decode("cp1252", errors="replace"))

    def parse(self) -> Document:
        src = self.source.lstrip()
        if not src.startswith("{\\rtf"):
            raise self.fail("missing {\\rtf header")
        for m in _TOKEN.finditer(src):
            word, param, hh, symbol, brace, text = m.groups()
            if word is not None:
                self.control_word(word, int(param) if param is not None else None)
            elif hh is not None:
                self.hex_byte(hh)
            elif symbol is not None:
                if symbol == "*":
                    self.state = replace(self.state, skip=True)
                elif symbol in ("\n", "\r"):
                    self.end_paragraph()
                elif symbol in _CHAR_SYMBOLS:
                    self.emit(_CHAR_SYMBOLS[symbol])
            elif brace == "{":
                self.stack.append(self.state)
            elif brace == "}":
                if not self.stack:
                    raise self.fail("unbalanced closing brace")
                self.state = self.stack.pop()
            elif text is not None:
                self.emit(text)
        if self.stack:
            raise self.fail("unterminated group")
        if self.current.runs:
            self.doc.paragraphs.append(self.current)
        logger.debug("Parsed %d paragraph(s) from %s", len(self.doc.paragraphs), self.path)
        return self.doc


def rtf_to_document(source: str, path: str = "<string>") -> Document:
    return _RtfReader(path, source).parse()


def read_rtf(path: str) -> Document:
    with open(path, "rb") as f:
        raw = f.read()
    # RTF is 7-bit; bytes above 0x7f only appear in malformed files
    return rtf_to_document(raw.decode("latin-1"), path)
