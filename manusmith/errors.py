"""
Engine error taxonomy.

Every failure leaving the engine is one of these four kinds. Adapters
translate library exceptions into them and chain the original cause.
"""
from __future__ import annotations
from typing import Optional


class EngineError(Exception):
    """Base class for all engine failures."""


class InvalidArgument(EngineError, ValueError):
    """A required input (request, path, field) is missing."""


class UnsupportedConversion(EngineError):
    """No reader/writer pair is registered for the extension combination."""

    def __init__(self, source_ext: str, target_ext: str):
        self.source_ext = source_ext
        self.target_ext = target_ext
        super().__init__(f"Unsupported conversion: from .{source_ext or '?'} to .{target_ext or '?'}")


class FormatParseError(EngineError):
    """The source bytes could not be parsed as the claimed format."""

    def __init__(self, path: str, fmt: str, message: Optional[str] = None):
        self.path = str(path)
        self.format = fmt
        super().__init__(message or f"Unable to parse {self.path} as {fmt}")


class IOFailure(EngineError, OSError):
    """Reading or writing at the filesystem boundary failed."""

    def __init__(self, path: str, message: str):
        self.path = str(path)
        super().__init__(f"{message}: {self.path}")
