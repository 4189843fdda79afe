"""
Pre-flight checks for conversion requests.

The engine itself trusts its inputs and reports failures as exceptions;
front-ends run these checks first so users see every problem at once, as
plain messages, before anything is read or written.
"""
from __future__ import annotations
from pathlib import Path
from typing import List, Optional
import logging
import os

from manusmith.config import ValidationConfig
from manusmith.dto import ConversionRequest

logger = logging.getLogger(__name__)


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class PathValidator:
    def __init__(self, config: Optional[ValidationConfig] = None):
        self.config = config or ValidationConfig()

    def check_path(self, path) -> List[str]:
        """Length, traversal and extension checks shared by inputs and outputs."""
        problems: List[str] = []
        raw = str(path)
        full = os.path.abspath(raw)
        if len(full) > self.config.max_path_length:
            problems.append(f"File path exceeds maximum allowed length: {self.config.max_path_length}")
        if ".." in Path(raw).parts:
            logger.warning("Path traversal attempt detected: %s", raw)
            problems.append("Path traversal attempts are not allowed")
        ext = Path(raw).suffix.lower().lstrip(".")
        if ext and ext in self.config.blocked_extensions:
            logger.warning("Blocked file extension: %s", ext)
            problems.append(f"File extension not allowed: {ext}")
        return problems

    def check_input(self, path) -> List[str]:
        p = Path(path)
        problems = self.check_path(p)
        if not p.is_file():
            problems.append("Input file does not exist or was not selected.")
            return problems
        if not os.access(p, os.R_OK):
            problems.append("Cannot read the selected input file.")
            return problems
        size = p.stat().st_size
        limit = self.config.max_file_size_mb * 1024 * 1024
        if size > limit:
            problems.append(f"File size ({size} bytes) exceeds maximum allowed size ({limit} bytes)")
        return problems

    def check_output(self, path) -> List[str]:
        p = Path(path)
        problems = self.check_path(p)
        parent = p.parent if str(p.parent) else Path(".")
        if not parent.is_dir():
            problems.append(f"Output directory does not exist: {parent}")
        elif not os.access(parent, os.W_OK):
            problems.append(f"Cannot write to output directory: {parent}")
        elif p.exists() and not os.access(p, os.W_OK):
            problems.append("Cannot write to the selected output file location.")
        return problems


def validate_request(request: Optional[ConversionRequest], config: Optional[ValidationConfig] = None) -> List[str]:
    """Every problem with the request, as human-readable messages; empty when valid."""
    if request is None:
        return ["Conversion request is missing."]
    validator = PathValidator(config)
    errors: List[str] = []

    if request.input_path is None:
        errors.append("Input file does not exist or was not selected.")
    else:
        errors.extend(validator.check_input(request.input_path))

    if request.output_path is None:
        errors.append("Output file was not specified.")
    else:
        errors.extend(validator.check_output(request.output_path))

    meta = request.author
    if meta is None:
        errors.append("Author metadata is missing.")
    else:
        if _blank(meta.author):
            errors.append("Author name is required.")
        if _blank(meta.title):
            errors.append("Manuscript title is required.")
    return errors
