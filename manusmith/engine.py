"""
Engine Facade

Single entry point for front-ends: document conversion (with the optional
italic-to-underline rewrite), quick format conversion and typography
normalization. The facade validates that its arguments are present,
delegates to the pipeline, rewriter and normalizer, and reports every
failure as an EngineError subclass. It holds no mutable state after
construction, so one instance may serve concurrent callers.
"""
from __future__ import annotations
from concurrent.futures import Executor, Future
from pathlib import Path
from typing import Optional, Union
import logging
import re
import time
import yaml

from manusmith.adapters.docx_adapter import docx_paragraphs, new_docx, open_docx, stamp_author
from manusmith.config import EngineConfig
from manusmith.dto import ConversionRequest, ConversionResult
from manusmith.errors import EngineError, InvalidArgument, IOFailure, UnsupportedConversion
from manusmith.pipeline import atomic_output, convert_file, extension
from manusmith.rewriter import italic_to_underline
from manusmith.rules.load_rules import RuleTable, load_rule_table
from manusmith.typography import TypographyProfile, normalize

logger = logging.getLogger(__name__)

# quick conversion target for each source format
DEFAULT_TARGETS = {
    "txt": "docx",
    "docx": "txt",
    "md": "txt",
    "markdown": "txt",
    "odt": "txt",
    "rtf": "txt",
}


def default_output_path(input_path, output_dir=None) -> Path:
    """<stem>_converted.<target> beside the input, or inside output_dir."""
    if input_path is None:
        raise InvalidArgument("Input path is required")
    src = Path(input_path)
    ext = extension(src)
    target = DEFAULT_TARGETS.get(ext)
    if target is None:
        raise UnsupportedConversion(ext, "")
    folder = Path(output_dir) if output_dir is not None else src.parent
    return folder / f"{src.stem}_converted.{target}"


def _load_table(rule_pack: Optional[str]) -> RuleTable:
    if not rule_pack:
        return load_rule_table()
    try:
        return load_rule_table(str(rule_pack))
    except OSError as e:
        raise IOFailure(str(rule_pack), "Cannot read rule pack") from e
    except (yaml.YAMLError, KeyError, TypeError, AttributeError, re.error) as e:
        raise InvalidArgument(f"Invalid rule pack {rule_pack}: {e}") from e


class ManuscriptEngine:
    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self.rules = _load_table(self.config.rule_pack)

    def convert_document(self, request: Optional[ConversionRequest]) -> ConversionResult:
        """
        Convert a manuscript as described by the request.

        A .docx -> .docx request edits the document in place of a copy:
        the italic rewrite (when requested) works on the real runs, and the
        author name and title are written to the core properties. Any other
        extension pair goes through the conversion pipeline.
        """
        if request is None:
            raise InvalidArgument("Conversion request is required")
        if request.input_path is None or request.output_path is None:
            raise InvalidArgument("Conversion request needs both an input and an output path")
        src, dst = Path(request.input_path), Path(request.output_path)
        rewrite = bool(request.formatting and request.formatting.italic_to_underline)

        try:
            if extension(src) == "docx" and extension(dst) == "docx":
                return self._convert_docx(src, dst, request)
            return convert_file(src, dst, author=request.author, rewrite_italics=rewrite)
        except EngineError:
            raise
        except OSError as e:
            raise IOFailure(e.filename or str(src), f"Conversion failed ({e.strerror or e})") from e

    def _convert_docx(self, src: Path, dst: Path, request: ConversionRequest) -> ConversionResult:
        start = time.perf_counter()
        logger.info("Processing %s -> %s", src.name, dst.name)
        if not src.is_file():
            raise IOFailure(str(src), "Input file does not exist")
        doc = new_docx() if src.stat().st_size == 0 else open_docx(str(src))

        paragraphs = docx_paragraphs(doc)
        rewritten = 0
        if request.formatting and request.formatting.italic_to_underline:
            rewritten = italic_to_underline(paragraphs)
        stamp_author(doc, request.author)

        with atomic_output(dst) as tmp:
            doc.save(tmp)

        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.info("Wrote %s in %.1f ms", dst, duration_ms)
        return ConversionResult(
            input_path=str(src),
            output_path=str(dst),
            source_format="docx",
            target_format="docx",
            paragraphs=len(paragraphs),
            runs_rewritten=rewritten,
            duration_ms=duration_ms,
        )

    def convert_document_async(self, request: Optional[ConversionRequest], executor: Executor) -> "Future[ConversionResult]":
        """Run convert_document on the caller's executor."""
        if executor is None:
            raise InvalidArgument("An executor is required for asynchronous conversion")
        return executor.submit(self.convert_document, request)

    def normalize_text(
        self,
        text: Optional[str],
        profile: Union[TypographyProfile, str, None] = None,
    ) -> Optional[str]:
        if profile is None:
            profile = self.config.default_profile
        return normalize(text, profile, table=self.rules)

    def quick_convert(self, input_path, output_path) -> ConversionResult:
        if input_path is None or output_path is None:
            raise InvalidArgument("Both an input and an output path are required")
        try:
            return convert_file(input_path, output_path)
        except EngineError:
            raise
        except OSError as e:
            raise IOFailure(e.filename or str(input_path), f"Conversion failed ({e.strerror or e})") from e
