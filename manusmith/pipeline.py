"""
Format Conversion Pipeline

Selects a reader/writer pair from the source and destination file
extensions (case-insensitive), reads the source into the document model and
writes the destination atomically: output goes to a hidden temporary file
next to the destination and is renamed into place only once fully written.
"""
from __future__ import annotations
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple
import logging
import os
import time
import uuid

from manusmith.adapters.docx_adapter import read_docx, write_docx
from manusmith.adapters.markdown_adapter import read_markdown
from manusmith.adapters.odt_adapter import read_odt
from manusmith.adapters.rtf_adapter import read_rtf
from manusmith.adapters.text_adapter import read_txt, write_txt
from manusmith.dto import AuthorMetadata, ConversionResult
from manusmith.errors import EngineError, IOFailure, UnsupportedConversion
from manusmith.model import Document
from manusmith.rewriter import italic_to_underline

logger = logging.getLogger(__name__)

Reader = Callable[[str], Document]
Writer = Callable[[Document, str, Optional[AuthorMetadata]], str]


def _write_txt(doc: Document, path: str, author: Optional[AuthorMetadata] = None) -> str:
    return write_txt(doc, path)


READERS: Dict[str, Reader] = {
    "txt": read_txt,
    "md": read_markdown,
    "markdown": read_markdown,
    "docx": read_docx,
    "odt": read_odt,
    "rtf": read_rtf,
}

WRITERS: Dict[str, Writer] = {
    "txt": _write_txt,
    "docx": write_docx,
}


def extension(path) -> str:
    return Path(str(path)).suffix.lower().lstrip(".")


def select_pair(source_ext: str, target_ext: str) -> Tuple[Reader, Writer]:
    source_ext, target_ext = source_ext.lower(), target_ext.lower()
    reader = READERS.get(source_ext)
    writer = WRITERS.get(target_ext)
    if reader is None or writer is None or source_ext == target_ext:
        raise UnsupportedConversion(source_ext, target_ext)
    return reader, writer


def supported_conversions() -> List[Tuple[str, str]]:
    return [(s, t) for s in READERS for t in WRITERS if s != t]


def supported_formats() -> Dict[str, List[str]]:
    return {
        "input": sorted(READERS),
        "output": sorted(WRITERS),
    }


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove temporary file %s: %s", path, e)


@contextmanager
def atomic_output(dest: Path) -> Iterator[str]:
    """Yield a temporary path beside dest; rename it onto dest on success."""
    parent = dest.parent
    if not parent.is_dir():
        raise IOFailure(str(parent), "Output directory does not exist")
    tmp = str(parent / f".{dest.name}.{uuid.uuid4().hex[:8]}.part")
    try:
        yield tmp
        os.replace(tmp, dest)
    except EngineError:
        _discard(tmp)
        raise
    except OSError as e:
        _discard(tmp)
        raise IOFailure(str(dest), f"Failed to write output ({e.strerror or e})") from e
    except BaseException:
        _discard(tmp)
        raise


def read_source(path: Path, reader: Reader) -> Document:
    if not path.is_file():
        raise IOFailure(str(path), "Input file does not exist")
    try:
        if path.stat().st_size == 0:
            return Document()
        return reader(str(path))
    except EngineError:
        raise
    except OSError as e:
        raise IOFailure(str(path), f"Failed to read input ({e.strerror or e})") from e


def read_document(path) -> Document:
    """Read any supported source format into the model, choosing the reader by extension."""
    src = Path(path)
    reader = READERS.get(extension(src))
    if reader is None:
        raise UnsupportedConversion(extension(src), "txt")
    return read_source(src, reader)


def convert_file(
    input_path,
    output_path,
    *,
    author: Optional[AuthorMetadata] = None,
    rewrite_italics: bool = False,
) -> ConversionResult:
    """
    Convert input_path into output_path, choosing formats by extension.

    Args:
        input_path: Source file (txt, md, docx, odt, rtf)
        output_path: Destination file (txt, docx)
        author: Optional metadata stamped into docx output
        rewrite_italics: Apply the italic-to-underline rewrite to the model

    Returns:
        ConversionResult with counts and timing
    """
    src = Path(input_path)
    dst = Path(output_path)
    src_ext, dst_ext = extension(src), extension(dst)
    reader, writer = select_pair(src_ext, dst_ext)

    start = time.perf_counter()
    logger.info("Converting %s (%s) -> %s (%s)", src.name, src_ext, dst.name, dst_ext)
    doc = read_source(src, reader)

    rewritten = italic_to_underline(doc.paragraphs) if rewrite_italics else 0

    with atomic_output(dst) as tmp:
        writer(doc, tmp, author)

    duration_ms = (time.perf_counter() - start) * 1000.0
    logger.info("Wrote %s: %d paragraph(s) in %.1f ms", dst, len(doc.paragraphs), duration_ms)
    return ConversionResult(
        input_path=str(src),
        output_path=str(dst),
        source_format=src_ext,
        target_format=dst_ext,
        paragraphs=len(doc.paragraphs),
        runs_rewritten=rewritten,
        duration_ms=duration_ms,
    )
