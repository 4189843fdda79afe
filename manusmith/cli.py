from __future__ import annotations
import argparse
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from manusmith.adapters.text_adapter import render_txt
from manusmith.config import load_config
from manusmith.cover_letter import render_cover_letter
from manusmith.dto import AuthorMetadata, ConversionRequest, FormattingPreferences
from manusmith.engine import ManuscriptEngine, default_output_path
from manusmith.errors import EngineError
from manusmith.pipeline import read_document, supported_conversions, supported_formats
from manusmith.typography import TypographyProfile
from manusmith.validation import validate_request

logger = logging.getLogger(__name__)


def _author_args(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("Author metadata")
    g.add_argument("--author", default="", help="Author name")
    g.add_argument("--title", default="", help="Manuscript title")
    g.add_argument("--address", default="", help="Postal address")
    g.add_argument("--email", default="", help="Contact email")
    g.add_argument("--phone", default="", help="Contact phone")
    g.add_argument("--words", default="", help="Approximate word count, e.g. 4,500")


def _author(args) -> AuthorMetadata:
    return AuthorMetadata(
        author=args.author,
        address=args.address,
        email=args.email,
        phone=args.phone,
        title=args.title,
        words=args.words,
    )


def _emit(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _cmd_convert(args, engine: ManuscriptEngine, config) -> int:
    request = ConversionRequest(
        input_path=Path(args.input),
        output_path=Path(args.output) if args.output else default_output_path(args.input),
        author=_author(args),
        formatting=FormattingPreferences(italic_to_underline=args.italic_to_underline),
    )
    if not args.skip_validation:
        problems = validate_request(request, config.validation)
        if problems:
            _emit({"status": "invalid", "errors": problems})
            return 1
    result = engine.convert_document(request)
    _emit({"status": "ok", **result.to_dict()})
    return 0


def _quick_one(engine: ManuscriptEngine, src: str, out_dir):
    return engine.quick_convert(src, default_output_path(src, out_dir))


def _cmd_quick(args, engine: ManuscriptEngine, config) -> int:
    results = []
    failed = 0
    with ThreadPoolExecutor(max_workers=max(1, args.jobs)) as executor:
        # each input fails on its own, including one with no default target
        futures = [(src, executor.submit(_quick_one, engine, src, args.out_dir)) for src in args.inputs]
        for src, fut in futures:
            try:
                results.append({"status": "ok", **fut.result().to_dict()})
            except EngineError as e:
                logger.error("Conversion of %s failed: %s", src, e)
                results.append({"status": "error", "input_path": str(src), "error": str(e)})
                failed += 1
    _emit({"converted": len(results) - failed, "failed": failed, "results": results})
    return 1 if failed else 0


def _cmd_normalize(args, engine: ManuscriptEngine, config) -> int:
    if args.input and args.input != "-":
        text = render_txt(read_document(args.input))
    else:
        text = sys.stdin.read()
    out = engine.normalize_text(text, args.profile)
    if args.output:
        Path(args.output).write_text(out, encoding="utf-8")
        _emit({"status": "ok", "profile": TypographyProfile.parse(args.profile or config.default_profile).value,
               "output_path": args.output, "changed": out != text})
    else:
        sys.stdout.write(out)
    return 0


def _cmd_cover_letter(args, engine: ManuscriptEngine, config) -> int:
    letter = render_cover_letter(_author(args), args.market, genre=args.genre, simultaneous=args.simultaneous)
    if args.output:
        Path(args.output).write_text(letter, encoding="utf-8")
        _emit({"status": "ok", "output_path": args.output})
    else:
        sys.stdout.write(letter)
    return 0


def _cmd_formats(args, engine: ManuscriptEngine, config) -> int:
    _emit({
        **supported_formats(),
        "conversions": [f"{s}->{t}" for s, t in supported_conversions()] + ["docx->docx"],
        "profiles": [p.value for p in TypographyProfile],
    })
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="manusmith",
        description="Manuscript conversion and typography normalization",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Log progress to stderr")
    ap.add_argument("--config", default=None, help="Path to config.yml (default: ~/.manusmith/config.yml)")
    sub = ap.add_subparsers(dest="command", required=True)

    p = sub.add_parser("convert", help="Convert a manuscript, optionally rewriting italics as underline")
    p.add_argument("input", help="Input file (.docx, .txt, .md, .odt, .rtf)")
    p.add_argument("-o", "--output", default=None, help="Output file (default: <stem>_converted.<ext>)")
    p.add_argument("--italic-to-underline", action="store_true", help="Replace italic runs with underlined runs")
    p.add_argument("--skip-validation", action="store_true", help="Do not require author name and title")
    _author_args(p)
    p.set_defaults(func=_cmd_convert)

    p = sub.add_parser("quick", help="Convert files to their default target format")
    p.add_argument("inputs", nargs="+", help="Input files")
    p.add_argument("--out-dir", default=None, help="Output directory (default: beside each input)")
    p.add_argument("--jobs", type=int, default=2, help="Parallel conversions")
    p.set_defaults(func=_cmd_quick)

    p = sub.add_parser("normalize", help="Normalize punctuation in a text file")
    p.add_argument("input", nargs="?", default="-", help="Manuscript file (.txt, .md, .docx, .odt, .rtf; default: stdin)")
    p.add_argument("--profile", default=None, choices=[t.value for t in TypographyProfile],
                   help="Typography profile")
    p.add_argument("-o", "--output", default=None, help="Write to file instead of stdout")
    p.set_defaults(func=_cmd_normalize)

    p = sub.add_parser("cover-letter", help="Draft a submission cover letter")
    p.add_argument("--market", required=True, help="Magazine or publisher name")
    p.add_argument("--genre", default="", help="Story genre")
    p.add_argument("--simultaneous", action="store_true", help="Mention a simultaneous submission")
    p.add_argument("-o", "--output", default=None, help="Write to file instead of stdout")
    _author_args(p)
    p.set_defaults(func=_cmd_cover_letter)

    p = sub.add_parser("formats", help="List supported formats and profiles")
    p.set_defaults(func=_cmd_formats)
    return ap


def main(argv=None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        config = load_config(args.config)
        engine = ManuscriptEngine(config)
        return args.func(args, engine, config)
    except EngineError as e:
        logger.error("%s", e)
        _emit({"status": "error", "error_type": type(e).__name__, "error": str(e)})
        return 1
    except OSError as e:
        logger.error("%s", e)
        _emit({"status": "error", "error_type": "IOFailure", "error": str(e)})
        return 1


if __name__ == "__main__":
    sys.exit(main())
