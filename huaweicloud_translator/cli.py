"""Command line interface for the HuaweiCloud translator."""

from __future__ import annotations

import argparse
import logging
import pathlib
import re
import sys
from typing import Iterable, Optional

from .configuration import get_settings
from .errors import (
    TranslatorConfigurationError,
    TranslatorError,
)
from .providers import build_provider
from .segmenter import LENGTH_LIMIT, OversizePolicy
from .structures import Post, TranslationSummary
from .translator import Translator

HTML_SUFFIXES = {".html", ".htm"}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="huaweicloud-translator",
        description=(
            "Translate forum post content with HuaweiCloud machine translation "
            "while preserving its HTML markup."
        ),
    )
    parser.add_argument(
        "input_file",
        help="Path to the .html post body or plain-text file to translate.",
    )
    parser.add_argument(
        "-t",
        "--target-locale",
        help="Destination forum locale (for example zh_CN, en, pt).",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output file path. Defaults to appending the target locale.",
    )
    parser.add_argument(
        "-p",
        "--provider",
        help="Translation provider identifier (default: huaweicloud).",
    )
    parser.add_argument(
        "-b",
        "--batch-limit",
        type=int,
        default=LENGTH_LIMIT,
        help=f"Maximum bytes per translation request (default: {LENGTH_LIMIT}).",
    )
    parser.add_argument(
        "--reject-oversize",
        action="store_true",
        help="Fail instead of sending a single text fragment larger than the batch limit.",
    )
    parser.add_argument(
        "--detect",
        action="store_true",
        help="Only detect and print the language of the input.",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Allow overwriting the output file if it already exists.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    parser.add_argument(
        "--debug-provider",
        action="store_true",
        help="Log complete provider requests and responses for troubleshooting.",
    )
    return parser


def sanitise_locale_for_filename(locale: str) -> str:
    """Generate a filesystem-friendly suffix from a locale."""

    cleaned = re.sub(r"[^A-Za-z0-9_\-]+", "", locale.strip())
    return cleaned or "translated"


def derive_output_path(input_path: pathlib.Path, locale: str) -> pathlib.Path:
    addition = sanitise_locale_for_filename(locale)
    return input_path.with_name(f"{input_path.stem}_{addition}{input_path.suffix}")


def validate_paths(
    input_path: pathlib.Path,
    output_path: pathlib.Path,
    force_overwrite: bool,
) -> None:
    """Validate input/output path combinations and overwrite policy."""

    if not input_path.exists():
        raise FileNotFoundError("Input file not found. Please provide a readable file.")
    if not input_path.is_file():
        raise TranslatorError("Input path must be a file.")
    if input_path.resolve() == output_path.resolve():
        raise TranslatorError(
            "The output path matches the input file. Refusing to overwrite the source file."
        )
    if output_path.exists() and not force_overwrite:
        raise TranslatorError(
            "The output file already exists. Rename it or use the overwrite flag."
        )


def execute_translation(
    *,
    input_file: str,
    output_file: str | None,
    target_locale: str,
    provider: str | None,
    batch_limit: int,
    reject_oversize: bool,
    force_overwrite: bool,
    provider_debug: bool,
) -> tuple[int, TranslationSummary | None, str | None]:
    """Execute a translation run and return the exit code, summary, and message."""

    input_path = pathlib.Path(input_file).expanduser().resolve()
    output_path = (
        pathlib.Path(output_file).expanduser().resolve()
        if output_file
        else derive_output_path(input_path, target_locale)
    )

    try:
        validate_paths(input_path, output_path, force_overwrite=force_overwrite)
    except (FileNotFoundError, TranslatorError) as exc:
        return 1, None, str(exc)

    content = input_path.read_text(encoding="utf-8")
    is_html = input_path.suffix.lower() in HTML_SUFFIXES
    post = Post(
        post_id=0,
        raw="" if is_html else content,
        cooked=content if is_html else "",
    )
    policy = OversizePolicy.REJECT if reject_oversize else OversizePolicy.ALLOW

    try:
        with Translator(
            build_provider(provider, debug=provider_debug),
            batch_limit=batch_limit,
            oversize_policy=policy,
        ) as translator:
            if is_html:
                source = translator.resolve_source_language(post, target_locale)
                summary = translator.translate_html(
                    content, target_locale, source_language=source
                )
                translated = summary.html
            else:
                translated = translator.translate_post(post, target_locale, cooked=False)
                summary = None
    except TranslatorError as exc:
        return 1, None, str(exc)
    except KeyboardInterrupt:
        return 2, None, "Translation interrupted by user."

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(translated, encoding="utf-8")
    message = None if summary else f"Translated text written to {output_path}"
    return 0, summary, message


def execute_detection(*, input_file: str, provider: str | None, provider_debug: bool) -> tuple[int, str]:
    input_path = pathlib.Path(input_file).expanduser().resolve()
    if not input_path.is_file():
        return 1, "Input file not found. Please provide a readable file."

    content = input_path.read_text(encoding="utf-8")
    is_html = input_path.suffix.lower() in HTML_SUFFIXES
    post = Post(post_id=0, raw="" if is_html else content, cooked=content if is_html else "")
    try:
        with Translator(build_provider(provider, debug=provider_debug)) as translator:
            detected = translator.detect(post)
    except TranslatorError as exc:
        return 1, str(exc)
    if detected is None:
        return 1, "The language of the input could not be detected."
    return 0, detected


def print_summary(summary: TranslationSummary) -> None:
    """Output a friendly report once processing completes."""

    print("\nTranslation complete.")
    print(f"  Text fragments:  {summary.total_fragments}")
    print(
        f"  Batches:         {summary.total_batches} "
        f"({summary.fallback_batches} kept original text)"
    )
    if summary.source_language:
        print(f"  Source language: {summary.source_language}")
    print(f"  Target language: {summary.target_language}")
    print(f"  Elapsed time:    {summary.elapsed_seconds:.2f} seconds")
    if summary.notes:
        print("  Notes:")
        for message in summary.notes:
            print(f"    - {message}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    logging.basicConfig(
        level=logging.INFO if args.verbose or args.debug_provider else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    provider_debug = bool(args.debug_provider)
    if not provider_debug and (args.provider or "huaweicloud") not in {"echo", "noop", "mock"}:
        try:
            settings = get_settings()
        except TranslatorConfigurationError as exc:
            print(exc)
            return 1
        provider_debug = settings.TRANSLATOR_DEBUG_INFO

    if args.detect:
        exit_code, message = execute_detection(
            input_file=args.input_file,
            provider=args.provider,
            provider_debug=provider_debug,
        )
        print(message)
        return exit_code

    if not args.target_locale:
        parser.error("the following arguments are required: -t/--target-locale")

    exit_code, summary, message = execute_translation(
        input_file=args.input_file,
        output_file=args.output,
        target_locale=args.target_locale,
        provider=args.provider,
        batch_limit=args.batch_limit,
        reject_oversize=args.reject_oversize,
        force_overwrite=args.force,
        provider_debug=provider_debug,
    )

    if message:
        print(message)
    if summary:
        print_summary(summary)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
