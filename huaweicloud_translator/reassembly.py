"""Mapping translated batch output back onto document fragments."""

from __future__ import annotations

import logging
import re
from typing import List, Sequence

from bs4 import BeautifulSoup

from .errors import ReassemblyMismatchError, TranslationUnavailableError
from .segmenter import BLOCK_CLOSE, BLOCK_OPEN
from .structures import (
    ApiError,
    Batch,
    Translated,
    TranslationResult,
    UnsupportedLanguage,
)

logger = logging.getLogger(__name__)

OPEN_TAG_PATTERN = re.compile(r"<p\s*>", re.IGNORECASE)
CLOSE_TAG_PATTERN = re.compile(r"</p\s*>", re.IGNORECASE)
BREAK_PATTERN = re.compile(r"<br\s*/?>", re.IGNORECASE)


def _drop_last(pattern: re.Pattern[str], text: str) -> str:
    matches = list(pattern.finditer(text))
    if not matches:
        return text
    last = matches[-1]
    return text[: last.start()] + text[last.end():]


def retract_wrappers(text: str) -> str:
    """Normalise translated output into one canonical block per line.

    The closing tag is looked up from the end of the line because the vendor
    may move punctuation behind it. Only ``\\n`` separates blocks; other line
    boundaries such as ``\\r`` or U+2028 belong to the fragment text.
    """

    blocks: List[str] = []
    for line in text.split("\n"):
        if not line.strip():
            continue
        line = OPEN_TAG_PATTERN.sub("", line, count=1)
        line = _drop_last(CLOSE_TAG_PATTERN, line)
        line = BREAK_PATTERN.sub("\n", line)
        blocks.append(f"{BLOCK_OPEN}{line}{BLOCK_CLOSE}")
    return "".join(blocks)


def parse_blocks(markup: str) -> List[str]:
    """Return the text of every non-blank top-level block, in order."""

    soup = BeautifulSoup(markup, "html.parser")
    texts: List[str] = []
    for block in soup.find_all("p", recursive=False):
        content = block.get_text()
        if not content.strip():
            continue
        texts.append(content.strip())
    return texts


class Reassembler:
    """Turns per-batch results into exactly one string per fragment."""

    def __init__(self) -> None:
        self.fallbacks: List[int] = []

    def merge(
        self,
        batches: Sequence[Batch],
        results: Sequence[TranslationResult],
    ) -> str:
        """Concatenate batch results, keeping the source text of failed batches."""

        if len(batches) != len(results):
            raise ValueError(
                f"Expected {len(batches)} batch results, received {len(results)}."
            )

        self.fallbacks = []
        if results and all(isinstance(result, ApiError) for result in results):
            raise TranslationUnavailableError(
                "The translation service failed for every request batch."
            )

        parts: List[str] = []
        for batch, result in zip(batches, results):
            if isinstance(result, Translated):
                # Batches must not run into each other on one line.
                text = result.text
                parts.append(text if text.endswith("\n") else text + "\n")
                continue
            if isinstance(result, UnsupportedLanguage):
                logger.warning(
                    "Unsupported language in batch %s, keeping original text.",
                    batch.batch_id,
                )
            else:
                logger.error(
                    "Failed to translate batch %s (%s), keeping original text.",
                    batch.batch_id,
                    result.detail or "no detail",
                )
            self.fallbacks.append(batch.batch_id)
            parts.append(batch.text)
        return "".join(parts)

    def split(self, translated: str, expected: int) -> List[str]:
        replacements = parse_blocks(retract_wrappers(translated))
        if len(replacements) != expected:
            logger.error(
                "Block count mismatch: %s fragments, %s translated blocks.",
                expected,
                len(replacements),
            )
            raise ReassemblyMismatchError(expected, len(replacements))
        return replacements

    def reassemble(
        self,
        batches: Sequence[Batch],
        results: Sequence[TranslationResult],
        expected: int,
    ) -> List[str]:
        return self.split(self.merge(batches, results), expected)
