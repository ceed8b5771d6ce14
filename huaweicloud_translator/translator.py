"""High-level orchestration for post and topic translation."""

from __future__ import annotations

import logging
import time
from typing import List, Optional, Union

from bs4 import BeautifulSoup

from .documents import HtmlDocument
from .errors import (
    DetectionError,
    TranslationUnavailableError,
    UnsupportedLanguagePairError,
)
from .providers import TranslationProvider, translate_supported, vendor_language
from .reassembly import Reassembler
from .segmenter import LENGTH_LIMIT, BatchBuilder, OversizePolicy
from .structures import (
    Post,
    Topic,
    Translated,
    TranslationResult,
    TranslationSummary,
    UnsupportedLanguage,
)

logger = logging.getLogger(__name__)

Entity = Union[Post, Topic]


class Translator:
    """Entry point used by the forum integration."""

    def __init__(
        self,
        provider: TranslationProvider,
        *,
        batch_limit: int = LENGTH_LIMIT,
        oversize_policy: OversizePolicy = OversizePolicy.ALLOW,
    ) -> None:
        self.provider = provider
        self.batch_builder = BatchBuilder(batch_limit, oversize_policy)

    def __enter__(self) -> "Translator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.provider.close()

    # --- Host operations --------------------------------------------------

    def detect(self, entity: Entity) -> Optional[str]:
        """Detect and remember the language of a post or topic."""

        if entity.detected_language:
            return entity.detected_language
        detected = self.provider.detect_language(self._text_for_detection(entity))
        if detected is not None:
            entity.detected_language = detected
        return detected

    def translate_supported(self, source: Optional[str], target: Optional[str]) -> bool:
        return translate_supported(source, target)

    def translate_post(self, post: Post, target_locale: str, *, cooked: bool = True) -> str:
        """Translate a post's cooked HTML, or its raw text when ``cooked`` is false."""

        cache_key = target_locale if cooked else f"{target_locale}:raw"
        if cache_key in post.translations:
            return post.translations[cache_key]

        source = self.resolve_source_language(post, target_locale)
        if cooked:
            translated = self.translate_html(
                post.cooked, target_locale, source_language=source
            ).html
        else:
            translated = self.translate_text(post.raw, target_locale)

        logger.debug("original text: %s", post.cooked if cooked else post.raw)
        logger.debug("translated text: %s", translated)
        post.translations[cache_key] = translated
        return translated

    def translate_topic(self, topic: Topic, target_locale: str) -> str:
        if target_locale in topic.translations:
            return topic.translations[target_locale]

        self.resolve_source_language(topic, target_locale)
        translated = self.translate_text(topic.title, target_locale)
        topic.translations[target_locale] = translated
        return translated

    def translate_text(self, text: str, target_locale: str) -> str:
        """Translate plain text in a single request."""

        result = self.provider.request_translation(
            text, target_language=self._vendor_target(target_locale)
        )
        if isinstance(result, Translated):
            return result.text
        if isinstance(result, UnsupportedLanguage):
            raise UnsupportedLanguagePairError(
                result.detail or f"Cannot translate this text into {target_locale}."
            )
        raise TranslationUnavailableError(
            f"Translation failed: {result.detail or 'the service returned an error'}."
        )

    def translate_html(
        self,
        markup: str,
        target_locale: str,
        *,
        source_language: Optional[str] = None,
    ) -> TranslationSummary:
        """Translate the text of an HTML snippet while keeping its markup."""

        start_time = time.time()
        target = self._vendor_target(target_locale)
        document = HtmlDocument.parse(markup)
        fragments = document.fragments
        logger.info("text_node_num: %s", len(fragments))

        if not fragments:
            return TranslationSummary(
                html=document.render(),
                source_language=source_language,
                target_language=target,
                total_fragments=0,
                total_batches=0,
                fallback_batches=0,
                elapsed_seconds=time.time() - start_time,
            )

        batches = self.batch_builder.build(fragments)
        logger.info("request_num: %s", len(batches))

        results: List[TranslationResult] = []
        for batch in batches:
            results.append(self.provider.request_translation(batch.text, target_language=target))
            logger.info(
                "Processed batch %s (%s fragments, %s bytes).",
                batch.batch_id,
                len(batch.fragments),
                batch.byte_length,
            )

        reassembler = Reassembler()
        replacements = reassembler.reassemble(batches, results, len(fragments))
        logger.info("replacement_num: %s", len(replacements))
        html = document.rebuild(replacements)

        return TranslationSummary(
            html=html,
            source_language=source_language,
            target_language=target,
            total_fragments=len(fragments),
            total_batches=len(batches),
            fallback_batches=len(reassembler.fallbacks),
            elapsed_seconds=time.time() - start_time,
            notes=[
                f"Batch {batch_id} kept its original text."
                for batch_id in reassembler.fallbacks
            ],
        )

    # --- Internal helpers -------------------------------------------------

    def _text_for_detection(self, entity: Entity) -> str:
        if isinstance(entity, Topic):
            return entity.title
        if entity.raw.strip():
            return entity.raw
        return BeautifulSoup(entity.cooked, "html.parser").get_text()

    def resolve_source_language(self, entity: Entity, target_locale: str) -> str:
        detected = self.detect(entity)
        if detected is None:
            raise DetectionError("The language of this content could not be detected.")
        if not self.translate_supported(detected, target_locale):
            raise UnsupportedLanguagePairError(
                f"Translating from '{detected}' to '{target_locale}' is not supported."
            )
        return detected

    def _vendor_target(self, target_locale: str) -> str:
        target = vendor_language(target_locale)
        if target is None:
            raise UnsupportedLanguagePairError(
                f"Target locale '{target_locale}' is not supported."
            )
        return target
