"""Translation provider abstractions."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

from .configuration import TranslatorConfig, get_settings
from .errors import TranslatorConfigurationError, TransportError
from .segmenter import LENGTH_LIMIT
from .structures import ApiError, Translated, TranslationResult, UnsupportedLanguage
from .tokens import InMemoryTokenCache, TokenCache, TokenIssuer
from .transport import HttpClientPool

logger = logging.getLogger(__name__)

TRANSLATE_URI = (
    "https://nlp-ext.{project_name}.myhuaweicloud.com/v1/{project_id}"
    "/machine-translation/text-translation"
)
DETECT_URI = (
    "https://nlp-ext.{project_name}.myhuaweicloud.com/v1/{project_id}"
    "/machine-translation/language-detection"
)
AUTH_HEADER = "X-Auth-Token"
UNSUPPORTED_MESSAGE = "Language or Scene is not supported."

# Forum locale -> vendor language code.
# https://support.huaweicloud.com/api-nlp/nlp_03_0024.html
SUPPORTED_LANG_MAPPING: Dict[str, str] = {
    "ar": "ar",
    "de": "de",
    "ru": "ru",
    "fr": "fr",
    "ko": "ko",
    "pt": "pt",
    "ja": "ja",
    "th": "th",
    "tr": "tr",
    "es": "es",
    "en": "en",
    "en_GB": "en",
    "en_US": "en",
    "vi": "vi",
    "zh": "zh",
    "zh_CN": "zh",
    "zh_TW": "zh",
}


def vendor_language(locale: str) -> Optional[str]:
    """Map a forum locale such as ``zh_CN`` or ``pt-BR`` to a vendor code."""

    normalized = locale.strip().replace("-", "_")
    if normalized in SUPPORTED_LANG_MAPPING:
        return SUPPORTED_LANG_MAPPING[normalized]
    base = normalized.split("_")[0].lower()
    if base in SUPPORTED_LANG_MAPPING.values():
        return base
    return None


def translate_supported(source: Optional[str], target: Optional[str]) -> bool:
    if not source or not target:
        return False
    return source in SUPPORTED_LANG_MAPPING and vendor_language(target) is not None


class TranslationProvider(ABC):
    """Abstract adapter for translation vendors."""

    name = "abstract"

    @abstractmethod
    def detect_language(self, text: str) -> Optional[str]:
        """Return the vendor language code of ``text`` or ``None``."""

    @abstractmethod
    def request_translation(self, text: str, *, target_language: str) -> TranslationResult:
        """Translate one request body into ``target_language``."""

    def close(self) -> None:
        """Release network resources held by the provider."""


class EchoTranslationProvider(TranslationProvider):
    """A provider that returns the original text (useful for testing)."""

    name = "echo"

    def __init__(self, language: str = "en") -> None:
        self.language = language

    def detect_language(self, text: str) -> Optional[str]:
        return self.language

    def request_translation(self, text: str, *, target_language: str) -> TranslationResult:
        return Translated(text)


class HuaweiCloudProvider(TranslationProvider):
    """Translation provider backed by HuaweiCloud NLP machine translation."""

    name = "huaweicloud"

    def __init__(
        self,
        settings: TranslatorConfig,
        *,
        pool: HttpClientPool | None = None,
        token_cache: TokenCache | None = None,
        debug: bool = False,
    ) -> None:
        self.debug = debug or settings.TRANSLATOR_DEBUG_INFO
        self.project_name = settings.HUAWEICLOUD_PROJECT_NAME or ""
        self.project_id = settings.HUAWEICLOUD_PROJECT_ID or ""
        if not self.project_name or not self.project_id:
            raise TranslatorConfigurationError(
                "HuaweiCloud configuration missing. Set HUAWEICLOUD_PROJECT_NAME "
                "and HUAWEICLOUD_PROJECT_ID."
            )

        self.pool = pool or HttpClientPool()
        self.tokens = TokenIssuer(
            pool=self.pool,
            cache=token_cache if token_cache is not None else InMemoryTokenCache(),
            project_name=self.project_name,
            project_id=self.project_id,
            domain_name=settings.HUAWEICLOUD_DOMAIN_NAME or "",
            username=settings.HUAWEICLOUD_USERNAME or "",
            password=settings.HUAWEICLOUD_PASSWORD or "",
        )

    def _url(self, template: str) -> str:
        return template.format(project_name=self.project_name, project_id=self.project_id)

    def detect_language(self, text: str) -> Optional[str]:
        body = {"text": text[:LENGTH_LIMIT]}
        result = self._call(self._url(DETECT_URI), body)
        detected = result.get("detected_language") if isinstance(result, dict) else None
        if not isinstance(detected, str) or not detected:
            logger.error("Language detection failed")
            return None
        logger.info("Detected language: %s", detected)
        return detected

    def request_translation(self, text: str, *, target_language: str) -> TranslationResult:
        detected = self.detect_language(text)
        if detected is None:
            return ApiError("source language could not be detected")

        body = {"text": text, "from": detected, "to": target_language}
        self._log_debug("provider.request.payload", body)
        result = self._call(self._url(TRANSLATE_URI), body)
        if not isinstance(result, dict):
            return result

        translated = result.get("translated_text")
        if not isinstance(translated, str):
            logger.error("Translation response is missing translated_text")
            return ApiError("response did not contain translated_text")
        self._log_debug("provider.response.payload", result)
        return Translated(translated)

    def _call(
        self,
        url: str,
        body: Dict[str, Any],
    ) -> Union[Dict[str, Any], UnsupportedLanguage, ApiError]:
        """POST ``body`` and return the parsed JSON object or a failure result."""

        try:
            headers = {AUTH_HEADER: self.tokens.access_token()}
            response = self.pool.post(url, json_body=body, headers=headers)
        except TransportError as exc:
            logger.error("Exception in API request: %s", exc)
            return ApiError(str(exc))

        try:
            parsed = response.json()
        except ValueError:
            parsed = None

        if response.status_code != 200:
            logger.error(
                "API returned error status: %s, Body: %s",
                response.status_code,
                response.text,
            )
            error_msg = parsed.get("error_msg") if isinstance(parsed, dict) else None
            if isinstance(error_msg, str) and UNSUPPORTED_MESSAGE in error_msg:
                return UnsupportedLanguage(error_msg.strip())
            return ApiError(f"HTTP {response.status_code}")

        if not isinstance(parsed, dict):
            logger.error("API returned a malformed body: %s", response.text)
            return ApiError("malformed response body")
        return parsed

    def _log_debug(self, label: str, payload: Any) -> None:
        """Emit structured debug information when enabled."""

        if not self.debug:
            return
        try:
            if isinstance(payload, (dict, list)):
                message = json.dumps(payload, ensure_ascii=False, indent=2)
            else:
                message = str(payload)
        except (TypeError, ValueError):
            message = repr(payload)
        logger.info("[provider-debug] %s:\n%s", label, message)

    def close(self) -> None:
        self.pool.close()


def build_provider(
    name: str | None,
    *,
    settings: TranslatorConfig | None = None,
    debug: bool = False,
    pool: HttpClientPool | None = None,
    token_cache: TokenCache | None = None,
) -> TranslationProvider:
    """Factory to create providers by name."""

    normalized = (name or "huaweicloud").strip().lower()
    if normalized in {"huaweicloud", "huawei", "default"}:
        return HuaweiCloudProvider(
            settings or get_settings(),
            pool=pool,
            token_cache=token_cache,
            debug=debug,
        )
    if normalized in {"echo", "noop", "mock"}:
        return EchoTranslationProvider()
    raise TranslatorConfigurationError(f"Unknown translation provider '{name}'.")
