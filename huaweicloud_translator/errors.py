"""Error definitions for the HuaweiCloud translation provider."""

from __future__ import annotations


class TranslatorError(Exception):
    """Base exception for all custom errors."""


class TranslatorConfigurationError(TranslatorError):
    """Raised when the provider settings are missing or invalid."""


class TokenAcquisitionError(TranslatorError):
    """Raised when the IAM endpoint does not issue a token."""


class TransportError(TranslatorError):
    """Raised when an HTTP request fails after the pool exhausted its retries."""


class DetectionError(TranslatorError):
    """Raised when the source language of an entity cannot be detected."""


class UnsupportedLanguagePairError(TranslatorError):
    """Raised when the vendor cannot translate between the two languages."""


class OversizedFragmentError(TranslatorError):
    """Raised when a single fragment cannot fit into one request batch."""

    def __init__(self, index: int, size: int, limit: int) -> None:
        super().__init__(
            f"Fragment {index} needs {size} bytes once wrapped; "
            f"the request limit is {limit} bytes."
        )
        self.index = index
        self.size = size
        self.limit = limit


class ReassemblyMismatchError(TranslatorError):
    """Raised when translated blocks cannot be mapped back onto fragments."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Translated output contained {received} blocks "
            f"but the document has {expected} text fragments."
        )
        self.expected = expected
        self.received = received


class TranslationUnavailableError(TranslatorError):
    """Raised when no usable translation could be produced."""
