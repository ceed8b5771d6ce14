"""Core data structures for the HuaweiCloud translator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class TextFragment:
    """A text-bearing leaf of a document, translated as one unit."""

    index: int
    text: str
    leading: str = ""
    trailing: str = ""

    @property
    def content(self) -> str:
        """Text without the surrounding whitespace of the leaf."""

        return self.text.strip()


@dataclass(frozen=True)
class Batch:
    """Wrapped fragments sent to the vendor in one translation call."""

    batch_id: int
    fragments: Tuple[TextFragment, ...]
    text: str

    @property
    def byte_length(self) -> int:
        return len(self.text.encode("utf-8"))


@dataclass(frozen=True)
class Translated:
    """The vendor returned translated text."""

    text: str


@dataclass(frozen=True)
class UnsupportedLanguage:
    """The vendor refused the language pair or scene."""

    detail: str = ""


@dataclass(frozen=True)
class ApiError:
    """The vendor call failed for any other reason."""

    detail: str = ""


TranslationResult = Union[Translated, UnsupportedLanguage, ApiError]


@dataclass
class Post:
    """A forum post as handed over by the host."""

    post_id: int
    raw: str
    cooked: str
    detected_language: Optional[str] = None
    translations: Dict[str, str] = field(default_factory=dict)


@dataclass
class Topic:
    """A forum topic; only its title is translated."""

    topic_id: int
    title: str
    detected_language: Optional[str] = None
    translations: Dict[str, str] = field(default_factory=dict)


@dataclass
class TranslationSummary:
    """Report returned after translating an HTML document."""

    html: str
    source_language: Optional[str]
    target_language: str
    total_fragments: int
    total_batches: int
    fallback_batches: int
    elapsed_seconds: float
    notes: List[str] = field(default_factory=list)
