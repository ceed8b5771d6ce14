"""Fragment wrapping and request batching utilities."""

from __future__ import annotations

import html
import logging
from enum import Enum
from typing import List, Sequence

from .errors import OversizedFragmentError
from .structures import Batch, TextFragment

logger = logging.getLogger(__name__)

LENGTH_LIMIT = 2000

BLOCK_OPEN = "<p>"
BLOCK_CLOSE = "</p>\n"
LINE_BREAK = "<br>"
# Appended before the closing tag and trimmed again on reassembly.
PADDING = " "


class OversizePolicy(Enum):
    """What to do with a fragment that exceeds the limit on its own."""

    ALLOW = "allow"
    REJECT = "reject"


def byte_length(text: str) -> int:
    return len(text.encode("utf-8"))


def wrap_fragment(content: str) -> str:
    """Serialise one fragment as a single-line block."""

    escaped = html.escape(content, quote=False).replace("\n", LINE_BREAK)
    return f"{BLOCK_OPEN}{escaped}{PADDING}{BLOCK_CLOSE}"


class BatchBuilder:
    """Aggregates wrapped fragments into batches within a byte budget."""

    def __init__(
        self,
        limit: int = LENGTH_LIMIT,
        oversize_policy: OversizePolicy = OversizePolicy.ALLOW,
    ) -> None:
        self.limit = max(1, limit)
        self.oversize_policy = oversize_policy

    def build(self, fragments: Sequence[TextFragment]) -> List[Batch]:
        batches: List[Batch] = []
        batch_fragments: List[TextFragment] = []
        current = ""
        batch_id = 1

        for fragment in fragments:
            wrapped = wrap_fragment(fragment.content)
            size = byte_length(wrapped)
            if size > self.limit:
                if self.oversize_policy is OversizePolicy.REJECT:
                    raise OversizedFragmentError(fragment.index, size, self.limit)
                logger.warning(
                    "Fragment %s is %s bytes once wrapped (limit %s); "
                    "sending it in a batch of its own.",
                    fragment.index,
                    size,
                    self.limit,
                )

            if batch_fragments and byte_length(current) + size > self.limit:
                batches.append(
                    Batch(batch_id=batch_id, fragments=tuple(batch_fragments), text=current)
                )
                batch_id += 1
                batch_fragments = []
                current = ""

            batch_fragments.append(fragment)
            current += wrapped

        if batch_fragments:
            batches.append(
                Batch(batch_id=batch_id, fragments=tuple(batch_fragments), text=current)
            )

        return batches
