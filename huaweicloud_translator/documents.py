"""HTML fragment extraction and rebuilding."""

from __future__ import annotations

from typing import Iterator, List, Sequence, Tuple

from bs4 import BeautifulSoup, NavigableString

from .errors import ReassemblyMismatchError
from .structures import TextFragment

PARSER = "html.parser"

SKIPPED_PARENTS = frozenset({"script", "style", "template"})


def _is_fragment(node: object) -> bool:
    # Comments, doctypes and CDATA are NavigableString subclasses.
    if type(node) is not NavigableString:
        return False
    parent = node.parent
    if parent is not None and parent.name in SKIPPED_PARENTS:
        return False
    return bool(node.strip())


def _split_whitespace(text: str) -> Tuple[str, str]:
    stripped = text.strip()
    if not stripped:
        return text, ""
    start = text.index(stripped)
    return text[:start], text[start + len(stripped):]


class HtmlDocument:
    """A parsed HTML snippet whose text leaves can be replaced by position.

    The parsed tree is never modified. :meth:`rebuild` parses the source markup
    again and swaps in the replacements, so extraction and substitution walk
    identical trees in the same order.
    """

    def __init__(self, markup: str) -> None:
        self.markup = markup
        self.soup = BeautifulSoup(markup, PARSER)
        self.fragments: Tuple[TextFragment, ...] = tuple(self._extract())

    @classmethod
    def parse(cls, markup: str) -> "HtmlDocument":
        return cls(markup)

    def _iter_leaves(self, soup: BeautifulSoup) -> Iterator[NavigableString]:
        for node in soup.descendants:
            if _is_fragment(node):
                yield node

    def _extract(self) -> List[TextFragment]:
        fragments: List[TextFragment] = []
        for index, node in enumerate(self._iter_leaves(self.soup)):
            text = str(node)
            leading, trailing = _split_whitespace(text)
            fragments.append(
                TextFragment(index=index, text=text, leading=leading, trailing=trailing)
            )
        return fragments

    def render(self) -> str:
        return str(self.soup)

    def rebuild(self, replacements: Sequence[str]) -> str:
        """Return new markup with fragment ``i`` replaced by ``replacements[i]``.

        The original leading and trailing whitespace of each leaf is kept.
        """

        if len(replacements) != len(self.fragments):
            raise ReassemblyMismatchError(len(self.fragments), len(replacements))

        fresh = BeautifulSoup(self.markup, PARSER)
        leaves = list(self._iter_leaves(fresh))
        if len(leaves) != len(self.fragments):
            raise ReassemblyMismatchError(len(self.fragments), len(leaves))

        for fragment, leaf, replacement in zip(self.fragments, leaves, replacements):
            leaf.replace_with(
                NavigableString(f"{fragment.leading}{replacement.strip()}{fragment.trailing}")
            )
        return str(fresh)
