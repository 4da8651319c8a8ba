"""
docloom: anchor registry

File: src/docloom/domain/anchors.py

Purpose
- Own every addressable target of one build (headings, footnotes, documented bindings).

Functional requirements
- Heading labels are unique within a page; collisions get ``-1``, ``-2``, ... suffixes.
- Suffix counters are per page. Two pages may both define ``Usage`` without a suffix.
- Footnote labels cannot be disambiguated; a duplicate raises ``AnchorCollisionError``.
- Docs anchors are unique across the whole document.
- Registration and uniqueness checks happen under one lock, so concurrent page
  workers may register into the same registry.
"""

from __future__ import annotations

import re
import threading
from collections import defaultdict
from typing import TYPE_CHECKING, Final

from docloom.constants import ANCHOR_SUFFIX_SEPARATOR
from docloom.domain.models import Anchor, AnchorKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from docloom.markup.ast import Node

_SLUG_DROP_RE: Final[re.Pattern[str]] = re.compile(r"[^\w\s\-.]", flags=re.UNICODE)
_SLUG_SPACE_RE: Final[re.Pattern[str]] = re.compile(r"\s+")


class AnchorCollisionError(ValueError):
    """An anchor that cannot be disambiguated is already registered."""

    def __init__(self, existing: Anchor) -> None:
        super().__init__(f"anchor {existing.qualified_label!r} is already defined")
        self.existing = existing


def slugify(text: str) -> str:
    """Derive a heading identifier: punctuation dropped, whitespace runs become ``-``.

    Case is preserved, so ``"Getting Started!"`` becomes ``"Getting-Started"``.
    """

    cleaned = _SLUG_DROP_RE.sub("", text.replace("`", ""))
    return _SLUG_SPACE_RE.sub(ANCHOR_SUFFIX_SEPARATOR, cleaned.strip())


class AnchorRegistry:
    """Document-wide anchor store keyed by page and label."""

    def __init__(self, page_order: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._by_page: dict[str, dict[str, Anchor]] = defaultdict(dict)
        self._by_identifier: dict[str, list[Anchor]] = defaultdict(list)
        self._docs: dict[str, Anchor] = {}
        self._page_rank: dict[str, int] = {}
        self._sequence = 0
        self.set_page_order(page_order)

    def set_page_order(self, page_order: Iterable[str]) -> None:
        with self._lock:
            self._page_rank = {page: rank for rank, page in enumerate(page_order)}

    def register(
        self,
        identifier: str,
        page: str,
        kind: AnchorKind,
        *,
        title: str = "",
        node: Node | None = None,
        disambiguate: bool = True,
    ) -> Anchor:
        """Register a new anchor and return it with its final label.

        With ``disambiguate=True`` the first free label among ``identifier``,
        ``identifier-1``, ``identifier-2``, ... on ``page`` is taken. Otherwise a
        taken label raises ``AnchorCollisionError``.
        """

        if not identifier:
            raise ValueError("anchor identifier must be non-empty")
        with self._lock:
            labels = self._by_page[page]
            if kind is AnchorKind.DOCS and identifier in self._docs:
                raise AnchorCollisionError(self._docs[identifier])

            disambiguator: int | None = None
            if identifier in labels:
                if not disambiguate:
                    raise AnchorCollisionError(labels[identifier])
                disambiguator = 1
                while f"{identifier}{ANCHOR_SUFFIX_SEPARATOR}{disambiguator}" in labels:
                    disambiguator += 1

            self._sequence += 1
            anchor = Anchor(
                identifier=identifier,
                page=page,
                kind=kind,
                disambiguator=disambiguator,
                title=title,
                sequence=self._sequence,
                node=node,
            )
            labels[anchor.label] = anchor
            self._by_identifier[identifier].append(anchor)
            if kind is AnchorKind.DOCS:
                self._docs[identifier] = anchor
            return anchor

    def get(self, page: str, label: str) -> Anchor | None:
        with self._lock:
            return self._by_page.get(page, {}).get(label)

    def docs_anchor(self, name: str) -> Anchor | None:
        with self._lock:
            return self._docs.get(name)

    def docs_names(self) -> list[str]:
        with self._lock:
            return sorted(self._docs)

    def find(self, label: str, *, page: str | None = None, kind: AnchorKind | None = None) -> list[Anchor]:
        """Return every anchor whose label equals ``label``, in document order."""

        with self._lock:
            if page is not None:
                pages = [page]
            else:
                pages = list(self._by_page)
            matches = [
                self._by_page[name][label]
                for name in pages
                if name in self._by_page and label in self._by_page[name]
            ]
        if kind is not None:
            matches = [anchor for anchor in matches if anchor.kind is kind]
        return self._sorted(matches)

    def anchors_for(self, page: str, kind: AnchorKind | None = None) -> list[Anchor]:
        with self._lock:
            anchors = list(self._by_page.get(page, {}).values())
        if kind is not None:
            anchors = [anchor for anchor in anchors if anchor.kind is kind]
        return sorted(anchors, key=lambda anchor: anchor.sequence)

    def all(self) -> list[Anchor]:
        with self._lock:
            anchors = [anchor for labels in self._by_page.values() for anchor in labels.values()]
        return self._sorted(anchors)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(labels) for labels in self._by_page.values())

    def _sorted(self, anchors: list[Anchor]) -> list[Anchor]:
        fallback = len(self._page_rank)
        return sorted(
            anchors,
            key=lambda anchor: (self._page_rank.get(anchor.page, fallback), anchor.page, anchor.sequence),
        )


__all__ = ["AnchorCollisionError", "AnchorRegistry", "slugify"]
