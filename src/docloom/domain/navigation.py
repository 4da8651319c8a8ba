"""Navigation tree built from the ``pages`` setting plus any unlisted pages."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class NavEntry:
    """Configured navigation entry. A section has children and may have no page."""

    page: str | None = None
    title: str | None = None
    hidden: bool = False
    children: tuple[NavEntry, ...] = ()

    def __post_init__(self) -> None:
        if self.page is None and not self.children:
            raise ValueError("NavEntry needs a page or children")
        object.__setattr__(self, "children", tuple(self.children))

    @classmethod
    def from_setting(cls, value: str | Mapping[str, object]) -> NavEntry:
        if isinstance(value, str):
            return cls(page=value)
        raw_children = value.get("children", ())
        children = tuple(cls.from_setting(item) for item in raw_children) if isinstance(raw_children, Sequence) else ()
        page = value.get("page")
        title = value.get("title")
        return cls(
            page=page if isinstance(page, str) else None,
            title=title if isinstance(title, str) else None,
            hidden=bool(value.get("hidden", False)),
            children=children,
        )

    def pages(self) -> Iterator[str]:
        if self.page is not None:
            yield self.page
        for child in self.children:
            yield from child.pages()


@dataclass(slots=True)
class NavNode:
    """Resolved navigation node with the title taken from the page when unset."""

    title: str
    page: str | None = None
    hidden: bool = False
    children: list[NavNode] = field(default_factory=list)
    parent: NavNode | None = field(default=None, repr=False)

    def walk(self) -> Iterator[NavNode]:
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(slots=True)
class Navigation:
    """Navigation tree plus the linear previous/next page sequence."""

    roots: list[NavNode] = field(default_factory=list)
    sequence: list[str] = field(default_factory=list)

    def node_for(self, page: str) -> NavNode | None:
        for root in self.roots:
            for node in root.walk():
                if node.page == page:
                    return node
        return None

    def previous(self, page: str) -> str | None:
        index = self._index(page)
        return self.sequence[index - 1] if index is not None and index > 0 else None

    def next(self, page: str) -> str | None:
        index = self._index(page)
        if index is None or index + 1 >= len(self.sequence):
            return None
        return self.sequence[index + 1]

    def visible_pages(self) -> list[str]:
        return [node.page for root in self.roots for node in root.walk() if node.page is not None and not node.hidden]

    def _index(self, page: str) -> int | None:
        try:
            return self.sequence.index(page)
        except ValueError:
            return None


def build_navigation(
    entries: Iterable[NavEntry],
    page_order: Sequence[str],
    titles: Mapping[str, str],
) -> tuple[Navigation, list[str]]:
    """Build the navigation tree; returns it with the configured pages that do not exist."""

    known = set(page_order)
    listed: set[str] = set()
    missing: list[str] = []
    navigation = Navigation()

    def convert(entry: NavEntry, parent: NavNode | None) -> NavNode | None:
        page = entry.page
        if page is not None and page not in known:
            missing.append(page)
            page = None
        if page is None and not entry.children:
            return None
        title = entry.title or (titles.get(page, page) if page is not None else "")
        node = NavNode(title=title, page=page, hidden=entry.hidden, parent=parent)
        if page is not None:
            listed.add(page)
            navigation.sequence.append(page)
        for child in entry.children:
            converted = convert(child, node)
            if converted is not None:
                node.children.append(converted)
        return node

    for entry in entries:
        converted_root = convert(entry, None)
        if converted_root is not None:
            navigation.roots.append(converted_root)

    for page in page_order:
        if page not in listed:
            navigation.roots.append(NavNode(title=titles.get(page, page), page=page))
            navigation.sequence.append(page)
    return navigation, missing


__all__ = ["NavEntry", "NavNode", "Navigation", "build_navigation"]
