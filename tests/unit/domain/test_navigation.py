"""Unit tests for navigation building."""

from __future__ import annotations

import pytest

from docloom.domain.navigation import NavEntry, build_navigation


@pytest.mark.unit
def test_configured_pages_come_first_and_unlisted_pages_are_appended() -> None:
    entries = [
        NavEntry.from_setting("index.md"),
        NavEntry.from_setting({"title": "Guide", "children": ["guide/b.md", {"page": "guide/a.md", "hidden": True}]}),
    ]
    order = ["guide/a.md", "guide/b.md", "index.md", "extra.md"]
    titles = {"index.md": "Home", "guide/a.md": "A", "guide/b.md": "B", "extra.md": "Extra"}

    navigation, missing = build_navigation(entries, order, titles)

    assert missing == []
    assert navigation.sequence == ["index.md", "guide/b.md", "guide/a.md", "extra.md"]
    assert [root.title for root in navigation.roots] == ["Home", "Guide", "Extra"]
    assert navigation.visible_pages() == ["index.md", "guide/b.md", "extra.md"]
    assert navigation.previous("guide/b.md") == "index.md"
    assert navigation.next("guide/a.md") == "extra.md"
    assert navigation.next("extra.md") is None
    node = navigation.node_for("guide/b.md")
    assert node is not None and node.parent is not None and node.parent.title == "Guide"


@pytest.mark.unit
def test_unknown_configured_pages_are_returned_as_missing() -> None:
    navigation, missing = build_navigation([NavEntry(page="ghost.md"), NavEntry(page="index.md")], ["index.md"], {})

    assert missing == ["ghost.md"]
    assert navigation.sequence == ["index.md"]


@pytest.mark.unit
def test_nav_entry_requires_page_or_children() -> None:
    with pytest.raises(ValueError):
        NavEntry(title="Empty")
