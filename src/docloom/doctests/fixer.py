"""
docloom: fix-mode source rewriting

File: src/docloom/doctests/fixer.py

Purpose
- Replace a fragment's recorded output at its originating location: a page held by
  the document's source store, or a Python file containing the docstring.

Locating a block
- The block text is matched line by line against the file with leading
  indentation ignored; every matched line must share the same extra indent.
- When several windows match, the one closest to the fragment's recorded line wins.
- The replacement is re-indented with the matched indent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from docloom.domain.models import CodeFragment, FragmentOrigin
from docloom.utils.fs import atomic_write

if TYPE_CHECKING:
    from docloom.pipeline.sources import SourceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BlockMatch:
    start: int
    end: int
    indent: str


def locate_block(text: str, block_text: str, hint_line: int | None = None) -> BlockMatch | None:
    """Find ``block_text`` inside ``text``; indices are 0-based line numbers, ``end`` exclusive."""

    file_lines = text.splitlines()
    block_lines = block_text.splitlines()
    if not block_lines:
        return None

    matches: list[BlockMatch] = []
    for start in range(len(file_lines) - len(block_lines) + 1):
        indent = _window_indent(file_lines[start : start + len(block_lines)], block_lines)
        if indent is not None:
            matches.append(BlockMatch(start=start, end=start + len(block_lines), indent=indent))
    if not matches:
        return None
    if hint_line is None:
        return matches[0]
    target = hint_line - 1
    return min(matches, key=lambda match: (abs(match.start - target), match.start))


def replace_block(text: str, match: BlockMatch, replacement: str) -> str:
    lines = text.splitlines()
    new_lines = [f"{match.indent}{line}" if line.strip() else "" for line in replacement.splitlines()]
    lines[match.start : match.end] = new_lines
    rewritten = "\n".join(lines)
    if text.endswith("\n"):
        rewritten += "\n"
    return rewritten


class SourceFixer:
    """Writes rewritten doctest blocks back to page files and Python source files."""

    def __init__(self, store: SourceStore | None = None) -> None:
        self.store = store

    def apply(self, fragment: CodeFragment, page: str, replacement: str) -> bool:
        """Rewrite ``fragment`` in place; return False when its source cannot be located."""

        if fragment.origin is FragmentOrigin.PAGE and fragment.location.path == page:
            if self.store is None:
                return False
            original = self.store.read(page)
            updated = self._rewrite(original, fragment, replacement)
            if updated is None:
                return False
            self.store.write(page, updated)
        else:
            path = Path(fragment.location.path)
            if not path.is_file():
                return False
            original = path.read_text(encoding="utf-8")
            updated = self._rewrite(original, fragment, replacement)
            if updated is None:
                return False
            atomic_write(path, updated)
        logger.info("rewrote doctest output at %s", fragment.location)
        return True

    def _rewrite(self, original: str, fragment: CodeFragment, replacement: str) -> str | None:
        match = locate_block(original, fragment.block_text, fragment.location.line)
        if match is None:
            return None
        return replace_block(original, match, replacement)


def _window_indent(window: list[str], block_lines: list[str]) -> str | None:
    indent: str | None = None
    for file_line, block_line in zip(window, block_lines, strict=True):
        if not block_line.strip():
            if file_line.strip():
                return None
            continue
        if not file_line.endswith(block_line):
            return None
        prefix = file_line[: len(file_line) - len(block_line)]
        if prefix.strip():
            return None
        if indent is None:
            indent = prefix
        elif prefix != indent:
            return None
    return indent if indent is not None else ""


__all__ = ["BlockMatch", "SourceFixer", "locate_block", "replace_block"]
