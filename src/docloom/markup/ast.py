"""Generic document AST shared by the reader, the expansion engine and renderers."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum


class NodeKind(StrEnum):
    DOCUMENT = "document"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    TEXT = "text"
    CODE = "code"
    LINK = "link"
    XREF = "xref"
    FOOTNOTE_DEF = "footnote_def"
    FOOTNOTE_REF = "footnote_ref"
    DOCS_ENTRY = "docs_entry"
    EVAL_RESULT = "eval_result"
    CONTENTS = "contents"
    FAILURE = "failure"


@dataclass(slots=True, eq=False)
class Node:
    """A single AST node.

    ``text`` holds literal content (code, text runs, heading titles); ``attrs``
    holds kind-specific metadata such as ``level`` for headings or ``info`` for
    code blocks. ``line`` is the 1-based source line of the node's first line.
    """

    kind: NodeKind
    text: str = ""
    children: list[Node] = field(default_factory=list)
    attrs: dict[str, object] = field(default_factory=dict)
    line: int | None = None

    def append(self, child: Node) -> Node:
        self.children.append(child)
        return child

    def walk(self) -> Iterator[Node]:
        """Yield this node and every descendant in document (pre-)order."""
        yield self
        for child in list(self.children):
            yield from child.walk()

    def find_all(self, kind: NodeKind) -> list[Node]:
        return [node for node in self.walk() if node.kind is kind]

    def replace_child(self, old: Node, *replacements: Node) -> None:
        """Splice ``replacements`` in place of ``old``; no replacements removes it."""
        for index, child in enumerate(self.children):
            if child is old:
                self.children[index : index + 1] = list(replacements)
                return
        raise ValueError(f"{old.kind.value} node is not a child of this {self.kind.value} node")

    def become(self, other: Node) -> None:
        """Rewrite this node in place so parents keep their reference."""
        self.kind = other.kind
        self.text = other.text
        self.children = list(other.children)
        self.attrs = dict(other.attrs)
        if other.line is not None:
            self.line = other.line

    def plain_text(self) -> str:
        if self.kind in (NodeKind.TEXT, NodeKind.CODE) or not self.children:
            return self.text
        return "".join(child.plain_text() for child in self.children)


def text_node(value: str, *, line: int | None = None) -> Node:
    return Node(NodeKind.TEXT, text=value, line=line)


def failure(message: str, *, line: int | None = None, source: str = "") -> Node:
    return Node(NodeKind.FAILURE, text=message, attrs={"source": source}, line=line)


__all__ = ["Node", "NodeKind", "failure", "text_node"]
