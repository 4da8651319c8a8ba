"""
docloom: block-level Markdown reader

File: src/docloom/markup/reader.py

Purpose
- Turn page and docstring text into the generic ``Node`` tree consumed by expansion.

Recognized blocks
- Fenced code (``` and ~~~), with the info string kept verbatim in ``attrs["info"]``.
- ATX headings, footnote definitions (``[^label]: text``), paragraphs.
- Indented code blocks and bare ``>>>`` transcripts (docstring style).

Recognized inline syntax
- ``[text](@ref)`` / ``[text](@ref target)`` cross-references, ``[text](url)`` links,
  ``[^label]`` footnote references.

Anything else is kept as literal text; this reader is deliberately not a full
CommonMark implementation and plugs in behind ``MarkupParser``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final, Protocol

from docloom.markup.ast import Node, NodeKind, text_node

_ATX_HEADING_RE: Final[re.Pattern[str]] = re.compile(
    r"^\s{0,3}(?P<hashes>#{1,6})\s+(?P<text>.*?)\s*#*\s*$"
)
_FENCE_START_RE: Final[re.Pattern[str]] = re.compile(
    r"^(?P<indent>[ ]{0,3})(?P<marker>`{3,}|~{3,})(?P<info>[^`]*)$"
)
_FENCE_CLOSE_RE: Final[re.Pattern[str]] = re.compile(r"^[ ]{0,3}(?P<marker>`{3,}|~{3,})\s*$")
_FOOTNOTE_DEF_RE: Final[re.Pattern[str]] = re.compile(
    r"^\s{0,3}\[\^(?P<label>[^\]\s]+)\]:\s*(?P<text>.*)$"
)
_INDENTED_CODE_RE: Final[re.Pattern[str]] = re.compile(r"^(?: {4}|\t)")
_PROMPT_RE: Final[re.Pattern[str]] = re.compile(r"^>>>(?: |$)")
_INLINE_RE: Final[re.Pattern[str]] = re.compile(
    r"\[\^(?P<footnote>[^\]\s]+)\]"
    r"|\[(?P<label>[^\]]*)\]\((?P<dest>[^)\s]*)(?:\s+(?P<rest>[^)]*?))?\s*\)"
)

REF_DESTINATION: Final[str] = "@ref"


class MarkupParser(Protocol):
    def parse(self, text: str, *, line_offset: int = 0) -> Node: ...


@dataclass(slots=True)
class _Fence:
    marker_char: str
    marker_length: int


class MarkdownReader:
    """Default ``MarkupParser`` implementation."""

    def parse(self, text: str, *, line_offset: int = 0) -> Node:
        root = Node(NodeKind.DOCUMENT, line=1 + line_offset)
        lines = text.splitlines()
        paragraph: list[tuple[int, str]] = []
        index = 0

        def flush() -> None:
            if paragraph:
                root.append(_paragraph(paragraph))
                paragraph.clear()

        while index < len(lines):
            line = lines[index]
            line_no = index + 1 + line_offset

            fence_match = _FENCE_START_RE.match(line)
            if fence_match is not None:
                flush()
                index = _read_fence(lines, index, fence_match, root, line_offset)
                continue

            heading_match = _ATX_HEADING_RE.match(line)
            if heading_match is not None:
                flush()
                title = heading_match.group("text")
                root.append(
                    Node(
                        NodeKind.HEADING,
                        text=title,
                        children=parse_inline(title, line_no),
                        attrs={"level": len(heading_match.group("hashes"))},
                        line=line_no,
                    )
                )
                index += 1
                continue

            footnote_match = _FOOTNOTE_DEF_RE.match(line)
            if footnote_match is not None:
                flush()
                body = footnote_match.group("text")
                root.append(
                    Node(
                        NodeKind.FOOTNOTE_DEF,
                        text=body,
                        children=parse_inline(body, line_no),
                        attrs={"label": footnote_match.group("label")},
                        line=line_no,
                    )
                )
                index += 1
                continue

            if not line.strip():
                flush()
                index += 1
                continue

            if not paragraph and _INDENTED_CODE_RE.match(line):
                index = _read_indented_code(lines, index, root, line_offset)
                continue

            if not paragraph and _PROMPT_RE.match(line.lstrip()):
                index = _read_transcript(lines, index, root, line_offset)
                continue

            paragraph.append((line_no, line))
            index += 1

        flush()
        return root


def parse_inline(text: str, line: int | None = None) -> list[Node]:
    """Split a run of inline text into text, link, cross-reference and footnote nodes."""

    nodes: list[Node] = []
    cursor = 0
    for match in _INLINE_RE.finditer(text):
        if match.start() > cursor:
            nodes.append(text_node(text[cursor : match.start()], line=line))
        cursor = match.end()

        footnote = match.group("footnote")
        if footnote is not None:
            nodes.append(Node(NodeKind.FOOTNOTE_REF, text=footnote, attrs={"label": footnote}, line=line))
            continue

        label = match.group("label") or ""
        destination = match.group("dest") or ""
        if destination == REF_DESTINATION:
            rest = (match.group("rest") or "").strip().strip('"')
            nodes.append(
                Node(
                    NodeKind.XREF,
                    text=label,
                    attrs={"target": rest or None, "source": match.group(0)},
                    line=line,
                )
            )
        else:
            nodes.append(
                Node(
                    NodeKind.LINK,
                    text=label,
                    children=[text_node(label, line=line)],
                    attrs={"href": destination},
                    line=line,
                )
            )

    if cursor < len(text):
        nodes.append(text_node(text[cursor:], line=line))
    return nodes


def split_info(info: str) -> tuple[str, str]:
    """Split a fence info string into ``(language, arguments)``."""

    stripped = info.strip()
    if not stripped:
        return "", ""
    head, _, tail = stripped.partition(" ")
    return head, tail.strip()


def _paragraph(lines: list[tuple[int, str]]) -> Node:
    first_line = lines[0][0]
    body = "\n".join(text.strip() for _, text in lines)
    return Node(NodeKind.PARAGRAPH, text=body, children=parse_inline(body, first_line), line=first_line)


def _read_fence(
    lines: list[str],
    start: int,
    match: re.Match[str],
    root: Node,
    line_offset: int,
) -> int:
    marker = match.group("marker")
    fence = _Fence(marker_char=marker[0], marker_length=len(marker))
    indent = len(match.group("indent"))
    body: list[str] = []
    index = start + 1
    closed = False
    while index < len(lines):
        candidate = lines[index]
        close = _FENCE_CLOSE_RE.match(candidate)
        if (
            close is not None
            and close.group("marker")[0] == fence.marker_char
            and len(close.group("marker")) >= fence.marker_length
        ):
            closed = True
            index += 1
            break
        body.append(_strip_indent(candidate, indent))
        index += 1

    info = match.group("info").strip()
    language, arguments = split_info(info)
    root.append(
        Node(
            NodeKind.CODE,
            text="\n".join(body),
            attrs={
                "info": info,
                "language": language,
                "arguments": arguments,
                "fenced": True,
                "closed": closed,
                "fence_line": start + 1 + line_offset,
            },
            line=start + 2 + line_offset,
        )
    )
    return index


def _read_indented_code(lines: list[str], start: int, root: Node, line_offset: int) -> int:
    body: list[str] = []
    index = start
    while index < len(lines):
        candidate = lines[index]
        if candidate.strip() and not _INDENTED_CODE_RE.match(candidate):
            break
        body.append(candidate[4:] if candidate.startswith("    ") else candidate.lstrip("\t"))
        index += 1
    while body and not body[-1].strip():
        body.pop()
    language = "pycon" if body and _PROMPT_RE.match(body[0].lstrip()) else ""
    root.append(
        Node(
            NodeKind.CODE,
            text="\n".join(body),
            attrs={"info": language, "language": language, "arguments": "", "fenced": False},
            line=start + 1 + line_offset,
        )
    )
    return start + len(body)


def _read_transcript(lines: list[str], start: int, root: Node, line_offset: int) -> int:
    indent = len(lines[start]) - len(lines[start].lstrip())
    body: list[str] = []
    index = start
    while index < len(lines) and lines[index].strip():
        body.append(_strip_indent(lines[index], indent))
        index += 1
    root.append(
        Node(
            NodeKind.CODE,
            text="\n".join(body),
            attrs={"info": "pycon", "language": "pycon", "arguments": "", "fenced": False},
            line=start + 1 + line_offset,
        )
    )
    return index


def _strip_indent(line: str, indent: int) -> str:
    if indent <= 0:
        return line
    leading = len(line) - len(line.lstrip(" "))
    return line[min(indent, leading) :]


__all__ = ["REF_DESTINATION", "MarkdownReader", "MarkupParser", "parse_inline", "split_info"]
