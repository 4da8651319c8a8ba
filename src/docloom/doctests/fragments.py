"""
docloom: doctest fragments

File: src/docloom/doctests/fragments.py

Purpose
- Recognize doctest-bearing code nodes and turn them into ``CodeFragment`` objects.
- Compare recorded and actual output after filter normalization.
- Rebuild a fragment's block text with new output for fix mode.

Fragment forms
- Script form: code, a ``# output`` line, then the expected text.
- Transcript form: ``>>>`` statements with ``...`` continuations, each followed by
  its expected output. ``<BLANKLINE>`` stands for an empty output line.
- No-expectation form: code only; executed to detect crashes.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Final

from docloom.constants import DOCTEST_OUTPUT_MARKER
from docloom.domain.models import (
    CodeFragment,
    ExpectationKind,
    FragmentOrigin,
    OutputFilter,
    SourceLocation,
    TranscriptStep,
)
from docloom.markup.ast import Node, NodeKind

DOCTEST_LANGUAGES: Final[frozenset[str]] = frozenset({"doctest", "pycon"})
TRACEBACK_HEADER: Final[str] = "Traceback (most recent call last):"
BLANKLINE_MARKER: Final[str] = "<BLANKLINE>"

_PROMPT: Final[str] = ">>>"
_CONTINUATION: Final[str] = "..."


def is_doctest_node(node: Node) -> bool:
    if node.kind is not NodeKind.CODE:
        return False
    language = str(node.attrs.get("language", "")).lower()
    return language in DOCTEST_LANGUAGES


def fragment_from_node(
    node: Node,
    *,
    path: str,
    line_base: int = 0,
    origin: FragmentOrigin = FragmentOrigin.PAGE,
    group: str = "",
    module: str | None = None,
) -> CodeFragment:
    """Build a fragment from a doctest code node.

    ``line_base`` is added to the node's line; docstring nodes are parsed with line
    numbers relative to the docstring, so callers pass the docstring's offset.
    """

    block_text = node.text
    arguments = str(node.attrs.get("arguments", "")).split()
    label = arguments[0] if arguments and str(node.attrs.get("language", "")).lower() == "doctest" else None
    line = (node.line or 1) + line_base
    location = SourceLocation(path, max(line, 1))

    if _has_prompt(block_text):
        steps = parse_transcript(block_text)
        return CodeFragment(
            code="\n".join(step.source for step in steps),
            kind=ExpectationKind.TRANSCRIPT,
            location=location,
            block_text=block_text,
            steps=steps,
            label=label,
            origin=origin,
            group=group,
            module=module,
        )

    code, expected = split_script(block_text)
    return CodeFragment(
        code=code,
        kind=ExpectationKind.NONE if expected is None else ExpectationKind.EXACT,
        location=location,
        block_text=block_text,
        expected=expected,
        label=label,
        origin=origin,
        group=group,
        module=module,
    )


def collect_fragments(
    root: Node,
    *,
    path: str,
    line_base: int = 0,
    origin: FragmentOrigin = FragmentOrigin.PAGE,
    group: str = "",
    module: str | None = None,
) -> list[CodeFragment]:
    """Every doctest fragment below ``root`` in source order."""

    return [
        fragment_from_node(node, path=path, line_base=line_base, origin=origin, group=group, module=module)
        for node in root.walk()
        if is_doctest_node(node)
    ]


def split_script(text: str) -> tuple[str, str | None]:
    """Split script form into ``(code, expected)``; ``expected`` is None without a marker."""

    lines = text.splitlines()
    for index, line in enumerate(lines):
        if line.strip() == DOCTEST_OUTPUT_MARKER:
            expected_lines = lines[index + 1 :]
            while expected_lines and not expected_lines[0].strip():
                expected_lines.pop(0)
            return "\n".join(lines[:index]), "\n".join(expected_lines)
    return text, None


def parse_transcript(text: str) -> tuple[TranscriptStep, ...]:
    steps: list[TranscriptStep] = []
    source: list[str] | None = None
    expected: list[str] = []
    indent = 0

    def close() -> None:
        if source is not None:
            steps.append(TranscriptStep(source="\n".join(source), expected="\n".join(expected)))

    for raw in text.splitlines():
        stripped = raw.lstrip()
        if _is_prompt(stripped):
            close()
            source = [_after_marker(stripped, _PROMPT)]
            expected = []
            indent = len(raw) - len(stripped)
        elif source is not None and not expected and _is_continuation(stripped):
            source.append(_after_marker(stripped, _CONTINUATION))
        elif source is not None:
            expected.append("" if stripped == BLANKLINE_MARKER else _dedent(raw, indent))
    close()
    return tuple(steps)


def normalize_output(text: str, filters: Iterable[OutputFilter] = ()) -> str:
    """Apply filters, drop trailing whitespace per line and trailing blank lines."""

    for item in filters:
        text = item.apply(text)
    lines = [line.rstrip() for line in text.splitlines()]
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)


def outputs_match(expected: str, actual: str, filters: Sequence[OutputFilter] = ()) -> bool:
    want = normalize_output(expected, filters)
    got = normalize_output(actual, filters)
    if want.startswith(TRACEBACK_HEADER):
        return _last_line(want) == _last_line(got)
    return want == got


def mismatch_message(expected: str, actual: str, filters: Sequence[OutputFilter] = ()) -> str:
    return f"doctest failure: expected={normalize_output(expected, filters)}, actual={normalize_output(actual, filters)}"


def rewrite_block(fragment: CodeFragment, actuals: Sequence[str]) -> str:
    """Return the fragment's block text with expectations replaced by ``actuals``.

    Script form takes one actual; transcript form takes one per step. Code lines
    are kept verbatim.
    """

    if fragment.kind is ExpectationKind.TRANSCRIPT:
        return _rewrite_transcript(fragment.block_text, actuals)
    if fragment.kind is ExpectationKind.EXACT:
        return _rewrite_script(fragment.block_text, actuals[0] if actuals else "")
    return fragment.block_text


def _rewrite_script(block_text: str, actual: str) -> str:
    lines = block_text.splitlines()
    for index, line in enumerate(lines):
        if line.strip() == DOCTEST_OUTPUT_MARKER:
            kept = lines[: index + 1]
            if index + 1 < len(lines) and not lines[index + 1].strip():
                kept.append("")
            return "\n".join(kept + normalize_output(actual).splitlines())
    return block_text


def _rewrite_transcript(block_text: str, actuals: Sequence[str]) -> str:
    rewritten: list[str] = []
    recorded: list[str] = []
    step = -1
    indent = ""

    def close() -> None:
        # Blank lines after a step's output separate steps and are kept as they are.
        separators: list[str] = []
        while recorded and not recorded[-1].strip():
            separators.insert(0, recorded.pop())
        if 0 <= step < len(actuals):
            for line in normalize_output(actuals[step]).splitlines():
                rewritten.append(f"{indent}{line}" if line else f"{indent}{BLANKLINE_MARKER}")
        else:
            rewritten.extend(recorded)
        rewritten.extend(separators)
        recorded.clear()

    for raw in block_text.splitlines():
        stripped = raw.lstrip()
        if _is_prompt(stripped):
            close()
            step += 1
            indent = raw[: len(raw) - len(stripped)]
            rewritten.append(raw)
        elif step < 0:
            rewritten.append(raw)
        elif not recorded and _is_continuation(stripped):
            rewritten.append(raw)
        else:
            recorded.append(raw)
    close()
    return "\n".join(rewritten)


def _has_prompt(text: str) -> bool:
    return any(_is_prompt(line.lstrip()) for line in text.splitlines())


def _is_prompt(stripped: str) -> bool:
    return stripped == _PROMPT or stripped.startswith(f"{_PROMPT} ")


def _is_continuation(stripped: str) -> bool:
    return stripped == _CONTINUATION or stripped.startswith(f"{_CONTINUATION} ")


def _after_marker(stripped: str, marker: str) -> str:
    return stripped[len(marker) + 1 :] if len(stripped) > len(marker) else ""


def _dedent(line: str, indent: int) -> str:
    leading = len(line) - len(line.lstrip(" "))
    return line[min(indent, leading) :]


def _last_line(text: str) -> str:
    lines = [line for line in text.splitlines() if line.strip()]
    return lines[-1].strip() if lines else ""


__all__ = [
    "BLANKLINE_MARKER",
    "DOCTEST_LANGUAGES",
    "TRACEBACK_HEADER",
    "collect_fragments",
    "fragment_from_node",
    "is_doctest_node",
    "mismatch_message",
    "normalize_output",
    "outputs_match",
    "parse_transcript",
    "rewrite_block",
    "split_script",
]
