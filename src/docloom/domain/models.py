"""Dataclass value objects shared by every build stage."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from docloom.constants import ANCHOR_SUFFIX_SEPARATOR

if TYPE_CHECKING:
    from docloom.markup.ast import Node


class DiagnosticCategory(StrEnum):
    """Closed set of diagnostic categories accepted by the strict gate."""

    AUTODOCS_BLOCK = "autodocs_block"
    CROSS_REFERENCES = "cross_references"
    DOCS_BLOCK = "docs_block"
    DOCTEST = "doctest"
    EVAL_BLOCK = "eval_block"
    EXAMPLE_BLOCK = "example_block"
    FOOTNOTE = "footnote"
    LINKCHECK = "linkcheck"
    META_BLOCK = "meta_block"
    MISSING_DOCS = "missing_docs"
    PARSE_ERROR = "parse_error"
    SETUP_BLOCK = "setup_block"


class DoctestMode(StrEnum):
    FULL = "full"
    ONLY = "only"
    FIX = "fix"
    OFF = "off"


class AnchorKind(StrEnum):
    HEADING = "heading"
    FOOTNOTE = "footnote"
    DOCS = "docs"


class ReferenceKind(StrEnum):
    HEADING = "heading"
    DOCS = "docs"


class ExpectationKind(StrEnum):
    """How a fragment's recorded output is compared."""

    EXACT = "exact"
    TRANSCRIPT = "transcript"
    NONE = "none"


class FragmentOrigin(StrEnum):
    PAGE = "page"
    DOCSTRING = "docstring"


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """File path plus an optional 1-based line number."""

    path: str
    line: int | None = None

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("SourceLocation.path must be non-empty")
        if self.line is not None and self.line <= 0:
            raise ValueError("SourceLocation.line must be > 0 when provided")

    def __str__(self) -> str:
        if self.line is None:
            return self.path
        return f"{self.path}:{self.line}"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """One categorized build issue. Never mutated after creation."""

    category: DiagnosticCategory
    message: str
    page: str | None = None
    line: int | None = None
    details: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", coerce_category(self.category))
        if not self.message:
            raise ValueError("Diagnostic.message must be non-empty")
        object.__setattr__(self, "details", dict(self.details))

    def render(self) -> str:
        where = ""
        if self.page is not None:
            where = f" {self.page}" if self.line is None else f" {self.page}:{self.line}"
        return f"[{self.category.value}]{where}: {self.message}"


@dataclass(frozen=True, slots=True)
class Anchor:
    """Addressable target keyed by ``(identifier, disambiguator)`` within a page."""

    identifier: str
    page: str
    kind: AnchorKind
    disambiguator: int | None = None
    title: str = ""
    sequence: int = 0
    node: Node | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.identifier:
            raise ValueError("Anchor.identifier must be non-empty")
        if self.disambiguator is not None and self.disambiguator <= 0:
            raise ValueError("Anchor.disambiguator must be > 0 when provided")

    @property
    def label(self) -> str:
        if self.disambiguator is None:
            return self.identifier
        return f"{self.identifier}{ANCHOR_SUFFIX_SEPARATOR}{self.disambiguator}"

    @property
    def qualified_label(self) -> str:
        return f"{self.page}#{self.label}"


@dataclass(slots=True)
class CrossReferenceRequest:
    """Placeholder for a link whose target may be defined on a later page."""

    location: SourceLocation
    target: str
    kind: ReferenceKind
    node: Node
    text: str = ""
    resolved: bool = False

    def mark_resolved(self) -> None:
        if self.resolved:
            raise RuntimeError(f"cross-reference {self.target!r} at {self.location} resolved twice")
        self.resolved = True


@dataclass(frozen=True, slots=True)
class TranscriptStep:
    """One ``>>>`` statement and the output recorded after it."""

    source: str
    expected: str


@dataclass(slots=True)
class CodeFragment:
    """Code with an optional recorded expectation, awaiting the doctest engine."""

    code: str
    kind: ExpectationKind
    location: SourceLocation
    block_text: str
    expected: str | None = None
    steps: tuple[TranscriptStep, ...] = ()
    label: str | None = None
    origin: FragmentOrigin = FragmentOrigin.PAGE
    directive: str = "doctest"
    group: str = ""
    # Module whose globals seed the execution context (docstring fragments).
    module: str | None = None

    @property
    def has_expectation(self) -> bool:
        return self.kind is not ExpectationKind.NONE


@dataclass(frozen=True, slots=True)
class OutputFilter:
    """Regex whose matches are replaced on both sides before doctest comparison."""

    pattern: str
    replacement: str = ""
    regex: re.Pattern[str] = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        try:
            compiled = re.compile(self.pattern, flags=re.MULTILINE)
        except re.error as exc:
            raise ValueError(f"invalid doctest filter {self.pattern!r}: {exc}") from exc
        object.__setattr__(self, "regex", compiled)

    def apply(self, text: str) -> str:
        return self.regex.sub(self.replacement, text)


def coerce_category(value: object) -> DiagnosticCategory:
    if isinstance(value, DiagnosticCategory):
        return value
    if isinstance(value, str):
        try:
            return DiagnosticCategory(value.strip().lower())
        except ValueError:
            raise ValueError(f"unknown diagnostic category: {value!r}") from None
    raise TypeError(f"invalid diagnostic category value: {value!r}")


__all__ = [
    "Anchor",
    "AnchorKind",
    "CodeFragment",
    "CrossReferenceRequest",
    "Diagnostic",
    "DiagnosticCategory",
    "DoctestMode",
    "ExpectationKind",
    "FragmentOrigin",
    "OutputFilter",
    "ReferenceKind",
    "SourceLocation",
    "TranscriptStep",
    "coerce_category",
]
