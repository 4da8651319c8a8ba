"""
docloom: directive blocks

File: src/docloom/expansion/directives.py

Purpose
- Parse fenced ``@name`` blocks into a closed union of frozen, validated payloads.

Directive syntax
- ``@meta``      YAML mapping: current_module, doctest_setup, doctest_filters.
- ``@docs``      one qualified name per line.
- ``@autodocs``  YAML mapping: modules, order, public, private, filter.
- ``@example [label]``, ``@repl [label]``, ``@setup label``, ``@eval``: code.
- ``@contents``  YAML mapping: pages, depth.

Unknown directive names and invalid payloads raise ``DirectiveParseError``; the
engine turns that into a diagnostic.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Final, TypeAlias

import yaml

from docloom.domain.models import DiagnosticCategory, OutputFilter
from docloom.errors import DirectiveParseError
from docloom.expansion.docsource import DEFAULT_KIND_ORDER, BindingKind

DIRECTIVE_PREFIX: Final[str] = "@"

_LABEL_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z_][A-Za-z0-9_.-]*$")
_QUALIFIED_NAME_RE: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*$")


class DirectiveKind(StrEnum):
    META = "meta"
    DOCS = "docs"
    AUTODOCS = "autodocs"
    EXAMPLE = "example"
    REPL = "repl"
    SETUP = "setup"
    EVAL = "eval"
    CONTENTS = "contents"


@dataclass(frozen=True, slots=True)
class MetaDirective:
    current_module: str | None = None
    doctest_setup: str | None = None
    doctest_filters: tuple[OutputFilter, ...] | None = None


@dataclass(frozen=True, slots=True)
class DocsDirective:
    names: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class AutodocsDirective:
    modules: tuple[str, ...]
    order: tuple[BindingKind, ...] = DEFAULT_KIND_ORDER
    public: bool = True
    private: bool = False
    name_filter: str | None = None


@dataclass(frozen=True, slots=True)
class ExampleDirective:
    code: str
    label: str | None = None


@dataclass(frozen=True, slots=True)
class ReplDirective:
    code: str
    label: str | None = None


@dataclass(frozen=True, slots=True)
class SetupDirective:
    code: str
    label: str


@dataclass(frozen=True, slots=True)
class EvalDirective:
    code: str


@dataclass(frozen=True, slots=True)
class ContentsDirective:
    pages: tuple[str, ...] = ()
    depth: int = 2


Directive: TypeAlias = (
    MetaDirective
    | DocsDirective
    | AutodocsDirective
    | ExampleDirective
    | ReplDirective
    | SetupDirective
    | EvalDirective
    | ContentsDirective
)

def is_directive(info: str) -> bool:
    return info.strip().startswith(DIRECTIVE_PREFIX)


def parse_directive(info: str, body: str) -> Directive:
    """Parse a fence info string such as ``@example setup-1`` and its body."""

    head, _, argument = info.strip().partition(" ")
    name = head[len(DIRECTIVE_PREFIX) :].strip().lower()
    argument = argument.strip()
    try:
        kind = DirectiveKind(name)
    except ValueError:
        known = ", ".join(f"@{item.value}" for item in DirectiveKind)
        raise DirectiveParseError(f"unknown directive {head!r}; expected one of: {known}") from None

    if kind is DirectiveKind.META:
        _reject_argument(kind, argument)
        return _parse_meta(body)
    if kind is DirectiveKind.DOCS:
        _reject_argument(kind, argument)
        return _parse_docs(body)
    if kind is DirectiveKind.AUTODOCS:
        _reject_argument(kind, argument)
        return _parse_autodocs(body)
    if kind is DirectiveKind.CONTENTS:
        _reject_argument(kind, argument)
        return _parse_contents(body)
    if kind is DirectiveKind.EVAL:
        _reject_argument(kind, argument)
        return EvalDirective(code=body)
    if kind is DirectiveKind.SETUP:
        if not argument:
            raise DirectiveParseError("@setup requires a context label")
        return SetupDirective(code=body, label=_label(kind, argument))
    label = _label(kind, argument) if argument else None
    if kind is DirectiveKind.REPL:
        return ReplDirective(code=body, label=label)
    return ExampleDirective(code=body, label=label)


def _parse_meta(body: str) -> MetaDirective:
    payload = _load_mapping(DirectiveKind.META, body, category=DiagnosticCategory.META_BLOCK)
    allowed = {"current_module", "doctest_setup", "doctest_filters"}
    unknown = sorted(set(payload) - allowed)
    if unknown:
        raise DirectiveParseError(f"@meta: unknown keys {unknown}", category=DiagnosticCategory.META_BLOCK)

    current_module = payload.get("current_module")
    if current_module is not None and (
        not isinstance(current_module, str) or not _QUALIFIED_NAME_RE.fullmatch(current_module)
    ):
        raise DirectiveParseError(
            f"@meta: current_module must be a module name, got {current_module!r}",
            category=DiagnosticCategory.META_BLOCK,
        )
    setup = payload.get("doctest_setup")
    if setup is not None and not isinstance(setup, str):
        raise DirectiveParseError("@meta: doctest_setup must be a string", category=DiagnosticCategory.META_BLOCK)

    filters: tuple[OutputFilter, ...] | None = None
    raw_filters = payload.get("doctest_filters")
    if raw_filters is not None:
        filters = _parse_filters(raw_filters)
    return MetaDirective(current_module=current_module, doctest_setup=setup, doctest_filters=filters)


def _parse_filters(raw: object) -> tuple[OutputFilter, ...]:
    if not isinstance(raw, list):
        raise DirectiveParseError("@meta: doctest_filters must be a list", category=DiagnosticCategory.META_BLOCK)
    filters: list[OutputFilter] = []
    for item in raw:
        try:
            if isinstance(item, str):
                filters.append(OutputFilter(item))
            elif isinstance(item, Mapping) and isinstance(item.get("pattern"), str):
                filters.append(OutputFilter(item["pattern"], str(item.get("replacement", ""))))
            else:
                raise DirectiveParseError(
                    f"@meta: invalid doctest filter {item!r}", category=DiagnosticCategory.META_BLOCK
                )
        except ValueError as exc:
            if isinstance(exc, DirectiveParseError):
                raise
            raise DirectiveParseError(f"@meta: {exc}", category=DiagnosticCategory.META_BLOCK) from exc
    return tuple(filters)


def _parse_docs(body: str) -> DocsDirective:
    names: list[str] = []
    for raw_line in body.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if not _QUALIFIED_NAME_RE.fullmatch(line):
            raise DirectiveParseError(f"@docs: invalid name {line!r}")
        names.append(line)
    if not names:
        raise DirectiveParseError("@docs block lists no names")
    return DocsDirective(names=tuple(names))


def _parse_autodocs(body: str) -> AutodocsDirective:
    payload = _load_mapping(DirectiveKind.AUTODOCS, body)
    unknown = sorted(set(payload) - {"modules", "order", "public", "private", "filter"})
    if unknown:
        raise DirectiveParseError(f"@autodocs: unknown keys {unknown}")

    modules = payload.get("modules")
    if isinstance(modules, str):
        modules = [modules]
    if not isinstance(modules, list) or not modules or not all(
        isinstance(item, str) and _QUALIFIED_NAME_RE.fullmatch(item) for item in modules
    ):
        raise DirectiveParseError("@autodocs: 'modules' must be a non-empty list of module names")

    order = DEFAULT_KIND_ORDER
    if "order" in payload:
        raw_order = payload["order"]
        if not isinstance(raw_order, list):
            raise DirectiveParseError("@autodocs: 'order' must be a list")
        try:
            order = tuple(BindingKind(str(item)) for item in raw_order)
        except ValueError:
            expected = ", ".join(kind.value for kind in BindingKind)
            raise DirectiveParseError(
                f"@autodocs: 'order' entries must be one of: {expected}"
            ) from None

    flags: dict[str, bool] = {}
    for key, default in (("public", True), ("private", False)):
        value = payload.get(key, default)
        if not isinstance(value, bool):
            raise DirectiveParseError(f"@autodocs: {key!r} must be a boolean")
        flags[key] = value

    name_filter = payload.get("filter")
    if name_filter is not None:
        try:
            re.compile(str(name_filter))
        except re.error as exc:
            raise DirectiveParseError(
                f"@autodocs: invalid filter pattern: {exc}") from exc
    return AutodocsDirective(
        modules=tuple(modules),
        order=order,
        public=flags["public"],
        private=flags["private"],
        name_filter=None if name_filter is None else str(name_filter),
    )


def _parse_contents(body: str) -> ContentsDirective:
    payload = _load_mapping(DirectiveKind.CONTENTS, body)
    unknown = sorted(set(payload) - {"pages", "depth"})
    if unknown:
        raise DirectiveParseError(f"@contents: unknown keys {unknown}")
    pages = payload.get("pages", [])
    if isinstance(pages, str):
        pages = [pages]
    if not isinstance(pages, list) or not all(isinstance(item, str) for item in pages):
        raise DirectiveParseError("@contents: 'pages' must be a list of page paths")
    depth = payload.get("depth", 2)
    if isinstance(depth, bool) or not isinstance(depth, int) or depth < 1:
        raise DirectiveParseError("@contents: 'depth' must be a positive integer")
    return ContentsDirective(pages=tuple(pages), depth=depth)


def _load_mapping(
    kind: DirectiveKind,
    body: str,
    *,
    category: DiagnosticCategory = DiagnosticCategory.PARSE_ERROR,
) -> dict[str, object]:
    if not body.strip():
        return {}
    try:
        payload = yaml.safe_load(body)
    except yaml.YAMLError as exc:
        raise DirectiveParseError(f"@{kind.value}: invalid YAML: {exc}", category=category) from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise DirectiveParseError(f"@{kind.value}: payload must be a mapping", category=category)
    return {str(key): value for key, value in payload.items()}


def _reject_argument(kind: DirectiveKind, argument: str) -> None:
    if argument:
        raise DirectiveParseError(f"@{kind.value} takes no argument, got {argument!r}")


def _label(kind: DirectiveKind, argument: str) -> str:
    if not _LABEL_RE.fullmatch(argument):
        raise DirectiveParseError(f"@{kind.value}: invalid context label {argument!r}")
    return argument


__all__ = [
    "AutodocsDirective",
    "ContentsDirective",
    "Directive",
    "DirectiveKind",
    "DocsDirective",
    "EvalDirective",
    "ExampleDirective",
    "MetaDirective",
    "ReplDirective",
    "SetupDirective",
    "is_directive",
    "parse_directive",
]
