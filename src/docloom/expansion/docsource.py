"""
docloom: documentation source backed by Python introspection

File: src/docloom/expansion/docsource.py

Purpose
- ``lookup(name)`` resolves a qualified name to its docstring and source location.
- ``list_bindings(module, policy)`` enumerates a module's documented bindings in a
  stable order: kind order, then declaration line, then name.

Lookup rules
- The longest importable module prefix is imported; the rest is resolved with getattr.
- A name that is not importable is searched as a suffix inside the configured
  modules, which is where ambiguous matches come from.
- Names that resolve to the same object collapse to one canonical entry.
"""

from __future__ import annotations

import importlib
import inspect
import re
import sys
from dataclasses import dataclass
from enum import StrEnum
from typing import Final, Protocol


class BindingKind(StrEnum):
    MODULE = "module"
    CLASS = "class"
    FUNCTION = "function"


DEFAULT_KIND_ORDER: Final[tuple[BindingKind, ...]] = (
    BindingKind.MODULE,
    BindingKind.CLASS,
    BindingKind.FUNCTION,
)


class DocSourceError(LookupError):
    """A module could not be imported or enumerated."""


@dataclass(frozen=True, slots=True)
class DocEntry:
    """Documentation text for one binding plus where it was declared."""

    name: str
    kind: BindingKind
    docstring: str
    signature: str = ""
    path: str | None = None
    line: int | None = None
    module: str | None = None


@dataclass(frozen=True, slots=True)
class Binding:
    name: str
    kind: BindingKind
    line: int | None = None


@dataclass(frozen=True, slots=True)
class BindingPolicy:
    """Filter and ordering policy for ``list_bindings``."""

    order: tuple[BindingKind, ...] = DEFAULT_KIND_ORDER
    public: bool = True
    private: bool = False
    exports_only: bool = False
    name_filter: str | None = None

    def admits(self, short_name: str, exports: frozenset[str] | None) -> bool:
        is_private = short_name.startswith("_")
        if is_private and not self.private:
            return False
        if not is_private and not self.public:
            return False
        if self.exports_only and (exports is None or short_name not in exports):
            return False
        if self.name_filter is not None and re.search(self.name_filter, short_name) is None:
            return False
        return True


class DocumentationSource(Protocol):
    def lookup(self, qualified_name: str) -> list[DocEntry]: ...

    def list_bindings(self, module: str, policy: BindingPolicy) -> list[Binding]: ...


class PythonDocSource:
    """``DocumentationSource`` using ``importlib`` and ``inspect``."""

    def __init__(self, modules: tuple[str, ...] = ()) -> None:
        self.modules = tuple(modules)

    def lookup(self, qualified_name: str) -> list[DocEntry]:
        direct = self._resolve(qualified_name)
        if direct is not None:
            return [direct]

        entries: dict[str, DocEntry] = {}
        for module_name in self.modules:
            found = self._resolve(f"{module_name}.{qualified_name}")
            if found is not None:
                entries.setdefault(found.name, found)
        return [entries[name] for name in sorted(entries)]

    def list_bindings(self, module: str, policy: BindingPolicy) -> list[Binding]:
        mod = _import(module)
        if mod is None:
            raise DocSourceError(f"no module named {module!r}")
        exports = _exports(mod)
        rank = {kind: index for index, kind in enumerate(policy.order)}

        bindings: list[Binding] = []
        if BindingKind.MODULE in rank and inspect.getdoc(mod):
            bindings.append(Binding(name=module, kind=BindingKind.MODULE, line=0))

        for short_name, value in vars(mod).items():
            kind = _kind_of(value)
            if kind is None or kind is BindingKind.MODULE or kind not in rank:
                continue
            if getattr(value, "__module__", None) != module and (exports is None or short_name not in exports):
                continue
            if not policy.admits(short_name, exports):
                continue
            if not inspect.getdoc(value):
                continue
            bindings.append(Binding(name=f"{module}.{short_name}", kind=kind, line=_declared_line(value)))

        return sorted(
            bindings,
            key=lambda item: (
                rank[item.kind],
                item.line if item.line is not None else sys.maxsize,
                item.name,
            ),
        )

    def _resolve(self, qualified_name: str) -> DocEntry | None:
        parts = qualified_name.split(".")
        for cut in range(len(parts), 0, -1):
            module_name = ".".join(parts[:cut])
            mod = _import(module_name)
            if mod is None:
                continue
            target: object = mod
            for attribute in parts[cut:]:
                try:
                    target = getattr(target, attribute)
                except AttributeError:
                    return None
            return _entry(qualified_name, target)
        return None


def _import(module_name: str) -> object | None:
    try:
        return importlib.import_module(module_name)
    except ModuleNotFoundError as exc:
        # Only a missing ``module_name`` (or a parent) means "not a module"; a
        # missing dependency inside it is a real import failure.
        if exc.name is not None and (module_name == exc.name or module_name.startswith(f"{exc.name}.")):
            return None
        raise DocSourceError(f"importing {module_name!r} failed: {exc}") from exc
    except Exception as exc:
        raise DocSourceError(f"importing {module_name!r} failed: {exc}") from exc


def _entry(requested: str, target: object) -> DocEntry | None:
    kind = _kind_of(target)
    if kind is None:
        return None
    docstring = inspect.getdoc(target) or ""
    return DocEntry(
        name=_canonical_name(requested, target, kind),
        kind=kind,
        docstring=docstring,
        signature=_signature(target, kind),
        path=_source_file(target),
        line=_declared_line(target) if kind is not BindingKind.MODULE else 1,
        module=_module_of(target, kind),
    )


def _kind_of(value: object) -> BindingKind | None:
    if inspect.ismodule(value):
        return BindingKind.MODULE
    if inspect.isclass(value):
        return BindingKind.CLASS
    if inspect.isfunction(value) or inspect.isbuiltin(value) or inspect.ismethod(value):
        return BindingKind.FUNCTION
    return None


def _canonical_name(requested: str, target: object, kind: BindingKind) -> str:
    if kind is BindingKind.MODULE:
        return getattr(target, "__name__", requested)
    module = getattr(target, "__module__", None)
    qualname = getattr(target, "__qualname__", None)
    if isinstance(module, str) and isinstance(qualname, str) and "<locals>" not in qualname:
        return f"{module}.{qualname}"
    return requested


def _module_of(target: object, kind: BindingKind) -> str | None:
    if kind is BindingKind.MODULE:
        return getattr(target, "__name__", None)
    module = getattr(target, "__module__", None)
    return module if isinstance(module, str) else None


def _signature(target: object, kind: BindingKind) -> str:
    if kind is BindingKind.MODULE:
        return ""
    name = getattr(target, "__name__", "")
    try:
        return f"{name}{inspect.signature(target)}"  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return name


def _source_file(target: object) -> str | None:
    try:
        return inspect.getsourcefile(target)  # type: ignore[arg-type]
    except TypeError:
        return None


def _declared_line(target: object) -> int | None:
    try:
        return inspect.getsourcelines(target)[1]  # type: ignore[arg-type]
    except (OSError, TypeError):
        return None


def _exports(module: object) -> frozenset[str] | None:
    names = getattr(module, "__all__", None)
    if names is None:
        return None
    return frozenset(str(name) for name in names)


__all__ = [
    "DEFAULT_KIND_ORDER",
    "Binding",
    "BindingKind",
    "BindingPolicy",
    "DocEntry",
    "DocSourceError",
    "DocumentationSource",
    "PythonDocSource",
]
