"""
docloom: unit tests for the introspection-backed documentation source

File: tests/unit/expansion/test_docsource.py

Purpose
- Validate qualified-name lookup, suffix search ambiguity and the stable
  ``list_bindings`` order (kind, declaration line, name).
"""

from __future__ import annotations

import importlib
from pathlib import Path

import pytest

from docloom.expansion.docsource import (
    BindingKind,
    BindingPolicy,
    DocSourceError,
    PythonDocSource,
)


@pytest.mark.unit
def test_lookup_resolves_qualified_names(demo_package: Path) -> None:
    source = PythonDocSource()

    (entry,) = source.lookup("loomdemo.shapes.area")

    assert entry.name == "loomdemo.shapes.area"
    assert entry.kind is BindingKind.FUNCTION
    assert entry.signature == "area(radius)"
    assert entry.docstring.startswith("Return the (integer) area")
    assert entry.path == str(demo_package / "shapes.py")
    assert entry.line is not None and entry.line > 1


@pytest.mark.unit
def test_reexported_names_collapse_to_the_defining_module(demo_package: Path) -> None:
    (entry,) = PythonDocSource().lookup("loomdemo.Circle")

    assert entry.name == "loomdemo.shapes.Circle"
    assert entry.kind is BindingKind.CLASS


@pytest.mark.unit
def test_short_names_are_searched_in_configured_modules(demo_package: Path) -> None:
    source = PythonDocSource(("loomdemo.shapes", "loomdemo.other"))

    assert [entry.name for entry in source.lookup("perimeter")] == ["loomdemo.shapes.perimeter"]
    assert [entry.name for entry in source.lookup("describe_shape")] == [
        "loomdemo.other.describe_shape",
        "loomdemo.shapes.describe_shape",
    ]
    assert source.lookup("does_not_exist") == []


@pytest.mark.unit
def test_list_bindings_uses_kind_then_line_order(demo_package: Path) -> None:
    bindings = PythonDocSource().list_bindings("loomdemo.shapes", BindingPolicy())

    assert [binding.name for binding in bindings] == [
        "loomdemo.shapes",
        "loomdemo.shapes.Circle",
        "loomdemo.shapes.area",
        "loomdemo.shapes.perimeter",
        "loomdemo.shapes.describe_shape",
    ]
    again = PythonDocSource().list_bindings("loomdemo.shapes", BindingPolicy())
    assert again == bindings


@pytest.mark.unit
def test_list_bindings_policy_filters(demo_package: Path) -> None:
    source = PythonDocSource()

    functions_first = source.list_bindings(
        "loomdemo.shapes",
        BindingPolicy(order=(BindingKind.FUNCTION,), public=False, private=True),
    )
    exports = source.list_bindings("loomdemo.shapes", BindingPolicy(exports_only=True))
    filtered = source.list_bindings("loomdemo.shapes", BindingPolicy(name_filter="^(area|perimeter)$"))

    assert [binding.name for binding in functions_first] == ["loomdemo.shapes._hidden"]
    assert [binding.name for binding in exports] == ["loomdemo.shapes", "loomdemo.shapes.Circle", "loomdemo.shapes.area"]
    assert [binding.name for binding in filtered] == [
        "loomdemo.shapes",
        "loomdemo.shapes.area",
        "loomdemo.shapes.perimeter",
    ]


@pytest.mark.unit
def test_package_bindings_include_exported_reexports(demo_package: Path) -> None:
    bindings = PythonDocSource().list_bindings("loomdemo", BindingPolicy())

    assert [binding.name for binding in bindings][0] == "loomdemo"
    assert {"loomdemo.Circle", "loomdemo.area"} <= {binding.name for binding in bindings}


@pytest.mark.unit
def test_missing_module_is_a_doc_source_error(demo_package: Path) -> None:
    with pytest.raises(DocSourceError, match="no module named"):
        PythonDocSource().list_bindings("loomdemo.absent", BindingPolicy())


@pytest.mark.unit
def test_broken_module_import_is_reported(demo_package: Path) -> None:
    (demo_package / "broken.py").write_text("import loomdemo_dependency_that_is_missing\n", encoding="utf-8")

    importlib.invalidate_caches()

    with pytest.raises(DocSourceError, match=r"importing 'loomdemo\.broken"):
        PythonDocSource().lookup("loomdemo.broken.anything")
