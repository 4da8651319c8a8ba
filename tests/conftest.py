"""Shared fixtures: a throwaway importable package and build config overrides."""

from __future__ import annotations

import importlib
import sys
import textwrap
from collections.abc import Iterator
from pathlib import Path

import pytest

DEMO_PACKAGE = "loomdemo"

_DEMO_FILES = {
    "__init__.py": '''
        """Demo package documented by the docloom test-suite."""

        from loomdemo.shapes import Circle, area

        __all__ = ["Circle", "area"]
    ''',
    "shapes.py": '''
        """Shapes and their areas."""

        __all__ = ["Circle", "area"]


        class Circle:
            """A circle with a radius.

            ```doctest
            Circle(2).radius
            # output

            2
            ```
            """

            def __init__(self, radius):
                self.radius = radius


        def area(radius):
            """Return the (integer) area of a circle.

            >>> area(1)
            3
            """
            return 3 * radius * radius


        def perimeter(radius):
            """Return the perimeter of a circle."""
            return 6 * radius


        def describe_shape(name):
            """Describe a shape by name."""
            return f"shape {name}"


        def _hidden():
            """Private helper."""


        def undocumented():
            return None
    ''',
    "other.py": '''
        """A second module that reuses a name from ``shapes``."""


        def describe_shape(name):
            """Describe a shape, differently."""
            return name.upper()
    ''',
}


def write_package(root: Path, name: str, files: dict[str, str]) -> Path:
    package_dir = root / name
    package_dir.mkdir(parents=True, exist_ok=True)
    for filename, source in files.items():
        (package_dir / filename).write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
    return package_dir


def _forget_modules(prefix: str) -> None:
    for module_name in list(sys.modules):
        if module_name == prefix or module_name.startswith(f"{prefix}."):
            del sys.modules[module_name]


@pytest.fixture
def demo_package(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """Write ``loomdemo`` below ``tmp_path`` and make it importable for one test."""

    site = tmp_path / "site"
    package_dir = write_package(site, DEMO_PACKAGE, _DEMO_FILES)
    _forget_modules(DEMO_PACKAGE)
    monkeypatch.syspath_prepend(str(site))
    importlib.invalidate_caches()
    yield package_dir
    _forget_modules(DEMO_PACKAGE)


@pytest.fixture
def build_overrides(tmp_path: Path) -> dict[str, object]:
    """Config overrides rooting the build in ``tmp_path`` with the summary table off."""

    return {"build.root": str(tmp_path / "project"), "observability.summary": False}
