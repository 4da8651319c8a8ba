"""
docloom: doctest-only and fix-mode runs

File: tests/integration/test_doctest_fix_mode.py

Purpose
- Validate that fix mode rewrites page and docstring expectations in place,
  that a second run changes nothing, and that filters hide nondeterminism.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

import pytest

from docloom.pipeline import MemorySourceStore, build, run_doctests

_PAGE = (
    "# Numbers\n\n"
    "```pycon\n>>> 1 + 1\n3\n>>> print('a\\n\\nb')\nab\n```\n\n"
    "```doctest\nprint('hi')\n# output\n\nbye\n```\n"
)

_FIXED_PAGE = (
    "# Numbers\n\n"
    "```pycon\n>>> 1 + 1\n2\n>>> print('a\\n\\nb')\na\n<BLANKLINE>\nb\n```\n\n"
    "```doctest\nprint('hi')\n# output\n\nhi\n```\n"
)


@pytest.mark.integration
def test_fix_mode_rewrites_pages_and_is_idempotent(build_overrides: dict[str, object]) -> None:
    store = MemorySourceStore({"numbers.md": _PAGE})

    assert not run_doctests(store, config=build_overrides)
    assert run_doctests(store, fix=True, config=build_overrides)
    assert store.pages["numbers.md"] == _FIXED_PAGE

    again = build(store, config={**build_overrides, "doctest.mode": "fix"})
    assert again.succeeded
    assert again.modifications == 0
    assert store.pages["numbers.md"] == _FIXED_PAGE
    assert run_doctests(store, config=build_overrides)


@pytest.mark.integration
def test_fix_mode_rewrites_a_page_directory(build_overrides: dict[str, object], tmp_path: Path) -> None:
    pages = tmp_path / "pages"
    pages.mkdir()
    (pages / "numbers.md").write_text(_PAGE, encoding="utf-8")

    outcome = build(pages, config={**build_overrides, "doctest.mode": "fix"})

    assert outcome.succeeded
    assert outcome.modifications == 2
    assert (pages / "numbers.md").read_text(encoding="utf-8") == _FIXED_PAGE


@pytest.mark.integration
def test_module_docstrings_are_checked_and_fixed(
    demo_package: Path, build_overrides: dict[str, object], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(sys, "dont_write_bytecode", True)
    module_path = demo_package / "calc.py"
    module_path.write_text(
        'def double(x):\n    """Double a number.\n\n    >>> double(2)\n    5\n    """\n    return 2 * x\n',
        encoding="utf-8",
    )
    importlib.invalidate_caches()

    assert not run_doctests({}, ["loomdemo.calc"], config=build_overrides)
    assert run_doctests({}, ["loomdemo.calc"], fix=True, config=build_overrides)
    assert "    >>> double(2)\n    4\n" in module_path.read_text(encoding="utf-8")

    sys.modules.pop("loomdemo.calc", None)
    importlib.invalidate_caches()
    assert run_doctests({}, ["loomdemo.calc"], config=build_overrides)


@pytest.mark.integration
def test_filters_hide_nondeterministic_output(build_overrides: dict[str, object]) -> None:
    pages = {"objects.md": "```pycon\n>>> object()\n<object object at 0xdeadbeef>\n```\n"}

    assert not run_doctests(pages, config=build_overrides)
    assert run_doctests(pages, doctest_filters=[r"0x[0-9a-fA-F]+"], config=build_overrides)
    assert run_doctests(pages, config={**build_overrides, "doctest.filters": [{"pattern": r"at 0x\w+", "replacement": "at ADDR"}]})


@pytest.mark.integration
def test_doctest_only_mode_skips_expansion(build_overrides: dict[str, object]) -> None:
    pages = {
        "index.md": (
            "```@meta\ndoctest_setup: |\n  import math\n```\n\n"
            "```@example\nraise SystemExit('examples are not run')\n```\n\n"
            "```pycon\n>>> math.floor(2.5)\n2\n```\n"
        )
    }

    outcome = build(pages, config={**build_overrides, "doctest.mode": "only"})

    assert outcome.succeeded, [item.render() for item in outcome.diagnostics]
    assert outcome.stage_result("expand") is None


@pytest.mark.integration
def test_docstring_only_runs_leave_the_working_directory_untouched(
    demo_package: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    empty = tmp_path / "empty"
    empty.mkdir()
    monkeypatch.chdir(empty)

    assert run_doctests(None, ["loomdemo.shapes"], config={"observability.summary": False})
    assert list(empty.iterdir()) == []


@pytest.mark.integration
def test_docstring_only_runs_still_report_failures(
    demo_package: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(sys, "dont_write_bytecode", True)
    (demo_package / "broken.py").write_text(
        'def one():\n    """\n    >>> one()\n    2\n    """\n    return 1\n',
        encoding="utf-8",
    )
    importlib.invalidate_caches()
    monkeypatch.chdir(tmp_path)

    assert not run_doctests(None, ["loomdemo.broken"], config={"observability.summary": False})
    assert not (tmp_path / "build").exists()
