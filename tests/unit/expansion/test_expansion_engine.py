"""
docloom: unit tests for the expansion engine

File: tests/unit/expansion/test_expansion_engine.py

Purpose
- Validate directive expansion, anchor registration, request and fragment
  collection, and that failing directives degrade into one diagnostic each.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from docloom.config import BuildConfig
from docloom.domain.document import Document, Page
from docloom.domain.models import (
    AnchorKind,
    DiagnosticCategory,
    ExpectationKind,
    FragmentOrigin,
    ReferenceKind,
)
from docloom.expansion.docsource import PythonDocSource
from docloom.expansion.engine import ExpansionEngine
from docloom.expansion.evaluator import PythonEvaluator
from docloom.markup.ast import NodeKind
from docloom.markup.reader import MarkdownReader
from docloom.pipeline.sources import MemorySourceStore


def _expand(pages: dict[str, str], overrides: dict[str, object]) -> Document:
    config = BuildConfig.from_overrides(overrides)
    document = Document(config, store=MemorySourceStore(pages))
    parser = MarkdownReader()
    for path in sorted(pages):
        document.add_page(Page(path=path, source=pages[path], ast=parser.parse(pages[path])))
    engine = ExpansionEngine(
        document,
        parser=parser,
        docsource=PythonDocSource(config.modules),
        evaluator=PythonEvaluator(),
    )
    for page in document.pages:
        engine.expand_page(page)
    return document


def _categories(document: Document) -> list[DiagnosticCategory]:
    return [item.category for item in document.diagnostics]


@pytest.mark.unit
def test_repeated_headings_are_disambiguated(build_overrides: dict[str, object]) -> None:
    document = _expand({"index.md": "# Usage\n\ntext\n\n## Usage\n"}, build_overrides)

    page = document.pages[0]
    assert [anchor.label for anchor in page.anchors] == ["Usage", "Usage-1"]
    assert [node.attrs["anchor"] for node in page.ast.find_all(NodeKind.HEADING)] == ["Usage", "Usage-1"]
    assert list(document.diagnostics) == []


@pytest.mark.unit
def test_failing_example_keeps_expanding_the_page(build_overrides: dict[str, object]) -> None:
    source = "```@example\n1 / 0\n```\n\n# After the failure\n"

    document = _expand({"index.md": source}, build_overrides)

    page = document.pages[0]
    (diagnostic,) = document.diagnostics
    assert diagnostic.category is DiagnosticCategory.EXAMPLE_BLOCK
    assert diagnostic.line == 1
    assert "ZeroDivisionError" in diagnostic.message
    assert [anchor.label for anchor in page.anchors] == ["After-the-failure"]
    assert page.ast.children[0].kind is NodeKind.FAILURE


@pytest.mark.unit
def test_labeled_examples_share_a_context(build_overrides: dict[str, object]) -> None:
    source = "```@example calc\nx = 2\n```\n\n```@example calc\nprint('six')\nx * 3\n```\n"

    document = _expand({"index.md": source}, build_overrides)

    results = document.pages[0].ast.find_all(NodeKind.EVAL_RESULT)
    assert [node.attrs["output"] for node in results] == ["", "six\n6"]


@pytest.mark.unit
def test_unlabeled_examples_share_the_page_context_only(build_overrides: dict[str, object]) -> None:
    pages = {
        "a.md": "```@example\nshared = 1\n```\n",
        "b.md": "```@example\nshared\n```\n",
    }

    document = _expand(pages, build_overrides)

    assert _categories(document) == [DiagnosticCategory.EXAMPLE_BLOCK]
    assert document.diagnostics.snapshot()[0].page == "b.md"


@pytest.mark.unit
def test_repl_renders_a_transcript(build_overrides: dict[str, object]) -> None:
    document = _expand({"index.md": "```@repl\nx = 1\nx + 1\n```\n"}, build_overrides)

    (node,) = document.pages[0].ast.find_all(NodeKind.EVAL_RESULT)
    assert node.text == ">>> x = 1\n>>> x + 1\n2"
    assert node.attrs["language"] == "pycon"


@pytest.mark.unit
def test_eval_splices_markdown_and_registers_its_headings(build_overrides: dict[str, object]) -> None:
    document = _expand({"index.md": "```@eval\n'## Generated ' + str(40 + 2)\n```\n"}, build_overrides)

    page = document.pages[0]
    assert [anchor.label for anchor in page.anchors] == ["Generated-42"]
    assert page.ast.children[0].kind is NodeKind.HEADING


@pytest.mark.unit
def test_setup_failure_is_a_setup_block_diagnostic(build_overrides: dict[str, object]) -> None:
    document = _expand({"index.md": "```@setup ctx\nimport does_not_exist_anywhere\n```\n"}, build_overrides)

    assert _categories(document) == [DiagnosticCategory.SETUP_BLOCK]


@pytest.mark.unit
def test_parse_errors_and_unterminated_blocks(build_overrides: dict[str, object]) -> None:
    document = _expand(
        {
            "a.md": "```@render\nx\n```\n",
            "b.md": "# Title\n\n```@example\nnever closed\n",
        },
        build_overrides,
    )

    assert _categories(document) == [DiagnosticCategory.PARSE_ERROR, DiagnosticCategory.PARSE_ERROR]
    assert "unterminated" in document.diagnostics.snapshot()[1].message


@pytest.mark.unit
def test_footnote_duplicates_and_missing_definitions(build_overrides: dict[str, object]) -> None:
    source = "Text[^a] and[^b].\n\n[^a]: first\n\n[^a]: second\n"

    document = _expand({"index.md": source}, build_overrides)

    diagnostics = document.diagnostics.snapshot()
    assert [item.category for item in diagnostics] == [DiagnosticCategory.FOOTNOTE, DiagnosticCategory.FOOTNOTE]
    assert "duplicate footnote definition [^a]" in diagnostics[0].message
    assert "[^b] has no definition" in diagnostics[1].message
    assert [anchor.kind for anchor in document.pages[0].anchors] == [AnchorKind.FOOTNOTE]


@pytest.mark.unit
def test_references_are_recorded_not_resolved(build_overrides: dict[str, object]) -> None:
    source = "See [Getting Started](@ref), [`pkg.func`](@ref) and [here](@ref guide.md#Intro).\n"

    document = _expand({"index.md": source}, build_overrides)

    requests = document.pages[0].requests
    assert [(request.target, request.kind) for request in requests] == [
        ("Getting-Started", ReferenceKind.HEADING),
        ("pkg.func", ReferenceKind.DOCS),
        ("guide.md#Intro", ReferenceKind.HEADING),
    ]
    assert not any(request.resolved for request in requests)


@pytest.mark.unit
def test_page_doctest_blocks_become_fragments(build_overrides: dict[str, object]) -> None:
    source = "# T\n\n```doctest shared\n1 + 1\n# output\n\n2\n```\n\n```pycon\n>>> 2 * 2\n4\n```\n"

    document = _expand({"index.md": source}, build_overrides)

    script, transcript = document.pages[0].fragments
    assert script.kind is ExpectationKind.EXACT
    assert script.label == "shared"
    assert script.expected == "2"
    assert script.location.line == 4
    assert transcript.kind is ExpectationKind.TRANSCRIPT
    assert transcript.label is None


@pytest.mark.unit
def test_docs_block_splices_docstring(demo_package: Path, build_overrides: dict[str, object]) -> None:
    document = _expand({"api.md": "# API\n\n```@docs\nloomdemo.shapes.area\n```\n"}, build_overrides)

    page = document.pages[0]
    (entry,) = page.ast.find_all(NodeKind.DOCS_ENTRY)
    assert entry.attrs["name"] == "loomdemo.shapes.area"
    assert entry.attrs["signature"] == "area(radius)"
    assert document.registry.docs_anchor("loomdemo.shapes.area") is not None
    assert document.documented_names() == frozenset({"loomdemo.shapes.area"})
    (fragment,) = page.fragments
    assert fragment.origin is FragmentOrigin.DOCSTRING
    assert fragment.group == "loomdemo.shapes.area"
    assert fragment.location.path == str(demo_package / "shapes.py")
    assert list(document.diagnostics) == []


@pytest.mark.unit
def test_docs_block_failures(demo_package: Path, build_overrides: dict[str, object]) -> None:
    overrides = {**build_overrides, "build.modules": ["loomdemo.shapes", "loomdemo.other"]}
    pages = {
        "a.md": "```@docs\nloomdemo.shapes.area\nnot_a_thing\ndescribe_shape\n```\n",
        "b.md": "```@docs\nloomdemo.shapes.area\n```\n",
    }

    document = _expand(pages, overrides)

    messages = [item.message for item in document.diagnostics]
    assert _categories(document) == [DiagnosticCategory.DOCS_BLOCK] * 3
    assert "no documentation found for 'not_a_thing'" in messages[0]
    assert "ambiguous" in messages[1] and "loomdemo.other.describe_shape" in messages[1]
    assert "already documented on a.md" in messages[2]


@pytest.mark.unit
def test_meta_current_module_scopes_docs_lookup(demo_package: Path, build_overrides: dict[str, object]) -> None:
    source = "```@meta\ncurrent_module: loomdemo.shapes\n```\n\n```@docs\nperimeter\n```\n"

    document = _expand({"index.md": source}, build_overrides)

    assert document.pages[0].meta.current_module == "loomdemo.shapes"
    assert document.documented_names() == frozenset({"loomdemo.shapes.perimeter"})


@pytest.mark.unit
def test_autodocs_expands_in_stable_order(demo_package: Path, build_overrides: dict[str, object]) -> None:
    source = "```@autodocs\nmodules: [loomdemo.shapes]\n```\n"

    first = _expand({"index.md": source}, build_overrides)
    second = _expand({"index.md": source}, build_overrides)

    def names(document: Document) -> list[object]:
        return [node.attrs["name"] for node in document.pages[0].ast.find_all(NodeKind.DOCS_ENTRY)]

    assert names(first) == [
        "loomdemo.shapes",
        "loomdemo.shapes.Circle",
        "loomdemo.shapes.area",
        "loomdemo.shapes.perimeter",
        "loomdemo.shapes.describe_shape",
    ]
    assert names(first) == names(second)


@pytest.mark.unit
def test_autodocs_unknown_module(demo_package: Path, build_overrides: dict[str, object]) -> None:
    document = _expand({"index.md": "```@autodocs\nmodules: [loomdemo.nothing]\n```\n"}, build_overrides)

    assert _categories(document) == [DiagnosticCategory.AUTODOCS_BLOCK]


@pytest.mark.unit
def test_contents_directive_leaves_a_placeholder(build_overrides: dict[str, object]) -> None:
    document = _expand({"index.md": "```@contents\ndepth: 1\n```\n"}, build_overrides)

    (node,) = document.pages[0].ast.find_all(NodeKind.CONTENTS)
    assert node.attrs == {"pages": (), "depth": 1}
    assert node.children == []
