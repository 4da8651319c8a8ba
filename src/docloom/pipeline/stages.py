"""
docloom: build stages and the per-build stage registry

File: src/docloom/pipeline/stages.py

Purpose
- Define the ``BuildStage`` protocol, the ordered ``StageRegistry`` and the
  built-in stages: setup, discover, expand, doctest, check_docs,
  resolve_references, populate and render.

Normative behavior
- A registry is an explicit object created per build; ``default_stage_registry()``
  returns a new one on every call.
- ``StageRegistry.snapshot()`` validates the stage graph (duplicate id, unknown
  predecessor, cycle are ``ValueError``) and returns the execution order:
  topological over ``depends_on`` with ties broken by registration order.
- Stage ``run`` may return a short summary string or an awaitable of one.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

from docloom.checks.coverage import check_missing_docs
from docloom.crossrefs.resolver import CrossReferenceResolver
from docloom.doctests.engine import DoctestEngine, DoctestReport, docstring_fragments
from docloom.doctests.fragments import fragment_from_node, is_doctest_node
from docloom.domain.document import Page
from docloom.domain.models import DiagnosticCategory, DoctestMode
from docloom.domain.navigation import build_navigation
from docloom.errors import DirectiveParseError, SourceDiscoveryError
from docloom.expansion.directives import MetaDirective, is_directive, parse_directive
from docloom.expansion.docsource import DocSourceError, DocumentationSource, PythonDocSource
from docloom.expansion.engine import ExpansionEngine
from docloom.expansion.evaluator import CodeEvaluator, PythonEvaluator
from docloom.markup.ast import NodeKind
from docloom.markup.reader import MarkdownReader, MarkupParser
from docloom.observability.logging import correlation_scope
from docloom.utils.concurrency import map_in_threads

if TYPE_CHECKING:
    from docloom.domain.document import Document

logger = logging.getLogger(__name__)

SETUP_STAGE_ID: Final[str] = "setup"
DISCOVER_STAGE_ID: Final[str] = "discover"
EXPAND_STAGE_ID: Final[str] = "expand"
DOCTEST_STAGE_ID: Final[str] = "doctest"
CHECK_DOCS_STAGE_ID: Final[str] = "check_docs"
RESOLVE_STAGE_ID: Final[str] = "resolve_references"
POPULATE_STAGE_ID: Final[str] = "populate"
RENDER_STAGE_ID: Final[str] = "render"

StageOutput = str | None


class StageStatus(StrEnum):
    PASS = "pass"
    WARN = "warn"
    ERROR = "error"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class StageResult:
    """Outcome of one stage: ``warn`` when it appended diagnostics, ``error`` when it raised."""

    stage_id: str
    status: StageStatus
    duration_ms: int = 0
    summary: str | None = None
    diagnostics: int = 0
    error: str | None = None

    def __post_init__(self) -> None:
        if not self.stage_id:
            raise ValueError("StageResult.stage_id must be non-empty")
        object.__setattr__(self, "status", StageStatus(self.status))
        if self.duration_ms < 0:
            raise ValueError("StageResult.duration_ms must be >= 0")


@runtime_checkable
class BuildStage(Protocol):
    stage_id: str
    depends_on: tuple[str, ...]
    fatal: bool
    doctest_relevant: bool

    def run(self, document: Document) -> StageOutput | Awaitable[StageOutput]: ...


class Renderer(Protocol):
    def render(self, document: Document) -> None: ...


@dataclass(slots=True)
class BuildServices:
    """Collaborators shared by the built-in stages, stored as a document plugin."""

    parser: MarkupParser = field(default_factory=MarkdownReader)
    docsource: DocumentationSource = field(default_factory=PythonDocSource)
    evaluator: CodeEvaluator = field(default_factory=PythonEvaluator)
    renderer: Renderer | None = None


@dataclass(frozen=True, slots=True)
class FunctionStage:
    """Adapter turning a callable into a ``BuildStage``."""

    stage_id: str
    func: Callable[[Document], StageOutput | Awaitable[StageOutput]]
    depends_on: tuple[str, ...] = ()
    fatal: bool = False
    doctest_relevant: bool = False

    def run(self, document: Document) -> StageOutput | Awaitable[StageOutput]:
        return self.func(document)


class StageRegistry:
    """Ordered stage registry owned by a single build."""

    def __init__(self) -> None:
        self._stages: list[BuildStage] = []
        self._extra_dependencies: dict[str, tuple[str, ...]] = {}

    def register(self, stage: BuildStage, *, after: tuple[str, ...] = ()) -> BuildStage:
        stage_id = stage.stage_id.strip() if isinstance(stage.stage_id, str) else ""
        if not stage_id:
            raise ValueError("stage_id must be a non-empty string")
        if stage_id in self.stage_ids():
            raise ValueError(f"duplicate stage id: {stage_id!r}")
        self._stages.append(stage)
        self._extra_dependencies[stage_id] = tuple(after)
        return stage

    def stage_ids(self) -> tuple[str, ...]:
        return tuple(stage.stage_id for stage in self._stages)

    def dependencies(self, stage_id: str) -> tuple[str, ...]:
        for stage in self._stages:
            if stage.stage_id == stage_id:
                merged = (*stage.depends_on, *self._extra_dependencies.get(stage_id, ()))
                return tuple(dict.fromkeys(merged))
        raise KeyError(stage_id)

    def snapshot(self) -> tuple[BuildStage, ...]:
        """Validate the graph and return stages in execution order."""

        known = {stage.stage_id: index for index, stage in enumerate(self._stages)}
        if len(known) != len(self._stages):
            raise ValueError("duplicate stage ids in registry")
        pending: dict[str, set[str]] = {}
        for stage in self._stages:
            dependencies = self.dependencies(stage.stage_id)
            for dependency in dependencies:
                if dependency not in known:
                    raise ValueError(f"stage {stage.stage_id!r} depends on unknown stage {dependency!r}")
                if dependency == stage.stage_id:
                    raise ValueError(f"stage {stage.stage_id!r} cannot depend on itself")
            pending[stage.stage_id] = set(dependencies)

        ordered: list[BuildStage] = []
        completed: set[str] = set()
        while pending:
            ready = [stage_id for stage_id, deps in pending.items() if deps <= completed]
            if not ready:
                raise ValueError(f"stage dependency cycle among: {sorted(pending)}")
            chosen = min(ready, key=lambda stage_id: known[stage_id])
            ordered.append(self._stages[known[chosen]])
            completed.add(chosen)
            del pending[chosen]
        return tuple(ordered)

    def __len__(self) -> int:
        return len(self._stages)


def services(document: Document) -> BuildServices:
    return document.get_plugin(BuildServices)


def _is_raw_doctest_mode(document: Document) -> bool:
    return document.config.doctest_mode in (DoctestMode.ONLY, DoctestMode.FIX)


class SetupStage:
    stage_id = SETUP_STAGE_ID
    depends_on: tuple[str, ...] = ()
    fatal = True
    doctest_relevant = True

    def run(self, document: Document) -> StageOutput:
        if document.store is None:
            raise SourceDiscoveryError("no page sources were provided")
        config = document.config
        config.build_path.mkdir(parents=True, exist_ok=True)
        return f"mode={config.doctest_mode.value} workers={config.max_workers}"


class DiscoverStage:
    stage_id = DISCOVER_STAGE_ID
    depends_on: tuple[str, ...] = (SETUP_STAGE_ID,)
    fatal = True
    doctest_relevant = True

    def run(self, document: Document) -> StageOutput:
        assert document.store is not None
        parser = services(document).parser
        available = document.store.paths()
        known = set(available)

        ordered: list[str] = []
        for page in document.config.expand_first:
            if page not in known:
                document.diagnose(DiagnosticCategory.PARSE_ERROR, f"expand_first lists unknown page {page!r}")
            elif page not in ordered:
                ordered.append(page)
        ordered.extend(path for path in sorted(available) if path not in ordered)

        for path in ordered:
            text = document.store.read(path)
            document.add_page(Page(path=path, source=text, ast=parser.parse(text)))
        return f"{len(ordered)} pages"


class ExpandStage:
    stage_id = EXPAND_STAGE_ID
    depends_on: tuple[str, ...] = (DISCOVER_STAGE_ID,)
    fatal = False
    doctest_relevant = False

    async def run(self, document: Document) -> StageOutput:
        tools = services(document)
        engine = ExpansionEngine(
            document,
            parser=tools.parser,
            docsource=tools.docsource,
            evaluator=tools.evaluator,
        )

        def expand(page: Page) -> None:
            with correlation_scope(page=page.path):
                engine.expand_page(page)

        await map_in_threads(expand, document.pages, max_workers=document.config.max_workers)
        return f"{len(document.registry)} anchors"


class DoctestStage:
    stage_id = DOCTEST_STAGE_ID
    depends_on: tuple[str, ...] = (DISCOVER_STAGE_ID,)
    fatal = False
    doctest_relevant = True

    async def run(self, document: Document) -> StageOutput:
        config = document.config
        if config.doctest_mode is DoctestMode.OFF:
            return "skipped (doctest mode is off)"

        tools = services(document)
        raw = _is_raw_doctest_mode(document)
        if raw:
            for page in document.pages:
                scan_raw_page(document, page)
        engine = DoctestEngine(document, tools.evaluator, fix=config.doctest_mode is DoctestMode.FIX)

        def check(page: Page) -> DoctestReport:
            with correlation_scope(page=page.path):
                return engine.run_page(page)

        report = DoctestReport()
        for page_report in await map_in_threads(check, document.pages, max_workers=config.max_workers):
            report = report.merge(page_report)

        exclude = frozenset() if raw else document.documented_names()
        for module in config.modules:
            try:
                fragments = docstring_fragments(tools.docsource, tools.parser, (module,), exclude=exclude)
            except DocSourceError as exc:
                document.diagnose(DiagnosticCategory.DOCTEST, f"cannot collect docstring doctests of {module!r}: {exc}")
                continue
            if fragments:
                report = report.merge(engine.run_fragments(fragments, page=module))
        return f"{report.checked} checked, {report.failed} failed, {report.fixed} fixed"


def scan_raw_page(document: Document, page: Page) -> None:
    """Collect doctest fragments and ``@meta`` settings from an unexpanded page."""

    for node in page.ast.children:
        if node.kind is not NodeKind.CODE:
            continue
        info = str(node.attrs.get("info", ""))
        if node.attrs.get("fenced") and is_directive(info):
            if info.strip().split(" ", 1)[0].lower() != "@meta":
                continue
            try:
                directive = parse_directive(info, node.text)
            except DirectiveParseError as exc:
                document.diagnose(exc.category, str(exc), page=page.path, line=node.line)
                continue
            if isinstance(directive, MetaDirective):
                page.update_meta(
                    current_module=directive.current_module,
                    doctest_setup=directive.doctest_setup,
                    doctest_filters=directive.doctest_filters,
                )
        elif is_doctest_node(node):
            page.add_fragment(fragment_from_node(node, path=page.path))


class CheckDocsStage:
    stage_id = CHECK_DOCS_STAGE_ID
    depends_on: tuple[str, ...] = (EXPAND_STAGE_ID,)
    fatal = False
    doctest_relevant = False

    def run(self, document: Document) -> StageOutput:
        if not document.config.modules:
            return "no modules configured"
        missing = check_missing_docs(document, services(document).docsource)
        return f"{len(missing)} undocumented"


class ResolveReferencesStage:
    stage_id = RESOLVE_STAGE_ID
    depends_on: tuple[str, ...] = (EXPAND_STAGE_ID,)
    fatal = False
    doctest_relevant = False

    def run(self, document: Document) -> StageOutput:
        report = CrossReferenceResolver(document).run()
        return f"{report.resolved} resolved, {report.unresolved} unresolved, {report.ambiguous} ambiguous"


class PopulateStage:
    stage_id = POPULATE_STAGE_ID
    depends_on: tuple[str, ...] = (RESOLVE_STAGE_ID,)
    fatal = False
    doctest_relevant = False

    def run(self, document: Document) -> StageOutput:
        titles = {page.path: page.title for page in document.pages}
        navigation, missing = build_navigation(document.config.pages, document.page_order(), titles)
        document.navigation = navigation
        for page in missing:
            document.diagnose(DiagnosticCategory.PARSE_ERROR, f"navigation lists unknown page {page!r}")
        document.freeze()
        return f"{len(navigation.sequence)} pages in navigation"


class RenderStage:
    stage_id = RENDER_STAGE_ID
    depends_on: tuple[str, ...] = (POPULATE_STAGE_ID,)
    fatal = False
    doctest_relevant = False

    def run(self, document: Document) -> StageOutput:
        renderer = services(document).renderer
        if renderer is None:
            return "no renderer"
        renderer.render(document)
        return type(renderer).__name__


def default_stage_registry() -> StageRegistry:
    """Return a new registry holding the built-in stages in their canonical order."""

    registry = StageRegistry()
    for stage in (
        SetupStage(),
        DiscoverStage(),
        ExpandStage(),
        DoctestStage(),
        CheckDocsStage(),
        ResolveReferencesStage(),
        PopulateStage(),
        RenderStage(),
    ):
        registry.register(stage)
    return registry


__all__ = [
    "CHECK_DOCS_STAGE_ID",
    "DISCOVER_STAGE_ID",
    "DOCTEST_STAGE_ID",
    "EXPAND_STAGE_ID",
    "POPULATE_STAGE_ID",
    "RENDER_STAGE_ID",
    "RESOLVE_STAGE_ID",
    "SETUP_STAGE_ID",
    "BuildServices",
    "BuildStage",
    "FunctionStage",
    "Renderer",
    "StageRegistry",
    "StageResult",
    "StageStatus",
    "default_stage_registry",
    "scan_raw_page",
    "services",
]
