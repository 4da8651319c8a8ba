"""
docloom: build orchestrator

File: src/docloom/pipeline/orchestrator.py

Purpose
- Run the stages of one build in order against a fresh ``Document`` and turn the
  collected diagnostics into a ``BuildOutcome``.

Normative behavior
- Stages run strictly sequentially in the order returned by ``StageRegistry.snapshot()``.
- An exception in a fatal stage stops the build; remaining stages are recorded
  as skipped. Exceptions in other stages are logged and recorded as ``error``.
- Doctest-only and fix modes run only doctest-relevant stages; ``doctest`` is the
  only fatal category there, whatever ``strict`` says.
- After the last stage the strict policy is evaluated once; every violated
  category is named in a single ``StrictModeError``.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import inspect
import logging
import tempfile
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from docloom.config.settings import BuildConfig
from docloom.domain.diagnostics import StrictPolicy
from docloom.domain.document import Document
from docloom.domain.models import Diagnostic, DiagnosticCategory, DoctestMode, OutputFilter
from docloom.errors import BuildError, StageFailedError, StrictModeError
from docloom.expansion.docsource import PythonDocSource
from docloom.observability.logging import LoggingConfig, correlation_scope, setup_build_logging, shutdown_logging
from docloom.observability.summary import print_summary
from docloom.pipeline.sources import MemorySourceStore, SourceStore, as_source_store
from docloom.pipeline.stages import (
    BuildServices,
    BuildStage,
    Renderer,
    StageRegistry,
    StageResult,
    StageStatus,
    default_stage_registry,
)

if TYPE_CHECKING:
    from docloom.expansion.docsource import DocumentationSource
    from docloom.expansion.evaluator import CodeEvaluator
    from docloom.markup.reader import MarkupParser

logger = logging.getLogger(__name__)

PageSources = SourceStore | Mapping[str, str] | Path | str | None


@dataclass(frozen=True, slots=True)
class BuildOutcome:
    """Result of one build. ``error`` is set when the build failed."""

    document: Document
    stage_results: tuple[StageResult, ...]
    diagnostics: tuple[Diagnostic, ...]
    violated: tuple[DiagnosticCategory, ...] = ()
    error: BuildError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def modifications(self) -> int:
        return self.document.modifications

    def stage_result(self, stage_id: str) -> StageResult | None:
        for result in self.stage_results:
            if result.stage_id == stage_id:
                return result
        return None

    def raise_for_status(self) -> None:
        if self.error is not None:
            raise self.error


class BuildOrchestrator:
    def __init__(
        self,
        config: BuildConfig,
        *,
        sources: PageSources = None,
        stage_registry: StageRegistry | None = None,
        parser: MarkupParser | None = None,
        docsource: DocumentationSource | None = None,
        evaluator: CodeEvaluator | None = None,
        renderer: Renderer | None = None,
    ) -> None:
        self.config = config
        self.store = as_source_store(sources, default_root=config.source_dir)
        self.stage_registry = stage_registry if stage_registry is not None else default_stage_registry()
        defaults = BuildServices()
        self.services = BuildServices(
            parser=parser or defaults.parser,
            docsource=docsource or _default_docsource(config),
            evaluator=evaluator or defaults.evaluator,
            renderer=renderer,
        )

    @property
    def doctest_only(self) -> bool:
        return self.config.doctest_mode in (DoctestMode.ONLY, DoctestMode.FIX)

    def strict_policy(self) -> StrictPolicy:
        if self.doctest_only:
            return StrictPolicy(frozenset({DiagnosticCategory.DOCTEST}))
        return self.config.strict

    def selected_stages(self) -> tuple[BuildStage, ...]:
        stages = self.stage_registry.snapshot()
        if self.doctest_only:
            return tuple(stage for stage in stages if stage.doctest_relevant)
        return stages

    async def run(self) -> BuildOutcome:
        stages = self.selected_stages()
        document = Document(self.config, store=self.store, plugins=(self.services,))
        handle = None
        if self.config.structured_logs:
            handle = setup_build_logging(
                LoggingConfig(
                    build_id=document.build_id,
                    base_log_dir=self.config.log_dir,
                    level=self.config.log_level,
                )
            )

        results: list[StageResult] = []
        error: BuildError | None = None
        diagnostics: tuple[Diagnostic, ...] = ()
        policy = self.strict_policy()
        violated: tuple[DiagnosticCategory, ...] = ()
        try:
            with correlation_scope(build_id=document.build_id):
                logger.info("build %s started with %d stages", document.build_id, len(stages))
                for stage in stages:
                    if error is not None:
                        results.append(StageResult(stage_id=stage.stage_id, status=StageStatus.SKIP, summary="not executed"))
                        continue
                    result, error = await self._run_stage(stage, document)
                    results.append(result)

                diagnostics = document.diagnostics.snapshot()
                violated = policy.violations(diagnostics)
                if error is None and violated:
                    counts = document.diagnostics.counts()
                    error = StrictModeError(violated, {category: counts[category] for category in violated})
                if error is None:
                    logger.info("build %s finished with %d diagnostics", document.build_id, len(diagnostics))
                else:
                    logger.error("build %s failed: %s", document.build_id, error)
        finally:
            if handle is not None:
                shutdown_logging(handle)

        if self.config.summary:
            print_summary(tuple(results), diagnostics, strict=policy.categories)
        return BuildOutcome(
            document=document,
            stage_results=tuple(results),
            diagnostics=diagnostics,
            violated=violated,
            error=error,
        )

    async def _run_stage(self, stage: BuildStage, document: Document) -> tuple[StageResult, BuildError | None]:
        started = time.perf_counter()
        before = len(document.diagnostics)
        with correlation_scope(stage_id=stage.stage_id):
            logger.debug("stage %s started", stage.stage_id)
            try:
                output = stage.run(document)
                if inspect.isawaitable(output):
                    output = await output
            except Exception as exc:
                duration_ms = _duration_ms(started)
                if stage.fatal:
                    logger.error("fatal stage %s failed: %s", stage.stage_id, exc)
                    failure: BuildError | None = StageFailedError(stage.stage_id, exc)
                    failure.__cause__ = exc
                else:
                    logger.exception("stage %s failed; continuing", stage.stage_id)
                    failure = None
                return (
                    StageResult(
                        stage_id=stage.stage_id,
                        status=StageStatus.ERROR,
                        duration_ms=duration_ms,
                        error=f"{type(exc).__name__}: {exc}",
                        diagnostics=len(document.diagnostics) - before,
                    ),
                    failure,
                )

        added = len(document.diagnostics) - before
        return (
            StageResult(
                stage_id=stage.stage_id,
                status=StageStatus.WARN if added else StageStatus.PASS,
                duration_ms=_duration_ms(started),
                summary=output if isinstance(output, str) else None,
                diagnostics=added,
            ),
            None,
        )


def build(
    sources: PageSources = None,
    stage_registry: StageRegistry | None = None,
    config: BuildConfig | Mapping[str, object] | None = None,
    *,
    parser: MarkupParser | None = None,
    docsource: DocumentationSource | None = None,
    evaluator: CodeEvaluator | None = None,
    renderer: Renderer | None = None,
) -> BuildOutcome:
    """Run one build synchronously.

    ``sources`` is a ``SourceStore``, a ``{path: text}`` mapping or a directory;
    ``None`` reads ``<root>/<source>``. ``config`` may be a ``BuildConfig`` or a
    partial mapping such as ``{"build.root": "docs", "strict": True}``. Must not be
    called from a running event loop; use ``BuildOrchestrator.run()`` there.
    """

    orchestrator = BuildOrchestrator(
        _coerce_config(config),
        sources=sources,
        stage_registry=stage_registry,
        parser=parser,
        docsource=docsource,
        evaluator=evaluator,
        renderer=renderer,
    )
    return asyncio.run(orchestrator.run())


def run_doctests(
    source: PageSources,
    modules: Iterable[str] = (),
    *,
    fix: bool = False,
    doctest_filters: Iterable[OutputFilter | str] = (),
    config: BuildConfig | Mapping[str, object] | None = None,
    docsource: DocumentationSource | None = None,
) -> bool:
    """Check (or with ``fix=True`` rewrite) doctests of pages and module docstrings only.

    ``source=None`` checks module docstrings alone. Unless ``config`` names a
    root, the run is rooted in a temporary directory that is removed afterwards.
    """

    base = _coerce_config(config)
    filters = tuple(item if isinstance(item, OutputFilter) else OutputFilter(item) for item in doctest_filters)
    with contextlib.ExitStack() as stack:
        root = base.root
        if not _names_root(config):
            root = Path(stack.enter_context(tempfile.TemporaryDirectory(prefix="docloom-doctest-")))
        effective = dataclasses.replace(
            base,
            root=root,
            doctest_mode=DoctestMode.FIX if fix else DoctestMode.ONLY,
            modules=tuple(modules) or base.modules,
            doctest_filters=(*base.doctest_filters, *filters),
        )
        pages = MemorySourceStore() if source is None else source
        return build(pages, config=effective, docsource=docsource).succeeded


def _names_root(config: BuildConfig | Mapping[str, object] | None) -> bool:
    if config is None:
        return False
    if isinstance(config, BuildConfig):
        return True
    section = config.get("build")
    return "build.root" in config or (isinstance(section, Mapping) and "root" in section)


def _coerce_config(config: BuildConfig | Mapping[str, object] | None) -> BuildConfig:
    if config is None:
        return BuildConfig.from_overrides()
    if isinstance(config, BuildConfig):
        return config
    return BuildConfig.from_overrides(config)


def _default_docsource(config: BuildConfig) -> DocumentationSource:
    return PythonDocSource(config.modules)


def _duration_ms(started: float) -> int:
    return max(0, int((time.perf_counter() - started) * 1000))


__all__ = ["BuildOrchestrator", "BuildOutcome", "PageSources", "build", "run_doctests"]
