"""
docloom: unit tests for the build orchestrator

File: tests/unit/pipeline/test_orchestrator.py

Purpose
- Validate stage status bookkeeping, fatal stage handling, the strict gate and
  the stage selection of doctest-only builds.
"""

from __future__ import annotations

import pytest

from docloom.config import BuildConfig
from docloom.domain.document import Document
from docloom.domain.models import DiagnosticCategory
from docloom.errors import StageFailedError, StrictModeError
from docloom.pipeline.orchestrator import BuildOrchestrator, build
from docloom.pipeline.sources import MemorySourceStore
from docloom.pipeline.stages import FunctionStage, StageRegistry, StageStatus


def _explode(document: Document) -> None:
    raise RuntimeError("stage exploded")


class _Interrupted(BaseException):
    pass


def _interrupt(document: Document) -> None:
    raise _Interrupted("stop")


def _warn(document: Document) -> str:
    document.diagnose(DiagnosticCategory.PARSE_ERROR, "something odd")
    return "warned"


def _statuses(outcome) -> list[tuple[str, StageStatus]]:  # type: ignore[no-untyped-def]
    return [(result.stage_id, result.status) for result in outcome.stage_results]


@pytest.mark.unit
def test_fatal_stage_failure_skips_remaining_stages(build_overrides: dict[str, object]) -> None:
    registry = StageRegistry()
    registry.register(FunctionStage("first", lambda document: "ok"))
    registry.register(FunctionStage("boom", _explode, depends_on=("first",), fatal=True))
    registry.register(FunctionStage("after", lambda document: "never", depends_on=("boom",)))

    outcome = build(MemorySourceStore(), registry, build_overrides)

    assert _statuses(outcome) == [
        ("first", StageStatus.PASS),
        ("boom", StageStatus.ERROR),
        ("after", StageStatus.SKIP),
    ]
    assert isinstance(outcome.error, StageFailedError)
    assert outcome.error.stage_id == "boom"
    assert isinstance(outcome.error.__cause__, RuntimeError)
    with pytest.raises(StageFailedError, match="stage 'boom' failed: stage exploded"):
        outcome.raise_for_status()


@pytest.mark.unit
def test_interrupts_escape_the_build_unchanged(build_overrides: dict[str, object]) -> None:
    registry = StageRegistry()
    registry.register(FunctionStage("interrupt", _interrupt))

    with pytest.raises(_Interrupted, match="stop"):
        build(MemorySourceStore(), registry, {**build_overrides, "observability.summary": True})


@pytest.mark.unit
def test_non_fatal_failures_and_warnings_are_recorded(build_overrides: dict[str, object]) -> None:
    registry = StageRegistry()
    registry.register(FunctionStage("boom", _explode))
    registry.register(FunctionStage("warn", _warn))
    registry.register(FunctionStage("quiet", lambda document: None))

    outcome = build(MemorySourceStore(), registry, build_overrides)

    assert outcome.succeeded
    assert _statuses(outcome) == [
        ("boom", StageStatus.ERROR),
        ("warn", StageStatus.WARN),
        ("quiet", StageStatus.PASS),
    ]
    boom = outcome.stage_result("boom")
    warn = outcome.stage_result("warn")
    assert boom is not None and boom.error == "RuntimeError: stage exploded"
    assert warn is not None and (warn.summary, warn.diagnostics) == ("warned", 1)
    assert outcome.stage_result("missing") is None


@pytest.mark.unit
def test_async_stages_are_awaited(build_overrides: dict[str, object]) -> None:
    async def later(document: Document) -> str:
        return "awaited"

    registry = StageRegistry()
    registry.register(FunctionStage("async", later))

    outcome = build(MemorySourceStore(), registry, build_overrides)

    result = outcome.stage_result("async")
    assert result is not None and result.summary == "awaited"


@pytest.mark.unit
def test_strict_gate_names_only_configured_categories(build_overrides: dict[str, object]) -> None:
    pages = {"index.md": "# Home\n\nSee [Nowhere](@ref).\n"}

    lenient = build(pages, config={**build_overrides, "strict": ["doctest"]})
    strict = build(pages, config={**build_overrides, "strict": ["cross_references"]})
    everything = build(pages, config={**build_overrides, "strict": True})

    assert lenient.succeeded
    assert [item.category for item in lenient.diagnostics] == [DiagnosticCategory.CROSS_REFERENCES]
    for outcome in (strict, everything):
        assert isinstance(outcome.error, StrictModeError)
        assert outcome.violated == (DiagnosticCategory.CROSS_REFERENCES,)
        assert outcome.error.categories == (DiagnosticCategory.CROSS_REFERENCES,)
        assert "cross_references (1)" in str(outcome.error)


@pytest.mark.unit
def test_doctest_only_mode_is_always_strict_about_doctests(build_overrides: dict[str, object]) -> None:
    pages = {"index.md": "# Home\n\n[Nowhere](@ref)\n\n```pycon\n>>> 1 + 1\n3\n```\n"}

    outcome = build(pages, config={**build_overrides, "doctest.mode": "only", "strict": False})

    assert isinstance(outcome.error, StrictModeError)
    assert outcome.violated == (DiagnosticCategory.DOCTEST,)
    assert [result.stage_id for result in outcome.stage_results] == ["setup", "discover", "doctest"]
    assert outcome.document.registry.all() == []


@pytest.mark.unit
def test_doctest_only_mode_ignores_the_configured_strict_categories(build_overrides: dict[str, object]) -> None:
    pages = {"index.md": "```@meta\nunknown_key: 1\n```\n\n```pycon\n>>> 1 + 1\n2\n```\n"}

    outcome = build(pages, config={**build_overrides, "doctest.mode": "only", "strict": True})

    assert outcome.succeeded
    assert outcome.error is None
    assert outcome.violated == ()
    assert [diagnostic.category for diagnostic in outcome.diagnostics] == [DiagnosticCategory.META_BLOCK]


@pytest.mark.unit
def test_expand_first_pages_are_discovered_first(build_overrides: dict[str, object]) -> None:
    pages = {"a.md": "# A\n", "b.md": "# B\n", "c.md": "# C\n"}

    outcome = build(pages, config={**build_overrides, "build.expand_first": ["c.md", "missing.md"]})

    assert outcome.document.page_order() == ["c.md", "a.md", "b.md"]
    (diagnostic,) = outcome.diagnostics
    assert diagnostic.message == "expand_first lists unknown page 'missing.md'"


@pytest.mark.unit
def test_builds_do_not_share_state(build_overrides: dict[str, object]) -> None:
    first = build({"a.md": "# Shared\n"}, config=build_overrides)
    second = build({"b.md": "# Shared\n"}, config=build_overrides)

    assert first.document is not second.document
    assert first.document.build_id != second.document.build_id
    assert [anchor.qualified_label for anchor in second.document.registry.all()] == ["b.md#Shared"]
    assert first.succeeded and second.succeeded


@pytest.mark.unit
async def test_orchestrator_runs_inside_an_event_loop(build_overrides: dict[str, object]) -> None:
    orchestrator = BuildOrchestrator(BuildConfig.from_overrides(build_overrides), sources={"index.md": "# Home\n"})

    outcome = await orchestrator.run()

    assert outcome.succeeded
    assert outcome.document.page_order() == ["index.md"]
    assert all(page.frozen for page in outcome.document.pages)
