"""
docloom: unit tests for the stage registry

File: tests/unit/pipeline/test_stage_registry.py

Purpose
- Validate topological ordering with registration-order tie breaking and the
  graph errors reported by ``snapshot()``.
"""

from __future__ import annotations

import pytest

from docloom.pipeline.stages import (
    CHECK_DOCS_STAGE_ID,
    DISCOVER_STAGE_ID,
    DOCTEST_STAGE_ID,
    EXPAND_STAGE_ID,
    POPULATE_STAGE_ID,
    RENDER_STAGE_ID,
    RESOLVE_STAGE_ID,
    SETUP_STAGE_ID,
    FunctionStage,
    StageRegistry,
    default_stage_registry,
)


def _stage(stage_id: str, *depends_on: str) -> FunctionStage:
    return FunctionStage(stage_id, lambda document: None, depends_on=depends_on)


def _order(registry: StageRegistry) -> list[str]:
    return [stage.stage_id for stage in registry.snapshot()]


@pytest.mark.unit
def test_default_registry_order() -> None:
    assert _order(default_stage_registry()) == [
        SETUP_STAGE_ID,
        DISCOVER_STAGE_ID,
        EXPAND_STAGE_ID,
        DOCTEST_STAGE_ID,
        CHECK_DOCS_STAGE_ID,
        RESOLVE_STAGE_ID,
        POPULATE_STAGE_ID,
        RENDER_STAGE_ID,
    ]


@pytest.mark.unit
def test_each_call_returns_an_independent_registry() -> None:
    first = default_stage_registry()
    second = default_stage_registry()

    first.register(_stage("extra", RENDER_STAGE_ID))

    assert first is not second
    assert len(first) == len(second) + 1
    assert "extra" not in second.stage_ids()


@pytest.mark.unit
def test_dependencies_win_over_registration_order() -> None:
    registry = StageRegistry()
    registry.register(_stage("late", "early"))
    registry.register(_stage("independent"))
    registry.register(_stage("early"))

    assert _order(registry) == ["independent", "early", "late"]


@pytest.mark.unit
def test_after_adds_ordering_constraints() -> None:
    registry = default_stage_registry()
    registry.register(_stage("lint"), after=(EXPAND_STAGE_ID,))
    registry.register(_stage("first_thing"))

    order = _order(registry)

    assert order.index("lint") > order.index(EXPAND_STAGE_ID)
    assert order[-2:] == ["lint", "first_thing"]
    assert registry.dependencies("lint") == (EXPAND_STAGE_ID,)


@pytest.mark.unit
def test_duplicate_and_blank_ids_are_rejected() -> None:
    registry = StageRegistry()
    registry.register(_stage("one"))

    with pytest.raises(ValueError, match="duplicate stage id"):
        registry.register(_stage("one"))
    with pytest.raises(ValueError, match="non-empty"):
        registry.register(_stage("  "))


@pytest.mark.unit
@pytest.mark.parametrize(
    ("stages", "message"),
    [
        ((("a", "missing"),), "unknown stage 'missing'"),
        ((("a", "a"),), "cannot depend on itself"),
        ((("a", "b"), ("b", "c"), ("c", "a")), "cycle"),
    ],
)
def test_invalid_graphs_fail_at_snapshot(stages: tuple[tuple[str, ...], ...], message: str) -> None:
    registry = StageRegistry()
    for stage_id, *depends_on in stages:
        registry.register(_stage(stage_id, *depends_on))

    with pytest.raises(ValueError, match=message):
        registry.snapshot()
