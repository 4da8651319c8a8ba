"""End-of-build summary tables rendered with ``rich``."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from rich.console import Console
from rich.style import Style
from rich.table import Table
from rich.text import Text

from docloom.domain.models import Diagnostic, DiagnosticCategory

if TYPE_CHECKING:
    from docloom.pipeline.stages import StageResult

_S_PASS = Style(color="green", bold=True)
_S_WARN = Style(color="yellow", bold=True)
_S_ERROR = Style(color="red", bold=True)
_S_DIM = Style(dim=True)

_STATUS_STYLES = {"pass": _S_PASS, "warn": _S_WARN, "error": _S_ERROR, "skip": _S_DIM}


def stage_table(stage_results: Sequence[StageResult]) -> Table:
    table = Table(title="Build stages")
    table.add_column("Stage", style="cyan")
    table.add_column("Status")
    table.add_column("Duration (ms)", justify="right")
    table.add_column("Summary", overflow="fold")
    for result in stage_results:
        table.add_row(
            result.stage_id,
            Text(result.status.value, style=_STATUS_STYLES.get(result.status.value, _S_DIM)),
            str(result.duration_ms),
            result.summary or "",
        )
    return table


def diagnostic_table(diagnostics: Iterable[Diagnostic], strict: frozenset[DiagnosticCategory] = frozenset()) -> Table:
    """One row per category that has diagnostics; strict categories are marked fatal."""

    counts = Counter(item.category for item in diagnostics)
    table = Table(title="Diagnostics")
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Severity")
    for category in DiagnosticCategory:
        if not counts[category]:
            continue
        fatal = category in strict
        table.add_row(
            category.value,
            str(counts[category]),
            Text("fatal" if fatal else "warning", style=_S_ERROR if fatal else _S_WARN),
        )
    return table


def print_summary(
    stage_results: Sequence[StageResult],
    diagnostics: Sequence[Diagnostic],
    *,
    strict: frozenset[DiagnosticCategory] = frozenset(),
    console: Console | None = None,
) -> None:
    target = console or Console(stderr=True)
    target.print(stage_table(stage_results))
    if diagnostics:
        target.print(diagnostic_table(diagnostics, strict))
        for item in diagnostics:
            target.print(Text(item.render(), style=_S_ERROR if item.category in strict else _S_WARN))
    else:
        target.print(Text("no diagnostics", style=_S_PASS))


__all__ = ["diagnostic_table", "print_summary", "stage_table"]
