"""Exception hierarchy for build-level failures."""

from __future__ import annotations

from collections.abc import Iterable

from docloom.domain.models import DiagnosticCategory, coerce_category


class DocloomError(Exception):
    """Base class for docloom errors."""


class DirectiveParseError(DocloomError, ValueError):
    """A directive block's syntax or payload is invalid.

    ``category`` is the diagnostic category the failure is reported under.
    """

    def __init__(self, message: str, *, category: DiagnosticCategory = DiagnosticCategory.PARSE_ERROR) -> None:
        super().__init__(message)
        self.category = coerce_category(category)


class BuildError(DocloomError):
    """A build did not produce a usable document."""


class SourceDiscoveryError(BuildError):
    """Sources could not be located or read."""


class StageFailedError(BuildError):
    def __init__(self, stage_id: str, cause: BaseException) -> None:
        super().__init__(f"stage {stage_id!r} failed: {cause}")
        self.stage_id = stage_id
        self.cause = cause


class StrictModeError(BuildError):
    """Diagnostics were recorded in categories the strict policy forbids."""

    def __init__(self, categories: Iterable[DiagnosticCategory], counts: dict[DiagnosticCategory, int] | None = None) -> None:
        self.categories = tuple(categories)
        counts = counts or {}
        rendered = ", ".join(
            f"{category.value} ({counts[category]})" if category in counts else category.value
            for category in self.categories
        )
        super().__init__(f"strict mode violated by diagnostic categories: {rendered}")


__all__ = [
    "BuildError",
    "DirectiveParseError",
    "DocloomError",
    "SourceDiscoveryError",
    "StageFailedError",
    "StrictModeError",
]
