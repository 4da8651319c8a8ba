"""Append-only diagnostic log and the strict gate evaluated at build end."""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass

from docloom.domain.models import Diagnostic, DiagnosticCategory, coerce_category

logger = logging.getLogger("docloom.diagnostics")


class DiagnosticLog:
    """Thread-safe, append-only diagnostic store.

    Every appended diagnostic is logged at WARNING immediately so problems surface
    during the build and not only in the final summary.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: list[Diagnostic] = []

    def add(
        self,
        category: DiagnosticCategory | str,
        message: str,
        *,
        page: str | None = None,
        line: int | None = None,
        details: Mapping[str, str] | None = None,
    ) -> Diagnostic:
        diagnostic = Diagnostic(
            category=coerce_category(category),
            message=message,
            page=page,
            line=line,
            details=details or {},
        )
        return self.append(diagnostic)

    def append(self, diagnostic: Diagnostic) -> Diagnostic:
        with self._lock:
            self._items.append(diagnostic)
        logger.warning(
            diagnostic.render(),
            extra={
                "diagnostic_category": diagnostic.category.value,
                "diagnostic_page": diagnostic.page,
                "diagnostic_line": diagnostic.line,
            },
        )
        return diagnostic

    def snapshot(self) -> tuple[Diagnostic, ...]:
        with self._lock:
            return tuple(self._items)

    def by_category(self, category: DiagnosticCategory | str) -> list[Diagnostic]:
        wanted = coerce_category(category)
        return [item for item in self.snapshot() if item.category is wanted]

    def categories(self) -> frozenset[DiagnosticCategory]:
        return frozenset(item.category for item in self.snapshot())

    def counts(self) -> dict[DiagnosticCategory, int]:
        counter = Counter(item.category for item in self.snapshot())
        return {category: counter[category] for category in DiagnosticCategory if counter[category]}

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


@dataclass(frozen=True, slots=True)
class StrictPolicy:
    """Set of categories that turn a successful build into a failure."""

    categories: frozenset[DiagnosticCategory] = frozenset()

    @classmethod
    def from_setting(cls, value: bool | Iterable[str | DiagnosticCategory]) -> StrictPolicy:
        if value is True:
            return cls(frozenset(DiagnosticCategory))
        if value is False:
            return cls()
        if isinstance(value, str):
            return cls(frozenset({coerce_category(value)}))
        return cls(frozenset(coerce_category(item) for item in value))

    def violations(self, diagnostics: Iterable[Diagnostic]) -> tuple[DiagnosticCategory, ...]:
        """Return the violated categories in stable (declaration) order."""

        present = {item.category for item in diagnostics}
        return tuple(category for category in DiagnosticCategory if category in present and category in self.categories)

    def __bool__(self) -> bool:
        return bool(self.categories)


__all__ = ["DiagnosticLog", "StrictPolicy"]
