"""
docloom: doctest engine

File: src/docloom/doctests/engine.py

Purpose
- Execute a page's code fragments in source order and verify (or, in fix mode,
  rewrite) their recorded output.

Context rules
- Unlabeled page fragments each get a fresh context.
- Labeled fragments share one context per label within a page.
- Docstring fragments share one context per docstring (and label).
- Docstring contexts start from a copy of the defining module's globals.
- Page ``doctest_setup`` code runs first in every new context.
- Doctests run in the caller's working directory; ``workdir`` only applies to
  evaluated blocks.

Every mismatch or crash is one ``doctest`` diagnostic; nothing here raises for a
failing fragment.
"""

from __future__ import annotations

import importlib
import logging
import traceback
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from docloom.doctests.fixer import SourceFixer
from docloom.doctests.fragments import collect_fragments, mismatch_message, outputs_match, rewrite_block
from docloom.domain.document import PageMeta
from docloom.domain.models import CodeFragment, DiagnosticCategory, ExpectationKind, FragmentOrigin, OutputFilter
from docloom.expansion.docsource import BindingPolicy

if TYPE_CHECKING:
    from docloom.domain.document import Document, Page
    from docloom.expansion.docsource import DocumentationSource
    from docloom.expansion.evaluator import CodeEvaluator, EvaluationResult, ExecutionContext
    from docloom.markup.reader import MarkupParser

logger = logging.getLogger(__name__)

_FRESH = object()


@dataclass(slots=True)
class DoctestReport:
    checked: int = 0
    failed: int = 0
    fixed: int = 0

    def merge(self, other: DoctestReport) -> DoctestReport:
        return DoctestReport(
            checked=self.checked + other.checked,
            failed=self.failed + other.failed,
            fixed=self.fixed + other.fixed,
        )


class DoctestEngine:
    def __init__(
        self,
        document: Document,
        evaluator: CodeEvaluator,
        *,
        fix: bool = False,
        fixer: SourceFixer | None = None,
    ) -> None:
        self.document = document
        self.evaluator = evaluator
        self.fix = fix
        self.fixer = fixer or SourceFixer(document.store)

    def run_page(self, page: Page) -> DoctestReport:
        return self.run_fragments(page.fragments, page=page.path, meta=page.meta)

    def run_fragments(
        self,
        fragments: Sequence[CodeFragment],
        *,
        page: str,
        meta: PageMeta | None = None,
    ) -> DoctestReport:
        """Check ``fragments`` in order; diagnostics are attributed to ``page``."""

        meta = meta or PageMeta()
        filters = (*self.document.config.doctest_filters, *meta.doctest_filters)
        contexts: dict[tuple[str, str | None], ExecutionContext | None] = {}
        report = DoctestReport()

        for fragment in fragments:
            report.checked += 1
            key = _context_key(fragment)
            if key is _FRESH:
                context = self._new_context(fragment, page, meta)
            else:
                if key not in contexts:
                    contexts[key] = self._new_context(fragment, page, meta)  # type: ignore[index]
                context = contexts[key]  # type: ignore[index]
            if context is None:
                report.failed += 1
                continue

            outcome = self._check(fragment, context, filters, page)
            if outcome == "failed":
                report.failed += 1
            elif outcome == "fixed":
                report.fixed += 1
        logger.debug("doctests on %s: %s", page, report)
        return report

    def _new_context(
        self,
        fragment: CodeFragment,
        page: str,
        meta: PageMeta,
    ) -> ExecutionContext | None:
        context = self.evaluator.new_context(f"doctest:{fragment.label or fragment.group or page}")
        if fragment.module:
            try:
                module = importlib.import_module(fragment.module)
            except Exception as exc:
                self._diagnose(
                    fragment,
                    page,
                    f"cannot import {fragment.module!r} for its doctests: {exc}",
                    details={"traceback": traceback.format_exc()},
                )
                return None
            context.namespace.update(vars(module))
        if meta.doctest_setup.strip():
            result = self.evaluator.execute(meta.doctest_setup, context, filename=f"{page}:doctest_setup")
            if not result.succeeded:
                self._diagnose(
                    fragment,
                    page,
                    f"doctest_setup failed: {_error_summary(result)}",
                    details={"traceback": result.error_text},
                )
                return None
        return context

    def _check(
        self,
        fragment: CodeFragment,
        context: ExecutionContext,
        filters: Sequence[OutputFilter],
        page: str,
    ) -> str:
        filename = str(fragment.location)
        if fragment.kind is ExpectationKind.TRANSCRIPT:
            actuals: list[str] = []
            first_mismatch: tuple[str, str] | None = None
            for step in fragment.steps:
                actual = self.evaluator.execute(step.source, context, filename=filename).display()
                actuals.append(actual)
                if first_mismatch is None and not outputs_match(step.expected, actual, filters):
                    first_mismatch = (step.expected, actual)
            if first_mismatch is None:
                return "passed"
            return self._mismatch(fragment, page, first_mismatch[0], first_mismatch[1], actuals, filters)

        result = self.evaluator.execute(fragment.code, context, filename=filename)
        if fragment.kind is ExpectationKind.NONE:
            if result.succeeded:
                return "passed"
            self._diagnose(
                fragment,
                page,
                f"doctest raised {_error_summary(result)}",
                details={"traceback": result.error_text},
            )
            return "failed"

        expected = fragment.expected or ""
        actual = result.display()
        if outputs_match(expected, actual, filters):
            return "passed"
        return self._mismatch(fragment, page, expected, actual, [actual], filters)

    def _mismatch(
        self,
        fragment: CodeFragment,
        page: str,
        expected: str,
        actual: str,
        actuals: Sequence[str],
        filters: Sequence[OutputFilter],
    ) -> str:
        if self.fix:
            if self.fixer.apply(fragment, page, rewrite_block(fragment, actuals)):
                self.document.record_modification()
                return "fixed"
            self._diagnose(fragment, page, f"cannot locate doctest source at {fragment.location} to fix it")
            return "failed"
        self._diagnose(
            fragment,
            page,
            mismatch_message(expected, actual, filters),
            details={"expected": expected, "actual": actual},
        )
        return "failed"

    def _diagnose(
        self,
        fragment: CodeFragment,
        page: str,
        message: str,
        *,
        details: dict[str, str] | None = None,
    ) -> None:
        same_file = fragment.location.path == page
        self.document.diagnose(
            DiagnosticCategory.DOCTEST,
            message,
            page=page,
            line=fragment.location.line if same_file else None,
            details={"location": str(fragment.location), **(details or {})},
        )


def docstring_fragments(
    docsource: DocumentationSource,
    parser: MarkupParser,
    modules: Iterable[str],
    *,
    exclude: frozenset[str] = frozenset(),
) -> list[CodeFragment]:
    """Doctest fragments from every documented binding of ``modules`` not listed in ``exclude``.

    Raises ``DocSourceError`` when a module cannot be enumerated.
    """

    fragments: list[CodeFragment] = []
    policy = BindingPolicy()
    for module in modules:
        for binding in docsource.list_bindings(module, policy):
            entries = docsource.lookup(binding.name)
            if not entries or entries[0].name in exclude or binding.name in exclude:
                continue
            entry = entries[0]
            fragments.extend(
                collect_fragments(
                    parser.parse(entry.docstring),
                    path=entry.path or entry.name,
                    line_base=entry.line or 0,
                    origin=FragmentOrigin.DOCSTRING,
                    group=entry.name,
                    module=entry.module,
                )
            )
    return fragments


def _context_key(fragment: CodeFragment) -> object:
    if fragment.origin is FragmentOrigin.PAGE and fragment.label is None:
        return _FRESH
    return (fragment.group, fragment.label)


def _error_summary(result: EvaluationResult) -> str:
    lines = [line for line in result.error_text.splitlines() if line.strip()]
    return lines[-1].strip() if lines else repr(result.error)


__all__ = ["DoctestEngine", "DoctestReport", "docstring_fragments"]
