"""Documentation coverage: documented bindings that no page splices in."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docloom.config.settings import CheckDocs
from docloom.domain.models import DiagnosticCategory
from docloom.expansion.docsource import BindingPolicy, DocSourceError

if TYPE_CHECKING:
    from docloom.domain.document import Document
    from docloom.expansion.docsource import DocumentationSource

logger = logging.getLogger(__name__)


def check_missing_docs(document: Document, docsource: DocumentationSource) -> list[str]:
    """Report one ``missing_docs`` diagnostic per undocumented binding; return their names.

    Runs over the configured ``modules``. ``checkdocs = "exports"`` limits the check
    to names listed in a module's ``__all__``.
    """

    mode = document.config.checkdocs
    if mode is CheckDocs.NONE:
        return []

    policy = BindingPolicy(exports_only=mode is CheckDocs.EXPORTS)
    documented = document.documented_names()
    missing: list[str] = []
    for module in document.config.modules:
        try:
            bindings = docsource.list_bindings(module, policy)
        except DocSourceError as exc:
            document.diagnose(DiagnosticCategory.MISSING_DOCS, f"cannot check module {module!r}: {exc}")
            continue
        for binding in bindings:
            names = {binding.name, *(entry.name for entry in docsource.lookup(binding.name))}
            if names & documented:
                continue
            missing.append(binding.name)
            document.diagnose(
                DiagnosticCategory.MISSING_DOCS,
                f"{binding.name!r} has a docstring but is not included in the document",
                details={"module": module, "kind": binding.kind.value},
            )
    logger.info("documentation check found %d undocumented bindings", len(missing))
    return missing


__all__ = ["check_missing_docs"]
