"""
docloom: cross-reference resolver

File: src/docloom/crossrefs/resolver.py

Purpose
- Second pass over a fully expanded document: fill ``@contents`` placeholders and
  rewrite every pending cross-reference into a link or plain text.

Target forms
- ``label``: heading or footnote label anywhere in the document, falling back to
  a docs name.
- ``page.md#label`` or ``#label``: a label on one page (page-qualified).
- docs name: exact canonical name, then relative to the page's current module,
  then a unique dotted suffix.

Functional requirements
- Pages are processed in document order and requests in appearance order.
- Exactly one candidate links; zero or several candidates produce a
  ``cross_references`` diagnostic and the placeholder becomes plain text.
- Every request is marked resolved once, whatever the outcome.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from docloom.domain.models import (
    Anchor,
    AnchorKind,
    CrossReferenceRequest,
    DiagnosticCategory,
    ReferenceKind,
    SourceLocation,
)
from docloom.markup.ast import Node, NodeKind, text_node

if TYPE_CHECKING:
    from docloom.domain.document import Document, Page

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "#"


@dataclass(slots=True)
class ResolutionReport:
    resolved: int = 0
    unresolved: int = 0
    ambiguous: int = 0


class CrossReferenceResolver:
    def __init__(self, document: Document) -> None:
        self.document = document
        self.registry = document.registry

    def run(self) -> ResolutionReport:
        for page in self.document.pages:
            self.fill_contents(page)
        report = ResolutionReport()
        for page in self.document.pages:
            for request in page.pending_requests():
                self._resolve(request, page, report)
        logger.info(
            "resolved %d cross-references (%d unresolved, %d ambiguous)",
            report.resolved,
            report.unresolved,
            report.ambiguous,
        )
        return report

    def fill_contents(self, page: Page) -> None:
        """Turn each ``@contents`` placeholder into references to heading anchors."""

        for node in page.ast.find_all(NodeKind.CONTENTS):
            if node.children:
                continue
            raw_pages = node.attrs.get("pages") or ()
            pages = list(raw_pages) if raw_pages else self.document.page_order()
            depth = node.attrs.get("depth", 2)
            max_level = depth if isinstance(depth, int) else 2
            for listed in pages:
                if self.document.page(listed) is None:
                    self.document.diagnose(
                        DiagnosticCategory.CROSS_REFERENCES,
                        f"@contents lists unknown page {listed!r}",
                        page=page.path,
                        line=node.line,
                    )
                    continue
                for anchor in self.registry.anchors_for(listed, AnchorKind.HEADING):
                    level = anchor.node.attrs.get("level", 1) if anchor.node is not None else 1
                    if not isinstance(level, int) or level > max_level:
                        continue
                    entry = node.append(
                        Node(
                            NodeKind.XREF,
                            text=anchor.title,
                            attrs={"target": anchor.qualified_label, "level": level},
                            line=node.line,
                        )
                    )
                    page.add_request(
                        CrossReferenceRequest(
                            location=SourceLocation(page.path, node.line),
                            target=anchor.qualified_label,
                            kind=ReferenceKind.HEADING,
                            node=entry,
                            text=anchor.title,
                        )
                    )

    def candidates(self, request: CrossReferenceRequest, page: Page) -> list[Anchor]:
        if request.kind is ReferenceKind.DOCS:
            return self._docs_candidates(request.target, page)

        page_part, separator, label = request.target.rpartition(PAGE_SEPARATOR)
        if separator:
            anchor = self.registry.get(page_part or page.path, label)
            return [anchor] if anchor is not None else []

        matches = [anchor for anchor in self.registry.find(request.target) if anchor.kind is not AnchorKind.DOCS]
        if matches:
            return matches
        return self._docs_candidates(request.target, page)

    def _docs_candidates(self, name: str, page: Page) -> list[Anchor]:
        exact = self.registry.docs_anchor(name)
        if exact is not None:
            return [exact]
        current_module = page.meta.current_module
        if current_module:
            relative = self.registry.docs_anchor(f"{current_module}.{name}")
            if relative is not None:
                return [relative]
        suffix = f".{name}"
        return [
            anchor
            for candidate in self.registry.docs_names()
            if candidate.endswith(suffix) and (anchor := self.registry.docs_anchor(candidate)) is not None
        ]

    def _resolve(self, request: CrossReferenceRequest, page: Page, report: ResolutionReport) -> None:
        matches = self.candidates(request, page)
        request.mark_resolved()

        if len(matches) == 1:
            anchor = matches[0]
            href = (
                f"{PAGE_SEPARATOR}{anchor.label}"
                if anchor.page == page.path
                else f"{anchor.page}{PAGE_SEPARATOR}{anchor.label}"
            )
            label = request.text or anchor.title or anchor.label
            attrs = dict(request.node.attrs)
            attrs.update({"href": href, "page": anchor.page, "anchor": anchor.label, "kind": anchor.kind.value})
            attrs.pop("target", None)
            attrs.pop("source", None)
            request.node.become(Node(NodeKind.LINK, text=label, children=[text_node(label)], attrs=attrs))
            report.resolved += 1
            return

        if matches:
            report.ambiguous += 1
            listing = ", ".join(anchor.qualified_label for anchor in matches)
            message = f"reference {request.target!r} is ambiguous; candidates: {listing}"
            details = {"candidates": listing}
        else:
            report.unresolved += 1
            message = f"no anchor found for reference {request.target!r}"
            details = {}
        self.document.diagnose(
            DiagnosticCategory.CROSS_REFERENCES,
            message,
            page=page.path,
            line=request.location.line,
            details=details,
        )
        request.node.become(text_node(request.text or request.target, line=request.node.line))


__all__ = ["CrossReferenceResolver", "ResolutionReport"]
