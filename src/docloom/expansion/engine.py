"""
docloom: expansion engine

File: src/docloom/expansion/engine.py

Purpose
- Walk one page's AST in source order and replace directive blocks with generated
  content.
- Register heading, footnote and docs anchors; record cross-reference requests
  and doctest fragments on the page.

Functional requirements
- A failing directive becomes one diagnostic plus a failure node; the rest of the
  page still expands.
- Cross-references are only recorded here. Resolution waits until every page has
  been expanded.
- Evaluated blocks run in the page's ``ExecutionScope``; nothing is shared across pages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from docloom.doctests.fragments import fragment_from_node, is_doctest_node
from docloom.domain.anchors import AnchorCollisionError, slugify
from docloom.domain.models import (
    AnchorKind,
    CrossReferenceRequest,
    DiagnosticCategory,
    FragmentOrigin,
    ReferenceKind,
    SourceLocation,
)
from docloom.errors import DirectiveParseError
from docloom.expansion.directives import (
    AutodocsDirective,
    ContentsDirective,
    Directive,
    DocsDirective,
    EvalDirective,
    ExampleDirective,
    MetaDirective,
    ReplDirective,
    SetupDirective,
    is_directive,
    parse_directive,
)
from docloom.expansion.docsource import BindingPolicy, DocEntry, DocSourceError
from docloom.expansion.evaluator import EvaluationResult, ExecutionScope, split_statements
from docloom.markup.ast import Node, NodeKind, failure, text_node

if TYPE_CHECKING:
    from docloom.domain.document import Document, Page
    from docloom.expansion.docsource import DocumentationSource
    from docloom.expansion.evaluator import CodeEvaluator
    from docloom.markup.reader import MarkupParser

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Origin:
    """Where the nodes being expanded came from: the page itself or a spliced docstring."""

    kind: FragmentOrigin = FragmentOrigin.PAGE
    group: str = ""
    source_path: str | None = None
    line_base: int = 0
    module: str | None = None
    # Docstring content reports diagnostics at the directive that spliced it.
    report_line: int | None = None


@dataclass(slots=True)
class _PageState:
    page: Page
    scope: ExecutionScope
    footnote_refs: list[tuple[str, int | None]] = field(default_factory=list)
    footnote_defs: set[str] = field(default_factory=set)


class ExpansionEngine:
    """Expands pages of one ``Document`` using the injected collaborators."""

    def __init__(
        self,
        document: Document,
        *,
        parser: MarkupParser,
        docsource: DocumentationSource,
        evaluator: CodeEvaluator,
    ) -> None:
        self.document = document
        self.config = document.config
        self.parser = parser
        self.docsource = docsource
        self.evaluator = evaluator

    def expand_page(self, page: Page) -> None:
        scope = ExecutionScope(self.evaluator, page.path, self.config.workdir_for(page.path))
        page.execution_scope = scope
        state = _PageState(page=page, scope=scope)
        self._expand_children(page.ast, state, _Origin())

        for label, line in state.footnote_refs:
            if label not in state.footnote_defs:
                self._diagnose(
                    state,
                    DiagnosticCategory.FOOTNOTE,
                    f"footnote reference [^{label}] has no definition on this page",
                    line=line,
                )
        logger.debug(
            "expanded %s: %d anchors, %d references, %d fragments",
            page.path,
            len(page.anchors),
            len(page.requests),
            len(page.fragments),
        )

    def _expand_children(self, parent: Node, state: _PageState, origin: _Origin) -> None:
        for node in list(parent.children):
            if node.kind is NodeKind.HEADING:
                if origin.kind is FragmentOrigin.PAGE:
                    self._register_heading(node, state)
                self._scan_inline(node, state, origin)
            elif node.kind is NodeKind.FOOTNOTE_DEF:
                if origin.kind is FragmentOrigin.PAGE:
                    self._register_footnote(node, state)
                self._scan_inline(node, state, origin)
            elif node.kind is NodeKind.CODE:
                info = str(node.attrs.get("info", ""))
                if origin.kind is FragmentOrigin.PAGE and node.attrs.get("fenced") and is_directive(info):
                    parent.replace_child(node, *self._expand_directive(node, state))
                elif is_doctest_node(node):
                    state.page.add_fragment(
                        fragment_from_node(
                            node,
                            path=origin.source_path or state.page.path,
                            line_base=origin.line_base,
                            origin=origin.kind,
                            group=origin.group,
                            module=origin.module,
                        )
                    )
            else:
                self._scan_inline(node, state, origin)

    # Anchors

    def _register_heading(self, node: Node, state: _PageState) -> None:
        title = node.plain_text().strip()
        identifier = slugify(title)
        if not identifier:
            self._diagnose(
                state,
                DiagnosticCategory.CROSS_REFERENCES,
                f"heading {title!r} produces an empty anchor",
                line=node.line,
            )
            return
        anchor = self.document.registry.register(
            identifier,
            state.page.path,
            AnchorKind.HEADING,
            title=title,
            node=node,
        )
        node.attrs["anchor"] = anchor.label
        state.page.add_anchor(anchor)

    def _register_footnote(self, node: Node, state: _PageState) -> None:
        label = str(node.attrs["label"])
        state.footnote_defs.add(label)
        try:
            anchor = self.document.registry.register(
                label,
                state.page.path,
                AnchorKind.FOOTNOTE,
                title=label,
                node=node,
                disambiguate=False,
            )
        except AnchorCollisionError as exc:
            self._diagnose(
                state,
                DiagnosticCategory.FOOTNOTE,
                f"duplicate footnote definition [^{label}]: {exc}",
                line=node.line,
            )
            return
        node.attrs["anchor"] = anchor.label
        state.page.add_anchor(anchor)

    # Inline content

    def _scan_inline(self, node: Node, state: _PageState, origin: _Origin) -> None:
        for child in node.walk():
            if child.kind is NodeKind.XREF:
                self._request(child, state, origin)
            elif child.kind is NodeKind.FOOTNOTE_REF and origin.kind is FragmentOrigin.PAGE:
                state.footnote_refs.append((str(child.attrs["label"]), child.line))

    def _request(self, node: Node, state: _PageState, origin: _Origin) -> None:
        label = node.text
        explicit = node.attrs.get("target")
        target, kind = _reference_target(label, explicit if isinstance(explicit, str) else None)
        line = origin.report_line if origin.kind is FragmentOrigin.DOCSTRING else node.line
        if not target:
            self._diagnose(
                state,
                DiagnosticCategory.CROSS_REFERENCES,
                f"cannot derive a reference target from {label!r}",
                line=line,
            )
            node.become(text_node(label, line=node.line))
            return
        state.page.add_request(
            CrossReferenceRequest(
                location=SourceLocation(state.page.path, line),
                target=target,
                kind=kind,
                node=node,
                text=label,
            )
        )

    # Directives

    def _expand_directive(self, node: Node, state: _PageState) -> list[Node]:
        line = node.attrs.get("fence_line", node.line)
        line = line if isinstance(line, int) else None
        if not node.attrs.get("closed", True):
            return self._fail(state, DiagnosticCategory.PARSE_ERROR, "unterminated directive block", line, node.text)
        try:
            directive = parse_directive(str(node.attrs.get("info", "")), node.text)
        except DirectiveParseError as exc:
            return self._fail(state, exc.category, str(exc), line, node.text)
        return self._dispatch(directive, node, state, line)

    def _dispatch(self, directive: Directive, node: Node, state: _PageState, line: int | None) -> list[Node]:
        if isinstance(directive, MetaDirective):
            state.page.update_meta(
                current_module=directive.current_module,
                doctest_setup=directive.doctest_setup,
                doctest_filters=directive.doctest_filters,
            )
            return []
        if isinstance(directive, DocsDirective):
            return self._expand_docs(directive, state, line)
        if isinstance(directive, AutodocsDirective):
            return self._expand_autodocs(directive, state, line)
        if isinstance(directive, ExampleDirective):
            return self._expand_example(directive, state, line)
        if isinstance(directive, ReplDirective):
            return self._expand_repl(directive, state, line)
        if isinstance(directive, SetupDirective):
            result = state.scope.execute(directive.code, directive.label, line=line)
            if not result.succeeded:
                return self._fail_evaluation(state, DiagnosticCategory.SETUP_BLOCK, "@setup", result, line, directive.code)
            return []
        if isinstance(directive, EvalDirective):
            return self._expand_eval(directive, state, line)
        if isinstance(directive, ContentsDirective):
            return [
                Node(
                    NodeKind.CONTENTS,
                    attrs={"pages": directive.pages, "depth": directive.depth},
                    line=line,
                )
            ]
        raise TypeError(f"unhandled directive type: {type(directive).__name__}")

    def _expand_docs(self, directive: DocsDirective, state: _PageState, line: int | None) -> list[Node]:
        nodes: list[Node] = []
        for name in directive.names:
            try:
                entries = self._lookup(name, state.page.meta.current_module)
            except DocSourceError as exc:
                nodes.extend(self._fail(state, DiagnosticCategory.DOCS_BLOCK, str(exc), line, name))
                continue
            if not entries:
                nodes.extend(
                    self._fail(state, DiagnosticCategory.DOCS_BLOCK, f"no documentation found for {name!r}", line, name)
                )
                continue
            if len(entries) > 1:
                candidates = ", ".join(entry.name for entry in entries)
                nodes.extend(
                    self._fail(
                        state,
                        DiagnosticCategory.DOCS_BLOCK,
                        f"{name!r} is ambiguous; candidates: {candidates}",
                        line,
                        name,
                    )
                )
                continue
            nodes.extend(self._docs_entry(entries[0], state, line, DiagnosticCategory.DOCS_BLOCK))
        return nodes

    def _expand_autodocs(self, directive: AutodocsDirective, state: _PageState, line: int | None) -> list[Node]:
        policy = BindingPolicy(
            order=directive.order,
            public=directive.public,
            private=directive.private,
            name_filter=directive.name_filter,
        )
        nodes: list[Node] = []
        for module in directive.modules:
            try:
                bindings = self.docsource.list_bindings(module, policy)
            except (DocSourceError, LookupError) as exc:
                nodes.extend(self._fail(state, DiagnosticCategory.AUTODOCS_BLOCK, str(exc), line, module))
                continue
            for binding in bindings:
                entries = self.docsource.lookup(binding.name)
                if len(entries) != 1:
                    nodes.extend(
                        self._fail(
                            state,
                            DiagnosticCategory.AUTODOCS_BLOCK,
                            f"cannot resolve binding {binding.name!r} of module {module!r}",
                            line,
                            binding.name,
                        )
                    )
                    continue
                nodes.extend(self._docs_entry(entries[0], state, line, DiagnosticCategory.AUTODOCS_BLOCK))
        return nodes

    def _lookup(self, name: str, current_module: str | None) -> list[DocEntry]:
        if current_module and not name.startswith(f"{current_module}."):
            relative = self.docsource.lookup(f"{current_module}.{name}")
            if relative:
                return relative
        return self.docsource.lookup(name)

    def _docs_entry(
        self,
        entry: DocEntry,
        state: _PageState,
        line: int | None,
        category: DiagnosticCategory,
    ) -> list[Node]:
        if not entry.docstring.strip():
            return self._fail(state, category, f"{entry.name!r} has no docstring", line, entry.name)
        earlier = self.document.claim_documented(entry.name, state.page.path)
        if earlier is not None:
            return self._fail(state, category, f"{entry.name!r} is already documented on {earlier}", line, entry.name)

        entry_node = Node(
            NodeKind.DOCS_ENTRY,
            text=entry.name,
            attrs={
                "name": entry.name,
                "kind": entry.kind.value,
                "signature": entry.signature,
                "source_url": self._source_url(entry),
            },
            line=line,
        )
        try:
            anchor = self.document.registry.register(
                entry.name,
                state.page.path,
                AnchorKind.DOCS,
                title=entry.name,
                node=entry_node,
                disambiguate=False,
            )
        except AnchorCollisionError as exc:
            return self._fail(state, category, str(exc), line, entry.name)
        entry_node.attrs["anchor"] = anchor.label
        state.page.add_anchor(anchor)

        body = self.parser.parse(entry.docstring)
        if self.config.highlightsig and body.children:
            first = body.children[0]
            if first.kind is NodeKind.CODE and not first.attrs.get("language"):
                first.attrs["language"] = "python"
                first.attrs["info"] = "python"
        self._expand_children(
            body,
            state,
            _Origin(
                kind=FragmentOrigin.DOCSTRING,
                group=entry.name,
                source_path=entry.path,
                module=entry.module,
                line_base=entry.line or 0,
                report_line=line,
            ),
        )
        entry_node.children = body.children
        return [entry_node]

    def _source_url(self, entry: DocEntry) -> str | None:
        if entry.path is None:
            return None
        path = Path(entry.path)
        try:
            relative = path.resolve().relative_to(self.config.root.resolve()).as_posix()
        except ValueError:
            relative = path.as_posix()
        return self.config.source_url(relative, entry.line)

    def _expand_example(self, directive: ExampleDirective, state: _PageState, line: int | None) -> list[Node]:
        result = state.scope.execute(directive.code, directive.label, line=line)
        if not result.succeeded:
            return self._fail_evaluation(state, DiagnosticCategory.EXAMPLE_BLOCK, "@example", result, line, directive.code)
        return [
            Node(
                NodeKind.EVAL_RESULT,
                text=directive.code,
                attrs={
                    "directive": "example",
                    "language": "python",
                    "label": directive.label,
                    "output": result.display(),
                },
                line=line,
            )
        ]

    def _expand_repl(self, directive: ReplDirective, state: _PageState, line: int | None) -> list[Node]:
        try:
            statements = split_statements(directive.code)
        except SyntaxError as exc:
            return self._fail(state, DiagnosticCategory.EXAMPLE_BLOCK, f"@repl block is not valid Python: {exc}", line, directive.code)

        transcript: list[str] = []
        for statement in statements:
            first, *rest = statement.splitlines() or [""]
            transcript.append(f">>> {first}")
            transcript.extend(f"... {continuation}" for continuation in rest)
            result = state.scope.execute(statement, directive.label, line=line)
            if not result.succeeded:
                return self._fail_evaluation(state, DiagnosticCategory.EXAMPLE_BLOCK, "@repl", result, line, directive.code)
            output = result.display()
            if output:
                transcript.append(output)
        text = "\n".join(transcript)
        return [
            Node(
                NodeKind.EVAL_RESULT,
                text=text,
                attrs={"directive": "repl", "language": "pycon", "label": directive.label, "output": ""},
                line=line,
            )
        ]

    def _expand_eval(self, directive: EvalDirective, state: _PageState, line: int | None) -> list[Node]:
        result = state.scope.execute(directive.code, None, line=line)
        if not result.succeeded:
            return self._fail_evaluation(state, DiagnosticCategory.EVAL_BLOCK, "@eval", result, line, directive.code)
        value = result.value
        if value is None:
            return []
        if isinstance(value, Node):
            spliced = Node(NodeKind.DOCUMENT, children=list(value.children) if value.kind is NodeKind.DOCUMENT else [value])
        elif isinstance(value, str):
            spliced = self.parser.parse(value)
        else:
            spliced = Node(NodeKind.DOCUMENT, children=[Node(NodeKind.PARAGRAPH, children=[text_node(str(value))])])
        for child in spliced.walk():
            if child.line is None:
                child.line = line
        self._expand_children(spliced, state, _Origin())
        return spliced.children

    # Failures

    def _fail_evaluation(
        self,
        state: _PageState,
        category: DiagnosticCategory,
        label: str,
        result: EvaluationResult,
        line: int | None,
        source: str,
    ) -> list[Node]:
        lines = [item for item in result.error_text.splitlines() if item.strip()]
        summary = lines[-1].strip() if lines else repr(result.error)
        message = f"{label} block failed: {summary}"
        self._diagnose(state, category, message, line=line, details={"traceback": result.error_text})
        return [failure(message, line=line, source=source)]

    def _fail(
        self,
        state: _PageState,
        category: DiagnosticCategory,
        message: str,
        line: int | None,
        source: str,
    ) -> list[Node]:
        self._diagnose(state, category, message, line=line)
        return [failure(message, line=line, source=source)]

    def _diagnose(
        self,
        state: _PageState,
        category: DiagnosticCategory,
        message: str,
        *,
        line: int | None,
        details: dict[str, str] | None = None,
    ) -> None:
        self.document.diagnose(category, message, page=state.page.path, line=line, details=details)


def _reference_target(label: str, explicit: str | None) -> tuple[str, ReferenceKind]:
    raw = explicit.strip() if explicit is not None else label.strip()
    if len(raw) > 2 and raw.startswith("`") and raw.endswith("`"):
        return raw.strip("`").strip(), ReferenceKind.DOCS
    if explicit is not None:
        return raw, ReferenceKind.HEADING
    return slugify(raw), ReferenceKind.HEADING


__all__ = ["ExpansionEngine"]
