"""
docloom: document model

File: src/docloom/domain/document.py

Purpose
- ``Document`` is the root aggregate of one build: ordered pages, navigation, the
  anchor registry, the diagnostic log, the fix-mode modification counter and the
  plugin store.
- ``Page`` is one source unit. Expansion and doctest stages mutate it through the
  methods below; ``freeze()`` makes those methods raise ``PageFrozenError``.

Non-functional requirements
- Writes that page workers may issue concurrently (anchors, diagnostics,
  documented-name claims, modification counts) are serialized with locks.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any, TypeVar

from docloom.domain.anchors import AnchorRegistry
from docloom.domain.diagnostics import DiagnosticLog
from docloom.domain.ids import generate_build_id
from docloom.domain.models import (
    Anchor,
    CodeFragment,
    CrossReferenceRequest,
    Diagnostic,
    DiagnosticCategory,
    OutputFilter,
)
from docloom.domain.navigation import Navigation
from docloom.markup.ast import NodeKind

if TYPE_CHECKING:
    from docloom.config.settings import BuildConfig
    from docloom.markup.ast import Node
    from docloom.pipeline.sources import SourceStore

PluginT = TypeVar("PluginT")


class PageFrozenError(RuntimeError):
    """A frozen page was asked to change."""


@dataclass(slots=True)
class PageMeta:
    """Per-page settings collected from ``@meta`` blocks."""

    current_module: str | None = None
    doctest_setup: str = ""
    doctest_filters: tuple[OutputFilter, ...] = ()


@dataclass(eq=False)
class Page:
    path: str
    source: str
    ast: Node
    anchors: list[Anchor] = field(default_factory=list)
    requests: list[CrossReferenceRequest] = field(default_factory=list)
    fragments: list[CodeFragment] = field(default_factory=list)
    meta: PageMeta = field(default_factory=PageMeta)
    execution_scope: Any = None
    frozen: bool = False

    @property
    def title(self) -> str:
        for node in self.ast.children:
            if node.kind is NodeKind.HEADING:
                return node.plain_text().strip() or self.path
        return PurePosixPath(self.path).stem

    def add_anchor(self, anchor: Anchor) -> None:
        self._check_mutable()
        self.anchors.append(anchor)

    def add_request(self, request: CrossReferenceRequest) -> None:
        self._check_mutable()
        self.requests.append(request)

    def add_fragment(self, fragment: CodeFragment) -> None:
        self._check_mutable()
        self.fragments.append(fragment)

    def replace_ast(self, ast: Node) -> None:
        self._check_mutable()
        self.ast = ast

    def update_meta(
        self,
        *,
        current_module: str | None = None,
        doctest_setup: str | None = None,
        doctest_filters: tuple[OutputFilter, ...] | None = None,
    ) -> None:
        self._check_mutable()
        if current_module is not None:
            self.meta.current_module = current_module
        if doctest_setup is not None:
            self.meta.doctest_setup = doctest_setup
        if doctest_filters is not None:
            self.meta.doctest_filters = doctest_filters

    def pending_requests(self) -> list[CrossReferenceRequest]:
        return [request for request in self.requests if not request.resolved]

    def freeze(self) -> None:
        self.frozen = True
        self.execution_scope = None

    def _check_mutable(self) -> None:
        if self.frozen:
            raise PageFrozenError(f"page {self.path!r} is frozen")


class Document:
    """Root aggregate for a single build. Discarded when the build ends."""

    def __init__(
        self,
        config: BuildConfig,
        *,
        build_id: str | None = None,
        store: SourceStore | None = None,
        plugins: tuple[object, ...] = (),
    ) -> None:
        self.config = config
        self.build_id = build_id or generate_build_id()
        self.store = store
        self.pages: list[Page] = []
        self.navigation = Navigation()
        self.registry = AnchorRegistry()
        self.diagnostics = DiagnosticLog()
        self._pages_by_path: dict[str, Page] = {}
        self._plugins: dict[type, object] = {type(plugin): plugin for plugin in plugins}
        self._lock = threading.Lock()
        self._modifications = 0
        self._documented: dict[str, str] = {}

    def add_page(self, page: Page) -> Page:
        if page.path in self._pages_by_path:
            raise ValueError(f"duplicate page path {page.path!r}")
        self.pages.append(page)
        self._pages_by_path[page.path] = page
        self.registry.set_page_order(self.page_order())
        return page

    def page(self, path: str) -> Page | None:
        return self._pages_by_path.get(path)

    def page_order(self) -> list[str]:
        return [page.path for page in self.pages]

    def __iter__(self) -> Iterator[Page]:
        return iter(self.pages)

    def diagnose(
        self,
        category: DiagnosticCategory | str,
        message: str,
        *,
        page: str | None = None,
        line: int | None = None,
        details: dict[str, str] | None = None,
    ) -> Diagnostic:
        return self.diagnostics.add(category, message, page=page, line=line, details=details)

    def claim_documented(self, name: str, page: str) -> str | None:
        """Record that ``name`` is documented on ``page``; return the earlier page if already claimed."""

        with self._lock:
            existing = self._documented.get(name)
            if existing is not None:
                return existing
            self._documented[name] = page
            return None

    def documented_names(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._documented)

    def record_modification(self) -> int:
        with self._lock:
            self._modifications += 1
            return self._modifications

    @property
    def modifications(self) -> int:
        with self._lock:
            return self._modifications

    def get_plugin(self, plugin_type: type[PluginT]) -> PluginT:
        """Return the plugin object stored for ``plugin_type``, creating a default one if absent."""

        with self._lock:
            plugin = self._plugins.get(plugin_type)
            if plugin is None:
                plugin = plugin_type()
                self._plugins[plugin_type] = plugin
        return plugin  # type: ignore[return-value]

    def freeze(self) -> None:
        for page in self.pages:
            page.freeze()


__all__ = ["Document", "Page", "PageFrozenError", "PageMeta"]
