"""Immutable ``BuildConfig`` built from a validated config mapping."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path, PurePosixPath
from typing import Any

from docloom.config.loader import config_from_mapping
from docloom.config.schema import WORKDIR_BUILD
from docloom.domain.diagnostics import StrictPolicy
from docloom.domain.models import DoctestMode, OutputFilter
from docloom.domain.navigation import NavEntry


class CheckDocs(StrEnum):
    ALL = "all"
    EXPORTS = "exports"
    NONE = "none"


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Read-only build configuration held by the ``Document``."""

    root: Path = field(default_factory=Path.cwd)
    source: str = "src"
    build_dir: str = "build"
    sitename: str = ""
    modules: tuple[str, ...] = ()
    expand_first: tuple[str, ...] = ()
    pages: tuple[NavEntry, ...] = ()
    highlightsig: bool = True
    repo: str = ""
    commit: str = ""
    workdir: str = WORKDIR_BUILD
    strict: StrictPolicy = field(default_factory=StrictPolicy)
    doctest_mode: DoctestMode = DoctestMode.FULL
    doctest_filters: tuple[OutputFilter, ...] = ()
    checkdocs: CheckDocs = CheckDocs.ALL
    max_workers: int = 1
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    structured_logs: bool = False
    summary: bool = True

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        object.__setattr__(self, "root", Path(self.root))
        object.__setattr__(self, "doctest_mode", DoctestMode(self.doctest_mode))
        object.__setattr__(self, "checkdocs", CheckDocs(self.checkdocs))
        for name in ("modules", "expand_first", "pages", "doctest_filters"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> BuildConfig:
        """Convert a validated config mapping (see ``load_config``) into a ``BuildConfig``."""

        build = config["build"]
        doctest = config["doctest"]
        observability = config["observability"]
        return cls(
            root=Path(build["root"]),
            source=build["source"],
            build_dir=build["build_dir"],
            sitename=build["sitename"],
            modules=tuple(build["modules"]),
            expand_first=tuple(PurePosixPath(page).as_posix() for page in build["expand_first"]),
            pages=tuple(NavEntry.from_setting(entry) for entry in build["pages"]),
            highlightsig=build["highlightsig"],
            repo=build["repo"],
            commit=build["commit"],
            workdir=build["workdir"],
            strict=StrictPolicy.from_setting(config["strict"]),
            doctest_mode=DoctestMode(doctest["mode"]),
            doctest_filters=tuple(
                OutputFilter(item["pattern"], item.get("replacement", "")) for item in doctest["filters"]
            ),
            checkdocs=CheckDocs(config["checks"]["checkdocs"]),
            max_workers=config["expansion"]["max_workers"],
            log_level=observability["log_level"],
            log_dir=Path(observability["log_dir"]),
            structured_logs=observability["structured_logs"],
            summary=observability["summary"],
        )

    @classmethod
    def from_overrides(cls, overrides: Mapping[str, object] | None = None, *, profile: str | None = None) -> BuildConfig:
        """Validate a partial mapping such as ``{"doctest.mode": "fix"}`` over the defaults."""

        return cls.from_mapping(config_from_mapping(overrides, profile=profile))

    @property
    def source_dir(self) -> Path:
        return self.root / self.source

    @property
    def build_path(self) -> Path:
        return self.root / self.build_dir

    def workdir_for(self, page: str) -> Path:
        """Working directory for evaluated blocks on ``page``."""

        if self.workdir == WORKDIR_BUILD:
            return self.build_path / PurePosixPath(page).parent
        workdir = Path(self.workdir)
        return workdir if workdir.is_absolute() else self.root / workdir

    def source_url(self, path: str, line: int | None) -> str | None:
        if not self.repo:
            return None
        return self.repo.format(path=path, line=line or 1, commit=self.commit)


__all__ = ["BuildConfig", "CheckDocs"]
