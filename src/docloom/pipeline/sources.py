"""Page source stores: a directory of ``.md`` files or an in-memory mapping."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path, PurePosixPath
from typing import Protocol, runtime_checkable

from docloom.constants import PAGE_SUFFIX
from docloom.errors import SourceDiscoveryError
from docloom.utils.fs import atomic_write


@runtime_checkable
class SourceStore(Protocol):
    def paths(self) -> list[str]: ...

    def read(self, path: str) -> str: ...

    def write(self, path: str, text: str) -> None: ...


class DirectorySourceStore:
    """Pages below ``root``; paths are POSIX-style and relative to it."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def paths(self) -> list[str]:
        if not self.root.is_dir():
            raise SourceDiscoveryError(f"source directory does not exist: {self.root}")
        return sorted(
            PurePosixPath(path.relative_to(self.root).as_posix()).as_posix()
            for path in self.root.rglob(f"*{PAGE_SUFFIX}")
            if path.is_file()
        )

    def read(self, path: str) -> str:
        try:
            return (self.root / path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SourceDiscoveryError(f"cannot read page {path!r}: {exc}") from exc

    def write(self, path: str, text: str) -> None:
        atomic_write(self.root / path, text)


class MemorySourceStore:
    """Pages held in a dict; fix-mode writes update the dict."""

    def __init__(self, pages: Mapping[str, str] | None = None) -> None:
        self.pages: dict[str, str] = {_normalize(path): text for path, text in (pages or {}).items()}

    def paths(self) -> list[str]:
        return sorted(self.pages)

    def read(self, path: str) -> str:
        try:
            return self.pages[_normalize(path)]
        except KeyError:
            raise SourceDiscoveryError(f"no page named {path!r}") from None

    def write(self, path: str, text: str) -> None:
        self.pages[_normalize(path)] = text


def as_source_store(sources: SourceStore | Mapping[str, str] | Path | str | None, *, default_root: Path) -> SourceStore:
    """Accept a store, an in-memory mapping or a directory path (``None`` means ``default_root``)."""

    if sources is None:
        return DirectorySourceStore(default_root)
    if isinstance(sources, Mapping):
        return MemorySourceStore(sources)
    if isinstance(sources, (str, Path)):
        return DirectorySourceStore(Path(sources))
    if isinstance(sources, SourceStore):
        return sources
    raise TypeError(f"unsupported page sources: {type(sources).__name__}")


def _normalize(path: str) -> str:
    normalized = PurePosixPath(path.replace("\\", "/")).as_posix()
    if normalized.startswith("/") or ".." in PurePosixPath(normalized).parts:
        raise SourceDiscoveryError(f"page path must be relative: {path!r}")
    return normalized


__all__ = ["DirectorySourceStore", "MemorySourceStore", "SourceStore", "as_source_store"]
