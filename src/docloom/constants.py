"""Stable constants shared across docloom subsystems."""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Final

# Schema versions for persisted contracts.
CONFIG_SCHEMA_VERSION: Final[int] = 1

# Default file names and directories (relative to the build root unless configured).
DEFAULT_CONFIG_FILE: Final[str] = "docloom.toml"
DEFAULT_SOURCE_DIR: Final[PurePosixPath] = PurePosixPath("src")
DEFAULT_BUILD_DIR: Final[PurePosixPath] = PurePosixPath("build")
DEFAULT_LOG_DIR: Final[PurePosixPath] = PurePosixPath("logs")
PAGE_SUFFIX: Final[str] = ".md"

# Diagnostic categories, in the order they are reported.
DIAGNOSTIC_CATEGORY_NAMES: Final[tuple[str, ...]] = (
    "autodocs_block",
    "cross_references",
    "docs_block",
    "doctest",
    "eval_block",
    "example_block",
    "footnote",
    "linkcheck",
    "meta_block",
    "missing_docs",
    "parse_error",
    "setup_block",
)

# Anchor disambiguation suffix separator: "Usage", "Usage-1", "Usage-2", ...
ANCHOR_SUFFIX_SEPARATOR: Final[str] = "-"

# Marker separating doctest code from its expected output in script form.
DOCTEST_OUTPUT_MARKER: Final[str] = "# output"

__all__ = [
    "ANCHOR_SUFFIX_SEPARATOR",
    "CONFIG_SCHEMA_VERSION",
    "DEFAULT_BUILD_DIR",
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_LOG_DIR",
    "DEFAULT_SOURCE_DIR",
    "DIAGNOSTIC_CATEGORY_NAMES",
    "DOCTEST_OUTPUT_MARKER",
    "PAGE_SUFFIX",
]
