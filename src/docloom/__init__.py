"""
docloom: documentation builder for Markdown pages and Python docstrings.

File: src/docloom/__init__.py

Purpose
- Package root. Exposes the build entry points, configuration and error types.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

from docloom.config.settings import BuildConfig
from docloom.errors import (
    BuildError,
    DirectiveParseError,
    DocloomError,
    SourceDiscoveryError,
    StageFailedError,
    StrictModeError,
)
from docloom.pipeline.orchestrator import BuildOrchestrator, BuildOutcome, build, run_doctests

__version__ = "0.1.0"

__all__ = [
    "BuildConfig",
    "BuildError",
    "BuildOrchestrator",
    "BuildOutcome",
    "DirectiveParseError",
    "DocloomError",
    "SourceDiscoveryError",
    "StageFailedError",
    "StrictModeError",
    "__version__",
    "build",
    "run_doctests",
]
