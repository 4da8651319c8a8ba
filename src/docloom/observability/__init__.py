"""
docloom observability package public API.

File: src/docloom/observability/__init__.py

Purpose
- Export structured build logging, correlation scopes and the end-of-build summary.
"""

from docloom.observability.logging import (
    BuildLoggingHandle,
    LoggingConfig,
    correlation_scope,
    get_correlation_context,
    setup_build_logging,
    shutdown_logging,
)
from docloom.observability.summary import diagnostic_table, print_summary, stage_table

__all__ = [
    "BuildLoggingHandle",
    "LoggingConfig",
    "correlation_scope",
    "diagnostic_table",
    "get_correlation_context",
    "print_summary",
    "setup_build_logging",
    "shutdown_logging",
    "stage_table",
]
