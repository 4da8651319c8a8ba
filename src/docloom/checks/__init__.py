"""Whole-document checks run after expansion."""

from docloom.checks.coverage import check_missing_docs

__all__ = ["check_missing_docs"]
