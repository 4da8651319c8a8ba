"""Doctest fragment parsing, verification and fix-mode rewriting."""

from docloom.doctests.engine import DoctestEngine, DoctestReport, docstring_fragments
from docloom.doctests.fixer import SourceFixer, locate_block
from docloom.doctests.fragments import collect_fragments, normalize_output, outputs_match

__all__ = [
    "DoctestEngine",
    "DoctestReport",
    "SourceFixer",
    "collect_fragments",
    "docstring_fragments",
    "locate_block",
    "normalize_output",
    "outputs_match",
]
