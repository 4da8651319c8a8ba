"""
docloom expansion package public API.

File: src/docloom/expansion/__init__.py

Purpose
- Export the expansion engine, directive parsing, code evaluation and the
  documentation-source protocol with its introspection-backed implementation.
"""

from docloom.expansion.directives import Directive, DirectiveKind, is_directive, parse_directive
from docloom.expansion.docsource import (
    Binding,
    BindingKind,
    BindingPolicy,
    DocEntry,
    DocSourceError,
    DocumentationSource,
    PythonDocSource,
)
from docloom.expansion.engine import ExpansionEngine
from docloom.expansion.evaluator import (
    CodeEvaluator,
    EvaluationResult,
    ExecutionContext,
    ExecutionScope,
    PythonEvaluator,
)

__all__ = [
    "Binding",
    "BindingKind",
    "BindingPolicy",
    "CodeEvaluator",
    "Directive",
    "DirectiveKind",
    "DocEntry",
    "DocSourceError",
    "DocumentationSource",
    "EvaluationResult",
    "ExecutionContext",
    "ExecutionScope",
    "ExpansionEngine",
    "PythonDocSource",
    "PythonEvaluator",
    "is_directive",
    "parse_directive",
]
