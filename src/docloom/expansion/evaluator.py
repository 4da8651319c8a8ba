"""
docloom: in-process code evaluation

File: src/docloom/expansion/evaluator.py

Purpose
- Execute snippet code in an ``ExecutionContext`` (a plain namespace dict) with
  stdout/stderr captured, returning output, the final expression value and any error.
- ``ExecutionScope`` is the page-owned set of contexts: one default context plus
  one per label. Scopes are never shared between pages.

Constraints
- ``redirect_stdout`` and ``os.chdir`` are process-wide, so every execution holds
  ``EXECUTION_LOCK`` even when pages run in worker threads.
- No sandboxing beyond a fresh namespace per context and no timeouts.
"""

from __future__ import annotations

import ast
import contextlib
import io
import itertools
import threading
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Protocol

EXECUTION_LOCK: Final[threading.RLock] = threading.RLock()
DEFAULT_CONTEXT_LABEL: Final[str] = "__page__"

_context_ids = itertools.count(1)


@dataclass(slots=True)
class ExecutionContext:
    label: str
    workdir: Path | None = None
    namespace: dict[str, object] = field(default_factory=dict)
    context_id: int = field(default_factory=lambda: next(_context_ids))

    def __post_init__(self) -> None:
        self.namespace.setdefault("__name__", f"docloom_context_{self.context_id}")
        self.namespace.setdefault("__builtins__", __builtins__)


@dataclass(frozen=True, slots=True)
class EvaluationResult:
    output: str
    value: object | None = None
    error: BaseException | None = None
    error_text: str = ""

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def display(self) -> str:
        """Captured output followed by the value's ``repr``, as an interactive prompt shows them."""

        parts = [self.output.rstrip("\n")] if self.output.strip() else []
        if self.error is not None:
            parts.append(self.error_text.rstrip("\n"))
        elif self.value is not None:
            parts.append(repr(self.value))
        return "\n".join(parts)


class CodeEvaluator(Protocol):
    def new_context(self, label: str, workdir: Path | None = None) -> ExecutionContext: ...

    def execute(self, code: str, context: ExecutionContext, *, filename: str = "<docloom>") -> EvaluationResult: ...


class PythonEvaluator:
    """Run code with ``exec``; a trailing expression statement is evaluated for its value."""

    def new_context(self, label: str, workdir: Path | None = None) -> ExecutionContext:
        return ExecutionContext(label=label, workdir=workdir)

    def execute(self, code: str, context: ExecutionContext, *, filename: str = "<docloom>") -> EvaluationResult:
        try:
            body, last_expression = _split_last_expression(code, filename)
        except SyntaxError as exc:
            return EvaluationResult(output="", error=exc, error_text=_format_exception(exc, skip_frames=0))

        stdout_buf = io.StringIO()
        value: object | None = None
        with EXECUTION_LOCK:
            try:
                with (
                    contextlib.redirect_stdout(stdout_buf),
                    contextlib.redirect_stderr(stdout_buf),
                    _working_directory(context.workdir),
                ):
                    if body is not None:
                        exec(body, context.namespace)
                    if last_expression is not None:
                        value = eval(last_expression, context.namespace)
            except Exception as exc:
                return EvaluationResult(
                    output=stdout_buf.getvalue(),
                    error=exc,
                    error_text=_format_exception(exc, skip_frames=1),
                )
        return EvaluationResult(output=stdout_buf.getvalue(), value=value)


@dataclass(slots=True)
class ExecutionScope:
    """Page-scoped execution contexts, created lazily in source order."""

    evaluator: CodeEvaluator
    page: str
    workdir: Path | None = None
    _contexts: dict[str, ExecutionContext] = field(default_factory=dict)

    def context(self, label: str | None = None) -> ExecutionContext:
        key = label or DEFAULT_CONTEXT_LABEL
        context = self._contexts.get(key)
        if context is None:
            if self.workdir is not None:
                self.workdir.mkdir(parents=True, exist_ok=True)
            context = self.evaluator.new_context(key, self.workdir)
            self._contexts[key] = context
        return context

    def execute(self, code: str, label: str | None = None, *, line: int | None = None) -> EvaluationResult:
        filename = f"{self.page}:{line}" if line is not None else self.page
        return self.evaluator.execute(code, self.context(label), filename=filename)


def split_statements(code: str) -> list[str]:
    """Split code into top-level statements, keeping each statement's source text."""

    tree = ast.parse(code)
    lines = code.splitlines()
    statements: list[str] = []
    for node in tree.body:
        start = node.lineno - 1
        if getattr(node, "decorator_list", None):
            start = min(decorator.lineno for decorator in node.decorator_list) - 1
        end = node.end_lineno or node.lineno
        statements.append("\n".join(lines[start:end]))
    return statements


def _split_last_expression(code: str, filename: str) -> tuple[object | None, object | None]:
    tree = ast.parse(code, filename=filename, mode="exec")
    if tree.body and isinstance(tree.body[-1], ast.Expr):
        last = tree.body.pop()
        expression = ast.Expression(body=last.value)  # type: ignore[attr-defined]
        body = compile(tree, filename, "exec") if tree.body else None
        return body, compile(expression, filename, "eval")
    return compile(tree, filename, "exec"), None


@contextlib.contextmanager
def _working_directory(workdir: Path | None):  # type: ignore[no-untyped-def]
    if workdir is None:
        yield
        return
    with contextlib.chdir(workdir):
        yield


def _format_exception(exc: BaseException, *, skip_frames: int) -> str:
    tb = exc.__traceback__
    for _ in range(skip_frames):
        if tb is None:
            break
        tb = tb.tb_next
    return "".join(traceback.format_exception(type(exc), exc, tb))


__all__ = [
    "DEFAULT_CONTEXT_LABEL",
    "EXECUTION_LOCK",
    "CodeEvaluator",
    "EvaluationResult",
    "ExecutionContext",
    "ExecutionScope",
    "PythonEvaluator",
    "split_statements",
]
