"""
docloom: unit tests for structured build logging

File: tests/unit/observability/test_logging.py

Purpose
- Validate JSON-lines output per build, correlation metadata from nested scopes
  and threads, and restoring the logger on shutdown.
"""

from __future__ import annotations

import json
import logging
import threading
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from docloom.observability.logging import (
    LoggingConfig,
    correlation_scope,
    get_active_logging_handle,
    get_correlation_context,
    parse_log_level,
    setup_build_logging,
    shutdown_logging,
)

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture(autouse=True)
def _cleanup_logging() -> Iterator[None]:
    yield
    shutdown_logging()


def _logger_name() -> str:
    return f"docloom.tests.logging.{uuid4().hex}"


def _read_json_lines(path: Path) -> list[dict[str, object]]:
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]


@pytest.mark.unit
def test_records_are_written_as_json_lines_with_correlation(tmp_path: Path) -> None:
    logger_name = _logger_name()
    handle = setup_build_logging(LoggingConfig(build_id="build-one", base_log_dir=tmp_path, logger_name=logger_name))
    logger = logging.getLogger(logger_name)

    with correlation_scope(stage_id="expand"), correlation_scope(page="guide/intro.md"):
        logger.warning("unresolved reference", extra={"diagnostic_category": "cross_references"})

    shutdown_logging(handle)

    assert handle.log_path == tmp_path / "build-one" / "docloom.jsonl"
    (record,) = _read_json_lines(handle.log_path)
    assert record["build_id"] == "build-one"
    assert record["stage_id"] == "expand"
    assert record["page"] == "guide/intro.md"
    assert record["level"] == "WARNING"
    assert record["message"] == "unresolved reference"
    assert record["fields"] == {"diagnostic_category": "cross_references"}
    assert str(record["timestamp"]).endswith("Z")


@pytest.mark.unit
def test_correlation_scope_nests_and_unbinds() -> None:
    with correlation_scope(build_id="b", stage_id="doctest"):
        with correlation_scope(stage_id=None, page="index.md"):
            assert get_correlation_context() == {"build_id": "b", "page": "index.md"}
        assert get_correlation_context() == {"build_id": "b", "stage_id": "doctest"}
    assert get_correlation_context() == {}


@pytest.mark.unit
def test_worker_threads_keep_their_own_page(tmp_path: Path) -> None:
    logger_name = _logger_name()
    handle = setup_build_logging(LoggingConfig(build_id="build-threads", base_log_dir=tmp_path, logger_name=logger_name))
    logger = logging.getLogger(logger_name)

    def worker(index: int) -> None:
        with correlation_scope(page=f"page-{index}.md"):
            for step in range(20):
                logger.info("expanding %d", step)

    threads = [threading.Thread(target=worker, args=(index,)) for index in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    shutdown_logging(handle)

    records = _read_json_lines(handle.log_path)
    assert len(records) == 120
    assert {record["page"] for record in records} == {f"page-{index}.md" for index in range(6)}
    assert handle.dropped_records == 0


@pytest.mark.unit
def test_shutdown_restores_logger_and_is_idempotent(tmp_path: Path) -> None:
    logger_name = _logger_name()
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.ERROR)
    handle = setup_build_logging(
        LoggingConfig(build_id="build-restore", base_log_dir=tmp_path, logger_name=logger_name, level="DEBUG")
    )
    assert logger.level == logging.DEBUG
    assert get_active_logging_handle() is handle

    shutdown_logging(handle)
    shutdown_logging(handle)

    assert handle.is_shutdown
    assert logger.level == logging.ERROR
    assert logger.handlers == []
    assert get_active_logging_handle() is None


@pytest.mark.unit
def test_new_setup_replaces_the_active_handle(tmp_path: Path) -> None:
    first = setup_build_logging(LoggingConfig(build_id="first", base_log_dir=tmp_path, logger_name=_logger_name()))
    second = setup_build_logging(LoggingConfig(build_id="second", base_log_dir=tmp_path, logger_name=_logger_name()))

    assert first.is_shutdown
    assert get_active_logging_handle() is second


@pytest.mark.unit
@pytest.mark.parametrize(
    ("config", "message"),
    [
        ({"build_id": "  "}, "build_id must not be empty"),
        ({"build_id": "b", "log_filename": "nested/out.jsonl"}, "path separators"),
        ({"build_id": "b", "queue_size": 0}, "queue_size"),
        ({"build_id": "b", "level": "LOUD"}, "unsupported logging level"),
    ],
)
def test_invalid_logging_config(tmp_path: Path, config: dict[str, object], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        setup_build_logging(LoggingConfig(base_log_dir=tmp_path, logger_name=_logger_name(), **config))  # type: ignore[arg-type]


@pytest.mark.unit
def test_parse_log_level() -> None:
    assert parse_log_level("debug") == logging.DEBUG
    assert parse_log_level(30) == 30
