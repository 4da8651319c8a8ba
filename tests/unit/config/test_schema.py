"""
docloom: unit tests for config schema validation

File: tests/unit/config/test_schema.py

Purpose
- Validate defaults, structured issue paths, profile overlays and deep-merge rules.
"""

from __future__ import annotations

import pytest

from docloom.config import (
    BUILTIN_PROFILE_NAMES,
    ConfigValidationError,
    apply_profile_overlay,
    default_config,
    merge_config,
    validate_config,
)


@pytest.mark.unit
def test_default_config_is_valid_and_copied() -> None:
    first = default_config()
    first["build"]["modules"].append("mutated")

    result = validate_config(default_config())

    assert result.is_valid
    assert result.config is not None
    assert result.config["build"]["modules"] == []
    assert set(BUILTIN_PROFILE_NAMES) <= set(result.config["profiles"])


@pytest.mark.unit
def test_unknown_keys_and_bad_types_report_paths() -> None:
    config = default_config()
    config["build"]["colour"] = "blue"  # type: ignore[typeddict-unknown-key]
    config["expansion"]["max_workers"] = 0
    config["doctest"]["mode"] = "sometimes"

    result = validate_config(config)

    paths = {issue.path for issue in result.issues}
    assert not result.is_valid
    assert "build.colour" in paths
    assert "expansion.max_workers" in paths
    assert "doctest.mode" in paths


@pytest.mark.unit
def test_invalid_filter_regex_and_module_name() -> None:
    config = default_config()
    config["doctest"]["filters"] = [{"pattern": "("}]
    config["build"]["modules"] = ["not a module"]

    result = validate_config(config)

    paths = {issue.path for issue in result.issues}
    assert "doctest.filters[0]" in paths
    assert "build.modules[0]" in paths


@pytest.mark.unit
def test_schema_version_mismatch_carries_migration_guidance() -> None:
    config = default_config()
    config["meta"]["schema_version"] = 99

    result = validate_config(config)

    assert any("newer than supported" in issue.message for issue in result.issues)


@pytest.mark.unit
def test_merge_replaces_lists_and_merges_tables() -> None:
    base = {"build": {"modules": ["a"], "sitename": "x"}}
    merged = merge_config(base, {"build": {"modules": ["b"]}})

    assert merged == {"build": {"modules": ["b"], "sitename": "x"}}
    assert base["build"]["modules"] == ["a"]


@pytest.mark.unit
def test_unknown_profile_is_rejected() -> None:
    with pytest.raises(ConfigValidationError, match="not defined"):
        apply_profile_overlay(default_config(), "nightly")


@pytest.mark.unit
def test_custom_profile_overlay_applies() -> None:
    config = default_config()
    config["profiles"]["ci"] = {"strict": ["doctest"], "checks": {"checkdocs": "none"}}

    applied = apply_profile_overlay(config, "ci")

    assert applied["strict"] == ["doctest"]
    assert applied["checks"]["checkdocs"] == "none"
