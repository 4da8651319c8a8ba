"""
docloom: unit tests for config loader

File: tests/unit/config/test_loader.py

Purpose
- Validate deterministic config loading from defaults, TOML, env overrides, and explicit overrides.

What this test file should cover
- Precedence: overrides > env > file > defaults.
- Env var path mapping and type coercion, including the ``strict`` setting.
- Built-in profiles and path normalization relative to the config file.
- Conversion into the immutable ``BuildConfig``.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from docloom.config import (
    BuildConfig,
    CheckDocs,
    ConfigLoadError,
    ConfigValidationError,
    config_from_mapping,
    dump_effective_config,
    load_config,
)
from docloom.domain.models import DiagnosticCategory, DoctestMode


def _write_config(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.mark.unit
def test_loader_precedence_file_env_override(tmp_path: Path) -> None:
    config_path = tmp_path / "docloom.toml"
    _write_config(
        config_path,
        """
[expansion]
max_workers = 2
""".strip(),
    )

    file_loaded = load_config(config_path, environ={})
    env_loaded = load_config(config_path, environ={"DOCLOOM_EXPANSION_MAX_WORKERS": "3"})
    override_loaded = load_config(
        config_path,
        environ={"DOCLOOM_EXPANSION_MAX_WORKERS": "3"},
        overrides={"expansion.max_workers": 4},
    )

    assert file_loaded["expansion"]["max_workers"] == 2
    assert env_loaded["expansion"]["max_workers"] == 3
    assert override_loaded["expansion"]["max_workers"] == 4


@pytest.mark.unit
def test_explicit_missing_config_file_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigLoadError):
        load_config(tmp_path / "absent.toml", environ={})


@pytest.mark.unit
def test_env_strict_accepts_bool_and_category_lists(tmp_path: Path) -> None:
    config_path = tmp_path / "docloom.toml"
    _write_config(config_path, "")

    as_bool = load_config(config_path, environ={"DOCLOOM_STRICT": "true"})
    as_list = load_config(config_path, environ={"DOCLOOM_STRICT": "doctest, cross_references"})

    assert as_bool["strict"] is True
    assert as_list["strict"] == ["doctest", "cross_references"]


@pytest.mark.unit
def test_env_rejects_uncoercible_values(tmp_path: Path) -> None:
    config_path = tmp_path / "docloom.toml"
    _write_config(config_path, "")

    with pytest.raises(ConfigLoadError, match="DOCLOOM_EXPANSION_MAX_WORKERS"):
        load_config(config_path, environ={"DOCLOOM_EXPANSION_MAX_WORKERS": "many"})


@pytest.mark.unit
def test_unknown_strict_category_is_a_validation_error() -> None:
    with pytest.raises(ConfigValidationError) as exc_info:
        config_from_mapping({"strict": ["doctest", "typos"]})

    assert any(issue.path == "strict[1]" for issue in exc_info.value.issues)


@pytest.mark.unit
def test_profiles_overlay_doctest_mode(tmp_path: Path) -> None:
    config_path = tmp_path / "docloom.toml"
    _write_config(config_path, "")

    only = load_config(config_path, profile="doctest-only", environ={})
    fix = load_config(config_path, environ={"DOCLOOM_PROFILE": "fix"})
    strict = load_config(config_path, overrides={"profile": "strict"}, environ={})

    assert only["doctest"]["mode"] == "only"
    assert fix["doctest"]["mode"] == "fix"
    assert strict["strict"] is True


@pytest.mark.unit
def test_paths_are_normalized_relative_to_config_file(tmp_path: Path) -> None:
    config_path = tmp_path / "docs" / "docloom.toml"
    _write_config(
        config_path,
        """
[build]
root = ".."

[observability]
log_dir = "logs"
""".strip(),
    )

    loaded = load_config(config_path, environ={})

    assert loaded["build"]["root"] == tmp_path.resolve().as_posix()
    assert loaded["observability"]["log_dir"] == (tmp_path.resolve() / "docs" / "logs").as_posix()


@pytest.mark.unit
def test_dump_effective_config_is_deterministic(tmp_path: Path) -> None:
    config_path = tmp_path / "docloom.toml"
    _write_config(config_path, "")

    first = dump_effective_config(load_config(config_path, environ={}))
    second = dump_effective_config(load_config(config_path, environ={}))

    assert first == second


@pytest.mark.unit
def test_build_config_from_overrides(tmp_path: Path) -> None:
    config = BuildConfig.from_overrides(
        {
            "build.root": str(tmp_path),
            "build.modules": ["pkg.mod"],
            "build.expand_first": ["intro.md"],
            "build.pages": ["index.md", {"title": "Guide", "children": ["guide/start.md"]}],
            "strict": ["doctest"],
            "doctest.mode": "only",
            "doctest.filters": [r"\d+ms", {"pattern": "0x[0-9a-f]+", "replacement": "0xADDR"}],
            "checks.checkdocs": "exports",
            "expansion.max_workers": 4,
        }
    )

    assert config.root == tmp_path
    assert config.source_dir == tmp_path / "src"
    assert config.build_path == tmp_path / "build"
    assert config.modules == ("pkg.mod",)
    assert config.expand_first == ("intro.md",)
    assert [entry.page for entry in config.pages] == ["index.md", None]
    assert list(config.pages[1].pages()) == ["guide/start.md"]
    assert config.strict.categories == frozenset({DiagnosticCategory.DOCTEST})
    assert config.doctest_mode is DoctestMode.ONLY
    assert [item.replacement for item in config.doctest_filters] == ["", "0xADDR"]
    assert config.checkdocs is CheckDocs.EXPORTS
    assert config.max_workers == 4


@pytest.mark.unit
def test_workdir_and_source_url(tmp_path: Path) -> None:
    config = BuildConfig.from_overrides(
        {
            "build.root": str(tmp_path),
            "build.repo": "https://example.org/repo/blob/{commit}/{path}#L{line}",
            "build.commit": "abc123",
        }
    )

    assert config.workdir_for("guide/start.md") == tmp_path / "build" / "guide"
    assert config.source_url("src/pkg/mod.py", 12) == "https://example.org/repo/blob/abc123/src/pkg/mod.py#L12"
    assert BuildConfig(root=tmp_path).source_url("x.py", 1) is None

    fixed = BuildConfig.from_overrides({"build.root": str(tmp_path), "build.workdir": "scratch"})
    assert fixed.workdir_for("a/b.md") == tmp_path / "scratch"
