"""
docloom: configuration schema and validation.

File: src/docloom/config/schema.py

Purpose
- Define authoritative configuration defaults and strict validation rules.

What should be included in this file
- Schema versioning and migration guidance.
- Validation rules for required fields, types, enums, and numeric constraints.
- Profile overlay validation and deterministic deep-merge helpers.

Functional requirements
- Validate config payloads and return structured errors (field path + message).
- Support the built-in profile overlays ``strict``, ``doctest-only`` and ``fix``.
"""

from __future__ import annotations

import copy
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Literal, NotRequired, TypedDict

from docloom.constants import (
    CONFIG_SCHEMA_VERSION,
    DEFAULT_BUILD_DIR,
    DEFAULT_LOG_DIR,
    DEFAULT_SOURCE_DIR,
    DIAGNOSTIC_CATEGORY_NAMES,
)

ConfigSchemaVersion: Final[int] = CONFIG_SCHEMA_VERSION
BUILTIN_PROFILE_NAMES: Final[tuple[str, ...]] = ("strict", "doctest-only", "fix")

DOCTEST_MODES: Final[tuple[str, ...]] = ("full", "only", "fix", "off")
CHECKDOCS_MODES: Final[tuple[str, ...]] = ("all", "exports", "none")
LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR")
WORKDIR_BUILD: Final[str] = "build"

_PROFILE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*$")
_MODULE_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*$")

# Config paths normalized relative to the config file location.
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (
    ("build", "root"),
    ("observability", "log_dir"),
)

_SECTIONS: Final[frozenset[str]] = frozenset(
    {"meta", "build", "strict", "doctest", "checks", "expansion", "observability", "profiles"}
)
_OVERLAY_SECTIONS: Final[frozenset[str]] = _SECTIONS - {"meta", "profiles"}


class MetaConfig(TypedDict):
    schema_version: int


class PageEntryConfig(TypedDict, total=False):
    title: str
    page: str
    hidden: bool
    children: list[str | PageEntryConfig]


class BuildSection(TypedDict):
    root: str
    source: str
    build_dir: str
    sitename: str
    modules: list[str]
    expand_first: list[str]
    pages: list[str | PageEntryConfig]
    highlightsig: bool
    repo: str
    commit: str
    workdir: str


class DoctestFilterConfig(TypedDict):
    pattern: str
    replacement: NotRequired[str]


class DoctestSection(TypedDict):
    mode: Literal["full", "only", "fix", "off"]
    filters: list[str | DoctestFilterConfig]


class ChecksSection(TypedDict):
    checkdocs: Literal["all", "exports", "none"]


class ExpansionSection(TypedDict):
    max_workers: int


class ObservabilitySection(TypedDict):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"]
    log_dir: str
    structured_logs: bool
    summary: bool


class ProfileOverlay(TypedDict, total=False):
    build: dict[str, object]
    strict: bool | list[str]
    doctest: dict[str, object]
    checks: dict[str, object]
    expansion: dict[str, object]
    observability: dict[str, object]


class DocloomConfig(TypedDict):
    meta: MetaConfig
    build: BuildSection
    strict: bool | list[str]
    doctest: DoctestSection
    checks: ChecksSection
    expansion: ExpansionSection
    observability: ObservabilitySection
    profiles: dict[str, ProfileOverlay]


DEFAULT_CONFIG: Final[DocloomConfig] = {
    "meta": {
        "schema_version": ConfigSchemaVersion,
    },
    "build": {
        "root": ".",
        "source": DEFAULT_SOURCE_DIR.as_posix(),
        "build_dir": DEFAULT_BUILD_DIR.as_posix(),
        "sitename": "",
        "modules": [],
        "expand_first": [],
        "pages": [],
        "highlightsig": True,
        "repo": "",
        "commit": "",
        "workdir": WORKDIR_BUILD,
    },
    "strict": False,
    "doctest": {
        "mode": "full",
        "filters": [],
    },
    "checks": {
        "checkdocs": "all",
    },
    "expansion": {
        "max_workers": 1,
    },
    "observability": {
        "log_level": "INFO",
        "log_dir": DEFAULT_LOG_DIR.as_posix(),
        "structured_logs": False,
        "summary": True,
    },
    "profiles": {
        "strict": {"strict": True},
        "doctest-only": {"doctest": {"mode": "only"}},
        "fix": {"doctest": {"mode": "fix"}},
    },
}


@dataclass(frozen=True, slots=True)
class ConfigValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class ConfigValidationResult:
    config: dict[str, Any] | None
    issues: tuple[ConfigValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.issues


class ConfigValidationError(ValueError):
    """Raised when strict config validation fails."""

    def __init__(self, issues: Sequence[ConfigValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid config:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[ConfigValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(ConfigValidationIssue(path=path, message=message))

    def items(self) -> tuple[ConfigValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_config() -> DocloomConfig:
    """Return a deep copy of deterministic built-in defaults."""

    return copy.deepcopy(DEFAULT_CONFIG)


def migration_guidance(found_version: int) -> str:
    if found_version < ConfigSchemaVersion:
        return (
            f"schema version {found_version} is older than supported {ConfigSchemaVersion}; "
            "upgrade docloom.toml to the current schema"
        )
    if found_version > ConfigSchemaVersion:
        return (
            f"schema version {found_version} is newer than supported {ConfigSchemaVersion}; "
            "upgrade docloom"
        )
    return "schema version is current"


def merge_config(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``. Lists are replaced, not merged."""

    merged = _deep_copy_mapping(base)
    _merge_into(merged, overlay)
    return merged


def apply_profile_overlay(config: Mapping[str, object], profile: str | None) -> dict[str, Any]:
    """Apply a named profile overlay and re-validate the resulting config."""

    materialized = _deep_copy_mapping(config)
    if profile is None or not profile.strip():
        return materialized
    selected = profile.strip()

    profiles_raw = materialized.get("profiles")
    if not isinstance(profiles_raw, Mapping):
        raise ConfigValidationError((ConfigValidationIssue("profiles", "profiles section is required"),))
    overlay_raw = profiles_raw.get(selected)
    if overlay_raw is None:
        raise ConfigValidationError(
            (ConfigValidationIssue("profiles", f"profile {selected!r} is not defined"),)
        )
    if not isinstance(overlay_raw, Mapping):
        raise ConfigValidationError(
            (ConfigValidationIssue(f"profiles.{selected}", "profile overlay must be an object"),)
        )

    return assert_valid_config(merge_config(materialized, overlay_raw))


def validate_config(config: Mapping[str, object] | object) -> ConfigValidationResult:
    """Validate config and return structured issues with deterministic paths."""

    issues = _IssueCollector()
    root = _as_object(config, "<root>", issues)
    if root is None:
        return ConfigValidationResult(config=None, issues=issues.items())

    normalized = _validate_root(root, issues)
    if issues.has_issues:
        return ConfigValidationResult(config=None, issues=issues.items())
    return ConfigValidationResult(config=normalized, issues=())


def assert_valid_config(config: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate config and raise ``ConfigValidationError`` on failure."""

    result = validate_config(config)
    if result.config is None:
        raise ConfigValidationError(result.issues)
    return result.config


def _validate_root(payload: Mapping[str, object], issues: _IssueCollector) -> dict[str, Any]:
    _reject_unknown_keys(payload, _SECTIONS, "", issues)
    _require_keys(payload, set(_SECTIONS), "", issues)

    out: dict[str, Any] = {}
    _section(
        payload,
        key="meta",
        path="",
        issues=issues,
        out=out,
        validator=lambda section, path: _validate_meta_section(section, path, issues),
    )
    for key, validator in _SECTION_VALIDATORS.items():
        _section(
            payload,
            key=key,
            path="",
            issues=issues,
            out=out,
            validator=lambda section, path, v=validator: v(section, path, issues, partial=False),
        )
    if "strict" in payload:
        parsed_strict = _as_strict(payload["strict"], "strict", issues)
        if parsed_strict is not None:
            out["strict"] = parsed_strict

    raw_profiles = payload.get("profiles")
    if raw_profiles is not None:
        profiles_obj = _as_object(raw_profiles, "profiles", issues)
        if profiles_obj is not None:
            out["profiles"] = _validate_profiles(profiles_obj, "profiles", issues)

    _validate_cross_fields(out, issues)
    return out


def _section(
    payload: Mapping[str, object],
    *,
    key: str,
    path: str,
    issues: _IssueCollector,
    validator: Callable[[dict[str, object], str], dict[str, Any]],
    out: dict[str, Any],
) -> None:
    raw = payload.get(key)
    if raw is None:
        return
    section_path = _join(path, key)
    section_obj = _as_object(raw, section_path, issues)
    if section_obj is None:
        return
    out[key] = validator(section_obj, section_path)


def _validate_meta_section(payload: Mapping[str, object], path: str, issues: _IssueCollector) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"schema_version"}, path, issues)
    _require_keys(payload, {"schema_version"}, path, issues)
    out: dict[str, Any] = {}
    if "schema_version" in payload:
        parsed = _as_int(payload["schema_version"], _join(path, "schema_version"), issues, minimum=1)
        if parsed is not None:
            out["schema_version"] = parsed
            if parsed != ConfigSchemaVersion:
                issues.add(_join(path, "schema_version"), migration_guidance(parsed))
    return out


def _validate_build(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    allowed = set(BuildSection.__annotations__)
    _reject_unknown_keys(payload, allowed, path, issues)
    if not partial:
        _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    for key in ("root", "source", "build_dir", "workdir"):
        if key in payload:
            parsed_path = _as_path_text(payload[key], _join(path, key), issues)
            if parsed_path is not None:
                out[key] = parsed_path
    for key in ("sitename", "repo", "commit"):
        if key in payload:
            parsed_text = _as_text(payload[key], _join(path, key), issues)
            if parsed_text is not None:
                out[key] = parsed_text
    if "highlightsig" in payload:
        parsed_flag = _as_bool(payload["highlightsig"], _join(path, "highlightsig"), issues)
        if parsed_flag is not None:
            out["highlightsig"] = parsed_flag
    if "modules" in payload:
        parsed_modules = _as_str_list(payload["modules"], _join(path, "modules"), issues)
        if parsed_modules is not None:
            for index, name in enumerate(parsed_modules):
                if not _MODULE_NAME_PATTERN.fullmatch(name):
                    issues.add(f"{_join(path, 'modules')}[{index}]", f"invalid module name {name!r}")
            out["modules"] = parsed_modules
    if "expand_first" in payload:
        parsed_first = _as_str_list(payload["expand_first"], _join(path, "expand_first"), issues)
        if parsed_first is not None:
            out["expand_first"] = parsed_first
    if "pages" in payload:
        parsed_pages = _as_page_entries(payload["pages"], _join(path, "pages"), issues)
        if parsed_pages is not None:
            out["pages"] = parsed_pages
    return out


def _validate_doctest(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    allowed = {"mode", "filters"}
    _reject_unknown_keys(payload, allowed, path, issues)
    if not partial:
        _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "mode" in payload:
        parsed_mode = _as_enum(payload["mode"], _join(path, "mode"), issues, allowed_values=DOCTEST_MODES)
        if parsed_mode is not None:
            out["mode"] = parsed_mode
    if "filters" in payload:
        parsed_filters = _as_filters(payload["filters"], _join(path, "filters"), issues)
        if parsed_filters is not None:
            out["filters"] = parsed_filters
    return out


def _validate_checks(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"checkdocs"}, path, issues)
    if not partial:
        _require_keys(payload, {"checkdocs"}, path, issues)
    out: dict[str, Any] = {}
    if "checkdocs" in payload:
        parsed = _as_enum(payload["checkdocs"], _join(path, "checkdocs"), issues, allowed_values=CHECKDOCS_MODES)
        if parsed is not None:
            out["checkdocs"] = parsed
    return out


def _validate_expansion(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    _reject_unknown_keys(payload, {"max_workers"}, path, issues)
    if not partial:
        _require_keys(payload, {"max_workers"}, path, issues)
    out: dict[str, Any] = {}
    if "max_workers" in payload:
        parsed = _as_int(payload["max_workers"], _join(path, "max_workers"), issues, minimum=1)
        if parsed is not None:
            out["max_workers"] = parsed
    return out


def _validate_observability(
    payload: Mapping[str, object],
    path: str,
    issues: _IssueCollector,
    *,
    partial: bool,
) -> dict[str, Any]:
    allowed = {"log_level", "log_dir", "structured_logs", "summary"}
    _reject_unknown_keys(payload, allowed, path, issues)
    if not partial:
        _require_keys(payload, allowed, path, issues)

    out: dict[str, Any] = {}
    if "log_level" in payload:
        parsed_level = _as_enum(payload["log_level"], _join(path, "log_level"), issues, allowed_values=LOG_LEVELS)
        if parsed_level is not None:
            out["log_level"] = parsed_level
    if "log_dir" in payload:
        parsed_dir = _as_path_text(payload["log_dir"], _join(path, "log_dir"), issues)
        if parsed_dir is not None:
            out["log_dir"] = parsed_dir
    for key in ("structured_logs", "summary"):
        if key in payload:
            parsed_flag = _as_bool(payload[key], _join(path, key), issues)
            if parsed_flag is not None:
                out[key] = parsed_flag
    return out


_SectionValidator = Callable[..., dict[str, Any]]

_SECTION_VALIDATORS: Final[dict[str, _SectionValidator]] = {
    "build": _validate_build,
    "doctest": _validate_doctest,
    "checks": _validate_checks,
    "expansion": _validate_expansion,
    "observability": _validate_observability,
}


def _validate_profiles(payload: Mapping[str, object], path: str, issues: _IssueCollector) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for profile_name in sorted(payload):
        profile_path = _join(path, profile_name)
        if not _PROFILE_NAME_PATTERN.fullmatch(profile_name):
            issues.add(profile_path, "profile name must match ^[a-z][a-z0-9_-]*$")
            continue
        profile_obj = _as_object(payload[profile_name], profile_path, issues)
        if profile_obj is None:
            continue
        out[profile_name] = _validate_profile_overlay(profile_obj, profile_path, issues)
    return out


def _validate_profile_overlay(payload: Mapping[str, object], path: str, issues: _IssueCollector) -> dict[str, Any]:
    _reject_unknown_keys(payload, _OVERLAY_SECTIONS, path, issues)

    out: dict[str, Any] = {}
    for section in sorted(_OVERLAY_SECTIONS):
        if section not in payload:
            continue
        section_path = _join(path, section)
        if section == "strict":
            parsed_strict = _as_strict(payload[section], section_path, issues)
            if parsed_strict is not None:
                out[section] = parsed_strict
            continue
        section_obj = _as_object(payload[section], section_path, issues)
        if section_obj is None:
            continue
        out[section] = _SECTION_VALIDATORS[section](section_obj, section_path, issues, partial=True)
    return out


def _validate_cross_fields(config: Mapping[str, Any], issues: _IssueCollector) -> None:
    build = config.get("build")
    if not isinstance(build, Mapping):
        return
    repo = build.get("repo")
    if isinstance(repo, str) and repo and "{path}" not in repo:
        issues.add("build.repo", "source URL template must contain '{path}'")
    seen: set[str] = set()
    for index, page in enumerate(build.get("expand_first", ())):
        if page in seen:
            issues.add(f"build.expand_first[{index}]", f"duplicate page {page!r}")
        seen.add(page)


def _as_object(value: object, path: str, issues: _IssueCollector) -> dict[str, object] | None:
    if not isinstance(value, Mapping):
        issues.add(path, f"expected object, got {type(value).__name__}")
        return None
    out: dict[str, object] = {}
    for key, item in value.items():
        if not isinstance(key, str):
            issues.add(path, f"object key must be string, got {type(key).__name__}")
            continue
        out[key] = item
    return out


def _as_str(value: object, path: str, issues: _IssueCollector) -> str | None:
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    parsed = value.strip()
    if not parsed:
        issues.add(path, "must not be empty")
        return None
    return parsed


def _as_text(value: object, path: str, issues: _IssueCollector) -> str | None:
    """Like ``_as_str`` but the empty string is a valid value."""
    if not isinstance(value, str):
        issues.add(path, f"expected string, got {type(value).__name__}")
        return None
    return value.strip()


def _as_path_text(value: object, path: str, issues: _IssueCollector) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if "\x00" in parsed:
        issues.add(path, "must not contain NUL bytes")
        return None
    return parsed


def _as_bool(value: object, path: str, issues: _IssueCollector) -> bool | None:
    if isinstance(value, bool):
        return value
    issues.add(path, f"expected boolean, got {type(value).__name__}")
    return None


def _as_int(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    minimum: int | None = None,
) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        issues.add(path, f"expected integer, got {type(value).__name__}")
        return None
    if minimum is not None and value < minimum:
        issues.add(path, f"must be >= {minimum}")
        return None
    return value


def _as_enum(
    value: object,
    path: str,
    issues: _IssueCollector,
    *,
    allowed_values: tuple[str, ...],
) -> str | None:
    parsed = _as_str(value, path, issues)
    if parsed is None:
        return None
    if parsed not in allowed_values:
        expected = ", ".join(sorted(allowed_values))
        issues.add(path, f"invalid value {parsed!r}; expected one of: {expected}")
        return None
    return parsed


def _as_str_list(value: object, path: str, issues: _IssueCollector) -> list[str] | None:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        issues.add(path, f"expected array of strings, got {type(value).__name__}")
        return None
    out: list[str] = []
    for index, item in enumerate(value):
        parsed = _as_str(item, f"{path}[{index}]", issues)
        if parsed is not None:
            out.append(parsed)
    return out


def _as_strict(value: object, path: str, issues: _IssueCollector) -> bool | list[str] | None:
    if isinstance(value, bool):
        return value
    parsed = _as_str_list(value, path, issues)
    if parsed is None:
        return None
    out: list[str] = []
    for index, name in enumerate(parsed):
        lowered = name.lower()
        if lowered not in DIAGNOSTIC_CATEGORY_NAMES:
            expected = ", ".join(DIAGNOSTIC_CATEGORY_NAMES)
            issues.add(f"{path}[{index}]", f"unknown diagnostic category {name!r}; expected one of: {expected}")
            continue
        if lowered not in out:
            out.append(lowered)
    return out


def _as_filters(value: object, path: str, issues: _IssueCollector) -> list[dict[str, str]] | None:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        issues.add(path, f"expected array, got {type(value).__name__}")
        return None
    out: list[dict[str, str]] = []
    for index, item in enumerate(value):
        item_path = f"{path}[{index}]"
        if isinstance(item, str):
            entry = {"pattern": item, "replacement": ""}
        else:
            obj = _as_object(item, item_path, issues)
            if obj is None:
                continue
            _reject_unknown_keys(obj, {"pattern", "replacement"}, item_path, issues)
            pattern = obj.get("pattern")
            if not isinstance(pattern, str) or not pattern:
                issues.add(_join(item_path, "pattern"), "missing required field")
                continue
            replacement = obj.get("replacement", "")
            if not isinstance(replacement, str):
                issues.add(_join(item_path, "replacement"), f"expected string, got {type(replacement).__name__}")
                continue
            entry = {"pattern": pattern, "replacement": replacement}
        try:
            re.compile(entry["pattern"])
        except re.error as exc:
            issues.add(item_path, f"invalid regular expression: {exc}")
            continue
        out.append(entry)
    return out


def _as_page_entries(value: object, path: str, issues: _IssueCollector) -> list[Any] | None:
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        issues.add(path, f"expected array, got {type(value).__name__}")
        return None
    out: list[Any] = []
    for index, item in enumerate(value):
        item_path = f"{path}[{index}]"
        if isinstance(item, str):
            parsed_page = _as_path_text(item, item_path, issues)
            if parsed_page is not None:
                out.append(parsed_page)
            continue
        obj = _as_object(item, item_path, issues)
        if obj is None:
            continue
        _reject_unknown_keys(obj, {"title", "page", "hidden", "children"}, item_path, issues)
        entry: dict[str, Any] = {}
        if "title" in obj:
            title = _as_str(obj["title"], _join(item_path, "title"), issues)
            if title is not None:
                entry["title"] = title
        if "page" in obj:
            page = _as_path_text(obj["page"], _join(item_path, "page"), issues)
            if page is not None:
                entry["page"] = page
        if "hidden" in obj:
            hidden = _as_bool(obj["hidden"], _join(item_path, "hidden"), issues)
            if hidden is not None:
                entry["hidden"] = hidden
        if "children" in obj:
            children = _as_page_entries(obj["children"], _join(item_path, "children"), issues)
            if children is not None:
                entry["children"] = children
        if "page" not in entry and "children" not in entry:
            issues.add(item_path, "page entry needs 'page' or 'children'")
            continue
        out.append(entry)
    return out


def _reject_unknown_keys(
    payload: Mapping[str, object],
    allowed: set[str] | frozenset[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(payload):
        if key not in allowed:
            issues.add(_join(path, key), "unknown field")


def _require_keys(
    payload: Mapping[str, object],
    required: set[str],
    path: str,
    issues: _IssueCollector,
) -> None:
    for key in sorted(required):
        if key not in payload:
            issues.add(_join(path, key), "missing required field")


def _join(path: str, key: str) -> str:
    if not path:
        return key
    return f"{path}.{key}"


def _merge_into(target: dict[str, Any], overlay: Mapping[str, object]) -> None:
    for key in sorted(overlay):
        value = overlay[key]
        if isinstance(value, Mapping):
            existing = target.get(key)
            if isinstance(existing, dict):
                _merge_into(existing, value)
            else:
                nested: dict[str, Any] = {}
                _merge_into(nested, value)
                target[key] = nested
        else:
            target[key] = copy.deepcopy(value)


def _deep_copy_mapping(value: Mapping[str, object]) -> dict[str, Any]:
    return {key: copy.deepcopy(value[key]) for key in sorted(value)}


__all__ = [
    "BUILTIN_PROFILE_NAMES",
    "CHECKDOCS_MODES",
    "DEFAULT_CONFIG",
    "DOCTEST_MODES",
    "PATH_FIELDS",
    "WORKDIR_BUILD",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DocloomConfig",
    "ProfileOverlay",
    "apply_profile_overlay",
    "assert_valid_config",
    "default_config",
    "merge_config",
    "migration_guidance",
    "validate_config",
]
