"""
docloom config package public API.

File: src/docloom/config/__init__.py

Purpose
- Export config loading/validation entrypoints, the immutable ``BuildConfig`` and error types.

Functional requirements
- Support loading from ``docloom.toml`` + ``DOCLOOM_`` env overrides.
- Fail fast with clear structured validation/load errors.
"""

from docloom.config.loader import (
    ENV_PREFIX,
    ConfigLoadError,
    config_from_mapping,
    dump_effective_config,
    load_config,
    normalize_paths,
)
from docloom.config.schema import (
    BUILTIN_PROFILE_NAMES,
    DEFAULT_CONFIG,
    PATH_FIELDS,
    ConfigSchemaVersion,
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    DocloomConfig,
    apply_profile_overlay,
    assert_valid_config,
    default_config,
    merge_config,
    migration_guidance,
    validate_config,
)
from docloom.config.settings import BuildConfig, CheckDocs

__all__ = [
    "BUILTIN_PROFILE_NAMES",
    "BuildConfig",
    "CheckDocs",
    "ConfigLoadError",
    "ConfigSchemaVersion",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "DEFAULT_CONFIG",
    "DocloomConfig",
    "ENV_PREFIX",
    "PATH_FIELDS",
    "apply_profile_overlay",
    "assert_valid_config",
    "config_from_mapping",
    "default_config",
    "dump_effective_config",
    "load_config",
    "merge_config",
    "migration_guidance",
    "normalize_paths",
    "validate_config",
]
