"""
docloom pipeline package public API.

File: src/docloom/pipeline/__init__.py

Purpose
- Export the build entry points, the stage protocol and registry, and page source stores.
"""

from docloom.pipeline.orchestrator import BuildOrchestrator, BuildOutcome, build, run_doctests
from docloom.pipeline.sources import DirectorySourceStore, MemorySourceStore, SourceStore, as_source_store
from docloom.pipeline.stages import (
    BuildServices,
    BuildStage,
    FunctionStage,
    Renderer,
    StageRegistry,
    StageResult,
    StageStatus,
    default_stage_registry,
)

__all__ = [
    "BuildOrchestrator",
    "BuildOutcome",
    "BuildServices",
    "BuildStage",
    "DirectorySourceStore",
    "FunctionStage",
    "MemorySourceStore",
    "Renderer",
    "SourceStore",
    "StageRegistry",
    "StageResult",
    "StageStatus",
    "as_source_store",
    "build",
    "default_stage_registry",
    "run_doctests",
]
