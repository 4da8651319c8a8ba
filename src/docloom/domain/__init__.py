"""
docloom domain package public API.

File: src/docloom/domain/__init__.py

Purpose
- Re-export the document model, anchors, diagnostics and value objects.
- Keep the domain layer free of IO side effects.
"""

from docloom.domain.anchors import AnchorCollisionError, AnchorRegistry, slugify
from docloom.domain.diagnostics import DiagnosticLog, StrictPolicy
from docloom.domain.document import Document, Page, PageFrozenError, PageMeta
from docloom.domain.ids import generate_build_id, validate_build_id
from docloom.domain.models import (
    Anchor,
    AnchorKind,
    CodeFragment,
    CrossReferenceRequest,
    Diagnostic,
    DiagnosticCategory,
    DoctestMode,
    ExpectationKind,
    FragmentOrigin,
    OutputFilter,
    ReferenceKind,
    SourceLocation,
    TranscriptStep,
)
from docloom.domain.navigation import NavEntry, Navigation, NavNode, build_navigation

__all__ = [
    "Anchor",
    "AnchorCollisionError",
    "AnchorKind",
    "AnchorRegistry",
    "CodeFragment",
    "CrossReferenceRequest",
    "Diagnostic",
    "DiagnosticCategory",
    "DiagnosticLog",
    "DoctestMode",
    "Document",
    "ExpectationKind",
    "FragmentOrigin",
    "NavEntry",
    "NavNode",
    "Navigation",
    "OutputFilter",
    "Page",
    "PageFrozenError",
    "PageMeta",
    "ReferenceKind",
    "SourceLocation",
    "StrictPolicy",
    "TranscriptStep",
    "build_navigation",
    "generate_build_id",
    "slugify",
    "validate_build_id",
]
