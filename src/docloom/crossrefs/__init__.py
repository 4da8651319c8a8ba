"""Cross-reference resolution over a fully expanded document."""

from docloom.crossrefs.resolver import CrossReferenceResolver, ResolutionReport

__all__ = ["CrossReferenceResolver", "ResolutionReport"]
