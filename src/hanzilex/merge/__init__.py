"""Merge engine for combining parsed source records."""

from hanzilex.merge.engine import MergeEngine, MergeStats, SourceBatch

__all__ = ["MergeEngine", "MergeStats", "SourceBatch"]
