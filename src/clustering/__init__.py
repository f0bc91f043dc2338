"""
src/clustering: Recursive DBSCAN cluster builders and the merge pass.

Builders keep each generation's clusters inside a target radius band,
re-partitioning oversized groups with shrinking parameters.
"""

from .builder import (
    BuildDiagnostics,
    OverlapAwareClusterBuilder,
    RecursiveClusterBuilder,
)
from .config import (
    MergeConfig,
    OverlapBuilderConfig,
    PipelineConfig,
    RecursiveBuilderConfig,
)
from .merger import ClusterMerger, MergeResult
from .pipeline import ClusterPipeline, PipelineReport

__all__ = [
    "BuildDiagnostics",
    "OverlapAwareClusterBuilder",
    "RecursiveClusterBuilder",
    "MergeConfig",
    "OverlapBuilderConfig",
    "PipelineConfig",
    "RecursiveBuilderConfig",
    "ClusterMerger",
    "MergeResult",
    "ClusterPipeline",
    "PipelineReport",
]
