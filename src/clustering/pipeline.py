"""
End-to-end clustering pipeline.

Runs the three stages in order against one store:
1. venue-derived clusters from the point source (recursive builder)
2. non-intersecting clusters from the same points (overlap-aware builder)
3. merged clusters from the centers of everything built so far

A stage returning False does not stop the pipeline; the failure is recorded
in the report and whatever the stage persisted is kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from src.spatial.partition import DensityPartitioner, HaversineDBSCAN
from src.storage.models import Generation
from src.storage.sources import PointSource
from src.storage.store import ClusterStore

from .builder import BuildDiagnostics, OverlapAwareClusterBuilder, RecursiveClusterBuilder
from .config import PipelineConfig
from .merger import ClusterMerger, MergeResult


logger = logging.getLogger(__name__)


@dataclass
class PipelineReport:
    """Per-stage outcome of a pipeline run."""

    venue_success: bool = True
    venue_diagnostics: Optional[BuildDiagnostics] = None
    non_intersecting_success: bool = True
    non_intersecting_diagnostics: Optional[BuildDiagnostics] = None
    merge_result: Optional[MergeResult] = None
    counts: Dict[str, int] = field(default_factory=dict)
    """Clusters per generation after the run."""

    @property
    def success(self) -> bool:
        return self.venue_success and self.non_intersecting_success


class ClusterPipeline:
    """Builds every cluster generation from a single point source."""

    def __init__(
        self,
        store: ClusterStore,
        point_source: PointSource,
        partitioner: Optional[DensityPartitioner] = None,
        config: Optional[PipelineConfig] = None,
    ):
        self.store = store
        self.config = config or PipelineConfig()
        partitioner = partitioner or HaversineDBSCAN()

        self.venue_builder = RecursiveClusterBuilder(
            store, point_source, partitioner, self.config.venue
        )
        self.non_intersecting_builder = OverlapAwareClusterBuilder(
            store, point_source, partitioner, self.config.non_intersecting
        )
        self.merger = ClusterMerger(store, partitioner, self.config.merge)

    def run(self, merge: bool = True) -> PipelineReport:
        """Run the stages in order and report how each went."""
        report = PipelineReport()

        report.venue_success, report.venue_diagnostics = (
            self.venue_builder.build_with_diagnostics()
        )
        if not report.venue_success:
            logger.warning("Venue-derived stage exhausted its parameters; keeping partial results")

        report.non_intersecting_success, report.non_intersecting_diagnostics = (
            self.non_intersecting_builder.build_with_diagnostics()
        )
        if not report.non_intersecting_success:
            logger.warning("Non-intersecting stage exhausted its parameters; keeping partial results")

        if merge:
            report.merge_result = self.merger.merge()

        report.counts = {
            generation.name.lower(): len(self.store.query([generation]))
            for generation in Generation
        }
        logger.info("Pipeline finished: %s", report.counts)
        return report
