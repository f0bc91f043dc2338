"""
Merging of nearby clusters into a coarser generation.

The centers of existing clusters are treated as points and partitioned once
more. Every resulting group becomes a merged cluster, with no size filter,
and the clusters it absorbed can be retired.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from src.spatial.geometry import cluster_radius, spherical_centroid
from src.spatial.partition import DensityPartitioner, HaversineDBSCAN
from src.storage.models import Cluster, Generation
from src.storage.store import ClusterStore

from .config import MergeConfig


logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Outcome of a merge pass."""

    merged: List[Cluster] = field(default_factory=list)
    """Merged clusters created, in creation order."""

    num_inputs: int = 0
    """Cluster centers fed to the partitioner."""

    retired: int = 0
    """Original clusters deleted after being absorbed."""

    used_identifiers: bool = True
    """False when retirement fell back to exact coordinate matching."""


class ClusterMerger:
    """
    Re-clusters the centers of stored clusters into the merged generation.

    Args:
        store: Cluster store read from and written to
        partitioner: Density partitioner (defaults to ``HaversineDBSCAN``)
        config: Merge parameters (defaults to ``MergeConfig()``)
    """

    def __init__(
        self,
        store: ClusterStore,
        partitioner: Optional[DensityPartitioner] = None,
        config: Optional[MergeConfig] = None,
    ):
        self.store = store
        self.partitioner = partitioner or HaversineDBSCAN()
        self.config = config or MergeConfig()

    def merge(
        self,
        epsilon: Optional[float] = None,
        min_points: Optional[int] = None,
        keep_existing: Optional[bool] = None,
        retire_originals: Optional[bool] = None,
    ) -> MergeResult:
        """
        Run a single merge pass.

        Args:
            epsilon: DBSCAN epsilon in km (defaults to the configured value)
            min_points: DBSCAN min_points (defaults to the configured value)
            keep_existing: Keep earlier merged clusters instead of clearing them
            retire_originals: Delete the clusters absorbed by each merged cluster

        Returns:
            MergeResult with the created clusters and the number retired
        """
        cfg = self.config
        epsilon = cfg.epsilon if epsilon is None else epsilon
        min_points = cfg.min_points if min_points is None else min_points
        keep_existing = cfg.keep_existing if keep_existing is None else keep_existing
        retire_originals = cfg.retire_originals if retire_originals is None else retire_originals

        if not keep_existing:
            self.store.clear(Generation.MERGED)

        originals = self.store.query(cfg.source_generations)
        points = [cluster.center for cluster in originals]
        partition = self.partitioner.partition(points, epsilon, min_points)

        members = partition.result_indices()
        use_ids = members is not None and all(c.id is not None for c in originals)
        outcome = MergeResult(num_inputs=len(points), used_identifiers=use_ids)

        skip_first = len(partition.clusters[-1]) > 0
        for i, group in enumerate(partition.results):
            if i == 0 and skip_first:
                continue
            if len(group) == 0:
                continue

            center = spherical_centroid(group)
            radius = cluster_radius(group, center)
            outcome.merged.append(self.store.create(center, radius, Generation.MERGED))

            if not retire_originals:
                continue
            if use_ids:
                outcome.retired += self.store.delete(originals[j].id for j in members[i])
            else:
                # Output of this pass can share a center with its inputs
                created_ids = [c.id for c in outcome.merged]
                outcome.retired += self.store.delete_matching(
                    cfg.source_generations, group, exclude_ids=created_ids
                )

        logger.info(
            "Merged %d cluster centers into %d clusters (%d retired)",
            outcome.num_inputs, len(outcome.merged), outcome.retired,
        )
        return outcome
