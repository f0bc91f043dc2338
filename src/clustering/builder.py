"""
Recursive DBSCAN cluster builders.

Both builders partition a point list, compute each group's spherical center
and radius, and keep the groups whose radius falls inside the acceptance
band. A group wider than the size ceiling is re-partitioned on its own with
shrinking parameters:

1. ``epsilon > 0`` and ``min_points > 0``: shrink epsilon by one step and
   min_points by ``min_points_step``
2. ``epsilon == 0`` and ``min_points > 0``: reset epsilon and shrink
   min_points by ``reset_min_points_step``
3. anything else: parameters are exhausted, the branch gives up and the
   build reports failure

The first iteration clears the builder's generation from the store, so a
top-level run replaces the previous result. The clear and the inserts are
not atomic.

Radii are compared in the unit ``haversine_distance`` returns (meters).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from src.spatial.geometry import Point, cluster_radius, haversine_distance, spherical_centroid
from src.spatial.partition import DensityPartitioner, HaversineDBSCAN
from src.storage.models import Cluster
from src.storage.sources import PointSource
from src.storage.store import ClusterStore

from .config import OverlapBuilderConfig, RecursiveBuilderConfig


logger = logging.getLogger(__name__)


@dataclass
class BuildDiagnostics:
    """Counters collected over one top-level build, recursion included."""

    groups_seen: int = 0
    """Groups returned by the partitioner (outliers excluded)."""

    clusters_created: int = 0
    """Clusters persisted."""

    dropped_small: int = 0
    """Groups discarded for being narrower than the acceptance band."""

    rejected_overlap: int = 0
    """In-band groups rejected for overlapping an existing cluster."""

    recursive_calls: int = 0
    """Re-partitions triggered by oversized groups."""

    max_depth: int = 1
    """Deepest iteration reached."""

    exhausted_branches: int = 0
    """Oversized groups that could not be split any further."""

    created: List[Cluster] = field(default_factory=list)
    """Clusters persisted during the build, in creation order."""


class RecursiveClusterBuilder:
    """
    Builds venue-derived clusters, re-partitioning any that are too large.

    Args:
        store: Cluster store the results are written to
        point_source: Callable supplying the points of the first iteration
        partitioner: Density partitioner (defaults to ``HaversineDBSCAN``)
        config: Builder parameters (defaults to ``RecursiveBuilderConfig()``)
    """

    config_class = RecursiveBuilderConfig

    def __init__(
        self,
        store: ClusterStore,
        point_source: Optional[PointSource] = None,
        partitioner: Optional[DensityPartitioner] = None,
        config: Optional[RecursiveBuilderConfig] = None,
    ):
        self.store = store
        self.point_source = point_source
        self.partitioner = partitioner or HaversineDBSCAN()
        self.config = config or self.config_class()

    def build(
        self,
        points: Optional[Sequence[Point]] = None,
        epsilon: Optional[float] = None,
        min_points: Optional[int] = None,
        iteration: int = 1,
    ) -> bool:
        """
        Build this builder's generation.

        Args:
            points: Points to partition; ``None`` reads the point source
            epsilon: Starting epsilon (defaults to the configured value)
            min_points: Starting min_points (defaults to the configured value)
            iteration: 1 clears the generation first; deeper values do not

        Returns:
            False if any oversized group exhausted the parameters, else True.
            Clusters accepted before a failure stay persisted.
        """
        success, _ = self.build_with_diagnostics(points, epsilon, min_points, iteration)
        return success

    def build_with_diagnostics(
        self,
        points: Optional[Sequence[Point]] = None,
        epsilon: Optional[float] = None,
        min_points: Optional[int] = None,
        iteration: int = 1,
    ) -> Tuple[bool, BuildDiagnostics]:
        """Same as :meth:`build`, also returning the collected diagnostics."""
        epsilon = self.config.epsilon if epsilon is None else epsilon
        min_points = self.config.min_points if min_points is None else min_points

        diagnostics = BuildDiagnostics(max_depth=iteration)
        success = self._build(points, epsilon, min_points, iteration, diagnostics)

        logger.info(
            "Built %s clusters: %d created from %d groups (%d recursive calls, depth %d)%s",
            self.config.generation.name.lower(),
            diagnostics.clusters_created,
            diagnostics.groups_seen,
            diagnostics.recursive_calls,
            diagnostics.max_depth,
            "" if success else f", {diagnostics.exhausted_branches} exhausted",
        )
        return success, diagnostics

    def _initial_points(self) -> List[Point]:
        if self.point_source is None:
            return []
        return list(self.point_source())

    def _build(
        self,
        points: Optional[Sequence[Point]],
        epsilon: float,
        min_points: int,
        iteration: int,
        diagnostics: BuildDiagnostics,
    ) -> bool:
        if iteration == 1:
            removed = self.store.clear(self.config.generation)
            logger.debug("Cleared %d %s clusters", removed, self.config.generation.name.lower())

        if points is None:
            points = self._initial_points()

        diagnostics.max_depth = max(diagnostics.max_depth, iteration)
        result = self.partitioner.partition(points, epsilon, min_points)

        # Outliers come first in ``results`` only when there are any
        skip_first = len(result.clusters[-1]) > 0

        success = True
        for i, group in enumerate(result.results):
            if i == 0 and skip_first:
                continue
            if not isinstance(group, (list, tuple)) or len(group) == 0:
                continue

            diagnostics.groups_seen += 1
            center = spherical_centroid(group)
            radius = cluster_radius(group, center)

            if not self.config.recursion:
                self._accept_without_recursion(center, radius, diagnostics)
                continue

            if radius > self.config.max_radius:
                next_params = self._next_parameters(epsilon, min_points)
                if next_params is None:
                    diagnostics.exhausted_branches += 1
                    logger.warning(
                        "Cannot split %d points (radius %.1f) any further at eps=%s min_points=%d",
                        len(group), radius, epsilon, min_points,
                    )
                    return False

                next_epsilon, next_min_points = next_params
                diagnostics.recursive_calls += 1
                logger.debug(
                    "Radius %.1f > %.1f at iteration %d, re-running %d points with eps=%s min_points=%d",
                    radius, self.config.max_radius, iteration, len(group), next_epsilon, next_min_points,
                )
                if not self._build(list(group), next_epsilon, next_min_points, iteration + 1, diagnostics):
                    success = False
            elif radius >= self.config.min_radius:
                self._accept_in_band(center, radius, diagnostics)
            else:
                diagnostics.dropped_small += 1

        return success

    def _next_parameters(self, epsilon: float, min_points: int) -> Optional[Tuple[float, int]]:
        """Parameters for re-partitioning an oversized group, or None when exhausted."""
        if epsilon > 0 and min_points > 0:
            # Rounded so repeated subtraction lands on exactly zero
            next_epsilon = max(0.0, round(epsilon - self.config.epsilon_step, 6))
            return next_epsilon, max(0, min_points - self.config.min_points_step)
        if epsilon == 0 and min_points > 0:
            return self.config.reset_epsilon, max(0, min_points - self.config.reset_min_points_step)
        return None

    def _create(self, center: Point, radius: float, diagnostics: BuildDiagnostics) -> Cluster:
        cluster = self.store.create(center, radius, self.config.generation)
        diagnostics.clusters_created += 1
        diagnostics.created.append(cluster)
        logger.debug("Created cluster at (%.6f, %.6f) radius %.1f", center[0], center[1], radius)
        return cluster

    def _accept_without_recursion(self, center: Point, radius: float, diagnostics: BuildDiagnostics):
        self._create(center, radius, diagnostics)

    def _accept_in_band(self, center: Point, radius: float, diagnostics: BuildDiagnostics):
        self._create(center, radius, diagnostics)


class OverlapAwareClusterBuilder(RecursiveClusterBuilder):
    """
    Builds non-intersecting clusters.

    Follows the same recursion as :class:`RecursiveClusterBuilder`, but a
    candidate is only stored if it does not overlap any cluster of the
    compared generations (venue-derived and non-intersecting by default).
    Two clusters overlap when their centers are closer than
    ``overlap_factor * (r1 + r2)``.
    """

    config_class = OverlapBuilderConfig

    def find_overlap(self, center: Point, radius: float) -> Optional[Cluster]:
        """Return the first stored cluster overlapping the candidate, if any."""
        for existing in self.store.query(self.config.compare_generations):
            distance = haversine_distance(existing.center, center)
            if distance < self.config.overlap_factor * (existing.radius + radius):
                return existing
        return None

    def _accept_if_clear(self, center: Point, radius: float, diagnostics: BuildDiagnostics):
        overlapping = self.find_overlap(center, radius)
        if overlapping is not None:
            diagnostics.rejected_overlap += 1
            logger.debug(
                "Rejected cluster at (%.6f, %.6f): overlaps cluster %s", center[0], center[1], overlapping.id
            )
            return
        if radius > self.config.min_radius:
            self._create(center, radius, diagnostics)
        else:
            diagnostics.dropped_small += 1

    def _accept_without_recursion(self, center: Point, radius: float, diagnostics: BuildDiagnostics):
        self._accept_if_clear(center, radius, diagnostics)

    def _accept_in_band(self, center: Point, radius: float, diagnostics: BuildDiagnostics):
        self._accept_if_clear(center, radius, diagnostics)
