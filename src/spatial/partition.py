"""
Density partitioning of geographic points with DBSCAN.

This module defines the contract the cluster builders consume:
1. ``PartitionResult`` - groups, outlier bucket and per-point labels
2. ``DensityPartitioner`` - anything that can partition points
3. ``HaversineDBSCAN`` - default implementation backed by scikit-learn

Output ordering follows the classic DBSCAN convention used by the builders:
``results`` lists the outlier bucket first *only if* there are outliers,
followed by each density group in label order. ``clusters`` keeps the groups
in label order with the outlier bucket last, so ``clusters[-1]`` is always the
outlier bucket (empty when every point was clustered).
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence

import numpy as np
from sklearn.cluster import DBSCAN

from .geometry import EARTH_RADIUS_KM, Point


logger = logging.getLogger(__name__)

NOISE_LABEL = -1


@dataclass
class PartitionResult:
    """Outcome of a single partitioning call."""

    clusters: List[List[Point]] = field(default_factory=lambda: [[]])
    """Groups in label order; the last entry is the outlier bucket."""

    results: List[List[Point]] = field(default_factory=list)
    """Outlier bucket first (only when non-empty), then every group."""

    labels: Optional[np.ndarray] = None
    """Label per input point (-1 for outliers), aligned with the input order."""

    @property
    def outliers(self) -> List[Point]:
        return self.clusters[-1]

    @property
    def groups(self) -> List[List[Point]]:
        return self.clusters[:-1]

    @property
    def num_groups(self) -> int:
        return len(self.clusters) - 1

    def result_indices(self) -> Optional[List[List[int]]]:
        """
        Input positions of the points in each ``results`` entry.

        Returns None when the partitioner did not report per-point labels.
        """
        if self.labels is None:
            return None

        by_label: Dict[int, List[int]] = {}
        for index, label in enumerate(self.labels):
            by_label.setdefault(int(label), []).append(index)

        ordered = sorted(label for label in by_label if label != NOISE_LABEL)
        if NOISE_LABEL in by_label:
            ordered.insert(0, NOISE_LABEL)
        return [by_label[label] for label in ordered]

    @classmethod
    def from_labels(cls, points: Sequence[Point], labels: np.ndarray) -> "PartitionResult":
        """Assemble a result from a DBSCAN-style label array."""
        by_label: Dict[int, List[Point]] = {}
        outliers: List[Point] = []
        for point, label in zip(points, labels):
            if label == NOISE_LABEL:
                outliers.append(point)
            else:
                by_label.setdefault(int(label), []).append(point)

        groups = [by_label[label] for label in sorted(by_label)]
        results = ([outliers] if outliers else []) + groups
        return cls(clusters=groups + [outliers], results=results, labels=np.asarray(labels))


class DensityPartitioner(Protocol):
    """Groups points into dense neighbourhoods plus an outlier set."""

    def partition(
        self,
        points: Sequence[Point],
        epsilon: float,
        min_points: int,
    ) -> PartitionResult:
        ...


class HaversineDBSCAN:
    """
    DBSCAN over great-circle distance.

    ``epsilon`` is expressed in kilometres and converted to radians for
    scikit-learn's haversine metric. ``min_points`` is the neighbour count a
    point needs to seed a group, counting the point itself, so
    ``min_points=1`` makes every point a core point.

    This departs from the classic "neighbours other than the point" reading:
    ``min_points=7`` asks for 6 other points within ``epsilon``. The merge
    pass relies on it, since an isolated center must form its own group at
    ``min_points=1``.
    """

    def __init__(self, algorithm: str = "ball_tree"):
        self.algorithm = algorithm

    @staticmethod
    def eps_radians(epsilon_km: float) -> float:
        """Convert an epsilon in km into the radian distance DBSCAN expects."""
        if epsilon_km <= 0:
            # Only coincident points are neighbours
            return sys.float_info.min
        return epsilon_km / EARTH_RADIUS_KM

    def partition(
        self,
        points: Sequence[Point],
        epsilon: float,
        min_points: int,
    ) -> PartitionResult:
        if len(points) == 0:
            return PartitionResult(labels=np.empty(0, dtype=int))

        X = np.radians(np.asarray(points, dtype=float))
        clusterer = DBSCAN(
            eps=self.eps_radians(epsilon),
            min_samples=max(1, int(min_points)),
            metric="haversine",
            algorithm=self.algorithm,
        )
        labels = clusterer.fit_predict(X)

        result = PartitionResult.from_labels(list(points), labels)
        logger.debug(
            "DBSCAN eps=%.4fkm min_points=%d on %d points: %d groups, %d outliers",
            epsilon, min_points, len(points), result.num_groups, len(result.outliers),
        )
        return result
