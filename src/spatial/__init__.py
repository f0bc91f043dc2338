"""
src/spatial: Spherical geometry and density partitioning.

This module provides haversine distance, spherical centroids and a
DBSCAN-backed density partitioner over great-circle distance.
"""

from .geometry import (
    EARTH_RADIUS_KM,
    EARTH_RADIUS_M,
    Point,
    cluster_radius,
    haversine_distance,
    haversine_distance_km,
    spherical_centroid,
)
from .partition import (
    NOISE_LABEL,
    DensityPartitioner,
    HaversineDBSCAN,
    PartitionResult,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "EARTH_RADIUS_M",
    "Point",
    "cluster_radius",
    "haversine_distance",
    "haversine_distance_km",
    "spherical_centroid",
    "NOISE_LABEL",
    "DensityPartitioner",
    "HaversineDBSCAN",
    "PartitionResult",
]
