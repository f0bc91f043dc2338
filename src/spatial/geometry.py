"""
Spherical geometry helpers for cluster construction.

Provides the three primitives every builder relies on:
1. Haversine great-circle distance (meters)
2. Spherical mean centroid (average of unit vectors)
3. Cluster radius (distance from center to the farthest member)

The centroid is the *mean direction* of the member points, not the true
geographic center. For the cluster sizes handled here the difference is
negligible, and the computation stays stable close to the poles and the
antimeridian.
"""

from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np


Point = Tuple[float, float]
"""A ``(lat, lng)`` pair in decimal degrees."""

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000


def haversine_distance(a: Point, b: Point) -> float:
    """
    Great-circle distance between two points, in meters.

    Args:
        a: ``(lat, lng)`` of the first point
        b: ``(lat, lng)`` of the second point

    Returns:
        Distance in meters on a sphere of radius 6,371 km
    """
    lat1 = math.radians(a[0])
    lat2 = math.radians(b[0])
    dlat = math.radians(b[0] - a[0])
    dlng = math.radians(b[1] - a[1])

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    # Rounding can push h marginally past 1 for antipodal points
    h = min(1.0, max(0.0, h))
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def haversine_distance_km(a: Point, b: Point) -> float:
    """Great-circle distance between two points, in kilometres."""
    return haversine_distance(a, b) / 1000


def spherical_centroid(points: Sequence[Point]) -> Point:
    """
    Average center of ``points`` on the sphere.

    Each point is converted to a unit Cartesian vector, the vectors are
    averaged component-wise and the mean is converted back to latitude and
    longitude with ``atan2``.

    Args:
        points: Non-empty sequence of ``(lat, lng)`` pairs

    Returns:
        ``(lat, lng)`` of the mean direction, in degrees

    Raises:
        ValueError: If ``points`` is empty
    """
    if len(points) == 0:
        raise ValueError("Cannot compute the centroid of zero points")

    coords = np.radians(np.asarray(points, dtype=float))
    lat = coords[:, 0]
    lng = coords[:, 1]

    x = float(np.mean(np.cos(lat) * np.cos(lng)))
    y = float(np.mean(np.cos(lat) * np.sin(lng)))
    z = float(np.mean(np.sin(lat)))

    center_lng = math.atan2(y, x)
    hyp = math.sqrt(x * x + y * y)
    center_lat = math.atan2(z, hyp)

    return (math.degrees(center_lat), math.degrees(center_lng))


def cluster_radius(points: Sequence[Point], center: Point) -> float:
    """Distance in meters from ``center`` to the farthest of ``points``."""
    if len(points) == 0:
        return 0.0
    return max(haversine_distance(point, center) for point in points)
