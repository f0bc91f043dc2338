"""
Pytest configuration and shared fixtures for geo-cluster tests.

This file provides:
- A scripted density partitioner for deterministic builder tests
- Venue point fixtures for end-to-end DBSCAN runs
- Common test utilities
"""

from typing import List, Sequence, Tuple

import pytest
import pandas as pd

from src.spatial.partition import PartitionResult
from src.storage.store import DataFrameClusterStore


# Meters per degree of longitude on the equator
METERS_PER_DEGREE = 111194.93


# ==============================================================================
# Geometry Helpers
# ==============================================================================

def equator_pair(lng: float, radius_m: float) -> List[Tuple[float, float]]:
    """Two equator points whose spherical center is (0, lng) at ``radius_m`` from each."""
    half_span = radius_m / METERS_PER_DEGREE
    return [(0.0, lng - half_span), (0.0, lng + half_span)]


def venue_grid(lat: float, lng: float, n: int = 4, step: float = 0.001) -> List[Tuple[float, float]]:
    """``n`` x ``n`` grid of points starting at (lat, lng)."""
    return [(lat + i * step, lng + j * step) for i in range(n) for j in range(n)]


# ==============================================================================
# Scripted Partitioner
# ==============================================================================

class ScriptedPartitioner:
    """
    Mock partitioner returning pre-scripted groups.

    Each response is a ``(groups, outliers)`` tuple consumed in call order.
    Every call is recorded as ``(points, epsilon, min_points)``.
    """

    def __init__(self, responses: Sequence[Tuple[list, list]]):
        self.responses = list(responses)
        self.calls = []

    def partition(self, points, epsilon, min_points):
        self.calls.append((list(points), epsilon, min_points))
        if not self.responses:
            return PartitionResult()
        groups, outliers = self.responses.pop(0)
        results = ([list(outliers)] if outliers else []) + [list(g) for g in groups]
        return PartitionResult(
            clusters=[list(g) for g in groups] + [list(outliers)],
            results=results,
        )


@pytest.fixture
def scripted_partitioner():
    """Factory for scripted partitioners."""
    return ScriptedPartitioner


# ==============================================================================
# Store and Point Fixtures
# ==============================================================================

@pytest.fixture
def store() -> DataFrameClusterStore:
    """Empty cluster store."""
    return DataFrameClusterStore()


@pytest.fixture
def tokyo_grid() -> List[Tuple[float, float]]:
    """16 venues on a ~100m grid near Tokyo Station (one ~215m cluster)."""
    return venue_grid(35.6812, 139.7671)


@pytest.fixture
def sparse_venues() -> List[Tuple[float, float]]:
    """Three venues 222m apart, too sparse for the venue-derived defaults."""
    return [(35.700, 139.75), (35.702, 139.75), (35.704, 139.75)]


@pytest.fixture
def venues_df(tokyo_grid, sparse_venues) -> pd.DataFrame:
    """Venue table with coordinates and names."""
    points = tokyo_grid + sparse_venues
    return pd.DataFrame({
        "name": [f"Venue {i}" for i in range(len(points))],
        "lat": [p[0] for p in points],
        "lng": [p[1] for p in points],
    })


# ==============================================================================
# Utilities
# ==============================================================================

def assert_approx_equal(a: float, b: float, tolerance: float = 0.01):
    """Assert two floats are approximately equal."""
    assert abs(a - b) < tolerance, f"{a} != {b} (tolerance={tolerance})"
