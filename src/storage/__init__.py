"""Cluster persistence and point sources."""

from .models import Cluster, Generation
from .sources import (
    ClusterCenterSource,
    DataFramePointSource,
    PointSource,
    StaticPointSource,
)
from .store import COLUMNS, ClusterStore, DataFrameClusterStore

__all__ = [
    "Cluster",
    "Generation",
    "ClusterCenterSource",
    "DataFramePointSource",
    "PointSource",
    "StaticPointSource",
    "COLUMNS",
    "ClusterStore",
    "DataFrameClusterStore",
]
