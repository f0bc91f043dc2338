"""
Point sources feeding the first iteration of a build.

A point source is any zero-argument callable returning a list of
``(lat, lng)`` pairs. The list may be empty.
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Sequence

import pandas as pd

from src.spatial.geometry import Point

from .models import Generation


PointSource = Callable[[], List[Point]]


class StaticPointSource:
    """Serves a fixed list of points."""

    def __init__(self, points: Iterable[Sequence[float]]):
        self._points = [(float(p[0]), float(p[1])) for p in points]

    def __call__(self) -> List[Point]:
        return list(self._points)


class DataFramePointSource:
    """
    Serves coordinates from a DataFrame (e.g. venues).

    Rows with a missing latitude or longitude are skipped.
    """

    def __init__(self, df: pd.DataFrame, lat_col: str = "lat", lng_col: str = "lng"):
        if lat_col not in df.columns or lng_col not in df.columns:
            raise ValueError(f"Missing '{lat_col}' or '{lng_col}' columns")
        self._df = df
        self.lat_col = lat_col
        self.lng_col = lng_col

    def __call__(self) -> List[Point]:
        coords = self._df[[self.lat_col, self.lng_col]].dropna().astype(float)
        return [(lat, lng) for lat, lng in coords.itertuples(index=False, name=None)]


class ClusterCenterSource:
    """Serves the centers of clusters already built by a previous stage."""

    def __init__(self, store, generations: Iterable[Generation]):
        self._store = store
        self._generations = list(generations)

    def __call__(self) -> List[Point]:
        return [cluster.center for cluster in self._store.query(self._generations)]
