"""
Cluster storage.

The builders only depend on the ``ClusterStore`` protocol. The bundled
``DataFrameClusterStore`` keeps clusters in a pandas DataFrame whose columns
(``lat``, ``lng``, ``radius``, ``cluster_type``) match the persisted table,
and can round-trip that table through CSV.

Note that a generation rebuild is a clear followed by inserts: it is
at-least-once, not atomic. Callers must serialise access per generation.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence, Union

import pandas as pd

from src.spatial.geometry import Point

from .models import Cluster, Generation


logger = logging.getLogger(__name__)

COLUMNS = ["id", "lat", "lng", "radius", "cluster_type"]


class ClusterStore(Protocol):
    """Persistence contract used by the builders and the merger."""

    def clear(self, generation: Generation) -> int:
        ...

    def create(self, center: Point, radius: float, generation: Generation) -> Cluster:
        ...

    def query(self, generations: Iterable[Generation]) -> List[Cluster]:
        ...

    def delete(self, cluster_ids: Iterable[int]) -> int:
        ...

    def delete_matching(
        self,
        generation: Iterable[Generation],
        points: Sequence[Point],
        exclude_ids: Iterable[int] = (),
    ) -> int:
        ...


def _as_generations(generations) -> List[int]:
    if isinstance(generations, (Generation, int, str)):
        generations = [generations]
    return sorted({int(Generation.coerce(g)) for g in generations})


class DataFrameClusterStore:
    """In-memory cluster table backed by a pandas DataFrame."""

    def __init__(self, frame: Optional[pd.DataFrame] = None):
        if frame is None:
            frame = pd.DataFrame(columns=COLUMNS)
        missing = set(COLUMNS[1:]) - set(frame.columns)
        if missing:
            raise ValueError(f"Missing required cluster columns: {sorted(missing)}")

        frame = frame.copy().reset_index(drop=True)
        if "id" not in frame.columns:
            frame["id"] = range(1, len(frame) + 1)
        elif frame["id"].isna().any():
            # Number only the missing ids, after the highest existing one
            missing_ids = frame["id"].isna()
            start = int(frame["id"].max()) + 1 if (~missing_ids).any() else 1
            frame.loc[missing_ids, "id"] = range(start, start + int(missing_ids.sum()))
        self._frame = frame[COLUMNS].astype(
            {"id": "int64", "lat": "float64", "lng": "float64", "radius": "float64", "cluster_type": "int64"}
        ).reset_index(drop=True)
        self._next_id = int(self._frame["id"].max()) + 1 if len(self._frame) else 1

    def __len__(self) -> int:
        return len(self._frame)

    @property
    def frame(self) -> pd.DataFrame:
        """Copy of the underlying table."""
        return self._frame.copy()

    @staticmethod
    def _row_to_cluster(row) -> Cluster:
        return Cluster(
            lat=float(row.lat),
            lng=float(row.lng),
            radius=float(row.radius),
            cluster_type=Generation(int(row.cluster_type)),
            id=int(row.id),
        )

    def clear(self, generation: Generation) -> int:
        mask = self._frame["cluster_type"].isin(_as_generations(generation))
        removed = int(mask.sum())
        self._frame = self._frame[~mask].reset_index(drop=True)
        logger.debug("Cleared %d clusters of generation %s", removed, generation)
        return removed

    def create(self, center: Point, radius: float, generation: Generation) -> Cluster:
        cluster = Cluster(
            lat=float(center[0]),
            lng=float(center[1]),
            radius=float(radius),
            cluster_type=Generation.coerce(generation),
            id=self._next_id,
        )
        self._next_id += 1
        row = pd.DataFrame([cluster.to_dict()], columns=COLUMNS).astype(self._frame.dtypes.to_dict())
        self._frame = row if self._frame.empty else pd.concat([self._frame, row], ignore_index=True)
        return cluster

    def query(self, generations: Iterable[Generation]) -> List[Cluster]:
        sub = self._frame[self._frame["cluster_type"].isin(_as_generations(generations))]
        return [self._row_to_cluster(row) for row in sub.sort_values("id").itertuples(index=False)]

    def delete(self, cluster_ids: Iterable[int]) -> int:
        ids = {int(i) for i in cluster_ids}
        mask = self._frame["id"].isin(ids)
        removed = int(mask.sum())
        self._frame = self._frame[~mask].reset_index(drop=True)
        return removed

    def delete_matching(
        self,
        generation: Iterable[Generation],
        points: Sequence[Point],
        exclude_ids: Iterable[int] = (),
    ) -> int:
        """
        Delete clusters whose center equals one of ``points`` exactly.

        Clusters whose id is in ``exclude_ids`` are never deleted.
        """
        if len(points) == 0:
            return 0
        wanted = {(float(lat), float(lng)) for lat, lng in points}
        keep = {int(i) for i in exclude_ids}
        in_generation = self._frame["cluster_type"].isin(_as_generations(generation))
        in_generation &= ~self._frame["id"].isin(keep)
        matches = [
            (lat, lng) in wanted
            for lat, lng in zip(self._frame["lat"], self._frame["lng"])
        ]
        mask = in_generation & pd.Series(matches, index=self._frame.index, dtype=bool)
        removed = int(mask.sum())
        self._frame = self._frame[~mask].reset_index(drop=True)
        return removed

    def count(self, generation: Optional[Generation] = None) -> int:
        if generation is None:
            return len(self._frame)
        return int(self._frame["cluster_type"].isin(_as_generations(generation)).sum())

    def to_csv(self, path: Union[str, Path]) -> str:
        """Write the cluster table to ``path`` and return the path written."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self._frame.to_csv(path, index=False)
        return str(path)

    @classmethod
    def from_csv(cls, path: Union[str, Path]) -> "DataFrameClusterStore":
        """Load a cluster table previously written by :meth:`to_csv`."""
        return cls(pd.read_csv(path))
