"""Cluster records and generation tags."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from src.spatial.geometry import Point


class Generation(IntEnum):
    """
    Independent sets of stored clusters.

    Values match the ``cluster_type`` column of the persisted table.
    """
    VENUE_DERIVED = 0
    NON_INTERSECTING = 1
    MERGED = 2

    @classmethod
    def coerce(cls, value) -> "Generation":
        """Accept an enum member, its integer value or its name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "_")
            if key in cls.__members__:
                return cls[key]
            raise ValueError(f"Unknown generation '{value}'")
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise ValueError(f"Unknown generation {value!r}") from None


@dataclass(frozen=True)
class Cluster:
    """A persisted cluster: a center, the distance to its farthest member and its generation."""

    lat: float
    lng: float
    radius: float
    cluster_type: Generation
    id: Optional[int] = None

    @property
    def center(self) -> Point:
        return (self.lat, self.lng)

    @property
    def generation(self) -> Generation:
        return self.cluster_type

    def to_dict(self) -> dict:
        """Row representation matching the stored columns."""
        return {
            "id": self.id,
            "lat": self.lat,
            "lng": self.lng,
            "radius": self.radius,
            "cluster_type": int(self.cluster_type),
        }
