"""Configuration for the cluster builders and the merger."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

from src.storage.models import Generation


@dataclass
class RecursiveBuilderConfig:
    """Configuration for the venue-derived (recursive) builder."""

    epsilon: float = 0.15
    """Initial DBSCAN neighbourhood distance, in km."""

    min_points: int = 7
    """Initial DBSCAN neighbour count needed to seed a group, the point itself included."""

    recursion: bool = True
    """Re-partition oversized groups with shrinking parameters."""

    epsilon_step: float = 0.025
    """Amount epsilon shrinks by on each recursive call."""

    min_points_step: int = 1
    """Amount min_points shrinks by while epsilon is being shrunk (0 holds it)."""

    reset_epsilon: float = 0.3
    """Epsilon restored once it has decayed to zero while min_points remains."""

    reset_min_points_step: Optional[int] = None
    """Amount min_points shrinks by when epsilon is reset (defaults to ``min_points_step``)."""

    max_radius: float = 900.0
    """Size ceiling: groups wider than this are re-partitioned."""

    min_radius: float = 125.0
    """Groups narrower than this are dropped."""

    generation: Generation = Generation.VENUE_DERIVED
    """Generation the accepted clusters are stored under."""

    def __post_init__(self):
        self.generation = Generation.coerce(self.generation)
        if self.epsilon < 0:
            raise ValueError(f"epsilon must be >= 0, got {self.epsilon}")
        if self.min_points < 0:
            raise ValueError(f"min_points must be >= 0, got {self.min_points}")
        if self.reset_min_points_step is None:
            self.reset_min_points_step = self.min_points_step
        # min_points must shrink on reset or the reset branch would recurse forever
        if self.epsilon_step <= 0 or self.min_points_step < 0 or self.reset_min_points_step < 1:
            raise ValueError(
                "epsilon_step must be > 0, min_points_step >= 0 and reset_min_points_step >= 1"
            )
        if self.min_radius > self.max_radius:
            raise ValueError(
                f"min_radius ({self.min_radius}) cannot exceed max_radius ({self.max_radius})"
            )


@dataclass
class OverlapBuilderConfig(RecursiveBuilderConfig):
    """Configuration for the non-intersecting (overlap-aware) builder."""

    epsilon: float = 0.3
    min_points: int = 2
    epsilon_step: float = 0.1
    generation: Generation = Generation.NON_INTERSECTING

    overlap_factor: float = 0.9
    """Candidates closer than ``overlap_factor * (r1 + r2)`` to an existing cluster overlap it."""

    compare_generations: Tuple[Generation, ...] = (
        Generation.VENUE_DERIVED,
        Generation.NON_INTERSECTING,
    )
    """Generations a candidate is checked against before being accepted."""

    def __post_init__(self):
        super().__post_init__()
        self.compare_generations = tuple(Generation.coerce(g) for g in self.compare_generations)
        if self.overlap_factor <= 0:
            raise ValueError(f"overlap_factor must be > 0, got {self.overlap_factor}")


@dataclass
class MergeConfig:
    """Configuration for merging cluster centers into a coarser generation."""

    epsilon: float = 0.3
    """DBSCAN neighbourhood distance between cluster centers, in km."""

    min_points: int = 1
    """DBSCAN neighbour count; 1 lets an isolated center form its own group."""

    keep_existing: bool = False
    """Keep previously merged clusters instead of clearing them first."""

    retire_originals: bool = True
    """Delete the clusters absorbed into a merged cluster."""

    source_generations: Tuple[Generation, ...] = field(
        default_factory=lambda: tuple(Generation)
    )
    """Generations whose centers are merged."""

    def __post_init__(self):
        if isinstance(self.source_generations, (Generation, int, str)):
            self.source_generations = (self.source_generations,)
        self.source_generations = tuple(Generation.coerce(g) for g in self.source_generations)
        if self.epsilon < 0:
            raise ValueError(f"epsilon must be >= 0, got {self.epsilon}")
        if self.min_points < 0:
            raise ValueError(f"min_points must be >= 0, got {self.min_points}")


@dataclass
class PipelineConfig:
    """Parameters for every stage of the clustering pipeline."""

    venue: RecursiveBuilderConfig = field(default_factory=RecursiveBuilderConfig)
    non_intersecting: OverlapBuilderConfig = field(default_factory=OverlapBuilderConfig)
    merge: MergeConfig = field(default_factory=MergeConfig)
