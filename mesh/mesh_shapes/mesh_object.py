from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import numpy as np
import copy

from helpers.mesh_helper_functions import split_by_edge_length


@dataclass(eq=False)
class TrackedMesh:
    """
    A 2D point mesh followed across frames.

    points: (N, 2) float32 vertex coordinates
    edges:  (E, 2) int32 vertex index pairs
    The centroid is the vertex mean and is recomputed whenever the geometry is replaced.
    """
    points: np.ndarray
    edges: Optional[np.ndarray] = None
    track_id: Optional[int] = None
    length_of_absence: int = 0
    history: List[Tuple[float, float]] = field(default_factory=list)
    history_size: int = 32

    def __post_init__(self):
        pts = np.asarray(self.points, dtype=np.float32)
        if pts.size == 0:
            raise ValueError("TrackedMesh requires at least one point.")
        if pts.size % 2 != 0:
            raise ValueError(f"TrackedMesh points must be 2D, got shape {pts.shape}")
        pts = pts.reshape(-1, 2)
        if not np.all(np.isfinite(pts)):
            raise ValueError("TrackedMesh points must be finite.")
        self.points = pts

        if self.edges is None:
            self.edges = np.empty((0, 2), dtype=np.int32)
        else:
            self.edges = np.asarray(self.edges, dtype=np.int32).reshape(-1, 2)
            if len(self.edges) and (self.edges.min() < 0 or self.edges.max() >= len(pts)):
                raise ValueError("TrackedMesh edge refers to a missing vertex.")

        self._centroid = self.points.mean(axis=0)

    @property
    def centroid(self) -> np.ndarray:
        return self._centroid

    @property
    def num_points(self) -> int:
        return len(self.points)

    def update(self, other: "TrackedMesh") -> None:
        """Takes over the geometry of a matched detection and records the movement."""
        self.history.append((float(self._centroid[0]), float(self._centroid[1])))
        if len(self.history) > self.history_size:
            del self.history[: len(self.history) - self.history_size]

        self.points = other.points.copy()
        self.edges = other.edges.copy()
        self._centroid = self.points.mean(axis=0)
        self.length_of_absence = 0

    def mark_absent(self) -> None:
        self.length_of_absence += 1

    def split(self, max_edge_length: float) -> List["TrackedMesh"]:
        """Splits into connected sub-meshes whose edges are all <= max_edge_length."""
        return [
            TrackedMesh(points=pts, edges=edges, history_size=self.history_size)
            for pts, edges in split_by_edge_length(self.points, self.edges, max_edge_length)
        ]

    def copy(self) -> "TrackedMesh":
        return copy.deepcopy(self)
