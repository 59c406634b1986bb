from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from helpers.mesh_helper_functions import centroids_of, pairwise_distances
from mesh.mesh_manager import TrackingRegistry
from mesh.mesh_shapes.mesh_object import TrackedMesh
from mesh.mesh_trackers.assignment import (
    SENTINEL_COST,
    HungarianSolver,
    check_perfect_matching,
    validate_cost_matrix,
)
from mesh.mesh_trackers.errors import CostMatrixError

logger = logging.getLogger(__name__)

Solver = Callable[[np.ndarray], Sequence[Tuple[int, int]]]


@dataclass
class ReconcileResult:
    updated: List[int] = field(default_factory=list)
    absent: List[int] = field(default_factory=list)
    added: List[int] = field(default_factory=list)
    evicted: List[int] = field(default_factory=list)
    matches: List[Tuple[int, int]] = field(default_factory=list)
    cost_matrix: Optional[np.ndarray] = None
    bootstrap: bool = False


def build_cost_matrix(old_centroids: np.ndarray, new_centroids: np.ndarray,
                      max_displacement: Optional[float] = None) -> np.ndarray:
    """
    Padded N x N assignment matrix, N = max(N0, N1).
    [row] => old mesh, [col] => new mesh. Padding cells hold SENTINEL_COST.
    When max_displacement is given, real cells farther apart are raised to the sentinel too.
    """
    old_centroids = np.asarray(old_centroids, dtype=np.float64).reshape(-1, 2)
    new_centroids = np.asarray(new_centroids, dtype=np.float64).reshape(-1, 2)
    n0, n1 = len(old_centroids), len(new_centroids)
    n = max(n0, n1)

    m = np.full((n, n), SENTINEL_COST, dtype=np.float64)
    if n0 and n1:
        d = pairwise_distances(old_centroids, new_centroids)
        if not np.all(np.isfinite(d)):
            raise CostMatrixError("Centroid distances must be finite")
        if max_displacement is not None:
            d = np.where(d > max_displacement, SENTINEL_COST, d)
        m[:n0, :n1] = np.minimum(d, SENTINEL_COST)
    return m


class MeshTracker:
    """
    Frame-to-frame correspondence engine.

    Matches the meshes already in a TrackingRegistry against the meshes
    detected in the current frame by centroid distance, then updates the
    registry in place: matched meshes take the new geometry, unmatched old
    meshes accumulate absence, unmatched new meshes are registered.
    """

    def __init__(
        self,
        solver: Optional[Solver] = None,
        gate_displacement: bool = False,
        max_absence: Optional[int] = None,
        debug: bool = False,
    ):
        if max_absence is not None and max_absence < 0:
            raise ValueError(f"max_absence must be >= 0, got {max_absence}")
        self.solver = solver or HungarianSolver()
        self.gate_displacement = gate_displacement
        self.max_absence = max_absence
        self.debug = debug

    def reconcile(
        self,
        registry: TrackingRegistry,
        new_meshes: Sequence[TrackedMesh],
        max_displacement: float,
    ) -> ReconcileResult:
        with registry.lock:
            return self._reconcile(registry, list(new_meshes), max_displacement)

    def _reconcile(self, registry: TrackingRegistry, new_meshes: List[TrackedMesh],
                   max_displacement: float) -> ReconcileResult:
        old_ids = registry.ids()
        old_meshes = registry.meshes()
        n0, n1 = len(old_meshes), len(new_meshes)

        if self.debug:
            logger.info(f"...Aligning mesh: {n0} --> {n1}")

        # No previously tracked meshes: every detection starts a new track
        if n0 == 0:
            result = ReconcileResult(bootstrap=True)
            for mesh in new_meshes:
                result.added.append(registry.add(mesh))
            if self.debug:
                logger.info(f"... {len(result.added)} new mesh(es)")
            return result

        gate = max_displacement if self.gate_displacement else None
        cost = build_cost_matrix(centroids_of(old_meshes), centroids_of(new_meshes), gate)
        cost = validate_cost_matrix(cost)
        n = cost.shape[0]

        if self.debug:
            logger.info(f"[M] {n} x {n}")

        pairs = check_perfect_matching(self.solver(cost), n)

        # Classify every pair before touching the registry
        to_update: List[Tuple[int, int]] = []
        to_mark: List[int] = []
        pending_add: List[int] = []
        for i0, i1 in pairs:
            if i0 >= n0 and i1 >= n1:
                continue
            elif i0 >= n0:
                pending_add.append(i1)
            elif i1 >= n1:
                to_mark.append(i0)
            elif cost[i0, i1] >= SENTINEL_COST:
                # Forced into a pairing beyond the displacement bound
                to_mark.append(i0)
                pending_add.append(i1)
            else:
                to_update.append((i0, i1))

        result = ReconcileResult(matches=pairs, cost_matrix=cost)
        for i0, i1 in to_update:
            old_meshes[i0].update(new_meshes[i1])
            result.updated.append(old_ids[i0])
        for i0 in to_mark:
            old_meshes[i0].mark_absent()
            result.absent.append(old_ids[i0])
        for i1 in sorted(pending_add):
            result.added.append(registry.add(new_meshes[i1]))

        if self.max_absence is not None:
            result.evicted = registry.evict(self.max_absence)

        if self.debug:
            logger.info(f"... {len(result.updated)} mesh(es) updated")
            logger.info(f"... {len(result.absent)} mesh(es) absent")
            logger.info(f"... {len(result.added)} new mesh(es)")
            if result.evicted:
                logger.info(f"... {len(result.evicted)} mesh(es) evicted")

        return result
