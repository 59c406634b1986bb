from typing import List, Tuple

import numpy as np
from scipy.optimize import linear_sum_assignment

from mesh.mesh_trackers.errors import CostMatrixError, SolverContractError

# Cost of a pairing that involves a padding row/column.
SENTINEL_COST = float(np.finfo(np.float32).max)


def validate_cost_matrix(cost: np.ndarray) -> np.ndarray:
    cost = np.asarray(cost, dtype=np.float64)
    if cost.ndim != 2 or cost.shape[0] != cost.shape[1]:
        raise CostMatrixError(f"Cost matrix must be square, got shape {cost.shape}")
    if np.isnan(cost).any():
        raise CostMatrixError("Cost matrix contains NaN")
    if (cost < 0).any():
        raise CostMatrixError("Cost matrix contains negative distances")
    return cost


def check_perfect_matching(pairs: List[Tuple[int, int]], n: int) -> List[Tuple[int, int]]:
    """Every row and every column of an n x n matrix must appear exactly once."""
    pairs = [(int(r), int(c)) for r, c in pairs]
    rows = sorted(r for r, _ in pairs)
    cols = sorted(c for _, c in pairs)
    expected = list(range(n))
    if rows != expected or cols != expected:
        raise SolverContractError(
            f"Solver returned {len(pairs)} pair(s) that do not form a perfect matching over {n}x{n}"
        )
    return pairs


def _finite_sentinel(cost: np.ndarray) -> np.ndarray:
    """
    Replaces sentinel cells with a big-M larger than the sum of any n real
    cells. The optimal matching is unchanged and real distances are no longer
    lost in float64 sums of float32-max values.
    """
    big = cost >= SENTINEL_COST
    if not big.any():
        return cost
    real = cost[~big]
    finite_max = float(real.max()) if real.size else 0.0
    return np.where(big, (finite_max + 1.0) * (cost.shape[0] + 1), cost)


class HungarianSolver:
    """Minimum-cost perfect matching on a square, non-negative cost matrix."""

    def solve(self, cost: np.ndarray) -> List[Tuple[int, int]]:
        cost = validate_cost_matrix(cost)
        if cost.shape[0] == 0:
            return []
        rows, cols = linear_sum_assignment(_finite_sentinel(cost))
        return list(zip(rows.tolist(), cols.tolist()))

    def __call__(self, cost: np.ndarray) -> List[Tuple[int, int]]:
        return self.solve(cost)
