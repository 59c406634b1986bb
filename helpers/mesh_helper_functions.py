from typing import List, Sequence, Tuple

import numpy as np
from scipy.sparse import coo_matrix
from scipy.sparse.csgraph import connected_components
from scipy.spatial import Delaunay, QhullError


def as_points(points) -> np.ndarray:
    if points is None:
        return np.empty((0, 2), dtype=np.float32)
    pts = np.asarray(points, dtype=np.float32)
    if pts.size == 0:
        return np.empty((0, 2), dtype=np.float32)
    return pts.reshape(-1, 2)


def centroids_of(meshes: Sequence) -> np.ndarray:
    if len(meshes) == 0:
        return np.empty((0, 2), dtype=np.float64)
    return np.stack([np.asarray(m.centroid, dtype=np.float64) for m in meshes], axis=0)


def pairwise_distances(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Euclidean distance between every row of a (M,2) and every row of b (N,2) -> (M,N)."""
    a = np.asarray(a, dtype=np.float64).reshape(-1, 2)
    b = np.asarray(b, dtype=np.float64).reshape(-1, 2)
    return np.linalg.norm(a[:, np.newaxis, :] - b[np.newaxis, :, :], axis=2)


def _chain_edges(points: np.ndarray) -> np.ndarray:
    # Degenerate (collinear / coincident) input: link the points in lexicographic order
    order = np.lexsort((points[:, 1], points[:, 0]))
    return np.stack([order[:-1], order[1:]], axis=1).astype(np.int32)


def delaunay_edges(points) -> np.ndarray:
    """Unique undirected edges of the Delaunay triangulation, as (E,2) index pairs."""
    pts = as_points(points)
    n = len(pts)
    if n < 2:
        return np.empty((0, 2), dtype=np.int32)
    if n == 2:
        return np.array([[0, 1]], dtype=np.int32)

    try:
        tri = Delaunay(pts.astype(np.float64))
    except QhullError:
        return _chain_edges(pts)

    simplices = tri.simplices
    e = np.concatenate([simplices[:, [0, 1]], simplices[:, [1, 2]], simplices[:, [0, 2]]], axis=0)
    if len(tri.coplanar):
        # duplicates left out of the triangulation hang off their nearest vertex
        e = np.concatenate([e, tri.coplanar[:, [0, 2]]], axis=0)
    e = np.sort(e, axis=1)
    return np.unique(e, axis=0).astype(np.int32)


def edge_lengths(points: np.ndarray, edges: np.ndarray) -> np.ndarray:
    if len(edges) == 0:
        return np.empty((0,), dtype=np.float64)
    p = np.asarray(points, dtype=np.float64)
    return np.linalg.norm(p[edges[:, 0]] - p[edges[:, 1]], axis=1)


def split_by_edge_length(points: np.ndarray, edges: np.ndarray,
                         max_edge_length: float) -> List[Tuple[np.ndarray, np.ndarray]]:
    """
    Drops every edge longer than max_edge_length and returns the connected
    components as (points, edges) pairs with edges re-indexed per component.
    Components are ordered by their smallest original vertex index.
    """
    if max_edge_length <= 0:
        raise ValueError(f"max_edge_length must be positive, got {max_edge_length}")

    pts = as_points(points)
    n = len(pts)
    if n == 0:
        return []

    edges = np.asarray(edges, dtype=np.int32).reshape(-1, 2)
    keep = edges[edge_lengths(pts, edges) <= max_edge_length] if len(edges) else edges

    graph = coo_matrix(
        (np.ones(len(keep), dtype=np.int8), (keep[:, 0], keep[:, 1])),
        shape=(n, n),
    )
    n_comp, labels = connected_components(graph, directed=False)

    # connected_components labels in order of first appearance, so label order
    # already follows the smallest vertex index
    parts = []
    for c in range(n_comp):
        idx = np.flatnonzero(labels == c)
        remap = np.full(n, -1, dtype=np.int32)
        remap[idx] = np.arange(len(idx), dtype=np.int32)
        sub = keep[(labels[keep[:, 0]] == c)] if len(keep) else keep
        parts.append((pts[idx].copy(), remap[sub].reshape(-1, 2)))
    return parts
