"""
Tests for mesh construction, splitting and the TrackedMesh record.

Usage:
    python -m pytest test_mesh_factory.py -v
"""
import numpy as np
import pytest

from helpers.mesh_helper_functions import (
    delaunay_edges,
    edge_lengths,
    pairwise_distances,
    split_by_edge_length,
)
from mesh.mesh_factory import MeshFactory
from mesh.mesh_shapes.mesh_object import TrackedMesh

CLUSTER_A = [[0.0, 0.0], [5.0, 0.0], [0.0, 5.0]]
CLUSTER_B = [[100.0, 100.0], [105.0, 100.0], [100.0, 105.0]]


def test_pairwise_distances():
    d = pairwise_distances([[0, 0], [3, 0]], [[3, 4], [0, 0]])
    np.testing.assert_allclose(d, [[5.0, 0.0], [4.0, 3.0]])


def test_triangle_has_three_edges():
    edges = delaunay_edges(CLUSTER_A)
    assert sorted(map(tuple, edges.tolist())) == [(0, 1), (0, 2), (1, 2)]


def test_small_point_sets():
    assert delaunay_edges([]).shape == (0, 2)
    assert delaunay_edges([[1, 1]]).shape == (0, 2)
    assert delaunay_edges([[1, 1], [4, 5]]).tolist() == [[0, 1]]


def test_collinear_points_are_chained():
    edges = delaunay_edges([[20, 0], [0, 0], [10, 0]])
    assert sorted(map(tuple, np.sort(edges, axis=1).tolist())) == [(0, 2), (1, 2)]


def test_build_triangulates_points():
    mesh = MeshFactory().build(CLUSTER_A + CLUSTER_B)
    assert mesh.num_points == 6
    assert len(mesh.edges) >= 9
    np.testing.assert_allclose(mesh.centroid, [310.0 / 6, 310.0 / 6], atol=1e-4)


def test_build_rejects_empty_point_set():
    with pytest.raises(ValueError):
        MeshFactory().build([])


def test_build_and_split_of_empty_point_set_gives_no_meshes():
    assert MeshFactory().build_and_split(np.empty((0, 2)), 50.0) == []


def test_split_separates_distant_clusters():
    factory = MeshFactory()
    parts = factory.split(factory.build(CLUSTER_A + CLUSTER_B), 20.0)

    assert len(parts) == 2
    assert [p.num_points for p in parts] == [3, 3]
    np.testing.assert_allclose(parts[0].centroid, [5.0 / 3, 5.0 / 3], atol=1e-5)
    np.testing.assert_allclose(parts[1].centroid, [100 + 5.0 / 3, 100 + 5.0 / 3], atol=1e-5)
    for p in parts:
        assert len(p.edges) >= 2
        assert np.all(edge_lengths(p.points, p.edges) <= 20.0)


def test_split_with_generous_bound_keeps_one_mesh():
    factory = MeshFactory()
    parts = factory.split(factory.build(CLUSTER_A + CLUSTER_B), 1000.0)
    assert len(parts) == 1
    assert parts[0].num_points == 6


def test_split_isolates_every_vertex_when_bound_is_tiny():
    parts = split_by_edge_length(np.array([[0, 0], [10, 0], [20, 0]]), np.array([[0, 1], [1, 2]]), 1.0)
    assert [len(pts) for pts, _ in parts] == [1, 1, 1]
    assert all(len(edges) == 0 for _, edges in parts)


def test_split_reindexes_edges_per_component():
    pts = np.array([[0, 0], [100, 0], [1, 0], [101, 0]], dtype=np.float32)
    edges = np.array([[0, 2], [1, 3], [2, 1]])
    parts = split_by_edge_length(pts, edges, 5.0)
    assert len(parts) == 2
    assert parts[0][1].tolist() == [[0, 1]]
    assert parts[1][1].tolist() == [[0, 1]]
    np.testing.assert_allclose(parts[1][0], [[100, 0], [101, 0]])


def test_split_rejects_non_positive_bound():
    with pytest.raises(ValueError):
        TrackedMesh(points=CLUSTER_A).split(0)


def test_tracked_mesh_validates_points():
    with pytest.raises(ValueError):
        TrackedMesh(points=[])
    with pytest.raises(ValueError):
        TrackedMesh(points=[[0.0, np.nan]])
    with pytest.raises(ValueError):
        TrackedMesh(points=[[0, 0], [1, 1]], edges=[[0, 2]])


def test_update_replaces_geometry_and_records_history():
    mesh = TrackedMesh(points=CLUSTER_A, history_size=2)
    mesh.length_of_absence = 5

    for dx in (10.0, 20.0, 30.0):
        moved = TrackedMesh(points=np.array(CLUSTER_A) + [dx, 0.0], edges=[[0, 1]])
        mesh.update(moved)

    assert mesh.length_of_absence == 0
    assert mesh.edges.tolist() == [[0, 1]]
    np.testing.assert_allclose(mesh.centroid, [30 + 5.0 / 3, 5.0 / 3], atol=1e-5)
    assert len(mesh.history) == 2
    assert mesh.history[-1][0] == pytest.approx(20 + 5.0 / 3, abs=1e-4)


def test_update_does_not_alias_the_source_geometry():
    mesh = TrackedMesh(points=CLUSTER_A)
    other = TrackedMesh(points=CLUSTER_B)
    mesh.update(other)
    other.points[0] = [-1, -1]
    assert mesh.points[0].tolist() == [100.0, 100.0]


def test_duplicate_vertices_stay_in_their_mesh():
    factory = MeshFactory()
    parts = factory.build_and_split(CLUSTER_A + [[5.0, 0.0]], 20.0)
    assert len(parts) == 1
    assert parts[0].num_points == 4
