"""
Tests for the id-keyed tracking registry.

Usage:
    python -m pytest test_tracking_registry.py -v
"""
import threading

import pytest

from mesh.mesh_manager import TrackingRegistry
from mesh.mesh_shapes.mesh_object import TrackedMesh


def point_mesh(x, y):
    return TrackedMesh(points=[[x, y]])


def test_ids_are_stable_and_never_reused():
    registry = TrackingRegistry()
    a = registry.add(point_mesh(0, 0))
    b = registry.add(point_mesh(1, 1))
    registry.remove(a)
    c = registry.add(point_mesh(2, 2))

    assert (a, b, c) == (0, 1, 2)
    assert registry.ids() == [1, 2]
    assert registry.get(b).track_id == 1
    assert a not in registry and c in registry


def test_add_resets_absence_counter():
    registry = TrackingRegistry()
    mesh = point_mesh(0, 0)
    mesh.length_of_absence = 7
    registry.add(mesh)
    assert mesh.length_of_absence == 0


def test_remove_unknown_id_raises():
    with pytest.raises(KeyError):
        TrackingRegistry().remove(42)


def test_iteration_follows_insertion_order():
    registry = TrackingRegistry()
    for x in (5, 3, 9):
        registry.add(point_mesh(x, 0))
    assert [m.centroid[0] for m in registry] == [5, 3, 9]
    assert len(registry) == 3


def test_evict_drops_only_meshes_beyond_threshold():
    registry = TrackingRegistry()
    for absence in (0, 2, 3, 10):
        tid = registry.add(point_mesh(absence, 0))
        registry.get(tid).length_of_absence = absence

    assert registry.evict(2) == [2, 3]
    assert registry.ids() == [0, 1]


def test_snapshot_is_detached_from_live_state():
    registry = TrackingRegistry()
    tid = registry.add(point_mesh(1, 1))
    snap = registry.snapshot()

    snap[tid].length_of_absence = 99
    snap[tid].points[0] = [50, 50]

    live = registry.get(tid)
    assert live.length_of_absence == 0
    assert live.points[0].tolist() == [1.0, 1.0]


def test_clear_keeps_id_sequence():
    registry = TrackingRegistry()
    registry.add(point_mesh(0, 0))
    registry.clear()
    assert len(registry) == 0
    assert registry.add(point_mesh(0, 0)) == 1


def test_lock_is_reentrant_and_blocks_other_writers():
    registry = TrackingRegistry()
    added = []

    with registry.lock:
        registry.add(point_mesh(0, 0))
        t = threading.Thread(target=lambda: added.append(registry.add(point_mesh(1, 1))))
        t.start()
        t.join(timeout=0.1)
        assert added == []

    t.join(timeout=1.0)
    assert added == [1]
