import threading
from collections import OrderedDict
from typing import Dict, Iterator, List, Optional

from mesh.mesh_shapes.mesh_object import TrackedMesh


class TrackingRegistry:
    """
    Ordered arena of every tracked mesh, keyed by a stable integer id.

    Ids are handed out monotonically and never reused, so removing a mesh
    never changes the identity of another one. `lock` must be held by
    whoever mutates the registry for the whole of one reconcile call.
    """

    def __init__(self):
        self.lock = threading.RLock()
        self._meshes: "OrderedDict[int, TrackedMesh]" = OrderedDict()
        self._next_id = 0

    def add(self, mesh: TrackedMesh) -> int:
        with self.lock:
            track_id = self._next_id
            self._next_id += 1
            mesh.track_id = track_id
            mesh.length_of_absence = 0
            self._meshes[track_id] = mesh
            return track_id

    def get(self, track_id: int) -> Optional[TrackedMesh]:
        return self._meshes.get(track_id)

    def remove(self, track_id: int) -> TrackedMesh:
        with self.lock:
            if track_id not in self._meshes:
                raise KeyError(f"No tracked mesh with id={track_id}")
            return self._meshes.pop(track_id)

    def evict(self, max_absence: int) -> List[int]:
        """Removes meshes absent for more than max_absence consecutive frames."""
        with self.lock:
            stale = [tid for tid, m in self._meshes.items() if m.length_of_absence > max_absence]
            for tid in stale:
                del self._meshes[tid]
            return stale

    def ids(self) -> List[int]:
        return list(self._meshes.keys())

    def meshes(self) -> List[TrackedMesh]:
        return list(self._meshes.values())

    def snapshot(self) -> Dict[int, TrackedMesh]:
        """Deep copies for readers on other threads (renderer)."""
        with self.lock:
            return OrderedDict((tid, m.copy()) for tid, m in self._meshes.items())

    def clear(self) -> None:
        with self.lock:
            self._meshes.clear()

    @property
    def next_id(self) -> int:
        return self._next_id

    def __len__(self) -> int:
        return len(self._meshes)

    def __iter__(self) -> Iterator[TrackedMesh]:
        return iter(list(self._meshes.values()))

    def __contains__(self, track_id) -> bool:
        return track_id in self._meshes
