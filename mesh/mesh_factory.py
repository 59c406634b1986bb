import logging
from typing import List

from helpers.mesh_helper_functions import as_points, delaunay_edges
from mesh.mesh_shapes.mesh_object import TrackedMesh

logger = logging.getLogger(__name__)


class MeshFactory:
    """Builds a triangulated point mesh from detected vertices and cuts it into sub-meshes."""

    def __init__(self, history_size: int = 32):
        self.history_size = history_size

    def build(self, points) -> TrackedMesh:
        pts = as_points(points)
        if len(pts) == 0:
            raise ValueError("Cannot build a mesh without vertices.")
        return TrackedMesh(points=pts, edges=delaunay_edges(pts), history_size=self.history_size)

    def split(self, mesh: TrackedMesh, max_edge_length: float) -> List[TrackedMesh]:
        return mesh.split(max_edge_length)

    def build_and_split(self, points, max_edge_length: float) -> List[TrackedMesh]:
        """Empty vertex sets give no meshes rather than an error."""
        pts = as_points(points)
        if len(pts) == 0:
            return []
        parts = self.split(self.build(pts), max_edge_length)
        logger.debug(f"Split {len(pts)} vertices into {len(parts)} mesh(es) (max edge {max_edge_length:.1f})")
        return parts
