import cv2
import numpy as np
from typing import Iterable, Optional, Tuple
from mesh.mesh_shapes.mesh_object import TrackedMesh


def _pt(p) -> Tuple[int, int]:
    return int(p[0]), int(p[1])


class Renderer:
    def __init__(self,
                 edge_color=(100, 100, 200),
                 vertex_color=(0, 0, 240),
                 track_color=(0, 255, 0),
                 absent_color=(0, 165, 255),
                 vertex_radius: int = 2,
                 font_scale: float = 0.45):
        """
        :param edge_color: colour of split mesh edges (BGR)
        :param vertex_color: colour of split mesh vertices (BGR)
        :param track_color: label colour of tracks matched this frame
        :param absent_color: label colour of tracks currently absent
        """
        self.edge_color = edge_color
        self.vertex_color = vertex_color
        self.track_color = track_color
        self.absent_color = absent_color
        self.vertex_radius = vertex_radius
        self.font_scale = font_scale

    def draw_mesh(self, canvas: np.ndarray, mesh: TrackedMesh,
                  max_edge_length: Optional[float] = None) -> None:
        pts = np.round(mesh.points).astype(np.int32)
        for a, b in mesh.edges:
            if max_edge_length is not None:
                if np.linalg.norm(mesh.points[a] - mesh.points[b]) > max_edge_length:
                    continue
            cv2.line(canvas, _pt(pts[a]), _pt(pts[b]), self.edge_color, 1)
        for p in pts:
            cv2.circle(canvas, _pt(p), self.vertex_radius, self.vertex_color, -1)

    def draw_track(self, canvas: np.ndarray, mesh: TrackedMesh) -> None:
        cx, cy = (int(round(v)) for v in mesh.centroid)
        color = self.track_color if mesh.length_of_absence == 0 else self.absent_color

        # Movement trail
        if len(mesh.history) > 0:
            trail = np.array(list(mesh.history) + [(cx, cy)], dtype=np.int32).reshape(-1, 1, 2)
            cv2.polylines(canvas, [trail], False, color, 1, cv2.LINE_AA)

        cv2.circle(canvas, (cx, cy), 4, color, -1)
        label = f"#{mesh.track_id}"
        if mesh.length_of_absence:
            label += f" ({mesh.length_of_absence})"
        cv2.putText(canvas, label, (cx + 6, cy - 6), cv2.FONT_HERSHEY_SIMPLEX,
                    self.font_scale, color, 1, cv2.LINE_AA)

    def render_frame(self, frame: np.ndarray,
                     split_meshes: Iterable[TrackedMesh] = (),
                     tracked_meshes: Iterable[TrackedMesh] = (),
                     max_edge_length: Optional[float] = None) -> np.ndarray:
        """Draws on a copy; the input frame is never modified."""
        canvas = frame.copy()
        for mesh in split_meshes:
            self.draw_mesh(canvas, mesh, max_edge_length)
        for mesh in tracked_meshes:
            self.draw_track(canvas, mesh)
        return canvas

    @staticmethod
    def put_status(canvas: np.ndarray, text: str, origin: Tuple[int, int] = (12, 24)) -> None:
        cv2.putText(canvas, text, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.6, (255, 255, 255), 2, cv2.LINE_AA)
        cv2.putText(canvas, text, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.6, (30, 30, 30), 1, cv2.LINE_AA)
