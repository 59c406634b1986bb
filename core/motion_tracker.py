"""Per-frame motion tracking: detect -> mesh -> split -> reconcile -> render."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from core.tracker_config import TrackerConfig
from detection.feature_detector import FeatureDetector
from helpers.renderer import Renderer
from mesh.mesh_factory import MeshFactory
from mesh.mesh_manager import TrackingRegistry
from mesh.mesh_shapes.mesh_object import TrackedMesh
from mesh.mesh_trackers.errors import TrackingError
from mesh.mesh_trackers.mesh_tracker import MeshTracker, ReconcileResult

logger = logging.getLogger(__name__)


@dataclass
class FrameReport:
    """What happened to one frame."""
    idx: int
    num_vertices: int = 0
    num_meshes: int = 0
    result: Optional[ReconcileResult] = None
    skipped: bool = False
    error: Optional[str] = None
    split_meshes: List[TrackedMesh] = field(default_factory=list)
    canvas: Optional[np.ndarray] = None


class MotionTracker:
    """
    Owns the TrackingRegistry and drives one reconciliation per frame.

    Collaborators are injectable so that detection, meshing and matching can
    be swapped or stubbed independently.
    """

    def __init__(
        self,
        config: Optional[TrackerConfig] = None,
        detector: Optional[FeatureDetector] = None,
        factory: Optional[MeshFactory] = None,
        mesh_tracker: Optional[MeshTracker] = None,
        renderer: Optional[Renderer] = None,
    ):
        self.config = config or TrackerConfig()
        self.detector = detector or FeatureDetector()
        self.factory = factory or MeshFactory(history_size=self.config.history_size)
        self.mesh_tracker = mesh_tracker or MeshTracker(
            gate_displacement=self.config.gate_displacement,
            max_absence=self.config.max_absence,
            debug=self.config.debug,
        )
        self.renderer = renderer
        self.registry = TrackingRegistry()
        self.frame_idx = 0

    @property
    def debug(self) -> bool:
        return self.config.debug

    def limits(self, frame_shape) -> tuple:
        """(max_edge_length, max_displacement) for a frame of the given shape."""
        height = float(frame_shape[0])
        return height * self.config.max_edge_ratio, height * self.config.max_displacement_ratio

    def extract_points(self, frame: np.ndarray) -> np.ndarray:
        channels = self.detector.preprocess(frame)
        if self.config.structural_channel == "backprojection":
            structural = self.detector.hist_back_projection(channels.hsv)
        else:
            structural = channels.hue

        corners_s = self.detector.detect(structural, self.config.structural)
        corners_v = self.detector.detect(channels.value, self.config.salient)
        return np.concatenate([corners_s, corners_v], axis=0)

    def track_points(self, points: np.ndarray, frame_shape) -> FrameReport:
        """Runs meshing and reconciliation for an already detected vertex set."""
        report = FrameReport(idx=self.frame_idx)
        self.frame_idx += 1

        max_edge_length, max_displacement = self.limits(frame_shape)
        report.num_vertices = len(points)
        if self.debug:
            logger.info(f"... {report.num_vertices} vertices captured")

        try:
            meshes = self.factory.build_and_split(points, max_edge_length)
            report.split_meshes = meshes
            report.num_meshes = len(meshes)
            if self.debug:
                logger.info(f"... {report.num_meshes} meshes splitted")

            # Candidates are copies so the registry never aliases the split list
            candidates = [m.copy() for m in meshes]
            report.result = self.mesh_tracker.reconcile(self.registry, candidates, max_displacement)
        except (TrackingError, ValueError) as e:
            logger.error(f"Frame {report.idx} skipped: {e}")
            report.skipped = True
            report.error = str(e)

        return report

    def track_frame(self, frame: np.ndarray) -> FrameReport:
        try:
            points = self.extract_points(frame)
        except ValueError as e:
            logger.error(f"Frame {self.frame_idx} skipped: {e}")
            report = FrameReport(idx=self.frame_idx, skipped=True, error=str(e))
            self.frame_idx += 1
            return report

        report = self.track_points(points, frame.shape)

        if self.renderer is not None:
            max_edge_length, _ = self.limits(frame.shape)
            report.canvas = self.renderer.render_frame(
                frame,
                split_meshes=report.split_meshes,
                tracked_meshes=self.registry.snapshot().values(),
                max_edge_length=max_edge_length,
            )
        return report

    def reset(self) -> None:
        self.registry.clear()
        self.frame_idx = 0
