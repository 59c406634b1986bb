"""Video loop that feeds frames to the motion tracker and shows the tracked meshes."""

import os
import time
import queue
import threading
import logging
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from core.motion_tracker import FrameReport, MotionTracker

logger = logging.getLogger(__name__)


@dataclass
class FramePacket:
    """Container for frame data with timing information."""
    idx: int
    frame: np.ndarray
    t_wall: float
    t_perf: float


@dataclass
class TrackPacket:
    """Container for one tracked frame with timing information."""
    idx: int
    report: FrameReport
    t_wall: float
    t_perf: float


class LatestValue:
    """Thread-safe storage for the latest value."""

    def __init__(self):
        self._lock = threading.Lock()
        self._value = None

    def set(self, value) -> None:
        with self._lock:
            self._value = value

    def get(self):
        with self._lock:
            return self._value


class VideoProcessor:
    """
    Multi-threaded video loop around a MotionTracker.

    Architecture:
        - Capture thread: reads frames from the video source
        - Tracking thread: the only thread that touches the tracking registry;
          frames are processed strictly one at a time, stale frames are dropped
        - Render loop (main thread): shows / writes the latest rendered canvas
    """

    def __init__(self, tracker: MotionTracker, window_title: str = "Motion Mesh Tracker"):
        if tracker.renderer is None:
            raise ValueError("VideoProcessor requires a MotionTracker with a renderer.")
        self.tracker = tracker

        self._stop = threading.Event()
        self._capture_done = threading.Event()
        self._frame_q: "queue.Queue[FramePacket]" = queue.Queue(maxsize=2)
        self._latest_track = LatestValue()
        self._error: Optional[BaseException] = None
        self._last_ui_print = 0.0
        self._win_main = window_title
        self.frames_tracked = 0

    def process_path(self, source):
        """Initialize video capture from file path or camera index."""
        if isinstance(source, str):
            if not os.path.exists(source):
                if source.isdigit():
                    source = int(source)
                else:
                    raise FileNotFoundError(f"Video file not found: {source}")
            else:
                cap = cv2.VideoCapture(source)
                if not cap.isOpened():
                    raise RuntimeError(f"Failed to open video file: {source}")
                return cap

        if isinstance(source, int) or source is None:
            source = source if source is not None else 0
            cap = cv2.VideoCapture(source)
            if cap.isOpened():
                cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
                return cap
            raise RuntimeError("No working camera found.")

        raise TypeError(f"Invalid source type: {source}")

    @staticmethod
    def _is_file_source(cap: cv2.VideoCapture) -> bool:
        """Check if the video source is a file (vs. camera)."""
        frame_count = float(cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0.0)
        return frame_count > 0.0

    @staticmethod
    def _get_source_fps(cap: cv2.VideoCapture, fallback: float = 30.0) -> float:
        """Get FPS from video source with validation."""
        fps = float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
        if fps <= 1e-3 or not np.isfinite(fps):
            return fallback
        return max(5.0, min(fps, 240.0))

    @staticmethod
    def _put_drop_old(q: queue.Queue, item) -> None:
        """Put item in queue, dropping oldest if full."""
        try:
            q.put_nowait(item)
        except queue.Full:
            try:
                q.get_nowait()
            except queue.Empty:
                pass
            try:
                q.put_nowait(item)
            except queue.Full:
                pass

    def _capture_loop(self, cap: cv2.VideoCapture, loop: bool = False, realtime: bool = False) -> None:
        """Capture thread: reads frames from video source."""
        is_file = self._is_file_source(cap)
        fps = self._get_source_fps(cap)
        frame_period = 1.0 / max(1.0, fps)

        t0 = time.perf_counter()
        idx = 0

        src_type = "file" if is_file else "camera"
        logger.info(f"[Capture] source={src_type}, fps={fps:.2f}, loop={loop}")

        while not self._stop.is_set():
            ok, frame = cap.read()
            if not ok or frame is None:
                if loop and is_file:
                    logger.info("Looping video...")
                    cap.set(cv2.CAP_PROP_POS_FRAMES, 0)
                    t0 = time.perf_counter()
                    idx = 0
                    continue
                break

            pkt = FramePacket(
                idx=idx,
                frame=frame,
                t_wall=time.time(),
                t_perf=time.perf_counter()
            )
            self._put_drop_old(self._frame_q, pkt)
            idx += 1

            if is_file and not realtime:
                target = t0 + idx * frame_period
                sleep_s = target - time.perf_counter()
                if sleep_s > 0:
                    time.sleep(sleep_s)

        cap.release()
        self._capture_done.set()
        logger.info("[Capture] stopped")

    def _track_loop(self) -> None:
        """Tracking thread: one reconciliation per frame, in arrival order."""
        logger.info("[Track] worker started")

        while not self._stop.is_set():
            try:
                pkt: FramePacket = self._frame_q.get(timeout=0.05)
            except queue.Empty:
                if self._capture_done.is_set():
                    break
                continue

            try:
                report = self.tracker.track_frame(pkt.frame)
            except Exception as e:
                self._error = e
                self._stop.set()
                raise

            self.frames_tracked += 1
            self._latest_track.set(TrackPacket(
                idx=pkt.idx,
                report=report,
                t_wall=time.time(),
                t_perf=time.perf_counter()
            ))

        self._stop.set()
        logger.info("[Track] worker stopped")

    def _render_loop(self, show: bool = True, writer: Optional[cv2.VideoWriter] = None) -> None:
        """Render loop (main thread): displays and/or writes the tracked canvases."""
        if show:
            logger.info("Press 'q' or 'ESC' to exit")
            cv2.namedWindow(self._win_main, cv2.WINDOW_NORMAL)

        last_written = -1
        while not self._stop.is_set():
            pkt: Optional[TrackPacket] = self._latest_track.get()
            if pkt is None or pkt.report.canvas is None:
                time.sleep(0.005)
                continue

            canvas = pkt.report.canvas
            if writer is not None and pkt.idx != last_written:
                writer.write(canvas)
                last_written = pkt.idx

            if show:
                cv2.imshow(self._win_main, canvas)
                key = cv2.waitKey(1) & 0xFF
                if key in (27, ord("q")):
                    self._stop.set()
                    break
            else:
                time.sleep(0.001)

            now = time.time()
            if now - self._last_ui_print > 0.5:
                self._last_ui_print = now
                rep = pkt.report
                logger.info(
                    f"[UI] frame={pkt.idx} vertices={rep.num_vertices} meshes={rep.num_meshes} "
                    f"tracked={len(self.tracker.registry)} skipped={rep.skipped}"
                )

        if show:
            cv2.destroyAllWindows()

    @staticmethod
    def _open_writer(output_path: str, cap: cv2.VideoCapture, fps: float) -> cv2.VideoWriter:
        w = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        h = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        writer = cv2.VideoWriter(output_path, cv2.VideoWriter_fourcc(*"mp4v"), fps, (w, h))
        if not writer.isOpened():
            raise RuntimeError(f"Failed to open output video: {output_path}")
        return writer

    def run(self, source=0, loop: bool = False, realtime: bool = False,
            output_path: Optional[str] = None, show: bool = True) -> None:
        """
        Run the video processing pipeline.

        Args:
            source: Video file path, camera index, or None for default camera
            loop: Whether to loop a file source
            realtime: Read file sources as fast as possible instead of at their FPS
            output_path: Optional path of an mp4 file receiving the rendered frames
            show: Display the rendered frames in a window
        """
        cap = self.process_path(source)
        writer = None
        if output_path:
            writer = self._open_writer(output_path, cap, self._get_source_fps(cap))

        self._stop.clear()
        self._capture_done.clear()
        self._error = None

        t_cap = threading.Thread(target=self._capture_loop, args=(cap, loop, realtime), daemon=True)
        t_track = threading.Thread(target=self._track_loop, daemon=True)

        logger.info(f"Starting processor on source: {source}")

        t_cap.start()
        t_track.start()

        try:
            self._render_loop(show=show, writer=writer)
        except Exception as e:
            logger.error(f"Error in render loop: {e}")
            raise
        finally:
            self._stop.set()
            t_cap.join(timeout=1.0)
            t_track.join(timeout=1.0)
            if writer is not None:
                writer.release()
            logger.info(f"Processing finished ({self.frames_tracked} frames tracked)")

        if self._error is not None:
            raise RuntimeError("Tracking thread failed") from self._error
