from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from core.tracker_config import DetectorParams


@dataclass
class Channels:
    """Preprocessed single-channel images of one frame."""
    hsv: np.ndarray
    hue: np.ndarray
    value: np.ndarray


class FeatureDetector:
    """
    Turns a BGR frame into the channels the tracker detects corners on and
    runs Shi-Tomasi corner detection on them.
    """

    def __init__(self, blur_ksize=(3, 3), blur_sigma: float = 2.5, median_ksize: int = 9):
        self.blur_ksize = tuple(blur_ksize)
        self.blur_sigma = float(blur_sigma)
        self.median_ksize = int(median_ksize)

    def preprocess(self, frame: np.ndarray) -> Channels:
        if frame is None:
            raise ValueError("frame is None")
        if frame.ndim != 3 or frame.shape[2] != 3:
            raise ValueError(f"Expected a BGR frame, got shape {frame.shape}")

        hsv = cv2.cvtColor(frame, cv2.COLOR_BGR2HSV)
        bhsv = cv2.GaussianBlur(hsv, self.blur_ksize, self.blur_sigma, self.blur_sigma,
                                cv2.BORDER_REFLECT_101)
        h, _, v = cv2.split(bhsv)

        h = cv2.normalize(h, None, 0, 255, cv2.NORM_MINMAX)
        h = cv2.medianBlur(h, self.median_ksize)
        return Channels(hsv=bhsv, hue=h, value=v)

    @staticmethod
    def hist_back_projection(hsv: np.ndarray, bins: int = 16) -> np.ndarray:
        """Back projection of the frame's own smoothed hue histogram."""
        ranges = [0, 180]
        hist = cv2.calcHist([hsv], [0], None, [bins], ranges)
        hist = cv2.normalize(hist, None, 0, 255, cv2.NORM_MINMAX)
        hist = cv2.GaussianBlur(hist, (3, 3), 10.0, 10.0, cv2.BORDER_REFLECT_101)
        return cv2.calcBackProject([hsv], [0], hist, ranges, 1)

    @staticmethod
    def detect(channel: np.ndarray, params: DetectorParams, mask: Optional[np.ndarray] = None) -> np.ndarray:
        """Returns at most params.max_points corners as a (K, 2) float32 array."""
        if channel is None or channel.ndim != 2:
            raise ValueError("detect expects a single-channel image")

        pts = cv2.goodFeaturesToTrack(
            channel,
            maxCorners=params.max_points,
            qualityLevel=params.quality,
            minDistance=params.min_separation,
            mask=mask,
            blockSize=params.window_size,
        )
        if pts is None:
            return np.empty((0, 2), dtype=np.float32)
        return pts.reshape(-1, 2).astype(np.float32)
