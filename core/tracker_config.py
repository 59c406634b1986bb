"""Tunable parameters of the motion tracker."""

from dataclasses import dataclass, field
from typing import Optional

STRUCTURAL_CHANNELS = ("hue", "backprojection")


@dataclass
class DetectorParams:
    """Arguments of one corner detection pass."""
    window_size: int = 5
    max_points: int = 16
    min_separation: float = 5.0
    quality: float = 0.05

    def __post_init__(self):
        if self.window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {self.window_size}")
        if self.max_points < 1:
            raise ValueError(f"max_points must be >= 1, got {self.max_points}")
        if self.min_separation < 0:
            raise ValueError(f"min_separation must be >= 0, got {self.min_separation}")
        if not 0.0 < self.quality <= 1.0:
            raise ValueError(f"quality must be in (0, 1], got {self.quality}")


def structural_params() -> DetectorParams:
    # Looser spacing, higher quality bar on the hue channel
    return DetectorParams(window_size=5, max_points=16, min_separation=15.0, quality=0.2)


def salient_params() -> DetectorParams:
    return DetectorParams(window_size=5, max_points=16, min_separation=5.0, quality=0.05)


@dataclass
class TrackerConfig:
    structural: DetectorParams = field(default_factory=structural_params)
    salient: DetectorParams = field(default_factory=salient_params)

    max_edge_ratio: float = 1.0             # max edge length = ratio * frame height
    max_displacement_ratio: float = 0.833   # max centroid travel = ratio * frame height
    gate_displacement: bool = False
    max_absence: Optional[int] = None
    history_size: int = 32
    structural_channel: str = "hue"
    debug: bool = False

    def __post_init__(self):
        if self.max_edge_ratio <= 0:
            raise ValueError(f"max_edge_ratio must be > 0, got {self.max_edge_ratio}")
        if self.max_displacement_ratio <= 0:
            raise ValueError(f"max_displacement_ratio must be > 0, got {self.max_displacement_ratio}")
        if self.max_absence is not None and self.max_absence < 0:
            raise ValueError(f"max_absence must be >= 0, got {self.max_absence}")
        if self.history_size < 0:
            raise ValueError(f"history_size must be >= 0, got {self.history_size}")
        if self.structural_channel not in STRUCTURAL_CHANNELS:
            raise ValueError(
                f"structural_channel must be one of {STRUCTURAL_CHANNELS}, got '{self.structural_channel}'"
            )
