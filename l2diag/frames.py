"""Buffering of point-cloud frames for the viewer."""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass
from typing import Iterable

from .pointcloud import PointCloudUnitree

POINTS_PER_FRAME = 300
MAX_FRAMES = 3000
MAX_POINTS = MAX_FRAMES * POINTS_PER_FRAME


@dataclass(frozen=True)
class PCPoint:
    """A sensor-independent point: position, intensity, age and ring."""

    x: float
    y: float
    z: float
    intensity: float
    time: float
    ring: int


Frame = list[PCPoint]


def frame_from_cloud(cloud: PointCloudUnitree) -> Frame:
    """Convert a parsed point cloud into a viewer frame."""
    return [PCPoint(p.x, p.y, p.z, p.intensity, p.time, p.ring) for p in cloud.points]


class FrameRing:
    """Fixed-capacity store of recent frames; the oldest is dropped when full."""

    def __init__(self, capacity: int = MAX_FRAMES) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._frames: deque[Frame] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def push(self, frame: Iterable[PCPoint]) -> None:
        """Add a frame, replacing the oldest one if the ring is full."""
        stored = list(frame)
        with self._lock:
            self._frames.append(stored)

    def flatten(self) -> list[PCPoint]:
        """All points of the stored frames, oldest frame first."""
        with self._lock:
            frames = list(self._frames)
        return [point for frame in frames for point in frame]

    def __len__(self) -> int:
        with self._lock:
            return len(self._frames)


class FrameSkipper:
    """Lets through one frame in every ``skip + 1``; zero lets all through."""

    def __init__(self, skip: int = 0) -> None:
        self.skip = skip
        self._counter = 0

    @property
    def skip(self) -> int:
        return self._skip

    @skip.setter
    def skip(self, value: int) -> None:
        if value < 0:
            raise ValueError("skip must not be negative")
        self._skip = int(value)

    def accept(self) -> bool:
        """Whether the next frame should be kept."""
        if self._skip == 0:
            return True
        self._counter += 1
        return self._counter % (self._skip + 1) == 0