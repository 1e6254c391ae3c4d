"""Conversion of viewer points into coloured vertices for drawing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import islice
from typing import Iterable, Optional

from .frames import MAX_POINTS, PCPoint

log = logging.getLogger(__name__)

Vec3 = tuple[float, float, float]

INTENSITY_MIN = 0.0
INTENSITY_MAX = 255.0

# While set, every point is drawn in this grey shade instead of a shade
# derived from its intensity.
FIXED_SHADE: Optional[float] = 0.5


@dataclass(frozen=True)
class GLPoint:
    """A vertex position and its colour."""

    pos: Vec3
    color: Vec3


def _scaled(intensity: float) -> float:
    span = INTENSITY_MAX - INTENSITY_MIN
    return min(1.0, max(0.0, (intensity - INTENSITY_MIN) / span))


def normalize_intensity(intensity: float) -> float:
    """Map an intensity to a shade in [0, 1].

    The intensity is scaled and clamped to the sensor's range; while
    :data:`FIXED_SHADE` is set that fixed shade is returned instead.
    """
    shade = _scaled(float(intensity))
    if FIXED_SHADE is not None:
        return FIXED_SHADE
    return shade


def intensity_to_color(intensity: float) -> Vec3:
    """Grey colour for an intensity."""
    v = normalize_intensity(intensity)
    return (v, v, v)


def to_gl_points(points: Iterable[PCPoint]) -> list[GLPoint]:
    """Coloured vertices for ``points``, at most :data:`MAX_POINTS` of them."""
    result = [
        GLPoint((p.x, p.y, p.z), intensity_to_color(p.intensity))
        for p in islice(points, MAX_POINTS + 1)
    ]
    if len(result) > MAX_POINTS:
        log.warning("point cloud exceeds %d points; extra points dropped", MAX_POINTS)
        del result[MAX_POINTS:]
    return result