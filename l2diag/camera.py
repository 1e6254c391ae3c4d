"""Orbit camera and the projection and view matrices of the point-cloud viewer.

Matrices are 4x4, row-major lists of rows, and act on column vectors.
The world's Z axis points up.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

Vec3 = tuple[float, float, float]
Matrix = list[list[float]]

WORLD_UP: Vec3 = (0.0, 0.0, 1.0)

ORBIT_DEGREES_PER_PIXEL = 0.5
PITCH_LIMIT = 89.0
PAN_SPEED_FACTOR = 0.002
ZOOM_BASE = 0.999
DISTANCE_MIN = 1.0
DISTANCE_MAX = 500.0


def _sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def _scale(v: Vec3, factor: float) -> Vec3:
    return (v[0] * factor, v[1] * factor, v[2] * factor)


def _dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _cross(a: Vec3, b: Vec3) -> Vec3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def _normalized(v: Vec3) -> Vec3:
    length = math.sqrt(_dot(v, v))
    if length == 0.0:
        raise ValueError("cannot normalise a zero-length vector")
    return _scale(v, 1.0 / length)


def perspective(fov_degrees: float, aspect: float, near: float, far: float) -> Matrix:
    """Perspective projection with a vertical field of view in degrees."""
    if aspect == 0:
        raise ValueError("aspect ratio must not be zero")
    half = math.radians(fov_degrees) / 2.0
    sine = math.sin(half)
    if sine == 0:
        raise ValueError("field of view must not be zero")
    clip = far - near
    if clip == 0:
        raise ValueError("near and far planes must differ")
    cotan = math.cos(half) / sine
    return [
        [cotan / aspect, 0.0, 0.0, 0.0],
        [0.0, cotan, 0.0, 0.0],
        [0.0, 0.0, -(near + far) / clip, -(2.0 * near * far) / clip],
        [0.0, 0.0, -1.0, 0.0],
    ]


def look_at(eye: Vec3, target: Vec3, up: Vec3) -> Matrix:
    """View matrix placing ``eye`` at the origin looking along -Z at ``target``."""
    forward = _normalized(_sub(target, eye))
    side = _normalized(_cross(forward, up))
    true_up = _cross(side, forward)
    back = _scale(forward, -1.0)
    rows = [[*axis, -_dot(axis, eye)] for axis in (side, true_up, back)]
    rows.append([0.0, 0.0, 0.0, 1.0])
    return rows


@dataclass
class Camera:
    """Camera orbiting a target point; yaw turns about Z, pitch tilts towards it."""

    distance: float = 10.0
    yaw: float = -15.0
    pitch: float = -10.0
    target: Vec3 = (0.0, 0.0, 0.0)

    def forward(self) -> Vec3:
        """Unit vector from the eye towards the target."""
        yaw = math.radians(self.yaw)
        pitch = math.radians(self.pitch)
        return _normalized(
            (
                math.cos(pitch) * math.sin(yaw),
                math.cos(pitch) * math.cos(yaw),
                math.sin(pitch),
            )
        )

    def eye(self) -> Vec3:
        """Position of the camera."""
        return _sub(self.target, _scale(self.forward(), self.distance))

    def view_matrix(self) -> Matrix:
        """View matrix of the current camera position."""
        return look_at(self.eye(), self.target, WORLD_UP)

    def orbit(self, dx: float, dy: float) -> None:
        """Turn around the target by a mouse movement in pixels."""
        self.yaw += dx * ORBIT_DEGREES_PER_PIXEL
        self.pitch += dy * ORBIT_DEGREES_PER_PIXEL
        self.pitch = max(-PITCH_LIMIT, min(PITCH_LIMIT, self.pitch))

    def pan(self, dx: float, dy: float) -> None:
        """Move the target by a mouse movement in pixels."""
        speed = PAN_SPEED_FACTOR * self.distance
        angle = math.radians(self.yaw - 90.0)
        right: Vec3 = (math.sin(angle), 0.0, math.cos(angle))
        up: Vec3 = (0.0, 1.0, 0.0)
        target = _sub(self.target, _scale(right, dx * speed))
        self.target = _add(target, _scale(up, dy * speed))

    def zoom(self, angle_delta: float) -> None:
        """Move closer or further by a wheel rotation in eighths of a degree."""
        self.distance *= ZOOM_BASE ** angle_delta
        self.distance = max(DISTANCE_MIN, min(DISTANCE_MAX, self.distance))