"""Vertex data of the reference axes and ground grid in the viewer."""

from __future__ import annotations

from dataclasses import dataclass

Vec3 = tuple[float, float, float]

AXIS_LENGTH = 2.0
GRID_HALF = 20
GRID_STEP = 1.0
GRID_CENTER_SHADE = 0.6
GRID_SHADE = 0.25

RED: Vec3 = (1.0, 0.0, 0.0)
GREEN: Vec3 = (0.0, 1.0, 0.0)
BLUE: Vec3 = (0.0, 0.0, 1.0)


@dataclass(frozen=True)
class GridVertex:
    """A line end point with its colour."""

    pos: Vec3
    color: Vec3


def axis_grid_vertices() -> list[GridVertex]:
    """Line-list vertices: X/Y/Z axes in red/green/blue, then a grey grid at z=0.

    Every consecutive pair of vertices forms one line segment. The grid
    lines through the origin are drawn lighter than the others.
    """
    origin: Vec3 = (0.0, 0.0, 0.0)
    vertices = [
        GridVertex(origin, RED),
        GridVertex((AXIS_LENGTH, 0.0, 0.0), RED),
        GridVertex(origin, GREEN),
        GridVertex((0.0, AXIS_LENGTH, 0.0), GREEN),
        GridVertex(origin, BLUE),
        GridVertex((0.0, 0.0, AXIS_LENGTH), BLUE),
    ]

    extent = GRID_HALF * GRID_STEP
    for i in range(-GRID_HALF, GRID_HALF + 1):
        v = i * GRID_STEP
        shade = GRID_CENTER_SHADE if i == 0 else GRID_SHADE
        gray: Vec3 = (shade, shade, shade)
        vertices += [
            GridVertex((-extent, v, 0.0), gray),
            GridVertex((extent, v, 0.0), gray),
            GridVertex((v, -extent, 0.0), gray),
            GridVertex((v, extent, 0.0), gray),
        ]
    return vertices