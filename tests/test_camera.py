import math

import pytest

from l2diag.camera import Camera, look_at, perspective


def apply(matrix, point):
    vec = (*point, 1.0)
    return [sum(row[i] * vec[i] for i in range(4)) for row in matrix]


def test_forward_is_unit_length():
    fwd = Camera().forward()
    assert math.sqrt(sum(c * c for c in fwd)) == pytest.approx(1.0)


def test_eye_is_distance_from_target():
    cam = Camera(distance=7.5, target=(1.0, 2.0, 3.0))
    eye = cam.eye()
    assert math.dist(eye, cam.target) == pytest.approx(7.5)


def test_view_matrix_maps_eye_to_origin_and_target_ahead():
    cam = Camera(distance=12.0, yaw=30.0, pitch=20.0, target=(1.0, -2.0, 0.5))
    view = cam.view_matrix()
    assert apply(view, cam.eye()) == pytest.approx([0.0, 0.0, 0.0, 1.0], abs=1e-9)
    assert apply(view, cam.target) == pytest.approx([0.0, 0.0, -12.0, 1.0], abs=1e-9)


def test_orbit_clamps_pitch():
    cam = Camera()
    cam.orbit(0, 1000)
    assert cam.pitch == 89.0
    cam.orbit(0, -5000)
    assert cam.pitch == -89.0


def test_orbit_changes_yaw():
    cam = Camera(yaw=0.0)
    cam.orbit(10, 0)
    assert cam.yaw == pytest.approx(5.0)


def test_zoom_clamps_distance():
    cam = Camera()
    cam.zoom(-100000)
    assert cam.distance == 500.0
    cam.zoom(100000)
    assert cam.distance == 1.0


def test_zoom_zero_keeps_distance():
    cam = Camera(distance=10.0)
    cam.zoom(0)
    assert cam.distance == pytest.approx(10.0)


def test_zoom_in_then_out_round_trip():
    cam = Camera(distance=10.0)
    cam.zoom(120)
    assert cam.distance < 10.0
    cam.zoom(-120)
    assert cam.distance == pytest.approx(10.0)


def test_pan_round_trip():
    cam = Camera(target=(0.5, 0.5, 0.5))
    cam.pan(13, -7)
    assert cam.target != pytest.approx((0.5, 0.5, 0.5))
    cam.pan(-13, 7)
    assert cam.target == pytest.approx((0.5, 0.5, 0.5))


def test_pan_vertical_moves_along_y_only():
    cam = Camera(target=(0.0, 0.0, 0.0))
    cam.pan(0, 10)
    x, y, z = cam.target
    assert x == pytest.approx(0.0)
    assert z == pytest.approx(0.0)
    assert y > 0


def test_perspective_structure():
    m = perspective(60.0, 2.0, 0.1, 1000.0)
    assert m[3] == [0.0, 0.0, -1.0, 0.0]
    assert m[1][1] == pytest.approx(m[0][0] * 2.0)


def test_perspective_maps_near_and_far_planes():
    m = perspective(60.0, 1.0, 0.1, 1000.0)
    near = apply(m, (0.0, 0.0, -0.1))
    far = apply(m, (0.0, 0.0, -1000.0))
    assert near[2] / near[3] == pytest.approx(-1.0)
    assert far[2] / far[3] == pytest.approx(1.0)


@pytest.mark.parametrize(
    "args",
    [(60.0, 0.0, 0.1, 10.0), (0.0, 1.0, 0.1, 10.0), (60.0, 1.0, 5.0, 5.0)],
)
def test_perspective_rejects_degenerate(args):
    with pytest.raises(ValueError):
        perspective(*args)


def test_look_at_rejects_coincident_points():
    with pytest.raises(ValueError):
        look_at((1.0, 1.0, 1.0), (1.0, 1.0, 1.0), (0.0, 0.0, 1.0))


def test_look_at_rows_orthonormal():
    m = look_at((3.0, -4.0, 2.0), (0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
    axes = [row[:3] for row in m[:3]]
    for i, a in enumerate(axes):
        for j, b in enumerate(axes):
            expected = 1.0 if i == j else 0.0
            assert sum(x * y for x, y in zip(a, b)) == pytest.approx(expected, abs=1e-12)