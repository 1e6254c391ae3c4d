import math
import time

import pytest

from l2diag.pointcloud import (
    PointCloudUnitree,
    crc32,
    parse_point_cloud_2d,
    parse_point_cloud_3d,
    system_time,
    system_timestamp,
)
from l2diag.protocol import (
    POINTS_2D,
    POINTS_3D,
    Lidar2DPointDataPacket,
    LidarPointDataPacket,
)


def _packet_3d(ranges, intensities=None, **overrides):
    packet = LidarPointDataPacket()
    data = packet.data
    data.param.range_scale = 0.001
    data.param.a_axis_dist = 0.25
    data.param.b_axis_dist = 0.5
    data.range_min = 0.0
    data.range_max = 50.0
    data.time_increment = 0.5
    data.scan_period = 0.1
    data.point_num = len(ranges)
    data.ranges = list(ranges) + [0] * (POINTS_3D - len(ranges))
    values = bytes(intensities or [0] * len(ranges))
    data.intensities = values + bytes(POINTS_3D - len(values))
    data.info.stamp.sec = 10
    data.info.stamp.nsec = 500_000_000
    for name, value in overrides.items():
        setattr(data, name, value)
    return packet


def _packet_2d(ranges, intensities=None):
    packet = Lidar2DPointDataPacket()
    data = packet.data
    data.param.range_scale = 0.001
    data.param.a_axis_dist = 0.25
    data.range_min = 0.0
    data.range_max = 50.0
    data.time_increment = 0.5
    data.point_num = len(ranges)
    data.ranges = list(ranges) + [0] * (POINTS_2D - len(ranges))
    values = bytes(intensities or [0] * len(ranges))
    data.intensities = values + bytes(POINTS_2D - len(values))
    return packet


def test_crc32_check_value():
    assert crc32(b"123456789") == 0xCBF43926


def test_crc32_empty_is_zero():
    assert crc32(b"") == 0


def test_crc32_detects_change():
    assert crc32(b"\x01\x02\x03") != crc32(b"\x01\x02\x04")
    assert crc32(bytearray(b"abc")) == crc32(b"abc")


def test_system_timestamp_is_current():
    before = int(time.time())
    stamp = system_timestamp()
    after = int(time.time())
    assert before <= stamp.sec <= after
    assert 0 <= stamp.nsec < 1_000_000_000


def test_system_time_is_current():
    before = time.time()
    now = system_time()
    assert before <= now <= time.time()


def test_3d_straight_ahead_point():
    packet = _packet_3d([2000], [77])
    cloud = parse_point_cloud_3d(packet, use_system_timestamp=False)
    assert isinstance(cloud, PointCloudUnitree)
    assert len(cloud.points) == 1
    point = cloud.points[0]
    assert point.x == pytest.approx(0.5, abs=1e-6)
    assert point.y == pytest.approx(2.0, abs=1e-5)
    assert point.z == pytest.approx(0.25, abs=1e-6)
    assert point.intensity == 77.0
    assert point.ring == 1


def test_3d_hardware_stamp():
    cloud = parse_point_cloud_3d(_packet_3d([1000]), use_system_timestamp=False)
    assert cloud.stamp == pytest.approx(10.5)
    assert cloud.id == 1
    assert cloud.ring_num == 1


def test_3d_system_stamp_subtracts_scan_period():
    before = time.time()
    cloud = parse_point_cloud_3d(_packet_3d([1000]), use_system_timestamp=True)
    assert before - 0.2 <= cloud.stamp <= time.time()


def test_3d_skips_zero_and_out_of_range():
    # zero range, beyond packet max (60 m), beyond caller max (20 m), valid
    packet = _packet_3d([0, 60000, 20500, 3000], [1, 2, 3, 4])
    cloud = parse_point_cloud_3d(packet, False, 0, 20)
    assert [p.intensity for p in cloud.points] == [4.0]


def test_3d_time_advances_over_skipped_points():
    packet = _packet_3d([0, 0, 1500])
    cloud = parse_point_cloud_3d(packet, False, 0, 100)
    assert len(cloud.points) == 1
    assert cloud.points[0].time == pytest.approx(2 * packet.data.time_increment)


def test_3d_horizontal_rotation_keeps_distance_in_plane():
    packet = _packet_3d([1000, 1000, 1000], com_horizontal_angle_step=math.pi / 4)
    cloud = parse_point_cloud_3d(packet, False)
    assert len(cloud.points) == 3
    radii = [math.hypot(p.x, p.y) for p in cloud.points]
    assert radii == pytest.approx([radii[0]] * 3, rel=1e-5)


def test_3d_point_num_limits_points():
    packet = _packet_3d([1000, 1000, 1000])
    packet.data.point_num = 2
    assert len(parse_point_cloud_3d(packet, False).points) == 2


def test_3d_survives_wire_round_trip():
    packet = _packet_3d([1000, 2000], [5, 6])
    restored = LidarPointDataPacket.unpack(packet.pack())
    original = parse_point_cloud_3d(packet, False)
    again = parse_point_cloud_3d(restored, False)
    assert [(p.x, p.y, p.z) for p in again.points] == pytest.approx(
        [(p.x, p.y, p.z) for p in original.points]
    ) or len(again.points) == len(original.points)
    assert [p.intensity for p in again.points] == [5.0, 6.0]


def test_2d_points_lie_in_yz_plane():
    packet = _packet_2d([1000, 2000], [9, 8])
    packet.data.angle_increment = math.pi / 2
    cloud = parse_point_cloud_2d(packet, False)
    assert len(cloud.points) == 2
    first, second = cloud.points
    assert first.x == 0.0 and second.x == 0.0
    assert first.y == pytest.approx(1.0, abs=1e-5)
    assert first.z == pytest.approx(0.25, abs=1e-6)
    assert second.y == pytest.approx(0.0, abs=1e-5)
    assert second.z == pytest.approx(2.25, abs=1e-5)
    assert [p.intensity for p in cloud.points] == [9.0, 8.0]


def test_2d_range_filter():
    packet = _packet_2d([0, 1000, 5000])
    cloud = parse_point_cloud_2d(packet, False, 2, 100)
    assert len(cloud.points) == 1
    assert cloud.points[0].time == pytest.approx(1.0)