"""Point cloud conversion of lidar point packets and the protocol CRC."""

from __future__ import annotations

import math
import struct
import time
import zlib
from dataclasses import dataclass, field

from .protocol import Lidar2DPointDataPacket, LidarPointDataPacket, TimeStamp

DEGREE_TO_RADIAN = math.pi / 180.0
RADIAN_TO_DEGREE = 180.0 / math.pi

_F32 = struct.Struct("<f")


def _f32(value: float) -> float:
    """Round ``value`` to single precision, as the sensor firmware computes."""
    try:
        return _F32.unpack(_F32.pack(value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


@dataclass
class PointUnitree:
    """One point in sensor coordinates."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    intensity: float = 0.0
    time: float = 0.0  # seconds relative to the cloud stamp
    ring: int = 1


@dataclass
class PointCloudUnitree:
    """A set of points sharing a start time stamp."""

    stamp: float = 0.0
    id: int = 1
    ring_num: int = 1
    points: list[PointUnitree] = field(default_factory=list)


def crc32(data: bytes) -> int:
    """CRC-32 (reflected, polynomial 0xEDB88320) as used in frame tails."""
    return zlib.crc32(bytes(data)) & 0xFFFFFFFF


def system_timestamp() -> TimeStamp:
    """Current wall-clock time split into seconds and nanoseconds."""
    now = time.time_ns()
    sec, nsec = divmod(now, 1_000_000_000)
    return TimeStamp(sec=sec & 0xFFFFFFFF, nsec=nsec)


def system_time() -> float:
    """Current wall-clock time in seconds."""
    return time.time()


def _cloud_stamp(data, use_system_timestamp: bool) -> float:
    if use_system_timestamp:
        return system_time() - data.scan_period
    return data.info.stamp.sec + data.info.stamp.nsec / 1.0e9


def _ranges_in_order(data):
    """Yield (index, range, alpha offset, time) for every slot in the scan."""
    count = min(int(data.point_num), len(data.ranges))
    time_relative = 0.0
    for index in range(count):
        yield index, data.ranges[index], time_relative
        time_relative = _f32(time_relative + data.time_increment)


def _range_ok(data, range_float: float, range_min: float, range_max: float) -> bool:
    if range_float < data.range_min or range_float > data.range_max:
        return False
    return range_min <= range_float <= range_max


def parse_point_cloud_3d(
    packet: LidarPointDataPacket,
    use_system_timestamp: bool = True,
    range_min: float = 0.0,
    range_max: float = 100.0,
) -> PointCloudUnitree:
    """Convert a 3D point packet into a point cloud.

    Points with a zero range, or with a range outside either the packet's
    or the caller's limits, are dropped.
    """
    data = packet.data
    param = data.param

    sin_beta = math.sin(param.beta_angle)
    cos_beta = math.cos(param.beta_angle)
    sin_xi = math.sin(param.xi_angle)
    cos_xi = math.cos(param.xi_angle)
    cos_beta_sin_xi = cos_beta * sin_xi
    sin_beta_cos_xi = sin_beta * cos_xi
    sin_beta_sin_xi = sin_beta * sin_xi
    cos_beta_cos_xi = cos_beta * cos_xi

    cloud = PointCloudUnitree(stamp=_cloud_stamp(data, use_system_timestamp))

    alpha_start = _f32(data.angle_min + param.alpha_angle_bias)
    theta_start = _f32(data.com_horizontal_angle_start + param.theta_angle_bias)
    alpha_cur, theta_cur = alpha_start, theta_start

    for index, raw_range, time_relative in _ranges_in_order(data):
        alpha, theta = alpha_cur, theta_cur
        alpha_cur = _f32(alpha_cur + data.angle_increment)
        theta_cur = _f32(theta_cur + data.com_horizontal_angle_step)

        if raw_range < 1:
            continue
        range_float = _f32(param.range_scale * _f32(raw_range + param.range_bias))
        if not _range_ok(data, range_float, range_min, range_max):
            continue

        sin_alpha = math.sin(alpha)
        cos_alpha = math.cos(alpha)
        sin_theta = math.sin(theta)
        cos_theta = math.cos(theta)

        a = (-cos_beta_sin_xi + sin_beta_cos_xi * sin_alpha) * range_float + param.b_axis_dist
        b = cos_alpha * cos_xi * range_float
        c = (sin_beta_sin_xi + cos_beta_cos_xi * sin_alpha) * range_float

        cloud.points.append(
            PointUnitree(
                x=_f32(cos_theta * a - sin_theta * b),
                y=_f32(sin_theta * a + cos_theta * b),
                z=_f32(c + param.a_axis_dist),
                intensity=float(data.intensities[index]),
                time=time_relative,
                ring=1,
            )
        )
    return cloud


def parse_point_cloud_2d(
    packet: Lidar2DPointDataPacket,
    use_system_timestamp: bool = True,
    range_min: float = 0.0,
    range_max: float = 100.0,
) -> PointCloudUnitree:
    """Convert a 2D scan packet into a point cloud in the y-z plane."""
    data = packet.data
    param = data.param

    cloud = PointCloudUnitree(stamp=_cloud_stamp(data, use_system_timestamp))
    alpha_cur = _f32(data.angle_min + param.alpha_angle_bias)

    for index, raw_range, time_relative in _ranges_in_order(data):
        alpha = alpha_cur
        alpha_cur = _f32(alpha_cur + data.angle_increment)

        if raw_range < 1:
            continue
        range_float = _f32(param.range_scale * _f32(raw_range + param.range_bias))
        if not _range_ok(data, range_float, range_min, range_max):
            continue

        cloud.points.append(
            PointUnitree(
                x=0.0,
                y=_f32(math.cos(alpha) * range_float),
                z=_f32(math.sin(alpha) * range_float + param.a_axis_dist),
                intensity=float(data.intensities[index]),
                time=time_relative,
                ring=1,
            )
        )
    return cloud