"""Wire structures and constants of the L2 lidar UDP protocol.

Every structure is packed little-endian with no padding. Each class knows
its own layout and can be packed to bytes or unpacked from a buffer.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from typing import Any, ClassVar, Union

FRAME_HEADER = bytes((0x55, 0xAA, 0x05, 0x0A))
FRAME_TAIL = bytes((0x00, 0xFF))

POINTS_3D = 300
POINTS_2D = 1800


class PacketType(IntEnum):
    """Packet type identifiers carried in the frame header."""

    USER_CMD = 100
    ACK_DATA = 101
    POINT_DATA = 102
    POINT_DATA_2D = 103
    IMU_DATA = 104
    VERSION = 105
    TIME_STAMP = 106
    WORK_MODE_CONFIG = 107
    IP_ADDRESS_CONFIG = 108
    MAC_ADDRESS_CONFIG = 109
    COMMAND = 2000
    PARAM_DATA = 2001
    PARAM_WORK_MODE = 2002


class CommandType(IntEnum):
    """Command types of COMMAND packets."""

    RESET = 1
    PARAM_SAVE = 2
    PARAM_GET = 3
    VERSION_GET = 4
    STANDBY = 5
    LATENCY = 6
    CONFIG_RESET = 7


class UserCommandType(IntEnum):
    """Command types of USER_CMD packets."""

    RESET = 1
    STANDBY = 2  # value 0: start, value 1: standby
    VERSION_GET = 3
    LATENCY = 4
    CONFIG_RESET = 5
    CONFIG_GET = 6
    CONFIG_AUTO_STANDBY = 7


class AckStatus(IntEnum):
    """Result codes reported in an ACK packet."""

    SUCCESS = 1
    CRC_ERROR = 2
    HEADER_ERROR = 3
    BLOCK_ERROR = 4
    WAIT_ERROR = 5


class WorkMode(IntFlag):
    """Bits of the work mode word."""

    WIDE_FOV = 1
    MODE_2D = 2
    IMU_DISABLE = 4
    SERIAL = 8
    STARTUP_WAIT = 16


@dataclass(frozen=True)
class _Array:
    code: str
    count: int


@dataclass(frozen=True)
class _Bytes:
    count: int


_Spec = Union[str, _Array, _Bytes, type]


def _spec_size(spec: _Spec) -> int:
    if isinstance(spec, str):
        return struct.calcsize("<" + spec)
    if isinstance(spec, _Array):
        return struct.calcsize(f"<{spec.count}{spec.code}")
    if isinstance(spec, _Bytes):
        return spec.count
    return spec.size()


class Struct:
    """Base for fixed-layout, little-endian, unpadded wire structures."""

    _FIELDS: ClassVar[tuple[tuple[str, _Spec], ...]] = ()

    @classmethod
    def size(cls) -> int:
        """Number of bytes the structure takes on the wire."""
        return sum(_spec_size(spec) for _, spec in cls._FIELDS)

    def pack(self) -> bytes:
        """Serialise the structure to its wire bytes."""
        parts = []
        for name, spec in self._FIELDS:
            value = getattr(self, name)
            try:
                if isinstance(spec, str):
                    parts.append(struct.pack("<" + spec, value))
                elif isinstance(spec, _Array):
                    values = list(value)
                    if len(values) != spec.count:
                        raise ValueError(
                            f"{name}: expected {spec.count} items, got {len(values)}"
                        )
                    parts.append(struct.pack(f"<{spec.count}{spec.code}", *values))
                elif isinstance(spec, _Bytes):
                    raw = bytes(value)
                    if len(raw) != spec.count:
                        raise ValueError(
                            f"{name}: expected {spec.count} bytes, got {len(raw)}"
                        )
                    parts.append(raw)
                else:
                    if not isinstance(value, spec):
                        raise ValueError(f"{name}: expected {spec.__name__}")
                    parts.append(value.pack())
            except struct.error as exc:
                raise ValueError(f"{name}: {exc}") from exc
        return b"".join(parts)

    @classmethod
    def unpack(cls, data: Any, offset: int = 0) -> Any:
        """Build the structure from ``data`` starting at ``offset``."""
        if offset < 0:
            raise ValueError("offset must not be negative")
        needed = cls.size()
        if len(data) - offset < needed:
            raise ValueError(
                f"{cls.__name__} needs {needed} bytes, "
                f"{max(len(data) - offset, 0)} available"
            )
        values: dict[str, Any] = {}
        pos = offset
        for name, spec in cls._FIELDS:
            if isinstance(spec, str):
                (values[name],) = struct.unpack_from("<" + spec, data, pos)
            elif isinstance(spec, _Array):
                values[name] = list(
                    struct.unpack_from(f"<{spec.count}{spec.code}", data, pos)
                )
            elif isinstance(spec, _Bytes):
                values[name] = bytes(data[pos : pos + spec.count])
            else:
                values[name] = spec.unpack(data, pos)
            pos += _spec_size(spec)
        return cls(**values)


def _zeros(count: int) -> Any:
    return field(default_factory=lambda: [0] * count)


def _fzeros(count: int) -> Any:
    return field(default_factory=lambda: [0.0] * count)


def _nul(count: int) -> Any:
    return field(default=bytes(count))


# ---------------------------------------------------------------- framing


@dataclass
class FrameHeader(Struct):
    """Frame header: magic, packet type and total packet size (12 bytes)."""

    header: bytes = FRAME_HEADER
    packet_type: int = 0
    packet_size: int = 0

    _FIELDS: ClassVar = (
        ("header", _Bytes(4)),
        ("packet_type", "I"),
        ("packet_size", "I"),
    )


@dataclass
class FrameTail(Struct):
    """Frame tail: CRC of the data part and tail marker (12 bytes)."""

    crc32: int = 0
    msg_type_check: int = 0
    reserve: bytes = _nul(2)
    tail: bytes = FRAME_TAIL

    _FIELDS: ClassVar = (
        ("crc32", "I"),
        ("msg_type_check", "I"),
        ("reserve", _Bytes(2)),
        ("tail", _Bytes(2)),
    )


# --------------------------------------------------------- stamps and info


@dataclass
class TimeStamp(Struct):
    """Seconds and nanoseconds (8 bytes)."""

    sec: int = 0
    nsec: int = 0

    _FIELDS: ClassVar = (("sec", "I"), ("nsec", "I"))


@dataclass
class DataInfo(Struct):
    """Sequence id, payload size and time stamp (16 bytes)."""

    seq: int = 0
    payload_size: int = 0
    stamp: TimeStamp = field(default_factory=TimeStamp)

    _FIELDS: ClassVar = (
        ("seq", "I"),
        ("payload_size", "I"),
        ("stamp", TimeStamp),
    )


@dataclass
class LidarCalibParam(Struct):
    """Calibration parameters of the sensor head."""

    a_axis_dist: float = 0.0
    b_axis_dist: float = 0.0
    theta_angle_bias: float = 0.0
    alpha_angle_bias: float = 0.0
    beta_angle: float = 0.0
    xi_angle: float = 0.0
    range_bias: float = 0.0
    range_scale: float = 0.0

    _FIELDS: ClassVar = tuple(
        (name, "f")
        for name in (
            "a_axis_dist",
            "b_axis_dist",
            "theta_angle_bias",
            "alpha_angle_bias",
            "beta_angle",
            "xi_angle",
            "range_bias",
            "range_scale",
        )
    )


@dataclass
class LidarInsideState(Struct):
    """Internal state of the sensor."""

    sys_rotation_period: int = 0
    com_rotation_period: int = 0
    dirty_index: float = 0.0
    packet_lost_up: float = 0.0
    packet_lost_down: float = 0.0
    apd_temperature: float = 0.0
    apd_voltage: float = 0.0
    laser_voltage: float = 0.0
    imu_temperature: float = 0.0

    _FIELDS: ClassVar = (
        ("sys_rotation_period", "I"),
        ("com_rotation_period", "I"),
        ("dirty_index", "f"),
        ("packet_lost_up", "f"),
        ("packet_lost_down", "f"),
        ("apd_temperature", "f"),
        ("apd_voltage", "f"),
        ("laser_voltage", "f"),
        ("imu_temperature", "f"),
    )


# ---------------------------------------------------------- point packets


@dataclass
class LidarPointData(Struct):
    """One 3D scan line of up to 300 points (1020 bytes)."""

    info: DataInfo = field(default_factory=DataInfo)
    state: LidarInsideState = field(default_factory=LidarInsideState)
    param: LidarCalibParam = field(default_factory=LidarCalibParam)
    com_horizontal_angle_start: float = 0.0
    com_horizontal_angle_step: float = 0.0
    scan_period: float = 0.0
    range_min: float = 0.0
    range_max: float = 0.0
    angle_min: float = 0.0
    angle_increment: float = 0.0
    time_increment: float = 0.0
    point_num: int = 0
    ranges: list[int] = _zeros(POINTS_3D)
    intensities: bytes = _nul(POINTS_3D)

    _FIELDS: ClassVar = (
        ("info", DataInfo),
        ("state", LidarInsideState),
        ("param", LidarCalibParam),
        ("com_horizontal_angle_start", "f"),
        ("com_horizontal_angle_step", "f"),
        ("scan_period", "f"),
        ("range_min", "f"),
        ("range_max", "f"),
        ("angle_min", "f"),
        ("angle_increment", "f"),
        ("time_increment", "f"),
        ("point_num", "I"),
        ("ranges", _Array("H", POINTS_3D)),
        ("intensities", _Bytes(POINTS_3D)),
    )


@dataclass
class LidarPointDataPacket(Struct):
    """Framed 3D point data (1044 bytes)."""

    header: FrameHeader = field(default_factory=FrameHeader)
    data: LidarPointData = field(default_factory=LidarPointData)
    tail: FrameTail = field(default_factory=FrameTail)

    _FIELDS: ClassVar = (
        ("header", FrameHeader),
        ("data", LidarPointData),
        ("tail", FrameTail),
    )


@dataclass
class Lidar2DPointData(Struct):
    """One 2D scan of up to 1800 points (5512 bytes)."""

    info: DataInfo = field(default_factory=DataInfo)
    state: LidarInsideState = field(default_factory=LidarInsideState)
    param: LidarCalibParam = field(default_factory=LidarCalibParam)
    scan_period: float = 0.0
    range_min: float = 0.0
    range_max: float = 0.0
    angle_min: float = 0.0
    angle_increment: float = 0.0
    time_increment: float = 0.0
    point_num: int = 0
    ranges: list[int] = _zeros(POINTS_2D)
    intensities: bytes = _nul(POINTS_2D)

    _FIELDS: ClassVar = (
        ("info", DataInfo),
        ("state", LidarInsideState),
        ("param", LidarCalibParam),
        ("scan_period", "f"),
        ("range_min", "f"),
        ("range_max", "f"),
        ("angle_min", "f"),
        ("angle_increment", "f"),
        ("time_increment", "f"),
        ("point_num", "I"),
        ("ranges", _Array("H", POINTS_2D)),
        ("intensities", _Bytes(POINTS_2D)),
    )


@dataclass
class Lidar2DPointDataPacket(Struct):
    """Framed 2D point data (5536 bytes)."""

    header: FrameHeader = field(default_factory=FrameHeader)
    data: Lidar2DPointData = field(default_factory=Lidar2DPointData)
    tail: FrameTail = field(default_factory=FrameTail)

    _FIELDS: ClassVar = (
        ("header", FrameHeader),
        ("data", Lidar2DPointData),
        ("tail", FrameTail),
    )


# --------------------------------------------------------------- time stamp


@dataclass
class LidarTimeStampData(Struct):
    """Time stamp payload (8 bytes)."""

    data: TimeStamp = field(default_factory=TimeStamp)

    _FIELDS: ClassVar = (("data", TimeStamp),)


@dataclass
class LidarTimeStampPacket(Struct):
    """Framed time stamp (32 bytes)."""

    header: FrameHeader = field(default_factory=FrameHeader)
    data: LidarTimeStampData = field(default_factory=LidarTimeStampData)
    tail: FrameTail = field(default_factory=FrameTail)

    _FIELDS: ClassVar = (
        ("header", FrameHeader),
        ("data", LidarTimeStampData),
        ("tail", FrameTail),
    )


# ---------------------------------------------------------------------- IMU


@dataclass
class LidarImuData(Struct):
    """IMU sample (56 bytes)."""

    info: DataInfo = field(default_factory=DataInfo)
    quaternion: list[float] = _fzeros(4)
    angular_velocity: list[float] = _fzeros(3)
    linear_acceleration: list[float] = _fzeros(3)

    _FIELDS: ClassVar = (
        ("info", DataInfo),
        ("quaternion", _Array("f", 4)),
        ("angular_velocity", _Array("f", 3)),
        ("linear_acceleration", _Array("f", 3)),
    )


@dataclass
class LidarImuDataPacket(Struct):
    """Framed IMU sample (80 bytes)."""

    header: FrameHeader = field(default_factory=FrameHeader)
    data: LidarImuData = field(default_factory=LidarImuData)
    tail: FrameTail = field(default_factory=FrameTail)

    _FIELDS: ClassVar = (
        ("header", FrameHeader),
        ("data", LidarImuData),
        ("tail", FrameTail),
    )


# ---------------------------------------------------------------------- ACK


@dataclass
class LidarAckData(Struct):
    """Acknowledgement of a command sent to the sensor (16 bytes)."""

    packet_type: int = 0
    cmd_type: int = 0
    cmd_value: int = 0
    status: int = 0

    _FIELDS: ClassVar = (
        ("packet_type", "I"),
        ("cmd_type", "I"),
        ("cmd_value", "I"),
        ("status", "I"),
    )


@dataclass
class LidarAckDataPacket(Struct):
    """Framed acknowledgement (40 bytes)."""

    header: FrameHeader = field(default_factory=FrameHeader)
    data: LidarAckData = field(default_factory=LidarAckData)
    tail: FrameTail = field(default_factory=FrameTail)

    _FIELDS: ClassVar = (
        ("header", FrameHeader),
        ("data", LidarAckData),
        ("tail", FrameTail),
    )


# ------------------------------------------------------------------ version


@dataclass
class LidarVersionData(Struct):
    """Hardware and firmware version information (80 bytes)."""

    hw_version: bytes = _nul(4)
    sw_version: bytes = _nul(4)
    name: bytes = _nul(24)
    date: bytes = _nul(8)
    reserve: bytes = _nul(40)

    _FIELDS: ClassVar = (
        ("hw_version", _Bytes(4)),
        ("sw_version", _Bytes(4)),
        ("name", _Bytes(24)),
        ("date", _Bytes(8)),
        ("reserve", _Bytes(40)),
    )


@dataclass
class LidarVersionDataPacket(Struct):
    """Framed version information (104 bytes)."""

    header: FrameHeader = field(default_factory=FrameHeader)
    data: LidarVersionData = field(default_factory=LidarVersionData)
    tail: FrameTail = field(default_factory=FrameTail)

    _FIELDS: ClassVar = (
        ("header", FrameHeader),
        ("data", LidarVersionData),
        ("tail", FrameTail),
    )


# ---------------------------------------------------------------- IP config


@dataclass
class LidarIpAddressConfig(Struct):
    """Network configuration of the sensor (20 bytes)."""

    lidar_ip: bytes = _nul(4)
    user_ip: bytes = _nul(4)
    gateway: bytes = _nul(4)
    subnet_mask: bytes = _nul(4)
    lidar_port: int = 0
    user_port: int = 0

    _FIELDS: ClassVar = (
        ("lidar_ip", _Bytes(4)),
        ("user_ip", _Bytes(4)),
        ("gateway", _Bytes(4)),
        ("subnet_mask", _Bytes(4)),
        ("lidar_port", "H"),
        ("user_port", "H"),
    )


@dataclass
class LidarIpAddressConfigPacket(Struct):
    """Framed network configuration (44 bytes)."""

    header: FrameHeader = field(default_factory=FrameHeader)
    data: LidarIpAddressConfig = field(default_factory=LidarIpAddressConfig)
    tail: FrameTail = field(default_factory=FrameTail)

    _FIELDS: ClassVar = (
        ("header", FrameHeader),
        ("data", LidarIpAddressConfig),
        ("tail", FrameTail),
    )


# --------------------------------------------------------------- MAC config


@dataclass
class LidarMacAddressConfig(Struct):
    """MAC address configuration (8 bytes)."""

    mac: bytes = _nul(6)
    reserve: bytes = _nul(2)

    _FIELDS: ClassVar = (("mac", _Bytes(6)), ("reserve", _Bytes(2)))


@dataclass
class LidarMacAddressConfigPacket(Struct):
    """Framed MAC address configuration (32 bytes)."""

    header: FrameHeader = field(default_factory=FrameHeader)
    data: LidarMacAddressConfig = field(default_factory=LidarMacAddressConfig)
    tail: FrameTail = field(default_factory=FrameTail)

    _FIELDS: ClassVar = (
        ("header", FrameHeader),
        ("data", LidarMacAddressConfig),
        ("tail", FrameTail),
    )


# ---------------------------------------------------------------- work mode


@dataclass
class LidarWorkModeConfig(Struct):
    """Work mode word, see :class:`WorkMode` for its bits (4 bytes)."""

    mode: int = 0

    _FIELDS: ClassVar = (("mode", "I"),)


@dataclass
class LidarWorkModeConfigPacket(Struct):
    """Framed work mode (28 bytes)."""

    header: FrameHeader = field(default_factory=FrameHeader)
    data: LidarWorkModeConfig = field(default_factory=LidarWorkModeConfig)
    tail: FrameTail = field(default_factory=FrameTail)

    _FIELDS: ClassVar = (
        ("header", FrameHeader),
        ("data", LidarWorkModeConfig),
        ("tail", FrameTail),
    )


# ------------------------------------------------------------- user command


@dataclass
class LidarUserCtrlCmd(Struct):
    """User control command (8 bytes)."""

    cmd_type: int = 0
    cmd_value: int = 0

    _FIELDS: ClassVar = (("cmd_type", "I"), ("cmd_value", "I"))


@dataclass
class LidarUserCtrlCmdPacket(Struct):
    """Framed user control command (32 bytes)."""

    header: FrameHeader = field(default_factory=FrameHeader)
    data: LidarUserCtrlCmd = field(default_factory=LidarUserCtrlCmd)
    tail: FrameTail = field(default_factory=FrameTail)

    _FIELDS: ClassVar = (
        ("header", FrameHeader),
        ("data", LidarUserCtrlCmd),
        ("tail", FrameTail),
    )