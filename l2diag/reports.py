"""Human-readable status lines for the decoded lidar packets."""

from __future__ import annotations

from .decoder import PacketCounters
from .pointcloud import PointUnitree, parse_point_cloud_3d
from .protocol import (
    AckStatus,
    CommandType,
    LidarAckData,
    LidarImuData,
    LidarPointDataPacket,
    LidarTimeStampData,
    LidarVersionData,
    PacketType,
    UserCommandType,
)

_USER_CMD_NAMES = {
    UserCommandType.RESET: "USER_CMD_RESET_TYPE",
    UserCommandType.STANDBY: "USER_CMD_STANDBY_TYPE",
    UserCommandType.VERSION_GET: "USER_CMD_VERSION_GET",
    UserCommandType.LATENCY: "USER_CMD_LATENCY_TYPE",
    UserCommandType.CONFIG_RESET: "USER_CMD_CONFIG_RESET",
    UserCommandType.CONFIG_GET: "USER_CMD_CONFIG_GET",
    UserCommandType.CONFIG_AUTO_STANDBY: "USER_CMD_CONFIG_AUTO_STANDBY",
}

_COMMAND_NAMES = {
    CommandType.RESET: "CMD_RESET_TYPE",
    CommandType.PARAM_SAVE: "CMD_PARAM_SAVE",
    CommandType.PARAM_GET: "CMD_PARAM_GET",
    CommandType.VERSION_GET: "CMD_VERSION_GET",
    CommandType.STANDBY: "CMD_STANDBY_TYPE",
    CommandType.LATENCY: "CMD_LATENCY_TYPE",
}

_PLAIN_PACKET_NAMES = {
    PacketType.POINT_DATA: "LIDAR_POINT_DATA_PACKET_TYPE",
    PacketType.POINT_DATA_2D: "LIDAR_2D_POINT_DATA_PACKET_TYPE",
    PacketType.IMU_DATA: "LIDAR_IMU_DATA_PACKET_TYPE",
    PacketType.VERSION: "LIDAR_VERSION_PACKET_TYPE",
    PacketType.TIME_STAMP: "LIDAR_TIME_STAMP_PACKET_TYPE",
    PacketType.WORK_MODE_CONFIG: "LIDAR_WORK_MODE_CONFIG_PACKET_TYPE",
    PacketType.IP_ADDRESS_CONFIG: "LIDAR_IP_ADDRESS_CONFIG_PACKET_TYPE",
    PacketType.MAC_ADDRESS_CONFIG: "LIDAR_MAC_ADDRESS_CONFIG_PACKET_TYPE",
    PacketType.PARAM_DATA: "LIDAR_PARAM_DATA_PACKET_TYPE",
}

# The sensor's status codes as the report has always labelled them.
_STATUS_TEXT = {
    AckStatus.SUCCESS: "ACK_SUCCESS",
    AckStatus.CRC_ERROR: "",
    AckStatus.HEADER_ERROR: "ACK_CRC_ERROR",
    AckStatus.BLOCK_ERROR: "ACK_BLOCK_ERROR",
    AckStatus.WAIT_ERROR: "ACK_WAIT_ERROR",
}


def _ack_packet_text(ack: LidarAckData) -> str:
    ptype, cmd, value = ack.packet_type, ack.cmd_type, ack.cmd_value

    if ptype == PacketType.USER_CMD:
        name = _USER_CMD_NAMES.get(cmd)
        if name is None:
            return f"ACK :LIDAR_USER_CMD_PACKET_TYPE:  cmd: {cmd}   value: {value}"
        return f"ACK: LIDAR_USER_CMD_PACKET_TYPE: {name}  value: {value}"

    if ptype == PacketType.ACK_DATA:
        return (
            f"ACK: LIDAR_ACK_DATA_PACKET_TYPE:  cmd: {cmd}  value:{value}"
            "  UNEXPECTED packet"
        )

    if ptype == PacketType.COMMAND:
        if cmd == CommandType.CONFIG_RESET:
            return f"ACK: LIDAR_COMMAND_PACKET_TYPE cmd: CMD_CONFIG_RESET  value:{value}"
        name = _COMMAND_NAMES.get(cmd, str(cmd))
        return f"ACK: LIDAR_COMMAND_PACKET_TYPE  cmd: {name}  value:{value}"

    name = _PLAIN_PACKET_NAMES.get(ptype)
    if name is not None:
        return f"ACK: {name}:  cmd: {cmd}  value:{value}"

    return f"ACK: problem unknown packet type: {ptype}  cmd: {cmd}  value:{value}"


def ack_report(ack: LidarAckData) -> str:
    """Describe an acknowledgement: what it answers and its result."""
    result = _STATUS_TEXT.get(ack.status, "Unknown status")
    return f"{_ack_packet_text(ack)}   {result}"


def imu_report(imu: LidarImuData) -> str:
    """Linear acceleration and angular velocity of an IMU sample."""
    ax, ay, az = imu.linear_acceleration
    gx, gy, gz = imu.angular_velocity
    return (
        "IMU: ax:%9.4f   ay:%9.4f   az:%9.4f  gx:%9.4f   gy:%9.4f  gz:%9.4f"
        % (ax, ay, az, gx, gy, gz)
    )


def pcl_report(packet: LidarPointDataPacket) -> str:
    """Point count, the first two points and sensor state of a 3D packet.

    Missing points are shown as zeros.
    """
    cloud = parse_point_cloud_3d(packet, False, 0.0, 100.0)
    first, second = (cloud.points + [PointUnitree(), PointUnitree()])[:2]
    state = packet.data.state
    return (
        "Num Points %5d\n 1: %7.2f,%7.2f,%7.2f:%1.1f\n2: %7.2f,%7.2f,%7.2f:%6.1f\n"
        " Dirty: %f\n APD: %f C"
        % (
            len(cloud.points),
            first.x,
            first.y,
            first.z,
            first.intensity,
            second.x,
            second.y,
            second.z,
            second.intensity,
            state.dirty_index,
            state.apd_temperature,
        )
    )


def _c_string(raw: bytes) -> str:
    return bytes(raw).split(b"\0", 1)[0].decode("utf-8", errors="replace")


def version_report(version: LidarVersionData) -> str:
    """Product name, hardware and firmware versions and build date."""
    hw = ".".join(str(b) for b in version.hw_version[:4])
    fw = ".".join(str(b) for b in version.sw_version[:4])
    date = "".join(chr(b) for b in version.date[:6] if b)
    if len(date) == 6:
        build = f"20{date[0:2]}-{date[2:4]}-{date[4:6]}"
    else:
        build = "20" + date
    product = _c_string(version.reserve)
    return f"{product}  HW Version: {hw}   FW Version: {fw}   Date: {build}"


def rate_report(rate: int) -> str:
    """Packet rate line."""
    return f"Rate: {rate} pkt/s"


def packet_stats_report(timestamp: LidarTimeStampData, counters: PacketCounters) -> str:
    """Latest time stamp and the packet counters on one line."""
    return (
        "Seconds:%6d   nsec:%9d    Packets Processed:%6d  3D PCL:%6d   2d PCL:%6d"
        "   IMU:%6d   ACK:%6d   Other:%6d   Lost:%6d"
        % (
            timestamp.data.sec,
            timestamp.data.nsec,
            counters.total,
            counters.pcl3d,
            counters.pcl2d,
            counters.imu,
            counters.ack,
            counters.other,
            counters.lost,
        )
    )