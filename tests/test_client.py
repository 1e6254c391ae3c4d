import select
import socket

import pytest

from l2diag.client import (
    L2Lidar,
    LidarConnectionError,
    build_user_command,
    build_work_mode_command,
)
from l2diag.decoder import LidarDecoder
from l2diag.pointcloud import crc32
from l2diag.protocol import (
    FrameHeader,
    FrameTail,
    LidarAckData,
    LidarAckDataPacket,
    LidarUserCtrlCmdPacket,
    LidarWorkModeConfigPacket,
    PacketType,
    UserCommandType,
    WorkMode,
)


@pytest.fixture
def receiver():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    yield sock
    sock.close()


@pytest.fixture
def lidar(receiver):
    device = L2Lidar(LidarDecoder())
    device.configure("127.0.0.1", 0, "127.0.0.1", receiver.getsockname()[1])
    device.connect()
    yield device
    device.disconnect()


def test_user_command_layout():
    raw = build_user_command(UserCommandType.STANDBY, 0)
    assert len(raw) == LidarUserCtrlCmdPacket.size()
    packet = LidarUserCtrlCmdPacket.unpack(raw)
    assert raw[:4] == bytes((0x55, 0xAA, 0x05, 0x0A))
    assert packet.header.packet_type == PacketType.USER_CMD
    assert packet.header.packet_size == len(raw)
    assert packet.data.cmd_type == UserCommandType.STANDBY
    assert packet.data.cmd_value == 0
    assert packet.tail.crc32 == crc32(packet.data.pack())
    assert packet.tail.msg_type_check == 0
    assert packet.tail.reserve == bytes((0xFF, 0x7F))
    assert raw[-2:] == bytes((0x00, 0xFF))


def test_work_mode_command_layout():
    mode = WorkMode.WIDE_FOV | WorkMode.STARTUP_WAIT
    raw = build_work_mode_command(mode)
    packet = LidarWorkModeConfigPacket.unpack(raw)
    assert len(raw) == LidarWorkModeConfigPacket.size()
    assert packet.header.packet_type == PacketType.PARAM_WORK_MODE
    assert packet.data.mode == int(mode)
    assert packet.tail.msg_type_check == 0x00007FFF
    assert packet.tail.reserve == bytes((0x5B, 0x5F))
    assert packet.tail.crc32 == crc32(packet.data.pack())


def test_different_commands_differ_in_crc():
    start = LidarUserCtrlCmdPacket.unpack(build_user_command(UserCommandType.STANDBY, 0))
    stop = LidarUserCtrlCmdPacket.unpack(build_user_command(UserCommandType.STANDBY, 1))
    assert start.tail.crc32 != stop.tail.crc32
    assert stop.tail.crc32 == crc32(stop.data.pack())


@pytest.mark.parametrize(
    "method, cmd_type, cmd_value",
    [
        ("start_rotation", UserCommandType.STANDBY, 0),
        ("stop_rotation", UserCommandType.STANDBY, 1),
        ("reset", UserCommandType.RESET, 1),
        ("get_version", UserCommandType.VERSION_GET, 0),
    ],
)
def test_commands_are_sent(lidar, receiver, method, cmd_type, cmd_value):
    written = getattr(lidar, method)()
    received, _ = receiver.recvfrom(2048)
    assert received == build_user_command(cmd_type, cmd_value)
    assert written == len(received)


def test_set_work_mode_is_sent(lidar, receiver):
    lidar.set_work_mode(WorkMode.MODE_2D)
    received, _ = receiver.recvfrom(2048)
    assert received == build_work_mode_command(WorkMode.MODE_2D)


def test_send_without_connect_raises():
    device = L2Lidar()
    device.configure("127.0.0.1", 0, "127.0.0.1", 9)
    with pytest.raises(LidarConnectionError):
        device.start_rotation()
    with pytest.raises(LidarConnectionError):
        device.read_pending()
    assert device.connected is False


def test_bind_failure_raises():
    device = L2Lidar()
    device.configure("256.1.1.1", 0, "127.0.0.1", 9)
    with pytest.raises(LidarConnectionError):
        device.connect()
    assert device.connected is False


def test_double_connect_raises(lidar):
    with pytest.raises(LidarConnectionError):
        lidar.connect()


def test_disconnect_closes(lidar):
    lidar.disconnect()
    assert lidar.connected is False
    with pytest.raises(LidarConnectionError):
        lidar.fileno()


def _ack_packet() -> bytes:
    data = LidarAckData(
        packet_type=PacketType.USER_CMD,
        cmd_type=UserCommandType.STANDBY,
        cmd_value=1,
        status=1,
    )
    packet = LidarAckDataPacket(
        header=FrameHeader(
            packet_type=PacketType.ACK_DATA, packet_size=LidarAckDataPacket.size()
        ),
        data=data,
        tail=FrameTail(crc32=crc32(data.pack())),
    )
    return packet.pack()


def test_read_pending_decodes(lidar):
    assert lidar.read_pending() == 0
    sender = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sender.sendto(_ack_packet(), lidar.address)
    finally:
        sender.close()
    ready, _, _ = select.select([lidar], [], [], 2.0)
    assert ready == [lidar]
    assert lidar.read_pending() == 1
    assert lidar.decoder.counters().ack == 1
    assert lidar.decoder.ack().cmd_value == 1


def test_context_manager(receiver):
    device = L2Lidar()
    device.configure("127.0.0.1", 0, "127.0.0.1", receiver.getsockname()[1])
    with device as opened:
        assert opened.connected is True
    assert device.connected is False