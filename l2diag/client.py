"""UDP link to the L2 lidar: receiving datagrams and sending commands.

Packets from the sensor arrive on the local (source) address; commands are
sent to the sensor's (destination) address. Only the link parameters are
held here; the sensor's own network configuration is not changed.
"""

from __future__ import annotations

import logging
import socket
from typing import Optional

from .decoder import LidarDecoder
from .pointcloud import crc32
from .protocol import (
    FRAME_HEADER,
    FRAME_TAIL,
    FrameHeader,
    FrameTail,
    LidarUserCtrlCmd,
    LidarUserCtrlCmdPacket,
    LidarWorkModeConfig,
    LidarWorkModeConfigPacket,
    PacketType,
    UserCommandType,
)

log = logging.getLogger(__name__)

MAX_DATAGRAM = 65535

# Tail values seen in commands recorded from the vendor tools.
_USER_CMD_MSG_CHECK = 0
_USER_CMD_RESERVE = bytes((0xFF, 0x7F))
_WORK_MODE_MSG_CHECK = 0x00007FFF
_WORK_MODE_RESERVE = bytes((0x5B, 0x5F))


class LidarConnectionError(OSError):
    """The UDP link could not be opened or a packet could not be sent."""


def build_user_command(cmd_type: int, cmd_value: int) -> bytes:
    """Wire bytes of a user control command packet."""
    data = LidarUserCtrlCmd(cmd_type=int(cmd_type), cmd_value=int(cmd_value))
    packet = LidarUserCtrlCmdPacket(
        header=FrameHeader(
            header=FRAME_HEADER,
            packet_type=PacketType.USER_CMD,
            packet_size=LidarUserCtrlCmdPacket.size(),
        ),
        data=data,
        tail=FrameTail(
            crc32=crc32(data.pack()),
            msg_type_check=_USER_CMD_MSG_CHECK,
            reserve=_USER_CMD_RESERVE,
            tail=FRAME_TAIL,
        ),
    )
    return packet.pack()


def build_work_mode_command(mode: int) -> bytes:
    """Wire bytes of a work mode packet; the sensor needs a restart to apply it."""
    data = LidarWorkModeConfig(mode=int(mode))
    packet = LidarWorkModeConfigPacket(
        header=FrameHeader(
            header=FRAME_HEADER,
            packet_type=PacketType.PARAM_WORK_MODE,
            packet_size=LidarWorkModeConfigPacket.size(),
        ),
        data=data,
        tail=FrameTail(
            crc32=crc32(data.pack()),
            msg_type_check=_WORK_MODE_MSG_CHECK,
            reserve=_WORK_MODE_RESERVE,
            tail=FRAME_TAIL,
        ),
    )
    return packet.pack()


class L2Lidar:
    """Owns the UDP socket and feeds received datagrams to a decoder."""

    def __init__(self, decoder: Optional[LidarDecoder] = None) -> None:
        self.decoder = decoder if decoder is not None else LidarDecoder()
        self.src_ip = ""
        self.src_port = 0
        self.dst_ip = ""
        self.dst_port = 0
        self._socket: Optional[socket.socket] = None

    def __enter__(self) -> L2Lidar:
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.disconnect()

    # ------------------------------------------------------------ settings

    def configure(self, src_ip: str, src_port: int, dst_ip: str, dst_port: int) -> None:
        """Set the local receive address and the sensor's command address."""
        self.src_ip = src_ip
        self.src_port = int(src_port)
        self.dst_ip = dst_ip
        self.dst_port = int(dst_port)

    @property
    def connected(self) -> bool:
        """Whether the socket is bound."""
        return self._socket is not None

    @property
    def address(self) -> tuple[str, int]:
        """Local address the socket is bound to."""
        if self._socket is None:
            raise LidarConnectionError("socket not open")
        return self._socket.getsockname()[:2]

    # -------------------------------------------------------------- socket

    def connect(self) -> None:
        """Bind the receive socket to the configured source address."""
        if self._socket is not None:
            raise LidarConnectionError("socket already open")
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((self.src_ip, self.src_port))
        except (OSError, OverflowError) as exc:
            sock.close()
            raise LidarConnectionError(
                f"failed to bind UDP socket to {self.src_ip}:{self.src_port}: {exc}"
            ) from exc
        sock.setblocking(False)
        self._socket = sock

    def disconnect(self) -> None:
        """Close the socket; harmless when it is not open."""
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def fileno(self) -> int:
        """File descriptor of the socket, for use with ``select``."""
        if self._socket is None:
            raise LidarConnectionError("socket not open")
        return self._socket.fileno()

    def read_pending(self) -> int:
        """Decode every datagram waiting on the socket; return how many were read."""
        if self._socket is None:
            raise LidarConnectionError("socket not open")
        count = 0
        while True:
            try:
                datagram, _sender = self._socket.recvfrom(MAX_DATAGRAM)
            except (BlockingIOError, InterruptedError):
                return count
            self.decoder.process_datagram(datagram)
            count += 1

    def send_packet(self, packet: bytes) -> int:
        """Send ``packet`` to the sensor; return the number of bytes written."""
        if self._socket is None:
            raise LidarConnectionError("socket not open")
        try:
            return self._socket.sendto(bytes(packet), (self.dst_ip, self.dst_port))
        except (OSError, OverflowError) as exc:
            raise LidarConnectionError(f"error sending datagram: {exc}") from exc

    # ------------------------------------------------------------ commands

    def start_rotation(self) -> int:
        """Leave standby and start rotating."""
        return self.send_packet(build_user_command(UserCommandType.STANDBY, 0))

    def stop_rotation(self) -> int:
        """Enter standby and stop rotating."""
        return self.send_packet(build_user_command(UserCommandType.STANDBY, 1))

    def reset(self) -> int:
        """Reset the sensor; it does so at once and sends no ACK."""
        return self.send_packet(build_user_command(UserCommandType.RESET, 1))

    def get_version(self) -> int:
        """Ask the sensor for a version packet."""
        return self.send_packet(build_user_command(UserCommandType.VERSION_GET, 0))

    def set_work_mode(self, mode: int) -> int:
        """Set the work mode word; takes effect after a reset or power cycle."""
        return self.send_packet(build_work_mode_command(mode))