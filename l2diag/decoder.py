"""Decoding of datagrams received from the L2 lidar.

A datagram may hold several framed packets back to back. Each packet is
checked for its header magic, tail marker and CRC, then dispatched by its
packet type. The latest packet of each kind is kept and listeners are told
when one arrives. Packets that fail a check are counted as lost.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .pointcloud import crc32
from .protocol import (
    FRAME_HEADER,
    FRAME_TAIL,
    FrameHeader,
    FrameTail,
    Lidar2DPointData,
    Lidar2DPointDataPacket,
    LidarAckData,
    LidarAckDataPacket,
    LidarImuData,
    LidarImuDataPacket,
    LidarPointDataPacket,
    LidarTimeStampData,
    LidarTimeStampPacket,
    LidarVersionData,
    LidarVersionDataPacket,
    PacketType,
    TimeStamp,
)

log = logging.getLogger(__name__)

_HEADER_SIZE = FrameHeader.size()
_TAIL_SIZE = FrameTail.size()
_FRAME_OVERHEAD = _HEADER_SIZE + _TAIL_SIZE


class LidarEvent(Enum):
    """Notifications raised when a packet of a kind has been decoded."""

    IMU = "imu"
    PCL3D = "pcl3d"
    PCL2D = "pcl2d"
    VERSION = "version"
    TIMESTAMP = "timestamp"
    ACK = "ack"


@dataclass(frozen=True)
class PacketCounters:
    """Snapshot of the packet statistics; informative only."""

    total: int = 0
    lost: int = 0
    imu: int = 0
    ack: int = 0
    pcl3d: int = 0
    pcl2d: int = 0
    other: int = 0


Callback = Callable[[], None]


class LidarDecoder:
    """Splits datagrams into packets, validates them and keeps the latest of each."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: dict[LidarEvent, list[Callback]] = defaultdict(list)

        self._imu = LidarImuData()
        self._version = LidarVersionData()
        self._timestamp = LidarTimeStampData()
        self._pcl2d = Lidar2DPointData()
        self._pcl3d_packet = LidarPointDataPacket()
        self._ack = LidarAckData()

        self._total = 0
        self._lost = 0
        self._imu_count = 0
        self._ack_count = 0
        self._pcl3d_count = 0
        self._pcl2d_count = 0
        self._other = 0

    # ------------------------------------------------------------ listeners

    def subscribe(self, event: LidarEvent, callback: Callback) -> Callback:
        """Call ``callback`` with no arguments whenever ``event`` occurs."""
        self._listeners[LidarEvent(event)].append(callback)
        return callback

    def _emit(self, *events: LidarEvent) -> None:
        for event in events:
            for callback in list(self._listeners[event]):
                callback()

    # ------------------------------------------------------------- decoding

    def process_datagram(self, datagram: bytes) -> None:
        """Decode every packet in ``datagram``, stopping at the first bad one."""
        data = bytes(datagram)
        length = len(data)
        if length < _FRAME_OVERHEAD:
            self._lost += 1
            return

        offset = 0
        while offset < length:
            if length - offset < _HEADER_SIZE:
                self._lost += 1
                return
            header = FrameHeader.unpack(data, offset)
            if header.header != FRAME_HEADER:
                self._lost += 1
                return

            size = header.packet_size
            if size < _FRAME_OVERHEAD or offset + size > length:
                self._lost += 1
                return

            tail = FrameTail.unpack(data, offset + size - _TAIL_SIZE)
            if tail.tail != FRAME_TAIL:
                self._lost += 1
                return

            payload = data[offset + _HEADER_SIZE : offset + size - _TAIL_SIZE]
            if crc32(payload) != tail.crc32:
                self._lost += 1
                return

            self._dispatch(header, data, offset)
            offset += size

    def _dispatch(self, header: FrameHeader, data: bytes, offset: int) -> None:
        handlers = {
            PacketType.IMU_DATA: self._decode_imu,
            PacketType.POINT_DATA: self._decode_3d,
            PacketType.POINT_DATA_2D: self._decode_2d,
            PacketType.VERSION: self._decode_version,
            PacketType.TIME_STAMP: self._decode_timestamp,
            PacketType.ACK_DATA: self._decode_ack,
        }
        handler = handlers.get(header.packet_type)
        if handler is None:
            self._handle_raw(header, data, offset)
        else:
            handler(header, data, offset)

    def _size_ok(self, header: FrameHeader, packet_cls: type) -> bool:
        if header.packet_size != packet_cls.size():
            self._lost += 1
            return False
        return True

    def _decode_3d(self, header: FrameHeader, data: bytes, offset: int) -> None:
        if not self._size_ok(header, LidarPointDataPacket):
            return
        self._total += 1
        self._pcl3d_count += 1
        packet = LidarPointDataPacket.unpack(data, offset)
        stamp = packet.data.info.stamp
        with self._lock:
            self._pcl3d_packet = packet
            self._timestamp = LidarTimeStampData(TimeStamp(stamp.sec, stamp.nsec))
        self._emit(LidarEvent.TIMESTAMP, LidarEvent.PCL3D)

    def _decode_2d(self, header: FrameHeader, data: bytes, offset: int) -> None:
        if not self._size_ok(header, Lidar2DPointDataPacket):
            return
        self._total += 1
        self._pcl2d_count += 1
        packet = Lidar2DPointDataPacket.unpack(data, offset)
        stamp = packet.data.info.stamp
        with self._lock:
            self._pcl2d = packet.data
            self._timestamp = LidarTimeStampData(TimeStamp(stamp.sec, stamp.nsec))
        self._emit(LidarEvent.TIMESTAMP, LidarEvent.PCL2D)

    def _decode_imu(self, header: FrameHeader, data: bytes, offset: int) -> None:
        if not self._size_ok(header, LidarImuDataPacket):
            return
        self._total += 1
        self._imu_count += 1
        packet = LidarImuDataPacket.unpack(data, offset)
        stamp = packet.data.info.stamp
        with self._lock:
            self._imu = packet.data
            self._timestamp = LidarTimeStampData(TimeStamp(stamp.sec, stamp.nsec))
        self._emit(LidarEvent.TIMESTAMP, LidarEvent.IMU)

    def _decode_version(self, header: FrameHeader, data: bytes, offset: int) -> None:
        if not self._size_ok(header, LidarVersionDataPacket):
            return
        self._other += 1
        self._total += 1
        packet = LidarVersionDataPacket.unpack(data, offset)
        with self._lock:
            self._version = packet.data
        self._emit(LidarEvent.VERSION)

    def _decode_timestamp(self, header: FrameHeader, data: bytes, offset: int) -> None:
        if not self._size_ok(header, LidarTimeStampPacket):
            return
        self._other += 1
        self._total += 1
        packet = LidarTimeStampPacket.unpack(data, offset)
        with self._lock:
            self._timestamp = packet.data
        self._emit(LidarEvent.TIMESTAMP)

    def _decode_ack(self, header: FrameHeader, data: bytes, offset: int) -> None:
        if not self._size_ok(header, LidarAckDataPacket):
            return
        self._total += 1
        self._ack_count += 1
        packet = LidarAckDataPacket.unpack(data, offset)
        with self._lock:
            self._ack = packet.data
        self._emit(LidarEvent.ACK)

    def _handle_raw(self, header: FrameHeader, data: bytes, offset: int) -> None:
        log.debug(
            "raw packet type %d size %d: %s ...",
            header.packet_type,
            header.packet_size,
            data.hex(" ").upper()[:128],
        )
        self._other += 1
        self._total += 1

    # ------------------------------------------------------------ statistics

    def clear_counts(self) -> None:
        """Reset all packet counters to zero."""
        self._total = 0
        self._lost = 0
        self._imu_count = 0
        self._ack_count = 0
        self._pcl3d_count = 0
        self._pcl2d_count = 0
        self._other = 0

    def counters(self) -> PacketCounters:
        """Current packet statistics."""
        return PacketCounters(
            total=self._total,
            lost=self._lost,
            imu=self._imu_count,
            ack=self._ack_count,
            pcl3d=self._pcl3d_count,
            pcl2d=self._pcl2d_count,
            other=self._other,
        )

    # ------------------------------------------------------- latest packets

    def _copy(self, value):
        with self._lock:
            return copy.deepcopy(value)

    def imu(self) -> LidarImuData:
        """Latest IMU sample."""
        return self._copy(self._imu)

    def pcl3d_packet(self) -> LidarPointDataPacket:
        """Latest complete 3D point packet."""
        return self._copy(self._pcl3d_packet)

    def pcl2d(self) -> Lidar2DPointData:
        """Latest 2D scan data."""
        return self._copy(self._pcl2d)

    def ack(self) -> LidarAckData:
        """Latest acknowledgement."""
        return self._copy(self._ack)

    def version(self) -> LidarVersionData:
        """Latest version information."""
        return self._copy(self._version)

    def timestamp(self) -> LidarTimeStampData:
        """Time stamp of the latest packet that carried one."""
        return self._copy(self._timestamp)