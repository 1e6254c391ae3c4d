# l2diag

`l2diag` is a library for diagnosing the Unitree L2 lidar through its Ethernet
(UDP) interface. It splits the datagrams the lidar sends into IMU, 3D point,
2D point, version, timestamp and ACK packets. It checks each packet's header
magic, tail marker and CRC32 and counts the bad ones as lost. It also builds
and sends the lidar's control commands: start or stop rotation, reset, get
version and set work mode.

## Installation

```
pip install .
```

The package has no runtime dependencies. To run the tests, install it with
`pip install .[test]` and run `pytest`.

## Decoding datagrams

```python
from l2diag.decoder import LidarDecoder, LidarEvent
from l2diag.pointcloud import parse_point_cloud_3d

decoder = LidarDecoder()

def on_cloud():
    cloud = parse_point_cloud_3d(decoder.pcl3d_packet(), False, 0, 100)
    print(len(cloud.points), "points")

decoder.subscribe(LidarEvent.PCL3D, on_cloud)
decoder.process_datagram(datagram)   # bytes received from the lidar
print(decoder.counters())
```

`LidarDecoder` keeps the latest packet of each kind. You can read them with
`imu()`, `pcl3d_packet()`, `pcl2d()`, `ack()`, `version()` and `timestamp()`.
`counters()` returns a `PacketCounters` snapshot, and `clear_counts()` sets
every counter back to zero.

## Talking to the lidar

`l2diag.client.L2Lidar` owns the UDP socket and passes received datagrams to
a decoder. To use it:

1. Create it, optionally over a decoder of your own.
2. Call `configure(src_ip, src_port, dst_ip, dst_port)`.
3. Call `connect()`, or use the object as a context manager.
4. Send commands with `start_rotation()`, `stop_rotation()`, `reset()`,
   `get_version()` or `set_work_mode(mode)`.

Call `read_pending()` whenever `select` reports the socket readable;
`fileno()` gives you the descriptor to pass to `select`. `read_pending()`
decodes every datagram waiting on the socket. Call `disconnect()` to close the
socket. If binding or sending fails, the client raises `LidarConnectionError`.

You can build command packets without a socket by calling
`build_user_command(cmd_type, cmd_value)` or `build_work_mode_command(mode)`.

## Other modules

- `l2diag.protocol`: the packed, little-endian packet structures, each with
  `pack()`, `unpack()` and `size()`, and the enums `PacketType`,
  `CommandType`, `UserCommandType`, `AckStatus` and `WorkMode`.
- `l2diag.pointcloud`: `crc32`, `parse_point_cloud_3d`,
  `parse_point_cloud_2d`, `system_timestamp` and `system_time`.
- `l2diag.frames`: `FrameRing` is a fixed-capacity store of recent frames.
  `FrameSkipper` thins out incoming frames. `frame_from_cloud` turns a parsed
  cloud into a frame.
- `l2diag.rates`: `RateTracker` turns a running packet total into
  packets-per-second values.
- `l2diag.reports`: text lines for ACK, IMU, point cloud, version, rate and
  packet statistics.
- `l2diag.camera`, `l2diag.render` and `l2diag.grid`: an orbit `Camera` with
  `perspective` and `look_at` matrices, grey colouring of points
  (`to_gl_points`) and the axis and ground-grid vertices
  (`axis_grid_vertices`) for a point cloud viewer.

## What it does not do

- `l2diag` has no command-line program and no window. You drive it from your
  own code.
- It does not draw anything. The camera, render and grid modules produce
  matrices and vertex data only.
- It does not store settings. Addresses, ports and the frame-skip count are
  whatever your code passes in.