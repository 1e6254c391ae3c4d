"""Unitree L2 lidar diagnostics: UDP packet decoding, commands and point clouds."""

__version__ = "0.2.4"