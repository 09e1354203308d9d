"""Render package.

``frame_driver`` has no GL dependency; the GL painter and grid import
OpenGL at use, so tests can drive frames against a recording painter.
"""

from .frame_driver import FrameDriver, FrameStats, Mount

__all__ = [
    "FrameDriver",
    "FrameStats",
    "Mount",
]
