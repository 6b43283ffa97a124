"""
Storage helpers for packing lane values into one contiguous buffer.
"""

from .layout import LaneHandle, Layout

__all__ = ["Layout", "LaneHandle"]
