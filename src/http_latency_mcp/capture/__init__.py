"""
Capture file reading and layer decoding.

Everything here ends in Packet objects, the core never sees dpkt types.
"""

from .reader import CaptureError, decode_frame, read_packets

__all__ = ["CaptureError", "decode_frame", "read_packets"]
