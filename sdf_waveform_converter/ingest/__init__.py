"""Ingest package - digitizer session and channel classification.

This package handles:
- Loading the vendor ``sdfifc`` library through ctypes
- Reading file information, calibration tables and records from .sdf files
- Grouping a record's sample blocks by detector channel

Key classes:
- DigitizerSession: Scoped wrapper around one native file handle
- ChannelBlocks: A record's blocks grouped into high, low and reference

Design principle:
- Native channel codes are validated once, when a record is read
- Native memory is copied into numpy arrays before the next library call
"""
from .channel_detect import ChannelBlocks, classify_blocks
from .fwifc import library_version, load_library
from .session import DigitizerSession

__all__ = [
    "ChannelBlocks",
    "DigitizerSession",
    "classify_blocks",
    "library_version",
    "load_library",
]
