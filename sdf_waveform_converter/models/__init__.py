from .points import Peak, Point
from .profile import DetectionPolicy, DetectorSettings
from .records import (
    Calibration,
    CalibrationTableKind,
    Channel,
    FileInfo,
    LibraryVersion,
    Record,
    SampleBlock,
    SosblMode,
)

__all__ = [
    "Calibration",
    "CalibrationTableKind",
    "Channel",
    "DetectionPolicy",
    "DetectorSettings",
    "FileInfo",
    "LibraryVersion",
    "Peak",
    "Point",
    "Record",
    "SampleBlock",
    "SosblMode",
]
