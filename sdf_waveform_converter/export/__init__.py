"""Point output sinks (.sdc files and in-memory collection)."""

from .sdc import PointCollector, PointSink, SdcWriter, read_sdc

__all__ = ["PointCollector", "PointSink", "SdcWriter", "read_sdc"]
