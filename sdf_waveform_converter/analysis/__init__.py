"""Record-to-point decomposition package.

Design principle:
  - Ingest produces validated :class:`~sdf_waveform_converter.models.records.Record` objects.
  - Analysis consumes one Record at a time and produces
    :class:`~sdf_waveform_converter.models.points.Point` objects.

Each decomposition depends only on its own Record and the session-wide,
read-only :class:`~sdf_waveform_converter.models.records.FileInfo`.
"""

from .convert import ConversionSummary, convert_file, convert_records
from .decompose import RecordDecomposer, decompose_record
from .geometry import project_peak, scan_angle_deg
from .peaks import detect_peaks
from .reference import reference_time

__all__ = [
    "ConversionSummary",
    "RecordDecomposer",
    "convert_file",
    "convert_records",
    "decompose_record",
    "detect_peaks",
    "project_peak",
    "reference_time",
    "scan_angle_deg",
]
