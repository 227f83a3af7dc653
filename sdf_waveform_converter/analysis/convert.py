"""Whole-file conversion: sdf records in, points out.

:func:`convert_records` drives an already-open session; :func:`convert_file`
owns the session and the .sdc writer and releases both on every exit path.

Records whose reference waveform does not give exactly one peak are skipped
(and listed in the summary); every other error aborts the conversion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from sdf_waveform_converter.analysis.decompose import RecordDecomposer
from sdf_waveform_converter.analysis.peaks import DetectFn
from sdf_waveform_converter.errors import EndOfFileError, NeedSingleReferencePeakError
from sdf_waveform_converter.export.sdc import PointSink, SdcWriter
from sdf_waveform_converter.ingest.session import DigitizerSession
from sdf_waveform_converter.models.profile import DetectionPolicy
from sdf_waveform_converter.models.records import FileInfo

logger = logging.getLogger(__name__)


@dataclass
class ConversionSummary:
    """Counts from one conversion run.

    ``skipped_records`` holds the native (1-based) index of every record
    skipped for lack of a single reference peak.
    """

    records_read: int = 0
    points_written: int = 0
    skipped_records: List[int] = field(default_factory=list)

    @property
    def records_converted(self) -> int:
        return self.records_read - len(self.skipped_records)


def convert_records(
    session,
    file_info: FileInfo,
    sink: PointSink,
    *,
    policy: Optional[DetectionPolicy] = None,
    detect: Optional[DetectFn] = None,
) -> ConversionSummary:
    """Decompose every remaining record of ``session`` into ``sink``.

    ``session`` needs ``tell()`` and ``read()`` (raising
    :class:`~sdf_waveform_converter.errors.EndOfFileError` at the end), as
    provided by :class:`DigitizerSession`.  Iteration starts at the current
    cursor; after ``reindex()`` that is the first record.
    """
    decomposer = RecordDecomposer(policy, detect)
    summary = ConversionSummary()

    while True:
        index = session.tell()
        try:
            record = session.read()
        except EndOfFileError:
            break
        summary.records_read += 1

        try:
            points = decomposer.decompose(record, file_info)
        except NeedSingleReferencePeakError as exc:
            logger.warning(
                "No single reference peak for record %d (found %d), skipping", index, exc.count
            )
            summary.skipped_records.append(index)
            continue

        for point in points:
            sink.write_point(point)
        summary.points_written += len(points)

    return summary


def convert_file(
    sdf_path: Union[str, Path],
    sdc_path: Union[str, Path],
    *,
    policy: Optional[DetectionPolicy] = None,
    library: Optional[Union[str, Path]] = None,
) -> ConversionSummary:
    """Write all points of an .sdf file to an .sdc file.

    Examples
    --------
    >>> convert_file("110630_174316.sdf", "110630_174316.sdc")  # doctest: +SKIP
    """
    with DigitizerSession.open(sdf_path, library=library) as session:
        file_info = session.info()
        session.reindex()
        with SdcWriter(sdc_path) as writer:
            logger.info("Converting %s -> %s", sdf_path, sdc_path)
            summary = convert_records(session, file_info, writer, policy=policy)

    logger.info(
        "Converted %d of %d record(s), %d point(s) written, %d skipped",
        summary.records_converted,
        summary.records_read,
        summary.points_written,
        len(summary.skipped_records),
    )
    return summary
