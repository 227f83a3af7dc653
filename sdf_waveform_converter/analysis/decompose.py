from __future__ import annotations

import logging
from itertools import chain, repeat
from typing import List, Optional

from sdf_waveform_converter.analysis.geometry import project_peak
from sdf_waveform_converter.analysis.peaks import DetectFn, detect_peaks
from sdf_waveform_converter.analysis.reference import reference_time
from sdf_waveform_converter.ingest.channel_detect import classify_blocks
from sdf_waveform_converter.models.points import Point
from sdf_waveform_converter.models.profile import DetectionPolicy
from sdf_waveform_converter.models.records import FileInfo, Record

logger = logging.getLogger(__name__)


class RecordDecomposer:
    """Turns one record into zero or more :class:`Point` objects.

    Contract:
      - The record must hold exactly one reference block
        (:class:`~sdf_waveform_converter.errors.MalformedRecordError` otherwise).
      - The reference block must yield exactly one peak
        (:class:`~sdf_waveform_converter.errors.NeedSingleReferencePeakError`
        otherwise; recoverable).
      - Output order: low-channel blocks, then high-channel blocks, each in
        original block order; within a block, ascending sample index.
        ``target`` numbering follows this order and restarts at 1 per block.

    ``detect`` is the peak detector, ``detect(samples, settings) -> peaks``.
    Tests substitute it to pin exact peak indices.
    """

    def __init__(self, policy: Optional[DetectionPolicy] = None, detect: Optional[DetectFn] = None):
        self.policy = policy or DetectionPolicy()
        self.detect = detect or detect_peaks

    def decompose(self, record: Record, file_info: FileInfo) -> List[Point]:
        groups = classify_blocks(record.blocks)
        policy = self.policy

        reference_peaks = self.detect(groups.reference.samples, policy.reference_settings())
        t_ref = reference_time(groups.reference, reference_peaks, file_info.sampling_time)

        low_settings = policy.low_settings(groups.has_high)
        work = chain(
            zip(groups.low, repeat(low_settings)),
            zip(groups.high, repeat(policy.high)),
        )

        points: List[Point] = []
        for block, settings in work:
            peaks = list(self.detect(block.samples, settings))
            num_target = len(peaks)
            for target, peak in enumerate(peaks, start=1):
                points.append(
                    project_peak(
                        block,
                        peak,
                        record,
                        file_info,
                        t_ref,
                        target=target,
                        num_target=num_target,
                    )
                )

        logger.debug("Record at %.9f s: %d point(s)", record.time_external, len(points))
        return points


def decompose_record(
    record: Record,
    file_info: FileInfo,
    *,
    policy: Optional[DetectionPolicy] = None,
    detect: Optional[DetectFn] = None,
) -> List[Point]:
    """Convenience wrapper around :meth:`RecordDecomposer.decompose`."""
    return RecordDecomposer(policy, detect).decompose(record, file_info)
