from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from sdf_waveform_converter.errors import NeedSingleReferencePeakError
from sdf_waveform_converter.models.points import Peak
from sdf_waveform_converter.models.records import SampleBlock

logger = logging.getLogger(__name__)


def sample_time(block: SampleBlock, index: int, sampling_time: float) -> float:
    """Absolute time of sample ``index`` within ``block``, in seconds."""
    return block.start_time + float(index) * sampling_time


def reference_time(block: SampleBlock, peaks: Sequence[Peak], sampling_time: float) -> float:
    """Time origin ``t_ref`` of a pulse, from its reference block's peaks.

    The reference channel records the outgoing pulse, so exactly one peak is
    expected.  Any other count raises
    :class:`~sdf_waveform_converter.errors.NeedSingleReferencePeakError`
    carrying that count; callers may skip the record.
    """
    if len(peaks) != 1:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Could not get a single reference peak (%d found) out of: %s",
                len(peaks),
                np.array2string(block.samples, separator=", ", threshold=10_000),
            )
        raise NeedSingleReferencePeakError(len(peaks))
    return sample_time(block, peaks[0].index, sampling_time)
