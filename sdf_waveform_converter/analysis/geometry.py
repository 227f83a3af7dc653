"""Peak timing to scanner-frame geometry.

All arithmetic is double precision.  Narrowing to single precision happens
only when points are written to disk.

Time rebasing
-------------
Point times are ``peak_time - time_sorg + time_external``: the block clock is
moved from the start of the range gate onto the external (epoch) clock.
"""

from __future__ import annotations

import math
from typing import Tuple

from sdf_waveform_converter.analysis.reference import sample_time
from sdf_waveform_converter.models.points import Peak, Point
from sdf_waveform_converter.models.records import Channel, FileInfo, Record, SampleBlock


def one_way_range(peak_time: float, t_ref: float, v_group: float) -> float:
    """Two-way time of flight since ``t_ref`` converted to one-way range (m)."""
    return v_group / 2.0 * (peak_time - t_ref)


def scan_angle_deg(direction: Tuple[float, float, float]) -> float:
    """Mirror scan angle in degrees.

    x points straight out of the scanner and the mirror pans the beam along
    z, so the angle is ``atan(z / x)``.  A beam with no x component is at
    +/-90 degrees following the sign of z, and undefined (``nan``) when z is
    zero as well.
    """
    dx, _, dz = direction
    if dx == 0.0:
        if dz == 0.0:
            return float("nan")
        return math.copysign(90.0, dz)
    return math.degrees(math.atan(dz / dx))


def rebase_time(peak_time: float, record: Record) -> float:
    return peak_time - record.time_sorg + record.time_external


def project_peak(
    block: SampleBlock,
    peak: Peak,
    record: Record,
    file_info: FileInfo,
    t_ref: float,
    *,
    target: int,
    num_target: int,
) -> Point:
    """Build the :class:`Point` for one detected peak.

    Parameters
    ----------
    block:
        Block the peak was detected in.
    peak:
        The detected peak.
    record:
        Record that owns ``block`` (geometry and clocks).
    file_info:
        Session-wide group velocity and sampling interval.
    t_ref:
        Time origin from the reference block of the same record.
    target, num_target:
        1-indexed position of the peak within its block, and the block's peak count.
    """
    if not 1 <= target <= num_target:
        raise ValueError(f"target {target} outside 1..{num_target}")

    t = sample_time(block, peak.index, file_info.sampling_time)
    rng = one_way_range(t, t_ref, file_info.v_group)
    ox, oy, oz = record.origin
    dx, dy, dz = record.direction

    return Point(
        time=rebase_time(t, record),
        range=rng,
        theta=scan_angle_deg(record.direction),
        x=ox + dx * rng,
        y=oy + dy * rng,
        z=oz + dz * rng,
        target=int(target),
        num_target=int(num_target),
        facet=int(record.facet),
        high_channel=block.channel == Channel.HIGH,
        peak=peak,
    )
