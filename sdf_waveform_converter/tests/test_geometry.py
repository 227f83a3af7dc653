from __future__ import annotations

import math

import pytest

from sdf_waveform_converter.analysis.geometry import (
    one_way_range,
    project_peak,
    rebase_time,
    scan_angle_deg,
)
from sdf_waveform_converter.analysis.reference import reference_time, sample_time
from sdf_waveform_converter.errors import NeedSingleReferencePeakError
from sdf_waveform_converter.models.points import Peak
from sdf_waveform_converter.models.records import Channel, FileInfo, Record, SampleBlock

INFO = FileInfo(
    instrument="TEST",
    serial="0",
    epoch="UNKNOWN",
    v_group=3.0e8,
    sampling_time=1.0e-9,
    gps_synchronized=False,
    num_facets=4,
)


def _record(origin=(0.0, 0.0, 0.0), direction=(1.0, 0.0, 0.0), **kw) -> Record:
    return Record(time_sorg=kw.pop("time_sorg", 0.0), time_external=kw.pop("time_external", 0.0),
                  origin=origin, direction=direction, **kw)


# -----------------------------------------------------------------------
# Reference alignment
# -----------------------------------------------------------------------


def test_reference_time_from_single_peak() -> None:
    block = SampleBlock(start_time=2.0e-6, channel=Channel.REFERENCE, samples=[0] * 32)
    t_ref = reference_time(block, [Peak(index=10, amplitude=100)], INFO.sampling_time)
    assert t_ref == pytest.approx(2.0e-6 + 10e-9, rel=0, abs=1e-18)


@pytest.mark.parametrize("n_peaks", [0, 2, 3])
def test_reference_time_needs_exactly_one_peak(n_peaks: int) -> None:
    block = SampleBlock(start_time=0.0, channel=Channel.REFERENCE, samples=[0] * 8)
    peaks = [Peak(index=i, amplitude=50) for i in range(n_peaks)]
    with pytest.raises(NeedSingleReferencePeakError) as exc_info:
        reference_time(block, peaks, INFO.sampling_time)
    assert exc_info.value.count == n_peaks


# -----------------------------------------------------------------------
# Building blocks
# -----------------------------------------------------------------------


def test_one_way_range_halves_time_of_flight() -> None:
    assert one_way_range(12e-9, 10e-9, 3.0e8) == pytest.approx(0.3)
    assert one_way_range(10e-9, 10e-9, 3.0e8) == 0.0


def test_scan_angle() -> None:
    assert scan_angle_deg((1.0, 0.0, 1.0)) == pytest.approx(45.0)
    assert scan_angle_deg((1.0, 5.0, -1.0)) == pytest.approx(-45.0)
    assert scan_angle_deg((1.0, 0.0, 0.0)) == 0.0
    assert scan_angle_deg((0.0, 0.0, 1.0)) == 90.0
    assert scan_angle_deg((0.0, 0.0, -1.0)) == -90.0


def test_scan_angle_undefined_without_x_or_z() -> None:
    assert math.isnan(scan_angle_deg((0.0, 1.0, 0.0)))
    assert math.isnan(scan_angle_deg((-0.0, 1.0, -0.0)))


def test_rebase_time_moves_onto_external_clock() -> None:
    r = _record(time_sorg=5.0, time_external=409000.0)
    assert rebase_time(5.25, r) == pytest.approx(409000.25)


# -----------------------------------------------------------------------
# project_peak
# -----------------------------------------------------------------------


def test_project_peak() -> None:
    block = SampleBlock(start_time=1.0e-6, channel=Channel.HIGH, samples=[0] * 16)
    record = _record(
        origin=(1.0, 2.0, 3.0),
        direction=(0.6, 0.0, 0.8),
        time_sorg=1.0e-6,
        time_external=100.0,
        facet=2,
    )
    peak = Peak(index=5, amplitude=90)
    p = project_peak(block, peak, record, INFO, t_ref=1.0e-6, target=1, num_target=1)

    peak_time = sample_time(block, 5, INFO.sampling_time)
    assert p.range == pytest.approx(1.5e8 * (peak_time - 1.0e-6))
    assert p.range == pytest.approx(0.75)
    assert p.x == pytest.approx(1.0 + 0.6 * 0.75)
    assert p.y == pytest.approx(2.0)
    assert p.z == pytest.approx(3.0 + 0.8 * 0.75)
    assert p.theta == pytest.approx(math.degrees(math.atan(0.8 / 0.6)))
    assert p.time == pytest.approx(100.0 + 5e-9)
    assert p.facet == 2
    assert p.high_channel
    assert p.peak is peak


def test_project_peak_low_channel_flag() -> None:
    block = SampleBlock(start_time=0.0, channel=Channel.LOW, samples=[0] * 4)
    p = project_peak(block, Peak(1, 30), _record(), INFO, 0.0, target=2, num_target=3)
    assert not p.high_channel
    assert (p.target, p.num_target) == (2, 3)


@pytest.mark.parametrize("target, num_target", [(0, 1), (3, 2)])
def test_project_peak_rejects_bad_target(target: int, num_target: int) -> None:
    block = SampleBlock(start_time=0.0, channel=Channel.HIGH, samples=[0] * 4)
    with pytest.raises(ValueError):
        project_peak(block, Peak(1, 30), _record(), INFO, 0.0, target=target, num_target=num_target)
