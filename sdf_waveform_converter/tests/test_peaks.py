"""Tests for the threshold/width/kurtosis peak detector."""

from __future__ import annotations

import dataclasses

import numpy as np
import pytest

from sdf_waveform_converter.analysis.peaks import detect_peaks, shape_stats
from sdf_waveform_converter.models.profile import DetectionPolicy, DetectorSettings

POLICY = DetectionPolicy()


def _waveform(n: int, base: int, pulses: dict) -> np.ndarray:
    """Flat ``base`` waveform with ``pulses`` ({start_index: [values...]}) pasted in."""
    x = np.full(n, base, dtype=np.uint16)
    for start, values in pulses.items():
        x[start : start + len(values)] = values
    return x


# -----------------------------------------------------------------------
# Acceptance
# -----------------------------------------------------------------------


def test_triangle_pulse_detected_at_apex() -> None:
    x = _waveform(30, 20, {10: [40, 60, 80, 60, 40]})
    peaks = detect_peaks(x, POLICY.high)

    assert len(peaks) == 1
    p = peaks[0]
    assert p.index == 12
    assert p.amplitude == 80
    assert p.height_above_background == 60.0
    assert p.mean == pytest.approx(12.0)
    assert p.rms == pytest.approx(np.sqrt(4.0 / 3.0))
    assert p.kurtosis == pytest.approx(-0.75)
    assert not p.saturated


def test_two_pulses_in_ascending_order() -> None:
    x = _waveform(60, 20, {30: [40, 60, 80, 60, 40], 10: [50, 80, 50]})
    peaks = detect_peaks(x, POLICY.high)
    assert [p.index for p in peaks] == [11, 32]
    assert [p.amplitude for p in peaks] == [80, 80]


def test_accepts_plain_lists() -> None:
    peaks = detect_peaks([20, 20, 50, 80, 50, 20, 20], POLICY.high)
    assert [p.index for p in peaks] == [3]


def test_too_short_input() -> None:
    assert detect_peaks([], POLICY.high) == []
    assert detect_peaks([10, 200], POLICY.high) == []


# -----------------------------------------------------------------------
# Rejection rules
# -----------------------------------------------------------------------


def test_below_floor_rejected() -> None:
    x = _waveform(20, 0, {5: [4, 9, 14, 9, 4]})
    assert detect_peaks(x, POLICY.high) == []


def test_too_narrow_rejected() -> None:
    # Only one rising sample; width 2 is required.
    x = _waveform(20, 20, {8: [80]})
    assert detect_peaks(x, POLICY.high) == []


def test_low_alone_needs_three_rising_samples() -> None:
    x = _waveform(20, 20, {6: [50, 80, 50]})
    assert len(detect_peaks(x, POLICY.low_with_high)) == 1
    assert detect_peaks(x, POLICY.low_alone) == []


def test_small_height_above_background_rejected() -> None:
    x = _waveform(20, 20, {8: [22, 24, 22]})
    assert detect_peaks(x, POLICY.high) == []


def test_spiky_shape_rejected_by_kurtosis() -> None:
    x = _waveform(20, 20, {5: [21, 22, 23, 100, 23, 22, 21]})
    assert detect_peaks(x, POLICY.high) == []

    relaxed = dataclasses.replace(POLICY.high, max_kurtosis=float("inf"))
    peaks = detect_peaks(x, relaxed)
    assert [p.index for p in peaks] == [8]
    assert peaks[0].kurtosis > 10.0


def test_single_sample_pulse_with_width_one() -> None:
    settings = DetectorSettings(width=1, floor=0, ceiling=255, max_kurtosis=float("inf"))
    peaks = detect_peaks([0, 0, 10, 0, 0], settings)
    assert [p.index for p in peaks] == [2]
    assert peaks[0].rms == 0.0
    assert np.isnan(peaks[0].kurtosis)


def test_single_sample_pulse_rejected_with_finite_kurtosis_limit() -> None:
    settings = DetectorSettings(width=1, floor=0, ceiling=255, max_kurtosis=0.04)
    assert detect_peaks([0, 0, 10, 0, 0], settings) == []


def test_ceiling_depends_on_channel_settings() -> None:
    x = _waveform(20, 100, {5: [150, 200, 252, 200, 150]})
    assert [p.amplitude for p in detect_peaks(x, POLICY.high)] == [252]
    # Low channel alone: ceiling 250, not yet saturated at 252.
    assert detect_peaks(x, POLICY.low_alone) == []


# -----------------------------------------------------------------------
# Saturation
# -----------------------------------------------------------------------


def test_saturated_plateau_detected_at_centre() -> None:
    x = _waveform(20, 100, {6: [150, 200, 255, 255, 255, 200, 150]})
    peaks = detect_peaks(x, POLICY.low_alone)

    assert len(peaks) == 1
    assert peaks[0].index == 9
    assert peaks[0].amplitude == 255
    assert peaks[0].saturated


def test_saturated_plateau_ignored_without_saturation_setting() -> None:
    x = _waveform(20, 100, {6: [150, 200, 255, 255, 255, 200, 150]})
    capped = dataclasses.replace(POLICY.high, ceiling=250)
    assert detect_peaks(x, capped) == []


# -----------------------------------------------------------------------
# shape_stats
# -----------------------------------------------------------------------


def test_shape_stats_zero_spread() -> None:
    mean, rms, kurt = shape_stats(np.array([0.0, 5.0, 0.0]), offset=4)
    assert mean == 5.0
    assert rms == 0.0
    assert np.isnan(kurt)


def test_shape_stats_empty_weights() -> None:
    mean, rms, kurt = shape_stats(np.zeros(3))
    assert np.isnan(mean) and np.isnan(rms) and np.isnan(kurt)
