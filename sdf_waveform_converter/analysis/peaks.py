"""Threshold / width / kurtosis peak detection on raw waveform samples.

Candidates are the local maxima reported by :func:`scipy.signal.find_peaks`
(flat tops allowed; the centre sample is used).  A candidate becomes a
:class:`~sdf_waveform_converter.models.points.Peak` when:

- at least ``width`` strictly rising samples lead into it and at least
  ``width`` strictly falling samples follow it
- its amplitude is within ``[floor, ceiling]``, or at/above ``saturation``
  when saturation handling is enabled
- it rises at least ``min_height_above_background`` above the lower end of
  its extent (the rising and falling runs)
- the excess kurtosis of its shape, weighted by height above background,
  does not exceed ``max_kurtosis`` (not checked for saturated peaks, nor
  when ``max_kurtosis`` is infinite)
"""

from __future__ import annotations

from typing import Callable, List, Sequence, Tuple

import numpy as np
from scipy.signal import find_peaks

from sdf_waveform_converter.models.points import Peak
from sdf_waveform_converter.models.profile import DetectorSettings

DetectFn = Callable[[np.ndarray, DetectorSettings], Sequence[Peak]]


def _rising_run(dx: np.ndarray, left: int) -> int:
    """Number of strictly increasing steps ending at sample ``left``."""
    n = 0
    j = left - 1
    while j >= 0 and dx[j] > 0:
        n += 1
        j -= 1
    return n


def _falling_run(dx: np.ndarray, right: int) -> int:
    """Number of strictly decreasing steps starting at sample ``right``."""
    n = 0
    j = right
    while j < dx.size and dx[j] < 0:
        n += 1
        j += 1
    return n


def shape_stats(weights: np.ndarray, offset: int = 0) -> Tuple[float, float, float]:
    """Weighted (mean, rms, excess kurtosis) of sample positions.

    ``weights`` are non-negative heights above background for the samples
    starting at index ``offset``.  Kurtosis is ``nan`` when the spread is zero.
    """
    w = np.asarray(weights, dtype=np.float64)
    idx = np.arange(offset, offset + w.size, dtype=np.float64)
    total = float(w.sum())
    if total <= 0:
        return float("nan"), float("nan"), float("nan")
    mean = float(np.sum(idx * w) / total)
    d = idx - mean
    var = float(np.sum(d**2 * w) / total)
    if var <= 0:
        return mean, 0.0, float("nan")
    m4 = float(np.sum(d**4 * w) / total)
    return mean, float(np.sqrt(var)), m4 / var**2 - 3.0


def detect_peaks(samples: np.ndarray, settings: DetectorSettings) -> List[Peak]:
    """Return the accepted peaks of ``samples`` in ascending index order."""
    x = np.asarray(samples).astype(np.int64)
    if x.size < 3:
        return []

    candidates, props = find_peaks(x, plateau_size=1)
    dx = np.diff(x)

    peaks: List[Peak] = []
    for p, left, right in zip(candidates, props["left_edges"], props["right_edges"]):
        rise = _rising_run(dx, int(left))
        fall = _falling_run(dx, int(right))
        if rise < settings.width or fall < settings.width:
            continue

        amplitude = int(x[p])
        if amplitude < settings.floor:
            continue
        saturated = settings.saturation is not None and amplitude >= settings.saturation
        if not saturated and amplitude > settings.ceiling:
            continue

        start = int(left) - rise
        end = int(right) + fall
        background = int(min(x[start], x[end]))
        height = float(amplitude - background)
        if height < settings.min_height_above_background:
            continue

        mean, rms, kurtosis = shape_stats(x[start : end + 1] - background, start)
        # An infinite limit disables the shape check, even for a zero-spread peak.
        if (
            not saturated
            and np.isfinite(settings.max_kurtosis)
            and not (np.isfinite(kurtosis) and kurtosis <= settings.max_kurtosis)
        ):
            continue

        peaks.append(
            Peak(
                index=int(p),
                amplitude=amplitude,
                mean=mean,
                rms=rms,
                kurtosis=kurtosis,
                height_above_background=height,
                saturated=saturated,
            )
        )
    return peaks
