"""Discrete-return point output (.sdc).

File layout (little-endian, no padding):

- header: ``u32 header_size`` (always 8), ``u16 major``, ``u16 minor``
- one packed record per point, see :data:`SDC_POINT_DTYPE`

``channel_desc`` packs the mirror facet in bits 0-5 and the high-channel
flag in bit 6.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from sdf_waveform_converter.errors import SinkError
from sdf_waveform_converter.models.points import Point

logger = logging.getLogger(__name__)

SDC_VERSION: Tuple[int, int] = (5, 0)

SDC_HEADER_DTYPE = np.dtype([("header_size", "<u4"), ("major", "<u2"), ("minor", "<u2")])

SDC_POINT_DTYPE = np.dtype(
    [
        ("time", "<f8"),
        ("range", "<f4"),
        ("theta", "<f4"),
        ("x", "<f4"),
        ("y", "<f4"),
        ("z", "<f4"),
        ("amplitude", "<u2"),
        ("width", "<u2"),
        ("target_type", "u1"),
        ("target", "u1"),
        ("num_target", "u1"),
        ("rg_index", "<u2"),
        ("channel_desc", "u1"),
        ("class_id", "u1"),
        ("rho", "<f4"),
        ("reflectance", "<i2"),
    ]
)

TARGET_TYPE_PEAK = 3
FACET_MASK = 0x3F
HIGH_CHANNEL_BIT = 0x40

# sigma -> full width at half maximum
_FWHM_PER_SIGMA = 2.0 * math.sqrt(2.0 * math.log(2.0))


class PointSink(ABC):
    """Destination for decomposed points."""

    @abstractmethod
    def write_point(self, point: Point) -> None:
        """Accept one point. Errors propagate and abort the conversion."""

    def write_points(self, points: Iterable[Point]) -> None:
        for point in points:
            self.write_point(point)

    def close(self) -> None:
        """Finalize the sink. Default: nothing to do."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _pulse_width(point: Point) -> int:
    rms = point.peak.rms
    if rms is None or not math.isfinite(rms) or rms <= 0:
        return 1
    return int(min(max(round(_FWHM_PER_SIGMA * rms), 1), 0xFFFF))


def point_to_row(point: Point) -> tuple:
    """Convert a :class:`Point` to a tuple matching :data:`SDC_POINT_DTYPE`."""
    if not 1 <= point.target <= point.num_target <= 0xFF:
        raise SinkError(
            f"target/num_target out of range for .sdc: {point.target}/{point.num_target}"
        )
    channel_desc = (int(point.facet) & FACET_MASK) | (HIGH_CHANNEL_BIT if point.high_channel else 0)
    return (
        point.time,
        point.range,
        point.theta,
        point.x,
        point.y,
        point.z,
        int(min(max(point.peak.amplitude, 0), 0xFFFF)),
        _pulse_width(point),
        TARGET_TYPE_PEAK,
        point.target,
        point.num_target,
        1,
        channel_desc,
        0,
        0.0,
        0,
    )


class SdcWriter(PointSink):
    """Buffered .sdc writer.

    The header is written on open; points are buffered and flushed in chunks
    of ``chunk_size`` and on :meth:`close`.  Use as a context manager so the
    file is finalized on every exit path.
    """

    def __init__(self, path: Union[str, Path], *, chunk_size: int = 65536):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        self.path = Path(path).expanduser()
        self.chunk_size = int(chunk_size)
        self.points_written = 0
        self._rows: List[tuple] = []
        self._fh: Optional[BinaryIO] = open(self.path, "wb")
        header = np.array([(SDC_HEADER_DTYPE.itemsize,) + SDC_VERSION], dtype=SDC_HEADER_DTYPE)
        try:
            self._fh.write(header.tobytes())
        except BaseException:
            fh, self._fh = self._fh, None
            fh.close()
            raise

    @property
    def closed(self) -> bool:
        return self._fh is None

    def write_point(self, point: Point) -> None:
        if self._fh is None:
            raise SinkError(f"write to closed .sdc writer: {self.path}")
        self._rows.append(point_to_row(point))
        if len(self._rows) >= self.chunk_size:
            self.flush()

    def flush(self) -> None:
        if self._fh is None or not self._rows:
            return
        arr = np.array(self._rows, dtype=SDC_POINT_DTYPE)
        self._fh.write(arr.tobytes())
        self.points_written += len(self._rows)
        self._rows.clear()

    def close(self) -> None:
        if self._fh is None:
            return
        try:
            self.flush()
        finally:
            fh, self._fh = self._fh, None
            fh.close()
        logger.debug("Wrote %d point(s) to %s", self.points_written, self.path)


class PointCollector(PointSink):
    """In-memory sink; keeps points in arrival order."""

    def __init__(self):
        self.points: List[Point] = []

    def write_point(self, point: Point) -> None:
        self.points.append(point)

    def to_frame(self) -> pd.DataFrame:
        """Return the collected points as a DataFrame (one row per point)."""
        cols = ["time", "range", "theta", "x", "y", "z", "target", "num_target", "facet", "high_channel", "amplitude"]
        rows = [
            (p.time, p.range, p.theta, p.x, p.y, p.z, p.target, p.num_target, p.facet, p.high_channel, p.peak.amplitude)
            for p in self.points
        ]
        return pd.DataFrame(rows, columns=cols)


def read_sdc(path: Union[str, Path]) -> pd.DataFrame:
    """Read an .sdc file into a DataFrame.

    Adds decoded ``facet`` and ``high_channel`` columns next to the raw
    ``channel_desc`` byte.
    """
    fp = Path(path).expanduser()
    raw = fp.read_bytes()
    if len(raw) < SDC_HEADER_DTYPE.itemsize:
        raise ValueError(f"File too small for an .sdc header: {fp}")
    header = np.frombuffer(raw, dtype=SDC_HEADER_DTYPE, count=1)[0]
    header_size = int(header["header_size"])
    major = int(header["major"])
    if major != SDC_VERSION[0]:
        raise ValueError(f"Unsupported .sdc version {major}.{int(header['minor'])}: {fp}")
    body = raw[header_size:]
    if len(body) % SDC_POINT_DTYPE.itemsize != 0:
        raise ValueError(
            f"Truncated .sdc body: {len(body)} bytes is not a multiple of {SDC_POINT_DTYPE.itemsize}"
        )
    arr = np.frombuffer(body, dtype=SDC_POINT_DTYPE)
    df = pd.DataFrame(arr)
    df["facet"] = (df["channel_desc"] & FACET_MASK).astype(np.uint8)
    df["high_channel"] = (df["channel_desc"] & HIGH_CHANNEL_BIT) != 0
    return df
