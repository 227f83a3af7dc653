from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple

import numpy as np

from sdf_waveform_converter.errors import InvalidChannelError, NoCalibrationTableForChannelError


class Channel(IntEnum):
    """Detector stream of a sample block.

    Values are the native channel codes used by the digitizer library.
    """

    HIGH = 0
    LOW = 1
    SATURATION = 2
    REFERENCE = 3

    @classmethod
    def from_code(cls, code: int) -> Channel:
        """Validated conversion from a native channel code.

        >>> Channel.from_code(3)
        <Channel.REFERENCE: 3>
        """
        try:
            return cls(int(code))
        except ValueError:
            raise InvalidChannelError(code) from None

    def __str__(self) -> str:
        return self.name.lower()


class SosblMode(IntEnum):
    """Start-of-sample-block timestamp mode.

    Absolute timestamps can lose precision for long acquisitions; relative
    ones are given relative to the file.
    """

    ABSOLUTE = 0
    RELATIVE = 1


@dataclass(frozen=True)
class SampleBlock:
    """One channel's digitized waveform within a record.

    ``samples`` is stored as a read-only ``uint16`` array.
    """

    start_time: float
    channel: Channel
    samples: np.ndarray

    def __post_init__(self) -> None:
        arr = np.asarray(self.samples, dtype=np.uint16)
        if arr.ndim != 1:
            raise ValueError(f"samples must be 1-D, got shape {arr.shape}")
        arr = arr.view()
        arr.flags.writeable = False
        object.__setattr__(self, "samples", arr)
        object.__setattr__(self, "start_time", float(self.start_time))

    @property
    def n_samples(self) -> int:
        return int(self.samples.size)


@dataclass(frozen=True)
class Record:
    """One laser pulse: scanner geometry plus every channel's sample block.

    Attributes
    ----------
    time_sorg:
        Start of the range gate, in seconds.
    time_external:
        External time in seconds relative to the file's epoch.
    origin:
        Beam origin, metres, shape ``(3,)``.
    direction:
        Beam direction (dimensionless), shape ``(3,)``.
    synchronized, sync_lastsec, housekeeping:
        Flag bits 0x01, 0x02 and 0x04 of the native flag word.
    facet:
        Mirror facet that reflected this pulse.
    blocks:
        Sample blocks in the order the library returned them.
    """

    time_sorg: float
    time_external: float
    origin: Tuple[float, float, float]
    direction: Tuple[float, float, float]
    synchronized: bool = False
    sync_lastsec: bool = False
    housekeeping: bool = False
    facet: int = 0
    blocks: Tuple[SampleBlock, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin", tuple(float(v) for v in self.origin))
        object.__setattr__(self, "direction", tuple(float(v) for v in self.direction))
        if len(self.origin) != 3 or len(self.direction) != 3:
            raise ValueError("origin and direction must be 3-vectors")
        object.__setattr__(self, "blocks", tuple(self.blocks))

    @staticmethod
    def flags_from_word(flags: int) -> Tuple[bool, bool, bool]:
        """Split the native flag word into (synchronized, sync_lastsec, housekeeping)."""
        flags = int(flags)
        return bool(flags & 0x01), bool(flags & 0x02), bool(flags & 0x04)


@dataclass(frozen=True)
class FileInfo:
    """Session-wide acquisition parameters, read once per file."""

    instrument: str
    serial: str
    epoch: str
    v_group: float  # m/s
    sampling_time: float  # s
    gps_synchronized: bool
    num_facets: int


@dataclass(frozen=True)
class Calibration:
    """A calibration table. Abscissa increases monotonically; values pair with ordinate."""

    abscissa: np.ndarray
    ordinate: np.ndarray

    def __post_init__(self) -> None:
        if len(self.abscissa) != len(self.ordinate):
            raise ValueError(
                f"abscissa/ordinate length mismatch: {len(self.abscissa)} != {len(self.ordinate)}"
            )


@dataclass(frozen=True)
class CalibrationTableKind:
    """Pairing of a calibration table type (``"amplitude"`` or ``"range"``) and a channel."""

    kind: str
    channel: Channel

    _BASE = {"amplitude": 0, "range": 2}

    @classmethod
    def amplitude(cls, channel: Channel) -> CalibrationTableKind:
        return cls("amplitude", channel)

    @classmethod
    def range(cls, channel: Channel) -> CalibrationTableKind:
        return cls("range", channel)

    @property
    def code(self) -> int:
        """Native table code; only high and low channels carry tables.

        >>> CalibrationTableKind.range(Channel.LOW).code
        3
        """
        if self.kind not in self._BASE:
            raise ValueError(f"Unknown calibration table kind: {self.kind!r}")
        if self.channel == Channel.HIGH:
            return self._BASE[self.kind]
        if self.channel == Channel.LOW:
            return self._BASE[self.kind] + 1
        raise NoCalibrationTableForChannelError(self.channel)


@dataclass(frozen=True)
class LibraryVersion:
    api_major: int
    api_minor: int
    build_version: str
    build_tag: str
