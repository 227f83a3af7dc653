"""Detection policy -- bundles every peak-detector setting that affects output.

A DetectionPolicy groups the per-channel detector settings into one frozen
dataclass.  It can be:

- Used as-is (the defaults reproduce the reference conversion exactly)
- Overridden field-by-field via ``dataclasses.replace()``
- Serialized to/from a dict for JSON provenance
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DetectorSettings:
    """Settings for one run of the peak detector.

    Attributes
    ----------
    width : int
        Minimum number of strictly rising samples before the peak and
        strictly falling samples after it.
    floor : int
        Minimum peak amplitude (raw counts).
    ceiling : int
        Maximum peak amplitude for non-saturated peaks (raw counts).
    saturation : int or None
        Amplitude at or above which a peak is accepted as saturated.
        ``None`` disables saturation handling.
    min_height_above_background : float
        Minimum amplitude above the lower edge of the peak extent.
    max_kurtosis : float
        Maximum excess kurtosis of the peak shape.
    """

    width: int
    floor: int
    ceiling: int
    saturation: Optional[int] = None
    min_height_above_background: float = 0.0
    max_kurtosis: float = float("inf")

    def __post_init__(self) -> None:
        if self.width < 1:
            raise ValueError("width must be >= 1")
        if self.floor > self.ceiling:
            raise ValueError(f"floor ({self.floor}) must not exceed ceiling ({self.ceiling})")


MIN_HEIGHT_ABOVE_BACKGROUND = 5.0
MAX_KURTOSIS = 0.04
SAMPLE_FLOOR = 15
LOW_SATURATION = 255


def _high_default() -> DetectorSettings:
    return DetectorSettings(
        width=2,
        floor=SAMPLE_FLOOR,
        ceiling=255,
        min_height_above_background=MIN_HEIGHT_ABOVE_BACKGROUND,
        max_kurtosis=MAX_KURTOSIS,
    )


def _low_alone_default() -> DetectorSettings:
    # No high-gain block to cross-check against: wider pulses, lower ceiling.
    return DetectorSettings(
        width=3,
        floor=SAMPLE_FLOOR,
        ceiling=250,
        saturation=LOW_SATURATION,
        min_height_above_background=MIN_HEIGHT_ABOVE_BACKGROUND,
        max_kurtosis=MAX_KURTOSIS,
    )


def _low_with_high_default() -> DetectorSettings:
    return DetectorSettings(
        width=2,
        floor=SAMPLE_FLOOR,
        ceiling=255,
        saturation=LOW_SATURATION,
        min_height_above_background=MIN_HEIGHT_ABOVE_BACKGROUND,
        max_kurtosis=MAX_KURTOSIS,
    )


@dataclass(frozen=True)
class DetectionPolicy:
    """Per-channel detector settings used by the record decomposer.

    Fields
    ------
    high : DetectorSettings
        High-gain channel.
    low_alone : DetectorSettings
        Low-gain channel when the record has no high-channel block.
    low_with_high : DetectorSettings
        Low-gain channel when at least one high-channel block is present.
    reference : DetectorSettings or None
        Reference channel; ``None`` means "same as ``high``".
    """

    high: DetectorSettings = field(default_factory=_high_default)
    low_alone: DetectorSettings = field(default_factory=_low_alone_default)
    low_with_high: DetectorSettings = field(default_factory=_low_with_high_default)
    reference: Optional[DetectorSettings] = None

    def low_settings(self, has_high_blocks: bool) -> DetectorSettings:
        return self.low_with_high if has_high_blocks else self.low_alone

    def reference_settings(self) -> DetectorSettings:
        return self.reference if self.reference is not None else self.high

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-friendly dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> DetectionPolicy:
        """Reconstruct from a dict (e.g. loaded from JSON).

        Missing channels fall back to the defaults.
        """
        kwargs: Dict[str, Any] = {}
        for name in ("high", "low_alone", "low_with_high", "reference"):
            value = d.get(name)
            if value is None:
                continue
            kwargs[name] = value if isinstance(value, DetectorSettings) else DetectorSettings(**value)
        return cls(**kwargs)
