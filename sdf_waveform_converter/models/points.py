from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Peak:
    """A discrete return found in one sample block.

    ``index`` is the sample index within the block. Shape statistics are
    optional so that callers (and tests) can build peaks from an index and
    amplitude alone.
    """

    index: int
    amplitude: int
    mean: Optional[float] = None
    rms: Optional[float] = None
    kurtosis: Optional[float] = None
    height_above_background: Optional[float] = None
    saturated: bool = False


@dataclass(frozen=True)
class Point:
    """A 3-D point in the scanner's own coordinate frame.

    Attributes
    ----------
    time:
        Acquisition time of the return, rebased onto external time.
    range:
        Raw one-way range in metres (not the cartesian norm of x, y, z).
    theta:
        Mirror scan angle in degrees.
    x, y, z:
        Scanner-frame coordinates in metres.
    target, num_target:
        1-indexed position of this return within its block, and the number of
        returns in that block.
    facet:
        Mirror facet that reflected the pulse.
    high_channel:
        True if the return came from the high-gain channel.
    peak:
        Raw detector output for this return.
    """

    time: float
    range: float
    theta: float
    x: float
    y: float
    z: float
    target: int
    num_target: int
    facet: int
    high_channel: bool
    peak: Peak
