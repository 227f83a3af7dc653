"""Channel classification of a record's sample blocks.

Partitions blocks by detector channel so the decomposer can pick a detector
per channel.  Saturation blocks carry no independent returns and are dropped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from sdf_waveform_converter.errors import MalformedRecordError
from sdf_waveform_converter.models.records import Channel, SampleBlock


@dataclass(frozen=True)
class ChannelBlocks:
    """Blocks of one record, grouped by channel in original block order."""

    high: Tuple[SampleBlock, ...]
    low: Tuple[SampleBlock, ...]
    reference: SampleBlock

    @property
    def has_high(self) -> bool:
        return len(self.high) > 0


def classify_blocks(blocks: Iterable[SampleBlock]) -> ChannelBlocks:
    """Split ``blocks`` into high, low and the single reference block.

    Raises
    ------
    MalformedRecordError
        If the number of reference blocks is not exactly one. The exception
        carries the observed count.
    """
    high: List[SampleBlock] = []
    low: List[SampleBlock] = []
    references: List[SampleBlock] = []

    for block in blocks:
        if block.channel == Channel.HIGH:
            high.append(block)
        elif block.channel == Channel.LOW:
            low.append(block)
        elif block.channel == Channel.REFERENCE:
            references.append(block)

    if len(references) != 1:
        raise MalformedRecordError(len(references))

    return ChannelBlocks(high=tuple(high), low=tuple(low), reference=references[0])
