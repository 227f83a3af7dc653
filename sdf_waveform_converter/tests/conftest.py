"""A fake ``sdfifc`` library shared by the session and conversion tests."""

from __future__ import annotations

import ctypes
from ctypes import POINTER, c_double, c_uint16

import pytest

from sdf_waveform_converter.errors import EndOfFileError, MissingIndexError
from sdf_waveform_converter.ingest.fwifc import FwifcLibrary, FwifcSampleBlock


def _buffer(values):
    return (c_uint16 * len(values))(*values)


class FakeLib(FwifcLibrary):
    """Answers ``fwifc_*`` calls by filling in the by-reference arguments.

    Every record has the same two blocks: ``reference`` (channel
    ``channel_code``) starting at 1.5 us and ``high`` (channel 0) starting
    at 2.5 us.  Reading record ``fail_at + 1`` raises ``MissingIndexError``.
    """

    def __init__(
        self,
        n_records: int = 2,
        channel_code: int = 3,
        reference=(10, 200, 30, 4),
        high=(10, 200),
        fail_at=None,
    ):
        self.calls = []
        self.arguments = []
        self.n_records = n_records
        self.fail_at = fail_at
        self.cursor = 0
        self.reference_samples = _buffer(reference)
        self.high_samples = _buffer(high)
        self.blocks = (FwifcSampleBlock * 2)(
            FwifcSampleBlock(
                1.5e-6,
                channel_code,
                len(reference),
                2,
                ctypes.cast(self.reference_samples, POINTER(c_uint16)),
            ),
            FwifcSampleBlock(2.5e-6, 0, len(high), 2, ctypes.cast(self.high_samples, POINTER(c_uint16))),
        )
        self.abscissa = (c_double * 3)(0.0, 1.0, 2.0)
        self.ordinate = (c_double * 3)(5.0, 6.0, 7.0)

    def call(self, name, *args):
        self.calls.append(name)
        self.arguments.append((name, args))
        if name == "fwifc_open":
            args[1]._obj.value = 1234
        elif name == "fwifc_tell":
            args[1]._obj.value = self.cursor + 1
        elif name == "fwifc_get_info":
            args[1]._obj.value = b"Q560"
            args[2]._obj.value = b"9998765"
            args[3]._obj.value = b"2011-06-30T17:43:16"
            args[4]._obj.value = 299711535.0
            args[5]._obj.value = 1e-9
            args[6]._obj.value = 0x01
            args[7]._obj.value = 4
        elif name == "fwifc_get_calib":
            args[2]._obj.value = 3
            args[3]._obj.contents = c_double.from_buffer(self.abscissa)
            args[4]._obj.contents = c_double.from_buffer(self.ordinate)
        elif name == "fwifc_read":
            if self.fail_at is not None and self.cursor >= self.fail_at:
                raise MissingIndexError("index is stale")
            if self.cursor >= self.n_records:
                raise EndOfFileError("end of file")
            self.cursor += 1
            args[1]._obj.value = 0.25
            args[2]._obj.value = 100.0 + self.cursor
            args[3][:] = [1.0, 2.0, 3.0]
            args[4][:] = [0.6, 0.0, 0.8]
            args[5]._obj.value = 0x05
            args[6]._obj.value = 2
            args[7]._obj.value = 2
            args[8]._obj.value = ctypes.sizeof(FwifcSampleBlock)
            args[9]._obj.contents = self.blocks[0]


@pytest.fixture
def fake_lib():
    """Factory for :class:`FakeLib` instances."""
    return FakeLib
