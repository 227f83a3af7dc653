from __future__ import annotations

import pytest

from sdf_waveform_converter.errors import (
    BadArgumentError,
    EndOfFileError,
    LibraryRuntimeError,
    MalformedRecordError,
    MissingIndexError,
    NeedSingleReferencePeakError,
    NotImplementedInLibraryError,
    SdfError,
    SessionError,
    UnknownCodeError,
    UnknownExceptionError,
    UnsupportedFormatError,
    error_from_code,
)


@pytest.mark.parametrize(
    "code, cls",
    [
        (-1, EndOfFileError),
        (1, BadArgumentError),
        (2, UnsupportedFormatError),
        (3, MissingIndexError),
        (4, UnknownExceptionError),
        (5, NotImplementedInLibraryError),
        (6, LibraryRuntimeError),
    ],
)
def test_error_from_code_maps_documented_codes(code: int, cls: type) -> None:
    err = error_from_code(code, "details")
    assert type(err) is cls
    assert err.message == "details"
    assert isinstance(err, SessionError)


def test_error_from_code_unknown() -> None:
    err = error_from_code(7)
    assert isinstance(err, UnknownCodeError)
    assert err.code == 7
    assert str(err) == "Unknown code: 7"


def test_error_from_code_refuses_zero() -> None:
    with pytest.raises(ValueError):
        error_from_code(0)


def test_session_error_display() -> None:
    assert str(MissingIndexError("no index")) == "Missing index: no index"
    assert str(EndOfFileError("")) == "End of file: "


def test_decomposition_errors_carry_counts() -> None:
    m = MalformedRecordError(2)
    assert m.reference_count == 2
    assert isinstance(m, SdfError)
    n = NeedSingleReferencePeakError(0)
    assert n.count == 0
    assert "found 0" in str(n)
