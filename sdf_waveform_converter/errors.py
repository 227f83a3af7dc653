"""Exception hierarchy for sdf reading and conversion.

Every error raised by this package derives from :class:`SdfError` so the CLI
can report any failure with a single ``except`` clause.

Families
--------
- :class:`SessionError` -- failures reported by the native digitizer library
  (one subclass per native return code).
- :class:`EncodingError` -- values that cannot be represented in this
  package's types (channel codes, calibration pairings, native strings).
- :class:`MalformedRecordError` -- a record that violates the one-reference-
  block contract. Fatal.
- :class:`NeedSingleReferencePeakError` -- the reference waveform did not
  produce exactly one peak. Recoverable; the record is skipped.
- :class:`SinkError` -- misuse of an output sink.
"""

from __future__ import annotations

from typing import Dict, Type


class SdfError(Exception):
    """Base class for all errors raised by this package."""


# ---------------------------------------------------------------------------
# Native session errors
# ---------------------------------------------------------------------------


class SessionError(SdfError):
    """An error reported by the digitizer library.

    ``message`` is the library's own last-error text (may be empty).
    """

    description = "session error"

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.description.capitalize()}: {self.message}"


class EndOfFileError(SessionError):
    """The end of the sdf file has been reached. Terminates iteration."""

    description = "end of file"


class BadArgumentError(SessionError):
    description = "bad argument"


class UnsupportedFormatError(SessionError):
    description = "unsupported format"


class MissingIndexError(SessionError):
    """Reads and seeks need an index; call ``DigitizerSession.reindex()``."""

    description = "missing index"


class UnknownExceptionError(SessionError):
    description = "unknown exception"


class NotImplementedInLibraryError(SessionError):
    description = "not implemented"


class LibraryRuntimeError(SessionError):
    description = "runtime error"


class UnknownCodeError(SessionError):
    """The library returned a code outside the documented range."""

    description = "unknown code"

    def __init__(self, code: int, message: str = ""):
        self.code = int(code)
        super().__init__(message)

    def __str__(self) -> str:
        return f"Unknown code: {self.code}"


class LibraryNotFoundError(SessionError):
    """The ``sdfifc`` shared library could not be located or loaded."""

    description = "library not found"


_CODE_TO_ERROR: Dict[int, Type[SessionError]] = {
    -1: EndOfFileError,
    1: BadArgumentError,
    2: UnsupportedFormatError,
    3: MissingIndexError,
    4: UnknownExceptionError,
    5: NotImplementedInLibraryError,
    6: LibraryRuntimeError,
}


def error_from_code(code: int, message: str = "") -> SessionError:
    """Map a non-zero native return code to a :class:`SessionError` instance.

    Zero means success and is refused with ``ValueError``: code that asks for
    an error object without an error is a programming mistake.

    >>> isinstance(error_from_code(-1), EndOfFileError)
    True
    >>> error_from_code(7).code
    7
    """
    code = int(code)
    if code == 0:
        raise ValueError("Refusing to create an error with code zero")
    cls = _CODE_TO_ERROR.get(code)
    if cls is None:
        return UnknownCodeError(code, message)
    return cls(message)


# ---------------------------------------------------------------------------
# Encoding errors
# ---------------------------------------------------------------------------


class EncodingError(SdfError):
    """A value could not be converted to or from its native representation."""


class InvalidChannelError(EncodingError):
    def __init__(self, code: int):
        self.code = int(code)
        super().__init__(f"Invalid channel: {self.code}")


class NoCalibrationTableForChannelError(EncodingError):
    def __init__(self, channel):
        self.channel = channel
        super().__init__(f"No calibration table for channel: {channel}")


class StringDecodeError(EncodingError):
    """A native string was not valid UTF-8, or a path contained a NUL byte."""


# ---------------------------------------------------------------------------
# Decomposition errors
# ---------------------------------------------------------------------------


class MalformedRecordError(SdfError):
    """A record does not contain exactly one reference block.

    This cannot happen for valid data; conversion stops.
    """

    def __init__(self, reference_count: int):
        self.reference_count = int(reference_count)
        super().__init__(
            f"Expected exactly one reference block per record, found {self.reference_count}"
        )


class NeedSingleReferencePeakError(SdfError):
    """The reference block yielded ``count`` peaks instead of exactly one."""

    def __init__(self, count: int):
        self.count = int(count)
        super().__init__(f"Need exactly one reference peak, found {self.count}")


# ---------------------------------------------------------------------------
# Sink errors
# ---------------------------------------------------------------------------


class SinkError(SdfError):
    """An output sink was used incorrectly (e.g. written to after close)."""
