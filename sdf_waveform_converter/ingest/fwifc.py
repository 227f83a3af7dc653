"""ctypes bindings for the ``sdfifc`` full-waveform interface library.

The vendor library exposes a C API prefixed ``fwifc_``.  Every call returns
an ``int32`` status; zero is success, anything else is mapped to a
:class:`~sdf_waveform_converter.errors.SessionError` subclass carrying the
library's last-error text.

The library is **not thread-safe**.  Use one session per process thread at
most, and never share a session between threads.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import os
from ctypes import POINTER, c_char_p, c_double, c_int32, c_uint16, c_uint32, c_void_p
from pathlib import Path
from typing import Dict, Optional, Union

from sdf_waveform_converter.errors import (
    LibraryNotFoundError,
    StringDecodeError,
    UnknownExceptionError,
    error_from_code,
)
from sdf_waveform_converter.models.records import LibraryVersion

logger = logging.getLogger(__name__)

LIBRARY_ENV_VAR = "SDFIFC_LIBRARY"
LIBRARY_NAME = "sdfifc"

fwifc_file = c_void_p


class FwifcSampleBlock(ctypes.Structure):
    """Native ``fwifc_sbl_t``."""

    _fields_ = [
        ("time_sosbl", c_double),
        ("channel", c_uint32),
        ("sample_count", c_uint32),
        ("sample_size", c_uint32),
        ("sample", POINTER(c_uint16)),
    ]


_PROTOTYPES = {
    "fwifc_open": (c_char_p, POINTER(fwifc_file)),
    "fwifc_close": (fwifc_file,),
    "fwifc_get_library_version": (
        POINTER(c_uint16),
        POINTER(c_uint16),
        POINTER(c_char_p),
        POINTER(c_char_p),
    ),
    "fwifc_get_last_error": (POINTER(c_char_p),),
    "fwifc_reindex": (fwifc_file,),
    "fwifc_set_sosbl_relative": (fwifc_file, c_int32),
    "fwifc_get_info": (
        fwifc_file,
        POINTER(c_char_p),  # instrument
        POINTER(c_char_p),  # serial
        POINTER(c_char_p),  # epoch
        POINTER(c_double),  # v_group
        POINTER(c_double),  # sampling_time
        POINTER(c_uint16),  # flags
        POINTER(c_uint16),  # num_facets
    ),
    "fwifc_get_calib": (
        fwifc_file,
        c_uint16,
        POINTER(c_uint32),
        POINTER(POINTER(c_double)),
        POINTER(POINTER(c_double)),
    ),
    "fwifc_read": (
        fwifc_file,
        POINTER(c_double),  # time_sorg
        POINTER(c_double),  # time_external
        POINTER(c_double),  # origin[3]
        POINTER(c_double),  # direction[3]
        POINTER(c_uint16),  # flags
        POINTER(c_uint16),  # facet
        POINTER(c_uint32),  # sbl_count
        POINTER(c_uint32),  # sbl_size
        POINTER(POINTER(FwifcSampleBlock)),
    ),
    "fwifc_seek": (fwifc_file, c_uint32),
    "fwifc_seek_time": (fwifc_file, c_double),
    "fwifc_seek_time_external": (fwifc_file, c_double),
    "fwifc_tell": (fwifc_file, POINTER(c_uint32)),
}


def decode_string(raw: Optional[bytes]) -> str:
    """Decode a native ``char*`` (already copied to ``bytes``) as UTF-8."""
    if raw is None:
        return ""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise StringDecodeError(f"Native string is not valid UTF-8: {exc}") from exc


def encode_path(path: Union[str, Path]) -> bytes:
    """Encode a filesystem path for the C API, rejecting embedded NUL bytes."""
    raw = os.fsencode(path)
    if b"\x00" in raw:
        raise StringDecodeError(f"Path contains a NUL byte: {raw!r}")
    return raw


class FwifcLibrary:
    """A loaded ``sdfifc`` library with prototypes declared."""

    def __init__(self, cdll: ctypes.CDLL):
        self._lib = cdll
        for name, argtypes in _PROTOTYPES.items():
            fn = getattr(cdll, name)
            fn.argtypes = list(argtypes)
            fn.restype = c_int32

    def call(self, name: str, *args) -> None:
        """Call ``name`` and raise the mapped error on a non-zero status."""
        code = getattr(self._lib, name)(*args)
        if code != 0:
            raise error_from_code(code, self.last_error())

    def last_error(self) -> str:
        message = c_char_p()
        code = self._lib.fwifc_get_last_error(ctypes.byref(message))
        if code != 0:
            # The error routine itself failed; there is no message to recover.
            raise UnknownExceptionError(f"fwifc_get_last_error returned {code}")
        return decode_string(message.value)

    def library_version(self) -> LibraryVersion:
        api_major = c_uint16()
        api_minor = c_uint16()
        build_version = c_char_p()
        build_tag = c_char_p()
        self.call(
            "fwifc_get_library_version",
            ctypes.byref(api_major),
            ctypes.byref(api_minor),
            ctypes.byref(build_version),
            ctypes.byref(build_tag),
        )
        return LibraryVersion(
            api_major=int(api_major.value),
            api_minor=int(api_minor.value),
            build_version=decode_string(build_version.value),
            build_tag=decode_string(build_tag.value),
        )


def find_library_path(explicit: Optional[Union[str, Path]] = None) -> str:
    """Resolve the shared library location.

    Priority: 1) ``explicit`` argument, 2) ``SDFIFC_LIBRARY`` environment
    variable, 3) the system search path via ``ctypes.util.find_library``.
    """
    if explicit is not None:
        return str(explicit)
    env = os.environ.get(LIBRARY_ENV_VAR)
    if env:
        return env
    found = ctypes.util.find_library(LIBRARY_NAME)
    if found is None:
        raise LibraryNotFoundError(
            f"could not find lib{LIBRARY_NAME}; set {LIBRARY_ENV_VAR} to the library path"
        )
    return found


_LOADED: Dict[str, FwifcLibrary] = {}


def load_library(path: Optional[Union[str, Path]] = None) -> FwifcLibrary:
    """Load (once per resolved path) and return the ``sdfifc`` library."""
    resolved = find_library_path(path)
    lib = _LOADED.get(resolved)
    if lib is None:
        logger.debug("Loading %s from %s", LIBRARY_NAME, resolved)
        try:
            cdll = ctypes.CDLL(resolved)
        except OSError as exc:
            raise LibraryNotFoundError(f"{resolved}: {exc}") from exc
        lib = FwifcLibrary(cdll)
        _LOADED[resolved] = lib
    return lib


def library_version(path: Optional[Union[str, Path]] = None) -> LibraryVersion:
    """Return the api and build version of the ``sdfifc`` library."""
    return load_library(path).library_version()
