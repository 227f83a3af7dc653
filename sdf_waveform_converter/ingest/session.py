from __future__ import annotations

import ctypes
import logging
from ctypes import POINTER, c_char_p, c_double, c_uint16, c_uint32
from pathlib import Path
from typing import Iterator, List, Optional, Union

import numpy as np

from sdf_waveform_converter.errors import EndOfFileError, SdfError
from sdf_waveform_converter.ingest.fwifc import (
    FwifcLibrary,
    FwifcSampleBlock,
    decode_string,
    encode_path,
    fwifc_file,
    load_library,
)
from sdf_waveform_converter.models.records import (
    Calibration,
    CalibrationTableKind,
    Channel,
    FileInfo,
    Record,
    SampleBlock,
    SosblMode,
)

logger = logging.getLogger(__name__)

# Seeking past the last record positions the cursor on the last record.
LAST_RECORD = 0xFFFFFFFF


def _copy_array(ptr, count: int, dtype) -> np.ndarray:
    """Copy ``count`` items out of native memory the library may reuse."""
    if count == 0:
        return np.empty(0, dtype=dtype)
    return np.ctypeslib.as_array(ptr, shape=(count,)).astype(dtype, copy=True)


class DigitizerSession:
    """An open .sdf file read through the ``sdfifc`` library.

    The session owns one native handle and a read cursor.  It is a
    single-owner resource: use it as a context manager (or call
    :meth:`close`) so the handle is released on every exit path.

    Reindexing is done at most once: if the ``.idx`` file next to the data
    file already exists, :meth:`reindex` is a no-op.

    Examples
    --------
    >>> with DigitizerSession.open("data/110630_174316.sdf") as session:  # doctest: +SKIP
    ...     info = session.info()
    ...     for record in session.records():
    ...         pass
    """

    def __init__(self, lib: FwifcLibrary, handle: fwifc_file, path: Path):
        self._lib = lib
        self._handle = handle
        self.path = path
        self.index_path = path.with_suffix(".idx")

    @classmethod
    def open(
        cls,
        path: Union[str, Path],
        *,
        library: Optional[Union[str, Path, FwifcLibrary]] = None,
    ) -> DigitizerSession:
        lib = library if isinstance(library, FwifcLibrary) else load_library(library)
        fp = Path(path).expanduser()
        handle = fwifc_file()
        lib.call("fwifc_open", encode_path(fp), ctypes.byref(handle))
        logger.debug("Opened %s", fp)
        return cls(lib, handle, fp)

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._handle is None

    def close(self) -> None:
        """Release the native handle. Later calls are no-ops."""
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        self._lib.call("fwifc_close", handle)
        logger.debug("Closed %s", self.path)

    def __enter__(self) -> DigitizerSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_open(self) -> fwifc_file:
        if self._handle is None:
            raise SdfError(f"Session for {self.path} is closed")
        return self._handle

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------

    @property
    def indexed(self) -> bool:
        return self.index_path.is_file()

    def reindex(self) -> None:
        """(Re-)create the index file unless one already exists.

        Blocking and possibly slow; the index is written next to the data file.
        """
        if self.indexed:
            return
        logger.info("Reindexing %s", self.path)
        self._lib.call("fwifc_reindex", self._require_open())

    def remove_index(self) -> None:
        """Remove this file's index from the filesystem."""
        self.index_path.unlink()

    def set_sosbl_mode(self, mode: SosblMode) -> None:
        self._lib.call("fwifc_set_sosbl_relative", self._require_open(), int(SosblMode(mode)))

    # ------------------------------------------------------------------
    # Header information
    # ------------------------------------------------------------------

    def info(self) -> FileInfo:
        instrument = c_char_p()
        serial = c_char_p()
        epoch = c_char_p()
        v_group = c_double()
        sampling_time = c_double()
        flags = c_uint16()
        num_facets = c_uint16()
        self._lib.call(
            "fwifc_get_info",
            self._require_open(),
            ctypes.byref(instrument),
            ctypes.byref(serial),
            ctypes.byref(epoch),
            ctypes.byref(v_group),
            ctypes.byref(sampling_time),
            ctypes.byref(flags),
            ctypes.byref(num_facets),
        )
        return FileInfo(
            instrument=decode_string(instrument.value),
            serial=decode_string(serial.value),
            epoch=decode_string(epoch.value),
            v_group=float(v_group.value),
            sampling_time=float(sampling_time.value),
            gps_synchronized=bool(flags.value & 0x01),
            num_facets=int(num_facets.value),
        )

    def calibration(self, kind: CalibrationTableKind) -> Calibration:
        """Copy a calibration table out of the library."""
        count = c_uint32()
        abscissa = POINTER(c_double)()
        ordinate = POINTER(c_double)()
        self._lib.call(
            "fwifc_get_calib",
            self._require_open(),
            kind.code,
            ctypes.byref(count),
            ctypes.byref(abscissa),
            ctypes.byref(ordinate),
        )
        n = int(count.value)
        return Calibration(
            abscissa=_copy_array(abscissa, n, np.float64),
            ordinate=_copy_array(ordinate, n, np.float64),
        )

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def read(self) -> Record:
        """Read the record under the cursor and advance.

        Raises :class:`EndOfFileError` past the last record, and
        :class:`~sdf_waveform_converter.errors.InvalidChannelError` for an
        unknown channel code.
        """
        time_sorg = c_double()
        time_external = c_double()
        origin = (c_double * 3)()
        direction = (c_double * 3)()
        flags = c_uint16()
        facet = c_uint16()
        sbl_count = c_uint32()
        sbl_size = c_uint32()
        sbl = POINTER(FwifcSampleBlock)()
        self._lib.call(
            "fwifc_read",
            self._require_open(),
            ctypes.byref(time_sorg),
            ctypes.byref(time_external),
            origin,
            direction,
            ctypes.byref(flags),
            ctypes.byref(facet),
            ctypes.byref(sbl_count),
            ctypes.byref(sbl_size),
            ctypes.byref(sbl),
        )

        blocks: List[SampleBlock] = []
        for i in range(int(sbl_count.value)):
            native = sbl[i]
            blocks.append(
                SampleBlock(
                    start_time=float(native.time_sosbl),
                    channel=Channel.from_code(native.channel),
                    samples=_copy_array(native.sample, int(native.sample_count), np.uint16),
                )
            )

        synchronized, sync_lastsec, housekeeping = Record.flags_from_word(flags.value)
        return Record(
            time_sorg=float(time_sorg.value),
            time_external=float(time_external.value),
            origin=tuple(origin),
            direction=tuple(direction),
            synchronized=synchronized,
            sync_lastsec=sync_lastsec,
            housekeeping=housekeeping,
            facet=int(facet.value),
            blocks=tuple(blocks),
        )

    def records(self) -> Iterator[Record]:
        """Reindex if needed, then yield records until the end of the file.

        Any error other than end-of-file propagates.
        """
        self.reindex()
        while True:
            try:
                yield self.read()
            except EndOfFileError:
                return

    def seek(self, index: int) -> None:
        """Seek to a record index (the first record is 1)."""
        self._lib.call("fwifc_seek", self._require_open(), int(index))

    def seek_time(self, time: float) -> None:
        """Seek to an internal timestamp, in seconds."""
        self._lib.call("fwifc_seek_time", self._require_open(), float(time))

    def seek_time_external(self, time: float) -> None:
        """Seek to an external (day or week seconds) time. Needs GPS-synchronized data."""
        self._lib.call("fwifc_seek_time_external", self._require_open(), float(time))

    def tell(self) -> int:
        """Index of the next record to be read."""
        index = c_uint32()
        self._lib.call("fwifc_tell", self._require_open(), ctypes.byref(index))
        return int(index.value)
