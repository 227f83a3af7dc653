"""Command-line toolkit for .sdf files.

Usage::

    sdf convert <infile> <outfile>
    sdf info <infile> [--brief]
    sdf record <infile> <index>
    sdf block <infile> <index> <block>
    sdf --version

Exit status is 0 on success and 1 on any error; errors are printed to
standard output as ``ERROR: <context>: <detail>``.
"""

from __future__ import annotations

import argparse
import logging
from typing import Callable, Optional, Sequence, TypeVar

from sdf_waveform_converter import __version__
from sdf_waveform_converter.analysis.convert import convert_file
from sdf_waveform_converter.errors import SdfError
from sdf_waveform_converter.ingest.fwifc import library_version
from sdf_waveform_converter.ingest.session import LAST_RECORD, DigitizerSession
from sdf_waveform_converter.models.records import Record, SampleBlock

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CommandError(Exception):
    """Carries the context line printed before exiting with status 1."""

    def __init__(self, context: str, cause: BaseException):
        self.context = context
        self.cause = cause
        super().__init__(f"{context}: {cause}")


def _attempt(context: str, fn: Callable[[], T]) -> T:
    try:
        return fn()
    except (SdfError, OSError) as exc:
        raise CommandError(context, exc) from exc


def format_record(record: Record) -> str:
    ox, oy, oz = record.origin
    dx, dy, dz = record.direction
    return "\n".join(
        [
            f"time_sorg: {record.time_sorg}",
            f"time_external: {record.time_external}",
            f"origin: {ox} {oy} {oz}",
            f"direction: {dx} {dy} {dz}",
            f"synchronized: {str(record.synchronized).lower()}",
            f"sync_lastsec: {str(record.sync_lastsec).lower()}",
            f"housekeeping: {str(record.housekeeping).lower()}",
            f"facet: {record.facet}",
            f"nblocks: {len(record.blocks)}",
        ]
    )


def format_block(block: SampleBlock) -> str:
    samples = ", ".join(str(int(s)) for s in block.samples)
    return f"time_sosbl: {block.start_time}\nchannel: {block.channel}\nsamples: {samples}"


def _cmd_version(ns: argparse.Namespace) -> None:
    lib = _attempt("Unable to get library version", lambda: library_version(ns.library))
    print(f"      sdf-waveform-converter version: {__version__}")
    print(f"                  sdfifc api version: {lib.api_major}.{lib.api_minor}")
    print(f"                sdfifc build version: {lib.build_version}")
    print(f"                    sdfifc build tag: {lib.build_tag}")


def _cmd_convert(ns: argparse.Namespace) -> None:
    summary = _attempt(
        "Problem when converting file",
        lambda: convert_file(ns.infile, ns.outfile, library=ns.library),
    )
    if summary.skipped_records:
        logger.info("Skipped record(s): %s", summary.skipped_records)


def _open(ns: argparse.Namespace, *, reindex: bool) -> DigitizerSession:
    session = _attempt("Unable to open file", lambda: DigitizerSession.open(ns.infile, library=ns.library))
    if reindex:
        try:
            _attempt("Unable to reindex file", session.reindex)
        except CommandError:
            session.close()
            raise
    return session


def _cmd_info(ns: argparse.Namespace) -> None:
    with _open(ns, reindex=not ns.brief) as session:
        info = _attempt("Unable to retrieve file info", session.info)
        print(f"      instrument: {info.instrument}")
        print(f"          serial: {info.serial}")
        print(f"           epoch: {info.epoch}")
        print(f"  group velocity: {info.v_group}")
        print(f"   sampling time: {info.sampling_time}")
        print(f"gps synchronized: {str(info.gps_synchronized).lower()}")
        print(f"number of facets: {info.num_facets}")
        if ns.brief:
            return

        first = _attempt("Unable to read first record", session.read)
        print(f"      start time: {first.time_external}")
        _attempt("Unable to seek to end of file", lambda: session.seek(LAST_RECORD))
        last = _attempt("Unable to read last record", session.read)
        print(f"        end time: {last.time_external}")
        n = _attempt("Unable to get index of next record", session.tell)
        print(f"number of records: {n}")


def _read_at(session: DigitizerSession, index: int) -> Record:
    _attempt(f"Unable to seek to index {index}", lambda: session.seek(index))
    return _attempt("Unable to read record", session.read)


def _cmd_record(ns: argparse.Namespace) -> None:
    with _open(ns, reindex=True) as session:
        record = _read_at(session, ns.index)
    print(format_record(record))
    for i, block in enumerate(record.blocks):
        print(f"\nBlock {i}")
        print(format_block(block))


def _cmd_block(ns: argparse.Namespace) -> None:
    with _open(ns, reindex=True) as session:
        record = _read_at(session, ns.index)
    if not 0 <= ns.block < len(record.blocks):
        raise CommandError(
            f"Unable to get block {ns.block}",
            IndexError(f"record {ns.index} has {len(record.blocks)} block(s)"),
        )
    print(format_block(record.blocks[ns.block]))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="sdf", description="Read and process .sdf full-waveform files.")
    p.add_argument("--version", action="store_true", help="Show package and sdfifc library versions")
    p.add_argument("--library", default=None, help="Path to libsdfifc (default: $SDFIFC_LIBRARY or system search)")
    p.add_argument("-v", "--verbose", action="count", default=0, help="-v for INFO, -vv for DEBUG logging")

    sub = p.add_subparsers(dest="command")

    c = sub.add_parser("convert", help="Convert an .sdf file to a discrete-return .sdc file")
    c.add_argument("infile")
    c.add_argument("outfile")
    c.set_defaults(func=_cmd_convert)

    i = sub.add_parser("info", help="Show file information")
    i.add_argument("infile")
    i.add_argument(
        "--brief",
        action="store_true",
        help="Only provide file information from the header, do not inspect the file itself",
    )
    i.set_defaults(func=_cmd_info)

    r = sub.add_parser("record", help="Print one record and all of its blocks")
    r.add_argument("infile")
    r.add_argument("index", type=int)
    r.set_defaults(func=_cmd_record)

    b = sub.add_parser("block", help="Print one sample block of one record")
    b.add_argument("infile")
    b.add_argument("index", type=int)
    b.add_argument("block", type=int)
    b.set_defaults(func=_cmd_block)

    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(list(argv) if argv is not None else None)

    level = logging.WARNING
    if ns.verbose == 1:
        level = logging.INFO
    elif ns.verbose >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        if ns.version:
            _cmd_version(ns)
        elif getattr(ns, "func", None) is None:
            parser.print_help()
            return 1
        else:
            ns.func(ns)
    except CommandError as exc:
        print(f"ERROR: {exc.context}: {exc.cause}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
