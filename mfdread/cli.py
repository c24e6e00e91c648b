"""
mfdread command line: parse a MIFARE Classic dump and show its details.

Usage:
    mfdread dump.mfd
    mfdread -n -1 dump.bin
    cat dump.eml | mfdread --format eml -
"""

import argparse
import json
import logging
import sys
from typing import Optional

from mfdread.config import APP_NAME, LOG_FORMAT, NO_COLOR, VERSION, ReportOptions
from mfdread.rfid.dump_parser import FORMATS, load_dump
from mfdread.rfid.errors import DumpError
from mfdread.rfid.render import render_report
from mfdread.rfid.report import build_report

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Parse Mifare dump FILE and show details.",
    )
    parser.add_argument(
        "file",
        metavar="FILE",
        help='dump file to read, "-" for standard input',
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {VERSION}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="print verbose debug statements (repeat for more)",
    )
    parser.add_argument(
        "-1",
        dest="force_1k",
        action="store_true",
        help="force 1k format",
    )
    parser.add_argument(
        "-n", "--no-color",
        dest="colorize",
        action="store_false",
        default=not NO_COLOR,
        help="do not colorize the output",
    )
    parser.add_argument(
        "--format",
        choices=FORMATS,
        default="auto",
        help="input format (default: detect)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="print the decoded report as JSON instead of a table",
    )
    return parser.parse_args(argv)


def setup_logging(verbose: int) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def read_input(path: str) -> bytes:
    if path == "-":
        return sys.stdin.buffer.read()
    with open(path, "rb") as f:
        return f.read()


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    options = ReportOptions(
        force_1k=args.force_1k,
        colorize=args.colorize,
        verbose=args.verbose,
    )
    setup_logging(options.verbose)

    try:
        raw = read_input(args.file)
    except OSError as e:
        print(f"Error opening the input file {args.file}: {e.strerror}", file=sys.stderr)
        return 1
    logger.debug("Read %d bytes from %s", len(raw), args.file)

    try:
        report = build_report(load_dump(raw, args.format), options)
        if args.json:
            output = json.dumps(report.to_dict(), indent=2)
        else:
            output = render_report(report)
    except DumpError as e:
        print(str(e), file=sys.stderr)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
