"""Dump the parse events of an XML file, one per line."""

from __future__ import annotations

import argparse
import logging
import mmap
import sys
from pathlib import Path

from .consumer import EventRecorder
from .errors import XmlError
from .parser import parse
from .serialize import to_test_format

logger = logging.getLogger("pushxml")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m pushxml", description=__doc__)
    parser.add_argument("file", type=Path, help="XML file to parse")
    parser.add_argument("--decode", action="store_true", help="Decode entities in text and attribute values")
    parser.add_argument("--limit", type=int, default=None, help="Abort the parse after N events")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def run(path: Path, recorder: EventRecorder) -> bool:
    with path.open("rb") as handle:
        if path.stat().st_size == 0:
            # mmap refuses empty files.
            return parse(recorder, b"")
        with mmap.mmap(handle.fileno(), 0, access=mmap.ACCESS_READ) as data:
            return parse(recorder, data)


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )

    recorder = EventRecorder(decode=args.decode, limit=args.limit)
    try:
        completed = run(args.file, recorder)
    except OSError as error:
        print(f"Error: cannot read {args.file}: {error.strerror}", file=sys.stderr)
        return 2
    except XmlError as error:
        if recorder.events:
            print(to_test_format(recorder.events))
        print(f"Error: {args.file}: {error}", file=sys.stderr)
        return 2

    if recorder.events:
        print(to_test_format(recorder.events))
    if not completed:
        logger.info("parse aborted after %d events", len(recorder.events))
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry
    raise SystemExit(main())
