"""Main CLI entry point for strictbencode."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Iterator

import structlog

from .. import __version__
from ..codec.decoder import Decoder
from ..codec.values import ByteString, Dictionary, Integer, List, Value
from ..exceptions import BencodeError


def render(value: Value, indent: int = 0) -> Iterator[str]:
    """Yield an indented, human-readable rendering of a value tree.

    Byte strings that are printable UTF-8 are shown as text, anything else
    as hex.
    """
    pad = "  " * indent
    if isinstance(value, List):
        yield f"{pad}list ({len(value)} items)"
        for item in value:
            yield from render(item, indent + 1)
    elif isinstance(value, Dictionary):
        yield f"{pad}dict ({len(value)} keys)"
        for key, item in value.items():
            if isinstance(item, (List, Dictionary)):
                yield f"{pad}  {_bytes_repr(key)}:"
                yield from render(item, indent + 2)
            else:
                yield f"{pad}  {_bytes_repr(key)}: {_scalar_repr(item)}"
    else:
        yield f"{pad}{_scalar_repr(value)}"


def _scalar_repr(value: Value) -> str:
    if isinstance(value, Integer):
        return str(value.value)
    assert isinstance(value, ByteString)
    return _bytes_repr(value.data)


def _bytes_repr(data: bytes) -> str:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        text = None
    if text is not None and text.isprintable():
        return repr(text)
    more = "..." if len(data) > 32 else ""
    return f"<{len(data)} bytes: {data[:32].hex()}{more}>"


def setup_logging(verbose: bool) -> None:
    """Send codec log events to stderr, debug events only when verbose."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.WARNING
        ),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def main() -> int:
    """Main entry point for the strictbencode CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="strictbencode: Canonical Bencode Codec",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  strictbencode --inspect file.torrent    Show the decoded value tree
  strictbencode --validate data.bin       Check that a file is canonical
  strictbencode --version                 Show version
        """,
    )

    parser.add_argument(
        "--inspect",
        metavar="FILE",
        type=str,
        help="Decode every item in FILE and print the value tree",
    )

    parser.add_argument(
        "--validate",
        metavar="FILE",
        type=str,
        help="Check that FILE holds only canonical items",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log codec debug events to stderr",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"strictbencode {__version__}",
    )

    args = parser.parse_args()
    setup_logging(args.verbose)

    target = args.inspect or args.validate
    if not target:
        # If no command specified, show help
        parser.print_help()
        return 0

    file_path = Path(target)
    if not file_path.exists():
        print(f"Error: File not found: {file_path}", file=sys.stderr)
        return 1

    count = 0
    try:
        with file_path.open("rb") as stream:
            for value in Decoder(stream):
                count += 1
                if args.inspect:
                    print(f"# item {count}")
                    for line in render(value):
                        print(line)
    except BencodeError as e:
        print(f"Error in item {count + 1}: {e}", file=sys.stderr)
        return 1

    if args.validate:
        print(f"{file_path}: {count} canonical item(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
