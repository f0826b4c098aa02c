"""partmet command-line interface.

Usage:
    partmet FILE                     full report (all tag categories)
    partmet -f FILE -g -z            gap tags plus the download bar
    partmet FILE --json -v           JSON report with extra detail
    partmet FILE -e                  hash only (script-friendly)
    python -m partmet FILE -S -p -j  {"fields": {"filesize": ..., "progress": {...}}}
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from . import (
    PartMetError,
    PartMetFile,
    __version__,
    decode_stream,
    read_header_only,
)
from ._classify import CATEGORY_LABELS
from ._constants import BAR_WIDTH
from ._report import (
    HEADER_FIELDS,
    TAG_FIELDS,
    ReportOptions,
    render_fields,
    render_json,
    render_text,
)

# (flag dest, field name) in the order fields are considered.
_FIELD_FLAGS = [
    ("metversion", "version"),
    ("hash", "hash"),
    ("tagcount", "tagcount"),
    ("name", "filename"),
    ("size", "size"),
    ("date", "date"),
    ("progress", "progress"),
]


def _default_width() -> int:
    raw = os.environ.get("PARTMET_BAR_WIDTH")
    if raw:
        try:
            return int(raw)
        except ValueError:
            print("partmet: ignoring bad PARTMET_BAR_WIDTH={!r}".format(raw), file=sys.stderr)
    return BAR_WIDTH


def _positive_int(s: str) -> int:
    n = int(s)
    if n <= 0:
        raise argparse.ArgumentTypeError("must be positive")
    return n


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="partmet",
        description="Extract the ED2K hash and meta tags from .part.met files",
    )
    parser.add_argument("path", nargs="?", metavar="FILE",
                        help="The .part.met file to analyze")
    parser.add_argument("-f", "--file", dest="file", metavar="FILE",
                        help="Same as the positional FILE")

    show = parser.add_argument_group("display options")
    show.add_argument("-a", "--all", action="store_true", help="Show all tags (default)")
    show.add_argument("-s", "--special", action="store_true", help="Show only special tags")
    show.add_argument("-g", "--gap", action="store_true", help="Show only gap tags")
    show.add_argument("-t", "--standard", action="store_true", help="Show only standard tags")
    show.add_argument("-u", "--unknown", action="store_true", help="Show unknown tags")

    fields = parser.add_argument_group("specific fields (script-friendly, raw output)")
    fields.add_argument("-n", "--name", action="store_true", help="Show filename only")
    fields.add_argument("-S", "--size", action="store_true", help="Show file size only")
    fields.add_argument("-d", "--date", action="store_true",
                        help="Show last seen complete date only")
    fields.add_argument("-p", "--progress", action="store_true",
                        help="Show download progress only")
    fields.add_argument("-e", "--hash", action="store_true", help="Show ED2K hash only")
    fields.add_argument("-m", "--metversion", action="store_true",
                        help="Show .part.met version only (14.0 or 14.1)")
    fields.add_argument("-c", "--tagcount", action="store_true",
                        help="Show number of meta tags only")

    other = parser.add_argument_group("other options")
    other.add_argument("-j", "--json", action="store_true", help="Output in JSON format")
    other.add_argument("-v", "--verbose", action="store_true", help="Show detailed information")
    other.add_argument("-V", "--version", action="store_true", help="Show program version")
    other.add_argument("-z", "--visualize", action="store_true",
                       help="Visualize file download status")
    other.add_argument("--width", type=_positive_int, default=None, metavar="N",
                       help="Width of the download bar (default: $PARTMET_BAR_WIDTH or {})"
                       .format(BAR_WIDTH))
    other.add_argument("--debug", action="store_true", help="Log decoder details to stderr")
    return parser


def _categories(args: argparse.Namespace) -> frozenset:
    if args.all:
        return frozenset(CATEGORY_LABELS)
    chosen = {label for label in CATEGORY_LABELS if getattr(args, label)}
    return frozenset(chosen)


def _requested_fields(args: argparse.Namespace) -> List[str]:
    return [name for dest, name in _FIELD_FLAGS if getattr(args, dest)]


def _print_version(json_output: bool) -> None:
    if json_output:
        print(json.dumps({"version": "partmet {}".format(__version__)}))
    else:
        print("partmet {}".format(__version__))


def _emit(out: str) -> None:
    # A missing field prints nothing at all, not an empty line.
    if out:
        print(out)


def _run(path: str, args: argparse.Namespace) -> None:
    fields = _requested_fields(args)

    if fields and fields[0] in HEADER_FIELDS:
        # Header-only answers stop before the tag stream.
        with open(path, "rb") as f:
            info, content_hash, tag_count = read_header_only(f)
        part = PartMetFile(info, content_hash, tag_count, ())
        _emit(render_fields(part, fields, args.json, args.verbose))
        return

    with open(path, "rb") as f:
        part = decode_stream(f)

    if fields:
        tag_fields = [name for name in fields if name in TAG_FIELDS]
        _emit(render_fields(part, tag_fields, args.json, args.verbose))
        return

    categories = _categories(args)
    if not categories and not args.visualize:
        categories = frozenset(CATEGORY_LABELS)

    options = ReportOptions(
        categories=categories,
        verbose=args.verbose,
        visualize=args.visualize,
        width=args.width or _default_width(),
    )
    if args.json:
        print(render_json(part, options))
    else:
        sys.stdout.write(render_text(part, options))


def main(argv: Optional[List[str]] = None) -> None:
    parser = _build_parser()
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        parser.print_help(sys.stderr)
        sys.exit(1)
    args = parser.parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr,
                            format="%(name)s: %(levelname)s: %(message)s")

    if args.path and args.file and args.path != args.file:
        parser.error("give the file either positionally or with -f, not both")
    path = args.file or args.path

    if args.version:
        _print_version(args.json)
        if path is None:
            return

    if path is None:
        print("partmet: error: you must specify a .part.met file", file=sys.stderr)
        parser.print_usage(sys.stderr)
        sys.exit(1)

    try:
        _run(path, args)
    except PartMetError as e:
        if e.partial is not None:
            print("partmet: decoded {} of {} tags before the error".format(
                len(e.partial.tags), e.partial.tag_count), file=sys.stderr)
        print(f"partmet: error [{e.code}]: {e}", file=sys.stderr)
        sys.exit(2)
    except OSError as e:
        print(f"partmet: cannot read {path}: {e.strerror or e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
