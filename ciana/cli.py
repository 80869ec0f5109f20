"""
Command line entry point.

Usage:
    ciana <filename> <line> <column> [--context] [--inspect] [--config PATH] [--root DIR] [-v]

Exit codes:
    0  success (including "no references found")
    1  bad arguments
    2  analysis failure
"""

import argparse
import logging
import sys
from typing import List, Optional

from ciana.analyzer import ImpactAnalyzer
from ciana.clang_provider import LibClangProvider
from ciana.config import DEFAULT_CONFIG_FILE
from ciana.context import SourceContext
from ciana.errors import ArgumentError, CianaError
from ciana.location import SourceLocation, absolute_to_relative
from ciana.report import ImpactReport

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ARGUMENTS = 1
EXIT_ANALYSIS = 2


class _ArgumentParser(argparse.ArgumentParser):
    """argparse exits with status 2 on bad input; we need 1, so raise instead."""

    def error(self, message):
        raise ArgumentError(message)


def _position(value: str) -> int:
    try:
        number = int(value, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be 1 or greater: {value!r}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="ciana",
        description="C/C++ change impact analyzer: list every reference to the "
                    "entity at FILENAME:LINE:COLUMN.",
    )
    parser.add_argument("filename", help="source file containing the identifier")
    parser.add_argument("line", type=_position, help="1-based line")
    parser.add_argument("column", type=_position, help="1-based column")
    parser.add_argument("--config", default=DEFAULT_CONFIG_FILE,
                        help="dotfile naming the compilation database directory "
                             "(default: %(default)s, relative to --root)")
    parser.add_argument("--root", default=None,
                        help="workspace root that reported paths are relative to "
                             "(default: current directory)")
    parser.add_argument("--context", action="store_true",
                        help="show the enclosing function and source line of each reference")
    parser.add_argument("--inspect", action="store_true",
                        help="print the syntax tree nodes at the location instead of analysing")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse ``argv`` (without the program name).

    Raises:
        ArgumentError: missing arguments or non-numeric line/column.
    """
    return build_parser().parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        args = parse_args(argv)
    except ArgumentError as e:
        print(f"Problem parsing arguments: {e}", file=sys.stderr)
        return EXIT_ARGUMENTS

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    provider = LibClangProvider(root=args.root, config_path=args.config)
    analyzer = ImpactAnalyzer(provider)
    try:
        target = SourceLocation(
            absolute_to_relative(args.filename, provider.root), args.line, args.column
        )
        if args.inspect:
            for line in analyzer.inspect(target):
                print(line)
            return EXIT_OK
        result = analyzer.run(target)
    except CianaError as e:
        logger.debug("Analysis failed", exc_info=True)
        print(f"Application error: {e}", file=sys.stderr)
        return EXIT_ANALYSIS

    context = SourceContext(provider.root) if args.context else None
    for line in ImpactReport.build(result, context).to_lines():
        print(line)
    return EXIT_OK
