"""Main CLI dispatcher for reachgraph."""

import argparse
import logging
import sys

from reachgraph import __version__

from . import callgraph


def setup_logging(verbose=False, debug=False):
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def build_parser():
    parser = argparse.ArgumentParser(
        description="reachgraph - whole-program call graph construction", prog="reachgraph"
    )
    parser.add_argument("--version", action="version", version="reachgraph %s" % __version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands", required=True)
    callgraph.add_callgraph_parser(subparsers)
    return parser


def main(argv=None):
    """Entry point of the ``reachgraph`` command. Returns the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose, args.debug)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
