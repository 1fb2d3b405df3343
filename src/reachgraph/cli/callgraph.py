"""
CLI functionality for call graph analysis.
"""

import argparse
import logging
from pathlib import Path

from reachgraph.analysis.callgraph.dispatch import Algorithm
from reachgraph.analysis.callgraph.entrypoints import EntryPointStrategy
from reachgraph.analysis.callgraph.formats import FORMATS
from reachgraph.application.config import load_config
from reachgraph.application.errors import ReachGraphError
from reachgraph.application.statistics import Statistics
from reachgraph.application.workspace import Workspace
from reachgraph.util.application.console import Console

LOG = logging.getLogger(__name__)


def edge_count(text):
    """argparse type for ``--dot-edges``: a non-negative integer."""
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError("%r is not an integer" % text) from None
    if value < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return value


def configure(args):
    """Load the configuration file and apply the command line overrides."""
    config = load_config(args.config)
    return config.override(
        algorithm=Algorithm.parse(args.algorithm) if args.algorithm else None,
        entrypoint_strategy=(
            EntryPointStrategy.parse(args.entrypoints) if args.entrypoints else None
        ),
        namespaces=args.namespace or None,
        dot_edge_limit=args.dot_edges,
    )


def run_callgraph(args):
    """Build the call graph described by ``args.config``. Returns an exit code."""
    try:
        config = configure(args)
        workspace = Workspace(config, Console(verbose=args.verbose))
        stats = workspace.run()
        result = workspace.result

        if args.format or args.output:
            fmt = args.format or "json"
            output = FORMATS[fmt](result.callgraph, config)
            if args.output:
                args.output.parent.mkdir(parents=True, exist_ok=True)
                with open(args.output, "w", encoding="utf-8") as f:
                    f.write(output)
                LOG.info("call graph written to %s", args.output)
            else:
                print(output)

        LOG.info("\n%s", stats.report())
        return 0

    except (ReachGraphError, ValueError) as e:
        LOG.error("%s", e)
        if args.debug:
            LOG.exception("traceback")
        return 1


def add_callgraph_parser(subparsers):
    """Add call graph subcommand to the argument parser."""
    parser = subparsers.add_parser(
        "callgraph", help="Build a call graph from a configured program directory"
    )

    parser.add_argument("config", type=Path, help="JSON configuration file")

    parser.add_argument(
        "--algorithm",
        "-a",
        type=str.upper,
        choices=[a.value for a in Algorithm],
        help="Dispatch resolution algorithm (overrides the configuration)",
    )

    parser.add_argument(
        "--entrypoints",
        "-e",
        metavar="STRATEGY",
        help="Entry point strategy: %s (overrides the configuration)"
        % ", ".join(s.value for s in EntryPointStrategy),
    )

    parser.add_argument(
        "--namespace",
        "-n",
        action="append",
        metavar="NS",
        help="Restrict entry points to this namespace (repeatable)",
    )

    parser.add_argument(
        "--format",
        "-f",
        choices=sorted(FORMATS),
        help="Also render the call graph in this format (default: json when --output is given)",
    )

    parser.add_argument(
        "--output", "-o", type=Path, help="Output file for --format (default: stdout)"
    )

    parser.add_argument(
        "--dot-edges",
        type=edge_count,
        metavar="N",
        help="Edges written to DOT output; 0 writes all (default: the configured "
        "dot_edge_limit, 50 unless set)",
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log progress and run statistics"
    )

    parser.add_argument(
        "--debug", "-d", action="store_true", help="Log every scanned instruction"
    )

    parser.set_defaults(func=run_callgraph)
    return parser
