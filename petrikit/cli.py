from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import networkx as nx

from .Analysis.batch import BatchAnalyzer, format_report
from .Analysis.boundedness import BoundednessAnalyzer, BoundednessResult
from .Graph.conversion import marking_graph_to_networkx
from .IO.debug import LoggingListener, setup_logging
from .IO.pnml_parser import load_pnml
from .Net.exceptions import ExplorationLimitError, PNMLParseError
from .Net.petrinet import PetriNet
from .version import __version__


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="petrikit",
        description="Decide boundedness of Petri nets stored as PNML files.",
    )
    p.add_argument("files", nargs="+", metavar="FILE", help="PNML net file(s)")
    p.add_argument("--log-level", type=str, default="WARNING")
    p.add_argument("--log-file", type=str, default=None)
    p.add_argument(
        "--max-markings",
        type=int,
        default=None,
        help="Abort a file once its marking graph grows past N markings",
    )
    p.add_argument(
        "--verbose",
        action="store_true",
        help="Log every model notification (implies --log-level DEBUG)",
    )
    p.add_argument(
        "--graph",
        type=str,
        default=None,
        metavar="PATH",
        help="Write the marking graph as GraphML (single file only)",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def write_marking_graph(
    net: PetriNet, result: BoundednessResult, path: str
) -> None:
    """
    Export the marking graph of an analysed net to GraphML.

    Witness edges, if any, carry ``on_path=True``.

    :param net: Net whose marking graph is exported.
    :param result: Analysis result supplying the witness path.
    :param path: Output file.
    """
    highlight = result.witness.path if result.witness is not None else None
    G = marking_graph_to_networkx(
        net.marking_graph, include_tokens=False, highlight=highlight
    )
    nx.write_graphml(G, path)


def _analyze_single(path: str, args: argparse.Namespace, logger: logging.Logger) -> int:
    try:
        net = load_pnml(path)
    except PNMLParseError as exc:
        logger.error("%s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 2
    if args.verbose:
        net.add_listener(LoggingListener(logger.getChild("events")))
    try:
        result = BoundednessAnalyzer(
            net, max_markings=args.max_markings, logger=logger
        ).analyze()
    except ExplorationLimitError as exc:
        print(f"{net.name}: {exc}")
        return 0
    print(f"{net.name}: {result.summary}")
    if args.graph:
        write_marking_graph(net, result, args.graph)
        logger.info("Marking graph written to %s", args.graph)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level = "DEBUG" if args.verbose else args.log_level
    try:
        logger = setup_logging(level, args.log_file)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if len(args.files) == 1:
        return _analyze_single(args.files[0], args, logger)

    if args.graph:
        logger.warning("--graph is ignored when analysing several files")
    batch = BatchAnalyzer(max_markings=args.max_markings, logger=logger)
    df = batch.run(args.files)
    print(format_report(df))
    return 0 if len(df) == len(args.files) else 2


if __name__ == "__main__":
    sys.exit(main())
