"""callnet CLI: query interaction graphs from the command line.

Usage:
    callnet summary records.json --subject 01711000000
    callnet hubs records.jsonl --hub-multiplier 2.5
    callnet path records.json 01711000000 01822000000 --start 1700000000000
    callnet highlight records.json --usage-type MOC --min-duration 600
    callnet export records.json --format gexf --output network.gexf

Input is a JSON array of normalized records, or one JSON record per line.
Results are printed as JSON on stdout; logs go to stderr.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from callnet.config.settings import settings

logger = logging.getLogger(__name__)


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("records", help="JSON array or JSON-lines file of records")
    common.add_argument(
        "--subject", action="append", default=None,
        help="Id of the subscriber under investigation (repeatable)",
    )
    common.add_argument(
        "--file-id", action="append", dest="file_ids", default=None,
        help="File id under analysis (repeatable, default: all)",
    )
    common.add_argument("--start", type=int, help="Window start, epoch ms")
    common.add_argument("--end", type=int, help="Window end, epoch ms")
    common.add_argument("--record-cap", type=int, help="Max records to use")
    common.add_argument("--hub-multiplier", type=float, help="Hub threshold multiple of the mean")
    common.add_argument("--hub-min-nodes", type=int, help="Minimum graph size for hub detection")
    common.add_argument(
        "--hide-node", action="append", default=[], help="Node id to treat as hidden (repeatable)",
    )

    parser = argparse.ArgumentParser(
        prog="callnet",
        description="callnet: call and SMS interaction graph analysis",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("summary", parents=[common], help="Graph shape and build stats")
    subparsers.add_parser("hubs", parents=[common], help="List hub nodes")

    pth = subparsers.add_parser("path", parents=[common], help="Shortest connection between two parties")
    pth.add_argument("source", help="Source node id")
    pth.add_argument("target", help="Target node id")

    hl = subparsers.add_parser("highlight", parents=[common], help="Evaluate highlight criteria")
    hl.add_argument("--usage-type", action="append", default=[], help="Usage type (repeatable)")
    hl.add_argument("--min-duration", type=float, help="Min edge duration, seconds")
    hl.add_argument("--max-duration", type=float, help="Max edge duration, seconds")
    hl.add_argument("--tower", help="Tower id")
    hl.add_argument(
        "--common-across-files", action="store_true",
        help="Match nodes present in every analysed file",
    )

    exp = subparsers.add_parser("export", parents=[common], help="Export the graph")
    exp.add_argument("--format", choices=["cytoscape", "gexf"], default="cytoscape")
    exp.add_argument("--output", "-o", help="Output path (required for gexf)")

    args = parser.parse_args(argv)

    # Logging
    level = logging.DEBUG if args.verbose else getattr(logging, settings.LOG_LEVEL)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    # Dispatch
    try:
        if args.command == "summary":
            _cmd_summary(args)
        elif args.command == "hubs":
            _cmd_hubs(args)
        elif args.command == "path":
            _cmd_path(args)
        elif args.command == "highlight":
            _cmd_highlight(args)
        elif args.command == "export":
            _cmd_export(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except Exception as exc:
        logger.error("Error: %s", exc)
        if args.verbose:
            raise
        sys.exit(1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_summary(args: argparse.Namespace) -> None:
    session = _session(args)
    result = session.build()
    summary = result.summary()
    view = session.current_graph()
    summary["window"] = _window_dict(session.window)
    summary["window_node_count"] = view.node_count
    summary["window_edge_count"] = view.edge_count
    _print_json(summary)


def _cmd_hubs(args: argparse.Namespace) -> None:
    result = _session(args).build()
    _print_json([
        {
            "node_id": h.node_id,
            "call_count": h.call_count,
            "threshold": h.threshold,
            "ratio_to_mean": round(h.ratio_to_mean, 2),
            "cross_file": h.cross_file,
            "explanation": h.explanation,
        }
        for h in result.hubs
    ])


def _cmd_path(args: argparse.Namespace) -> None:
    result = _session(args).find_path(args.source, args.target)
    _print_json({
        "status": result.status.value,
        "source": result.source_id,
        "target": result.target_id,
        "path_length": result.path_length,
        "node_ids": result.node_ids,
        "edge_ids": result.edge_ids,
        "missing_node_ids": result.missing_node_ids,
        "message": result.message,
    })


def _cmd_highlight(args: argparse.Namespace) -> None:
    from callnet.graph.highlight import HighlightCriteria

    session = _session(args)
    session.criteria = HighlightCriteria(
        usage_types=frozenset(args.usage_type),
        min_edge_duration_seconds=args.min_duration,
        max_edge_duration_seconds=args.max_duration,
        tower_id=args.tower,
        common_across_files=args.common_across_files,
    )
    result = session.highlight()
    _print_json({
        "status": result.status.value,
        "matched_node_ids": sorted(result.matched_node_ids),
        "matched_edge_ids": sorted(result.matched_edge_ids),
        "dimmed_node_count": len(result.dimmed_node_ids),
        "dimmed_edge_count": len(result.dimmed_edge_ids),
        "message": result.message,
    })


def _cmd_export(args: argparse.Namespace) -> None:
    exporter = _session(args).exporter()
    if args.format == "gexf":
        if not args.output:
            raise ValueError("--output is required for gexf export")
        exporter.to_gexf(args.output)
        print(f"Exported GEXF to {args.output}", file=sys.stderr)
        return

    data = exporter.to_cytoscape_json()
    if args.output:
        Path(args.output).write_text(json.dumps(data, indent=2))
        print(f"Exported Cytoscape JSON to {args.output}", file=sys.stderr)
    else:
        _print_json(data)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def load_records(path: str | Path) -> list[Any]:
    """Read a JSON array, or JSON lines, of record objects."""
    text = Path(path).read_text(encoding="utf-8").strip()
    if not text:
        return []
    if text.startswith("["):
        data = json.loads(text)
        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a JSON array of records")
        return data
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def _session(args: argparse.Namespace) -> Any:
    from callnet.graph.engine import AnalysisSession, GraphEngine
    from callnet.graph.model import TimeWindow

    records = load_records(args.records)
    engine = GraphEngine(
        record_cap=args.record_cap,
        hub_multiplier=args.hub_multiplier,
        hub_min_nodes=args.hub_min_nodes,
    )
    session = AnalysisSession(
        records,
        subject=args.subject,
        analysed_file_ids=args.file_ids,
        engine=engine,
    )
    for node_id in args.hide_node:
        session.annotations.hide_node(node_id)

    if args.start is not None or args.end is not None:
        span = session.build().graph.full_time_span()
        if span is not None:
            # A lone bound outside the data collapses the window onto itself
            start = args.start if args.start is not None else min(span.start_ms, args.end)
            end = args.end if args.end is not None else max(span.end_ms, start)
            session.set_window(TimeWindow(start, end))
    return session


def _window_dict(window: Any) -> Optional[dict[str, int]]:
    if window is None:
        return None
    return {"start_ms": window.start_ms, "end_ms": window.end_ms}


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


if __name__ == "__main__":
    main()
