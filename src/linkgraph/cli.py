"""Command-line entry point.

Usage:
    # Relax a timeline layout and write the scene
    linkgraph layout Connections.csv --mode timeline -o scene.json

    # Ask the network a question (stores the result in history)
    linkgraph ask Connections.csv "who works in climate tech?" --profile Profile.csv

    # Conversation starters for one connection
    linkgraph analyze Connections.csv p_12

    # Query history
    linkgraph history list
    linkgraph history export 1718000000000 --dir ./exports
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from dotenv import load_dotenv

# .env values must be visible before settings are read
load_dotenv()

from linkgraph.config import settings
from linkgraph.graph import GraphConfig, GraphEngine, LayoutMode, SimulationRunner, Viewport
from linkgraph.ingestion import LLMClient, LLMError, load_connections, load_profile
from linkgraph.preprocessing import MatchParseError
from linkgraph.query import NetworkQueryService, QueryStatus
from linkgraph.storage import HistoryStore

logger = logging.getLogger(__name__)


def _write_output(payload: Any, output: str | None) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if output:
        Path(output).write_text(text, encoding="utf-8")
        print(f"Wrote {output}")
    else:
        print(text)


def _build_llm(args: argparse.Namespace) -> LLMClient:
    return LLMClient(provider=args.provider, api_key=args.api_key)


# ============================================================================
# Commands
# ============================================================================


async def cmd_layout(args: argparse.Namespace) -> int:
    nodes = await load_connections(Path(args.connections))
    profile = await load_profile(Path(args.profile) if args.profile else None)

    config = GraphConfig()
    config.simulation.dimensions = args.dimensions
    engine = GraphEngine(
        nodes,
        Viewport(args.width, args.height),
        mode=LayoutMode(args.mode),
        config=config,
        profile=profile,
    )
    if args.year is not None:
        engine.filter_by_year(args.year)

    runner = SimulationRunner(engine, interval=0.0)
    ticks = await runner.run_until_settled(args.ticks)
    logger.info(f"Layout settled after {ticks} ticks (alpha={engine.simulation.alpha:.4f})")

    _write_output(engine.scene(), args.output)
    return 0


async def cmd_ask(args: argparse.Namespace) -> int:
    nodes = await load_connections(Path(args.connections))
    profile = await load_profile(Path(args.profile) if args.profile else None)

    llm = _build_llm(args)
    history = HistoryStore(args.history)
    engine = GraphEngine(
        nodes,
        Viewport(settings.viewport_width, settings.viewport_height),
        profile=profile,
        query_service=NetworkQueryService(llm),
        history=history,
    )
    if args.year is not None:
        engine.filter_by_year(args.year)

    try:
        outcome = await engine.ask(args.query)
    finally:
        await llm.close()

    if outcome.status == QueryStatus.RATE_LIMITED:
        print(outcome.message, file=sys.stderr)
        return 2
    if not outcome.ok:
        print(f"Query failed: {outcome.message}", file=sys.stderr)
        return 1

    result = outcome.result
    print(result.explanation)
    for match in sorted(result.matches, key=lambda m: m.score, reverse=True):
        node = engine.working.get(match.id)
        name = node.name if node else match.name
        print(f"  {match.score:5.1f}  {name} [{match.id}] - {match.reason}")

    if args.output:
        _write_output(engine.scene(), args.output)
    return 0


async def cmd_analyze(args: argparse.Namespace) -> int:
    nodes = await load_connections(Path(args.connections))
    node = next((n for n in nodes if n.id == args.node_id), None)
    if node is None:
        print(f"Unknown node id: {args.node_id}", file=sys.stderr)
        return 1

    llm = _build_llm(args)
    service = NetworkQueryService(llm)
    try:
        analysis = await service.analyze_person(node)
    except (LLMError, MatchParseError) as e:
        print(f"Analysis failed: {e}", file=sys.stderr)
        return 1
    finally:
        await llm.close()

    print(f"{node.name} ({node.role} at {node.company})")
    print(analysis)
    return 0


def cmd_history(args: argparse.Namespace) -> int:
    store = HistoryStore(args.history)

    if args.history_command == "list":
        entries = store.entries()
        if not entries:
            print("No history yet")
        for entry in entries:
            print(f"{entry.id}  {entry.timestamp:%Y-%m-%d %H:%M}  {len(entry.result.matches):3d} matches  {entry.query}")
        return 0

    if args.history_command == "show":
        entry = store.get(args.entry_id)
        if entry is None:
            print(f"History entry not found: {args.entry_id}", file=sys.stderr)
            return 1
        _write_output(entry.to_dict(), None)
        return 0

    if args.history_command == "delete":
        if not store.delete(args.entry_id):
            print(f"History entry not found: {args.entry_id}", file=sys.stderr)
            return 1
        print(f"Deleted {args.entry_id}")
        return 0

    if args.history_command == "export":
        path = store.export_entry(args.entry_id, args.dir)
        if path is None:
            print(f"History entry not found: {args.entry_id}", file=sys.stderr)
            return 1
        print(f"Wrote {path}")
        return 0

    if args.history_command == "export-last":
        result = store.load_last()
        if result is None:
            print("No last result to export", file=sys.stderr)
            return 1
        print(f"Wrote {store.export_result(result, args.dir)}")
        return 0

    if args.history_command == "clear-last":
        store.clear_last()
        print("Cleared last result")
        return 0

    return 1


# ============================================================================
# Parser
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="linkgraph", description="Professional network graph explorer")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--history",
        type=str,
        default=None,
        help=f"History file (default: {settings.history_path})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    layout = sub.add_parser("layout", help="Relax a layout and write the scene JSON")
    layout.add_argument("connections", help="Connections CSV export")
    layout.add_argument("--profile", help="Profile CSV export")
    layout.add_argument("-m", "--mode", choices=[m.value for m in LayoutMode], default=LayoutMode.TIMELINE.value)
    layout.add_argument("-y", "--year", type=int, help="Show only connections made in this year")
    layout.add_argument("--width", type=float, default=settings.viewport_width)
    layout.add_argument("--height", type=float, default=settings.viewport_height)
    layout.add_argument("-d", "--dimensions", type=int, choices=[2, 3], default=2)
    layout.add_argument(
        "-t", "--ticks",
        type=int,
        default=settings.simulation_max_ticks,
        help=f"Max simulation ticks (default: {settings.simulation_max_ticks})",
    )
    layout.add_argument("-o", "--output", help="Write scene JSON here instead of stdout")

    for name, help_text in (("ask", "Ask the network a question"), ("analyze", "Conversation starters for one connection")):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("connections", help="Connections CSV export")
        if name == "ask":
            cmd.add_argument("query", help="Natural-language question")
            cmd.add_argument("--profile", help="Profile CSV export")
            cmd.add_argument("-y", "--year", type=int, help="Only search connections made in this year")
            cmd.add_argument("-o", "--output", help="Write the resulting scene JSON here")
        else:
            cmd.add_argument("node_id", help="Node id, e.g. p_12")
        cmd.add_argument("--provider", choices=["gemini", "openai"], default=None)
        cmd.add_argument("--api-key", default=None, help="Overrides LINKGRAPH_LLM_API_KEY")

    history = sub.add_parser("history", help="Manage query history")
    history_sub = history.add_subparsers(dest="history_command", required=True)
    history_sub.add_parser("list", help="List entries, newest first")
    for name in ("show", "delete", "export"):
        cmd = history_sub.add_parser(name)
        cmd.add_argument("entry_id")
        if name == "export":
            cmd.add_argument("--dir", default=".", help="Output directory")
    export_last = history_sub.add_parser("export-last", help="Export the last applied result")
    export_last.add_argument("--dir", default=".", help="Output directory")
    history_sub.add_parser("clear-last", help="Forget the last applied result")

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    if args.command == "history":
        return cmd_history(args)
    if args.command == "layout":
        return asyncio.run(cmd_layout(args))
    if args.command == "ask":
        return asyncio.run(cmd_ask(args))
    return asyncio.run(cmd_analyze(args))


if __name__ == "__main__":
    sys.exit(main())
