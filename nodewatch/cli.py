#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Command line entry point for nodewatch.

Usage:
    nodewatch                       # Full TUI against the demo server
    nodewatch watch --debounce-ms 200
    nodewatch browse --depth 3      # Print the address space (no TUI)
"""

import argparse
import asyncio
import sys
from typing import List, Optional

from nodewatch._version import __version__
from nodewatch.config import DashboardConfig, configure_file_logging
from nodewatch.errors import ExpansionFailed
from nodewatch.expansion import ExpansionEngine
from nodewatch.models import ROOT_LABEL, ROOT_NODE_ID, NodeRecord
from nodewatch.session import SessionService
from nodewatch.store import NodeStore


async def browse(session: SessionService, depth: int, out=None) -> List[str]:
    """Walk the address space depth-first and print it as an indented outline.

    Args:
        session: Session Service to browse
        depth: Number of levels below the root to expand
        out: Stream to print to (stdout when omitted)

    Returns:
        The printed lines.
    """
    out = out or sys.stdout
    engine = ExpansionEngine(NodeStore(), session)
    root = engine.ensure_root(ROOT_NODE_ID, ROOT_LABEL)
    lines: List[str] = []

    async def walk(record: NodeRecord, level: int) -> None:
        lines.append("  " * level + record.label)
        print(lines[-1], file=out)
        if level >= depth:
            return
        try:
            children = await record.resolver()
        except ExpansionFailed as e:
            lines.append("  " * (level + 1) + f"! {e}")
            print(lines[-1], file=out)
            return
        for child in children:
            await walk(child, level + 1)

    await walk(root, 0)
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="nodewatch - address space explorer",
    )
    parser.add_argument(
        "--version", action="version", version=f"nodewatch {__version__}"
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    watch_parser = subparsers.add_parser("watch", help="Launch the explorer TUI")
    watch_parser.add_argument(
        "--debounce-ms", type=int, help="Quiet time before the attribute panel refreshes"
    )
    watch_parser.add_argument(
        "--latency-ms", type=int, help="Simulated demo server latency"
    )

    browse_parser = subparsers.add_parser("browse", help="Print the address space (no TUI)")
    browse_parser.add_argument(
        "--depth", "-d", type=int, default=2, help="Levels to expand below the root"
    )
    browse_parser.add_argument(
        "--latency-ms", type=int, help="Simulated demo server latency"
    )

    args = parser.parse_args(argv)

    # Default to watch (TUI) when no subcommand given
    if not args.command:
        args.command = "watch"
        args.debounce_ms = None
        args.latency_ms = None

    config = DashboardConfig.load()
    if args.latency_ms is not None:
        config.demo_latency_ms = max(args.latency_ms, 0)

    from nodewatch.demo import DemoSessionService

    if args.command == "browse":
        session = DemoSessionService(latency=config.demo_latency, tick_interval=None)
        asyncio.run(browse(session, max(args.depth, 0)))
        return 0

    if args.debounce_ms is not None:
        config.debounce_ms = max(args.debounce_ms, 0)
    configure_file_logging(config)
    try:
        from nodewatch.tui.app import run_app
    except ImportError as e:
        print(f"Error: TUI requires textual package: {e}", file=sys.stderr)
        print("Install with: pip install textual", file=sys.stderr)
        return 1
    run_app(DemoSessionService(latency=config.demo_latency), config=config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
