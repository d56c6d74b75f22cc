#!/usr/bin/env python3
"""
nexusmap CLI

Scans a directory tree for file references and tags, builds the reference
or tag graph, optionally lays it out with the force-directed engine, and
writes the result in various formats.
"""

import argparse
import logging
import random
import sys
import time
from pathlib import Path

from config import ConfigError, Settings, load_settings, parse_view
from exporters import to_json, to_mermaid
from graph import build_graph, subgraph, visible_view
from layout import LayoutEngine, circle_layout
from scanner import ScanSession, ScanState


logger = logging.getLogger("nexusmap")

POLL_INTERVAL = 0.05


def parse_args(args=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="nexusmap",
        description="Map references and tags between files and lay the graph out.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  nexusmap ./notes                       # Reference graph as JSON
  nexusmap ./notes --view tags           # Tag graph instead
  nexusmap ./notes -f mermaid            # Mermaid flowchart
  nexusmap ./notes --ticks 300 --seed 1  # Include laid-out positions
  nexusmap ./notes --config nexusmap.yaml
        """,
    )

    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Directory to scan (default: current directory)",
    )

    parser.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "-f", "--format",
        choices=["json", "mermaid"],
        default="json",
        help="Output format (default: json)",
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML settings file; command line flags take precedence",
    )

    parser.add_argument(
        "--view",
        choices=["reference", "tags"],
        default=None,
        help="Graph view to build (default: reference)",
    )

    parser.add_argument(
        "--show-hidden",
        action="store_true",
        default=None,
        help="Include dot-files and dot-directories",
    )

    parser.add_argument(
        "--hide-images",
        action="store_true",
        help="Leave image nodes out of the output",
    )

    parser.add_argument(
        "--tag-filter",
        type=str,
        default=None,
        help="Tag view only: keep tags containing this text",
    )

    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Number of layout ticks to run before exporting positions",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for the initial layout",
    )

    # Mermaid-specific options
    parser.add_argument(
        "--orientation",
        choices=["LR", "TD", "TB", "RL", "BT"],
        default="LR",
        help="Mermaid flowchart orientation (default: LR)",
    )

    parser.add_argument(
        "--group-by-dir",
        action="store_true",
        help="Group file nodes by top-level directory in Mermaid output",
    )

    parser.add_argument(
        "--ignore-dangling",
        action="store_true",
        help="Hide references whose target was not found",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log scan progress and debug details",
    )

    return parser.parse_args(args)


def apply_overrides(settings: Settings, parsed) -> Settings:
    """Apply command line flags on top of file settings."""
    if parsed.view is not None:
        settings.view = parse_view(parsed.view)
    if parsed.show_hidden:
        settings.show_hidden = True
    if parsed.hide_images:
        settings.show_images = False
    if parsed.tag_filter is not None:
        settings.tag_filter = parsed.tag_filter
    if parsed.ticks is not None:
        settings.ticks = max(parsed.ticks, 0)
    if parsed.seed is not None:
        settings.seed = parsed.seed
    return settings


def run_scan(session: ScanSession, root: Path, show_hidden: bool) -> None:
    """Scan in the background, logging progress; Ctrl-C keeps partial results."""
    session.start(root, show_hidden=show_hidden)
    try:
        while session.scanning:
            for event in session.poll():
                logger.debug("[%3.0f%%] %s", event.fraction * 100, event.message)
            time.sleep(POLL_INTERVAL)
    except KeyboardInterrupt:
        logger.warning("Interrupted, keeping partial results")
        session.cancel()


def main(args=None):
    """Main entry point."""
    parsed = parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    root = Path(parsed.root).resolve()
    if not root.is_dir():
        print(f"Error: '{parsed.root}' is not a directory", file=sys.stderr)
        return 1

    try:
        settings = apply_overrides(load_settings(parsed.config), parsed)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    session = ScanSession()
    run_scan(session, root, settings.show_hidden)
    if session.state is ScanState.ERROR:
        print(f"Error scanning directory: {session.error}", file=sys.stderr)
        return 1

    full_graph = build_graph(session.snapshot(), settings.view)
    view = visible_view(full_graph, show_images=settings.show_images, tag_filter=settings.tag_filter)
    graph = subgraph(full_graph, view)

    positions = None
    if settings.ticks > 0:
        rng = random.Random(settings.seed)
        with LayoutEngine(settings.simulation, rng=rng) as engine:
            engine.reset_positions(circle_layout(view.nodes, rng=rng))
            engine.tick(view.nodes, view.edges, count=settings.ticks)
            positions = dict(engine.positions)

    if parsed.format == "mermaid":
        output = to_mermaid(
            graph=graph,
            root=root,
            orientation=parsed.orientation,
            group_by_directory=parsed.group_by_dir,
            include_dangling=not parsed.ignore_dangling,
        )
    else:
        output = to_json(
            graph=graph,
            root=root,
            positions=positions,
            include_dangling=not parsed.ignore_dangling,
        )

    if parsed.output:
        try:
            output_path = Path(parsed.output)
            output_path.write_text(output, encoding="utf-8")
            print(f"Output written to: {output_path}", file=sys.stderr)
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
    else:
        print(output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
