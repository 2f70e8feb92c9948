"""
Repaint Timeline CLI
====================

Render a compositor repaint timeline log as an SVG diagram.

USAGE:
    python -m repaint_timeline -i input.log -o output.svg [options]

Exit status is 0 on success and 1 on any configuration, input,
interpretation or output failure. Nothing is written on failure.
"""

import argparse
import sys
from typing import List, Optional

from .contracts.base import ConfigError, TimelineError
from .contracts.events import OpenIntervalPolicy, TimeWindow, UnmatchedEndPolicy
from .engine import RunConfig, run
from .observability import configure_logging
from .temporal.interpreter import InterpreterConfig
from .visualization.layout import LayoutConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="repaint-timeline",
        description="Render a compositor repaint timeline log as SVG",
    )
    parser.add_argument("-i", "--input", metavar="FILE", help="Read FILE as the input data")
    parser.add_argument("-o", "--output", metavar="FILE", help="Write FILE as the output SVG")
    parser.add_argument("-a", "--from-ms", type=int, metavar="MS", help="Start the graph at MS milliseconds")
    parser.add_argument("-b", "--to-ms", type=int, metavar="MS", help="End the graph at MS milliseconds")
    parser.add_argument(
        "--strict", action="store_true",
        help="Fail on an end record that has no matching begin"
    )
    parser.add_argument(
        "--open-intervals", choices=[p.value for p in OpenIntervalPolicy],
        default=OpenIntervalPolicy.OPEN_ENDED.value,
        help="What to do with intervals still open at end of input (default: open)"
    )
    parser.add_argument(
        "--class-order", default="", metavar="CLASSES",
        help="Comma separated entity classes to list first, e.g. output,surface"
    )
    parser.add_argument("--plot-width", type=int, default=LayoutConfig.plot_width, metavar="PX")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    """Build a RunConfig. Raises ConfigError on an inverted window."""
    class_priority = tuple(c.strip() for c in args.class_order.split(",") if c.strip())
    return RunConfig(
        input_path=args.input,
        output_path=args.output,
        window=TimeWindow(from_ms=args.from_ms, to_ms=args.to_ms),
        interpreter=InterpreterConfig(
            unmatched_end=UnmatchedEndPolicy.ERROR if args.strict else UnmatchedEndPolicy.IGNORE,
            open_interval=OpenIntervalPolicy(args.open_intervals),
            class_priority=class_priority,
        ),
        layout=LayoutConfig(plot_width=args.plot_width),
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = config_from_args(args)
        config.validate()
        result = run(config)
    except ConfigError as err:
        print(f"[FAIL] Configuration error: {err}", file=sys.stderr)
        return 1
    except TimelineError as err:
        print(f"[FAIL] {type(err).__name__} ({err.code.name}): {err}", file=sys.stderr)
        return 1

    for diagnostic in result.diagnostics:
        print(f"[WARN] {diagnostic.code.name}: {diagnostic.message}", file=sys.stderr)

    print(
        f"[OK] Wrote {result.output_path}: {result.entity_count} lanes, "
        f"{result.event_count} events, bounds {result.bounds}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
