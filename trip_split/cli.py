"""Command-line interface for trip-split."""

import argparse
import logging
import sys

from trip_split.api import check_patterns, split
from trip_split.gtfs.models import SplitConfig
from trip_split.version import VERSION


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def cmd_split(args: argparse.Namespace) -> int:
    """Execute split command."""
    setup_logging(args.verbose)

    config = SplitConfig(
        input_path=args.input,
        patterns_path=args.patterns,
        output_path=args.output,
        strict_feed=args.strict_feed,
        debug_json=args.debug_json,
    )

    try:
        manifest = split(args.input, args.patterns, args.output, config)
        print("\nSplit successful!")
        print(f"Output: {args.output}")
        print(f"Stats: {manifest.stats}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Split failed")
        return 1


def cmd_check_patterns(args: argparse.Namespace) -> int:
    """Execute check-patterns command."""
    setup_logging(args.verbose)

    try:
        report = check_patterns(args.patterns, args.input)
        if report.valid:
            print("\nPatterns valid!")
            print(f"Stats: {report.stats}")
            if report.warnings:
                print(f"Warnings ({len(report.warnings)}):")
                for warning in report.warnings:
                    print(f"  - {warning}")
            return 0
        else:
            print(f"\nPattern check failed with {len(report.errors)} errors:")
            for error in report.errors:
                print(f"  - {error}")
            return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Pattern check failed")
        return 1


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="trip-split",
        description="Split GTFS trips into canonical route directions",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Split command
    split_parser = subparsers.add_parser("split", help="Split trips into route directions")
    split_parser.add_argument("--input", required=True, help="Path to GTFS directory")
    split_parser.add_argument("--patterns", required=True, help="Path to route patterns JSON")
    split_parser.add_argument(
        "--output", default="./trip_split_data", help="Output directory (default: ./trip_split_data)"
    )
    split_parser.add_argument(
        "--strict-feed",
        type=lambda x: x.lower() == "true",
        default=True,
        help="Abort when GTFS validation reports errors (default: true)",
    )
    split_parser.add_argument(
        "--debug-json",
        type=lambda x: x.lower() == "true",
        default=False,
        help="Write per-trip classification details (default: false)",
    )
    split_parser.set_defaults(func=cmd_split)

    # Check-patterns command
    check_parser = subparsers.add_parser("check-patterns", help="Compile and check a pattern file")
    check_parser.add_argument("--patterns", required=True, help="Path to route patterns JSON")
    check_parser.add_argument(
        "--input", default=None, help="Optional GTFS directory to check stop ids against"
    )
    check_parser.set_defaults(func=cmd_check_patterns)

    # Parse and execute
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
