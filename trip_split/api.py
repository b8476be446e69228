"""Public API for trip-split."""

import hashlib
import json
import logging
import platform
from datetime import UTC, datetime
from pathlib import Path

from trip_split.exceptions import InvalidPatternError
from trip_split.gtfs.models import Manifest, SplitConfig, ValidationReport
from trip_split.gtfs.reader import GTFSReader
from trip_split.gtfs.validator import GTFSValidator
from trip_split.output.json import write_json_files
from trip_split.patterns.classifier import LabelCleaner
from trip_split.patterns.config import load_patterns
from trip_split.transform.split import split_routes
from trip_split.version import SCHEMA_VERSION, VERSION

logger = logging.getLogger(__name__)


def split(
    input_path: str,
    patterns_path: str,
    output_path: str,
    config: SplitConfig | None = None,
    label_cleaner: LabelCleaner | None = None,
) -> Manifest:
    """
    Split the trips of a GTFS feed into route directions.

    Args:
        input_path: Path to GTFS directory
        patterns_path: Path to the JSON route pattern file
        output_path: Path to output directory
        config: Optional run configuration
        label_cleaner: Optional hook applied to feed headsigns used as direction names

    Returns:
        Manifest with build metadata

    Raises:
        InvalidPatternError: if the pattern file is inconsistent
        UnmatchedTripError: if a trip fits no direction
        AmbiguousMergeError: if trips of one direction disagree on their name
    """
    if config is None:
        config = SplitConfig(
            input_path=input_path, patterns_path=patterns_path, output_path=output_path
        )

    logger.info(f"Starting split: {input_path} -> {output_path}")
    start_time = datetime.now(UTC)

    # Read GTFS
    reader = GTFSReader(input_path)
    reader.read_all()

    # Validate
    validation_report = GTFSValidator(reader).validate()
    if not validation_report.valid:
        if config.strict_feed:
            raise ValueError(
                f"GTFS validation failed with {len(validation_report.errors)} errors"
            )
        logger.warning("Continuing despite GTFS validation errors")

    # Patterns are compiled once and shared by every trip
    stops = reader.stop_lookup()
    patterns = load_patterns(patterns_path, stops)

    # Transform
    route_directions = split_routes(reader.build_raw_trips(), patterns, label_cleaner)

    # Write outputs
    output_dir = Path(output_path)
    files_written = write_json_files(output_dir, route_directions, stops, config.debug_json)

    checksums = {}
    for filename, filepath in files_written.items():
        with open(filepath, "rb") as f:
            checksums[filename] = hashlib.sha256(f.read()).hexdigest()

    stats = {
        "routes": len({rd.route_id for rd in route_directions}),
        "route_directions": len(route_directions),
        "patterns": len(patterns),
        "trips": sum(len(rd.trips) for rd in route_directions),
        "stops": sum(len(rd.stop_ids) for rd in route_directions),
    }

    manifest = Manifest(
        schema_version=SCHEMA_VERSION,
        tool_version=VERSION,
        created_at_iso=start_time.isoformat(),
        inputs={"gtfs_path": input_path, "patterns_path": patterns_path},
        outputs=checksums,
        stats=stats,
        build={
            "python": platform.python_version(),
            "platform": platform.platform(),
        },
    )

    manifest_path = output_dir / "manifest.json"
    with open(manifest_path, "w", encoding="utf-8") as f:
        json.dump(
            {
                "schema_version": manifest.schema_version,
                "tool_version": manifest.tool_version,
                "created_at": manifest.created_at_iso,
                "inputs": manifest.inputs,
                "outputs": manifest.outputs,
                "stats": manifest.stats,
                "build": manifest.build,
            },
            f,
            indent=2,
            sort_keys=True,
        )

    logger.info(f"Wrote manifest to {manifest_path}")

    elapsed = (datetime.now(UTC) - start_time).total_seconds()
    logger.info(f"Split completed in {elapsed:.2f}s")

    return manifest


def check_patterns(patterns_path: str, input_path: str | None = None) -> ValidationReport:
    """
    Compile a pattern file without splitting anything.

    Args:
        patterns_path: Path to the JSON route pattern file
        input_path: Optional GTFS directory; when given, unknown stop ids are errors

    Returns:
        ValidationReport with results
    """
    logger.info(f"Checking patterns: {patterns_path}")

    stops = None
    if input_path is not None:
        reader = GTFSReader(input_path)
        reader.read_stops()
        stops = reader.stop_lookup()

    try:
        patterns = load_patterns(patterns_path, stops)
    except InvalidPatternError as e:
        logger.error(f"Pattern check failed: {e}")
        return ValidationReport(valid=False, errors=[str(e)])

    warnings = []
    for route_id, compiled in patterns.items():
        for direction_id in (0, 1):
            if compiled.is_empty(direction_id):
                warnings.append(
                    f"Route {route_id} direction {direction_id} has no stops, "
                    f"it takes the trips the other direction does not match"
                )

    stats = {
        "routes": len(patterns),
        "shared_ambiguous_stops": sum(len(c.shared_ambiguous) for c in patterns.values()),
    }
    logger.info("Pattern check passed")
    return ValidationReport(valid=True, warnings=warnings, stats=stats)
