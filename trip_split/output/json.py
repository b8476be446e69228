"""JSON output."""

import json
import logging
from pathlib import Path

from trip_split.gtfs.models import RouteDirectionData, Stop

logger = logging.getLogger(__name__)


def write_json_files(
    output_path: Path,
    route_directions: list[RouteDirectionData],
    stops: dict[str, Stop],
    debug_json: bool = False,
) -> dict[str, str]:
    """Write route_directions.json, plus trips.json with per-trip detail when debug_json is set."""
    logger.info(f"Writing JSON files to {output_path}")

    output_path.mkdir(parents=True, exist_ok=True)

    files_written = {}

    directions_data = []
    for rd in route_directions:
        directions_data.append(
            {
                "route_id": rd.route_id,
                "direction_id": rd.direction_id,
                "name": rd.name,
                "stops": [
                    {
                        "stop_id": stop_id,
                        "name": stops[stop_id].name if stop_id in stops else "",
                    }
                    for stop_id in rd.stop_ids
                ],
                "trip_ids": [trip.trip_id for trip in rd.trips],
            }
        )

    directions_path = output_path / "route_directions.json"
    with open(directions_path, "w", encoding="utf-8") as f:
        json.dump(directions_data, f, indent=2, sort_keys=True)
    files_written["route_directions.json"] = str(directions_path)
    logger.info(f"Wrote {directions_path}")

    if debug_json:
        trips_data = []
        for rd in route_directions:
            for trip in rd.trips:
                trips_data.append(
                    {
                        "trip_id": trip.trip_id,
                        "route_id": rd.route_id,
                        "service_id": trip.trip.service_id,
                        "feed_direction_id": trip.trip.direction_id,
                        "direction_id": trip.direction_id,
                        "name": trip.name,
                        "match_count": trip.match_count,
                        "stop_ids": trip.trip.stop_ids,
                    }
                )

        trips_path = output_path / "trips.json"
        with open(trips_path, "w", encoding="utf-8") as f:
            json.dump(trips_data, f, indent=2, sort_keys=True)
        files_written["trips.json"] = str(trips_path)
        logger.info(f"Wrote {trips_path}")

    return files_written
