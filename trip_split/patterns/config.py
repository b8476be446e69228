"""Load authored route patterns from a JSON configuration file."""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from trip_split.exceptions import InvalidPatternError
from trip_split.gtfs.models import Stop
from trip_split.patterns.compiler import compile_patterns
from trip_split.patterns.descriptor import (
    CompiledRoutePattern,
    PatternDescriptor,
    PatternStop,
    StopAnnotation,
)

logger = logging.getLogger(__name__)


def parse_descriptors(data: dict[str, Any]) -> list[PatternDescriptor]:
    """
    Build descriptors from the decoded configuration document.

    Expected layout::

        {"routes": {"<route_id>": {"directions": [
            {"direction_id": 0, "name": "Douglas",
             "stops": ["811771", {"stop_id": "811789", "mark": "=="}]},
            ...]}}}
    """
    routes = data.get("routes") if isinstance(data, dict) else None
    if not isinstance(routes, dict):
        raise InvalidPatternError("Pattern configuration must contain a 'routes' object")

    descriptors: list[PatternDescriptor] = []
    for route_id, route_data in routes.items():
        directions = route_data.get("directions") if isinstance(route_data, dict) else None
        if not isinstance(directions, list):
            raise InvalidPatternError(f"Route {route_id}: 'directions' must be a list")
        for direction in directions:
            descriptors.append(_parse_direction(str(route_id), direction))
    return descriptors


def _parse_direction(route_id: str, direction: Any) -> PatternDescriptor:
    if not isinstance(direction, dict) or "direction_id" not in direction:
        raise InvalidPatternError(f"Route {route_id}: direction entry needs a 'direction_id'")

    direction_id = direction["direction_id"]
    if isinstance(direction_id, bool) or not isinstance(direction_id, int):
        raise InvalidPatternError(f"Route {route_id}: invalid direction_id {direction_id!r}")
    if direction_id not in (0, 1):
        raise InvalidPatternError(f"Route {route_id}: direction_id must be 0 or 1, got {direction_id}")

    entries = direction.get("stops", [])
    if not isinstance(entries, list):
        raise InvalidPatternError(f"Route {route_id} direction {direction_id}: 'stops' must be a list")

    stops: list[PatternStop] = []
    for entry in entries:
        if isinstance(entry, str):
            stops.append(PatternStop(stop_id=entry))
        elif isinstance(entry, dict) and "stop_id" in entry and _is_marker(entry.get("mark")):
            stops.append(
                PatternStop(
                    stop_id=str(entry["stop_id"]),
                    annotation=StopAnnotation.from_marker(entry.get("mark")),
                )
            )
        else:
            raise InvalidPatternError(f"Route {route_id}: invalid stop entry {entry!r}")

    return PatternDescriptor(
        route_id=route_id,
        direction_id=direction_id,
        name=direction.get("name", "") or "",
        stops=tuple(stops),
    )


def _is_marker(mark: Any) -> bool:
    return mark is None or isinstance(mark, str)


def load_patterns(
    patterns_path: str | Path,
    stops: Mapping[str, Stop] | None = None,
) -> Mapping[str, CompiledRoutePattern]:
    """
    Load and compile the pattern configuration file.

    Args:
        patterns_path: Path to the JSON pattern file
        stops: Optional stop lookup used to reject unknown stop ids

    Returns:
        Read-only mapping of route_id -> CompiledRoutePattern
    """
    path = Path(patterns_path)
    logger.info(f"Loading route patterns from {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidPatternError(f"Pattern file {path} is not valid JSON: {e}") from e

    compiled = compile_patterns(parse_descriptors(data), stops)
    return MappingProxyType(compiled)
