"""Split raw trips into route directions and build their stop sequences."""

import logging
from typing import Mapping

from trip_split.gtfs.models import ClassifiedTrip, RawTrip, RouteDirectionData
from trip_split.patterns.classifier import (
    LabelCleaner,
    classify,
    classify_by_feed,
    merge_headsign,
)
from trip_split.patterns.descriptor import CompiledRoutePattern
from trip_split.patterns.ordering import merge_stop_sequences

logger = logging.getLogger(__name__)


def classify_route_trips(
    route_id: str,
    raw_trips: list[RawTrip],
    patterns: Mapping[str, CompiledRoutePattern],
    label_cleaner: LabelCleaner | None = None,
) -> list[ClassifiedTrip]:
    """Classify every trip of a route; the first unmatched trip aborts."""
    compiled = patterns.get(route_id)
    if compiled is None:
        logger.debug(f"Route {route_id} has no pattern, using feed directions")
        return [classify_by_feed(raw_trip, label_cleaner) for raw_trip in raw_trips]
    return [classify(compiled, raw_trip, label_cleaner) for raw_trip in raw_trips]


def build_route_directions(
    route_id: str,
    classified: list[ClassifiedTrip],
    compiled: CompiledRoutePattern | None,
) -> list[RouteDirectionData]:
    """Merge classified trips per direction into named, ordered stop lists."""
    by_direction: dict[int, list[ClassifiedTrip]] = {}
    for trip in classified:
        if trip.direction_id not in by_direction:
            by_direction[trip.direction_id] = []
        by_direction[trip.direction_id].append(trip)

    route_directions: list[RouteDirectionData] = []
    for direction_id, trips in sorted(by_direction.items()):
        trips.sort(key=lambda t: t.trip_id)

        name = trips[0].name
        for other in trips[1:]:
            name = merge_headsign(trips[0], other)

        stop_ids = merge_stop_sequences(
            compiled,
            direction_id,
            (
                [(visit.stop_id, visit.stop_sequence) for visit in trip.trip.visits]
                for trip in trips
            ),
        )
        route_directions.append(
            RouteDirectionData(
                route_id=route_id,
                direction_id=direction_id,
                name=name,
                stop_ids=stop_ids,
                trips=trips,
            )
        )
        logger.debug(
            f"Route {route_id} direction {direction_id} ({name!r}): "
            f"{len(trips)} trips, {len(stop_ids)} stops"
        )
    return route_directions


def split_routes(
    raw_trips_by_route: Mapping[str, list[RawTrip]],
    patterns: Mapping[str, CompiledRoutePattern],
    label_cleaner: LabelCleaner | None = None,
) -> list[RouteDirectionData]:
    """
    Classify all trips and build one RouteDirectionData per route direction.

    Args:
        raw_trips_by_route: route_id -> raw trips of that route
        patterns: Compiled patterns by route_id; routes without one use feed directions
        label_cleaner: Optional hook applied to feed headsigns

    Returns:
        Route directions sorted by (route_id, direction_id)
    """
    logger.info(f"Splitting trips of {len(raw_trips_by_route)} routes")

    unused = sorted(set(patterns) - set(raw_trips_by_route))
    if unused:
        logger.warning(f"Patterns declared for routes without trips: {unused}")

    result: list[RouteDirectionData] = []
    for route_id in sorted(raw_trips_by_route):
        classified = classify_route_trips(
            route_id, raw_trips_by_route[route_id], patterns, label_cleaner
        )
        result.extend(build_route_directions(route_id, classified, patterns.get(route_id)))

    total_trips = sum(len(rd.trips) for rd in result)
    logger.info(f"Split {total_trips} trips into {len(result)} route directions")
    return result
