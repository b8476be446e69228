"""Trip classification against compiled route patterns."""

import bisect
import logging
from typing import Callable

from trip_split.exceptions import AmbiguousMergeError, UnmatchedTripError
from trip_split.gtfs.models import ClassifiedTrip, RawTrip
from trip_split.patterns.descriptor import CompiledRoutePattern

logger = logging.getLogger(__name__)

LabelCleaner = Callable[[str], str]

# Stops matched in canonical order before a direction is preferred over an empty sibling.
MIN_ORDERED_MATCH = 2


def match_count(compiled: CompiledRoutePattern, direction_id: int, stop_ids: list[str]) -> int:
    """
    Count the trip stops that follow the direction's canonical order.

    This is the length of the longest non-decreasing subsequence of canonical
    positions; stops without an unambiguous position are skipped.
    """
    positions = compiled.positions[direction_id]
    tails: list[int] = []
    for stop_id in stop_ids:
        position = positions.get(stop_id)
        if position is None:
            continue
        slot = bisect.bisect_right(tails, position)
        if slot == len(tails):
            tails.append(position)
        else:
            tails[slot] = position
    return len(tails)


def divergent_votes(compiled: CompiledRoutePattern, stop_ids: list[str]) -> set[int]:
    """Directions whose divergent stops sit right next to a shared-ambiguous stop of the trip."""
    votes: set[int] = set()
    for index, stop_id in enumerate(stop_ids):
        if not compiled.is_shared_ambiguous(stop_id):
            continue
        for neighbor in (index - 1, index + 1):
            if not 0 <= neighbor < len(stop_ids):
                continue
            for direction_id in (0, 1):
                if compiled.is_divergent(direction_id, stop_ids[neighbor]):
                    votes.add(direction_id)
    return votes


def classify(
    compiled: CompiledRoutePattern,
    raw_trip: RawTrip,
    label_cleaner: LabelCleaner | None = None,
) -> ClassifiedTrip:
    """
    Assign a raw trip to one direction of its compiled route pattern.

    Args:
        compiled: Compiled pattern of the trip's route
        raw_trip: Trip to classify
        label_cleaner: Optional hook applied to feed headsigns used as names

    Returns:
        ClassifiedTrip for the winning direction

    Raises:
        UnmatchedTripError: if no direction matches confidently
    """
    stop_ids = raw_trip.stop_ids
    counts = {
        direction_id: match_count(compiled, direction_id, stop_ids)
        for direction_id in (0, 1)
        if not compiled.is_empty(direction_id)
    }
    logger.debug(f"Route {compiled.route_id} trip {raw_trip.trip_id}: match counts {counts}")

    direction_id = _pick_direction(compiled, raw_trip, stop_ids, counts)
    return ClassifiedTrip(
        trip=raw_trip,
        direction_id=direction_id,
        name=_display_name(compiled.descriptor(direction_id).name, raw_trip, label_cleaner),
        match_count=counts.get(direction_id, 0),
    )


def _pick_direction(
    compiled: CompiledRoutePattern,
    raw_trip: RawTrip,
    stop_ids: list[str],
    counts: dict[int, int],
) -> int:
    if not counts:
        raise UnmatchedTripError(
            compiled.route_id, raw_trip.trip_id, "both directions have empty stop lists"
        )

    if len(counts) == 1:
        ((direction_id, count),) = counts.items()
        required = min(MIN_ORDERED_MATCH, len(compiled.positions[direction_id]))
        if count >= required and count > 0:
            return direction_id
        # complement of the declared direction
        return 1 - direction_id

    if counts[0] != counts[1]:
        return 0 if counts[0] > counts[1] else 1

    if counts[0] == 0:
        raise UnmatchedTripError(
            compiled.route_id, raw_trip.trip_id, "no stop matches either direction"
        )

    votes = divergent_votes(compiled, stop_ids)
    if len(votes) == 1:
        (direction_id,) = votes
        logger.debug(
            f"Route {compiled.route_id} trip {raw_trip.trip_id}: tie broken by divergent stop "
            f"for direction {direction_id}"
        )
        return direction_id

    if raw_trip.direction_id in (0, 1):
        logger.debug(
            f"Route {compiled.route_id} trip {raw_trip.trip_id}: tie broken by feed "
            f"direction {raw_trip.direction_id}"
        )
        return raw_trip.direction_id

    raise UnmatchedTripError(
        compiled.route_id,
        raw_trip.trip_id,
        f"tied match count {counts[0]} with no divergent context and no feed direction",
    )


def _display_name(declared: str, raw_trip: RawTrip, label_cleaner: LabelCleaner | None) -> str:
    if declared:
        return declared
    headsign = raw_trip.headsign
    return label_cleaner(headsign) if label_cleaner else headsign


def classify_by_feed(raw_trip: RawTrip, label_cleaner: LabelCleaner | None = None) -> ClassifiedTrip:
    """Classify a trip of a route without authored pattern, trusting the feed direction."""
    if raw_trip.direction_id not in (0, 1):
        raise UnmatchedTripError(
            raw_trip.route_id,
            raw_trip.trip_id,
            f"feed direction_id {raw_trip.direction_id} is not 0 or 1",
        )
    return ClassifiedTrip(
        trip=raw_trip,
        direction_id=raw_trip.direction_id,
        name=_display_name("", raw_trip, label_cleaner),
    )


def merge_headsign(first: ClassifiedTrip, second: ClassifiedTrip) -> str:
    """Return the shared name of two trips grouped as one direction, or fail loudly."""
    if (
        first.route_id != second.route_id
        or first.direction_id != second.direction_id
        or first.name != second.name
    ):
        raise AmbiguousMergeError(first, second)
    return first.name
