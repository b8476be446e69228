"""Compile and validate route pattern descriptors."""

import logging
from collections import defaultdict
from types import MappingProxyType
from typing import Iterable, Mapping

from trip_split.exceptions import InvalidPatternError
from trip_split.gtfs.models import Stop
from trip_split.patterns.descriptor import (
    CompiledRoutePattern,
    PatternDescriptor,
    StopAnnotation,
    freeze_positions,
)

logger = logging.getLogger(__name__)

_BRACKET_PASSTHROUGH = (StopAnnotation.DIVERGENT, StopAnnotation.SHARED_AMBIGUOUS)


def compile_pattern(
    descriptor_0: PatternDescriptor,
    descriptor_1: PatternDescriptor,
    stops: Mapping[str, Stop] | None = None,
) -> CompiledRoutePattern:
    """
    Validate both directions of a route and build its lookup indices.

    Args:
        descriptor_0: Descriptor for direction 0
        descriptor_1: Descriptor for direction 1
        stops: Optional stop lookup; every referenced stop must be in it

    Returns:
        CompiledRoutePattern shared by all trips of the route

    Raises:
        InvalidPatternError: if the descriptors are inconsistent
    """
    route_id = descriptor_0.route_id
    if descriptor_1.route_id != route_id:
        raise InvalidPatternError(
            f"Descriptors belong to different routes: {route_id} and {descriptor_1.route_id}"
        )
    if (descriptor_0.direction_id, descriptor_1.direction_id) != (0, 1):
        raise InvalidPatternError(
            f"Route {route_id}: expected directions 0 and 1, got "
            f"{descriptor_0.direction_id} and {descriptor_1.direction_id}"
        )

    descriptors = (descriptor_0, descriptor_1)
    for descriptor in descriptors:
        _check_duplicates(descriptor)
        if stops is not None:
            _check_known_stops(descriptor, stops)

    annotations = [
        {entry.stop_id: entry.annotation for entry in descriptor.stops}
        for descriptor in descriptors
    ]
    _check_overlap(route_id, annotations)

    shared_trunk = frozenset(
        stop_id
        for stop_id, annotation in annotations[0].items()
        if annotation is StopAnnotation.EQUAL and stop_id in annotations[1]
    )
    _check_trunk_symmetry(route_id, descriptors, shared_trunk)
    for descriptor in descriptors:
        _check_divergent_brackets(descriptor, shared_trunk)

    positions: dict[int, dict[str, int]] = {}
    divergent: dict[int, frozenset[str]] = {}
    divergent_adjacent: set[tuple[int, int]] = set()
    shared_ambiguous: set[str] = set()

    for descriptor in descriptors:
        direction_id = descriptor.direction_id
        index: dict[str, int] = {}
        for position, entry in enumerate(descriptor.stops):
            if entry.annotation is StopAnnotation.SHARED_AMBIGUOUS:
                shared_ambiguous.add(entry.stop_id)
                continue
            index[entry.stop_id] = position
            if entry.annotation is StopAnnotation.DIVERGENT:
                for neighbor in (position - 1, position + 1):
                    if 0 <= neighbor < len(descriptor.stops):
                        divergent_adjacent.add((direction_id, neighbor))
        positions[direction_id] = index
        divergent[direction_id] = frozenset(
            entry.stop_id
            for entry in descriptor.stops
            if entry.annotation is StopAnnotation.DIVERGENT
        )

    compiled = CompiledRoutePattern(
        route_id=route_id,
        descriptors=descriptors,
        positions=freeze_positions(positions),
        shared_ambiguous=frozenset(shared_ambiguous),
        divergent=MappingProxyType(divergent),
        divergent_adjacent=frozenset(divergent_adjacent),
        shared_trunk=shared_trunk,
    )

    logger.debug(
        f"Compiled route {route_id}: {len(positions[0])}/{len(positions[1])} unambiguous stops, "
        f"{len(shared_ambiguous)} shared-ambiguous, {len(shared_trunk)} trunk"
    )
    return compiled


def compile_patterns(
    descriptors: Iterable[PatternDescriptor],
    stops: Mapping[str, Stop] | None = None,
) -> dict[str, CompiledRoutePattern]:
    """Compile descriptors grouped by route; each route needs directions 0 and 1."""
    by_route: dict[str, dict[int, PatternDescriptor]] = defaultdict(dict)
    for descriptor in descriptors:
        if descriptor.direction_id in by_route[descriptor.route_id]:
            raise InvalidPatternError(
                f"Route {descriptor.route_id} declares direction "
                f"{descriptor.direction_id} more than once"
            )
        by_route[descriptor.route_id][descriptor.direction_id] = descriptor

    compiled: dict[str, CompiledRoutePattern] = {}
    for route_id, by_direction in sorted(by_route.items()):
        if set(by_direction) != {0, 1}:
            raise InvalidPatternError(
                f"Route {route_id} must declare directions 0 and 1, got {sorted(by_direction)}"
            )
        compiled[route_id] = compile_pattern(by_direction[0], by_direction[1], stops)

    logger.info(f"Compiled patterns for {len(compiled)} routes")
    return compiled


def _check_duplicates(descriptor: PatternDescriptor) -> None:
    seen: set[str] = set()
    for stop_id in descriptor.stop_ids:
        if stop_id in seen:
            raise InvalidPatternError(
                f"Route {descriptor.route_id} direction {descriptor.direction_id}: "
                f"stop {stop_id} listed more than once"
            )
        seen.add(stop_id)


def _check_known_stops(descriptor: PatternDescriptor, stops: Mapping[str, Stop]) -> None:
    for stop_id in descriptor.stop_ids:
        if stop_id not in stops:
            raise InvalidPatternError(
                f"Route {descriptor.route_id} direction {descriptor.direction_id}: "
                f"unknown stop {stop_id}"
            )


def _check_overlap(route_id: str, annotations: list[dict[str, StopAnnotation]]) -> None:
    """Stops used by both directions must carry the same explicit marker in both."""
    for stop_id in sorted(annotations[0].keys() & annotations[1].keys()):
        first, second = annotations[0][stop_id], annotations[1][stop_id]
        if first is StopAnnotation.PLAIN or second is StopAnnotation.PLAIN:
            raise InvalidPatternError(
                f"Route {route_id}: stop {stop_id} is used by both directions "
                f"without an overlap marker"
            )
        if first is not second:
            raise InvalidPatternError(
                f"Route {route_id}: stop {stop_id} is marked {first.value!r} in direction 0 "
                f"but {second.value!r} in direction 1"
            )


def _equal_runs(descriptor: PatternDescriptor) -> list[list[str]]:
    """Maximal contiguous runs of EQUAL entries."""
    runs: list[list[str]] = []
    current: list[str] = []
    for entry in descriptor.stops:
        if entry.annotation is StopAnnotation.EQUAL:
            current.append(entry.stop_id)
        elif current:
            runs.append(current)
            current = []
    if current:
        runs.append(current)
    return runs


def _check_trunk_symmetry(
    route_id: str,
    descriptors: tuple[PatternDescriptor, PatternDescriptor],
    shared_trunk: frozenset[str],
) -> None:
    """A shared run must appear verbatim (or mirrored) in the other direction."""
    other_runs = {
        direction_id: _equal_runs(descriptors[1 - direction_id]) for direction_id in (0, 1)
    }
    for direction_id in (0, 1):
        for run in _equal_runs(descriptors[direction_id]):
            if not shared_trunk.intersection(run):
                continue
            matching = [other for other in other_runs[direction_id] if run[0] in other]
            other = matching[0] if matching else []
            if other != run and other != run[::-1]:
                raise InvalidPatternError(
                    f"Route {route_id}: shared run {run} of direction {direction_id} "
                    f"does not match direction {1 - direction_id} run {other}"
                )


def _check_divergent_brackets(
    descriptor: PatternDescriptor, shared_trunk: frozenset[str]
) -> None:
    """Each divergent entry must sit next to the shared trunk, possibly via other markers."""
    entries = descriptor.stops
    for position, entry in enumerate(entries):
        if entry.annotation is not StopAnnotation.DIVERGENT:
            continue
        if _reaches_trunk(entries, position, -1, shared_trunk) or _reaches_trunk(
            entries, position, 1, shared_trunk
        ):
            continue
        raise InvalidPatternError(
            f"Route {descriptor.route_id} direction {descriptor.direction_id}: "
            f"divergent stop {entry.stop_id} does not bracket a shared segment"
        )


def _reaches_trunk(entries, position: int, step: int, shared_trunk: frozenset[str]) -> bool:
    index = position + step
    while 0 <= index < len(entries):
        entry = entries[index]
        if entry.annotation is StopAnnotation.EQUAL:
            return entry.stop_id in shared_trunk
        if entry.annotation not in _BRACKET_PASSTHROUGH:
            return False
        index += step
    return False
