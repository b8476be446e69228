"""Stop ordering within a route direction."""

import logging
from enum import IntEnum
from typing import Iterable

from trip_split.patterns.descriptor import CompiledRoutePattern

logger = logging.getLogger(__name__)


class Order(IntEnum):
    """Relative order of two stops."""

    BEFORE = -1
    EQUAL = 0
    AFTER = 1


def _compare(a: int, b: int) -> Order:
    if a < b:
        return Order.BEFORE
    if a > b:
        return Order.AFTER
    return Order.EQUAL


def compare_order(
    compiled: CompiledRoutePattern | None,
    direction_id: int,
    stop_a: str,
    stop_b: str,
    feed_seq_a: int | None,
    feed_seq_b: int | None,
) -> Order:
    """
    Order two stops of a route direction.

    Canonical positions win over feed sequence numbers when both stops have one.
    Shared-ambiguous and unknown stops fall back to the feed sequence numbers;
    missing or equal numbers compare as EQUAL. Never raises.
    """
    if stop_a == stop_b:
        return Order.EQUAL

    if compiled is not None:
        position_a = compiled.position(direction_id, stop_a)
        position_b = compiled.position(direction_id, stop_b)
        if position_a is not None and position_b is not None:
            return _compare(position_a, position_b)

    if feed_seq_a is None or feed_seq_b is None:
        return Order.EQUAL
    return _compare(feed_seq_a, feed_seq_b)


def _dedupe(sequence: Iterable[tuple[str, int | None]]) -> list[tuple[str, int | None]]:
    seen: set[str] = set()
    result: list[tuple[str, int | None]] = []
    for stop_id, feed_seq in sequence:
        if stop_id in seen:
            continue
        seen.add(stop_id)
        result.append((stop_id, feed_seq))
    return result


def _merge_pair(
    compiled: CompiledRoutePattern | None,
    direction_id: int,
    merged: list[tuple[str, int | None]],
    incoming: list[tuple[str, int | None]],
) -> list[tuple[str, int | None]]:
    merged_ids = [stop_id for stop_id, _ in merged]
    incoming_ids = [stop_id for stop_id, _ in incoming]
    merged_index = {stop_id: i for i, stop_id in enumerate(merged_ids)}
    incoming_index = {stop_id: j for j, stop_id in enumerate(incoming_ids)}

    result: list[tuple[str, int | None]] = []
    emitted: set[str] = set()
    i = j = 0
    while i < len(merged) or j < len(incoming):
        if i < len(merged) and merged_ids[i] in emitted:
            i += 1
            continue
        if j < len(incoming) and incoming_ids[j] in emitted:
            j += 1
            continue
        if i >= len(merged):
            result.append(incoming[j])
            emitted.add(incoming_ids[j])
            j += 1
            continue
        if j >= len(incoming):
            result.append(merged[i])
            emitted.add(merged_ids[i])
            i += 1
            continue

        stop_a, seq_a = merged[i]
        stop_b, seq_b = incoming[j]
        if stop_a == stop_b:
            result.append(merged[i])
            emitted.add(stop_a)
            i += 1
            j += 1
            continue

        # a stop that comes later in the other list anchors the merge
        b_later_in_merged = merged_index.get(stop_b, -1) > i
        a_later_in_incoming = incoming_index.get(stop_a, -1) > j
        if b_later_in_merged and not a_later_in_incoming:
            take_merged = True
        elif a_later_in_incoming and not b_later_in_merged:
            take_merged = False
        else:
            take_merged = (
                compare_order(compiled, direction_id, stop_a, stop_b, seq_a, seq_b)
                is not Order.AFTER
            )

        if take_merged:
            result.append(merged[i])
            emitted.add(stop_a)
            i += 1
        else:
            result.append(incoming[j])
            emitted.add(stop_b)
            j += 1
    return result


def merge_stop_sequences(
    compiled: CompiledRoutePattern | None,
    direction_id: int,
    sequences: Iterable[Iterable[tuple[str, int | None]]],
) -> list[str]:
    """
    Merge the (stop_id, feed sequence) lists of a direction's trips into one stop list.

    Each list is deduplicated (first visit kept), then merged in the given order.
    The result holds every stop once and does not depend on anything but input order.
    """
    merged: list[tuple[str, int | None]] = []
    for sequence in sequences:
        merged = _merge_pair(compiled, direction_id, merged, _dedupe(sequence))
    logger.debug(f"Merged stop sequence for direction {direction_id}: {len(merged)} stops")
    return [stop_id for stop_id, _ in merged]
