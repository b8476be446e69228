"""Pattern descriptors: authored canonical stop sequences per route direction."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from trip_split.exceptions import InvalidPatternError


class StopAnnotation(Enum):
    """Marker attached to a stop entry of a pattern descriptor."""

    PLAIN = ""
    EQUAL = "=="
    DIVERGENT = "!="
    SHARED_AMBIGUOUS = "<>"

    @classmethod
    def from_marker(cls, marker: str | None) -> "StopAnnotation":
        """
        Parse an inline marker such as ``"=="`` or ``"!= <>"``.

        Combined markers resolve to the strongest one: ``<>`` over ``!=`` over ``==``.
        ``++`` (an added stop) and empty text are plain entries.
        """
        tokens = (marker or "").split()
        for token in tokens:
            if token not in ("==", "!=", "<>", "++"):
                raise InvalidPatternError(f"Unknown stop marker {token!r} in {marker!r}")
        if "<>" in tokens:
            return cls.SHARED_AMBIGUOUS
        if "!=" in tokens:
            return cls.DIVERGENT
        if "==" in tokens:
            return cls.EQUAL
        return cls.PLAIN


@dataclass(frozen=True)
class PatternStop:
    """One entry of a canonical stop list."""

    stop_id: str
    annotation: StopAnnotation = StopAnnotation.PLAIN


@dataclass(frozen=True)
class PatternDescriptor:
    """Authored canonical stop sequence for one direction of a route."""

    route_id: str
    direction_id: int
    name: str
    stops: tuple[PatternStop, ...] = ()

    @property
    def stop_ids(self) -> list[str]:
        return [entry.stop_id for entry in self.stops]

    @property
    def is_empty(self) -> bool:
        return not self.stops


@dataclass(frozen=True)
class CompiledRoutePattern:
    """
    Validated pair of descriptors for a route, with read-only lookup indices.

    positions maps direction_id -> {stop_id: canonical position} and only holds
    unambiguous stops; shared-ambiguous stops live in shared_ambiguous.
    """

    route_id: str
    descriptors: tuple[PatternDescriptor, PatternDescriptor]
    positions: Mapping[int, Mapping[str, int]]
    shared_ambiguous: frozenset[str]
    divergent: Mapping[int, frozenset[str]]
    divergent_adjacent: frozenset[tuple[int, int]]
    shared_trunk: frozenset[str] = field(default_factory=frozenset)

    def descriptor(self, direction_id: int) -> PatternDescriptor:
        return self.descriptors[direction_id]

    def position(self, direction_id: int, stop_id: str) -> int | None:
        """Canonical position of an unambiguous stop in a direction, or None."""
        return self.positions.get(direction_id, {}).get(stop_id)

    def is_empty(self, direction_id: int) -> bool:
        return self.descriptors[direction_id].is_empty

    def is_divergent(self, direction_id: int, stop_id: str) -> bool:
        return stop_id in self.divergent[direction_id]

    def is_shared_ambiguous(self, stop_id: str) -> bool:
        return stop_id in self.shared_ambiguous


def freeze_positions(positions: dict[int, dict[str, int]]) -> Mapping[int, Mapping[str, int]]:
    """Wrap nested position dicts in read-only proxies."""
    return MappingProxyType(
        {direction_id: MappingProxyType(dict(index)) for direction_id, index in positions.items()}
    )
