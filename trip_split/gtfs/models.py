"""Data models for GTFS and internal representations."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Stop:
    """GTFS stop."""

    stop_id: str
    name: str


@dataclass(frozen=True)
class Route:
    """GTFS route."""

    route_id: str
    route_short_name: str
    route_long_name: str
    route_type: int


@dataclass(frozen=True)
class Trip:
    """GTFS trip."""

    trip_id: str
    route_id: str
    service_id: str
    trip_headsign: str = ""
    direction_id: int | None = None


@dataclass(frozen=True)
class StopTime:
    """GTFS stop time, reduced to what direction splitting needs."""

    trip_id: str
    stop_id: str
    stop_sequence: int


@dataclass(frozen=True)
class StopVisit:
    """One stop visited by a raw trip, with its feed-supplied sequence number."""

    stop_id: str
    stop_sequence: int


@dataclass(frozen=True)
class RawTrip:
    """Trip as recorded by the feed: ordered stop visits and declared direction."""

    trip_id: str
    route_id: str
    service_id: str
    direction_id: int | None
    headsign: str
    visits: tuple[StopVisit, ...]

    @property
    def stop_ids(self) -> list[str]:
        return [visit.stop_id for visit in self.visits]


@dataclass(frozen=True)
class ClassifiedTrip:
    """Raw trip assigned to one direction of its route."""

    trip: RawTrip
    direction_id: int
    name: str
    match_count: int = 0

    @property
    def route_id(self) -> str:
        return self.trip.route_id

    @property
    def trip_id(self) -> str:
        return self.trip.trip_id

    def __str__(self) -> str:
        return f"{self.route_id}:{self.direction_id}:{self.trip_id} ({self.name!r})"


@dataclass
class RouteDirectionData:
    """Merged output for one route direction: display name, stop list and trips."""

    route_id: str
    direction_id: int
    name: str
    stop_ids: list[str]
    trips: list[ClassifiedTrip] = field(default_factory=list)


@dataclass
class Manifest:
    """Build manifest with metadata and checksums."""

    schema_version: int
    tool_version: str
    created_at_iso: str
    inputs: dict[str, Any]
    outputs: dict[str, str]  # filename -> sha256
    stats: dict[str, int]
    build: dict[str, str]


@dataclass
class ValidationReport:
    """Report from validation process."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)


@dataclass
class SplitConfig:
    """Configuration for a split run."""

    input_path: str
    patterns_path: str
    output_path: str
    strict_feed: bool = True  # abort when the feed validator reports errors
    debug_json: bool = False
