"""Pytest configuration and fixtures."""

import shutil
from pathlib import Path

import pytest

from trip_split.gtfs.models import RawTrip, StopVisit
from trip_split.patterns.compiler import compile_pattern
from trip_split.patterns.descriptor import (
    CompiledRoutePattern,
    PatternDescriptor,
    PatternStop,
    StopAnnotation,
)

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def gtfs_juneau() -> Path:
    """Path to GTFS fixture with shared-trunk, complement and unpatterned routes."""
    return FIXTURES / "gtfs_juneau"


@pytest.fixture
def gtfs_edgecases() -> Path:
    """Path to edge cases GTFS fixture."""
    return FIXTURES / "gtfs_edgecases"


@pytest.fixture
def patterns_juneau() -> Path:
    """Path to the pattern file matching gtfs_juneau."""
    return FIXTURES / "patterns_juneau.json"


@pytest.fixture
def patterns_invalid() -> Path:
    """Path to a pattern file with undeclared overlap."""
    return FIXTURES / "patterns_invalid.json"


@pytest.fixture
def tmp_output(tmp_path: Path) -> Path:
    """Temporary output directory."""
    output_dir = tmp_path / "trip_split_data"
    output_dir.mkdir()
    yield output_dir
    # Cleanup
    if output_dir.exists():
        shutil.rmtree(output_dir)


def pattern(route_id: str, direction_id: int, name: str, *entries: str) -> PatternDescriptor:
    """Build a descriptor from "STOP" or "STOP mark" strings."""
    stops = []
    for entry in entries:
        stop_id, _, marker = entry.partition(" ")
        stops.append(PatternStop(stop_id, StopAnnotation.from_marker(marker)))
    return PatternDescriptor(route_id, direction_id, name, tuple(stops))


def raw_trip(
    stop_ids: list[str],
    trip_id: str = "T1",
    route_id: str = "R1",
    direction_id: int | None = None,
    headsign: str = "",
    sequences: list[int] | None = None,
) -> RawTrip:
    """Build a RawTrip visiting stop_ids with sequence numbers 1..n unless given."""
    if sequences is None:
        sequences = list(range(1, len(stop_ids) + 1))
    return RawTrip(
        trip_id=trip_id,
        route_id=route_id,
        service_id="WK",
        direction_id=direction_id,
        headsign=headsign,
        visits=tuple(StopVisit(s, q) for s, q in zip(stop_ids, sequences)),
    )


@pytest.fixture
def reversal_pattern() -> CompiledRoutePattern:
    """Direction 0 [A,B,C], direction 1 [C,B,A], all shared."""
    return compile_pattern(
        pattern("R1", 0, "South", "A ==", "B ==", "C =="),
        pattern("R1", 1, "North", "C ==", "B ==", "A =="),
    )


@pytest.fixture
def plain_pattern() -> CompiledRoutePattern:
    """Two directions without any overlap."""
    return compile_pattern(
        pattern("R1", 0, "East", "A", "B", "C", "D"),
        pattern("R1", 1, "West", "W", "X", "Y", "Z"),
    )


@pytest.fixture
def branching_pattern() -> CompiledRoutePattern:
    """Shared trunk E1-E2, shared-ambiguous X, divergent D0 / D1 on either side of X."""
    return compile_pattern(
        pattern("R1", 0, "Outbound", "S0", "E1 ==", "E2 ==", "X <>", "D0 !=", "T0"),
        pattern("R1", 1, "Inbound", "T1", "D1 !=", "X <>", "E2 ==", "E1 ==", "S1"),
    )


@pytest.fixture
def complement_pattern() -> CompiledRoutePattern:
    """Direction 0 declares no stops and takes what direction 1 does not match."""
    return compile_pattern(
        pattern("R7", 0, ""),
        pattern("R7", 1, "Downtown", "FRED", "SEW"),
    )
