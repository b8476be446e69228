"""Tests for pattern descriptors and the pattern compiler."""

import dataclasses

import pytest

from conftest import pattern
from trip_split.exceptions import InvalidPatternError
from trip_split.gtfs.models import Stop
from trip_split.patterns.compiler import compile_pattern, compile_patterns
from trip_split.patterns.descriptor import CompiledRoutePattern, StopAnnotation


@pytest.mark.parametrize(
    ("marker", "expected"),
    [
        ("", StopAnnotation.PLAIN),
        (None, StopAnnotation.PLAIN),
        ("++", StopAnnotation.PLAIN),
        ("==", StopAnnotation.EQUAL),
        ("!=", StopAnnotation.DIVERGENT),
        ("<>", StopAnnotation.SHARED_AMBIGUOUS),
        ("!= <>", StopAnnotation.SHARED_AMBIGUOUS),
        ("== !=", StopAnnotation.DIVERGENT),
    ],
)
def test_annotation_from_marker(marker: str | None, expected: StopAnnotation) -> None:
    """Test inline markers map to annotations, strongest marker winning."""
    assert StopAnnotation.from_marker(marker) is expected


def test_annotation_unknown_marker() -> None:
    """Test unknown markers are rejected."""
    with pytest.raises(InvalidPatternError):
        StopAnnotation.from_marker("=>")


def test_compile_indices(branching_pattern: CompiledRoutePattern) -> None:
    """Test positions, shared-ambiguous and divergent indices."""
    assert dict(branching_pattern.positions[0]) == {
        "S0": 0,
        "E1": 1,
        "E2": 2,
        "D0": 4,
        "T0": 5,
    }
    assert dict(branching_pattern.positions[1]) == {
        "T1": 0,
        "D1": 1,
        "E2": 3,
        "E1": 4,
        "S1": 5,
    }
    assert branching_pattern.shared_ambiguous == frozenset({"X"})
    assert branching_pattern.shared_trunk == frozenset({"E1", "E2"})
    assert branching_pattern.is_divergent(0, "D0")
    assert not branching_pattern.is_divergent(1, "D0")
    assert branching_pattern.divergent_adjacent == frozenset({(0, 3), (0, 5), (1, 0), (1, 2)})


def test_shared_ambiguous_excluded_from_positions(
    branching_pattern: CompiledRoutePattern,
) -> None:
    """Test shared-ambiguous stops have no canonical position."""
    assert branching_pattern.position(0, "X") is None
    assert branching_pattern.position(1, "X") is None


def test_compiled_pattern_is_read_only(branching_pattern: CompiledRoutePattern) -> None:
    """Test the compiled structure cannot be mutated."""
    with pytest.raises(TypeError):
        branching_pattern.positions[0]["NEW"] = 9  # type: ignore[index]
    with pytest.raises(dataclasses.FrozenInstanceError):
        branching_pattern.route_id = "other"  # type: ignore[misc]


def test_trunk_symmetry(reversal_pattern: CompiledRoutePattern) -> None:
    """Test every shared stop of direction 0 mirrors one in direction 1."""
    trunk_0 = [
        entry.stop_id
        for entry in reversal_pattern.descriptor(0).stops
        if entry.annotation is StopAnnotation.EQUAL
    ]
    trunk_1 = [
        entry.stop_id
        for entry in reversal_pattern.descriptor(1).stops
        if entry.annotation is StopAnnotation.EQUAL
    ]
    assert trunk_0 == trunk_1[::-1]


def test_same_order_trunk_allowed() -> None:
    """Test a shared run traversed in the same order in both directions compiles."""
    compiled = compile_pattern(
        pattern("R1", 0, "A", "S0", "E1 ==", "E2 ==", "T0"),
        pattern("R1", 1, "B", "S1", "E1 ==", "E2 ==", "T1"),
    )
    assert compiled.shared_trunk == frozenset({"E1", "E2"})


def test_undeclared_overlap_rejected() -> None:
    """Test a stop in both directions must be marked."""
    with pytest.raises(InvalidPatternError, match="without an overlap marker"):
        compile_pattern(
            pattern("R1", 0, "A", "A", "B", "C"),
            pattern("R1", 1, "B", "C", "D"),
        )


def test_overlap_marker_mismatch_rejected() -> None:
    """Test a shared stop needs the same marker in both directions."""
    with pytest.raises(InvalidPatternError, match="marked"):
        compile_pattern(
            pattern("R1", 0, "A", "A", "B ==", "C"),
            pattern("R1", 1, "B", "D", "B <>", "E"),
        )


def test_trunk_mismatch_rejected() -> None:
    """Test shared runs must hold the same stops in the same or mirrored order."""
    with pytest.raises(InvalidPatternError, match="shared run"):
        compile_pattern(
            pattern("R1", 0, "A", "S0", "E1 ==", "E2 ==", "E3 ==", "T0"),
            pattern("R1", 1, "B", "T1", "E3 ==", "E1 ==", "E2 ==", "S1"),
        )


def test_trunk_partial_overlap_rejected() -> None:
    """Test a shared run cannot mix shared and single-direction stops."""
    with pytest.raises(InvalidPatternError, match="shared run"):
        compile_pattern(
            pattern("R1", 0, "A", "S0", "E1 ==", "E2 ==", "Q ==", "T0"),
            pattern("R1", 1, "B", "T1", "E2 ==", "E1 ==", "S1"),
        )


def test_divergent_without_bracket_rejected() -> None:
    """Test a divergent stop must sit next to the shared trunk."""
    with pytest.raises(InvalidPatternError, match="does not bracket"):
        compile_pattern(
            pattern("R1", 0, "A", "S0", "D0 !=", "M", "E1 ==", "T0"),
            pattern("R1", 1, "B", "T1", "E1 ==", "S1"),
        )


def test_divergent_next_to_unshared_equal_rejected() -> None:
    """Test the bracketing equal stop must belong to both directions."""
    with pytest.raises(InvalidPatternError, match="does not bracket"):
        compile_pattern(
            pattern("R1", 0, "A", "S0", "Q ==", "D0 !=", "T0"),
            pattern("R1", 1, "B", "T1", "S1"),
        )


def test_divergent_run_through_markers_allowed() -> None:
    """Test several divergent/shared-ambiguous stops may sit between trunk stops."""
    compiled = compile_pattern(
        pattern("R8", 0, "Valley", "L", "E1 ==", "D1 !=", "D2 !=", "X <>", "E2 ==", "U"),
        pattern("R8", 1, "Downtown", "U2", "E2 ==", "X <>", "E1 ==", "L2"),
    )
    assert compiled.divergent[0] == frozenset({"D1", "D2"})


def test_duplicate_stop_rejected() -> None:
    """Test a stop cannot be listed twice in one direction."""
    with pytest.raises(InvalidPatternError, match="more than once"):
        compile_pattern(
            pattern("R1", 0, "A", "A", "B", "A"),
            pattern("R1", 1, "B"),
        )


def test_unknown_stop_rejected() -> None:
    """Test descriptors referencing stops missing from the feed are rejected."""
    stops = {"A": Stop("A", "Stop A"), "B": Stop("B", "Stop B")}
    with pytest.raises(InvalidPatternError, match="unknown stop C"):
        compile_pattern(
            pattern("R1", 0, "A", "A", "B"),
            pattern("R1", 1, "B", "C"),
            stops,
        )


def test_wrong_directions_rejected() -> None:
    """Test descriptors must be directions 0 and 1 of one route."""
    with pytest.raises(InvalidPatternError):
        compile_pattern(pattern("R1", 1, "A", "A"), pattern("R1", 0, "B", "B"))
    with pytest.raises(InvalidPatternError):
        compile_pattern(pattern("R1", 0, "A", "A"), pattern("R2", 1, "B", "B"))


def test_empty_direction_allowed(complement_pattern: CompiledRoutePattern) -> None:
    """Test a direction without stops compiles."""
    assert complement_pattern.is_empty(0)
    assert not complement_pattern.is_empty(1)
    assert dict(complement_pattern.positions[0]) == {}


def test_compile_patterns_groups_routes() -> None:
    """Test compile_patterns compiles each route once."""
    compiled = compile_patterns(
        [
            pattern("R2", 1, "B", "Y"),
            pattern("R1", 0, "A", "A"),
            pattern("R2", 0, "A", "X"),
            pattern("R1", 1, "B", "B"),
        ]
    )
    assert sorted(compiled) == ["R1", "R2"]
    assert compiled["R2"].position(1, "Y") == 0


def test_compile_patterns_missing_direction() -> None:
    """Test a route must declare both directions."""
    with pytest.raises(InvalidPatternError, match="directions 0 and 1"):
        compile_patterns([pattern("R1", 0, "A", "A")])


def test_compile_patterns_duplicate_direction() -> None:
    """Test a route cannot declare the same direction twice."""
    with pytest.raises(InvalidPatternError, match="more than once"):
        compile_patterns([pattern("R1", 0, "A", "A"), pattern("R1", 0, "B", "B")])
