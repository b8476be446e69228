"""Exceptions raised by the trip splitting core."""


class TripSplitError(Exception):
    """Base exception for trip-split."""


class InvalidPatternError(TripSplitError):
    """Raised when a pattern descriptor is inconsistent or references unknown stops."""


class UnmatchedTripError(TripSplitError):
    """Raised when a trip cannot be assigned to a direction."""

    def __init__(self, route_id: str, trip_id: str, reason: str) -> None:
        self.route_id = route_id
        self.trip_id = trip_id
        self.reason = reason
        super().__init__(f"Route {route_id}: unexpected trip {trip_id} ({reason})")


class AmbiguousMergeError(TripSplitError):
    """Raised when two classified trips merged as one direction disagree."""

    def __init__(self, first: object, second: object) -> None:
        self.first = first
        self.second = second
        super().__init__(f"Unexpected trips to merge: {first} & {second}")
