"""GTFS data validator."""

import logging

from trip_split.gtfs.models import StopTime, ValidationReport
from trip_split.gtfs.reader import GTFSReader

logger = logging.getLogger(__name__)


class GTFSValidator:
    """Validate GTFS data for consistency before trips are split."""

    def __init__(self, reader: GTFSReader) -> None:
        """Initialize validator with GTFS reader."""
        self.reader = reader
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def validate(self) -> ValidationReport:
        """Run all validation checks."""
        logger.info("Validating GTFS data")

        self._validate_stops()
        self._validate_routes()
        self._validate_trips()
        self._validate_stop_times()

        valid = len(self.errors) == 0

        stats = {
            "stops": len(self.reader.stops),
            "routes": len(self.reader.routes),
            "trips": len(self.reader.trips),
            "stop_times": len(self.reader.stop_times),
        }

        report = ValidationReport(
            valid=valid,
            errors=self.errors.copy(),
            warnings=self.warnings.copy(),
            stats=stats,
        )

        if not valid:
            logger.error(f"Validation failed with {len(self.errors)} errors")
        elif self.warnings:
            logger.warning(f"Validation passed with {len(self.warnings)} warnings")
        else:
            logger.info("Validation passed")

        return report

    def _validate_stops(self) -> None:
        """Warn about unnamed stops."""
        for stop in self.reader.stops:
            if not stop.name:
                self.warnings.append(f"Stop {stop.stop_id} has empty name")

    def _validate_routes(self) -> None:
        """Validate routes."""
        if not self.reader.routes:
            self.errors.append("No routes found in GTFS data")

    def _validate_trips(self) -> None:
        """Validate trips reference valid routes and carry usable directions."""
        route_ids = {route.route_id for route in self.reader.routes}

        for trip in self.reader.trips:
            if trip.route_id not in route_ids:
                self.errors.append(
                    f"Trip {trip.trip_id} references non-existent route {trip.route_id}"
                )
            if trip.direction_id is not None and trip.direction_id not in (0, 1):
                self.warnings.append(
                    f"Trip {trip.trip_id} has unexpected direction_id {trip.direction_id}"
                )
            if not trip.trip_headsign:
                self.warnings.append(f"Trip {trip.trip_id} has no headsign")

    def _validate_stop_times(self) -> None:
        """Validate stop_times reference valid stops/trips and have distinct sequences."""
        stop_ids = {stop.stop_id for stop in self.reader.stops}
        trip_ids = {trip.trip_id for trip in self.reader.trips}

        # Group by trip
        trip_stop_times: dict[str, list[StopTime]] = {}
        for st in self.reader.stop_times:
            if st.trip_id not in trip_stop_times:
                trip_stop_times[st.trip_id] = []
            trip_stop_times[st.trip_id].append(st)

        for trip_id in sorted(trip_ids - trip_stop_times.keys()):
            self.errors.append(f"Trip {trip_id} has no stop times")

        for trip_id, stop_times in trip_stop_times.items():
            if trip_id not in trip_ids:
                self.errors.append(f"Stop times reference non-existent trip {trip_id}")
                continue

            sequences = [st.stop_sequence for st in stop_times]
            if len(set(sequences)) != len(sequences):
                self.errors.append(
                    f"Trip {trip_id} has duplicate stop_sequence values: {sequences}"
                )

            for st in stop_times:
                if st.stop_id not in stop_ids:
                    self.errors.append(
                        f"Stop time for trip {trip_id} references non-existent stop {st.stop_id}"
                    )
