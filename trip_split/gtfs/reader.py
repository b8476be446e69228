"""GTFS data reader and normalizer."""

import csv
import logging
from pathlib import Path

from trip_split.gtfs.models import RawTrip, Route, Stop, StopTime, StopVisit, Trip

logger = logging.getLogger(__name__)


class GTFSReader:
    """Read the GTFS files needed for direction splitting from a directory."""

    def __init__(self, gtfs_path: str) -> None:
        """Initialize reader with GTFS directory path."""
        self.gtfs_path = Path(gtfs_path)
        if not self.gtfs_path.is_dir():
            raise ValueError(f"GTFS path not found or not a directory: {gtfs_path}")

        self.stops: list[Stop] = []
        self.routes: list[Route] = []
        self.trips: list[Trip] = []
        self.stop_times: list[StopTime] = []

    def read_all(self) -> None:
        """Read all GTFS files."""
        logger.info(f"Reading GTFS data from {self.gtfs_path}")
        self.read_stops()
        self.read_routes()
        self.read_trips()
        self.read_stop_times()
        logger.info(
            f"Loaded {len(self.stops)} stops, {len(self.routes)} routes, "
            f"{len(self.trips)} trips, {len(self.stop_times)} stop_times"
        )

    def _require(self, filename: str) -> Path:
        file_path = self.gtfs_path / filename
        if not file_path.exists():
            raise FileNotFoundError(f"Required file not found: {file_path}")
        return file_path

    def read_stops(self) -> None:
        """Read stops.txt."""
        with open(self._require("stops.txt"), encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            for row in reader:
                self.stops.append(
                    Stop(
                        stop_id=row["stop_id"],
                        name=row.get("stop_name", ""),
                    )
                )
        self.stops.sort(key=lambda stop: stop.stop_id)

    def read_routes(self) -> None:
        """Read routes.txt."""
        with open(self._require("routes.txt"), encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            for row in reader:
                self.routes.append(
                    Route(
                        route_id=row["route_id"],
                        route_short_name=row.get("route_short_name", ""),
                        route_long_name=row.get("route_long_name", ""),
                        route_type=int(row.get("route_type") or 3),
                    )
                )
        self.routes.sort(key=lambda route: route.route_id)

    def read_trips(self) -> None:
        """Read trips.txt, keeping a blank direction_id as None."""
        with open(self._require("trips.txt"), encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            for row in reader:
                direction = (row.get("direction_id") or "").strip()
                self.trips.append(
                    Trip(
                        trip_id=row["trip_id"],
                        route_id=row["route_id"],
                        service_id=row["service_id"],
                        trip_headsign=row.get("trip_headsign", "") or "",
                        direction_id=int(direction) if direction else None,
                    )
                )
        self.trips.sort(key=lambda trip: trip.trip_id)

    def read_stop_times(self) -> None:
        """Read stop_times.txt, ordered by trip and stop_sequence."""
        stop_times_raw: list[StopTime] = []
        with open(self._require("stop_times.txt"), encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            for row in reader:
                stop_times_raw.append(
                    StopTime(
                        trip_id=row["trip_id"],
                        stop_id=row["stop_id"],
                        stop_sequence=int(row["stop_sequence"]),
                    )
                )

        stop_times_raw.sort(key=lambda st: (st.trip_id, st.stop_sequence))
        self.stop_times = stop_times_raw

    def stop_lookup(self) -> dict[str, Stop]:
        """Stop id -> Stop."""
        return {stop.stop_id: stop for stop in self.stops}

    def build_raw_trips(self) -> dict[str, list[RawTrip]]:
        """Group stop visits into RawTrips, keyed by route id and sorted by trip id."""
        visits_by_trip: dict[str, list[StopVisit]] = {}
        for st in self.stop_times:
            if st.trip_id not in visits_by_trip:
                visits_by_trip[st.trip_id] = []
            visits_by_trip[st.trip_id].append(StopVisit(st.stop_id, st.stop_sequence))

        raw_trips: dict[str, list[RawTrip]] = {}
        for trip in self.trips:
            visits = visits_by_trip.get(trip.trip_id)
            if not visits:
                logger.warning(f"Trip {trip.trip_id} has no stop times, skipping")
                continue
            if trip.route_id not in raw_trips:
                raw_trips[trip.route_id] = []
            raw_trips[trip.route_id].append(
                RawTrip(
                    trip_id=trip.trip_id,
                    route_id=trip.route_id,
                    service_id=trip.service_id,
                    direction_id=trip.direction_id,
                    headsign=trip.trip_headsign,
                    visits=tuple(visits),
                )
            )
        return raw_trips
