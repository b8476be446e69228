"""Trip split - assign GTFS trips to canonical route directions."""

from trip_split.api import check_patterns, split
from trip_split.version import SCHEMA_VERSION, VERSION

__version__ = VERSION
__all__ = ["SCHEMA_VERSION", "VERSION", "check_patterns", "split"]
