"""Static GTFS route table."""

from tcat_api.services.gtfs_static.reader import (
    StaticRoutesSource,
    parse_routes,
    read_routes_file,
)

__all__ = [
    "StaticRoutesSource",
    "parse_routes",
    "read_routes_file",
]
