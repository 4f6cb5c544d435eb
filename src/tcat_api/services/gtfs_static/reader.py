"""Static GTFS route table reader."""

from __future__ import annotations

import asyncio
import csv
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from tcat_api.exceptions import StaticTableError
from tcat_api.logging import get_logger
from tcat_api.models.gtfs import RouteInfo

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = get_logger(__name__)

ROUTE_COLUMNS = ("agency_id", "route_id", "route_long_name", "route_short_name", "route_type")


def parse_routes(rows: Iterable[dict[str, Any]]) -> tuple[list[RouteInfo], int]:
    """Validate route rows, dropping any that fail.

    Returns:
        Tuple of (routes, dropped_row_count).
    """
    routes: list[RouteInfo] = []
    dropped = 0
    for row in rows:
        # DictReader files surplus cells under a None key
        fields = {key: value for key, value in row.items() if key in ROUTE_COLUMNS}
        try:
            routes.append(RouteInfo.model_validate(fields))
        except ValidationError:
            dropped += 1
    return routes, dropped


def read_routes_file(path: str | Path) -> tuple[list[RouteInfo], int]:
    """Read ``routes.txt`` from disk.

    Raises:
        StaticTableError: If the file is missing, unreadable or has no header.
    """
    path = Path(path)
    try:
        with path.open(newline="", encoding="utf-8-sig") as fh:
            reader = csv.DictReader(fh)
            if reader.fieldnames is None:
                msg = f"Empty route table: {path}"
                raise StaticTableError(msg, source="routes")
            return parse_routes(reader)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        msg = f"Cannot read route table {path}: {exc}"
        raise StaticTableError(msg, source="routes") from exc


class StaticRoutesSource:
    """Serves the route descriptors of the local GTFS bundle."""

    name = "routes"

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    async def fetch(self, cycle_id: str = "") -> list[RouteInfo]:
        """Read the route table off the event loop.

        Raises:
            StaticTableError: If the table cannot be read at all.
        """
        routes, dropped = await asyncio.to_thread(read_routes_file, self._path)
        if dropped:
            logger.warning(
                "Dropped unparsable route rows",
                cycle_id=cycle_id,
                path=str(self._path),
                dropped=dropped,
            )
        logger.info("Route table loaded", cycle_id=cycle_id, routes=len(routes))
        return routes
