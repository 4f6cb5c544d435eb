"""Bus stop list source."""

from __future__ import annotations

from pydantic import TypeAdapter

from tcat_api.models.gtfs import BusStop
from tcat_api.services.mystop.base import BearerJsonSource


class StopsSource(BearerJsonSource[BusStop]):
    """``Stops/GetAllStops``."""

    name = "stops"
    adapter = TypeAdapter(list[BusStop])
