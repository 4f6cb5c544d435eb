"""Static route and stop records."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field

BUS_STOP_TYPE = "busStop"


class RouteInfo(BaseModel):
    """One row of the static ``routes.txt`` table, served on ``/gtfs``."""

    model_config = ConfigDict(str_strip_whitespace=True)

    agency_id: str
    route_id: str
    route_long_name: str
    route_short_name: str
    route_type: str


class BusStop(BaseModel):
    """One stop from the MyStop stops endpoint, served on ``/stops``.

    ``type`` is never read from the upstream payload; every stop is
    written out as a bus stop.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(validation_alias="Name")
    lat: float = Field(validation_alias="Latitude")
    long: float = Field(validation_alias="Longitude")

    @computed_field(alias="type")  # type: ignore[prop-decorator]
    @property
    def stop_type(self) -> str:
        return BUS_STOP_TYPE
