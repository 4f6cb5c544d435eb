"""Normalized GTFS-RT trip update records."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RealtimeEntity(BaseModel):
    """Trip update of one feed entity, reduced to per-stop arrival delays.

    Serialized on ``/rtf`` as ``{routeId, stopUpdates, vehicleId}``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    route_id: str = Field(serialization_alias="routeId")
    stop_delays: dict[str, int] = Field(default_factory=dict, serialization_alias="stopUpdates")
    vehicle_id: Optional[str] = Field(default=None, serialization_alias="vehicleId")


# entity id -> trip update
RealtimeSnapshot = dict[str, RealtimeEntity]
