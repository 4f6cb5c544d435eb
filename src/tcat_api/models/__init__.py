"""Pydantic models for upstream records and served snapshots."""

from tcat_api.models.alerts import Alert, ChannelMessage
from tcat_api.models.gtfs import BusStop, RouteInfo
from tcat_api.models.realtime import RealtimeEntity, RealtimeSnapshot
from tcat_api.models.token import Token

__all__ = [
    "Alert",
    "BusStop",
    "ChannelMessage",
    "RealtimeEntity",
    "RealtimeSnapshot",
    "RouteInfo",
    "Token",
]
