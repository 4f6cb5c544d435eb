"""Sources backed by the MyStop REST gateway."""

from tcat_api.services.mystop.alerts import AlertsSource
from tcat_api.services.mystop.base import BearerJsonSource, parse_json_array
from tcat_api.services.mystop.stops import StopsSource

__all__ = [
    "AlertsSource",
    "BearerJsonSource",
    "StopsSource",
    "parse_json_array",
]
