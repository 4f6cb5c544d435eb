"""Public service alerts source."""

from __future__ import annotations

from pydantic import TypeAdapter

from tcat_api.models.alerts import Alert
from tcat_api.services.mystop.base import BearerJsonSource


class AlertsSource(BearerJsonSource[Alert]):
    """``PublicMessages/GetAllMessages``; the gateway caches it unless told not to."""

    name = "alerts"
    adapter = TypeAdapter(list[Alert])
    extra_headers = {"Cache-Control": "no-cache"}
