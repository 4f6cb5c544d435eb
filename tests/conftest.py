"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from tcat_api.main import create_app
from tcat_api.models import Alert, BusStop, RealtimeEntity, RouteInfo
from tcat_api.services.snapshot.store import SnapshotStore

from .fixtures.mystop_fixture import alert_record, stop_record


def sample_routes() -> list[RouteInfo]:
    return [
        RouteInfo(
            agency_id="TCAT",
            route_id="10",
            route_long_name="Cornell - Commons - Downtown",
            route_short_name="10",
            route_type="3",
        ),
        RouteInfo(
            agency_id="TCAT",
            route_id="30",
            route_long_name="Ithaca Mall - Cornell",
            route_short_name="30",
            route_type="3",
        ),
    ]


def sample_realtime() -> dict[str, RealtimeEntity]:
    return {
        "1001": RealtimeEntity(route_id="10", stop_delays={"1350": 30}, vehicle_id="1702"),
    }


async def populate(store: SnapshotStore) -> SnapshotStore:
    """Commit one sample value into every bin."""
    await store.alerts.replace([Alert.model_validate(alert_record())])
    await store.routes.replace(sample_routes())
    await store.realtime.replace(sample_realtime())
    await store.stops.replace([BusStop.model_validate(stop_record())])
    return store


@pytest.fixture
async def store() -> SnapshotStore:
    """A store with every bin populated."""
    return await populate(SnapshotStore())


@pytest.fixture
def app(store: SnapshotStore) -> Any:
    """App with a populated store; the lifespan is not run under ASGITransport."""
    application = create_app()
    application.state.store = store
    return application


@pytest.fixture
async def client(app: Any) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
