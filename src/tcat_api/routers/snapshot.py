"""Read-only snapshot endpoints.

Endpoints
---------
GET /alerts: public service alerts
GET /gtfs: static route table
GET /rtf: real-time trip updates keyed by feed entity id
GET /stops: bus stops
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from tcat_api.services.snapshot.store import (
    BIN_ALERTS,
    BIN_REALTIME,
    BIN_ROUTES,
    BIN_STOPS,
    SnapshotStore,
)

router = APIRouter(tags=["snapshot"])


def get_store(request: Request) -> SnapshotStore:
    """The store created by the application lifespan."""
    store: SnapshotStore | None = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Snapshot store not initialized")
    return store


StoreDep = Annotated[SnapshotStore, Depends(get_store)]


async def _serve(store: SnapshotStore, name: str) -> Response:
    snapshot = await store.bin(name).read()
    if snapshot is None:
        raise HTTPException(status_code=503, detail=f"No {name} data available yet")
    return Response(content=snapshot.body, media_type="application/json")


@router.get("/alerts", summary="Public service alerts")
async def get_alerts(store: StoreDep) -> Response:
    return await _serve(store, BIN_ALERTS)


@router.get("/gtfs", summary="Static GTFS routes")
async def get_gtfs(store: StoreDep) -> Response:
    return await _serve(store, BIN_ROUTES)


@router.get("/rtf", summary="Real-time trip updates")
async def get_rtf(store: StoreDep) -> Response:
    return await _serve(store, BIN_REALTIME)


@router.get("/stops", summary="Bus stops")
async def get_stops(store: StoreDep) -> Response:
    return await _serve(store, BIN_STOPS)
