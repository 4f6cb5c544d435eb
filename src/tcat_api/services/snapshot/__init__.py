"""In-memory snapshot cache."""

from tcat_api.services.snapshot.store import (
    BIN_ALERTS,
    BIN_REALTIME,
    BIN_ROUTES,
    BIN_STOPS,
    BinSnapshot,
    SnapshotBin,
    SnapshotStore,
)

__all__ = [
    "BIN_ALERTS",
    "BIN_REALTIME",
    "BIN_ROUTES",
    "BIN_STOPS",
    "BinSnapshot",
    "SnapshotBin",
    "SnapshotStore",
]
