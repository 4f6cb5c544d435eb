"""Last-known-good cache of each source, one lock per bin."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter

from tcat_api.locks import ReadWriteLock
from tcat_api.models.alerts import Alert
from tcat_api.models.gtfs import BusStop, RouteInfo
from tcat_api.models.realtime import RealtimeEntity

T = TypeVar("T")

BIN_ALERTS = "alerts"
BIN_ROUTES = "routes"
BIN_REALTIME = "realtime"
BIN_STOPS = "stops"


@dataclass(frozen=True)
class BinSnapshot(Generic[T]):
    """A committed bin value together with its rendered JSON body."""

    value: T
    body: bytes
    updated_at: datetime


class SnapshotBin(Generic[T]):
    """One independently replaceable slot.

    The JSON body is rendered before the write lock is taken, so the
    lock is held only for the reference swap.
    """

    def __init__(self, name: str, adapter: TypeAdapter[T]) -> None:
        self.name = name
        self._adapter = adapter
        self._lock = ReadWriteLock()
        self._current: BinSnapshot[T] | None = None

    @property
    def lock(self) -> ReadWriteLock:
        return self._lock

    async def read(self) -> BinSnapshot[T] | None:
        """Return the committed snapshot, or None before the first commit."""
        async with self._lock.read():
            return self._current

    async def replace(self, value: T) -> BinSnapshot[T]:
        """Commit a new value, superseding the previous one."""
        snapshot = BinSnapshot(
            value=value,
            body=self._adapter.dump_json(value, by_alias=True),
            updated_at=datetime.now(timezone.utc),
        )
        async with self._lock.write():
            self._current = snapshot
        return snapshot

    def peek(self) -> BinSnapshot[T] | None:
        """Lock-free read for status reporting."""
        return self._current

    @property
    def populated(self) -> bool:
        return self._current is not None


class SnapshotStore:
    """The four bins served over HTTP.

    A failed refresh never touches a bin; each bin only ever moves from
    one complete value to the next.
    """

    def __init__(self) -> None:
        self.alerts: SnapshotBin[list[Alert]] = SnapshotBin(
            BIN_ALERTS, TypeAdapter(list[Alert])
        )
        self.routes: SnapshotBin[list[RouteInfo]] = SnapshotBin(
            BIN_ROUTES, TypeAdapter(list[RouteInfo])
        )
        self.realtime: SnapshotBin[dict[str, RealtimeEntity]] = SnapshotBin(
            BIN_REALTIME, TypeAdapter(dict[str, RealtimeEntity])
        )
        self.stops: SnapshotBin[list[BusStop]] = SnapshotBin(
            BIN_STOPS, TypeAdapter(list[BusStop])
        )
        self._bins: dict[str, SnapshotBin[Any]] = {
            b.name: b for b in (self.alerts, self.routes, self.realtime, self.stops)
        }

    @property
    def names(self) -> list[str]:
        return list(self._bins)

    def bin(self, name: str) -> SnapshotBin[Any]:
        """Look up a bin by name.

        Raises:
            KeyError: If there is no such bin.
        """
        return self._bins[name]

    def missing_bins(self) -> list[str]:
        """Names of bins that have never been populated."""
        return [name for name, b in self._bins.items() if not b.populated]

    def status(self) -> dict[str, dict[str, Any]]:
        """Per-bin populated flag and last commit time."""
        status: dict[str, dict[str, Any]] = {}
        for name, b in self._bins.items():
            current = b.peek()
            status[name] = {
                "populated": current is not None,
                "updated_at": current.updated_at.isoformat() if current else None,
            }
        return status
