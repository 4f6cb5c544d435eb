"""Refresh cycle orchestration: fan out to every source, commit as each lands."""

from __future__ import annotations

import asyncio
import time
import uuid
from contextlib import suppress
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Protocol

from tcat_api.exceptions import SourceError, StartupError
from tcat_api.logging import get_logger

if TYPE_CHECKING:
    from tcat_api.services.snapshot.store import SnapshotStore

logger = get_logger(__name__)

DEFAULT_INTERVAL_SEC = 60.0


class Source(Protocol):
    """Anything that can produce one bin value per call."""

    name: str

    async def fetch(self, cycle_id: str = "") -> Any: ...


class UpdateCoordinator:
    """Refreshes every snapshot bin on a fixed period.

    Each cycle starts all sources at once and commits each result into
    its bin as soon as that source finishes. A failing source leaves its
    bin untouched. At most one cycle runs at a time: a tick that comes
    due while a cycle is still in flight is skipped.

    Usage:
        coordinator = UpdateCoordinator(store, sources, interval_sec=60)
        await coordinator.initialize()   # first cycle, fatal if a bin stays empty
        await coordinator.start()        # launches background task
        await coordinator.stop()         # cancels background task
    """

    def __init__(
        self,
        store: SnapshotStore,
        sources: list[Source],
        interval_sec: float = DEFAULT_INTERVAL_SEC,
    ) -> None:
        for source in sources:
            store.bin(source.name)
        self._store = store
        self._sources = list(sources)
        self._interval = interval_sec

        self._cycle_lock = asyncio.Lock()
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._cycle_count = 0
        self._skipped_ticks = 0
        self._last_cycle_at: datetime | None = None
        self._last_failures: dict[str, str] = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_cycling(self) -> bool:
        return self._cycle_lock.locked()

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    @property
    def skipped_ticks(self) -> int:
        return self._skipped_ticks

    @property
    def last_cycle_at(self) -> datetime | None:
        return self._last_cycle_at

    async def initialize(self) -> dict[str, Any]:
        """Run the startup cycle.

        Raises:
            StartupError: If any bin is still empty after the cycle.
        """
        report = await self.run_once()
        missing = self._store.missing_bins()
        if report is None or missing:
            errors = {
                name: feed["error"]
                for name, feed in (report or {}).get("sources", {}).items()
                if feed["error"]
            }
            msg = f"Initial refresh left bins unpopulated: {sorted(missing)}"
            logger.error(msg, missing=sorted(missing), errors=errors)
            raise StartupError(msg)
        return report

    async def start(self) -> None:
        """Start the background refresh loop."""
        if self._running:
            logger.warning("Coordinator already running, ignoring start request")
            return

        self._running = True
        self._task = asyncio.create_task(self._refresh_loop())
        logger.info("Refresh loop started", interval_sec=self._interval)

    async def stop(self) -> None:
        """Stop the background refresh loop; an in-flight cycle is cancelled."""
        if not self._running:
            return

        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        logger.info("Refresh loop stopped")

    async def run_once(self) -> dict[str, Any] | None:
        """Execute one refresh cycle across all sources.

        Returns:
            Report dict with per-source results, or None if a cycle was
            already in flight and this one was skipped.
        """
        if self._cycle_lock.locked():
            self._skipped_ticks += 1
            logger.warning("Refresh cycle still in flight, skipping", skipped=self._skipped_ticks)
            return None

        async with self._cycle_lock:
            return await self._cycle()

    async def get_status(self) -> dict[str, Any]:
        """Current coordinator status for the health endpoint."""
        return {
            "running": self._running,
            "cycling": self.is_cycling,
            "cycle_count": self._cycle_count,
            "skipped_ticks": self._skipped_ticks,
            "last_cycle_at": self._last_cycle_at.isoformat() if self._last_cycle_at else None,
            "interval_sec": self._interval,
            "last_failures": dict(self._last_failures),
            "bins": self._store.status(),
        }

    async def _cycle(self) -> dict[str, Any]:
        cycle_id = str(uuid.uuid4())[:8]
        self._cycle_count += 1
        self._last_cycle_at = datetime.now(timezone.utc)
        started = time.monotonic()

        logger.info("Starting refresh cycle", cycle_id=cycle_id, cycle_count=self._cycle_count)

        report: dict[str, Any] = {
            "cycle_id": cycle_id,
            "cycle_count": self._cycle_count,
            "started_at": self._last_cycle_at.isoformat(),
            "sources": {},
        }

        tasks = [
            asyncio.create_task(self._fetch_source(source, cycle_id), name=f"fetch-{source.name}")
            for source in self._sources
        ]
        try:
            for next_done in asyncio.as_completed(tasks):
                name, value, error = await next_done
                report["sources"][name] = await self._commit(name, value, error, cycle_id)
        finally:
            # only reached with pending tasks when the cycle itself is cancelled
            for task in tasks:
                if not task.done():
                    task.cancel()

        report["ended_at"] = datetime.now(timezone.utc).isoformat()
        report["duration_sec"] = round(time.monotonic() - started, 3)
        failed = sorted(name for name, feed in report["sources"].items() if feed["status"] != "ok")
        logger.info(
            "Refresh cycle complete",
            cycle_id=cycle_id,
            duration_sec=report["duration_sec"],
            failed=failed,
        )
        self._last_failures = {name: report["sources"][name]["error"] for name in failed}
        return report

    async def _fetch_source(
        self, source: Source, cycle_id: str
    ) -> tuple[str, Any, BaseException | None]:
        """Run one source, turning any failure into a value."""
        try:
            value = await source.fetch(cycle_id)
        except SourceError as exc:
            return source.name, None, exc
        except Exception as exc:
            logger.error(
                "Unexpected source failure",
                source=source.name,
                cycle_id=cycle_id,
                exc_info=exc,
            )
            return source.name, None, exc
        return source.name, value, None

    async def _commit(
        self,
        name: str,
        value: Any,
        error: BaseException | None,
        cycle_id: str,
    ) -> dict[str, Any]:
        bin_ = self._store.bin(name)
        if error is not None:
            logger.error(
                "Source refresh failed, keeping previous value",
                source=name,
                cycle_id=cycle_id,
                error_type=type(error).__name__,
                error=str(error),
                populated=bin_.populated,
            )
            return {"status": "error", "error": str(error) or type(error).__name__, "count": 0}

        await bin_.replace(value)
        return {"status": "ok", "error": None, "count": len(value)}

    async def _refresh_loop(self) -> None:
        """Tick on a fixed period, skipping ticks missed during a long cycle."""
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._interval

        while self._running:
            try:
                await asyncio.sleep(max(0.0, next_tick - loop.time()))
            except asyncio.CancelledError:
                break

            try:
                await self.run_once()
            except Exception as exc:
                logger.error("Refresh cycle failed unexpectedly", exc_info=exc)

            next_tick += self._interval
            now = loop.time()
            if next_tick <= now:
                missed = int((now - next_tick) // self._interval) + 1
                self._skipped_ticks += missed
                next_tick += missed * self._interval
                logger.warning("Refresh cycle overran its interval", skipped_ticks=missed)
