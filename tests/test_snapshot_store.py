"""Tests for the snapshot store and its read-write lock."""

from __future__ import annotations

import asyncio
import json

import pytest

from tcat_api.locks import ReadWriteLock
from tcat_api.services.snapshot.store import (
    BIN_ALERTS,
    BIN_REALTIME,
    BIN_ROUTES,
    BIN_STOPS,
    SnapshotStore,
)

from .conftest import sample_realtime, sample_routes


class TestSnapshotStore:
    @pytest.mark.asyncio
    async def test_bins_start_absent(self) -> None:
        store = SnapshotStore()

        assert store.names == [BIN_ALERTS, BIN_ROUTES, BIN_REALTIME, BIN_STOPS]
        assert store.missing_bins() == store.names
        assert await store.alerts.read() is None

    @pytest.mark.asyncio
    async def test_replace_renders_body(self) -> None:
        store = SnapshotStore()
        await store.realtime.replace(sample_realtime())

        snapshot = await store.realtime.read()
        assert snapshot is not None
        assert json.loads(snapshot.body) == {
            "1001": {"routeId": "10", "stopUpdates": {"1350": 30}, "vehicleId": "1702"}
        }
        assert store.missing_bins() == [BIN_ALERTS, BIN_ROUTES, BIN_STOPS]

    @pytest.mark.asyncio
    async def test_replace_supersedes_previous_value(self) -> None:
        store = SnapshotStore()
        routes = sample_routes()
        await store.routes.replace(routes)
        await store.routes.replace(routes[:1])

        snapshot = await store.routes.read()
        assert snapshot is not None
        assert snapshot.value == routes[:1]
        assert len(json.loads(snapshot.body)) == 1

    @pytest.mark.asyncio
    async def test_writer_on_one_bin_does_not_block_another(self) -> None:
        store = SnapshotStore()
        await store.routes.replace(sample_routes())

        async with store.alerts.lock.write():
            snapshot = await asyncio.wait_for(store.routes.read(), timeout=1)
            await asyncio.wait_for(store.stops.replace([]), timeout=1)

        assert snapshot is not None
        assert store.stops.populated

    @pytest.mark.asyncio
    async def test_reader_waits_for_writer_on_same_bin(self) -> None:
        store = SnapshotStore()
        await store.stops.replace([])

        async with store.stops.lock.write():
            reader = asyncio.create_task(store.stops.read())
            await asyncio.sleep(0.01)
            assert not reader.done()

        assert await asyncio.wait_for(reader, timeout=1) is not None

    def test_unknown_bin_raises(self) -> None:
        with pytest.raises(KeyError):
            SnapshotStore().bin("vehicles")

    @pytest.mark.asyncio
    async def test_status_reports_each_bin(self) -> None:
        store = SnapshotStore()
        await store.alerts.replace([])

        status = store.status()

        assert status[BIN_ALERTS]["populated"] is True
        assert status[BIN_ALERTS]["updated_at"] is not None
        assert status[BIN_STOPS] == {"populated": False, "updated_at": None}


class TestReadWriteLock:
    @pytest.mark.asyncio
    async def test_readers_share(self) -> None:
        lock = ReadWriteLock()

        async with lock.read():
            async with lock.read():
                assert lock.readers == 2

        assert lock.readers == 0

    @pytest.mark.asyncio
    async def test_writer_excludes_readers_and_writers(self) -> None:
        lock = ReadWriteLock()
        order: list[str] = []

        async def reader() -> None:
            async with lock.read():
                order.append("read")

        async def writer(tag: str) -> None:
            async with lock.write():
                order.append(f"{tag}-start")
                await asyncio.sleep(0.01)
                order.append(f"{tag}-end")

        first = asyncio.create_task(writer("w1"))
        await asyncio.sleep(0)
        await asyncio.gather(reader(), writer("w2"), first)

        assert order.index("w1-end") < order.index("read")
        assert order.index("w1-end") < order.index("w2-start")
        assert order.index("w2-start") + 1 == order.index("w2-end")

    @pytest.mark.asyncio
    async def test_waiting_writer_blocks_new_readers(self) -> None:
        lock = ReadWriteLock()
        order: list[str] = []

        async def writer() -> None:
            async with lock.write():
                order.append("write")

        async def late_reader() -> None:
            async with lock.read():
                order.append("late-read")

        async with lock.read():
            w = asyncio.create_task(writer())
            await asyncio.sleep(0)
            r = asyncio.create_task(late_reader())
            await asyncio.sleep(0.01)
            assert order == []

        await asyncio.gather(w, r)
        assert order == ["write", "late-read"]

    @pytest.mark.asyncio
    async def test_cancelled_writer_releases_waiting_readers(self) -> None:
        lock = ReadWriteLock()
        entered = asyncio.Event()

        async def late_reader() -> None:
            async with lock.read():
                entered.set()

        async with lock.read():
            w = asyncio.create_task(lock.write().__aenter__())
            await asyncio.sleep(0)
            r = asyncio.create_task(late_reader())
            await asyncio.sleep(0)
            w.cancel()
            await asyncio.wait_for(entered.wait(), timeout=1)

        await r
        assert not lock.write_locked
