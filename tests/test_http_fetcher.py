"""Tests for the shared HTTP fetcher."""

from __future__ import annotations

import httpx
import pytest

from tcat_api.config import Settings
from tcat_api.exceptions import NetworkError
from tcat_api.services.http import HttpFetcher, create_http_client

from .fixtures.gtfs_rt_fixture import build_trip_update_feed
from .fixtures.mystop_fixture import UpstreamStub

FEED_URL = "https://feed.test/tripupdates"


class TestHttpFetcher:
    """Unit tests for HttpFetcher.get."""

    @pytest.mark.asyncio
    async def test_fetch_success(self) -> None:
        expected = build_trip_update_feed()
        stub = UpstreamStub({FEED_URL: lambda _req: httpx.Response(200, content=expected)})

        async with stub.client() as client:
            data = await HttpFetcher(client, timeout_sec=5).get(FEED_URL, "realtime", "c1")

        assert data == expected

    @pytest.mark.asyncio
    async def test_headers_are_forwarded(self) -> None:
        stub = UpstreamStub({FEED_URL: lambda _req: httpx.Response(200, content=b"[]")})

        async with stub.client() as client:
            await HttpFetcher(client).get(
                FEED_URL, "stops", headers={"Authorization": "Bearer abc"}
            )

        assert stub.requests[0].headers["Authorization"] == "Bearer abc"

    @pytest.mark.asyncio
    async def test_timeout_is_explicit(self) -> None:
        seen: list[dict] = []

        def capture(request: httpx.Request) -> httpx.Response:
            seen.append(request.extensions["timeout"])
            return httpx.Response(200, content=b"x")

        stub = UpstreamStub({FEED_URL: capture})
        async with stub.client() as client:
            await HttpFetcher(client, timeout_sec=3.5).get(FEED_URL, "realtime")

        assert seen[0]["read"] == 3.5
        assert seen[0]["connect"] == 3.5

    @pytest.mark.asyncio
    async def test_empty_response_raises(self) -> None:
        stub = UpstreamStub({FEED_URL: lambda _req: httpx.Response(200, content=b"")})

        async with stub.client() as client:
            with pytest.raises(NetworkError, match="Empty response body"):
                await HttpFetcher(client).get(FEED_URL, "realtime")

    @pytest.mark.asyncio
    async def test_http_error_carries_status(self) -> None:
        stub = UpstreamStub({FEED_URL: lambda _req: httpx.Response(503)})

        async with stub.client() as client:
            with pytest.raises(NetworkError, match="Failed to fetch realtime") as exc_info:
                await HttpFetcher(client).get(FEED_URL, "realtime")

        assert exc_info.value.status_code == 503
        assert exc_info.value.source == "realtime"

    @pytest.mark.asyncio
    async def test_timeout_raises_network_error(self) -> None:
        def stall(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("", request=request)

        stub = UpstreamStub({FEED_URL: stall})
        async with stub.client() as client:
            with pytest.raises(NetworkError, match="ReadTimeout"):
                await HttpFetcher(client).get(FEED_URL, "realtime")

    @pytest.mark.asyncio
    async def test_single_attempt_by_default(self) -> None:
        stub = UpstreamStub({FEED_URL: lambda _req: httpx.Response(500)})

        async with stub.client() as client:
            with pytest.raises(NetworkError):
                await HttpFetcher(client).get(FEED_URL, "realtime")

        assert len(stub.requests) == 1

    @pytest.mark.asyncio
    async def test_retry_then_success(self) -> None:
        responses = iter([httpx.Response(500), httpx.Response(200, content=b"ok")])
        stub = UpstreamStub({FEED_URL: lambda _req: next(responses)})

        async with stub.client() as client:
            fetcher = HttpFetcher(client, max_retries=3, backoff_base=0.01)
            data = await fetcher.get(FEED_URL, "realtime")

        assert data == b"ok"
        assert len(stub.requests) == 2


def test_create_http_client_uses_configured_timeout() -> None:
    client = create_http_client(Settings(fetch_timeout_sec=7))

    assert client.timeout.read == 7
    assert client.headers["User-Agent"].startswith("TCAT Data API/")
