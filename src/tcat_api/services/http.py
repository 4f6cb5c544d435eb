"""Shared HTTP access for upstream sources."""

from __future__ import annotations

import asyncio

import httpx

from tcat_api.config import Settings
from tcat_api.exceptions import NetworkError
from tcat_api.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0
DEFAULT_MAX_RETRIES = 1
DEFAULT_BACKOFF_BASE = 2.0


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the process-wide client shared by every source and the token cache."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.fetch_timeout_sec),
        follow_redirects=True,
        headers={"User-Agent": f"{settings.app_name}/{settings.app_version}"},
    )


class HttpFetcher:
    """Performs GET requests on a shared client with an explicit timeout.

    With ``max_retries`` above one, transport and status failures are
    retried with exponential backoff before giving up.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_base: float = DEFAULT_BACKOFF_BASE,
    ) -> None:
        self.client = client
        self.timeout_sec = timeout_sec
        self.max_retries = max(1, max_retries)
        self.backoff_base = backoff_base

    @classmethod
    def from_settings(cls, client: httpx.AsyncClient, settings: Settings) -> HttpFetcher:
        return cls(
            client,
            timeout_sec=settings.fetch_timeout_sec,
            max_retries=settings.fetch_max_retries,
            backoff_base=settings.fetch_backoff_base,
        )

    async def get(
        self,
        url: str,
        source: str,
        cycle_id: str = "",
        headers: dict[str, str] | None = None,
    ) -> bytes:
        """Download ``url`` and return the response body.

        Args:
            url: Endpoint to fetch.
            source: Source name for logging and error attribution.
            cycle_id: Correlation ID of the refresh cycle.
            headers: Extra request headers (e.g. ``Authorization``).

        Raises:
            NetworkError: If every attempt failed or the body is empty.
        """
        last_error: Exception | None = None
        status_code: int | None = None

        for attempt in range(self.max_retries):
            try:
                logger.debug(
                    "Fetching upstream",
                    source=source,
                    cycle_id=cycle_id,
                    attempt=attempt + 1,
                    max_retries=self.max_retries,
                )
                response = await self.client.get(
                    url,
                    headers=headers,
                    timeout=httpx.Timeout(self.timeout_sec),
                )
                response.raise_for_status()
                data = response.content

                if not data:
                    msg = "Empty response body"
                    raise NetworkError(msg, source=source, status_code=response.status_code)

                logger.debug(
                    "Upstream downloaded",
                    source=source,
                    cycle_id=cycle_id,
                    size_bytes=len(data),
                )
                return data

            except (httpx.HTTPStatusError, httpx.RequestError, NetworkError) as exc:
                last_error = exc
                if isinstance(exc, httpx.HTTPStatusError):
                    status_code = exc.response.status_code
                if attempt < self.max_retries - 1:
                    delay = self.backoff_base ** (attempt + 1)
                    logger.warning(
                        "Upstream fetch failed, retrying",
                        source=source,
                        cycle_id=cycle_id,
                        attempt=attempt + 1,
                        delay_sec=delay,
                        error=_describe(exc),
                    )
                    await asyncio.sleep(delay)

        attempts = self.max_retries
        msg = f"Failed to fetch {source} after {attempts} attempt(s): {_describe(last_error)}"
        raise NetworkError(msg, source=source, status_code=status_code) from last_error


def _describe(exc: BaseException | None) -> str:
    """Render an exception for logs; httpx timeouts often have an empty message."""
    if exc is None:
        return ""
    text = str(exc)
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__
