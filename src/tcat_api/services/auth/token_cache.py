"""Client-credentials bearer token shared by the authenticated sources."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import httpx

from tcat_api.exceptions import AuthError
from tcat_api.locks import ReadWriteLock
from tcat_api.logging import get_logger
from tcat_api.models.token import Token

if TYPE_CHECKING:
    from collections.abc import Callable

    from tcat_api.config import Settings

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SEC = 10.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCache:
    """Holds one bearer token and refreshes it when it expires.

    ``get()`` is safe to call from any number of tasks. Refreshes run
    without holding a lock; the exclusive lock only guards the swap,
    which keeps whichever token was issued last.

    Usage:
        tokens = await TokenCache.create(client, token_url=url, secret=secret)
        bearer = await tokens.get()
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: Token,
        *,
        token_url: str,
        secret: str,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._client = client
        self._token = token
        self._token_url = token_url
        self._secret = secret
        self._timeout_sec = timeout_sec
        self._clock = clock
        self._lock = ReadWriteLock()
        self._refresh_count = 0

    @classmethod
    async def create(
        cls,
        client: httpx.AsyncClient,
        *,
        token_url: str,
        secret: str,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        clock: Callable[[], datetime] = _utcnow,
    ) -> TokenCache:
        """Fetch the initial token and return a ready cache.

        Raises:
            AuthError: If the initial token cannot be obtained.
        """
        token = await request_token(
            client, token_url=token_url, secret=secret, timeout_sec=timeout_sec, clock=clock
        )
        logger.info("Initial bearer token acquired", expires_at=token.expires_at.isoformat())
        return cls(
            client,
            token,
            token_url=token_url,
            secret=secret,
            timeout_sec=timeout_sec,
            clock=clock,
        )

    @classmethod
    async def from_settings(cls, client: httpx.AsyncClient, settings: Settings) -> TokenCache:
        return await cls.create(
            client,
            token_url=settings.token_url,
            secret=settings.token,
            timeout_sec=settings.fetch_timeout_sec,
        )

    @property
    def refresh_count(self) -> int:
        """Number of successful network refreshes after the initial fetch."""
        return self._refresh_count

    @property
    def token(self) -> Token:
        return self._token

    async def get(self) -> str:
        """Return a valid bearer credential, refreshing it if expired.

        Raises:
            AuthError: If the token is expired and the refresh failed.
        """
        async with self._lock.read():
            current = self._token

        if current.is_valid(self._clock()):
            return current.credential

        fresh = await self._refresh()
        self._refresh_count += 1

        async with self._lock.write():
            if fresh.issued_at > self._token.issued_at:
                self._token = fresh
                logger.info("Bearer token refreshed", expires_at=fresh.expires_at.isoformat())
            else:
                logger.debug(
                    "Discarding refreshed token older than the cached one",
                    fetched_issued_at=fresh.issued_at.isoformat(),
                    cached_issued_at=self._token.issued_at.isoformat(),
                )
            return self._token.credential

    async def _refresh(self) -> Token:
        return await request_token(
            self._client,
            token_url=self._token_url,
            secret=self._secret,
            timeout_sec=self._timeout_sec,
            clock=self._clock,
        )


async def request_token(
    client: httpx.AsyncClient,
    *,
    token_url: str,
    secret: str,
    timeout_sec: float = DEFAULT_TIMEOUT_SEC,
    clock: Callable[[], datetime] = _utcnow,
) -> Token:
    """POST a client-credentials grant and build a token from the response.

    The issuance instant is taken before the request is sent.

    Raises:
        AuthError: On transport failure, non-2xx status or a malformed body.
    """
    issued_at = clock()
    try:
        response = await client.post(
            token_url,
            headers={
                "Authorization": f"Basic {secret}",
                "Cache-Control": "no-cache",
            },
            data={"grant_type": "client_credentials"},
            timeout=httpx.Timeout(timeout_sec),
        )
        response.raise_for_status()
        body = response.json()
        return Token.from_lifetime(
            credential=str(body["access_token"]),
            issued_at=issued_at,
            expires_in=float(body["expires_in"]),
        )
    except httpx.HTTPStatusError as exc:
        msg = f"Token endpoint returned HTTP {exc.response.status_code}"
        logger.error(msg, token_url=token_url)
        raise AuthError(msg, source="token") from exc
    except httpx.RequestError as exc:
        msg = f"Token request failed: {type(exc).__name__}"
        logger.error(msg, token_url=token_url, error=str(exc))
        raise AuthError(msg, source="token") from exc
    except (ValueError, KeyError, TypeError) as exc:
        msg = "Malformed token response"
        logger.error(msg, token_url=token_url, error=str(exc))
        raise AuthError(msg, source="token") from exc
