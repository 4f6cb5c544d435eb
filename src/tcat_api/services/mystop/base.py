"""Shared plumbing for the bearer-protected MyStop REST endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from tcat_api.exceptions import DecodeError, FieldError
from tcat_api.logging import get_logger

if TYPE_CHECKING:
    from tcat_api.services.auth.token_cache import TokenCache
    from tcat_api.services.http import HttpFetcher

logger = get_logger(__name__)

T = TypeVar("T")

# pydantic error types that mean the body was not JSON at all
_JSON_ERROR_TYPES = frozenset({"json_invalid", "json_type"})


def parse_json_array(adapter: TypeAdapter[list[T]], data: bytes, source: str) -> list[T]:
    """Validate a JSON array body into records.

    Raises:
        DecodeError: If the body is not a JSON array.
        FieldError: If any record has a field that cannot be decoded.
    """
    try:
        return adapter.validate_json(data)
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        first = errors[0] if errors else {}
        if first.get("type") in _JSON_ERROR_TYPES or first.get("loc") == ():
            msg = f"Invalid JSON array from {source}: {first.get('msg', exc)}"
            raise DecodeError(msg, source=source) from exc
        location = ".".join(str(part) for part in first.get("loc", ()))
        msg = f"Invalid {source} record at {location}: {first.get('msg', exc)}"
        raise FieldError(msg, source=source) from exc


class BearerJsonSource(Generic[T]):
    """GETs a JSON array with a bearer credential from the token cache."""

    name: ClassVar[str]
    adapter: ClassVar[TypeAdapter]  # type: ignore[type-arg]
    extra_headers: ClassVar[dict[str, str]] = {}

    def __init__(self, fetcher: HttpFetcher, tokens: TokenCache, url: str) -> None:
        self._fetcher = fetcher
        self._tokens = tokens
        self._url = url

    async def fetch(self, cycle_id: str = "") -> list[T]:
        """Fetch and validate the record list.

        Raises:
            AuthError: If no valid bearer credential could be obtained.
            NetworkError: If the request failed.
            DecodeError: If the body is not a JSON array.
            FieldError: If a record could not be decoded.
        """
        bearer = await self._tokens.get()
        headers = {**self.extra_headers, "Authorization": f"Bearer {bearer}"}
        data = await self._fetcher.get(self._url, self.name, cycle_id, headers=headers)
        records = parse_json_array(self.adapter, data, self.name)
        logger.info(
            "Source records loaded", source=self.name, cycle_id=cycle_id, count=len(records)
        )
        return records
