"""Real-time trip update source."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tcat_api.logging import get_logger
from tcat_api.services.gtfs_rt.decoder import FeedDecoder

if TYPE_CHECKING:
    from tcat_api.models.realtime import RealtimeSnapshot
    from tcat_api.services.http import HttpFetcher

logger = get_logger(__name__)


class RealtimeFeedSource:
    """Downloads the Avail InfoPoint trip update feed and decodes it."""

    name = "realtime"

    def __init__(self, fetcher: HttpFetcher, url: str, decoder: FeedDecoder | None = None) -> None:
        self._fetcher = fetcher
        self._url = url
        self._decoder = decoder or FeedDecoder()

    async def fetch(self, cycle_id: str = "") -> RealtimeSnapshot:
        """Fetch and decode one feed message.

        Raises:
            NetworkError: If the download failed.
            DecodeError: If the payload is not a valid feed message.
        """
        data = await self._fetcher.get(self._url, self.name, cycle_id)
        snapshot = self._decoder.decode(data)
        logger.info(
            "GTFS-RT feed decoded",
            cycle_id=cycle_id,
            size_bytes=len(data),
            trip_updates=len(snapshot),
        )
        return snapshot
