"""GTFS-Realtime trip update decoding."""

from tcat_api.services.gtfs_rt.decoder import FeedDecoder
from tcat_api.services.gtfs_rt.fetcher import RealtimeFeedSource

__all__ = [
    "FeedDecoder",
    "RealtimeFeedSource",
]
