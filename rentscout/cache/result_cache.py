"""
Session-scoped result cache for Rent Scout.

Holds listings, weather snapshots and generated image references for the
lifetime of the running session. There is no eviction and no expiry.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from rentscout.models import FilterCriteria


logger = logging.getLogger(__name__)


def _normalize_place(place: str) -> str:
    return " ".join(place.split()).casefold()


def listings_key(place: str, filters: FilterCriteria) -> str:
    """Cache key for a listings request: place plus normalized filters."""
    return f"listings:{_normalize_place(place)}:{filters.cache_token()}"


def weather_key(place: str) -> str:
    """Cache key for a weather request: place alone."""
    return f"weather:{_normalize_place(place)}"


def image_key(listing_id: str) -> str:
    """Cache key for a listing image: listing id alone."""
    return f"image:{listing_id}"


class ResultCache:
    """Memoized lookup-or-populate store.

    Values are stored as given; callers share references and must not mutate
    them, which is why the domain models are frozen dataclasses.

    Attributes:
        entries: Cached values by key
    """

    def __init__(self):
        self.entries: Dict[str, Any] = {}
        self.hits = 0
        self.misses = 0

    def __contains__(self, key: str) -> bool:
        return key in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, key: str) -> Optional[Any]:
        return self.entries.get(key)

    def put(self, key: str, value: Any) -> None:
        """Store or replace the value under key."""
        self.entries[key] = value

    def discard(self, key: str) -> None:
        self.entries.pop(key, None)

    async def get_or_fetch(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]]
    ) -> Any:
        """Return the cached value for key, or fetch, store and return it.

        A hit returns without awaiting anything. A failed fetch propagates its
        exception and stores nothing, so the next request for the same key
        fetches again.

        Args:
            key: Cache key from listings_key, weather_key or image_key
            fetcher: Zero-argument coroutine function producing the value

        Returns:
            The cached or freshly fetched value
        """
        if key in self.entries:
            self.hits += 1
            logger.debug(f"Cache hit for {key}")
            return self.entries[key]

        self.misses += 1
        logger.debug(f"Cache miss for {key}, fetching")
        value = await fetcher()
        self.entries[key] = value
        return value
