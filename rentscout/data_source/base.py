"""Remote data source abstraction - allows swapping generation backends."""

from abc import ABC, abstractmethod
from typing import List

from rentscout.models import FilterCriteria, ListingSearchResult, WeatherSnapshot


class RentalDataSource(ABC):
    """Abstract base class for the remote listings/weather/image source.

    Implementations raise errors whose text identifies rate limiting, so the
    retry predicate can tell transient failures from terminal ones, and raise
    MalformedResponseError for content that cannot be parsed.
    """

    @abstractmethod
    async def fetch_listings(self, place: str, filters: FilterCriteria) -> ListingSearchResult:
        """
        Fetch rental listings for a place.

        Returns:
            ListingSearchResult: Listings with unique ids and their sources
        """

    @abstractmethod
    async def fetch_weather(self, place: str) -> WeatherSnapshot:
        """Fetch current weather for a place."""

    @abstractmethod
    async def fetch_location_suggestions(self, partial_place: str) -> List[str]:
        """Suggest place names for partial input. Best-effort: [] on failure."""

    @abstractmethod
    async def generate_image(self, subject: str) -> str:
        """Generate an image for a subject description and return its reference."""

    @abstractmethod
    async def enhance_image(self, image_ref: str) -> str:
        """Return an enhanced version of a previously generated image."""
