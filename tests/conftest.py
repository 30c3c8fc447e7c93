"""Shared fixtures: a scripted in-memory data source and listing builders."""

import asyncio
from typing import Dict, List, Optional

import pytest

from rentscout.config import AppSettings, StorageConfig
from rentscout.data_source.base import RentalDataSource
from rentscout.error_handling import RetryConfig
from rentscout.models import (
    FilterCriteria,
    Listing,
    ListingSearchResult,
    PropertyType,
    Source,
    WeatherSnapshot,
)


def make_listing(
    listing_id: str,
    price: float = 1500,
    bedrooms: int = 2,
    bathrooms: float = 1,
    sqft: float = 900,
    property_type: PropertyType = PropertyType.APARTMENT,
    latitude: float = 36.16,
    longitude: float = -86.78,
    is_rent_to_own: bool = False,
    state: str = "TN",
) -> Listing:
    return Listing(
        id=listing_id,
        address=f"{listing_id} Main St",
        city="Nashville",
        state=state,
        zip_code="37201",
        latitude=latitude,
        longitude=longitude,
        price=price,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        sqft=sqft,
        property_type=property_type,
        amenities=("Parking", "Laundry"),
        image_url=f"https://picsum.photos/seed/{listing_id}/800/600",
        is_rent_to_own=is_rent_to_own,
    )


class FakeDataSource(RentalDataSource):
    """Scripted data source recording every call.

    ``listings`` and ``weather`` map a place to a result or to an exception to
    raise. A place listed in ``gates`` (listings) or ``weather_gates`` blocks
    until its event is set.
    """

    def __init__(self):
        self.listings: Dict[str, object] = {}
        self.weather: Dict[str, object] = {}
        self.gates: Dict[str, asyncio.Event] = {}
        self.weather_gates: Dict[str, asyncio.Event] = {}
        self.image_error: Optional[Exception] = None
        self.enhance_error: Optional[Exception] = None
        self.enhance_gate: Optional[asyncio.Event] = None
        self.listing_calls: List[tuple] = []
        self.weather_calls: List[str] = []
        self.image_calls: List[str] = []
        self.enhance_calls: List[str] = []

    async def fetch_listings(self, place: str, filters: FilterCriteria) -> ListingSearchResult:
        self.listing_calls.append((place, filters))
        if place in self.gates:
            await self.gates[place].wait()
        outcome = self.listings.get(place, ListingSearchResult())
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def fetch_weather(self, place: str) -> WeatherSnapshot:
        self.weather_calls.append(place)
        if place in self.weather_gates:
            await self.weather_gates[place].wait()
        outcome = self.weather.get(place, WeatherSnapshot(70.0, "Sunny", 5.0))
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def fetch_location_suggestions(self, partial_place: str) -> List[str]:
        return [f"{partial_place.title()}, TN"] if partial_place.strip() else []

    async def generate_image(self, subject: str) -> str:
        self.image_calls.append(subject)
        await asyncio.sleep(0)
        if self.image_error is not None:
            raise self.image_error
        return f"data:image/png;base64,generated{len(self.image_calls)}"

    async def enhance_image(self, image_ref: str) -> str:
        self.enhance_calls.append(image_ref)
        if self.enhance_gate is not None:
            await self.enhance_gate.wait()
        if self.enhance_error is not None:
            raise self.enhance_error
        return image_ref + "-enhanced"


def result_of(*listings: Listing) -> ListingSearchResult:
    return ListingSearchResult(
        listings=tuple(listings),
        sources=(Source("Example Rentals", "https://example.com/rentals"),),
    )


@pytest.fixture
def source():
    return FakeDataSource()


@pytest.fixture
def app_settings(tmp_path):
    no_wait = RetryConfig(max_retries=2, initial_delay_seconds=0, jitter_seconds=0)
    return AppSettings(
        retry_config=no_wait,
        image_retry_config=no_wait,
        storage_config=StorageConfig(base_dir=str(tmp_path / "settings")),
    )
