"""
Search session orchestration for Rent Scout.

The controller owns the session view state, drives listings and weather
acquisition through the retry wrapper and the result cache, and exposes a
read-only view model derived from that state.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from rentscout.cache import ResultCache, listings_key, weather_key
from rentscout.clustering import ClusterGroup, cluster_listings
from rentscout.config.app_config import AppSettings
from rentscout.data_source.base import RentalDataSource
from rentscout.error_handling import (
    ErrorHandler,
    SearchError,
    SettingsStorageError,
    classify_error,
)
from rentscout.filtering import ListingFilter
from rentscout.images import ImageAsset, ImageAssetPipeline
from rentscout.models import (
    FilterCriteria,
    Listing,
    ListingSearchResult,
    SortKey,
    Source,
    WeatherSnapshot,
)
from .settings_store import SettingsStore


logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class RegionState:
    """Acquisition state of one view region (listings or weather).

    Attributes:
        status: Idle, Loading, Loaded or Failed
        key: Cache key of the request this state belongs to
        value: Result when loaded
        error: Failure when failed
    """
    status: LoadStatus = LoadStatus.IDLE
    key: Optional[str] = None
    value: Any = None
    error: Optional[SearchError] = None


@dataclass
class SessionViewState:
    """The single mutable state owned by the controller."""
    place_text: str = ""
    committed_place: Optional[str] = None
    filter_draft: FilterCriteria = field(default_factory=FilterCriteria)
    committed_filters: Optional[FilterCriteria] = None
    selected_id: Optional[str] = None
    hovered_id: Optional[str] = None
    cluster_restriction: Optional[FrozenSet[str]] = None
    favorites: Set[str] = field(default_factory=set)
    show_favorites_only: bool = False
    sort_key: SortKey = SortKey.PRICE_ASC


@dataclass(frozen=True)
class SearchViewModel:
    """Read-only projection consumed by presentation."""
    place_text: str
    committed_place: Optional[str]
    committed_filters: Optional[FilterCriteria]
    listings_status: LoadStatus
    listings_error: Optional[SearchError]
    displayed_listings: Tuple[Listing, ...]
    result_count: int
    sources: Tuple[Source, ...]
    weather_status: LoadStatus
    weather: Optional[WeatherSnapshot]
    weather_error: Optional[SearchError]
    clusters: Tuple[ClusterGroup, ...]
    images: Dict[str, ImageAsset]
    selected_id: Optional[str]
    hovered_id: Optional[str]
    cluster_restriction: Optional[FrozenSet[str]]
    favorites: FrozenSet[str]
    show_favorites_only: bool
    sort_key: SortKey
    storage_error: Optional[SearchError]


class SearchSessionController:
    """Orchestrates one search session.

    All mutations happen on the event loop's thread. Listings and weather are
    fetched concurrently and tracked independently; a response is applied
    only if its cache key still matches the committed search, so a late
    response for a superseded search is discarded.
    """

    def __init__(
        self,
        data_source: RentalDataSource,
        settings: Optional[AppSettings] = None,
        cache: Optional[ResultCache] = None,
        settings_store: Optional[SettingsStore] = None
    ):
        self.data_source = data_source
        self.settings = settings or AppSettings()
        self.cache = cache if cache is not None else ResultCache()
        self.settings_store = settings_store or SettingsStore(self.settings.storage_config.base_dir)
        self.error_handler = ErrorHandler(config=self.settings.retry_config)
        self.images = ImageAssetPipeline(
            data_source, self.cache, self.settings.image_retry_config
        )
        self.listing_filter = ListingFilter()

        self.state = SessionViewState(place_text=self.settings.default_place)
        self.listings = RegionState()
        self.weather = RegionState()
        self.storage_error: Optional[SearchError] = None

    # -- search -------------------------------------------------------------

    async def commit_search(self, place: str, filters: Optional[FilterCriteria] = None) -> None:
        """
        Commit a search and acquire its listings and weather.

        An empty place is ignored. Selection, hover and cluster restriction
        are reset, and both regions switch to loading for the new query.

        Args:
            place: Place name to search
            filters: Filters to apply (default: the current filter draft)
        """
        place = place.strip()
        if not place:
            logger.debug("Ignoring search with an empty place")
            return

        filters = filters or self.state.filter_draft
        self.state.place_text = place
        self.state.filter_draft = filters
        self.state.committed_place = place
        self.state.committed_filters = filters
        self.state.selected_id = None
        self.state.hovered_id = None
        self.state.cluster_restriction = None

        lkey = listings_key(place, filters)
        wkey = weather_key(place)
        self.listings = RegionState(LoadStatus.LOADING, lkey)
        self.weather = RegionState(LoadStatus.LOADING, wkey)
        logger.info(f"Searching rentals in {place} ({filters.cache_token()})")

        await asyncio.gather(
            self._load_listings(place, filters, lkey),
            self._load_weather(place, wkey),
        )

    async def _load_listings(self, place: str, filters: FilterCriteria, key: str) -> None:
        try:
            result: ListingSearchResult = await self.cache.get_or_fetch(
                key,
                lambda: self.error_handler.retry_with_backoff(
                    self.data_source.fetch_listings, place, filters
                ),
            )
        except Exception as e:
            region = RegionState(LoadStatus.FAILED, key, error=classify_error(e))
            logger.error(f"Listings for {place} failed: {e}")
        else:
            region = RegionState(LoadStatus.LOADED, key, value=result)

        if self.listings.key != key:
            logger.info(f"Discarding stale listings response for {place}")
            return
        self.listings = region

    async def _load_weather(self, place: str, key: str) -> None:
        try:
            snapshot: WeatherSnapshot = await self.cache.get_or_fetch(
                key,
                lambda: self.error_handler.retry_with_backoff(
                    self.data_source.fetch_weather, place
                ),
            )
        except Exception as e:
            region = RegionState(LoadStatus.FAILED, key, error=classify_error(e))
            logger.error(f"Weather for {place} failed: {e}")
        else:
            region = RegionState(LoadStatus.LOADED, key, value=snapshot)

        if self.weather.key != key:
            logger.info(f"Discarding stale weather response for {place}")
            return
        self.weather = region

    async def suggest_locations(self, partial_place: str) -> List[str]:
        """Best-effort place suggestions; [] on any failure."""
        try:
            return await self.data_source.fetch_location_suggestions(partial_place)
        except Exception as e:
            logger.warning(f"Location suggestions failed: {e}")
            return []

    # -- pure state updates ---------------------------------------------------

    def update_draft(
        self,
        place: Optional[str] = None,
        filters: Optional[FilterCriteria] = None
    ) -> None:
        if place is not None:
            self.state.place_text = place
        if filters is not None:
            self.state.filter_draft = filters

    def toggle_favorite(self, listing_id: str) -> bool:
        """Flip a listing's favorite flag; returns the new flag."""
        if listing_id in self.state.favorites:
            self.state.favorites.discard(listing_id)
            return False
        self.state.favorites.add(listing_id)
        return True

    def set_show_favorites_only(self, enabled: bool) -> None:
        self.state.show_favorites_only = enabled

    def apply_cluster_restriction(self, listing_ids: Iterable[str]) -> None:
        self.state.cluster_restriction = frozenset(listing_ids)

    def clear_cluster_restriction(self) -> None:
        self.state.cluster_restriction = None

    def select_listing(self, listing_id: Optional[str]) -> None:
        self.state.selected_id = listing_id

    def hover_listing(self, listing_id: Optional[str]) -> None:
        self.state.hovered_id = listing_id

    def set_sort_key(self, sort_key: SortKey) -> None:
        self.state.sort_key = sort_key

    # -- saved settings -------------------------------------------------------

    def save_settings(self) -> bool:
        """
        Persist the draft search and the favorite ids.

        Returns:
            True if both records were written; failures are reported in the
            view model instead of raised
        """
        try:
            self.settings_store.save_search(self.state.place_text, self.state.filter_draft)
            self.settings_store.save_favorites(list(self.state.favorites))
        except SettingsStorageError as e:
            self.storage_error = classify_error(e)
            return False
        self.storage_error = None
        return True

    async def load_settings(self) -> bool:
        """
        Restore saved favorites and the saved search, then commit the search.

        Returns:
            True if a saved search was restored and committed
        """
        try:
            favorites = self.settings_store.load_favorites()
            restored = self.settings_store.load_search()
        except SettingsStorageError as e:
            self.storage_error = classify_error(e)
            return False

        self.storage_error = None
        self.state.favorites.update(favorites)
        if restored is None:
            return False

        place, filters = restored
        self.update_draft(place, filters)
        await self.commit_search(place, filters)
        return True

    # -- images ---------------------------------------------------------------

    def _committed_listing(self, listing_id: str) -> Optional[Listing]:
        for listing in self._committed_listings():
            if listing.id == listing_id:
                return listing
        return None

    async def on_listing_visible(self, listing_id: str) -> Optional[ImageAsset]:
        """Start image acquisition for a listing that scrolled into view."""
        listing = self._committed_listing(listing_id)
        if listing is None:
            return None
        return await self.images.on_visible(listing)

    async def enhance_image(self, listing_id: str) -> bool:
        if self._committed_listing(listing_id) is None:
            return False
        return await self.images.enhance(listing_id)

    # -- derived view ---------------------------------------------------------

    def _committed_listings(self) -> Tuple[Listing, ...]:
        if self.listings.status != LoadStatus.LOADED:
            return ()
        return self.listings.value.listings

    def _visible_listings(self) -> List[Listing]:
        """Committed listings after filters and the favorites toggle."""
        visible = self.listing_filter.filter_by_criteria(
            self._committed_listings(), self.state.committed_filters or FilterCriteria()
        )
        if self.state.show_favorites_only:
            visible = self.listing_filter.filter_by_ids(visible, self.state.favorites)
        return visible

    def displayed_listings(self) -> List[Listing]:
        restricted = self.listing_filter.filter_by_ids(
            self._visible_listings(), self.state.cluster_restriction
        )
        return self.listing_filter.sort(restricted, self.state.sort_key)

    def cluster_layout(self) -> List[ClusterGroup]:
        """Clusters over the visible set, before any cluster restriction."""
        return cluster_listings(self._visible_listings(), self.settings.cluster_config.radius)

    def view_model(self) -> SearchViewModel:
        displayed = tuple(self.displayed_listings())
        sources = self.listings.value.sources if self.listings.status == LoadStatus.LOADED else ()
        return SearchViewModel(
            place_text=self.state.place_text,
            committed_place=self.state.committed_place,
            committed_filters=self.state.committed_filters,
            listings_status=self.listings.status,
            listings_error=self.listings.error,
            displayed_listings=displayed,
            result_count=len(self._committed_listings()),
            sources=sources,
            weather_status=self.weather.status,
            weather=self.weather.value if self.weather.status == LoadStatus.LOADED else None,
            weather_error=self.weather.error,
            clusters=tuple(self.cluster_layout()),
            images={listing.id: self.images.get(listing.id) for listing in displayed},
            selected_id=self.state.selected_id,
            hovered_id=self.state.hovered_id,
            cluster_restriction=self.state.cluster_restriction,
            favorites=frozenset(self.state.favorites),
            show_favorites_only=self.state.show_favorites_only,
            sort_key=self.state.sort_key,
            storage_error=self.storage_error,
        )
