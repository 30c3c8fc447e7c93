"""
Lazy image acquisition and enhancement for listings.

A listing's image is generated the first time the listing becomes visible,
at most once per listing. A generated image can be enhanced once on request.
Failures never propagate: the listing keeps a known-good image.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional

from rentscout.cache import ResultCache, image_key
from rentscout.data_source.base import RentalDataSource
from rentscout.error_handling import ErrorHandler, RetryConfig, classify_error
from rentscout.models import Listing


logger = logging.getLogger(__name__)


class ImageStatus(str, Enum):
    NONE = "none"
    LOADING = "loading"
    READY = "ready"
    ENHANCING = "enhancing"
    ENHANCED = "enhanced"


class ImageOrigin(str, Enum):
    GENERATED = "generated"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class ImageAsset:
    """Image state of one listing.

    Attributes:
        status: Acquisition/enhancement stage
        image_ref: Image to display, None until acquisition settles
        origin: Whether image_ref was generated or is the listing placeholder
        error: Message of the last non-fatal failure, if any
    """
    status: ImageStatus = ImageStatus.NONE
    image_ref: Optional[str] = None
    origin: Optional[ImageOrigin] = None
    error: Optional[str] = None


def describe_listing(listing: Listing) -> str:
    """Subject description used to generate a listing photo."""
    amenities = ", ".join(listing.amenities[:3])
    description = (
        f"A realistic, well-lit exterior photograph of a {listing.bedrooms}-bedroom "
        f"{listing.property_type.value.lower()} for rent at {listing.address}, "
        f"{listing.city}, {listing.state}"
    )
    if amenities:
        description += f", featuring {amenities}"
    return description + "."


class ImageAssetPipeline:
    """Per-listing image acquisition and enhancement.

    State changes happen before the first await of each operation, so
    overlapping calls on one event loop see each other's progress.

    Images are keyed by listing id alone. Generated ids such as "1" repeat
    across searches, so each asset remembers the subject it was generated
    for; a listing that reuses an id with a different subject gets a new
    image once the old one has settled.
    """

    def __init__(
        self,
        data_source: RentalDataSource,
        cache: Optional[ResultCache] = None,
        retry_config: Optional[RetryConfig] = None
    ):
        self.data_source = data_source
        self.cache = cache if cache is not None else ResultCache()
        self.error_handler = ErrorHandler(
            config=retry_config or RetryConfig(max_retries=2, initial_delay_seconds=2.0)
        )
        self.assets: Dict[str, ImageAsset] = {}
        self.subjects: Dict[str, str] = {}

    def get(self, listing_id: str) -> ImageAsset:
        return self.assets.get(listing_id, ImageAsset())

    def can_enhance(self, listing_id: str) -> bool:
        """Enhancement is offered once, and only for a generated image."""
        asset = self.get(listing_id)
        return asset.status == ImageStatus.READY and asset.origin == ImageOrigin.GENERATED

    async def on_visible(self, listing: Listing) -> ImageAsset:
        """
        Acquire the listing's image on its first visibility.

        Later calls for the same listing return the current state without
        fetching again. A different listing reusing the id starts over.

        Args:
            listing: The listing that scrolled into view

        Returns:
            The listing's image state after acquisition settles
        """
        key = image_key(listing.id)
        subject = describe_listing(listing)
        current = self.get(listing.id)
        settled = current.status in (ImageStatus.READY, ImageStatus.ENHANCED)
        if settled and self.subjects.get(listing.id, subject) != subject:
            logger.info(f"Listing id {listing.id} now names a different property, regenerating its image")
            self.assets.pop(listing.id)
            self.cache.discard(key)
            current = ImageAsset()
        if current.status != ImageStatus.NONE:
            return current

        self.subjects[listing.id] = subject
        cached = self.cache.get(key)
        if cached is not None:
            self.assets[listing.id] = ImageAsset(ImageStatus.READY, cached, ImageOrigin.GENERATED)
            return self.assets[listing.id]

        self.assets[listing.id] = ImageAsset(ImageStatus.LOADING)
        try:
            image_ref = await self.cache.get_or_fetch(
                key,
                lambda: self.error_handler.retry_with_backoff(
                    self.data_source.generate_image, subject
                ),
            )
            asset = ImageAsset(ImageStatus.READY, image_ref, ImageOrigin.GENERATED)
        except Exception as e:
            logger.warning(f"Image generation failed for listing {listing.id}, using placeholder: {e}")
            asset = ImageAsset(
                ImageStatus.READY,
                listing.image_url,
                ImageOrigin.PLACEHOLDER,
                error=classify_error(e).message,
            )

        self.assets[listing.id] = asset
        return asset

    async def enhance(self, listing_id: str) -> bool:
        """
        Enhance a listing's generated image.

        A request while an enhancement is in flight, before a generated image
        exists, or after a completed enhancement is a no-op.

        Args:
            listing_id: Listing whose image to enhance

        Returns:
            True if the image was enhanced by this call
        """
        if not self.can_enhance(listing_id):
            logger.debug(f"Enhancement not available for listing {listing_id}")
            return False

        previous = self.assets[listing_id]
        self.assets[listing_id] = replace(previous, status=ImageStatus.ENHANCING, error=None)
        try:
            enhanced_ref = await self.error_handler.retry_with_backoff(
                self.data_source.enhance_image, previous.image_ref
            )
        except Exception as e:
            logger.warning(f"Image enhancement failed for listing {listing_id}: {e}")
            self.assets[listing_id] = replace(previous, error=classify_error(e).message)
            return False

        self.cache.put(image_key(listing_id), enhanced_ref)
        self.assets[listing_id] = ImageAsset(ImageStatus.ENHANCED, enhanced_ref, ImageOrigin.GENERATED)
        logger.info(f"Enhanced image for listing {listing_id}")
        return True
