"""
Listing filter implementation for rental results.

The remote data source is asked to honor the filters but is not trusted to;
every filter is enforced again here before listings are displayed.
"""

from typing import AbstractSet, List, Optional, Sequence

from rentscout.models import FilterCriteria, Listing, SortKey


class ListingFilter:
    """Filters and orders rental listings.

    This class provides methods to filter listings by search criteria,
    favorites and cluster membership, and to sort the result.
    """

    def matches(self, listing: Listing, criteria: FilterCriteria) -> bool:
        """Check a single listing against the criteria.

        Args:
            listing: Listing to check
            criteria: Active filters

        Returns:
            True if the listing satisfies every active filter
        """
        if listing.price < criteria.min_price or listing.price > criteria.max_price:
            return False

        if criteria.bedrooms is not None and listing.bedrooms < criteria.bedrooms:
            return False

        if criteria.bathrooms is not None and listing.bathrooms < criteria.bathrooms:
            return False

        if criteria.property_type is not None and listing.property_type != criteria.property_type:
            return False

        if criteria.rent_to_own and not listing.is_rent_to_own:
            return False

        return True

    def filter_by_criteria(
        self,
        listings: Sequence[Listing],
        criteria: FilterCriteria
    ) -> List[Listing]:
        """Filter listings to those meeting the criteria.

        Args:
            listings: List of listings to filter
            criteria: Active filters

        Returns:
            List of listings that meet the criteria, in input order
        """
        return [listing for listing in listings if self.matches(listing, criteria)]

    def filter_by_ids(
        self,
        listings: Sequence[Listing],
        allowed_ids: Optional[AbstractSet[str]]
    ) -> List[Listing]:
        """Restrict listings to a set of ids; None means no restriction."""
        if allowed_ids is None:
            return list(listings)
        return [listing for listing in listings if listing.id in allowed_ids]

    def sort(self, listings: Sequence[Listing], sort_key: SortKey) -> List[Listing]:
        """Order listings by the sort key. The sort is stable."""
        if sort_key == SortKey.PRICE_DESC:
            return sorted(listings, key=lambda l: l.price, reverse=True)
        if sort_key == SortKey.AREA_DESC:
            return sorted(listings, key=lambda l: l.sqft, reverse=True)
        return sorted(listings, key=lambda l: l.price)
