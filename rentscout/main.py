"""
Main entry point and CLI for Rent Scout.

Provides a command-line interface for searching rentals in a place, with
filters, sorting, saved settings and on-demand listing images.
"""

import asyncio
import argparse
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from rentscout.clustering import ClusterGroup
from rentscout.config import APP_CONFIG, get_app_settings
from rentscout.data_source import GenerativeDataSource
from rentscout.images import ImageAsset
from rentscout.models import FilterCriteria, Listing, PropertyType, SortKey
from rentscout.session import LoadStatus, SearchSessionController, SearchViewModel


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def format_listing(listing: Listing, is_favorite: bool = False, image: Optional[ImageAsset] = None) -> str:
    """
    Format a listing for console output.

    Args:
        listing: Listing to format
        is_favorite: Whether the listing is a favorite
        image: Image state of the listing, if acquired

    Returns:
        Formatted string representation of the listing
    """
    lines = []

    star = "★ " if is_favorite else ""
    lines.append(f"{star}${listing.price:,.0f}/mo  {listing.full_address}")
    lines.append(
        f"   {listing.property_type.value} | {listing.bedrooms} bd | "
        f"{listing.bathrooms:g} ba | {listing.sqft:,.0f} sqft | ID: {listing.id}"
    )

    if listing.amenities:
        lines.append(f"   Amenities: {', '.join(listing.amenities)}")

    if listing.is_rent_to_own:
        lines.append("   Rent-to-own available")

    for school in listing.private_schools:
        lines.append(f"   School: {school.name} ({school.distance})")

    if listing.contact:
        details = [v for v in (listing.contact.name, listing.contact.phone, listing.contact.email) if v]
        if details:
            lines.append(f"   Contact: {' | '.join(details)}")

    if image is not None and image.image_ref:
        ref = image.image_ref if len(image.image_ref) <= 80 else image.image_ref[:77] + "..."
        lines.append(f"   Image ({image.status.value}, {image.origin.value}): {ref}")
    elif listing.image_url:
        lines.append(f"   Image: {listing.image_url}")

    lines.append("")
    return "\n".join(lines)


def format_clusters(clusters: List[ClusterGroup]) -> str:
    """Summarize the map layout."""
    lines = [f"Map: {len(clusters)} marker(s)"]
    for group in clusters:
        x, y = group.centroid
        if group.is_aggregate:
            lines.append(
                f"   [{group.count} listings] at ({x:.2f}, {y:.2f}), "
                f"avg ${group.average_price:,.0f}/mo"
            )
        else:
            lines.append(f"   [{group.listing_ids[0]}] at ({x:.2f}, {y:.2f})")
    return "\n".join(lines) + "\n"


def format_results(view: SearchViewModel) -> str:
    """
    Format the session view model for console output.

    Args:
        view: Current view model

    Returns:
        Formatted weather, listings and map summary
    """
    output = [f"\n{'='*60}", f"Rentals in {view.committed_place}", f"{'='*60}\n"]

    if view.weather is not None:
        output.append(
            f"Weather: {round(view.weather.temperature)}°F, {view.weather.condition}, "
            f"wind {view.weather.wind_speed:g} mph\n"
        )
    elif view.weather_error is not None:
        output.append(f"Weather unavailable: {view.weather_error.message}\n")

    if view.listings_error is not None:
        output.append(f"Failed to load properties. {view.listings_error.message}\n")
    elif not view.displayed_listings:
        output.append("No rentals found matching your criteria.\n")
    else:
        output.append(
            f"Showing {len(view.displayed_listings)} of {view.result_count} listing(s)\n\n"
        )
        for listing in view.displayed_listings:
            output.append(format_listing(
                listing,
                is_favorite=listing.id in view.favorites,
                image=view.images.get(listing.id),
            ))
        output.append(format_clusters(list(view.clusters)))

    if view.sources:
        output.append("Sources:\n")
        for source in view.sources:
            output.append(f"   {source.title} - {source.uri}\n")

    if view.storage_error is not None:
        output.append(f"Settings: {view.storage_error.message}\n")

    output.append(f"{'='*60}\n")
    return "".join(line if line.endswith("\n") else line + "\n" for line in output)


def build_filters(args: argparse.Namespace) -> FilterCriteria:
    """Build filter criteria from parsed arguments."""
    return FilterCriteria(
        min_price=args.min_price,
        max_price=args.max_price,
        bedrooms=args.bedrooms,
        bathrooms=args.bathrooms,
        property_type=PropertyType.parse(args.type) if args.type else None,
        rent_to_own=args.rent_to_own,
    )


async def run_search(args: argparse.Namespace) -> int:
    """
    Execute the rental search workflow.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    settings = get_app_settings()
    logger.debug(f"Using configuration: {APP_CONFIG}")

    controller = SearchSessionController(
        GenerativeDataSource(settings.source_config),
        settings=settings,
    )

    if args.suggest is not None:
        for suggestion in await controller.suggest_locations(args.suggest):
            print(suggestion)
        return 0

    controller.set_sort_key(SortKey(args.sort))

    if args.load_settings:
        if not await controller.load_settings():
            logger.info("No saved settings restored, searching with the given arguments")
            await controller.commit_search(args.location or settings.default_place, build_filters(args))
    else:
        await controller.commit_search(args.location or settings.default_place, build_filters(args))

    if args.save_settings and not controller.save_settings():
        logger.warning("Settings could not be saved")

    view = controller.view_model()
    if args.images:
        await asyncio.gather(*(
            controller.on_listing_visible(listing.id)
            for listing in view.displayed_listings[:args.images]
        ))
        view = controller.view_model()

    print(format_results(view))
    return 1 if view.listings_status == LoadStatus.FAILED else 0


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Search rental listings for a place, with weather and a clustered map."
    )
    parser.add_argument("--location", "-l", help="Place to search, e.g. 'Nashville, TN'")
    parser.add_argument("--min-price", type=int, default=500, help="Minimum monthly rent (default: 500)")
    parser.add_argument("--max-price", type=int, default=10000, help="Maximum monthly rent (default: 10000)")
    parser.add_argument("--bedrooms", type=int, help="Minimum bedrooms (default: any)")
    parser.add_argument("--bathrooms", type=float, help="Minimum bathrooms (default: any)")
    parser.add_argument(
        "--type",
        choices=[t.value.lower() for t in PropertyType],
        help="Property type (default: any)",
    )
    parser.add_argument("--rent-to-own", action="store_true", help="Only rent-to-own listings")
    parser.add_argument(
        "--sort",
        choices=[k.value for k in SortKey],
        default=SortKey.PRICE_ASC.value,
        help="Sort order (default: price_asc)",
    )
    parser.add_argument("--images", type=int, default=0, metavar="N", help="Generate images for the first N listings")
    parser.add_argument("--suggest", metavar="PARTIAL", help="Print place suggestions for partial input and exit")
    parser.add_argument("--save-settings", action="store_true", help="Save this search and favorites")
    parser.add_argument("--load-settings", action="store_true", help="Run the saved search")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    if args.min_price > args.max_price:
        logger.error("--min-price must not exceed --max-price")
        return 1
    try:
        return asyncio.run(run_search(args))
    except KeyboardInterrupt:
        logger.info("Search cancelled")
        return 1


if __name__ == "__main__":
    sys.exit(main())
