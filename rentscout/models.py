"""
Data models for Rent Scout.

This module defines the core data structures used throughout the application.
"""

from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from typing import Optional, Tuple


class PropertyType(str, Enum):
    """Closed set of rental categories."""
    APARTMENT = "Apartment"
    HOUSE = "House"
    CONDO = "Condo"
    TOWNHOUSE = "Townhouse"

    @classmethod
    def parse(cls, value: str) -> 'PropertyType':
        """Parse a category name case-insensitively.

        Raises:
            ValueError: If the value is not a known category
        """
        for member in cls:
            if member.value.lower() == str(value).strip().lower():
                return member
        raise ValueError(f"Unknown property type: {value!r}")


class SortKey(str, Enum):
    """Ordering applied to the displayed listing set."""
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    AREA_DESC = "sqft_desc"


@dataclass(frozen=True)
class School:
    """A private school near a listing."""
    name: str
    distance: str


@dataclass(frozen=True)
class Contact:
    """Listing contact. Every field is independently optional."""
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class Listing:
    """Represents a rental listing.

    Attributes:
        id: Identifier, unique within a result set
        address: Street address
        city: City name
        state: State or region code
        zip_code: Postal code
        latitude: Latitude in degrees
        longitude: Longitude in degrees
        price: Monthly rent in USD
        bedrooms: Bedroom count
        bathrooms: Bathroom count, possibly fractional (1.5)
        sqft: Floor area in square feet
        property_type: Rental category
        amenities: Key amenities
        image_url: Placeholder image reference shipped with the listing
        is_rent_to_own: Whether the listing offers a rent-to-own option
        private_schools: Nearby private schools
        contact: Optional contact record
    """
    id: str
    address: str
    city: str
    state: str
    zip_code: str
    latitude: float
    longitude: float
    price: float
    bedrooms: int
    bathrooms: float
    sqft: float
    property_type: PropertyType
    amenities: Tuple[str, ...] = ()
    image_url: str = ""
    is_rent_to_own: bool = False
    private_schools: Tuple[School, ...] = ()
    contact: Optional[Contact] = None

    def __post_init__(self):
        for name in ('price', 'bedrooms', 'bathrooms', 'sqft'):
            if getattr(self, name) < 0:
                raise ValueError(f"Listing {self.id}: {name} must be non-negative")

    @property
    def full_address(self) -> str:
        return f"{self.address}, {self.city}, {self.state} {self.zip_code}".strip()

    def to_dict(self) -> dict:
        """Convert listing to dictionary for JSON serialization.

        Returns:
            Dictionary representation with the enum converted to its value
        """
        data = asdict(self)
        data['property_type'] = self.property_type.value
        data['amenities'] = list(self.amenities)
        data['private_schools'] = [asdict(s) for s in self.private_schools]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Listing':
        """Create Listing instance from dictionary.

        Args:
            data: Dictionary containing listing data

        Returns:
            Listing instance
        """
        data = dict(data)
        data['property_type'] = PropertyType.parse(data['property_type'])
        data['amenities'] = tuple(data.get('amenities') or ())
        data['private_schools'] = tuple(
            School(**s) for s in data.get('private_schools') or ()
        )
        if data.get('contact') is not None:
            data['contact'] = Contact(**data['contact'])
        return cls(**data)


ANY = "any"


@dataclass(frozen=True)
class FilterCriteria:
    """User search filters.

    ``None`` stands for "any" on the optional bounds. Instances are immutable
    and take part in the listings cache key.

    Attributes:
        min_price: Minimum monthly price (inclusive)
        max_price: Maximum monthly price (inclusive)
        bedrooms: Minimum bedroom count, None for any
        bathrooms: Minimum bathroom count, None for any
        property_type: Exact category, None for any
        rent_to_own: Only listings offering rent-to-own
    """
    min_price: int = 500
    max_price: int = 10000
    bedrooms: Optional[int] = None
    bathrooms: Optional[float] = None
    property_type: Optional[PropertyType] = None
    rent_to_own: bool = False

    def __post_init__(self):
        if self.min_price > self.max_price:
            raise ValueError(
                f"min_price ({self.min_price}) must not exceed max_price ({self.max_price})"
            )

    def cache_token(self) -> str:
        """Deterministic string form; any differing field gives a different token."""
        return "|".join([
            f"price={self.min_price}-{self.max_price}",
            f"beds={ANY if self.bedrooms is None else self.bedrooms}",
            f"baths={ANY if self.bathrooms is None else float(self.bathrooms)}",
            f"type={ANY if self.property_type is None else self.property_type.value}",
            f"rto={int(self.rent_to_own)}",
        ])

    def to_dict(self) -> dict:
        return {
            'price': {'min': self.min_price, 'max': self.max_price},
            'bedrooms': ANY if self.bedrooms is None else self.bedrooms,
            'bathrooms': ANY if self.bathrooms is None else self.bathrooms,
            'property_type': ANY if self.property_type is None else self.property_type.value,
            'rent_to_own': self.rent_to_own,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'FilterCriteria':
        price = data.get('price') or {}
        bedrooms = data.get('bedrooms', ANY)
        bathrooms = data.get('bathrooms', ANY)
        property_type = data.get('property_type', ANY)
        defaults = cls()
        return cls(
            min_price=int(price.get('min', defaults.min_price)),
            max_price=int(price.get('max', defaults.max_price)),
            bedrooms=None if bedrooms == ANY else int(bedrooms),
            bathrooms=None if bathrooms == ANY else float(bathrooms),
            property_type=None if property_type == ANY else PropertyType.parse(property_type),
            rent_to_own=bool(data.get('rent_to_own', False)),
        )

    def with_changes(self, **changes) -> 'FilterCriteria':
        return replace(self, **changes)


@dataclass(frozen=True)
class WeatherSnapshot:
    """Current weather for a place. Replaced wholesale on every new place."""
    temperature: float
    condition: str
    wind_speed: float

    @property
    def temperature_celsius(self) -> float:
        return (self.temperature - 32) * 5 / 9


@dataclass(frozen=True)
class Source:
    """Provenance record for a listings response."""
    title: str
    uri: str


@dataclass(frozen=True)
class ListingSearchResult:
    """Listings plus the sources they were grounded on."""
    listings: Tuple[Listing, ...] = ()
    sources: Tuple[Source, ...] = field(default_factory=tuple)
