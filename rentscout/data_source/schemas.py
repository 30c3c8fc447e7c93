"""Wire models for data source responses"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

from rentscout.models import (
    Contact,
    Listing,
    PropertyType,
    School,
    WeatherSnapshot,
)


class SchoolPayload(BaseModel):
    name: str
    distance: str


class ContactPayload(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


class ListingPayload(BaseModel):
    """One listing as returned by the generation model"""
    id: str
    address: str
    city: str
    state: str
    zip: str = ""
    price: float = Field(ge=0)
    bedrooms: int = Field(ge=0)
    bathrooms: float = Field(ge=0)
    sqft: float = Field(ge=0)
    propertyType: PropertyType
    amenities: List[str] = []
    imageUrl: str = ""
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    isRentToOwn: bool = False
    privateSchools: List[SchoolPayload] = []
    contact: Optional[ContactPayload] = None

    @field_validator('propertyType', mode='before')
    @classmethod
    def _parse_property_type(cls, value):
        return PropertyType.parse(value) if isinstance(value, str) else value

    @field_validator('id', mode='before')
    @classmethod
    def _coerce_id(cls, value):
        return str(value) if isinstance(value, int) else value

    def to_listing(self) -> Listing:
        return Listing(
            id=self.id,
            address=self.address,
            city=self.city,
            state=self.state,
            zip_code=self.zip,
            latitude=self.lat,
            longitude=self.lng,
            price=self.price,
            bedrooms=self.bedrooms,
            bathrooms=self.bathrooms,
            sqft=self.sqft,
            property_type=self.propertyType,
            amenities=tuple(self.amenities),
            image_url=self.imageUrl,
            is_rent_to_own=self.isRentToOwn,
            private_schools=tuple(School(s.name, s.distance) for s in self.privateSchools),
            contact=Contact(**self.contact.model_dump()) if self.contact else None,
        )


class WeatherPayload(BaseModel):
    """Current weather as returned by the generation model"""
    temperature: float
    condition: str
    windSpeed: float = Field(ge=0)

    def to_snapshot(self) -> WeatherSnapshot:
        return WeatherSnapshot(
            temperature=self.temperature,
            condition=self.condition,
            wind_speed=self.windSpeed,
        )


class SuggestionsPayload(BaseModel):
    suggestions: List[str] = []
