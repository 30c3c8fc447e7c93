"""
Generative data source - listings, weather and suggestions from Claude,
listing imagery from the Gemini/Imagen image models.
"""

import base64
import json
import logging
import os
import re
from typing import Any, List, Optional, Tuple

import anthropic
from google import genai
from google.genai import types
from pydantic import ValidationError

from rentscout.config.app_config import SourceConfig
from rentscout.error_handling import MalformedResponseError, RentScoutError
from rentscout.models import (
    FilterCriteria,
    Listing,
    ListingSearchResult,
    Source,
    WeatherSnapshot,
)
from .base import RentalDataSource
from .schemas import ListingPayload, SuggestionsPayload, WeatherPayload


logger = logging.getLogger(__name__)

LISTINGS_PROMPT = """Search the web extensively to find a diverse and realistic list of {count} rental property listings in {place}. Look for properties from various sources like real estate websites, apartment complex sites, and local classifieds to ensure a wide range of options.

Only include listings matching these filters:
{filters}

Format the response as a valid JSON array of objects. Each object must have these fields:
  id: string, a unique identifier
  address: string
  city: string
  state: string
  zip: string
  price: number, monthly rent in USD
  bedrooms: integer
  bathrooms: number, can be fractional such as 1.5
  sqft: number
  propertyType: one of "Apartment", "House", "Condo", "Townhouse"
  amenities: list of 4-6 key amenities
  imageUrl: a unique placeholder URL such as https://picsum.photos/seed/{{unique_word}}/800/600
  lat: number, plausible latitude for the location
  lng: number, plausible longitude for the location
  isRentToOwn: boolean
  privateSchools: list of up to 3 objects with "name" and "distance" (e.g. "1.2 miles")
  contact: object with optional "name", "phone" and "email"

Ensure the entire response is only the JSON array, with no surrounding text or markdown."""

WEATHER_PROMPT = """Get the current weather for {place}. Respond with only a JSON object with the fields "temperature" (number, Fahrenheit), "condition" (short description such as "Sunny" or "Partly Cloudy") and "windSpeed" (number, mph)."""

SUGGESTIONS_PROMPT = """Provide up to 5 city name suggestions for the partial input "{partial}". The suggestions should be in the format 'City, State' or 'City, Country'. Respond with only a JSON object of the form {{"suggestions": [...]}}."""

ENHANCE_PROMPT = (
    "Enhance this real estate photo: improve lighting, color balance and sharpness "
    "while keeping the property exactly as it is. Return the enhanced image."
)

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding Markdown code fence, if any."""
    text = text.strip()
    match = _FENCE_PATTERN.match(text)
    return match.group(1).strip() if match else text


def parse_json(text: str, expected: type) -> Any:
    """Parse model output as JSON of the expected top-level type.

    Raises:
        MalformedResponseError: If the text is not JSON of that type
    """
    cleaned = strip_code_fences(text)
    try:
        value = json.loads(cleaned)
    except json.JSONDecodeError:
        # Tolerate prose around the payload by cutting to the outermost brackets.
        opener, closer = ('[', ']') if expected is list else ('{', '}')
        start, end = cleaned.find(opener), cleaned.rfind(closer)
        if start == -1 or end <= start:
            raise MalformedResponseError("Response did not contain JSON")
        try:
            value = json.loads(cleaned[start:end + 1])
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"Response JSON could not be parsed: {e}") from e

    if not isinstance(value, expected):
        raise MalformedResponseError(
            f"Expected a JSON {expected.__name__}, got {type(value).__name__}"
        )
    return value


def describe_filters(filters: FilterCriteria) -> str:
    lines = [f"- monthly price between ${filters.min_price} and ${filters.max_price}"]
    if filters.bedrooms is not None:
        lines.append(f"- at least {filters.bedrooms} bedrooms")
    if filters.bathrooms is not None:
        lines.append(f"- at least {filters.bathrooms:g} bathrooms")
    if filters.property_type is not None:
        lines.append(f"- property type {filters.property_type.value}")
    if filters.rent_to_own:
        lines.append("- rent-to-own option available")
    return "\n".join(lines)


def parse_listings(items: List[Any]) -> Tuple[Listing, ...]:
    """Validate listing records, skipping invalid ones and repeated ids."""
    listings: List[Listing] = []
    seen_ids = set()
    for index, item in enumerate(items):
        try:
            listing = ListingPayload.model_validate(item).to_listing()
        except (ValidationError, ValueError) as e:
            logger.warning(f"Skipping invalid listing record #{index}: {e}")
            continue
        if listing.id in seen_ids:
            logger.warning(f"Skipping listing with duplicate id {listing.id}")
            continue
        seen_ids.add(listing.id)
        listings.append(listing)
    return tuple(listings)


def to_data_uri(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def from_data_uri(image_ref: str) -> Tuple[bytes, str]:
    """Decode a data URI into raw bytes and mime type.

    Raises:
        ValueError: If image_ref is not a base64 data URI
    """
    match = re.match(r"^data:([\w/+.-]+);base64,(.*)$", image_ref, re.DOTALL)
    if not match:
        raise ValueError("Only generated (data URI) images can be enhanced")
    return base64.b64decode(match.group(2)), match.group(1)


class GenerativeDataSource(RentalDataSource):
    """
    Data source backed by generation models.

    Uses the Anthropic Messages API with web search for listings, weather and
    location suggestions, and the Google Gen AI SDK for listing imagery.
    """

    def __init__(
        self,
        config: Optional[SourceConfig] = None,
        text_client: Optional[anthropic.AsyncAnthropic] = None,
        image_client: Optional[genai.Client] = None
    ):
        """
        Initialize the data source.

        Args:
            config: Model names and listing count
            text_client: Anthropic client (default: built from ANTHROPIC_API_KEY)
            image_client: Google Gen AI client (default: built from GEMINI_API_KEY/GOOGLE_API_KEY)
        """
        self.config = config or SourceConfig()

        if text_client is None:
            api_key = os.getenv("ANTHROPIC_API_KEY")
            text_client = anthropic.AsyncAnthropic(api_key=api_key) if api_key else None
        self.text_client = text_client

        if image_client is None:
            api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
            image_client = genai.Client(api_key=api_key) if api_key else None
        self.image_client = image_client

    async def _ask(self, prompt: str, max_tokens: int, web_search: bool = False) -> Any:
        if self.text_client is None:
            raise RentScoutError("ANTHROPIC_API_KEY is not set")

        request = {
            "model": self.config.text_model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        if web_search:
            request["tools"] = [{
                "type": "web_search_20250305",
                "name": "web_search",
                "max_uses": self.config.max_web_searches,
            }]
        return await self.text_client.messages.create(**request)

    @staticmethod
    def _response_text(response: Any) -> str:
        return "".join(
            block.text for block in response.content
            if getattr(block, "type", None) == "text"
        )

    @staticmethod
    def _response_sources(response: Any) -> Tuple[Source, ...]:
        sources: List[Source] = []
        seen = set()
        for block in response.content:
            if getattr(block, "type", None) != "web_search_tool_result":
                continue
            results = block.content if isinstance(block.content, list) else []
            for result in results:
                url = getattr(result, "url", None)
                if url and url not in seen:
                    seen.add(url)
                    sources.append(Source(title=getattr(result, "title", "") or url, uri=url))
        return tuple(sources)

    async def fetch_listings(self, place: str, filters: FilterCriteria) -> ListingSearchResult:
        prompt = LISTINGS_PROMPT.format(
            count=self.config.listing_count,
            place=place,
            filters=describe_filters(filters),
        )
        response = await self._ask(prompt, max_tokens=8000, web_search=True)

        items = parse_json(self._response_text(response), list)
        listings = parse_listings(items)
        if items and not listings:
            raise MalformedResponseError(
                f"None of the {len(items)} listing records could be validated"
            )
        sources = self._response_sources(response)
        logger.info(f"Received {len(listings)} listings and {len(sources)} sources for {place}")
        return ListingSearchResult(listings=listings, sources=sources)

    async def fetch_weather(self, place: str) -> WeatherSnapshot:
        response = await self._ask(WEATHER_PROMPT.format(place=place), max_tokens=300)
        data = parse_json(self._response_text(response), dict)
        try:
            return WeatherPayload.model_validate(data).to_snapshot()
        except ValidationError as e:
            raise MalformedResponseError(f"Invalid weather payload: {e}") from e

    async def fetch_location_suggestions(self, partial_place: str) -> List[str]:
        if not partial_place.strip():
            return []
        try:
            response = await self._ask(
                SUGGESTIONS_PROMPT.format(partial=partial_place.strip()), max_tokens=300
            )
            data = parse_json(self._response_text(response), dict)
            return SuggestionsPayload.model_validate(data).suggestions[:5]
        except Exception as e:
            logger.warning(f"Location suggestions failed for {partial_place!r}: {e}")
            return []

    def _require_image_client(self) -> genai.Client:
        if self.image_client is None:
            raise RentScoutError("GEMINI_API_KEY is not set")
        return self.image_client

    async def generate_image(self, subject: str) -> str:
        client = self._require_image_client()
        response = await client.aio.models.generate_images(
            model=self.config.image_model,
            prompt=subject,
            config=types.GenerateImagesConfig(number_of_images=1),
        )
        generated = response.generated_images or []
        if not generated or generated[0].image is None or not generated[0].image.image_bytes:
            raise MalformedResponseError("Image generation returned no image")
        image = generated[0].image
        return to_data_uri(image.image_bytes, image.mime_type or "image/png")

    async def enhance_image(self, image_ref: str) -> str:
        client = self._require_image_client()
        raw, mime_type = from_data_uri(image_ref)
        response = await client.aio.models.generate_content(
            model=self.config.enhance_model,
            contents=[types.Part.from_bytes(data=raw, mime_type=mime_type), ENHANCE_PROMPT],
        )
        for candidate in response.candidates or []:
            if candidate.content is None:
                continue
            for part in candidate.content.parts or []:
                if part.inline_data is not None and part.inline_data.data:
                    return to_data_uri(part.inline_data.data, part.inline_data.mime_type or mime_type)
        raise MalformedResponseError("Image enhancement returned no image")
