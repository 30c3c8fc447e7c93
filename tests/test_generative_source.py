"""
Tests for the generative data source with mocked remote clients.
"""

import asyncio
import base64
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from hypothesis import given, strategies as st

from rentscout.config import SourceConfig
from rentscout.data_source import GenerativeDataSource
from rentscout.data_source.generative_source import (
    describe_filters,
    from_data_uri,
    parse_json,
    strip_code_fences,
    to_data_uri,
)
from rentscout.error_handling import MalformedResponseError, RentScoutError
from rentscout.models import FilterCriteria, PropertyType, WeatherSnapshot


def listing_record(listing_id="1", **overrides):
    record = {
        "id": listing_id,
        "address": "100 Broadway",
        "city": "Nashville",
        "state": "TN",
        "zip": "37201",
        "price": 1850,
        "bedrooms": 2,
        "bathrooms": 1.5,
        "sqft": 980,
        "propertyType": "Apartment",
        "amenities": ["Pool", "Gym", "Parking", "Laundry"],
        "imageUrl": "https://picsum.photos/seed/broadway/800/600",
        "lat": 36.16,
        "lng": -86.78,
    }
    record.update(overrides)
    return record


def text_response(text, sources=()):
    content = [SimpleNamespace(type="text", text=text)]
    if sources:
        content.insert(0, SimpleNamespace(
            type="web_search_tool_result",
            content=[SimpleNamespace(url=url, title=title) for title, url in sources],
        ))
    return SimpleNamespace(content=content)


def make_source(response=None, side_effect=None):
    text_client = MagicMock()
    text_client.messages.create = AsyncMock(return_value=response, side_effect=side_effect)
    image_client = MagicMock()
    return GenerativeDataSource(SourceConfig(listing_count=15), text_client, image_client)


def test_fetch_listings_parses_fenced_json_and_sources():
    payload = json.dumps([listing_record("1"), listing_record("2", propertyType="house", price=2600)])
    source = make_source(text_response(
        f"```json\n{payload}\n```",
        sources=[("Zillow", "https://zillow.com/a"), ("Zillow", "https://zillow.com/a")],
    ))

    result = asyncio.run(source.fetch_listings("Nashville, TN", FilterCriteria(bedrooms=2)))

    assert [l.id for l in result.listings] == ["1", "2"]
    assert result.listings[1].property_type == PropertyType.HOUSE
    assert result.listings[0].bathrooms == 1.5
    assert [s.uri for s in result.sources] == ["https://zillow.com/a"]

    request = source.text_client.messages.create.await_args.kwargs
    prompt = request["messages"][0]["content"]
    assert "Nashville, TN" in prompt and "at least 2 bedrooms" in prompt
    assert request["tools"][0]["name"] == "web_search"


def test_fetch_listings_skips_invalid_and_duplicate_records():
    payload = json.dumps([
        listing_record("1"),
        listing_record("2", price=-5),
        listing_record("3", propertyType="Castle"),
        listing_record("1", price=999),
        {"id": "4"},
    ])
    source = make_source(text_response(payload))

    result = asyncio.run(source.fetch_listings("Nashville, TN", FilterCriteria()))

    assert [(l.id, l.price) for l in result.listings] == [("1", 1850)]


def test_fetch_listings_tolerates_surrounding_prose():
    payload = json.dumps([listing_record("1")])
    source = make_source(text_response(f"Here are the listings I found:\n{payload}\nEnjoy!"))

    result = asyncio.run(source.fetch_listings("Nashville, TN", FilterCriteria()))

    assert len(result.listings) == 1


@pytest.mark.parametrize("text", ["Sorry, I could not find anything.", '{"listings": []}', "[1, 2"])
def test_fetch_listings_malformed(text):
    source = make_source(text_response(text))

    with pytest.raises(MalformedResponseError):
        asyncio.run(source.fetch_listings("Nashville, TN", FilterCriteria()))


def test_fetch_listings_with_no_valid_records_is_malformed():
    payload = json.dumps([{"listing_id": "1", "rent": 1500}, {"listing_id": "2", "rent": 1700}])
    source = make_source(text_response(payload))

    with pytest.raises(MalformedResponseError):
        asyncio.run(source.fetch_listings("Nashville, TN", FilterCriteria()))


def test_fetch_listings_empty_array_is_valid_empty_result():
    source = make_source(text_response("[]"))

    result = asyncio.run(source.fetch_listings("Nowhere, NV", FilterCriteria()))

    assert result.listings == ()


def test_fetch_weather():
    source = make_source(text_response('{"temperature": 71.5, "condition": "Partly Cloudy", "windSpeed": 8}'))

    weather = asyncio.run(source.fetch_weather("Nashville, TN"))

    assert weather == WeatherSnapshot(71.5, "Partly Cloudy", 8.0)


def test_fetch_weather_invalid_payload():
    source = make_source(text_response('{"temperature": "warm"}'))

    with pytest.raises(MalformedResponseError):
        asyncio.run(source.fetch_weather("Nashville, TN"))


def test_rate_limit_error_propagates_unchanged():
    error = RuntimeError("Error code: 429 - rate_limit_error")
    source = make_source(side_effect=error)

    with pytest.raises(RuntimeError) as exc_info:
        asyncio.run(source.fetch_weather("Nashville, TN"))
    assert exc_info.value is error


def test_location_suggestions_best_effort():
    source = make_source(text_response('{"suggestions": ["Nashville, TN", "Nashua, NH"]}'))
    assert asyncio.run(source.fetch_location_suggestions("Nash")) == ["Nashville, TN", "Nashua, NH"]

    failing = make_source(side_effect=RuntimeError("down"))
    assert asyncio.run(failing.fetch_location_suggestions("Nash")) == []

    assert asyncio.run(source.fetch_location_suggestions("   ")) == []
    assert source.text_client.messages.create.await_count == 1


def test_missing_api_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    source = GenerativeDataSource()

    with pytest.raises(RentScoutError):
        asyncio.run(source.fetch_weather("Nashville, TN"))
    with pytest.raises(RentScoutError):
        asyncio.run(source.generate_image("a house"))


def test_generate_image_returns_data_uri():
    source = make_source()
    source.image_client.aio.models.generate_images = AsyncMock(return_value=SimpleNamespace(
        generated_images=[SimpleNamespace(image=SimpleNamespace(image_bytes=b"png-bytes", mime_type="image/png"))]
    ))

    image_ref = asyncio.run(source.generate_image("a house"))

    assert image_ref == "data:image/png;base64," + base64.b64encode(b"png-bytes").decode()


def test_generate_image_without_result_is_malformed():
    source = make_source()
    source.image_client.aio.models.generate_images = AsyncMock(
        return_value=SimpleNamespace(generated_images=[])
    )

    with pytest.raises(MalformedResponseError):
        asyncio.run(source.generate_image("a house"))


def test_enhance_image_returns_new_image():
    source = make_source()
    source.image_client.aio.models.generate_content = AsyncMock(return_value=SimpleNamespace(candidates=[
        SimpleNamespace(content=SimpleNamespace(parts=[
            SimpleNamespace(inline_data=None, text="Here you go"),
            SimpleNamespace(inline_data=SimpleNamespace(data=b"sharper", mime_type="image/png")),
        ]))
    ]))

    enhanced = asyncio.run(source.enhance_image(to_data_uri(b"original", "image/png")))

    assert from_data_uri(enhanced) == (b"sharper", "image/png")


def test_enhance_rejects_non_generated_image():
    source = make_source()
    with pytest.raises(ValueError):
        asyncio.run(source.enhance_image("https://picsum.photos/seed/x/800/600"))


@given(data=st.binary(max_size=64), mime=st.sampled_from(["image/png", "image/jpeg", "image/webp"]))
def test_data_uri_round_trip(data, mime):
    assert from_data_uri(to_data_uri(data, mime)) == (data, mime)


def test_helpers():
    assert strip_code_fences("```\n[1]\n```") == "[1]"
    assert strip_code_fences("  [1]  ") == "[1]"
    assert parse_json("[1]", list) == [1]
    assert describe_filters(FilterCriteria()) == "- monthly price between $500 and $10000"
    assert "rent-to-own" in describe_filters(FilterCriteria(rent_to_own=True))
