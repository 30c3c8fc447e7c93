"""
Tests for lazy image acquisition and enhancement.
"""

import asyncio
from unittest.mock import AsyncMock, patch

from conftest import FakeDataSource, make_listing
from rentscout.cache import ResultCache, image_key
from rentscout.error_handling import MalformedResponseError, RetryConfig
from rentscout.images import ImageAssetPipeline, ImageOrigin, ImageStatus, describe_listing


NO_WAIT = RetryConfig(max_retries=2, initial_delay_seconds=0, jitter_seconds=0)


def make_pipeline(source=None, cache=None):
    return ImageAssetPipeline(
        source or FakeDataSource(), cache if cache is not None else ResultCache(), NO_WAIT
    )


def test_unseen_listing_has_no_image():
    pipeline = make_pipeline()
    assert pipeline.get("1").status == ImageStatus.NONE
    assert not pipeline.can_enhance("1")


def test_first_visibility_generates_once():
    source = FakeDataSource()
    pipeline = make_pipeline(source)
    listing = make_listing("1")

    async def scenario():
        first = await pipeline.on_visible(listing)
        second = await pipeline.on_visible(listing)
        return first, second

    first, second = asyncio.run(scenario())

    assert first.status == ImageStatus.READY
    assert first.origin == ImageOrigin.GENERATED
    assert second == first
    assert len(source.image_calls) == 1
    assert source.image_calls[0] == describe_listing(listing)


def test_concurrent_visibility_events_fetch_once():
    source = FakeDataSource()
    pipeline = make_pipeline(source)
    listing = make_listing("1")

    async def scenario():
        return await asyncio.gather(*(pipeline.on_visible(listing) for _ in range(5)))

    asyncio.run(scenario())

    assert len(source.image_calls) == 1
    assert pipeline.get("1").status == ImageStatus.READY


def test_cached_image_is_reused_without_fetch():
    source = FakeDataSource()
    cache = ResultCache()
    cache.put(image_key("1"), "data:image/png;base64,cached")
    pipeline = make_pipeline(source, cache)

    asset = asyncio.run(pipeline.on_visible(make_listing("1")))

    assert asset.image_ref == "data:image/png;base64,cached"
    assert source.image_calls == []


def test_generation_failure_falls_back_to_placeholder():
    source = FakeDataSource()
    source.image_error = RuntimeError("429 RESOURCE_EXHAUSTED")
    pipeline = make_pipeline(source)
    listing = make_listing("1")

    with patch('asyncio.sleep', new_callable=AsyncMock):
        asset = asyncio.run(pipeline.on_visible(listing))

    assert asset.status == ImageStatus.READY
    assert asset.origin == ImageOrigin.PLACEHOLDER
    assert asset.image_ref == listing.image_url
    assert asset.error is not None
    assert len(source.image_calls) == NO_WAIT.max_retries + 1
    assert image_key("1") not in pipeline.cache
    assert not pipeline.can_enhance("1")


def test_enhancement_replaces_cached_image():
    source = FakeDataSource()
    pipeline = make_pipeline(source)

    async def scenario():
        generated = await pipeline.on_visible(make_listing("1"))
        enhanced = await pipeline.enhance("1")
        return generated, enhanced

    generated, enhanced = asyncio.run(scenario())

    assert enhanced is True
    asset = pipeline.get("1")
    assert asset.status == ImageStatus.ENHANCED
    assert asset.image_ref == generated.image_ref + "-enhanced"
    assert pipeline.cache.get(image_key("1")) == asset.image_ref
    assert not pipeline.can_enhance("1"), "Enhancement is one-shot"


def test_second_enhancement_while_in_flight_is_noop():
    source = FakeDataSource()
    pipeline = make_pipeline(source)

    async def scenario():
        await pipeline.on_visible(make_listing("1"))
        source.enhance_gate = asyncio.Event()
        first = asyncio.create_task(pipeline.enhance("1"))
        await asyncio.sleep(0)
        assert pipeline.get("1").status == ImageStatus.ENHANCING
        second = await pipeline.enhance("1")
        source.enhance_gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first is True
    assert second is False
    assert len(source.enhance_calls) == 1


def test_enhancement_failure_keeps_prior_image():
    source = FakeDataSource()
    source.enhance_error = MalformedResponseError("no image in response")
    pipeline = make_pipeline(source)

    async def scenario():
        generated = await pipeline.on_visible(make_listing("1"))
        return generated, await pipeline.enhance("1")

    generated, enhanced = asyncio.run(scenario())

    assert enhanced is False
    asset = pipeline.get("1")
    assert asset.status == ImageStatus.READY
    assert asset.image_ref == generated.image_ref
    assert asset.error is not None
    assert pipeline.cache.get(image_key("1")) == generated.image_ref


def test_unrelated_listings_enhance_concurrently():
    source = FakeDataSource()
    pipeline = make_pipeline(source)

    async def scenario():
        await asyncio.gather(pipeline.on_visible(make_listing("1")), pipeline.on_visible(make_listing("2")))
        return await asyncio.gather(pipeline.enhance("1"), pipeline.enhance("2"))

    assert asyncio.run(scenario()) == [True, True]
    assert len(source.enhance_calls) == 2


def test_reused_id_for_a_different_listing_regenerates():
    source = FakeDataSource()
    pipeline = make_pipeline(source)
    nashville_home = make_listing("1", state="TN")
    austin_home = make_listing("1", state="TX", bedrooms=4)

    async def scenario():
        first = await pipeline.on_visible(nashville_home)
        again = await pipeline.on_visible(nashville_home)
        second = await pipeline.on_visible(austin_home)
        return first, again, second

    first, again, second = asyncio.run(scenario())

    assert again == first
    assert second.status == ImageStatus.READY
    assert second.image_ref != first.image_ref
    assert source.image_calls == [describe_listing(nashville_home), describe_listing(austin_home)]
    assert pipeline.cache.get(image_key("1")) == second.image_ref
