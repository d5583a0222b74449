"""Tests for the live update feed."""

import asyncio
import json

import pytest

from shortlinks.database import ClickMetadata
from shortlinks.feed import FeedState, LiveUpdateFeed, format_event


def parse_frame(frame: str) -> dict:
    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    return json.loads(frame[len("data: "):])


async def open_feed(store, short_code: str) -> LiveUpdateFeed:
    return LiveUpdateFeed(store, short_code, await store.watch(short_code))


@pytest.fixture
async def link(store):
    return await store.create("https://example.com", "live", "octocat")


@pytest.mark.asyncio
class TestLiveUpdateFeed:
    """Feed behaviour against each store backend."""

    async def test_silent_until_first_increment(self, store, link):
        feed = await open_feed(store, "live")
        assert feed.state == FeedState.IDLE

        next_frame = asyncio.create_task(feed.__anext__())
        await asyncio.sleep(0.05)
        assert not next_frame.done()
        assert feed.state == FeedState.WAITING

        await store.increment_click("live", ClickMetadata("1.2.3.4", "agent", "FR"))
        payload = parse_frame(await asyncio.wait_for(next_frame, timeout=5))

        assert payload == {
            "clickCount": 1,
            "clickAnalytics": {"ipAddress": "1.2.3.4", "userAgent": "agent", "country": "FR"},
        }
        await feed.aclose()

    async def test_one_event_per_increment(self, store, link):
        feed = await open_feed(store, "live")

        for i in range(1, 4):
            next_frame = asyncio.create_task(feed.__anext__())
            await asyncio.sleep(0.01)
            await store.increment_click("live", ClickMetadata(user_agent=f"agent-{i}"))

            payload = parse_frame(await asyncio.wait_for(next_frame, timeout=5))
            assert payload["clickCount"] == i
            assert payload["clickAnalytics"]["userAgent"] == f"agent-{i}"

        assert feed.events_emitted == 3
        await feed.aclose()

    async def test_cancel_stops_emission(self, store, link):
        feed = await open_feed(store, "live")

        next_frame = asyncio.create_task(feed.__anext__())
        await asyncio.sleep(0.05)

        await feed.aclose()

        with pytest.raises(StopAsyncIteration):
            await asyncio.wait_for(next_frame, timeout=5)
        assert feed.state == FeedState.CLOSED
        assert feed.handle.cancelled

        await store.increment_click("live", ClickMetadata())
        await store.increment_click("live", ClickMetadata())

        with pytest.raises(StopAsyncIteration):
            await feed.__anext__()
        assert feed.events_emitted == 0

    async def test_async_for_ends_after_close(self, store, link):
        feed = await open_feed(store, "live")
        frames = []

        async def consume():
            async for frame in feed:
                frames.append(parse_frame(frame))

        consumer = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        await store.increment_click("live", ClickMetadata())
        for _ in range(100):
            if frames:
                break
            await asyncio.sleep(0.01)

        await feed.aclose()
        await asyncio.wait_for(consumer, timeout=5)

        assert [f["clickCount"] for f in frames] == [1]


@pytest.mark.asyncio
class TestFeedDetails:
    """Feed details checked against the in-memory store."""

    async def test_no_deduplication(self, memory_store):
        await memory_store.create("https://example.com", "live", "octocat")
        await memory_store.increment_click("live", ClickMetadata())
        feed = await open_feed(memory_store, "live")

        # Two change notifications without a new click
        memory_store._notify("live")
        memory_store._notify("live")

        first = await asyncio.wait_for(feed.__anext__(), timeout=5)
        second = await asyncio.wait_for(feed.__anext__(), timeout=5)

        assert first == second
        assert parse_frame(first)["clickCount"] == 1
        await feed.aclose()

    async def test_snapshot_without_clicks(self, memory_store):
        await memory_store.create("https://example.com", "live", "octocat")
        feed = await open_feed(memory_store, "live")

        assert await feed.snapshot() == {"clickCount": 0, "clickAnalytics": None}
        await feed.aclose()

    async def test_context_manager_releases_watch(self, memory_store):
        await memory_store.create("https://example.com", "live", "octocat")

        async with await open_feed(memory_store, "live") as feed:
            assert memory_store._watchers["live"]

        assert feed.state == FeedState.CLOSED
        assert "live" not in memory_store._watchers

    async def test_feeds_are_independent(self, memory_store):
        await memory_store.create("https://example.com", "live", "octocat")
        first = await open_feed(memory_store, "live")
        second = await open_feed(memory_store, "live")

        await first.aclose()

        next_frame = asyncio.create_task(second.__anext__())
        await asyncio.sleep(0)
        await memory_store.increment_click("live", ClickMetadata())

        assert parse_frame(await asyncio.wait_for(next_frame, timeout=5))["clickCount"] == 1
        await second.aclose()


def test_format_event():
    assert format_event({"clickCount": 2, "clickAnalytics": None}) == (
        'data: {"clickCount": 2, "clickAnalytics": null}\n\n'
    )
