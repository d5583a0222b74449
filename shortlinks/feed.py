"""Live click updates for a single short link, as Server-Sent Events."""

import json
import logging
from enum import Enum
from typing import Any, Dict, Optional

from .database.base import LinkStoreBase, WatchHandle


class FeedState(str, Enum):
    IDLE = "idle"
    WAITING = "waiting"
    EMITTING = "emitting"
    CLOSED = "closed"


def format_event(payload: Dict[str, Any]) -> str:
    """Format one SSE frame."""
    return f"data: {json.dumps(payload)}\n\n"


class LiveUpdateFeed:
    """Turns a watch handle into a stream of SSE frames.

    Every change notification yields exactly one frame carrying the current
    click count and the click event stored under that count. The feed only
    ends when it is closed; closing cancels the watch handle, which also
    unblocks a pending wait.

    One feed serves one connection::

        async with LiveUpdateFeed(store, code, await store.watch(code)) as feed:
            async for frame in feed:
                ...
    """

    def __init__(
        self,
        store: LinkStoreBase,
        short_code: str,
        handle: WatchHandle,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.short_code = short_code
        self.handle = handle
        self.logger = logger or logging.getLogger(__name__)
        self.state = FeedState.IDLE
        self.events_emitted = 0

    def __aiter__(self) -> "LiveUpdateFeed":
        return self

    async def __anext__(self) -> str:
        if self.state == FeedState.CLOSED:
            raise StopAsyncIteration

        self.state = FeedState.WAITING
        changed = await self.handle.wait()
        if not changed or self.state == FeedState.CLOSED:
            self.state = FeedState.CLOSED
            raise StopAsyncIteration

        self.state = FeedState.EMITTING
        payload = await self.snapshot()
        if self.state == FeedState.CLOSED:
            raise StopAsyncIteration

        self.events_emitted += 1
        self.state = FeedState.WAITING
        self.logger.debug(f"Feed update for {self.short_code}: {payload['clickCount']} clicks")
        return format_event(payload)

    async def snapshot(self) -> Dict[str, Any]:
        """Read the current count and the analytics for that ordinal."""
        link = await self.store.get(self.short_code)
        click_count = link.click_count if link else 0

        click_analytics = None
        if click_count > 0:
            event = await self.store.get_click_event(self.short_code, click_count)
            if event is not None:
                click_analytics = event.to_dict()

        return {"clickCount": click_count, "clickAnalytics": click_analytics}

    async def aclose(self) -> None:
        """Stop the feed and cancel its watch handle."""
        if self.state == FeedState.CLOSED and self.handle.cancelled:
            return
        self.state = FeedState.CLOSED
        await self.handle.cancel()
        self.logger.debug(f"Feed for {self.short_code} closed after {self.events_emitted} events")

    async def __aenter__(self) -> "LiveUpdateFeed":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
