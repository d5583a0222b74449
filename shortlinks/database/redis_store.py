"""Redis implementation of the link store."""

import json
import logging
from contextlib import asynccontextmanager
from typing import List, Optional, Union

import redis.asyncio as redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.exceptions import WatchError

from ..errors import LinkNotFoundError, StoreUnavailableError
from .base import LinkStoreBase, WatchHandle
from .models import ClickEvent, ClickMetadata, Conflict, Identity, ShortLink, utcnow


class RedisWatchHandle(WatchHandle):
    """Watch handle backed by a Redis pub/sub subscription."""

    def __init__(self, store: "RedisLinkStore", pubsub, short_code: str, read_timeout: float = 5.0):
        super().__init__(short_code)
        self._store = store
        self._pubsub = pubsub
        self.read_timeout = read_timeout

    async def _next_change(self) -> None:
        # Each read blocks until a message arrives or read_timeout elapses
        while True:
            async with self._store._guard("watch"):
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=self.read_timeout,
                )
            if message and message["type"] == "message":
                return

    async def _release(self) -> None:
        await self._pubsub.aclose()


class RedisLinkStore(LinkStoreBase):
    """Redis implementation of link store operations.

    Keys:
        link:{code}                 link record (JSON)
        link:{code}:click:{ordinal} click event (JSON)
        owner:{login}:links         set of short codes
        session:{id}                identity (JSON)

    Every click increment is published on ``link:{code}:changes``.
    """

    def __init__(
        self,
        store_url: str,
        client: Optional[redis.Redis] = None,
        max_increment_retries: int = 100,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis store.

        Args:
            store_url: Redis connection URL (e.g., redis://localhost:6379/0)
            client: Optional pre-built client (used by tests)
            max_increment_retries: Give up on an increment after this many
                WATCH conflicts
            logger: Optional logger instance
        """
        super().__init__(store_url)
        self.logger = logger or logging.getLogger(__name__)
        self.max_increment_retries = max_increment_retries
        self.client = client or redis.from_url(
            store_url,
            encoding="utf-8",
            decode_responses=True,
        )

    @staticmethod
    def link_key(short_code: str) -> str:
        return f"link:{short_code}"

    @staticmethod
    def click_key(short_code: str, ordinal: int) -> str:
        return f"link:{short_code}:click:{ordinal}"

    @staticmethod
    def owner_key(owner: str) -> str:
        return f"owner:{owner}:links"

    @staticmethod
    def session_key(session_id: str) -> str:
        return f"session:{session_id}"

    @staticmethod
    def channel(short_code: str) -> str:
        return f"link:{short_code}:changes"

    @asynccontextmanager
    async def _guard(self, operation: str):
        """Translate connection failures into StoreUnavailableError."""
        try:
            yield
        except (RedisConnectionError, RedisTimeoutError) as e:
            self.logger.error(f"Redis unavailable during {operation}: {e}")
            raise StoreUnavailableError(f"Store unavailable: {e}") from e

    async def create(self, long_url: str, short_code: str, owner: str) -> Union[ShortLink, Conflict]:
        link = ShortLink(
            short_code=short_code,
            long_url=long_url,
            owner=owner,
            created_at=utcnow(),
        )
        key = self.link_key(short_code)
        async with self._guard("create"):
            async with self.client.pipeline(transaction=True) as pipe:
                try:
                    await pipe.watch(key)
                    if await pipe.exists(key):
                        self.logger.debug(f"Short code collision: {short_code}")
                        return Conflict(short_code)

                    # Record and owner index are written together or not at all
                    pipe.multi()
                    pipe.set(key, json.dumps(link.to_dict()))
                    pipe.sadd(self.owner_key(owner), short_code)
                    await pipe.execute()
                except WatchError:
                    # Another writer touched the key; it exists now
                    self.logger.debug(f"Short code collision: {short_code}")
                    return Conflict(short_code)
        return link

    async def get(self, short_code: str) -> Optional[ShortLink]:
        async with self._guard("get"):
            raw = await self.client.get(self.link_key(short_code))
        if raw is None:
            return None
        return ShortLink.from_dict(json.loads(raw))

    async def list_by_owner(self, owner: str) -> List[ShortLink]:
        async with self._guard("list_by_owner"):
            codes = await self.client.smembers(self.owner_key(owner))
            if not codes:
                return []
            raws = await self.client.mget([self.link_key(code) for code in codes])
        return [ShortLink.from_dict(json.loads(raw)) for raw in raws if raw is not None]

    async def increment_click(self, short_code: str, metadata: ClickMetadata) -> int:
        key = self.link_key(short_code)
        async with self._guard("increment_click"):
            async with self.client.pipeline(transaction=True) as pipe:
                for attempt in range(self.max_increment_retries):
                    try:
                        await pipe.watch(key)
                        raw = await pipe.get(key)
                        if raw is None:
                            raise LinkNotFoundError(short_code)

                        link = ShortLink.from_dict(json.loads(raw))
                        link.click_count += 1
                        event = ClickEvent.from_metadata(short_code, link.click_count, metadata)

                        pipe.multi()
                        pipe.set(key, json.dumps(link.to_dict()))
                        pipe.set(self.click_key(short_code, link.click_count), json.dumps(event.to_dict()))
                        pipe.publish(self.channel(short_code), link.click_count)
                        await pipe.execute()
                        return link.click_count
                    except WatchError:
                        self.logger.debug(f"Increment contention on {short_code}, retry {attempt + 1}")
                        continue

        raise StoreUnavailableError(
            f"Gave up incrementing '{short_code}' after {self.max_increment_retries} conflicting writes"
        )

    async def watch(self, short_code: str) -> WatchHandle:
        async with self._guard("watch"):
            pubsub = self.client.pubsub()
            await pubsub.subscribe(self.channel(short_code))
        return RedisWatchHandle(self, pubsub, short_code)

    async def get_click_event(self, short_code: str, ordinal: int) -> Optional[ClickEvent]:
        async with self._guard("get_click_event"):
            raw = await self.client.get(self.click_key(short_code, ordinal))
        if raw is None:
            return None
        return ClickEvent.from_dict(short_code, ordinal, json.loads(raw))

    async def store_user(self, session_id: str, identity: Identity, ttl_seconds: Optional[int] = None) -> None:
        async with self._guard("store_user"):
            await self.client.set(
                self.session_key(session_id),
                json.dumps(identity.to_dict()),
                ex=ttl_seconds or None,
            )

    async def get_user(self, session_id: str) -> Optional[Identity]:
        async with self._guard("get_user"):
            raw = await self.client.get(self.session_key(session_id))
        if raw is None:
            return None
        return Identity.from_dict(json.loads(raw))

    async def delete_user(self, session_id: str) -> None:
        async with self._guard("delete_user"):
            await self.client.delete(self.session_key(session_id))

    async def close(self) -> None:
        await self.client.aclose()
        self.logger.info("Redis connection closed")

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except (RedisConnectionError, RedisTimeoutError) as e:
            self.logger.error(f"Health check failed: {e}")
            return False
