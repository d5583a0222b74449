"""In-process link store for tests and local development."""

import asyncio
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Set, Tuple, Union

from ..errors import LinkNotFoundError
from .base import LinkStoreBase, WatchHandle
from .models import ClickEvent, ClickMetadata, Conflict, Identity, ShortLink, utcnow


class MemoryWatchHandle(WatchHandle):
    """Watch handle fed by the store's per-record notification queues."""

    def __init__(self, store: "MemoryLinkStore", short_code: str):
        super().__init__(short_code)
        self._store = store
        self.queue: asyncio.Queue = asyncio.Queue()

    async def _next_change(self) -> None:
        await self.queue.get()

    async def _release(self) -> None:
        self._store._unsubscribe(self)


class MemoryLinkStore(LinkStoreBase):
    """Link store kept in process memory.

    Records carry a version number. Writers read a version, yield to the
    event loop, then compare-and-set, retrying when another writer got there
    first; the same optimistic protocol the Redis store runs with WATCH.
    """

    def __init__(self, store_url: str = "memory://", logger: Optional[logging.Logger] = None):
        super().__init__(store_url)
        self.logger = logger or logging.getLogger(__name__)

        # short_code -> (version, link)
        self._links: Dict[str, Tuple[int, ShortLink]] = {}
        self._clicks: Dict[Tuple[str, int], ClickEvent] = {}
        self._owners: Dict[str, Set[str]] = defaultdict(set)
        self._sessions: Dict[str, Tuple[Identity, Optional[float]]] = {}
        self._watchers: Dict[str, Set[MemoryWatchHandle]] = defaultdict(set)

    async def create(self, long_url: str, short_code: str, owner: str) -> Union[ShortLink, Conflict]:
        # No await between the existence check and the insert
        if short_code in self._links:
            self.logger.debug(f"Short code collision: {short_code}")
            return Conflict(short_code)

        link = ShortLink(
            short_code=short_code,
            long_url=long_url,
            owner=owner,
            created_at=utcnow(),
        )
        self._links[short_code] = (0, link)
        self._owners[owner].add(short_code)
        return ShortLink.from_dict(link.to_dict())

    async def get(self, short_code: str) -> Optional[ShortLink]:
        entry = self._links.get(short_code)
        if entry is None:
            return None
        return ShortLink.from_dict(entry[1].to_dict())

    async def list_by_owner(self, owner: str) -> List[ShortLink]:
        return [
            ShortLink.from_dict(self._links[code][1].to_dict())
            for code in self._owners.get(owner, ())
            if code in self._links
        ]

    async def increment_click(self, short_code: str, metadata: ClickMetadata) -> int:
        attempts = 0
        while True:
            entry = self._links.get(short_code)
            if entry is None:
                raise LinkNotFoundError(short_code)
            version, link = entry
            new_count = link.click_count + 1

            # Round trip to the store; other writers may run here
            await asyncio.sleep(0)

            current = self._links.get(short_code)
            if current is None or current[0] != version:
                attempts += 1
                self.logger.debug(f"Increment contention on {short_code}, retry {attempts}")
                continue

            updated = ShortLink.from_dict(link.to_dict())
            updated.click_count = new_count
            self._links[short_code] = (version + 1, updated)
            self._clicks[(short_code, new_count)] = ClickEvent.from_metadata(short_code, new_count, metadata)
            self._notify(short_code)
            return new_count

    async def watch(self, short_code: str) -> WatchHandle:
        handle = MemoryWatchHandle(self, short_code)
        self._watchers[short_code].add(handle)
        return handle

    async def get_click_event(self, short_code: str, ordinal: int) -> Optional[ClickEvent]:
        return self._clicks.get((short_code, ordinal))

    async def store_user(self, session_id: str, identity: Identity, ttl_seconds: Optional[int] = None) -> None:
        expires_at = None
        if ttl_seconds:
            expires_at = asyncio.get_running_loop().time() + ttl_seconds
        self._sessions[session_id] = (identity, expires_at)

    async def get_user(self, session_id: str) -> Optional[Identity]:
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        identity, expires_at = entry
        if expires_at is not None and asyncio.get_running_loop().time() >= expires_at:
            del self._sessions[session_id]
            return None
        return identity

    async def delete_user(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def close(self) -> None:
        for handles in list(self._watchers.values()):
            for handle in list(handles):
                await handle.cancel()
        self.logger.info("Memory store closed")

    async def health_check(self) -> bool:
        return True

    def _notify(self, short_code: str) -> None:
        for handle in self._watchers.get(short_code, ()):
            handle.queue.put_nowait(short_code)

    def _unsubscribe(self, handle: MemoryWatchHandle) -> None:
        handles = self._watchers.get(handle.short_code)
        if handles is not None:
            handles.discard(handle)
            if not handles:
                del self._watchers[handle.short_code]
