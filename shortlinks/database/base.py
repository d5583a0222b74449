"""Abstract base classes for short link store implementations."""

import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional, Union

from .models import ClickEvent, ClickMetadata, Conflict, Identity, ShortLink


class WatchHandle(ABC):
    """Subscription to changes of a single link record.

    ``wait()`` suspends until the next change and returns True, or returns
    False once the handle is cancelled. ``cancel()`` unblocks a pending wait.
    """

    def __init__(self, short_code: str):
        self.short_code = short_code
        self._cancelled = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @abstractmethod
    async def _next_change(self) -> None:
        """Block until the backend reports a change."""
        pass

    @abstractmethod
    async def _release(self) -> None:
        """Drop the backend subscription."""
        pass

    async def wait(self) -> bool:
        """Wait for the next change notification.

        Returns:
            True on change, False when the handle has been cancelled
        """
        if self.cancelled:
            return False

        change = asyncio.ensure_future(self._next_change())
        stop = asyncio.ensure_future(self._cancelled.wait())
        try:
            await asyncio.wait({change, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (change, stop):
                task.cancel()
            await asyncio.gather(change, stop, return_exceptions=True)

        if self.cancelled:
            return False

        # Re-raise backend failures from the change task
        change.result()
        return True

    async def cancel(self) -> None:
        """Cancel the handle. Safe to call more than once."""
        if self.cancelled:
            return
        self._cancelled.set()
        await self._release()

    async def __aenter__(self) -> "WatchHandle":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cancel()


class LinkStoreBase(ABC):
    """Abstract base class for link store operations."""

    def __init__(self, store_url: str):
        """Initialize store.

        Args:
            store_url: Store connection string
        """
        self.store_url = store_url

    @abstractmethod
    async def create(self, long_url: str, short_code: str, owner: str) -> Union[ShortLink, Conflict]:
        """Create a link if the short code is not taken.

        Args:
            long_url: Destination URL
            short_code: Candidate short code
            owner: Login of the creator

        Returns:
            The new ShortLink, or Conflict when the short code already exists.
            An existing record is never overwritten.
        """
        pass

    @abstractmethod
    async def get(self, short_code: str) -> Optional[ShortLink]:
        """Get a link by short code, or None."""
        pass

    @abstractmethod
    async def list_by_owner(self, owner: str) -> List[ShortLink]:
        """List links created by an owner. Order is not stable."""
        pass

    @abstractmethod
    async def increment_click(self, short_code: str, metadata: ClickMetadata) -> int:
        """Atomically bump the click count and record a click event.

        The click event is stored under the new count, in the same atomic
        write as the counter.

        Args:
            short_code: The short code that was visited
            metadata: Request signals for the click event

        Returns:
            The new click count (the event ordinal)

        Raises:
            LinkNotFoundError: If the short code does not exist
        """
        pass

    @abstractmethod
    async def watch(self, short_code: str) -> WatchHandle:
        """Subscribe to changes of one link record."""
        pass

    @abstractmethod
    async def get_click_event(self, short_code: str, ordinal: int) -> Optional[ClickEvent]:
        """Get the click event recorded for an ordinal, or None."""
        pass

    @abstractmethod
    async def store_user(self, session_id: str, identity: Identity, ttl_seconds: Optional[int] = None) -> None:
        """Persist the identity for a session."""
        pass

    @abstractmethod
    async def get_user(self, session_id: str) -> Optional[Identity]:
        """Get the identity for a session, or None."""
        pass

    @abstractmethod
    async def delete_user(self, session_id: str) -> None:
        """Forget a session."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close store connections."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable.

        Returns:
            True if healthy, False otherwise
        """
        pass
