"""Store layer for short links."""

import logging
from typing import Optional

from .base import LinkStoreBase, WatchHandle
from .memory import MemoryLinkStore
from .models import ClickEvent, ClickMetadata, Conflict, Identity, ShortLink
from .redis_store import RedisLinkStore


def create_store(store_url: str, logger: Optional[logging.Logger] = None) -> LinkStoreBase:
    """Build a store from its URL.

    Args:
        store_url: ``redis://``, ``rediss://`` or ``unix://`` for Redis,
            ``memory://`` for the in-process store

    Returns:
        Store instance
    """
    scheme = store_url.split("://", 1)[0].lower()
    if scheme == "memory":
        return MemoryLinkStore(store_url, logger=logger)
    if scheme in ("redis", "rediss", "unix"):
        return RedisLinkStore(store_url, logger=logger)
    raise ValueError(f"Unsupported store URL scheme: {scheme}")


__all__ = [
    "LinkStoreBase",
    "WatchHandle",
    "MemoryLinkStore",
    "RedisLinkStore",
    "ShortLink",
    "ClickEvent",
    "ClickMetadata",
    "Conflict",
    "Identity",
    "create_store",
]
