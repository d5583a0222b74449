"""Business logic service for short links."""

import logging
from typing import Dict, List, Optional

from .shortcode import ShortCodeGenerator
from .database.base import LinkStoreBase
from .database.models import ClickEvent, ClickMetadata, Conflict, ShortLink
from .errors import LinkNotFoundError, UniquenessExhaustedError
from .feed import LiveUpdateFeed


class LinkService:
    """Service layer for short link business logic."""

    def __init__(
        self,
        store: LinkStoreBase,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        logger: Optional[logging.Logger] = None,
        max_collision_retries: int = 5,
    ):
        """Initialize link service.

        Args:
            store: Link store instance
            short_code_generator: Optional short code generator
            logger: Optional logger
            max_collision_retries: Maximum create attempts on short code collision
        """
        self.store = store
        self.generator = short_code_generator or ShortCodeGenerator()
        self.logger = logger or logging.getLogger(__name__)
        self.max_collision_retries = max_collision_retries

    async def create_link(self, long_url: str, owner: str) -> ShortLink:
        """Create a new short link.

        Args:
            long_url: The destination URL
            owner: Login of the creator

        Returns:
            The stored ShortLink

        Raises:
            InvalidInputError: If long_url is not an absolute URL
            UniquenessExhaustedError: If every generated code collided
        """
        for attempt in range(1, self.max_collision_retries + 1):
            short_code = self.generator.generate(long_url)
            result = await self.store.create(long_url, short_code, owner)

            if not isinstance(result, Conflict):
                self.logger.info(f"Created short link: {short_code} -> {long_url} (owner={owner})")
                return result

            self.logger.warning(
                f"Short code collision on attempt {attempt}/{self.max_collision_retries}: {short_code}"
            )

        raise UniquenessExhaustedError(
            f"Unable to generate a unique short code after {self.max_collision_retries} attempts"
        )

    async def get_link(self, short_code: str) -> Optional[ShortLink]:
        return await self.store.get(short_code)

    async def list_links(self, owner: str) -> List[ShortLink]:
        """List an owner's links, newest first."""
        links = await self.store.list_by_owner(owner)
        return sorted(links, key=lambda link: link.created_at, reverse=True)

    async def resolve_and_track(self, short_code: str, metadata: ClickMetadata) -> Optional[ShortLink]:
        """Resolve a short code and count the visit.

        Args:
            short_code: The visited short code
            metadata: Request signals for the click event

        Returns:
            The link as read before the visit was counted, or None if unknown
        """
        link = await self.store.get(short_code)
        if link is None:
            self.logger.warning(f"Short code not found: {short_code}")
            return None

        try:
            ordinal = await self.store.increment_click(short_code, metadata)
        except LinkNotFoundError:
            return None

        self.logger.debug(f"Tracked click #{ordinal} for {short_code}")
        return link

    async def get_click_event(self, short_code: str, ordinal: int) -> Optional[ClickEvent]:
        return await self.store.get_click_event(short_code, ordinal)

    async def open_feed(self, short_code: str) -> LiveUpdateFeed:
        """Open a live update feed backed by a fresh watch handle."""
        handle = await self.store.watch(short_code)
        return LiveUpdateFeed(self.store, short_code, handle, logger=self.logger)

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        store_healthy = await self.store.health_check()
        return {
            "store": store_healthy,
            "overall": store_healthy,
        }

    async def close(self) -> None:
        """Close service connections."""
        await self.store.close()
