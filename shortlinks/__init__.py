"""Core business logic for short links."""

from .shortcode import ShortCodeGenerator
from .service import LinkService
from .feed import LiveUpdateFeed

__all__ = ["ShortCodeGenerator", "LinkService", "LiveUpdateFeed"]
