"""Middleware for the short links web app."""

from .logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
