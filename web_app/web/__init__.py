"""Browser-facing routes."""

from .routes import router as web_router, unauthorized_response

__all__ = ["web_router", "unauthorized_response"]
