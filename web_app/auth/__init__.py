"""GitHub sign-in and session identity."""

from .github import GitHubOAuthClient, OAuthError
from .session import resolve_session_identity
from .routes import router as auth_router

__all__ = ["GitHubOAuthClient", "OAuthError", "resolve_session_identity", "auth_router"]
