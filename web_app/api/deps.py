"""Shared dependencies for API routes."""

from fastapi import HTTPException, Request, status

from shortlinks.database.models import Identity
from ..auth.session import resolve_session_identity


async def get_current_user(request: Request) -> Identity:
    """
    Get the signed-in user from the session cookie.

    Args:
        request: Incoming request

    Returns:
        The identity stored for the session

    Raises:
        HTTPException: 401 if the request carries no valid session
    """
    identity = await resolve_session_identity(request)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in required",
        )
    return identity
