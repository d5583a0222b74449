"""API routes implementation."""

from fastapi import APIRouter, Depends, Request, HTTPException, status
from datetime import datetime, timezone

from .deps import get_current_user
from .schemas import (
    ShortLinkResponse,
    ClickEventResponse,
    HealthResponse,
    ErrorResponse,
)
from shortlinks.common.url_builder import build_short_url
from shortlinks.common.headers import build_base_url

router = APIRouter()


@router.get(
    "/links/{short_code}",
    response_model=ShortLinkResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Not signed in"},
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Get short link",
    description="Get a short link including its click count. Requires a signed-in session.",
)
async def get_link(request: Request, short_code: str, user=Depends(get_current_user)):
    """Get information about a short link."""
    service = request.app.state.service
    config = request.app.state.config
    
    link = await service.get_link(short_code)
    
    if link is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Short code '{short_code}' not found",
        )
    
    base_url = build_base_url(
        headers=request.headers,
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )
    
    return ShortLinkResponse(
        short_code=link.short_code,
        short_url=build_short_url(link.short_code, base_url),
        long_url=link.long_url,
        owner=link.owner,
        click_count=link.click_count,
        created_at=link.created_at,
    )


@router.get(
    "/links/{short_code}/clicks/{ordinal}",
    response_model=ClickEventResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Not signed in"},
        404: {"model": ErrorResponse, "description": "Click event not found"},
    },
    summary="Get click event",
    description="Get the analytics recorded for the Nth click of a short link. Requires a signed-in session.",
)
async def get_click_event(request: Request, short_code: str, ordinal: int, user=Depends(get_current_user)):
    """Get one recorded click."""
    service = request.app.state.service
    
    event = await service.get_click_event(short_code, ordinal)
    
    if event is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No click #{ordinal} recorded for '{short_code}'",
        )
    
    return ClickEventResponse(
        short_code=event.short_code,
        ordinal=event.ordinal,
        ip_address=event.ip_address,
        user_agent=event.user_agent,
        country=event.country,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service and its store are healthy.",
)
async def health_check(request: Request):
    """Health check endpoint for monitoring."""
    service = request.app.state.service
    
    health = await service.health_check()
    
    return HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        store="healthy" if health["store"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
