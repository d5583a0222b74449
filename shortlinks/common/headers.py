"""Header parsing utilities for short links."""

from typing import Mapping, Optional

from ..database.models import ClickMetadata, UNKNOWN


def _lower(headers: Mapping[str, str]) -> dict:
    # Case-insensitive lookup for plain dicts
    return {k.lower(): v for k, v in headers.items()}


def extract_click_metadata(headers: Mapping[str, str]) -> ClickMetadata:
    """Extract click analytics signals from request headers.
    
    The client IP comes from X-Forwarded-For, then the Cloudflare
    CF-Connecting-IP header. Country comes from CF-IPCountry. Anything
    missing is recorded as "Unknown".
    
    Args:
        headers: Request headers
        
    Returns:
        ClickMetadata for the visit
    """
    headers_lower = _lower(headers)
    
    return ClickMetadata(
        ip_address=(
            headers_lower.get("x-forwarded-for")
            or headers_lower.get("cf-connecting-ip")
            or UNKNOWN
        ),
        user_agent=headers_lower.get("user-agent") or UNKNOWN,
        country=headers_lower.get("cf-ipcountry") or UNKNOWN,
    )


def build_base_url(
    headers: Mapping[str, str],
    fallback_base_url: str,
    request_scheme: Optional[str] = None,
    request_host: Optional[str] = None,
) -> str:
    """Build base URL from headers or fallback.
    
    Priority:
    1. X-Forwarded-Proto + X-Forwarded-Host
    2. Request scheme + host
    3. Fallback base URL from config
    
    Args:
        headers: Request headers
        fallback_base_url: Fallback base URL from configuration
        request_scheme: Request scheme (http/https)
        request_host: Request host
        
    Returns:
        Base URL (e.g., https://example.com)
    """
    headers_lower = _lower(headers)
    proto = headers_lower.get("x-forwarded-proto")
    host = headers_lower.get("x-forwarded-host")
    
    # Try X-Forwarded headers first (from proxy)
    if proto and host:
        return f"{proto}://{host}"
    
    if request_scheme and request_host:
        return f"{request_scheme}://{request_host}"
    
    return fallback_base_url.rstrip("/")
