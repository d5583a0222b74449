"""Validation utilities for short links."""

import re
from urllib.parse import urlparse
from typing import Tuple

MAX_URL_LENGTH = 2048

_SHORT_CODE_RE = re.compile(r'^[a-zA-Z0-9_-]+$')


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a destination URL.
    
    The URL must be absolute: a scheme followed by something to resolve
    (a host, or a path for schemes such as mailto).
    
    Args:
        url: The URL to validate
        
    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"
    
    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"
    
    if url != url.strip():
        return False, "URL must not contain surrounding whitespace"
    
    try:
        result = urlparse(url)
    except ValueError as e:
        return False, f"Invalid URL format: {str(e)}"
    
    if not result.scheme:
        return False, "URL must be absolute and include a scheme"
    
    if not (result.netloc or result.path):
        return False, "URL must include a host or path"
    
    if result.scheme in ("http", "https") and not result.netloc:
        return False, "URL must have a valid domain"
    
    return True, ""


def is_valid_short_code(short_code: str, max_length: int = 64) -> Tuple[bool, str]:
    """Validate a short code taken from a request path.
    
    Args:
        short_code: The short code to validate
        max_length: Maximum length for short code
        
    Returns:
        Tuple of (is_valid, error_message)
    """
    if not short_code or not isinstance(short_code, str):
        return False, "Short code is required"
    
    if len(short_code) > max_length:
        return False, f"Short code must be at most {max_length} characters"
    
    if not _SHORT_CODE_RE.match(short_code):
        return False, "Short code can only contain letters, numbers, hyphens, and underscores"
    
    return True, ""
