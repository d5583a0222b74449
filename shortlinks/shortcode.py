"""Short code generation utilities."""

import hashlib
import secrets
import string
import time
from typing import Optional

from .common.validators import is_valid_url
from .errors import InvalidInputError


class ShortCodeGenerator:
    """Generate short codes for URLs.
    
    A code is a base62 digest of the URL, a nanosecond timestamp and a random
    nonce, so the same URL shortened twice gets two different codes.
    Uniqueness against stored codes is checked by the caller.
    """
    
    # Base62 characters (alphanumeric, case-sensitive)
    BASE62_CHARS = string.ascii_letters + string.digits  # a-zA-Z0-9
    
    def __init__(self, default_length: int = 12, clock=time.time_ns):
        """Initialize short code generator.
        
        Args:
            default_length: Length of generated codes
            clock: Nanosecond clock, injectable for tests
        """
        if not 1 <= default_length <= 40:
            raise ValueError("default_length must be between 1 and 40")
        self.default_length = default_length
        self.clock = clock
    
    def generate(self, long_url: str, length: Optional[int] = None) -> str:
        """Generate a short code for a URL.
        
        Args:
            long_url: The destination URL
            length: Length of the code (uses default if not specified)
            
        Returns:
            Short code of the requested length
            
        Raises:
            InvalidInputError: If long_url is not an absolute URL
        """
        is_valid, error = is_valid_url(long_url)
        if not is_valid:
            raise InvalidInputError(f"Invalid URL: {error}")
        
        length = length or self.default_length
        
        digest = hashlib.sha256()
        digest.update(long_url.encode("utf-8"))
        digest.update(str(self.clock()).encode("ascii"))
        digest.update(secrets.token_bytes(8))
        
        code = self._int_to_base62(int.from_bytes(digest.digest(), "big"))
        
        # A 256-bit digest is at least 40 base62 digits once left-padded
        return code.rjust(40, self.BASE62_CHARS[0])[:length]
    
    def _int_to_base62(self, num: int) -> str:
        """Convert integer to base62 string.
        
        Args:
            num: Integer to convert
            
        Returns:
            Base62 string
        """
        if num == 0:
            return self.BASE62_CHARS[0]
        
        result = []
        base = len(self.BASE62_CHARS)
        
        while num > 0:
            remainder = num % base
            result.append(self.BASE62_CHARS[remainder])
            num = num // base
        
        return ''.join(reversed(result))
    
    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check if code has valid format (alphanumeric).
        
        Args:
            code: Code to validate
            
        Returns:
            True if valid format
        """
        return bool(code) and all(c in ShortCodeGenerator.BASE62_CHARS for c in code)
