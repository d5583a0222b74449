"""Exception types for the short link service."""


class ShortLinkError(Exception):
    """Base class for short link errors."""


class InvalidInputError(ShortLinkError, ValueError):
    """Malformed input, such as a URL without a scheme."""


class Unauthorized(ShortLinkError):
    """No identity could be resolved for the request."""


class LinkNotFoundError(ShortLinkError):
    """The short code does not exist."""

    def __init__(self, short_code: str):
        super().__init__(f"Short code '{short_code}' not found")
        self.short_code = short_code


class UniquenessExhaustedError(ShortLinkError):
    """No unique short code could be generated within the retry budget."""


class StoreUnavailableError(ShortLinkError):
    """The backing store could not be reached."""
