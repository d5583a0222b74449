"""Data models for short links."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

UNKNOWN = "Unknown"


@dataclass
class ShortLink:
    """A short code and the destination it resolves to."""

    short_code: str
    long_url: str
    owner: str
    created_at: datetime
    click_count: int = 0

    def to_dict(self) -> dict:
        """Convert to the stored JSON shape."""
        return {
            "shortCode": self.short_code,
            "longUrl": self.long_url,
            "owner": self.owner,
            "clickCount": self.click_count,
            "createdAt": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ShortLink":
        """Create from the stored JSON shape."""
        created_at = data["createdAt"]
        if not isinstance(created_at, datetime):
            created_at = datetime.fromisoformat(created_at)
        return cls(
            short_code=data["shortCode"],
            long_url=data["longUrl"],
            owner=data["owner"],
            created_at=created_at,
            click_count=int(data.get("clickCount", 0)),
        )


@dataclass(frozen=True)
class ClickMetadata:
    """Request signals captured for one tracked visit."""

    ip_address: str = UNKNOWN
    user_agent: str = UNKNOWN
    country: str = UNKNOWN


@dataclass(frozen=True)
class ClickEvent:
    """Analytics for one click, keyed by (short_code, ordinal)."""

    short_code: str
    ordinal: int
    ip_address: str = UNKNOWN
    user_agent: str = UNKNOWN
    country: str = UNKNOWN

    @classmethod
    def from_metadata(cls, short_code: str, ordinal: int, metadata: ClickMetadata) -> "ClickEvent":
        return cls(
            short_code=short_code,
            ordinal=ordinal,
            ip_address=metadata.ip_address,
            user_agent=metadata.user_agent,
            country=metadata.country,
        )

    def to_dict(self) -> dict:
        return {
            "ipAddress": self.ip_address,
            "userAgent": self.user_agent,
            "country": self.country,
        }

    @classmethod
    def from_dict(cls, short_code: str, ordinal: int, data: dict) -> "ClickEvent":
        return cls(
            short_code=short_code,
            ordinal=ordinal,
            ip_address=data.get("ipAddress", UNKNOWN),
            user_agent=data.get("userAgent", UNKNOWN),
            country=data.get("country", UNKNOWN),
        )


@dataclass(frozen=True)
class Identity:
    """A signed-in user, as picked from the GitHub profile."""

    login: str
    profile_url: Optional[str] = None
    avatar_url: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "login": self.login,
            "html_url": self.profile_url,
            "avatar_url": self.avatar_url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Identity":
        return cls(
            login=data["login"],
            profile_url=data.get("html_url"),
            avatar_url=data.get("avatar_url"),
        )


@dataclass(frozen=True)
class Conflict:
    """Result of a create whose short code is already taken."""

    short_code: str


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
