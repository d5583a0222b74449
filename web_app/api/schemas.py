"""Pydantic schemas for API responses."""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ShortLinkResponse(BaseModel):
    """Response with short link information."""
    
    short_code: str = Field(..., description="The short code")
    short_url: str = Field(..., description="The complete short URL")
    long_url: str = Field(..., description="The destination URL")
    owner: str = Field(..., description="Login of the creator")
    click_count: int = Field(..., ge=0, description="Number of tracked visits")
    created_at: datetime = Field(..., description="Creation timestamp")
    
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "short_code": "aZ3kP9qLm2Xw",
                    "short_url": "https://short.link/aZ3kP9qLm2Xw",
                    "long_url": "https://example.com/very/long/path",
                    "owner": "octocat",
                    "click_count": 3,
                    "created_at": "2024-01-01T12:00:00Z"
                }
            ]
        }
    }


class ClickEventResponse(BaseModel):
    """One recorded click."""
    
    short_code: str
    ordinal: int = Field(..., ge=1, description="Click count value the event was recorded under")
    ip_address: str
    user_agent: str
    country: str


class HealthResponse(BaseModel):
    """Health check response."""
    
    status: str = Field(..., description="Overall status")
    store: str = Field(..., description="Link store status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""
    
    detail: Optional[str] = Field(None, description="Detailed error information")
