"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field, StrictFloat, StrictInt, field_validator

from shortlinks.lib.common.validators import is_valid_short_code
from shortlinks.lib.database.models import SIMULATED_SOURCE


class CreateLinkRequest(BaseModel):
    """Request to create a short link."""

    url: str = Field(..., description="Destination URL (http or https)")
    custom_code: Optional[str] = Field(None, description="Optional custom short code")
    # Strict so JSON booleans are rejected rather than read as 1 or 0
    validity_minutes: Optional[Union[StrictInt, StrictFloat]] = Field(
        None,
        description="Validity window in minutes (server default if omitted)",
    )
    owner: Optional[str] = Field(None, description="Opaque identity of the creator")

    @field_validator("custom_code")
    @classmethod
    def validate_custom_code(cls, v: Optional[str]) -> Optional[str]:
        """Blank means "generate one"; anything else must be a usable code."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        is_valid, error = is_valid_short_code(v)
        if not is_valid:
            raise ValueError(error)
        return v

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "url": "https://example.com/very/long/path/to/resource",
                    "custom_code": None,
                    "validity_minutes": 30,
                },
                {
                    "url": "https://github.com/user/repo",
                    "custom_code": "myrepo",
                    "validity_minutes": 1440,
                    "owner": "user-42",
                },
            ]
        }
    }


class ClickResponse(BaseModel):
    """One recorded click."""

    timestamp: datetime
    source: str


class LinkResponse(BaseModel):
    """A short link without its click history."""

    code: str = Field(..., description="The short code")
    short_url: str = Field(..., description="The complete short URL")
    destination: str = Field(..., description="The destination URL")
    created_at: datetime
    expires_at: datetime
    owner: Optional[str] = None
    status: str = Field(..., description="live or expired at response time")
    click_count: int


class LinkDetailResponse(LinkResponse):
    """A short link with its full click history, oldest first."""

    clicks: List[ClickResponse]


class SimulateClickRequest(BaseModel):
    """Request to simulate a visit to a short link."""

    source: str = Field(SIMULATED_SOURCE, min_length=1, description="Click source to record")


class ResolutionResponse(BaseModel):
    """What dereferencing a short code produced."""

    outcome: str = Field(..., description="redirect, expired or not_found")
    code: str
    destination: Optional[str] = None
    expires_at: Optional[datetime] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    storage: str = Field(..., description="Storage status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    detail: str = Field(..., description="Error message")


class StatisticsResponse(BaseModel):
    """Statistics response."""

    total_links: int
    live_links: int
    expired_links: int
    total_clicks: int
    storage: str
    custom_codes_enabled: bool
