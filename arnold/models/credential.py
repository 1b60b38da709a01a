"""
Domain models for linked Google Analytics credentials.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TokenGrant(BaseModel):
    """Tokens returned by a successful authorization-code exchange."""

    access_token: str
    refresh_token: str
    expires_in: int = Field(3600, description="Lifetime of the access token in seconds.")


class Credential(BaseModel):
    """A chat identity's OAuth tokens and selected property, as held by the store."""

    owner_identity: str = Field(..., description="Slack user identifier owning the link.")
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    is_expired: Optional[bool] = Field(
        None, description="Expiry flag reported by the store when no timestamp is given."
    )
    property_id: Optional[str] = None


class AnalyticsProperty(BaseModel):
    """Read-only projection of a GA4 property the linked account can query."""

    id: str = Field(..., description="Canonical resource name, e.g. properties/123.")
    display_name: str
    account_name: str = ""


__all__ = ["AnalyticsProperty", "Credential", "TokenGrant"]
