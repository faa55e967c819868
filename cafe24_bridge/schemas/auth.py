"""Schemas related to the Cafe24 OAuth flow and token endpoints."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class TokenResponse(BaseModel):
    """Body returned by the Cafe24 token endpoint."""

    model_config = ConfigDict(extra="allow")

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int = Field(..., description="Lifetime of access_token in seconds.")
    token_type: Optional[str] = None
    scope: Optional[str] = None


class ManualTokenPayload(BaseModel):
    """Body accepted by POST /token to seed an access token by hand."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: Optional[str] = Field(None, alias="accessToken")
    expires_in: Any = Field(
        7200,
        alias="expiresIn",
        description="Seconds; unusable values fall back to the store default.",
    )


__all__ = ["ManualTokenPayload", "TokenResponse"]
