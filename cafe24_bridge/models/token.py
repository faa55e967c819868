"""
Domain models for the persisted Cafe24 credential pair.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class TokenRecord(BaseModel):
    """The currently usable access token and its companion refresh token."""

    access_token: str
    access_expires_at: int = Field(
        ..., description="Epoch milliseconds after which access_token is unusable."
    )
    refresh_token: Optional[str] = None

    def millis_left(self, now_ms: int) -> int:
        return self.access_expires_at - now_ms

    def minutes_left(self, now_ms: int) -> int:
        return self.millis_left(now_ms) // 60_000


__all__ = ["TokenRecord"]
