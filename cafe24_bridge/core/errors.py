"""Exception hierarchy shared by the store, the Cafe24 clients and the routes."""

from __future__ import annotations

from typing import Any, Optional


class Cafe24BridgeError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(Cafe24BridgeError):
    """Raised when required environment configuration is missing."""


class StorageUnavailableError(Cafe24BridgeError):
    """Raised when the token table cannot be reached."""


class PermissionDeniedError(Cafe24BridgeError):
    """Raised when the token table rejects a call for access-control reasons."""


class AuthenticationError(Cafe24BridgeError):
    """Base class for failures that require an operator to re-authenticate."""


class AuthExchangeFailedError(AuthenticationError):
    """Raised when the Cafe24 token endpoint rejects a code or refresh exchange."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.error_description = error_description


class NoRefreshTokenError(AuthenticationError):
    """Raised when a refresh is requested but no refresh token is stored."""


class ReauthenticationRequiredError(AuthenticationError):
    """Raised when no usable token can be produced without a new consent flow."""


class VendorApiError(Cafe24BridgeError):
    """Raised when an authenticated Cafe24 call returns a non-2xx response."""

    def __init__(
        self,
        *,
        status_code: int,
        status_text: str,
        body: Any,
        url: str,
        method: str,
    ) -> None:
        super().__init__(f"Cafe24 API request failed: {status_code} {status_text}")
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        self.url = url
        self.method = method

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status_code,
            "statusText": self.status_text,
            "data": self.body,
            "url": self.url,
            "method": self.method,
        }


__all__ = [
    "AuthExchangeFailedError",
    "AuthenticationError",
    "Cafe24BridgeError",
    "ConfigurationError",
    "NoRefreshTokenError",
    "PermissionDeniedError",
    "ReauthenticationRequiredError",
    "StorageUnavailableError",
    "VendorApiError",
]
