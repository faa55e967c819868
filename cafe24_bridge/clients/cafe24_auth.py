"""
Cafe24 OAuth utilities.

These helpers build the consent URL and run the authorization-code and
refresh-token exchanges against ``https://{mall_id}.cafe24api.com``.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from cafe24_bridge.core.config import Cafe24Settings
from cafe24_bridge.core.errors import (
    AuthExchangeFailedError,
    ConfigurationError,
    NoRefreshTokenError,
)
from cafe24_bridge.core.logging import mask_token
from cafe24_bridge.schemas.auth import TokenResponse
from cafe24_bridge.services.token_store import TokenStore, validate_expires_in

logger = logging.getLogger(__name__)


class Cafe24OAuthClient:
    """Build Cafe24 authorization URLs and exchange codes and refresh tokens."""

    AUTHORIZE_PATH = "/api/v2/oauth/authorize"
    TOKEN_PATH = "/api/v2/oauth/token"

    def __init__(
        self,
        settings: Cafe24Settings,
        token_store: TokenStore,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._store = token_store
        self._transport = transport

    def _require_configured(self) -> None:
        if not self._settings.is_configured:
            raise ConfigurationError(
                "Cafe24 credentials are not configured; set CAFE24_MALL_ID, "
                "CAFE24_CLIENT_ID and CAFE24_CLIENT_SECRET."
            )

    @property
    def token_url(self) -> str:
        return f"{self._settings.api_base_url}{self.TOKEN_PATH}"

    def _basic_auth_header(self) -> str:
        raw = f"{self._settings.client_id}:{self._settings.client_secret}"
        return "Basic " + base64.b64encode(raw.encode("utf-8")).decode("ascii")

    def build_authorization_url(self, redirect_uri: str, scope: str) -> str:
        """Construct the Cafe24 consent URL."""
        self._require_configured()
        params = {
            "response_type": "code",
            "client_id": self._settings.client_id,
            "redirect_uri": redirect_uri,
            # Static mall id, not a per-attempt nonce.
            "state": self._settings.mall_id,
            "scope": scope,
        }
        return f"{self._settings.api_base_url}{self.AUTHORIZE_PATH}?{urlencode(params)}"

    async def _post_token(self, form: Dict[str, str], *, action: str) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Authorization": self._basic_auth_header(),
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.http_timeout, transport=self._transport
            ) as client:
                response = await client.post(self.token_url, data=form, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Cafe24 token %s request failed: %s", action, exc)
            raise AuthExchangeFailedError(
                f"Token {action} failed: {exc}", error="request_failed"
            ) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {"error": "invalid_response", "error_description": response.text}
        if not isinstance(payload, dict):
            payload = {"error": "invalid_response", "error_description": str(payload)}

        logger.info("Cafe24 %s responded with %s", action, response.status_code)

        if not response.is_success:
            error = payload.get("error")
            description = payload.get("error_description")
            raise AuthExchangeFailedError(
                f"Token {action} failed: {description or error or response.status_code}",
                status_code=response.status_code,
                error=error,
                error_description=description,
            )

        if not payload.get("access_token"):
            raise AuthExchangeFailedError(
                f"Token {action} returned no access_token.",
                status_code=response.status_code,
                error="invalid_response",
            )

        payload["expires_in"] = validate_expires_in(
            payload.get("expires_in"), source=f"Cafe24 {action} response"
        )
        return payload

    async def exchange_authorization_code(
        self, code: str, redirect_uri: str
    ) -> TokenResponse:
        """Exchange an authorization code for an access/refresh token pair."""
        self._require_configured()
        logger.info("Exchanging authorization code (redirect_uri=%s)", redirect_uri)
        payload = await self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            },
            action="exchange",
        )
        return TokenResponse.model_validate(payload)

    async def refresh_access_token(self) -> TokenResponse:
        """
        Mint a new access token from the stored refresh token and persist it.

        The refresh token on record is replaced only when Cafe24 returns one.
        """
        self._require_configured()
        refresh_token = await self._store.get_stored_refresh_token()
        if not refresh_token:
            raise NoRefreshTokenError("No refresh token is stored; re-authenticate.")

        payload = await self._post_token(
            {"grant_type": "refresh_token", "refresh_token": refresh_token},
            action="refresh",
        )
        tokens = TokenResponse.model_validate(payload)

        await self._store.save_access_token(tokens.access_token, tokens.expires_in)
        if tokens.refresh_token:
            await self._store.save_refresh_token(tokens.refresh_token)

        logger.info("Refreshed access token %s", mask_token(tokens.access_token))
        return tokens


__all__ = ["Cafe24OAuthClient"]
