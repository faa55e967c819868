"""
Authenticated access to the Cafe24 admin API.

Every call goes through :meth:`Cafe24ApiGateway.get_valid_access_token`, which
refreshes ahead of expiry, and a ``401 invalid_token`` response triggers one
unconditional refresh and a single resend. Whatever the resend returns is
final and its body is returned as-is; only first-attempt failures raise
``VendorApiError``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

import httpx

from cafe24_bridge.core.config import Cafe24Settings
from cafe24_bridge.core.errors import (
    Cafe24BridgeError,
    ReauthenticationRequiredError,
    VendorApiError,
)
from cafe24_bridge.services.token_store import TokenStore

if TYPE_CHECKING:
    from cafe24_bridge.clients.cafe24_auth import Cafe24OAuthClient

logger = logging.getLogger(__name__)


def _parse_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _is_invalid_token(response: httpx.Response, body: Any) -> bool:
    return (
        response.status_code == httpx.codes.UNAUTHORIZED
        and isinstance(body, dict)
        and body.get("error") == "invalid_token"
    )


class Cafe24ApiGateway:
    """Issue admin API calls with a bearer token that is kept fresh."""

    PROACTIVE_REFRESH_MINUTES = 5

    def __init__(
        self,
        settings: Cafe24Settings,
        token_store: TokenStore,
        oauth_client: Cafe24OAuthClient,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._store = token_store
        self._oauth = oauth_client
        self._transport = transport

    async def get_valid_access_token(self) -> str:
        """Return a usable access token, refreshing first when it is close to expiry."""
        record = await self._store.get_stored_access_token()

        if record is None:
            logger.info("No usable access token stored; attempting refresh")
            try:
                tokens = await self._oauth.refresh_access_token()
            except Cafe24BridgeError as exc:
                raise ReauthenticationRequiredError(
                    f"Token refresh failed, re-authentication required: {exc}"
                ) from exc
            return tokens.access_token

        minutes_left = record.minutes_left(self._store.now())
        if minutes_left <= self.PROACTIVE_REFRESH_MINUTES:
            logger.info("Access token expires in %s minutes; refreshing early", minutes_left)
            try:
                tokens = await self._oauth.refresh_access_token()
            except Cafe24BridgeError as exc:
                logger.warning(
                    "Early refresh failed, continuing with the current token: %s", exc
                )
                return record.access_token
            return tokens.access_token

        return record.access_token

    def _headers(self, access_token: str, extra: Optional[Mapping[str, str]]) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            **(extra or {}),
            "Authorization": f"Bearer {access_token}",
            "X-Cafe24-Api-Version": self._settings.api_version,
        }
        return headers

    async def api_request(
        self,
        path: str,
        *,
        method: str = "GET",
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Call ``path`` on the mall's admin API and return the decoded body."""
        access_token = await self.get_valid_access_token()
        url = f"{self._settings.api_base_url}{path}"
        method = method.upper()

        async with httpx.AsyncClient(
            timeout=self._settings.http_timeout, transport=self._transport
        ) as client:
            response = await client.request(
                method,
                url,
                json=json,
                params=params,
                headers=self._headers(access_token, headers),
            )
            body = _parse_body(response)
            logger.info("Cafe24 %s %s -> %s", method, path, response.status_code)

            if _is_invalid_token(response, body):
                logger.info("Cafe24 rejected the access token; refreshing and retrying once")
                tokens = await self._oauth.refresh_access_token()
                response = await client.request(
                    method,
                    url,
                    json=json,
                    params=params,
                    headers=self._headers(tokens.access_token, headers),
                )
                body = _parse_body(response)
                logger.info("Cafe24 retry %s %s -> %s", method, path, response.status_code)
                # The resent response is final whatever its status.
                return body

        if not response.is_success:
            raise VendorApiError(
                status_code=response.status_code,
                status_text=response.reason_phrase,
                body=body,
                url=url,
                method=method,
            )
        return body

    async def get_shop(self) -> Any:
        return await self.api_request("/api/v2/admin/shop")

    async def list_products(
        self, *, limit: int = 10, offset: int = 0, **filters: str
    ) -> Any:
        params: Dict[str, Any] = {"limit": limit, "offset": offset}
        params.update({key: value for key, value in filters.items() if value})
        return await self.api_request("/api/v2/admin/products", params=params)

    async def create_board_article(self, board_no: str, payload: Any) -> Any:
        return await self.api_request(
            f"/api/v2/admin/boards/{board_no}/articles", method="POST", json=payload
        )


__all__ = ["Cafe24ApiGateway"]
