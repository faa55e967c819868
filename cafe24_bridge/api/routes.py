"""
FastAPI routes for the OAuth flow, token administration and API test calls.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Annotated, Any
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse

from cafe24_bridge.core.errors import VendorApiError
from cafe24_bridge.dependencies import (
    get_app_settings,
    get_cafe24_api_gateway,
    get_cafe24_oauth_client,
    get_token_store,
)
from cafe24_bridge.schemas import (
    ApiTestRequest,
    BoardTestRequest,
    ManualTokenPayload,
    ProductQuery,
)

router = APIRouter()
logger = logging.getLogger(__name__)

SERVICE_VERSION = "1.0.0"
_STARTED_AT = time.monotonic()


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _iso_from_millis(millis: int) -> str:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).isoformat()


def _error(status: int, message: str, **extra: Any) -> JSONResponse:
    content = {"success": False, "error": message, **extra}
    content.setdefault("timestamp", _utc_now_iso())
    return JSONResponse(status_code=status, content=content)


def _frontend_redirect(settings: Any, **params: str) -> RedirectResponse:
    base = settings.frontend_base_url or "/"
    separator = "&" if "?" in base else "?"
    return RedirectResponse(
        url=f"{base}{separator}{urlencode(params)}", status_code=HTTPStatus.FOUND
    )


def _vendor_details(exc: Exception) -> Any:
    if isinstance(exc, VendorApiError):
        return exc.to_dict()
    return None


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> JSONResponse:
    """Liveness probe for monitoring."""
    return JSONResponse(
        content={
            "status": "healthy",
            "timestamp": _utc_now_iso(),
            "uptime": round(time.monotonic() - _STARTED_AT, 3),
            "version": SERVICE_VERSION,
            "services": {
                "api": "operational",
                "database": "operational",
                "authentication": "operational",
            },
        }
    )


@router.get("/auth/url", status_code=HTTPStatus.OK)
async def get_authorization_url(
    oauth_client: Annotated[Any, Depends(get_cafe24_oauth_client)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> JSONResponse:
    """Return the Cafe24 consent screen URL."""
    try:
        redirect_uri = settings.cafe24.redirect_uri
        if not redirect_uri:
            raise ValueError("CAFE24_REDIRECT_URI is not configured.")
        auth_url = oauth_client.build_authorization_url(
            redirect_uri, settings.cafe24.scope
        )
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Failed to build authorization URL")
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={"error": str(exc) or "Failed to build authorization URL."},
        )
    return JSONResponse(content={"authUrl": auth_url})


@router.api_route("/auth/callback", methods=["GET", "POST"])
async def handle_oauth_callback(
    request: Request,
    oauth_client: Annotated[Any, Depends(get_cafe24_oauth_client)],
    token_store: Annotated[Any, Depends(get_token_store)],
    settings: Annotated[Any, Depends(get_app_settings)],
):
    """Complete the authorization-code exchange and send the browser back."""
    params = dict(request.query_params)
    code = params.get("code")
    logger.info(
        "OAuth callback (%s): code=%s state=%s error=%s",
        request.method,
        "present" if code else "missing",
        params.get("state"),
        params.get("error"),
    )

    vendor_error = params.get("error")
    if vendor_error:
        message = params.get("error_description") or vendor_error
        logger.error("Cafe24 returned an authorization error: %s", message)
        return _frontend_redirect(settings, error=message)

    if not code:
        return JSONResponse(
            status_code=HTTPStatus.BAD_REQUEST,
            content={
                "error": "Authorization code is missing.",
                "received_params": params,
                "help": (
                    "Cafe24 did not pass a code parameter; check the app's "
                    "redirect URI and permissions in the Cafe24 developer center."
                ),
            },
        )

    try:
        redirect_uri = settings.cafe24.redirect_uri or str(request.url_for("handle_oauth_callback"))
        tokens = await oauth_client.exchange_authorization_code(code, redirect_uri)
        expires_at = await token_store.save_access_token(
            tokens.access_token, tokens.expires_in
        )
        if tokens.refresh_token:
            await token_store.save_refresh_token(tokens.refresh_token)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("OAuth callback failed")
        return _frontend_redirect(settings, error=str(exc) or "Authentication failed.")

    logger.info("Cafe24 connected; access token valid until %s", _iso_from_millis(expires_at))
    return _frontend_redirect(settings, success="true")


@router.post("/token", status_code=HTTPStatus.OK)
async def save_token(
    payload: ManualTokenPayload,
    token_store: Annotated[Any, Depends(get_token_store)],
) -> JSONResponse:
    """Seed an access token by hand."""
    if not payload.access_token:
        return JSONResponse(
            status_code=HTTPStatus.BAD_REQUEST,
            content={"error": "accessToken is required."},
        )
    try:
        expires_at = await token_store.save_access_token(
            payload.access_token, payload.expires_in
        )
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Failed to store access token")
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={"error": str(exc) or "Failed to store the access token."},
        )
    return JSONResponse(
        content={
            "success": True,
            "message": "Access token stored.",
            "expires_at": _iso_from_millis(expires_at),
        }
    )


@router.get("/token", status_code=HTTPStatus.OK)
async def read_token(
    token_store: Annotated[Any, Depends(get_token_store)],
) -> JSONResponse:
    """Return the stored access token and its expiry."""
    try:
        record = await token_store.get_stored_access_token()
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Failed to read access token")
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR, content={"error": str(exc)}
        )
    if record is None:
        return JSONResponse(
            status_code=HTTPStatus.NOT_FOUND,
            content={"error": "No access token is stored."},
        )
    return JSONResponse(
        content={
            "access_token": record.access_token,
            "expires_at": _iso_from_millis(record.access_expires_at),
            "minutes_left": record.minutes_left(token_store.now()),
        }
    )


@router.get("/token/status", status_code=HTTPStatus.OK)
async def token_status(
    token_store: Annotated[Any, Depends(get_token_store)],
) -> JSONResponse:
    """Report token validity, remaining lifetime and store diagnostics."""
    try:
        diagnostics = await token_store.get_diagnostic_info()
        record = await token_store.get_stored_access_token()
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Token status check failed")
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={"error": str(exc) or "Token status check failed."},
        )

    if record is None:
        return JSONResponse(
            content={
                "valid": False,
                "message": "No usable access token is stored.",
                "store": diagnostics,
            }
        )

    minutes_left = record.minutes_left(token_store.now())
    return JSONResponse(
        content={
            "valid": True,
            "expiresAt": record.access_expires_at,
            "minutesLeft": minutes_left,
            "message": f"Access token expires in {minutes_left} minutes.",
            "store": diagnostics,
        }
    )


@router.post("/token/refresh", status_code=HTTPStatus.OK)
async def refresh_token(
    oauth_client: Annotated[Any, Depends(get_cafe24_oauth_client)],
    token_store: Annotated[Any, Depends(get_token_store)],
) -> JSONResponse:
    """Force a refresh through the Cafe24 token endpoint."""
    try:
        tokens = await oauth_client.refresh_access_token()
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Manual token refresh failed")
        return _error(HTTPStatus.INTERNAL_SERVER_ERROR, str(exc) or "Token refresh failed.")

    expires_at = token_store.now() + tokens.expires_in * 1000
    return JSONResponse(
        content={
            "success": True,
            "message": "Access token refreshed.",
            "expiresAt": _iso_from_millis(expires_at),
            "expiresIn": tokens.expires_in,
        }
    )


@router.get("/test", status_code=HTTPStatus.OK)
async def test_shop_info(
    gateway: Annotated[Any, Depends(get_cafe24_api_gateway)],
) -> JSONResponse:
    """Fetch shop info to confirm the admin API is reachable."""
    try:
        shop = await gateway.get_shop()
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Shop info test failed")
        return _error(
            HTTPStatus.INTERNAL_SERVER_ERROR, str(exc), errorDetails=_vendor_details(exc)
        )
    return JSONResponse(
        content={
            "success": True,
            "message": "Cafe24 admin API reachable.",
            "data": shop,
            "timestamp": _utc_now_iso(),
        }
    )


@router.post("/test", status_code=HTTPStatus.OK)
async def test_custom_endpoint(
    payload: ApiTestRequest,
    gateway: Annotated[Any, Depends(get_cafe24_api_gateway)],
) -> JSONResponse:
    """Issue an arbitrary admin API call from the operator test page."""
    method = payload.method.upper()
    body = payload.data if method != "GET" else None
    try:
        result = await gateway.api_request(payload.endpoint, method=method, json=body)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Custom API test %s %s failed", method, payload.endpoint)
        return _error(
            HTTPStatus.INTERNAL_SERVER_ERROR, str(exc), errorDetails=_vendor_details(exc)
        )
    return JSONResponse(
        content={
            "success": True,
            "message": f"{method} {payload.endpoint} succeeded.",
            "data": result,
            "timestamp": _utc_now_iso(),
        }
    )


async def _list_products(gateway: Any, query: ProductQuery) -> JSONResponse:
    try:
        products = await gateway.list_products(
            limit=query.limit, offset=query.offset, **query.filters()
        )
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Product listing test failed")
        return _error(
            HTTPStatus.INTERNAL_SERVER_ERROR, str(exc), errorDetails=_vendor_details(exc)
        )
    count = len(products.get("products") or []) if isinstance(products, dict) else 0
    return JSONResponse(
        content={
            "success": True,
            "message": "Product listing succeeded.",
            "data": products,
            "productCount": count,
            "queryParams": {
                "limit": query.limit,
                "offset": query.offset,
                **query.filters(),
            },
            "timestamp": _utc_now_iso(),
        }
    )


@router.get("/test/products", status_code=HTTPStatus.OK)
async def test_products(
    gateway: Annotated[Any, Depends(get_cafe24_api_gateway)],
) -> JSONResponse:
    return await _list_products(gateway, ProductQuery())


@router.post("/test/products", status_code=HTTPStatus.OK)
async def test_products_with_filters(
    query: ProductQuery,
    gateway: Annotated[Any, Depends(get_cafe24_api_gateway)],
) -> JSONResponse:
    return await _list_products(gateway, query)


@router.post("/test/boards", status_code=HTTPStatus.OK)
async def test_board_article(
    payload: BoardTestRequest,
    gateway: Annotated[Any, Depends(get_cafe24_api_gateway)],
) -> JSONResponse:
    """Post a raw article payload to a board."""
    if not payload.board_no:
        return _error(HTTPStatus.BAD_REQUEST, "boardNo is required.")

    endpoint = f"/api/v2/admin/boards/{payload.board_no}/articles"
    try:
        result = await gateway.create_board_article(payload.board_no, payload.data)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Board article test failed")
        return _error(
            HTTPStatus.INTERNAL_SERVER_ERROR,
            str(exc),
            errorDetails=_vendor_details(exc),
            endpoint=endpoint,
        )
    return JSONResponse(
        content={
            "success": True,
            "data": result,
            "endpoint": endpoint,
            "timestamp": _utc_now_iso(),
        }
    )


__all__ = ["router"]
