"""
Public routes called directly by the storefront skin scripts.

These sit behind CORS and never expose token details: authentication failures
are reported with a generic "contact the administrator" message.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from cafe24_bridge.core.errors import AuthenticationError
from cafe24_bridge.dependencies import get_cafe24_api_gateway, get_upload_relay_client
from cafe24_bridge.schemas import ExternalArticleRequest

router = APIRouter(prefix="/external")
logger = logging.getLogger(__name__)

AUTH_FAILURE_MESSAGE = (
    "The authentication token has expired or is invalid. "
    "Please contact the administrator."
)
CATEGORY_NAMES = {"1": "Quote request", "2": "Design request"}


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "127.0.0.1"


def _is_auth_failure(exc: Exception) -> bool:
    if isinstance(exc, AuthenticationError):
        return True
    message = str(exc).lower()
    return "token" in message or "auth" in message


def _attachment_entries(urls: list[Any]) -> list[dict[str, str]]:
    entries = []
    for url in urls:
        if not isinstance(url, str) or not url.startswith(("http://", "https://")):
            continue
        entries.append({"name": url.rstrip("/").split("/")[-1] or "attachment", "url": url})
    return entries


def build_article_payload(article: ExternalArticleRequest, client_ip: str) -> dict[str, Any]:
    """Translate the simplified skin fields into a Cafe24 article request."""
    try:
        category_no = int(article.category)
    except ValueError:
        category_no = 1

    request_data: dict[str, Any] = {
        "writer": article.writer,
        "title": article.title,
        "content": article.content,
        "client_ip": client_ip,
        "board_category_no": category_no,
        "secret": "T" if article.is_secret else "F",
        "writer_email": article.writer_email or "sample@sample.com",
        "member_id": article.member_id or "external_user",
        "nick_name": article.nick_name or article.writer,
        "deleted": "F",
        "input_channel": "P",
        "notice": "T" if article.is_notice else "F",
        "fixed": "F",
        "reply": "F",
        "reply_mail": "N",
        "reply_user_id": "admin",
        "reply_status": "C",
    }

    attachments = _attachment_entries(article.attach_file_urls)
    if attachments:
        request_data["attach_file_urls"] = attachments

    return {"shop_no": 1, "requests": [request_data]}


@router.post("/boards")
async def create_external_article(
    article: ExternalArticleRequest,
    request: Request,
    gateway: Annotated[Any, Depends(get_cafe24_api_gateway)],
) -> JSONResponse:
    """Relay an article submitted from the storefront to a Cafe24 board."""
    missing = article.missing_fields()
    if missing:
        return JSONResponse(
            status_code=HTTPStatus.BAD_REQUEST,
            content={
                "success": False,
                "error": f"Missing required fields: {', '.join(missing)}",
                "required_fields": ["writer", "title", "content"],
            },
        )

    logger.info(
        "External article for board %s (category %s, %s attachment URLs, referer=%s)",
        article.board_no,
        article.category,
        len(article.attach_file_urls),
        request.headers.get("referer"),
    )

    payload = build_article_payload(article, _client_ip(request))
    try:
        result = await gateway.create_board_article(article.board_no, payload)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("External article relay failed")
        message = AUTH_FAILURE_MESSAGE if _is_auth_failure(exc) else str(exc)
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": message or "Failed to create the article.",
                "timestamp": _utc_now_iso(),
            },
        )

    return JSONResponse(
        content={
            "success": True,
            "message": "Article created.",
            "data": result,
            "board_no": article.board_no,
            "category_name": CATEGORY_NAMES.get(article.category, article.category),
            "timestamp": _utc_now_iso(),
        }
    )


@router.post("/upload")
async def relay_upload(
    request: Request,
    relay: Annotated[Any, Depends(get_upload_relay_client)],
    file: Optional[UploadFile] = File(None),
    file_name: Optional[str] = Form(None, alias="fileName"),
) -> JSONResponse:
    """Forward an uploaded file to the cloud storage function."""
    if file is None:
        return JSONResponse(
            status_code=HTTPStatus.BAD_REQUEST,
            content={
                "success": False,
                "error": "No file was uploaded.",
                "timestamp": _utc_now_iso(),
            },
        )

    name = file_name or file.filename or "unnamed_file"
    try:
        content = await file.read()
        upstream = await relay.upload(
            file_name=name,
            content=content,
            authorization=request.headers.get("authorization"),
        )
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Upload relay failed")
        return JSONResponse(
            status_code=HTTPStatus.INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": str(exc) or "File upload failed.",
                "timestamp": _utc_now_iso(),
            },
        )

    if not upstream.is_success:
        return JSONResponse(
            status_code=upstream.status_code,
            content={
                "success": False,
                "error": (
                    f"Upload function failed: {upstream.status_code} "
                    f"{upstream.reason_phrase}"
                ),
                "details": upstream.text,
                "timestamp": _utc_now_iso(),
            },
        )

    try:
        data = upstream.json()
    except ValueError:
        data = upstream.text

    return JSONResponse(
        content={
            "success": True,
            "message": "File uploaded.",
            "data": data,
            "timestamp": _utc_now_iso(),
        }
    )


__all__ = ["build_article_payload", "router"]
