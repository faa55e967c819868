"""
Relay for storefront file uploads to the cloud storage function.
"""

from __future__ import annotations

import base64
import logging
from typing import Optional

import httpx

from cafe24_bridge.core.config import UploadSettings
from cafe24_bridge.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class FileUploadRelayClient:
    """Forward a file as ``{fileName, base64Data}`` JSON to the upload function."""

    def __init__(
        self,
        settings: UploadSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    async def upload(
        self,
        *,
        file_name: str,
        content: bytes,
        authorization: Optional[str] = None,
    ) -> httpx.Response:
        """Send the file upstream and hand back the raw response."""
        if not self._settings.function_url:
            raise ConfigurationError("UPLOAD_FUNCTION_URL is not configured.")

        payload = {
            "fileName": file_name,
            "base64Data": base64.b64encode(content).decode("ascii"),
        }
        headers = {"Content-Type": "application/json"}
        if authorization:
            headers["Authorization"] = authorization

        logger.info("Relaying upload %s (%s bytes)", file_name, len(content))
        async with httpx.AsyncClient(
            timeout=self._settings.timeout, transport=self._transport
        ) as client:
            response = await client.post(
                self._settings.function_url, json=payload, headers=headers
            )
        logger.info("Upload function responded with %s", response.status_code)
        return response


__all__ = ["FileUploadRelayClient"]
