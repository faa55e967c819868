"""
Persistence for the single Cafe24 credential record.

The record lives at a fixed (collection, document) key in DynamoDB::

    {
        "pk": "cafe24_tokens",
        "sk": "main_token",
        "access_token": {"access_token": "...", "expires_at": 1700000000000},
        "refresh_token": "...",
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": "2024-01-01T00:00:00+00:00",
    }

``expires_at`` is epoch milliseconds. Reads never raise: anything that cannot
be used right now (missing, expired, malformed, unreadable) comes back as
``None``. Writes raise so callers can report the failure.
"""

from __future__ import annotations

import logging
import math
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from cafe24_bridge.core.errors import (
    Cafe24BridgeError,
    ConfigurationError,
    PermissionDeniedError,
)
from cafe24_bridge.core.logging import mask_token
from cafe24_bridge.models.token import TokenRecord
from cafe24_bridge.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 7200
STORE_PROVIDER = "Amazon DynamoDB"


def current_millis() -> int:
    return int(time.time() * 1000)


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def validate_expires_in(value: Any, *, source: str = "token response") -> int:
    """Return ``value`` as positive seconds, or the default with a warning."""
    number = _to_number(value)
    if number is None or number <= 0:
        logger.warning(
            "Invalid expires_in %r in %s; using default of %s seconds",
            value,
            source,
            DEFAULT_EXPIRES_IN,
        )
        return DEFAULT_EXPIRES_IN
    return math.ceil(number)


def _valid_expires_at(value: Any) -> Optional[int]:
    number = _to_number(value)
    if number is None or number <= 0:
        return None
    return int(number)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TokenStore:
    """Read and write the access/refresh token pair for the connected mall."""

    def __init__(
        self,
        document_client: Any,
        *,
        collection: str = "cafe24_tokens",
        document: str = "main_token",
        token_cipher: Optional[TokenCipherService] = None,
        clock: Callable[[], int] = current_millis,
    ) -> None:
        self._client = document_client
        self._collection = collection
        self._document = document
        self._cipher = token_cipher
        self._clock = clock

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    def now(self) -> int:
        return self._clock()

    def _require_client(self) -> Any:
        if self._client is None:
            raise ConfigurationError(
                "Token store is not configured; set DYNAMODB_TABLE_NAME and AWS_REGION."
            )
        return self._client

    def _seal(self, value: str) -> str:
        return self._cipher.encrypt(value) if self._cipher else value

    def _unseal(self, value: Any) -> Optional[str]:
        if not isinstance(value, str) or not value:
            return None
        if not self._cipher:
            return value
        try:
            return self._cipher.decrypt(value)
        except ValueError as exc:
            logger.error("Discarding stored token: %s", exc)
            return None

    def _read(self) -> Optional[Dict[str, Any]]:
        client = self._require_client()
        return client.get_item(partition_key=self._collection, sort_key=self._document)

    def _merge(
        self,
        values: Dict[str, Any],
        *,
        remove: tuple[str, ...] = (),
    ) -> None:
        client = self._require_client()
        now_iso = _utc_now_iso()
        client.update_item(
            partition_key=self._collection,
            sort_key=self._document,
            values={**values, "updated_at": now_iso},
            set_if_missing={"created_at": now_iso},
            remove=remove,
        )

    async def save_access_token(self, token: str, expires_in: Any) -> int:
        """
        Persist ``token`` with an absolute expiry and return that expiry.

        The refresh token already on the record is left untouched.
        """
        seconds = validate_expires_in(expires_in, source="save_access_token")
        expires_at = self.now() + seconds * 1000
        self._merge(
            {
                "access_token": {
                    "access_token": self._seal(token),
                    "expires_at": expires_at,
                }
            }
        )
        logger.info(
            "Stored access token %s (expires in %ss, at %s)",
            mask_token(token),
            seconds,
            datetime.fromtimestamp(expires_at / 1000, tz=timezone.utc).isoformat(),
        )
        return expires_at

    async def save_refresh_token(self, token: str) -> None:
        """Overwrite the refresh token, creating the record when needed."""
        self._merge({"refresh_token": self._seal(token)})
        logger.info("Stored refresh token %s", mask_token(token))

    async def get_stored_access_token(self) -> Optional[TokenRecord]:
        try:
            item = self._read()
        except Cafe24BridgeError as exc:
            logger.error("Could not read access token: %s", exc)
            return None

        if not item:
            logger.debug("No token record at %s/%s", self._collection, self._document)
            return None

        access = item.get("access_token")
        if not isinstance(access, dict):
            return None

        expires_at = _valid_expires_at(access.get("expires_at"))
        if expires_at is None:
            logger.warning(
                "Stored expires_at %r is not a valid timestamp", access.get("expires_at")
            )
            return None

        if self.now() >= expires_at:
            logger.info("Stored access token has expired")
            return None

        access_token = self._unseal(access.get("access_token"))
        if access_token is None:
            return None

        return TokenRecord(
            access_token=access_token,
            access_expires_at=expires_at,
            refresh_token=self._unseal(item.get("refresh_token")),
        )

    async def get_stored_refresh_token(self) -> Optional[str]:
        try:
            item = self._read()
        except Cafe24BridgeError as exc:
            logger.error("Could not read refresh token: %s", exc)
            return None
        if not item:
            return None
        return self._unseal(item.get("refresh_token"))

    async def is_access_token_valid(self) -> bool:
        return await self.get_stored_access_token() is not None

    async def cleanup_invalid_token_data(self) -> None:
        """Drop the access token when its expiry is not a usable number."""
        try:
            item = self._read()
            if not item or "access_token" not in item:
                return
            access = item["access_token"]
            expires_at = access.get("expires_at") if isinstance(access, dict) else None
            if _valid_expires_at(expires_at) is not None:
                return
            logger.info("Removing access token with invalid expires_at %r", expires_at)
            self._merge({}, remove=("access_token",))
        except Cafe24BridgeError as exc:
            logger.error("Token cleanup failed: %s", exc)

    async def get_diagnostic_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "provider": STORE_PROVIDER,
            "collection": self._collection,
            "document": self._document,
            "exists": False,
        }
        if self._client is None:
            info["error"] = "Token store is not configured; check environment variables."
            info["configError"] = True
            return info

        try:
            item = self._read()
        except PermissionDeniedError as exc:
            info["error"] = f"Permission denied by the token table: {exc}"
            info["permissionDenied"] = True
            return info
        except Exception as exc:  # pylint: disable=broad-except
            info["error"] = str(exc)
            return info

        if not item:
            return info

        info.update(
            {
                "exists": True,
                "hasAccessToken": bool(item.get("access_token")),
                "hasRefreshToken": bool(item.get("refresh_token")),
                "lastUpdated": item.get("updated_at"),
                "created": item.get("created_at"),
            }
        )
        return info


__all__ = [
    "DEFAULT_EXPIRES_IN",
    "TokenStore",
    "current_millis",
    "validate_expires_in",
]
