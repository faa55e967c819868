"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

import logging
from functools import lru_cache
from typing import Optional

from cafe24_bridge.clients import (
    Cafe24OAuthClient,
    DynamoDBClient,
    FileUploadRelayClient,
)
from cafe24_bridge.core.config import AppSettings, get_settings
from cafe24_bridge.services import (
    Cafe24ApiGateway,
    TokenCipherService,
    TokenRefreshScheduler,
    TokenStore,
)

logger = logging.getLogger(__name__)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings()


@lru_cache()
def get_document_client() -> Optional[DynamoDBClient]:
    """Provide the DynamoDB wrapper, or ``None`` when the table is not configured."""
    settings = _settings()
    if not settings.aws.dynamodb_table_name:
        logger.warning("DYNAMODB_TABLE_NAME is not set; token storage is disabled")
        return None
    return DynamoDBClient(settings.aws)


@lru_cache()
def get_token_cipher_service() -> Optional[TokenCipherService]:
    """Provide symmetric encryption helper for token storage when configured."""
    settings = _settings()
    return TokenCipherService.from_secret(settings.security.token_encryption_secret)


@lru_cache()
def get_token_store() -> TokenStore:
    """Provide the single-record token store."""
    settings = _settings()
    return TokenStore(
        get_document_client(),
        collection=settings.token_store.collection,
        document=settings.token_store.document,
        token_cipher=get_token_cipher_service(),
    )


@lru_cache()
def get_cafe24_oauth_client() -> Cafe24OAuthClient:
    """Create a singleton Cafe24 OAuth client."""
    settings = _settings()
    return Cafe24OAuthClient(settings.cafe24, get_token_store())


@lru_cache()
def get_cafe24_api_gateway() -> Cafe24ApiGateway:
    """Provide the authenticated admin API gateway."""
    settings = _settings()
    return Cafe24ApiGateway(
        settings.cafe24, get_token_store(), get_cafe24_oauth_client()
    )


@lru_cache()
def get_token_scheduler() -> TokenRefreshScheduler:
    """Provide the background refresh scheduler."""
    settings = _settings()
    return TokenRefreshScheduler(
        get_token_store(),
        get_cafe24_oauth_client(),
        timezone_name=settings.scheduler_timezone,
    )


@lru_cache()
def get_upload_relay_client() -> FileUploadRelayClient:
    """Provide the file upload relay client."""
    return FileUploadRelayClient(_settings().upload)


__all__ = [
    "get_app_settings",
    "get_cafe24_api_gateway",
    "get_cafe24_oauth_client",
    "get_document_client",
    "get_token_cipher_service",
    "get_token_scheduler",
    "get_token_store",
    "get_upload_relay_client",
]
