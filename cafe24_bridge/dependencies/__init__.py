"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_app_settings,
    get_cafe24_api_gateway,
    get_cafe24_oauth_client,
    get_document_client,
    get_token_cipher_service,
    get_token_scheduler,
    get_token_store,
    get_upload_relay_client,
)

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
