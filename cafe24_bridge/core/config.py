"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the background refresh
scheduler and the maintenance scripts share one configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import logging
import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cafe24_bridge.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SCOPE = (
    "mall.read_category mall.read_product mall.read_community mall.write_community"
)


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class _EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")


class Cafe24Settings(_EnvSettings):
    """Credentials and endpoints for the Cafe24 admin API."""

    mall_id: Optional[str] = Field(None, alias="CAFE24_MALL_ID")
    client_id: Optional[str] = Field(None, alias="CAFE24_CLIENT_ID")
    client_secret: Optional[str] = Field(None, alias="CAFE24_CLIENT_SECRET")
    redirect_uri: Optional[str] = Field(None, alias="CAFE24_REDIRECT_URI")
    scope: str = Field(DEFAULT_SCOPE, alias="CAFE24_SCOPE")
    api_version: str = Field("2025-06-01", alias="CAFE24_API_VERSION")
    http_timeout: float = Field(10.0, alias="CAFE24_HTTP_TIMEOUT")

    @property
    def api_base_url(self) -> str:
        return f"https://{self.mall_id}.cafe24api.com"

    @property
    def is_configured(self) -> bool:
        return bool(self.mall_id and self.client_id and self.client_secret)


class AWSSettings(_EnvSettings):
    """Settings for the DynamoDB table holding the token record."""

    region_name: str = Field("ap-northeast-2", alias="AWS_REGION")
    dynamodb_table_name: Optional[str] = Field(None, alias="DYNAMODB_TABLE_NAME")
    dynamodb_endpoint_url: Optional[str] = Field(
        None,
        alias="DYNAMODB_ENDPOINT_URL",
        description="Override for DynamoDB Local or LocalStack.",
    )


class TokenStoreSettings(_EnvSettings):
    """Fixed location of the single token record."""

    collection: str = Field("cafe24_tokens", alias="TOKEN_COLLECTION")
    document: str = Field("main_token", alias="TOKEN_DOCUMENT")


class SecuritySettings(_EnvSettings):
    """Security-related configuration."""

    token_encryption_secret: Optional[str] = Field(
        None,
        alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens. "
            "Tokens are stored in plaintext when omitted."
        ),
    )


class UploadSettings(_EnvSettings):
    """Target of the public file upload relay."""

    function_url: Optional[str] = Field(None, alias="UPLOAD_FUNCTION_URL")
    timeout: float = Field(30.0, alias="UPLOAD_TIMEOUT")


class AppSettings(_EnvSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        populate_by_name=True,
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    frontend_base_url: Optional[str] = Field(
        None,
        alias="FRONTEND_BASE_URL",
        description="Page that receives ?success / ?error after the OAuth callback.",
    )
    cors_allow_origins: str = Field(
        "*",
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated origins allowed to call the public relay routes.",
    )
    scheduler_enabled: Optional[bool] = Field(None, alias="TOKEN_SCHEDULER_ENABLED")
    scheduler_timezone: str = Field("Asia/Seoul", alias="SCHEDULER_TIMEZONE")
    cafe24: Cafe24Settings = Field(default_factory=Cafe24Settings)
    aws: AWSSettings = Field(default_factory=AWSSettings)
    token_store: TokenStoreSettings = Field(default_factory=TokenStoreSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)

    @property
    def cors_origins(self) -> list[str]:
        """Support providing origins as a comma-separated string."""
        return [
            origin.strip()
            for origin in self.cors_allow_origins.split(",")
            if origin.strip()
        ]

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in {"prod", "production"}

    @property
    def scheduler_should_run(self) -> bool:
        if self.scheduler_enabled is None:
            return self.is_production
        return self.scheduler_enabled

    def missing_required(self) -> list[str]:
        """Return the environment keys that must be set but are empty."""
        required = {
            "CAFE24_MALL_ID": self.cafe24.mall_id,
            "CAFE24_CLIENT_ID": self.cafe24.client_id,
            "CAFE24_CLIENT_SECRET": self.cafe24.client_secret,
            "CAFE24_REDIRECT_URI": self.cafe24.redirect_uri,
            "DYNAMODB_TABLE_NAME": self.aws.dynamodb_table_name,
        }
        return [key for key, value in required.items() if not value]


def ensure_required_settings(settings: AppSettings) -> None:
    """Fail fast in production, warn elsewhere, when required keys are missing."""
    missing = settings.missing_required()
    if not missing:
        return
    if settings.is_production:
        raise ConfigurationError(
            f"Missing required configuration: {', '.join(missing)}"
        )
    logger.warning(
        "Missing configuration (%s); token storage and Cafe24 calls will fail "
        "until these are set.",
        ", ".join(missing),
    )


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "AWSSettings",
    "Cafe24Settings",
    "SecuritySettings",
    "TokenStoreSettings",
    "UploadSettings",
    "ensure_required_settings",
    "get_settings",
]
