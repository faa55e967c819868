from __future__ import annotations

import logging

import pytest

from cafe24_bridge.core.config import AppSettings, Cafe24Settings, ensure_required_settings
from cafe24_bridge.core.errors import ConfigurationError


def _settings(**values) -> AppSettings:
    return AppSettings(_env_file=None, **values)


def test_defaults_come_from_environment() -> None:
    settings = _settings()

    assert settings.cafe24.mall_id == "testmall"
    assert settings.cafe24.api_base_url == "https://testmall.cafe24api.com"
    assert settings.aws.dynamodb_table_name == "cafe24-tokens-test"
    assert settings.token_store.collection == "cafe24_tokens"
    assert settings.token_store.document == "main_token"
    assert settings.missing_required() == []


def test_cors_origins_are_split() -> None:
    settings = _settings(
        CORS_ALLOW_ORIGINS="https://shop.example.com, https://m.shop.example.com,"
    )

    assert settings.cors_origins == [
        "https://shop.example.com",
        "https://m.shop.example.com",
    ]


@pytest.mark.parametrize(
    ("environment", "enabled", "expected"),
    [
        ("production", None, True),
        ("prod", None, True),
        ("development", None, False),
        ("development", True, True),
        ("production", False, False),
    ],
)
def test_scheduler_should_run(environment, enabled, expected) -> None:
    settings = _settings(APP_ENV=environment, TOKEN_SCHEDULER_ENABLED=enabled)

    assert settings.scheduler_should_run is expected


def test_missing_required_fails_fast_in_production() -> None:
    settings = _settings(APP_ENV="production", cafe24=Cafe24Settings(CAFE24_MALL_ID=""))

    with pytest.raises(ConfigurationError) as exc_info:
        ensure_required_settings(settings)

    assert "CAFE24_MALL_ID" in str(exc_info.value)


def test_missing_required_only_warns_in_development(caplog) -> None:
    settings = _settings(APP_ENV="development", cafe24=Cafe24Settings(CAFE24_MALL_ID=""))

    with caplog.at_level(logging.WARNING):
        ensure_required_settings(settings)

    assert "CAFE24_MALL_ID" in caplog.text
