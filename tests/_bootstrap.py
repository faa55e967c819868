"""Test helper that normalizes sys.path and environment defaults."""

from __future__ import annotations

import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


_DEFAULT_ENV_VARS: dict[str, str] = {
    "APP_ENV": "development",
    "CAFE24_MALL_ID": "testmall",
    "CAFE24_CLIENT_ID": "test-client-id",
    "CAFE24_CLIENT_SECRET": "test-client-secret",
    "CAFE24_REDIRECT_URI": "https://bridge.example.com/api/auth/callback",
    "AWS_REGION": "ap-northeast-2",
    "DYNAMODB_TABLE_NAME": "cafe24-tokens-test",
    "TOKEN_SCHEDULER_ENABLED": "false",
}

for key, value in _DEFAULT_ENV_VARS.items():
    os.environ.setdefault(key, value)
