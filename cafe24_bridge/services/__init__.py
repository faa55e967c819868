"""Service layer exports."""

from .cafe24_api import Cafe24ApiGateway
from .token_cipher import TokenCipherService
from .token_scheduler import TokenRefreshScheduler
from .token_store import DEFAULT_EXPIRES_IN, TokenStore

__all__ = [
    "Cafe24ApiGateway",
    "DEFAULT_EXPIRES_IN",
    "TokenCipherService",
    "TokenRefreshScheduler",
    "TokenStore",
]
