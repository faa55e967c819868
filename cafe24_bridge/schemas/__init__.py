"""Public schema exports."""

from .auth import ManualTokenPayload, TokenResponse
from .boards import (
    ApiTestRequest,
    BoardTestRequest,
    ExternalArticleRequest,
    ProductQuery,
)

__all__ = [
    "ApiTestRequest",
    "BoardTestRequest",
    "ExternalArticleRequest",
    "ManualTokenPayload",
    "ProductQuery",
    "TokenResponse",
]
