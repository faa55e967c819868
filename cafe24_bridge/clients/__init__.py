"""Expose constructed client wrappers."""

from .cafe24_auth import Cafe24OAuthClient
from .dynamodb import DynamoDBClient
from .upload_relay import FileUploadRelayClient

__all__ = [
    "Cafe24OAuthClient",
    "DynamoDBClient",
    "FileUploadRelayClient",
]
