"""
Utility wrapper for storing the Cafe24 token record in DynamoDB.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from cafe24_bridge.core.config import AWSSettings
from cafe24_bridge.core.errors import PermissionDeniedError, StorageUnavailableError

_PERMISSION_ERROR_CODES = {
    "AccessDeniedException",
    "UnrecognizedClientException",
    "InvalidSignatureException",
    "ExpiredTokenException",
}


def _translate_error(exc: Exception) -> Exception:
    if isinstance(exc, ClientError):
        code = exc.response.get("Error", {}).get("Code", "")
        message = exc.response.get("Error", {}).get("Message", str(exc))
        if code in _PERMISSION_ERROR_CODES:
            return PermissionDeniedError(
                f"DynamoDB rejected the request ({code}); check the IAM policy: {message}"
            )
        return StorageUnavailableError(f"DynamoDB request failed ({code}): {message}")
    return StorageUnavailableError(f"DynamoDB is unreachable: {exc}")


class DynamoDBClient:
    """Get and merge-update single items keyed by (pk, sk)."""

    def __init__(self, settings: AWSSettings) -> None:
        self._settings = settings
        self._resource = boto3.resource(
            "dynamodb",
            region_name=settings.region_name,
            endpoint_url=settings.dynamodb_endpoint_url,
        )
        self._table = self._resource.Table(settings.dynamodb_table_name)

    @property
    def table_name(self) -> str:
        return self._table.name

    def get_item(self, *, partition_key: str, sort_key: str) -> Optional[Dict[str, Any]]:
        """Retrieve an item using its key."""
        try:
            response = self._table.get_item(
                Key={"pk": partition_key, "sk": sort_key}, ConsistentRead=True
            )
        except (ClientError, BotoCoreError) as exc:
            raise _translate_error(exc) from exc
        return response.get("Item")

    def update_item(
        self,
        *,
        partition_key: str,
        sort_key: str,
        values: Mapping[str, Any],
        set_if_missing: Optional[Mapping[str, Any]] = None,
        remove: Iterable[str] = (),
    ) -> None:
        """
        Merge attributes into an item, creating it when absent.

        ``values`` are always written, ``set_if_missing`` only when the
        attribute does not exist yet, and ``remove`` attributes are dropped.
        """
        names: Dict[str, str] = {}
        expression_values: Dict[str, Any] = {}
        set_clauses: list[str] = []

        for index, (attribute, value) in enumerate(values.items()):
            names[f"#v{index}"] = attribute
            expression_values[f":v{index}"] = value
            set_clauses.append(f"#v{index} = :v{index}")

        for index, (attribute, value) in enumerate((set_if_missing or {}).items()):
            names[f"#c{index}"] = attribute
            expression_values[f":c{index}"] = value
            set_clauses.append(f"#c{index} = if_not_exists(#c{index}, :c{index})")

        remove_clauses: list[str] = []
        for index, attribute in enumerate(remove):
            names[f"#r{index}"] = attribute
            remove_clauses.append(f"#r{index}")

        expression = ""
        if set_clauses:
            expression += "SET " + ", ".join(set_clauses)
        if remove_clauses:
            expression += " REMOVE " + ", ".join(remove_clauses)

        kwargs: Dict[str, Any] = {
            "Key": {"pk": partition_key, "sk": sort_key},
            "UpdateExpression": expression.strip(),
            "ExpressionAttributeNames": names,
        }
        if expression_values:
            kwargs["ExpressionAttributeValues"] = expression_values

        try:
            self._table.update_item(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise _translate_error(exc) from exc


__all__ = ["DynamoDBClient"]
