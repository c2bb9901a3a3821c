"""
Key-value store backed by a single DynamoDB table

Every record is one item: ``{"key": <string key>, "value": <map>}``.
The raw operations mirror a generic KV interface (get, set, delete,
get_by_prefix); ``load``, ``save`` and ``scan`` add the typed record layer
from ``library_backend.models`` on top of them.

There is no atomicity across calls. Read-modify-write sequences are last
write wins.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, TypeVar

import library_backend.config as config
from library_backend.models import RecordValidationError
from library_backend.utils.response import convert_decimal

logger = logging.getLogger(__name__)

KEY_ATTRIBUTE = "key"
VALUE_ATTRIBUTE = "value"

T = TypeVar("T")


def to_dynamo(value: Any) -> Any:
    """Convert floats to Decimal so boto3 accepts the payload."""
    return json.loads(json.dumps(value), parse_float=Decimal)


def from_dynamo(value: Any) -> Any:
    """Recursively convert DynamoDB Decimals back to int/float."""
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return convert_decimal(value)


def get(key: str) -> dict | None:
    """Return the value stored under ``key``, or None."""
    response = config.kv_table.get_item(Key={KEY_ATTRIBUTE: key})
    item = response.get("Item")
    if item is None:
        return None
    return from_dynamo(item.get(VALUE_ATTRIBUTE))


def set(key: str, value: dict) -> None:  # noqa: A001
    """Store ``value`` under ``key``, replacing any previous value."""
    config.kv_table.put_item(Item={KEY_ATTRIBUTE: key, VALUE_ATTRIBUTE: to_dynamo(value)})


def delete(key: str) -> None:
    """Remove ``key``. Deleting an absent key is not an error."""
    config.kv_table.delete_item(Key={KEY_ATTRIBUTE: key})


def _scan_prefix(prefix: str, **extra: Any) -> list[dict]:
    """Raw items whose key starts with ``prefix``, across all scan pages."""
    scan_kwargs: dict[str, Any] = {
        "FilterExpression": "begins_with(#k, :prefix)",
        "ExpressionAttributeNames": {"#k": KEY_ATTRIBUTE},
        "ExpressionAttributeValues": {":prefix": prefix},
        **extra,
    }

    response = config.kv_table.scan(**scan_kwargs)
    items = response.get("Items", [])

    # Handle pagination
    while "LastEvaluatedKey" in response:
        response = config.kv_table.scan(
            ExclusiveStartKey=response["LastEvaluatedKey"], **scan_kwargs
        )
        items.extend(response.get("Items", []))

    logger.debug(f"Prefix scan '{prefix}' matched {len(items)} items")
    return items


def get_by_prefix(prefix: str) -> list[dict]:
    """
    Return every value whose key starts with ``prefix``.

    This is a full table scan with a filter, following pagination until the
    table is exhausted. Order is whatever DynamoDB returns.
    """
    return [from_dynamo(item.get(VALUE_ATTRIBUTE)) for item in _scan_prefix(prefix)]


def delete_by_prefix(prefix: str) -> int:
    """
    Delete every key starting with ``prefix``.

    Returns:
        int: Number of deleted keys
    """
    items = _scan_prefix(prefix, ProjectionExpression="#k")
    for item in items:
        delete(item[KEY_ATTRIBUTE])
    return len(items)


def load(model: type[T], key: str) -> T | None:
    """
    Load and validate a typed record.

    Raises:
        RecordValidationError: If the stored value does not match ``model``
    """
    data = get(key)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise RecordValidationError(f"Value under '{key}' is not an object")
    return model.from_dict(data)  # type: ignore[attr-defined]


def save(record: Any) -> None:
    """Persist a typed record under its own key."""
    set(record.key, record.to_dict())


def scan(model: type[T], prefix: str | None = None) -> list[T]:
    """
    Load every record of ``model`` under ``prefix`` (defaults to the kind prefix).

    Values that fail validation are logged and skipped.
    """
    prefix = prefix or model.kind.prefix  # type: ignore[attr-defined]
    records = []
    for data in get_by_prefix(prefix):
        try:
            if not isinstance(data, dict):
                raise RecordValidationError("value is not an object")
            records.append(model.from_dict(data))  # type: ignore[attr-defined]
        except RecordValidationError as e:
            logger.warning(f"Skipping invalid {model.__name__} record under '{prefix}': {str(e)}")
    return records
