"""Conversion between feedback records and DynamoDB items.

DynamoDB returns every number as Decimal and rejects Python floats, so
numbers are converted in both directions. Items also carry a few
storage-only attributes that back the secondary indexes; they are added on
write and stripped on read.
"""

from decimal import Decimal
from typing import Any

RECORD_TYPE = "feedback"

# Attributes that exist only to feed secondary indexes
STORAGE_ATTRIBUTES = ("record_type", "public_status")


def public_status_key(is_public: bool, status: str) -> str:
    """Composite key for the (isPublic, status) index, e.g. ``public#new``."""
    status = getattr(status, "value", status)
    return f"{'public' if is_public else 'private'}#{status}"


def decimal_to_python(obj: Any) -> Any:
    """Recursively turn Decimals into int (whole numbers) or float."""
    if isinstance(obj, Decimal):
        return int(obj) if obj % 1 == 0 else float(obj)
    if isinstance(obj, dict):
        return {key: decimal_to_python(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [decimal_to_python(item) for item in obj]
    return obj


def python_to_decimal(obj: Any) -> Any:
    """Recursively turn int/float into Decimal; bools are left alone."""
    if isinstance(obj, bool):
        return obj
    if isinstance(obj, float):
        # Via str to avoid binary float artifacts
        return Decimal(str(round(obj, 6)))
    if isinstance(obj, int):
        return Decimal(obj)
    if isinstance(obj, dict):
        return {key: python_to_decimal(value) for key, value in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [python_to_decimal(item) for item in obj]
    return obj


def prepare_for_dynamodb(record: dict[str, Any]) -> dict[str, Any]:
    """Build a table item from a dumped feedback record.

    None values are dropped (index key attributes may not be null) and the
    index attributes are derived from ``is_public`` and ``status``.
    """
    item = {key: value for key, value in record.items() if value is not None}
    item["record_type"] = RECORD_TYPE
    item["public_status"] = public_status_key(
        item.get("is_public", True), item.get("status", "new")
    )
    return python_to_decimal(item)


def parse_from_dynamodb(item: dict[str, Any]) -> dict[str, Any]:
    """Turn a table item back into plain record fields."""
    parsed = decimal_to_python(item)
    for attribute in STORAGE_ATTRIBUTES:
        parsed.pop(attribute, None)
    return parsed


def parse_items_from_dynamodb(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [parse_from_dynamodb(item) for item in items]
