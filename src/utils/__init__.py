"""Utility functions for the BuzzGuard feedback API."""

from .dynamodb_utils import (
    decimal_to_python,
    parse_from_dynamodb,
    parse_items_from_dynamodb,
    prepare_for_dynamodb,
    python_to_decimal,
)

__all__ = [
    "decimal_to_python",
    "python_to_decimal",
    "prepare_for_dynamodb",
    "parse_from_dynamodb",
    "parse_items_from_dynamodb",
]
