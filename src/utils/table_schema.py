"""DynamoDB table definition for feedback records."""

from typing import Any


def _index(name: str, hash_key: str, range_key: str = "created_at") -> dict[str, Any]:
    return {
        "IndexName": name,
        "KeySchema": [
            {"AttributeName": hash_key, "KeyType": "HASH"},
            {"AttributeName": range_key, "KeyType": "RANGE"},
        ],
        "Projection": {"ProjectionType": "ALL"},
    }


def feedback_table_definition(table_name: str) -> dict[str, Any]:
    """Keyword arguments for ``dynamodb.create_table``.

    Indexes cover newest-first scans of the whole collection, duplicate
    lookups by email, status counts, and public listings by status.
    """
    return {
        "TableName": table_name,
        "KeySchema": [{"AttributeName": "feedback_id", "KeyType": "HASH"}],
        "AttributeDefinitions": [
            {"AttributeName": "feedback_id", "AttributeType": "S"},
            {"AttributeName": "record_type", "AttributeType": "S"},
            {"AttributeName": "created_at", "AttributeType": "S"},
            {"AttributeName": "email", "AttributeType": "S"},
            {"AttributeName": "status", "AttributeType": "S"},
            {"AttributeName": "public_status", "AttributeType": "S"},
        ],
        "GlobalSecondaryIndexes": [
            _index("CreatedAtIndex", "record_type"),
            _index("EmailIndex", "email"),
            _index("StatusIndex", "status"),
            _index("PublicStatusIndex", "public_status"),
        ],
        "BillingMode": "PAY_PER_REQUEST",
    }
