"""Pytest configuration and shared fixtures."""

import os
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import Mock

import pytest

from models.feedback import Feedback, FeedbackCreate
from utils.cache import clear_all_caches

# Keep boto3 away from real credentials in every test
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-west-2")

# Fixed feedback ids used across tests
FEEDBACK_ID = "3f1c2a9e-5b7d-4c1e-9a2f-6d8b0e4c7a11"
OTHER_FEEDBACK_ID = "8a6e4d2c-1b3f-4e5a-8c7d-9f0a2b4c6e88"

ADMIN_SECRET = "unit-test-admin-key"


@pytest.fixture(autouse=True)
def _clear_caches():
    """Clear the stats cache before and after each test."""
    clear_all_caches()
    yield
    clear_all_caches()


@pytest.fixture
def mock_dynamodb_table():
    """Create a mock DynamoDB table for testing."""
    mock_table = Mock()
    mock_table.put_item.return_value = {}
    mock_table.get_item.return_value = {}
    mock_table.query.return_value = {"Items": [], "Count": 0}
    mock_table.delete_item.return_value = {}
    mock_table.update_item.return_value = {}
    return mock_table


@pytest.fixture
def valid_payload():
    """A submission that passes every field rule."""
    return {
        "name": "Jane Doe",
        "email": "Jane.Doe@Example.com",
        "contactNumber": "+1 555 010 9999",
        "message": "The dashboard loads quickly and looks clean.",
    }


@pytest.fixture
def sample_submission():
    """A validated submission."""
    return FeedbackCreate(
        name="Jane Doe",
        email="jane.doe@example.com",
        contact_number="5550109999",
        message="The dashboard loads quickly and looks clean.",
        rating=4,
        ip_address="203.0.113.7",
        user_agent="pytest-agent/1.0",
    )


def make_feedback(**overrides) -> Feedback:
    """Build a stored Feedback with sensible defaults."""
    now = datetime.now(UTC).isoformat()
    values = {
        "feedback_id": FEEDBACK_ID,
        "name": "Jane Doe",
        "email": "jane.doe@example.com",
        "contact_number": "5550109999",
        "message": "The dashboard loads quickly and looks clean.",
        "rating": 5,
        "status": "new",
        "priority": "medium",
        "is_public": True,
        "tags": [],
        "ip_address": "203.0.113.7",
        "user_agent": "pytest-agent/1.0",
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return Feedback(**values)


@pytest.fixture
def sample_feedback():
    return make_feedback()


@pytest.fixture
def sample_feedback_item():
    """A feedback record as DynamoDB returns it."""
    created = (datetime.now(UTC) - timedelta(minutes=5)).isoformat()
    return {
        "feedback_id": FEEDBACK_ID,
        "record_type": "feedback",
        "public_status": "public#new",
        "name": "Jane Doe",
        "email": "jane.doe@example.com",
        "message": "The dashboard loads quickly and looks clean.",
        "rating": Decimal("4"),
        "status": "new",
        "priority": "medium",
        "is_public": True,
        "tags": ["positive"],
        "ip_address": "203.0.113.7",
        "user_agent": "pytest-agent/1.0",
        "created_at": created,
        "updated_at": created,
    }
