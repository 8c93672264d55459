"""Tests for keyword tagging."""

import pytest

from models.feedback import FeedbackCreate
from services.auto_tagger import (
    apply_auto_tags,
    escalated_priority,
    merge_tags,
    tag_message,
)


def _submission(message: str, tags=None) -> FeedbackCreate:
    return FeedbackCreate(
        name="Sam Tester",
        email="sam@example.com",
        message=message,
        tags=tags or [],
    )


class TestTagMessage:
    """Test cases for tag_message."""

    def test_no_keywords(self):
        result = tag_message("Thanks for the quick delivery yesterday.")

        assert result.tags == []
        assert result.escalate is False

    def test_bug_and_positive(self):
        result = tag_message("Found a bug but overall great work")

        assert result.tags == ["bug-report", "positive"]
        assert result.escalate is True

    def test_case_insensitive(self):
        result = tag_message("I LOVE the new ESP32 firmware")

        assert result.tags == ["hardware", "positive"]
        assert result.escalate is False

    def test_substring_match(self):
        """'apple' contains 'app'."""
        result = tag_message("Works fine on my apple laptop")
        assert result.tags == ["mobile-app"]

    def test_rule_order_preserved(self):
        result = tag_message(
            "Difficult setup on the device, please improve the mobile error page"
        )

        assert result.tags == [
            "bug-report",
            "feature-request",
            "mobile-app",
            "hardware",
            "negative",
        ]
        assert result.escalate is True

    @pytest.mark.parametrize(
        "message,tag",
        [
            ("There is an issue with login", "bug-report"),
            ("A suggestion for the dashboard", "feature-request"),
            ("The hardware feels solid", "hardware"),
            ("Awesome support team", "positive"),
            ("I hate waiting this long", "negative"),
        ],
    )
    def test_single_keyword(self, message, tag):
        assert tag_message(message).tags == [tag]

    def test_negative_escalates(self):
        assert tag_message("This was a real problem for us").escalate is True

    def test_feature_request_does_not_escalate(self):
        assert tag_message("Please add a dark mode feature").escalate is False


class TestEscalatedPriority:
    """Test cases for escalated_priority."""

    @pytest.mark.parametrize("current", ["low", "medium", "high"])
    def test_raises_to_high(self, current):
        assert escalated_priority(current) == "high"

    def test_urgent_kept(self):
        assert escalated_priority("urgent") == "urgent"


class TestMergeTags:
    """Test cases for merge_tags."""

    def test_union_without_duplicates(self):
        assert merge_tags(["positive", "beta"], ["positive", "hardware"]) == [
            "positive",
            "beta",
            "hardware",
        ]

    def test_normalizes_case_and_whitespace(self):
        assert merge_tags([" Beta "], ["BETA", ""]) == ["beta"]


class TestApplyAutoTags:
    """Test cases for apply_auto_tags."""

    def test_default_priority_unchanged(self):
        tags, priority = apply_auto_tags(_submission("Thanks for the quick delivery."))

        assert tags == []
        assert priority == "medium"

    def test_escalation_sets_high(self):
        tags, priority = apply_auto_tags(
            _submission("Found a bug but overall great work")
        )

        assert tags == ["bug-report", "positive"]
        assert priority == "high"

    def test_urgent_not_downgraded(self):
        _, priority = apply_auto_tags(
            _submission("The checkout error is back again"), priority="urgent"
        )
        assert priority == "urgent"

    def test_existing_tags_merged_first(self):
        tags, _ = apply_auto_tags(
            _submission("I love the new mobile layout", tags=["beta", "positive"])
        )
        assert tags == ["beta", "positive", "mobile-app"]
