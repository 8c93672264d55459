"""Keyword-based tagging for new feedback.

Tags are derived once, when a record is created. Matching is a
case-insensitive substring test, so "apple" also counts as "app".
"""

from dataclasses import dataclass

from models.feedback import FeedbackCreate, FeedbackPriority


@dataclass(frozen=True)
class TagRule:
    """Adds ``tag`` when any keyword occurs in the message."""

    tag: str
    keywords: tuple[str, ...]
    escalate: bool = False

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


TAG_RULES = (
    TagRule("bug-report", ("bug", "error", "issue"), escalate=True),
    TagRule("feature-request", ("feature", "suggestion", "improve")),
    TagRule("mobile-app", ("app", "mobile")),
    TagRule("hardware", ("device", "esp32", "hardware")),
    TagRule("positive", ("great", "awesome", "love")),
    TagRule("negative", ("problem", "difficult", "hate"), escalate=True),
)


@dataclass(frozen=True)
class TagResult:
    """Outcome of tagging one message."""

    tags: list[str]
    escalate: bool


def tag_message(message: str) -> TagResult:
    """Evaluate every rule against ``message``."""
    text = message.lower()
    matched = [rule for rule in TAG_RULES if rule.matches(text)]
    return TagResult(
        tags=[rule.tag for rule in matched],
        escalate=any(rule.escalate for rule in matched),
    )


def escalated_priority(current: str) -> str:
    """Priority after escalation: ``high`` unless already ``urgent``."""
    if current == FeedbackPriority.URGENT.value:
        return current
    return FeedbackPriority.HIGH.value


def merge_tags(existing: list[str], extra: list[str]) -> list[str]:
    """Union of two tag lists, lowercased, first occurrence wins."""
    merged: dict[str, None] = {}
    for tag in [*existing, *extra]:
        merged.setdefault(tag.strip().lower(), None)
    return [tag for tag in merged if tag]


def apply_auto_tags(
    submission: FeedbackCreate, priority: str = FeedbackPriority.MEDIUM.value
) -> tuple[list[str], str]:
    """Tags and priority for a submission about to be stored.

    Args:
        submission: Validated submission (its ``tags`` are caller-supplied)
        priority: Starting priority

    Returns:
        Tuple of (tags, priority)
    """
    result = tag_message(submission.message)
    tags = merge_tags(submission.tags, result.tags)
    if result.escalate:
        priority = escalated_priority(priority)
    return tags, priority
