"""Services for the BuzzGuard feedback backend."""

from .duplicate_guard import DuplicateGuard
from .feedback_service import FeedbackService
from .feedback_stats import FeedbackStatsService
from .feedback_store import FeedbackStore

__all__ = [
    "DuplicateGuard",
    "FeedbackService",
    "FeedbackStatsService",
    "FeedbackStore",
]
