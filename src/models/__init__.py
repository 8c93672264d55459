"""Data models for the BuzzGuard feedback API."""

from .feedback import (
    AdminResponse,
    Feedback,
    FeedbackCreate,
    FeedbackFilter,
    FeedbackPage,
    FeedbackPriority,
    FeedbackStats,
    FeedbackStatus,
)

__all__ = [
    "AdminResponse",
    "Feedback",
    "FeedbackCreate",
    "FeedbackFilter",
    "FeedbackPage",
    "FeedbackPriority",
    "FeedbackStats",
    "FeedbackStatus",
]
