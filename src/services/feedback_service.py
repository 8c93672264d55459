"""Feedback lifecycle: submission, reads, statistics and deletion."""

import logging
from typing import Any, Mapping

from models.feedback import (
    Feedback,
    FeedbackFilter,
    FeedbackPage,
    FeedbackPriority,
    FeedbackStats,
    FeedbackStatus,
)
from services.auto_tagger import apply_auto_tags
from services.duplicate_guard import DuplicateGuard
from services.feedback_stats import FeedbackStatsService
from services.feedback_store import FeedbackStore
from services.feedback_validation import validate_submission
from utils.cache import STATS_CACHE_KEY, get_stats_cache, invalidate_stats

logger = logging.getLogger(__name__)


class FeedbackService:
    """Composes validation, duplicate guard, tagging, storage and stats."""

    def __init__(
        self,
        store: FeedbackStore,
        duplicate_guard: DuplicateGuard | None = None,
        stats_service: FeedbackStatsService | None = None,
    ):
        """Initialize the feedback service.

        Args:
            store: FeedbackStore for persistence
            duplicate_guard: Optional guard (defaults to a 60 minute window)
            stats_service: Optional stats service (defaults to one on ``store``)
        """
        self.store = store
        self.duplicate_guard = duplicate_guard or DuplicateGuard(store)
        self.stats_service = stats_service or FeedbackStatsService(store)

    def submit(
        self,
        payload: Mapping[str, Any],
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> Feedback:
        """Validate, de-duplicate, tag and store a submission.

        Raises:
            FeedbackValidationError: If any field rule fails
            DuplicateSubmissionError: If the email submitted recently
            PersistenceError: If the table is unavailable
        """
        submission = validate_submission(payload)
        self.duplicate_guard.check(submission.email)

        submission = submission.model_copy(
            update={"ip_address": ip_address, "user_agent": user_agent}
        )
        tags, priority = apply_auto_tags(submission, FeedbackPriority.MEDIUM.value)
        feedback = self.store.create(submission, tags=tags, priority=priority)
        invalidate_stats()

        logger.info(
            "New feedback %s stored (priority=%s, tags=%s)",
            feedback.feedback_id,
            feedback.priority,
            ",".join(feedback.tags) or "-",
        )
        return feedback

    def list_feedback(
        self,
        page: int = 1,
        page_size: int = 10,
        status: FeedbackStatus | str | None = None,
        priority: FeedbackPriority | str | None = None,
        public_only: bool = True,
    ) -> FeedbackPage:
        """Page through feedback, newest first."""
        filters = FeedbackFilter(status=status, priority=priority, public_only=public_only)
        return self.store.list_paged(filters, page=page, page_size=page_size)

    def get_recent(self, limit: int = 5) -> list[Feedback]:
        """Newest public feedback for display on the website."""
        return self.store.get_recent(limit)

    def get_feedback(self, feedback_id: str) -> Feedback:
        """One publicly visible record."""
        return self.store.get_by_id(feedback_id)

    def get_stats(self) -> FeedbackStats:
        """Statistics snapshot, cached briefly between writes."""
        cache = get_stats_cache()
        if STATS_CACHE_KEY in cache:
            return cache[STATS_CACHE_KEY]
        stats = self.stats_service.get_stats()
        cache[STATS_CACHE_KEY] = stats
        return stats

    def delete_feedback(self, feedback_id: str, admin_secret: str | None) -> None:
        """Delete a record; requires the admin secret."""
        self.store.delete_by_id(feedback_id, admin_secret)
        invalidate_stats()
        logger.info("Feedback %s deleted by admin", feedback_id)

    def migrate_ratings(
        self, admin_secret: str | None, default: int = 5
    ) -> tuple[int, FeedbackStats]:
        """Give every record without a rating the default one.

        Returns:
            Tuple of (records updated, fresh stats)
        """
        self.store.verify_admin_secret(admin_secret)
        updated = self.store.backfill_missing_ratings(default=default)
        invalidate_stats()
        logger.info("Rating backfill updated %d feedback records", updated)
        return updated, self.get_stats()
