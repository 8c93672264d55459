"""Time-windowed suppression of repeat submissions from one email."""

import logging
from datetime import UTC, datetime, timedelta

from services.errors import DuplicateSubmissionError

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MINUTES = 60


class DuplicateGuard:
    """Rejects a submission when the same email submitted recently.

    This is best-effort spam control. The check and the subsequent create are
    separate table operations, so two concurrent submissions from one email
    can both pass.
    """

    def __init__(self, store, window: timedelta = timedelta(minutes=DEFAULT_WINDOW_MINUTES)):
        """Initialize the guard.

        Args:
            store: FeedbackStore used for the email lookup
            window: How far back a previous submission blocks a new one
        """
        self.store = store
        self.window = window

    def check(self, email: str, now: datetime | None = None) -> None:
        """Raise if ``email`` already submitted inside the window.

        Raises:
            DuplicateSubmissionError: If a recent record exists
        """
        now = now or datetime.now(UTC)
        existing = self.store.find_recent_by_email(email, since=now - self.window)
        if existing is not None:
            logger.info(
                "Duplicate submission blocked (previous feedback %s)",
                existing.feedback_id,
            )
            raise DuplicateSubmissionError()
