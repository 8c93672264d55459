"""Aggregate statistics over the feedback collection."""

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import ROUND_HALF_UP, Decimal

from models.feedback import FeedbackPriority, FeedbackStats, FeedbackStatus

logger = logging.getLogger(__name__)

# Shown when there is nothing to average yet
FALLBACK_AVERAGE_RATING = 4.8
FALLBACK_SATISFACTION_PERCENTAGE = 97

# Ratings at or above this count as satisfied
HIGH_RATING_THRESHOLD = 4

STATS_CONCURRENCY = 8


def round_half_up(value: float, places: int = 0) -> Decimal:
    """Round like a pocket calculator (2.5 -> 3), not banker's rounding."""
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


def average_rating(ratings: list[int]) -> float:
    """Mean rating to one decimal, or the fallback when there are none."""
    if not ratings:
        return FALLBACK_AVERAGE_RATING
    mean = sum(ratings) / len(ratings)
    if not mean:
        return FALLBACK_AVERAGE_RATING
    return float(round_half_up(mean, 1))


def satisfaction_percentage(high_rating_count: int, total: int) -> int:
    """Share of records rated 4 or 5, as a whole percentage."""
    if total <= 0:
        return FALLBACK_SATISFACTION_PERCENTAGE
    return int(round_half_up(high_rating_count / total * 100))


class FeedbackStatsService:
    """Computes the statistics snapshot served by the stats endpoint."""

    def __init__(self, store, max_workers: int = STATS_CONCURRENCY):
        """Initialize the stats service.

        Args:
            store: FeedbackStore to count against
            max_workers: Sub-queries issued in parallel
        """
        self.store = store
        self.max_workers = max_workers

    def get_stats(self) -> FeedbackStats:
        """Run the count queries in parallel and combine them.

        Counts come from independent queries, so a record written in the
        middle may show up in some counts and not others.
        """
        queries = {
            "total": self.store.count_all,
            "new": lambda: self.store.count_by_status(FeedbackStatus.NEW),
            "read": lambda: self.store.count_by_status(FeedbackStatus.READ),
            "responded": lambda: self.store.count_by_status(FeedbackStatus.RESPONDED),
            "high_priority": lambda: self.store.count_by_priority(FeedbackPriority.HIGH),
            "urgent": lambda: self.store.count_by_priority(FeedbackPriority.URGENT),
            "high_rating_count": lambda: self.store.count_min_rating(
                HIGH_RATING_THRESHOLD
            ),
            "ratings": self.store.list_ratings,
        }

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {name: executor.submit(fn) for name, fn in queries.items()}
            # .result() re-raises the first sub-query failure
            results = {name: future.result() for name, future in futures.items()}

        total = results["total"]
        high_rating_count = results["high_rating_count"]
        stats = FeedbackStats(
            total=total,
            new=results["new"],
            read=results["read"],
            responded=results["responded"],
            high_priority=results["high_priority"],
            urgent=results["urgent"],
            average_rating=average_rating(results["ratings"]),
            high_rating_count=high_rating_count,
            satisfaction_percentage=satisfaction_percentage(high_rating_count, total),
        )
        logger.debug("Computed feedback stats: %s", stats.model_dump())
        return stats
