#!/usr/bin/env python3
"""
One-time backfill of the rating field on legacy feedback.

Feedback stored before ratings were collected has no ``rating`` attribute.
This gives every such record the default rating of 5 and prints the
resulting statistics.

Usage:
    python scripts/migrate_ratings.py [--dry-run] [--table TABLE]

Options:
    --dry-run     Only count the records that would be updated
    --table       Table name (default: $FEEDBACK_TABLE)
"""

import argparse
import logging
import os
import sys

import boto3

# Add the src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from services.errors import PersistenceError
from services.feedback_stats import FeedbackStatsService
from services.feedback_store import FeedbackStore

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_RATING = 5


def setup_store(table_name: str) -> FeedbackStore:
    """Build a FeedbackStore on the given table."""
    region = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
    dynamodb = boto3.resource("dynamodb", region_name=region)
    logger.info("Using DynamoDB table: %s", table_name)
    return FeedbackStore(dynamodb.Table(table_name))


def print_stats(store: FeedbackStore) -> None:
    """Print the headline statistics."""
    stats = FeedbackStatsService(store).get_stats()
    print("\nUpdated Stats:")
    print(f"Total Feedback: {stats.total}")
    print(f"Average Rating: {stats.average_rating}/5")
    print(f"User Satisfaction: {stats.satisfaction_percentage}%")
    print(f"High Ratings (4-5 stars): {stats.high_rating_count}")


def migrate(store: FeedbackStore, dry_run: bool = False) -> int:
    """Run the backfill and return the number of affected records."""
    missing = store.backfill_missing_ratings(default=DEFAULT_RATING, dry_run=True)
    logger.info("Found %d feedback entries without rating", missing)

    if dry_run or missing == 0:
        if missing == 0:
            logger.info("All feedback already has ratings")
        return missing

    updated = store.backfill_missing_ratings(default=DEFAULT_RATING)
    logger.info(
        "Updated %d feedback entries with default rating of %d",
        updated,
        DEFAULT_RATING,
    )
    return updated


def main():
    parser = argparse.ArgumentParser(description="Backfill missing feedback ratings")
    parser.add_argument(
        "--dry-run", action="store_true", help="Count without updating anything"
    )
    parser.add_argument(
        "--table",
        default=os.environ.get("FEEDBACK_TABLE", "buzzguard-feedback-dev"),
        help="DynamoDB table name",
    )
    args = parser.parse_args()

    store = setup_store(args.table)
    try:
        migrate(store, dry_run=args.dry_run)
        print_stats(store)
    except PersistenceError as e:
        logger.error("Migration failed: %s", e)
        sys.exit(1)

    logger.info("Migration completed successfully")


if __name__ == "__main__":
    main()
