"""DynamoDB access for feedback records."""

import hmac
import logging
import uuid
from datetime import UTC, datetime
from typing import Any, Iterator

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from models.feedback import (
    Feedback,
    FeedbackCreate,
    FeedbackFilter,
    FeedbackPage,
    FeedbackPriority,
    FeedbackStatus,
)
from services.errors import (
    FeedbackNotFoundError,
    InvalidIdentifierError,
    PersistenceError,
    UnauthorizedError,
)
from utils.dynamodb_utils import (
    RECORD_TYPE,
    parse_from_dynamodb,
    prepare_for_dynamodb,
    public_status_key,
)

logger = logging.getLogger(__name__)

CREATED_AT_INDEX = "CreatedAtIndex"
EMAIL_INDEX = "EmailIndex"
STATUS_INDEX = "StatusIndex"
PUBLIC_STATUS_INDEX = "PublicStatusIndex"


class FeedbackStore:
    """CRUD and query operations on the feedback table."""

    def __init__(self, table, admin_secret: str | None = None):
        """Initialize the feedback store.

        Args:
            table: DynamoDB table for feedback records
            admin_secret: Shared secret required for destructive operations
        """
        self.table = table
        self.admin_secret = admin_secret

    # MARK: - Writes

    def create(
        self,
        submission: FeedbackCreate,
        tags: list[str] | None = None,
        priority: str = FeedbackPriority.MEDIUM.value,
    ) -> Feedback:
        """Persist a new record.

        Args:
            submission: Validated submission
            tags: Tags to store (defaults to the submission's own)
            priority: Initial priority

        Returns:
            The stored Feedback with id and timestamps assigned

        Raises:
            PersistenceError: If the write fails
        """
        now = datetime.now(UTC).isoformat()
        feedback = Feedback(
            feedback_id=str(uuid.uuid4()),
            name=submission.name,
            email=submission.email,
            contact_number=submission.contact_number,
            message=submission.message,
            rating=submission.rating,
            priority=priority,
            tags=submission.tags if tags is None else tags,
            ip_address=submission.ip_address,
            user_agent=submission.user_agent,
            created_at=now,
            updated_at=now,
        )

        try:
            self.table.put_item(
                Item=prepare_for_dynamodb(feedback.model_dump()),
                ConditionExpression="attribute_not_exists(feedback_id)",
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to store feedback: %s", e)
            raise PersistenceError(f"Failed to store feedback: {e}") from e
        return feedback

    def delete_by_id(self, feedback_id: str, presented_secret: str | None) -> None:
        """Physically delete a record.

        Raises:
            UnauthorizedError: If the secret does not match (store untouched)
            InvalidIdentifierError: If the id is malformed
            FeedbackNotFoundError: If no record has this id
            PersistenceError: On other database errors
        """
        self.verify_admin_secret(presented_secret)
        self._check_id(feedback_id)

        try:
            self.table.delete_item(
                Key={"feedback_id": feedback_id},
                ConditionExpression="attribute_exists(feedback_id)",
            )
        except (ClientError, BotoCoreError) as e:
            if _is_conditional_failure(e):
                raise FeedbackNotFoundError() from e
            logger.error("Failed to delete feedback %s: %s", feedback_id, e)
            raise PersistenceError(f"Failed to delete feedback: {e}") from e

    def backfill_missing_ratings(self, default: int = 5, dry_run: bool = False) -> int:
        """Set ``rating`` on records stored before ratings existed.

        Returns:
            Number of records updated (or that would be, with dry_run)
        """
        try:
            missing = [
                item["feedback_id"]
                for item in self._query_all(
                    IndexName=CREATED_AT_INDEX,
                    KeyConditionExpression=Key("record_type").eq(RECORD_TYPE),
                    FilterExpression=Attr("rating").not_exists(),
                    ProjectionExpression="feedback_id",
                )
            ]
            if dry_run:
                return len(missing)

            now = datetime.now(UTC).isoformat()
            updated = 0
            for feedback_id in missing:
                try:
                    self.table.update_item(
                        Key={"feedback_id": feedback_id},
                        UpdateExpression="SET #rating = :rating, updated_at = :now",
                        ConditionExpression="attribute_not_exists(#rating)",
                        ExpressionAttributeNames={"#rating": "rating"},
                        ExpressionAttributeValues={":rating": default, ":now": now},
                    )
                    updated += 1
                except ClientError as e:
                    if not _is_conditional_failure(e):
                        raise
            return updated
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to backfill ratings: %s", e)
            raise PersistenceError(f"Failed to backfill ratings: {e}") from e

    # MARK: - Reads

    def get_by_id(self, feedback_id: str) -> Feedback:
        """Fetch a publicly visible record.

        Private and archived records are reported exactly like missing ones.

        Raises:
            InvalidIdentifierError: If the id is malformed
            FeedbackNotFoundError: If absent, private or archived
            PersistenceError: On database errors
        """
        self._check_id(feedback_id)
        try:
            response = self.table.get_item(Key={"feedback_id": feedback_id})
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to get feedback %s: %s", feedback_id, e)
            raise PersistenceError(f"Failed to get feedback: {e}") from e

        item = response.get("Item")
        if not item:
            raise FeedbackNotFoundError()
        feedback = Feedback(**parse_from_dynamodb(item))
        if not feedback.is_publicly_visible:
            raise FeedbackNotFoundError()
        return feedback

    def list_paged(
        self, filters: FeedbackFilter, page: int = 1, page_size: int = 10
    ) -> FeedbackPage:
        """Page through records, newest first.

        Args:
            filters: Status/priority filters and public-only mode
            page: 1-based page number
            page_size: Records per page

        Returns:
            FeedbackPage with the matching total
        """
        page = max(page, 1)
        page_size = max(page_size, 1)
        if filters.public_only and filters.status == FeedbackStatus.ARCHIVED.value:
            return FeedbackPage(items=[], page=page, page_size=page_size, total=0)

        query = self._listing_query(filters)
        skip = (page - 1) * page_size

        try:
            total = self._count(**query)
            items = []
            for index, item in enumerate(self._query_all(**query)):
                if index < skip:
                    continue
                items.append(Feedback(**parse_from_dynamodb(item)))
                if len(items) >= page_size:
                    break
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to list feedback: %s", e)
            raise PersistenceError(f"Failed to list feedback: {e}") from e

        return FeedbackPage(items=items, page=page, page_size=page_size, total=total)

    def get_recent(self, limit: int = 5) -> list[Feedback]:
        """Newest publicly visible records, at most ``limit`` of them."""
        if limit <= 0:
            return []
        query = self._listing_query(FeedbackFilter(public_only=True))
        try:
            recent = []
            for item in self._query_all(**query):
                recent.append(Feedback(**parse_from_dynamodb(item)))
                if len(recent) >= limit:
                    break
            return recent
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to get recent feedback: %s", e)
            raise PersistenceError(f"Failed to get recent feedback: {e}") from e

    def find_recent_by_email(self, email: str, since: datetime) -> Feedback | None:
        """Most recent record from ``email`` created at or after ``since``."""
        try:
            response = self.table.query(
                IndexName=EMAIL_INDEX,
                KeyConditionExpression=Key("email").eq(email.strip().lower())
                & Key("created_at").gte(since.astimezone(UTC).isoformat()),
                ScanIndexForward=False,
                Limit=1,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to look up recent feedback by email: %s", e)
            raise PersistenceError(f"Failed to check recent submissions: {e}") from e

        items = response.get("Items", [])
        if not items:
            return None
        return Feedback(**parse_from_dynamodb(items[0]))

    # MARK: - Aggregation helpers

    def count_all(self) -> int:
        return self._safe_count(
            IndexName=CREATED_AT_INDEX,
            KeyConditionExpression=Key("record_type").eq(RECORD_TYPE),
        )

    def count_by_status(self, status: FeedbackStatus | str) -> int:
        return self._safe_count(
            IndexName=STATUS_INDEX,
            KeyConditionExpression=Key("status").eq(_value(status)),
        )

    def count_by_priority(self, priority: FeedbackPriority | str) -> int:
        return self._safe_count(
            IndexName=CREATED_AT_INDEX,
            KeyConditionExpression=Key("record_type").eq(RECORD_TYPE),
            FilterExpression=Attr("priority").eq(_value(priority)),
        )

    def count_min_rating(self, min_rating: int) -> int:
        return self._safe_count(
            IndexName=CREATED_AT_INDEX,
            KeyConditionExpression=Key("record_type").eq(RECORD_TYPE),
            FilterExpression=Attr("rating").gte(min_rating),
        )

    def list_ratings(self) -> list[int]:
        """Ratings of every record that has one."""
        try:
            items = self._query_all(
                IndexName=CREATED_AT_INDEX,
                KeyConditionExpression=Key("record_type").eq(RECORD_TYPE),
                ProjectionExpression="#rating",
                ExpressionAttributeNames={"#rating": "rating"},
            )
            return [
                parsed["rating"]
                for parsed in map(parse_from_dynamodb, items)
                if parsed.get("rating") is not None
            ]
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to read ratings: %s", e)
            raise PersistenceError(f"Failed to read ratings: {e}") from e

    def verify_admin_secret(self, presented_secret: str | None) -> None:
        """Constant-time comparison against the configured admin secret.

        Raises:
            UnauthorizedError: If no secret is configured or it does not match
        """
        if not self.admin_secret or not presented_secret:
            raise UnauthorizedError()
        if not hmac.compare_digest(
            presented_secret.encode("utf-8"), self.admin_secret.encode("utf-8")
        ):
            raise UnauthorizedError()

    # MARK: - Internals

    def _listing_query(self, filters: FeedbackFilter) -> dict[str, Any]:
        """Pick the index for a listing and turn the rest into filters."""
        conditions = []
        if filters.public_only and filters.status:
            query: dict[str, Any] = {
                "IndexName": PUBLIC_STATUS_INDEX,
                "KeyConditionExpression": Key("public_status").eq(
                    public_status_key(True, filters.status)
                ),
            }
        elif filters.status:
            query = {
                "IndexName": STATUS_INDEX,
                "KeyConditionExpression": Key("status").eq(filters.status),
            }
        else:
            query = {
                "IndexName": CREATED_AT_INDEX,
                "KeyConditionExpression": Key("record_type").eq(RECORD_TYPE),
            }
            if filters.public_only:
                conditions.append(Attr("is_public").eq(True))
                conditions.append(Attr("status").ne(FeedbackStatus.ARCHIVED.value))

        if filters.priority:
            conditions.append(Attr("priority").eq(filters.priority))

        if conditions:
            expression = conditions[0]
            for condition in conditions[1:]:
                expression = expression & condition
            query["FilterExpression"] = expression

        query["ScanIndexForward"] = False  # Newest first
        return query

    def _query_all(self, **kwargs) -> Iterator[dict[str, Any]]:
        """Yield items across all result pages."""
        response = self.table.query(**kwargs)
        yield from response.get("Items", [])
        while "LastEvaluatedKey" in response:
            response = self.table.query(
                ExclusiveStartKey=response["LastEvaluatedKey"], **kwargs
            )
            yield from response.get("Items", [])

    def _count(self, **kwargs) -> int:
        """Count matching items without fetching them."""
        response = self.table.query(Select="COUNT", **kwargs)
        total = response.get("Count", 0)
        while "LastEvaluatedKey" in response:
            response = self.table.query(
                Select="COUNT",
                ExclusiveStartKey=response["LastEvaluatedKey"],
                **kwargs,
            )
            total += response.get("Count", 0)
        return total

    def _safe_count(self, **kwargs) -> int:
        try:
            return self._count(**kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to count feedback: %s", e)
            raise PersistenceError(f"Failed to count feedback: {e}") from e

    @staticmethod
    def _check_id(feedback_id: str) -> None:
        try:
            uuid.UUID(str(feedback_id))
        except ValueError as e:
            raise InvalidIdentifierError() from e


def _value(enum_or_str: Any) -> str:
    return getattr(enum_or_str, "value", enum_or_str)


def _is_conditional_failure(error: Exception) -> bool:
    return (
        isinstance(error, ClientError)
        and error.response["Error"]["Code"] == "ConditionalCheckFailedException"
    )
