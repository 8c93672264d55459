"""Feedback data models."""

import re
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from utils.display import formatted_date, parse_timestamp, time_ago

EMAIL_PATTERN = re.compile(r"^[\w.+-]+@([\w-]+\.)+[A-Za-z]{2,}$")

DEFAULT_RATING = 5
MIN_RATING = 1
MAX_RATING = 5


class FeedbackStatus(str, Enum):
    """Moderation state of a feedback record."""

    NEW = "new"
    READ = "read"
    RESPONDED = "responded"
    ARCHIVED = "archived"


class FeedbackPriority(str, Enum):
    """Triage priority of a feedback record."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


# Fields exposed by public listings
PUBLIC_FIELDS = (
    "name",
    "message",
    "createdAt",
    "formattedDate",
    "timeAgo",
    "tags",
    "priority",
)


def _normalize_tags(tags: list[str]) -> list[str]:
    """Lowercase, trim and deduplicate tags, keeping first-insertion order."""
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


class AdminResponse(BaseModel):
    """Reply attached to a feedback record by an administrator."""

    message: str
    responded_by: str | None = None
    responded_at: str | None = None


def _rule_error(message: str) -> PydanticCustomError:
    return PydanticCustomError("feedback_rule", message)


def _check_text(
    value: Any,
    label: str,
    required: bool = True,
    min_length: int | None = None,
    max_length: int | None = None,
    min_message: str | None = None,
) -> str | None:
    """Trimmed text, or a rule error in required, type, min, max order."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise _rule_error(f"{label} is required")
        return None
    if not isinstance(value, str):
        raise _rule_error(f"{label} must be a string")

    value = value.strip()
    if min_length is not None and len(value) < min_length:
        raise _rule_error(
            min_message or f"{label} must be at least {min_length} characters long"
        )
    if max_length is not None and len(value) > max_length:
        raise _rule_error(f"{label} cannot exceed {max_length} characters")
    return value


class FeedbackCreate(BaseModel):
    """Normalized submission, ready to be tagged and stored.

    Every submission field is checked by a ``before`` validator so that a
    missing or malformed field reports one message in the same wording the
    client sees. Field order here is the order of reported errors.
    """

    name: str = Field(None, validate_default=True)
    email: str = Field(None, validate_default=True)
    contact_number: str | None = Field(
        None, validation_alias=AliasChoices("contactNumber", "contact_number")
    )
    message: str = Field(None, validate_default=True)
    rating: int = Field(DEFAULT_RATING, validate_default=True)
    tags: list[str] = Field(default_factory=list)
    ip_address: str | None = None
    user_agent: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, v: Any) -> str:
        return _check_text(v, "Name", min_length=2, max_length=100)

    @field_validator("email", mode="before")
    @classmethod
    def check_email(cls, v: Any) -> str:
        v = _check_text(v, "Email")
        if not EMAIL_PATTERN.match(v):
            raise _rule_error("Please provide a valid email address")
        return v.lower()

    @field_validator("contact_number", mode="before")
    @classmethod
    def check_contact_number(cls, v: Any) -> str | None:
        # Character count only; non-digit characters are accepted.
        return _check_text(
            v,
            "Contact number",
            required=False,
            min_length=10,
            max_length=20,
            min_message="Contact number must be at least 10 digits",
        )

    @field_validator("message", mode="before")
    @classmethod
    def check_message(cls, v: Any) -> str:
        return _check_text(v, "Message", min_length=10, max_length=1000)

    @field_validator("rating", mode="before")
    @classmethod
    def check_rating(cls, v: Any) -> int:
        """Optional; when given it must be a whole number from 1 to 5."""
        if v is None:
            return DEFAULT_RATING
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise _rule_error("Rating must be a whole number")
        if isinstance(v, float) and not v.is_integer():
            raise _rule_error("Rating must be a whole number")
        if v < MIN_RATING:
            raise _rule_error(f"Rating must be at least {MIN_RATING}")
        if v > MAX_RATING:
            raise _rule_error(f"Rating cannot exceed {MAX_RATING}")
        return int(v)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        return _normalize_tags(v)


class Feedback(BaseModel):
    """Stored feedback record."""

    feedback_id: str = Field(..., description="UUID assigned on creation")
    name: str
    email: str
    contact_number: str | None = None
    message: str
    rating: int = Field(default=5, ge=1, le=5)
    status: FeedbackStatus = FeedbackStatus.NEW.value
    priority: FeedbackPriority = FeedbackPriority.MEDIUM.value
    is_public: bool = True
    tags: list[str] = Field(default_factory=list)

    # Captured at submission, never returned to callers
    ip_address: str | None = None
    user_agent: str | None = None

    response: AdminResponse | None = None
    created_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())

    model_config = ConfigDict(use_enum_values=True)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        return _normalize_tags(v)

    @property
    def is_publicly_visible(self) -> bool:
        """Whether the record may be served to untrusted callers."""
        return self.is_public and self.status != FeedbackStatus.ARCHIVED.value

    @property
    def created_at_dt(self) -> datetime:
        return parse_timestamp(self.created_at)

    def display_fields(self, now: datetime | None = None) -> dict[str, str]:
        """Derived, read-time display strings."""
        created = self.created_at_dt
        return {
            "formattedDate": formatted_date(created),
            "timeAgo": time_ago(created, now=now),
        }

    def to_api_response(self, now: datetime | None = None) -> dict[str, Any]:
        """Full record for trusted listings, without ip address or user agent."""
        data = {
            "id": self.feedback_id,
            "name": self.name,
            "email": self.email,
            "contactNumber": self.contact_number,
            "message": self.message,
            "rating": self.rating,
            "status": self.status,
            "priority": self.priority,
            "isPublic": self.is_public,
            "tags": list(self.tags),
            "response": None,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.response is not None:
            data["response"] = {
                "message": self.response.message,
                "respondedBy": self.response.responded_by,
                "respondedAt": self.response.responded_at,
            }
        data.update(self.display_fields(now))
        return data

    def to_public_response(self, now: datetime | None = None) -> dict[str, Any]:
        """Safe subset for public listings (no id, email or client metadata)."""
        full = self.to_api_response(now)
        return {key: full[key] for key in PUBLIC_FIELDS}

    def to_submission_receipt(self) -> dict[str, Any]:
        """Body returned to the submitter after a successful create."""
        return {
            "id": self.feedback_id,
            "name": self.name,
            "message": self.message,
            "submittedAt": self.created_at,
            "status": self.status,
        }


class FeedbackFilter(BaseModel):
    """Listing filter."""

    status: FeedbackStatus | None = None
    priority: FeedbackPriority | None = None
    public_only: bool = True

    model_config = ConfigDict(use_enum_values=True)


class FeedbackPage(BaseModel):
    """One page of a listing plus page metadata."""

    items: list[Feedback]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return -(-self.total // self.page_size)

    @property
    def has_next_page(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        return self.page > 1

    def pagination(self) -> dict[str, Any]:
        return {
            "currentPage": self.page,
            "totalPages": self.total_pages,
            "totalItems": self.total,
            "itemsPerPage": self.page_size,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }


class FeedbackStats(BaseModel):
    """Aggregate snapshot across the whole collection."""

    total: int = 0
    new: int = 0
    read: int = 0
    responded: int = 0
    high_priority: int = 0
    urgent: int = 0
    average_rating: float = 4.8
    high_rating_count: int = 0
    satisfaction_percentage: int = 97
    # When the counts were taken; cached snapshots keep their original time
    computed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def to_api_response(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "new": self.new,
            "read": self.read,
            "responded": self.responded,
            "highPriority": self.high_priority,
            "urgent": self.urgent,
            "averageRating": self.average_rating,
            "satisfactionPercentage": self.satisfaction_percentage,
            "highRatingCount": self.high_rating_count,
        }
