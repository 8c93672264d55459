"""Validation of inbound feedback submissions.

The field rules live on ``FeedbackCreate``; this module restricts a raw
request body to the submission fields and turns pydantic's error list into
a ``FeedbackValidationError``.
"""

from typing import Any, Mapping

from pydantic import ValidationError

from models.feedback import FeedbackCreate
from services.errors import FeedbackValidationError

# Keys a client may send; everything else (tags, ip address...) is server-set
SUBMISSION_FIELDS = ("name", "email", "contactNumber", "contact_number", "message", "rating")


def validate_submission(payload: Mapping[str, Any]) -> FeedbackCreate:
    """Validate and normalize a raw submission.

    Args:
        payload: Decoded request body

    Returns:
        FeedbackCreate with trimmed text, lowercased email and a rating

    Raises:
        FeedbackValidationError: With one message per offending field, in
            field order
    """
    if not isinstance(payload, Mapping):
        raise FeedbackValidationError(["Request body must be a JSON object"])

    fields = {key: payload[key] for key in SUBMISSION_FIELDS if key in payload}
    try:
        return FeedbackCreate.model_validate(fields)
    except ValidationError as e:
        raise FeedbackValidationError([error["msg"] for error in e.errors()]) from e
