"""Domain errors raised by the feedback services.

Each error carries the HTTP status and short error label the API handler
uses to build the response envelope.
"""


class FeedbackError(Exception):
    """Base class for feedback domain errors."""

    status_code = 500
    error = "Server Error"
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class FeedbackValidationError(FeedbackError):
    """Submission failed one or more field rules."""

    status_code = 400
    error = "Validation Error"

    def __init__(self, details: list[str]):
        self.details = list(details)
        super().__init__(self.details[0] if self.details else "Invalid submission")


class InvalidIdentifierError(FeedbackError):
    """Identifier is not a well-formed feedback id."""

    status_code = 400
    error = "Invalid ID format"
    default_message = "The provided ID is not valid"


class UnauthorizedError(FeedbackError):
    """Admin secret missing or wrong."""

    status_code = 401
    error = "Unauthorized"
    default_message = "Admin access required"


class FeedbackNotFoundError(FeedbackError):
    """Record is absent, private or archived."""

    status_code = 404
    error = "Not Found"
    default_message = "Feedback not found"


class DuplicateSubmissionError(FeedbackError):
    """Same email already submitted inside the duplicate window."""

    status_code = 429
    error = "Duplicate Submission"
    default_message = (
        "You have already submitted feedback recently. "
        "Please wait before submitting again."
    )


class PersistenceError(FeedbackError):
    """The feedback table could not be read or written."""

    status_code = 500
    error = "Server Error"
    default_message = "Failed to access feedback storage"
