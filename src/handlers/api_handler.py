"""Main FastAPI application for the feedback API."""

import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi import Body, FastAPI, Header, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from models.feedback import FeedbackPriority, FeedbackStatus
from services.duplicate_guard import DEFAULT_WINDOW_MINUTES, DuplicateGuard
from services.errors import FeedbackError, FeedbackValidationError, UnauthorizedError
from services.feedback_service import FeedbackService
from services.feedback_store import FeedbackStore
from utils.cache import CACHE_CONTROL_PRIVATE, CACHE_CONTROL_PUBLIC

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

# Lazy-initialized AWS resources and services
_dynamodb = None
_feedback_table = None
_feedback_service = None


def reset_services():
    """Reset all lazy-initialized services. Useful for testing.

    Also resets boto3's default session so that subsequent calls to
    boto3.resource() create fresh sessions within the current mock context
    (e.g., moto's mock_aws).
    """
    global _dynamodb, _feedback_table, _feedback_service
    _dynamodb = None
    _feedback_table = None
    _feedback_service = None
    boto3.DEFAULT_SESSION = None


def close_services():
    """Release the DynamoDB connection pool and drop all services."""
    if _dynamodb is not None:
        _dynamodb.meta.client.close()
        logger.info("DynamoDB client closed")
    reset_services()


def get_dynamodb():
    """Get or create DynamoDB resource."""
    global _dynamodb
    if _dynamodb is None:
        region = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
        _dynamodb = boto3.resource("dynamodb", region_name=region)
    return _dynamodb


def get_feedback_table():
    """Get or create feedback table."""
    global _feedback_table
    if _feedback_table is None:
        _feedback_table = get_dynamodb().Table(
            os.environ.get("FEEDBACK_TABLE", "buzzguard-feedback-dev")
        )
    return _feedback_table


def get_feedback_service():
    """Get or create FeedbackService."""
    global _feedback_service
    if _feedback_service is None:
        store = FeedbackStore(
            get_feedback_table(), admin_secret=os.environ.get("ADMIN_KEY")
        )
        window = int(
            os.environ.get("DUPLICATE_WINDOW_MINUTES", DEFAULT_WINDOW_MINUTES)
        )
        _feedback_service = FeedbackService(
            store, duplicate_guard=DuplicateGuard(store, timedelta(minutes=window))
        )
    return _feedback_service


def is_production() -> bool:
    return os.environ.get("ENVIRONMENT", "dev") == "prod"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Close the store client when the server shuts down."""
    yield
    close_services()


# Initialize FastAPI app
app = FastAPI(
    title="BuzzGuard Feedback API",
    description="API for collecting and displaying user feedback",
    version=API_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log slow and failed API requests with timing."""
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000

    path = request.url.path
    if duration_ms > 1000:
        logger.warning(
            "[SLOW] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )
    elif response.status_code >= 500:
        logger.error(
            "[ERROR] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )
    elif response.status_code >= 400:
        logger.info(
            "[CLIENT_ERROR] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )

    return response


def _client_ip(request: Request) -> str | None:
    """Caller IP, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


# MARK: - Info Endpoints


@app.get("/")
async def root():
    """Service information."""
    return {
        "message": "BuzzGuard Feedback API",
        "version": API_VERSION,
        "status": "active",
        "endpoints": {
            "POST /api/v1/feedback": "Submit new feedback",
            "GET /api/v1/feedback": "List feedback (paginated)",
            "GET /api/v1/feedback/recent": "Recent public feedback",
            "GET /api/v1/feedback/stats": "Feedback statistics",
            "GET /api/v1/feedback/{id}": "Get one feedback entry",
            "DELETE /api/v1/feedback/{id}": "Delete feedback (admin only)",
            "POST /api/v1/feedback/migrate-ratings": "Backfill ratings (admin only)",
        },
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": API_VERSION,
    }


# MARK: - Feedback Endpoints


@app.post("/api/v1/feedback", status_code=status.HTTP_201_CREATED)
async def submit_feedback(request: Request, payload: Any = Body(None)):  # noqa: B008
    """Submit new feedback."""
    feedback = get_feedback_service().submit(
        payload if payload is not None else {},
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return {
        "success": True,
        "message": (
            "Thank you for your feedback! We appreciate your input "
            "and will review it soon."
        ),
        "data": feedback.to_submission_receipt(),
    }


@app.get("/api/v1/feedback")
async def list_feedback(
    response: Response,
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(10, ge=1, le=100, description="Items per page"),
    feedback_status: FeedbackStatus | None = Query(
        None, alias="status", description="Filter by status"
    ),
    priority: FeedbackPriority | None = Query(None, description="Filter by priority"),
    public_only: bool = Query(True, alias="publicOnly"),
    x_admin_key: str | None = Header(None),
):
    """List feedback, newest first.

    Public mode (default) returns a safe subset of public, non-archived
    entries. ``publicOnly=false`` returns full records and requires the
    admin key.
    """
    service = get_feedback_service()
    if not public_only:
        service.store.verify_admin_secret(x_admin_key)

    result = service.list_feedback(
        page=page,
        page_size=limit,
        status=feedback_status,
        priority=priority,
        public_only=public_only,
    )
    now = datetime.now(UTC)
    if public_only:
        data = [item.to_public_response(now) for item in result.items]
        response.headers["Cache-Control"] = CACHE_CONTROL_PUBLIC
    else:
        data = [item.to_api_response(now) for item in result.items]
        response.headers["Cache-Control"] = CACHE_CONTROL_PRIVATE

    return {"success": True, "data": data, "pagination": result.pagination()}


@app.get("/api/v1/feedback/recent")
async def recent_feedback(
    response: Response,
    limit: int = Query(5, ge=1, le=100, description="Maximum entries"),
):
    """Recent public feedback for website display."""
    recent = get_feedback_service().get_recent(limit)
    now = datetime.now(UTC)
    response.headers["Cache-Control"] = CACHE_CONTROL_PUBLIC
    return {
        "success": True,
        "data": [item.to_public_response(now) for item in recent],
        "count": len(recent),
    }


@app.get("/api/v1/feedback/stats")
async def feedback_stats(response: Response):
    """Aggregate feedback statistics."""
    stats = get_feedback_service().get_stats()
    response.headers["Cache-Control"] = CACHE_CONTROL_PUBLIC
    return {
        "success": True,
        "data": {
            **stats.to_api_response(),
            "lastUpdated": stats.computed_at.isoformat(),
        },
    }


@app.post("/api/v1/feedback/migrate-ratings")
async def migrate_ratings(x_admin_key: str | None = Header(None)):
    """Give legacy feedback without a rating the default rating (admin only)."""
    updated, stats = get_feedback_service().migrate_ratings(x_admin_key)
    return {
        "success": True,
        "message": f"Updated {updated} feedback entries with default rating",
        "data": {"updated": updated, "stats": stats.to_api_response()},
    }


@app.get("/api/v1/feedback/{feedback_id}")
async def get_feedback(feedback_id: str, response: Response):
    """Get one public feedback entry."""
    feedback = get_feedback_service().get_feedback(feedback_id)
    response.headers["Cache-Control"] = CACHE_CONTROL_PRIVATE
    return {"success": True, "data": feedback.to_api_response()}


@app.delete("/api/v1/feedback/{feedback_id}")
async def delete_feedback(feedback_id: str, x_admin_key: str | None = Header(None)):
    """Delete feedback (admin only)."""
    get_feedback_service().delete_feedback(feedback_id, x_admin_key)
    return {"success": True, "message": "Feedback deleted successfully"}


# MARK: - Error Handlers


def _error_body(error: str, message: str, **extra) -> dict[str, Any]:
    return {"success": False, "error": error, "message": message, **extra}


@app.exception_handler(FeedbackError)
async def feedback_error_handler(request, exc: FeedbackError):
    """Map domain errors onto the response envelope."""
    message = exc.message
    if exc.status_code >= 500:
        logger.error("Feedback request failed: %s", exc.message)
        if is_production():
            message = "Something went wrong!"

    extra = {}
    if isinstance(exc, FeedbackValidationError):
        extra["details"] = exc.details

    headers = None
    if isinstance(exc, UnauthorizedError):
        headers = {"WWW-Authenticate": "X-Admin-Key"}

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error, message, **extra),
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request, exc: RequestValidationError):
    """Handle malformed query parameters or request bodies."""
    details = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            "Validation Error",
            details[0] if details else "Invalid request",
            details=details,
        ),
    )


@app.exception_handler(ClientError)
async def aws_client_error_handler(request, exc: ClientError):
    """Handle AWS client errors that escaped the services."""
    error_message = exc.response["Error"]["Message"]
    logger.error("Unhandled AWS error: %s", error_message)
    message = "Something went wrong!" if is_production() else f"AWS error: {error_message}"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Server Error", message),
    )


@app.exception_handler(BotoCoreError)
async def aws_connection_error_handler(request, exc: BotoCoreError):
    """Handle connection, timeout and credential failures from botocore."""
    logger.error("AWS unavailable: %s", exc)
    message = "Something went wrong!" if is_production() else f"AWS error: {exc}"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Server Error", message),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request, exc: Exception):
    """Last resort so every failure still uses the response envelope."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = "Something went wrong!" if is_production() else str(exc) or type(exc).__name__
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("Server Error", message),
    )


# For local development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
