"""HTTP handlers for the BuzzGuard feedback API."""

from .api_handler import app

__all__ = ["app"]
