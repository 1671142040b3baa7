"""Error types for the ProDraft API.

Routers raise an ``ApiError`` subclass; the application exception handler
renders it as ``{"error": message}`` with the error's status code and headers.
"""
from __future__ import annotations

from typing import Dict, Optional


class ApiError(Exception):
    """Base class for errors surfaced to API callers."""
    status_code: int = 500

    def __init__(self, message: str, headers: Optional[Dict[str, str]] = None):
        self.message = message
        self.headers = headers or {}
        super().__init__(message)


class ThrottledError(ApiError):
    """Admission denied; the caller may retry after ``reset_in`` seconds."""
    status_code = 429

    def __init__(self, reset_in: int):
        self.reset_in = reset_in
        super().__init__(
            f"Rate limit exceeded. Try again in {reset_in} seconds.",
            headers={
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(reset_in),
                "Retry-After": str(reset_in),
            },
        )


class BadRequestError(ApiError):
    status_code = 400


class MisconfigurationError(ApiError):
    """The server is missing configuration the operator has to supply."""
    status_code = 500


class UpstreamError(ApiError):
    """The generation provider failed."""
    status_code = 500


GENERIC_FAILURE_MESSAGE = "Failed to generate content"

# Checked in order; first marker found in the provider error text wins
_INVALID_KEY_MARKERS = ("API_KEY_INVALID", "invalid_api_key")
_QUOTA_MARKERS = ("QUOTA_EXCEEDED",)
_PERMISSION_MARKERS = ("PERMISSION_DENIED",)


def classify_provider_error(exc: BaseException, api_key_env: Optional[str] = None) -> str:
    """Map a provider exception to the message shown to the caller."""
    text = str(exc)
    if any(marker in text for marker in _INVALID_KEY_MARKERS):
        return f"Invalid API key. Please check your {api_key_env or 'API key'}."
    if any(marker in text for marker in _QUOTA_MARKERS):
        return "API quota exceeded. Please try again later."
    if any(marker in text for marker in _PERMISSION_MARKERS):
        return "Permission denied. Please check API key permissions."
    return GENERIC_FAILURE_MESSAGE


__all__ = [
    "ApiError",
    "ThrottledError",
    "BadRequestError",
    "MisconfigurationError",
    "UpstreamError",
    "GENERIC_FAILURE_MESSAGE",
    "classify_provider_error",
]
