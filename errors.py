"""errors.py

Exception hierarchy for NordChat.

Handlers catch these at the call site and turn them into client-visible
notices; anything outside this hierarchy is treated as a process-fatal error
(see server_init.py).
"""

from __future__ import annotations

import requests


class ChatError(Exception):
    """Base exception for all expected chat errors."""

    pass


class ValidationError(ChatError):
    """Raised when an inbound payload, username or DM target is not acceptable."""

    pass


class AuthorizationError(ChatError):
    """Raised when a connection attempts an operation it does not own."""

    pass


# Collaborator failure categories
NOT_FOUND = "not_found"
UNAUTHORIZED = "unauthorized"
UNAVAILABLE = "unavailable"
UNREACHABLE = "unreachable"
UNEXPECTED = "unexpected"


class CollaboratorError(ChatError):
    """Raised when an external service (weather, LLM) call fails."""

    def __init__(
        self,
        message: str,
        category: str = UNEXPECTED,
        service: str | None = None,
        error: Exception | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.service = service
        self.original_error = error


def category_for_status(status_code: int) -> str:
    if status_code == 404:
        return NOT_FOUND
    if status_code in (401, 403):
        return UNAUTHORIZED
    if status_code == 429 or status_code >= 500:
        return UNAVAILABLE
    return UNEXPECTED


def classify_request_error(exc: Exception) -> str:
    """Map a requests exception onto a collaborator failure category."""
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return UNREACHABLE
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return category_for_status(exc.response.status_code)
    return UNEXPECTED
