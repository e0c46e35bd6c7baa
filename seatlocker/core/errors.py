from __future__ import annotations

from typing import Any


class SeatLockerError(Exception):
    """Base for every recoverable failure in the seat/locker core."""

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(SeatLockerError):
    """Raise to map to HTTP 422. Never reaches the network."""

    default_message = "empty seat block"


class AuthRequiredError(SeatLockerError):
    """Raise to map to HTTP 401 (no active identity for an assignment)."""

    default_message = "Please sign in before requesting a locker."


class NoIdentityError(SeatLockerError):
    """Raise to map to HTTP 401 (profile operation without a signed-in user)."""

    default_message = "No user is signed in."


class AlreadyInProgressError(SeatLockerError):
    """Raise to map to HTTP 409 (single-flight violation)."""

    default_message = "A locker request is already in progress."


class DismissNotAllowedError(SeatLockerError):
    """Raise to map to HTTP 409."""

    default_message = "The seat selection cannot be dismissed right now."


class WorkflowDisposedError(SeatLockerError):
    """Raise to map to HTTP 410 (workflow torn down)."""

    default_message = "The seat selection has been closed."


class TransportError(SeatLockerError):
    """Network failure or non-2xx response from the locker API."""

    default_message = "No empty locker is available nearby."

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedResponseError(SeatLockerError):
    """2xx response whose payload lacks a locker identifier or location."""

    default_message = "The locker service returned an unexpected response."


class BackendError(SeatLockerError):
    """Profile fetch/update failure. Never invalidates the Identity."""

    default_message = "Could not reach the user profile service."


def extract_error_message(body: Any) -> str | None:
    """Human-readable message from an error body; accepts `error` or `message`."""
    if not isinstance(body, dict):
        return None
    for key in ("error", "message"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None
