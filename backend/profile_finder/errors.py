"""Lookup error taxonomy.

Every failure of a lookup surfaces as one of the ``ProfileLookupError``
subclasses below. Each carries a ``kind`` for programmatic handling, the HTTP
status the service surface answers with, and a short message meant for the
person who typed the username.

``LookupCancelled`` is deliberately not part of the taxonomy: a superseded
lookup is not a failure and must never be rendered.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_ERROR = "upstream_error"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"


RATE_LIMIT_GUIDANCE = "Wait a minute and try again, or try a different username."


class ProfileLookupError(Exception):
    kind: ErrorKind = ErrorKind.UPSTREAM_ERROR
    http_status: int = 502
    default_message = "Something went wrong."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.user_message}


class InvalidInput(ProfileLookupError):
    kind = ErrorKind.INVALID_INPUT
    http_status = 400
    default_message = "Please enter a username."


class NotFound(ProfileLookupError):
    kind = ErrorKind.NOT_FOUND
    http_status = 404
    default_message = "User not found."

    def __init__(self, key: str):
        self.key = key
        super().__init__()


class RateLimited(ProfileLookupError):
    kind = ErrorKind.RATE_LIMITED
    http_status = 429

    def __init__(self, reset_at: Optional[datetime] = None):
        self.reset_at = reset_at
        if reset_at is None:
            message = "Rate limit exceeded. Please try again later."
        else:
            local = reset_at.astimezone().strftime("%H:%M:%S")
            message = f"Rate limit exceeded. Try again after {local}."
        super().__init__(message)

    @property
    def user_message(self) -> str:
        if self.reset_at is None:
            return self.message
        return f"{self.message} {RATE_LIMIT_GUIDANCE}"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reset_at"] = self.reset_at.isoformat() if self.reset_at else None
        return data


class UpstreamError(ProfileLookupError):
    kind = ErrorKind.UPSTREAM_ERROR
    http_status = 502

    def __init__(self, status: int, message: Optional[str] = None):
        self.status = status
        super().__init__(message or f"GitHub returned an error (status {status}).")

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status"] = self.status
        return data


class LookupTimeout(ProfileLookupError):
    kind = ErrorKind.TIMEOUT
    http_status = 504
    default_message = "Request timeout. Please try again."


class NetworkError(ProfileLookupError):
    kind = ErrorKind.NETWORK_ERROR
    http_status = 502
    default_message = "Network issue. Check your connection and try again."


class LookupCancelled(Exception):
    """Raised to the caller of a lookup that was superseded or cancelled."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"lookup for {key!r} was cancelled")
