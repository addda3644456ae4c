"""
Error types raised by the backend client and the user-facing error taxonomy.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class APIError(Exception):
    """Backend request failed with an error response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkError(APIError):
    """No response or a partial response from the backend."""
    pass


class AuthenticationError(APIError):
    """Backend rejected the credentials (HTTP 401/403)."""
    pass


class NotFoundError(APIError):
    """Requested batch, receipt or account does not exist (HTTP 404)."""
    pass


class FormValidationError(Exception):
    """Form input rejected locally, before any network call."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ErrorKind(str, Enum):
    """Kinds of failure shown to the user"""
    NETWORK = "network"
    UNAUTHENTICATED = "unauthenticated"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    ALREADY_CLAIMED = "already_claimed"
    EXPIRED = "expired"
    REJECTED = "rejected"


class NextAction(str, Enum):
    RETRY = "retry"
    LOGIN = "login"
    BACK = "back"
    FIX_INPUT = "fix_input"
    NONE = "none"


_DEFAULT_ACTIONS = {
    ErrorKind.NETWORK: NextAction.RETRY,
    ErrorKind.UNAUTHENTICATED: NextAction.LOGIN,
    ErrorKind.VALIDATION: NextAction.FIX_INPUT,
    ErrorKind.NOT_FOUND: NextAction.BACK,
    ErrorKind.ALREADY_CLAIMED: NextAction.NONE,
    ErrorKind.EXPIRED: NextAction.BACK,
    ErrorKind.REJECTED: NextAction.RETRY,
}


@dataclass(frozen=True)
class Notice:
    """Inline message with an actionable next step."""
    kind: ErrorKind
    message: str
    action: NextAction = NextAction.NONE

    @classmethod
    def of(cls, kind: ErrorKind, message: str) -> "Notice":
        return cls(kind=kind, message=message, action=_DEFAULT_ACTIONS[kind])


def to_notice(error: Exception, fallback: str = "Something went wrong. Please try again.") -> Notice:
    """Convert a client or validation error into a user-facing notice."""
    if isinstance(error, FormValidationError):
        return Notice.of(ErrorKind.VALIDATION, error.message)
    if isinstance(error, AuthenticationError):
        return Notice.of(ErrorKind.UNAUTHENTICATED, "Session expired. Please login again.")
    if isinstance(error, NotFoundError):
        return Notice.of(ErrorKind.NOT_FOUND, error.message or fallback)
    if isinstance(error, NetworkError):
        return Notice.of(ErrorKind.NETWORK, "Could not reach the server. Check your connection and try again.")
    if isinstance(error, APIError):
        return Notice.of(ErrorKind.REJECTED, error.message or fallback)
    return Notice.of(ErrorKind.REJECTED, fallback)
