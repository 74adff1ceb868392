"""
Exception hierarchy for the GitHub owners interceptor.

Every failure the decision core can report is one of these types. The
interceptor converts them to failure verdicts in one place; nothing below it
catches and discards them.
"""

from enum import Enum
from typing import Any, Dict, Optional


class GitHubOwnersError(Exception):
    """Base exception carrying structured context."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ParamsError(GitHubOwnersError):
    """Interceptor params could not be interpreted."""


class UnsupportedEventTypeError(GitHubOwnersError):
    """The X-GitHub-Event header names an event this interceptor ignores."""

    def __init__(self, event_type: str):
        super().__init__(f"event type {event_type} is not allowed", {"event_type": event_type})
        self.event_type = event_type


class PayloadErrorReason(str, Enum):
    """Why a webhook body could not be turned into an EventContext."""
    EMPTY_BODY = "EMPTY_BODY"
    MALFORMED_JSON = "MALFORMED_JSON"
    MISSING_FIELD = "MISSING_FIELD"
    MALFORMED_FULL_NAME = "MALFORMED_FULL_NAME"


class PayloadError(GitHubOwnersError):
    """The webhook body is unusable."""

    def __init__(self, reason: PayloadErrorReason, message: str, field: Optional[str] = None):
        super().__init__(message, {"reason": reason.value, "field": field})
        self.reason = reason
        self.field = field


class PolicyMalformedError(GitHubOwnersError):
    """An OWNERS document exists but does not have the expected shape."""


class HostError(GitHubOwnersError):
    """A repository host call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code


class NotFoundError(HostError):
    """The requested resource does not exist on the host."""

    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class DeadlineExceededError(GitHubOwnersError):
    """The evaluation ran out of time before a remote call could complete."""


class SecretError(GitHubOwnersError):
    """A configured secret reference could not be resolved."""


__all__ = [
    "GitHubOwnersError",
    "ParamsError",
    "UnsupportedEventTypeError",
    "PayloadErrorReason",
    "PayloadError",
    "PolicyMalformedError",
    "HostError",
    "NotFoundError",
    "DeadlineExceededError",
    "SecretError",
]
