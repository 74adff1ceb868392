"""
Webhook payload extraction.

Turns the raw body of a GitHub ``pull_request`` or ``issue_comment`` delivery
into an immutable EventContext. Extraction either succeeds completely or fails
with a PayloadError naming the reason; a partially populated context is never
returned.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from .errors import PayloadError, PayloadErrorReason


class EventType(str, Enum):
    """GitHub event types the interceptor accepts."""
    PULL_REQUEST = "pull_request"
    ISSUE_COMMENT = "issue_comment"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["EventType"]:
        """Return the matching member, or None for anything unsupported."""
        for member in cls:
            if member.value == value:
                return member
        return None


ACCEPTED_EVENT_TYPES = tuple(member.value for member in EventType)


@dataclass(frozen=True)
class EventContext:
    """The facts about a webhook delivery that authorization depends on."""
    event_type: EventType
    pr_number: int
    sender: str
    owner: str
    repository: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repository}"

    def with_sender(self, sender: str) -> "EventContext":
        """Copy of this context with a different candidate sender."""
        return EventContext(
            event_type=self.event_type,
            pr_number=self.pr_number,
            sender=sender,
            owner=self.owner,
            repository=self.repository,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_type": self.event_type.value,
            "pr_number": self.pr_number,
            "sender": self.sender,
            "owner": self.owner,
            "repository": self.repository,
        }


def split_full_name(full_name: str) -> Tuple[str, str]:
    """
    Split ``owner/repo`` into its two segments.

    Raises:
        PayloadError: unless exactly two non-empty segments result
    """
    parts = full_name.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise PayloadError(
            PayloadErrorReason.MALFORMED_FULL_NAME,
            f"repository.full_name '{full_name}' is not of the form owner/repo",
            field="repository.full_name",
        )
    return parts[0], parts[1]


def _missing(field: str) -> PayloadError:
    return PayloadError(
        PayloadErrorReason.MISSING_FIELD,
        f"payload body missing '{field}' field",
        field=field,
    )


def _as_number(value: Any) -> Optional[int]:
    # bool is an int subclass; JSON true/false is not a PR number
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _decode(body: Union[bytes, str]) -> Dict[str, Any]:
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PayloadError(PayloadErrorReason.MALFORMED_JSON, f"body is not UTF-8: {e}") from e

    if not body:
        raise PayloadError(PayloadErrorReason.EMPTY_BODY, "body is empty")

    try:
        document = json.loads(body)
    except json.JSONDecodeError as e:
        raise PayloadError(PayloadErrorReason.MALFORMED_JSON, f"body is not valid JSON: {e}") from e

    if not isinstance(document, dict):
        raise PayloadError(PayloadErrorReason.MALFORMED_JSON, "body is not a JSON object")
    return document


def extract_event(body: Union[bytes, str], event_type: Union[EventType, str]) -> EventContext:
    """
    Build an EventContext from a webhook body.

    Args:
        body: the exact raw JSON text of the delivery
        event_type: ``pull_request`` or ``issue_comment``; the caller has
            already rejected any other value

    Returns:
        EventContext for the delivery

    Raises:
        PayloadError: if the body is empty, not JSON, or lacks a required field
    """
    event_type = EventType(event_type)
    document = _decode(body)

    if event_type == EventType.PULL_REQUEST:
        pr_number = _as_number(document.get("number"))
        if pr_number is None:
            raise _missing("number")
    else:
        issue = document.get("issue")
        pr_number = _as_number(issue.get("number")) if isinstance(issue, dict) else None
        if pr_number is None:
            raise _missing("issue.number")

    repository = document.get("repository")
    full_name = repository.get("full_name") if isinstance(repository, dict) else None
    if not isinstance(full_name, str):
        raise _missing("repository.full_name")
    owner, repo = split_full_name(full_name)

    # An absent sender is not fatal; it simply never matches anyone.
    sender_section = document.get("sender")
    login = sender_section.get("login") if isinstance(sender_section, dict) else None
    sender = login if isinstance(login, str) else ""

    return EventContext(
        event_type=event_type,
        pr_number=pr_number,
        sender=sender,
        owner=owner,
        repository=repo,
    )
