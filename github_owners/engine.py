"""
Decision Engine

Top-level orchestration for one webhook delivery. State machine:

    RECEIVED -> VALIDATED -> EVENT_EXTRACTED -> DIRECTLY_AUTHORIZED  (ALLOW)
                                             -> COMMENT_AUTHORIZED   (ALLOW)
                                             -> DENIED               (DENY)

Any failure on the way terminates the machine with a failure Verdict. A
failure means "could not determine"; DENIED means "determined: not
authorized". A Verdict is exactly one of ALLOW, DENY or a failure.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Union

from .errors import (
    DeadlineExceededError,
    GitHubOwnersError,
    PayloadError,
    UnsupportedEventTypeError,
)
from .evaluator import AuthorizationEvaluator, AuthorizationParams, AuthorizationResult
from .host import RepositoryHost
from .payload import EventContext, EventType, extract_event

logger = logging.getLogger(__name__)


class StatusCode(IntEnum):
    """gRPC status codes, as carried in the interceptor response."""
    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


class EngineState(str, Enum):
    """Decision engine states."""
    RECEIVED = "RECEIVED"
    VALIDATED = "VALIDATED"
    EVENT_EXTRACTED = "EVENT_EXTRACTED"
    DIRECTLY_AUTHORIZED = "DIRECTLY_AUTHORIZED"
    COMMENT_AUTHORIZED = "COMMENT_AUTHORIZED"
    DENIED = "DENIED"
    FAILED = "FAILED"


@dataclass
class Verdict:
    """Result of processing one delivery."""
    continue_: bool
    code: StatusCode = StatusCode.OK
    message: str = ""
    state: EngineState = EngineState.RECEIVED
    context: Optional[EventContext] = None
    authorization: Optional[AuthorizationResult] = None
    trail: List[str] = field(default_factory=list)

    @classmethod
    def fail(cls, code: StatusCode, message: str, trail: Optional[List[str]] = None) -> "Verdict":
        return cls(continue_=False, code=code, message=message, state=EngineState.FAILED, trail=list(trail or []))

    def allowed(self) -> bool:
        return self.continue_ and self.code == StatusCode.OK

    def denied(self) -> bool:
        return not self.continue_ and self.code == StatusCode.OK

    def failed(self) -> bool:
        return self.code != StatusCode.OK

    def to_response(self) -> Dict[str, Any]:
        """Interceptor response envelope; zero-valued status fields are omitted."""
        status: Dict[str, Any] = {}
        if self.code != StatusCode.OK:
            status["code"] = int(self.code)
        if self.message:
            status["message"] = self.message
        return {"continue": self.continue_, "status": status}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "continue": self.continue_,
            "code": self.code.name,
            "message": self.message,
            "state": self.state.value,
            "context": self.context.to_dict() if self.context else None,
            "authorization": self.authorization.to_dict() if self.authorization else None,
            "trail": list(self.trail),
        }


def validate_event_type(event_type: Optional[str]) -> EventType:
    """
    RECEIVED -> VALIDATED.

    Raises:
        UnsupportedEventTypeError: for anything but pull_request/issue_comment
    """
    parsed = EventType.parse(event_type)
    if parsed is None:
        raise UnsupportedEventTypeError(event_type or "")
    return parsed


class DecisionEngine:
    """
    Runs the state machine for one delivery against one RepositoryHost.

    Usage:
        engine = DecisionEngine(host)
        verdict = engine.decide("pull_request", body, params)
        if verdict.allowed():
            start_pipeline()
    """

    def __init__(self, host: RepositoryHost):
        self.evaluator = AuthorizationEvaluator(host)

    def decide(
        self,
        event_type: Optional[str],
        body: Union[bytes, str],
        params: AuthorizationParams,
    ) -> Verdict:
        """
        Process one delivery.

        Args:
            event_type: value of the X-GitHub-Event header
            body: exact raw JSON text of the webhook payload
            params: parsed interceptor params

        Returns:
            Verdict that is exactly one of ALLOW, DENY or a failure status.
            Errors from the host, the OWNERS parser or the deadline become
            failure verdicts; they are never reported as DENY.
        """
        trail = [EngineState.RECEIVED.value]

        try:
            validated = validate_event_type(event_type)
        except UnsupportedEventTypeError as e:
            return Verdict.fail(StatusCode.FAILED_PRECONDITION, e.message, trail)
        trail.append(EngineState.VALIDATED.value)

        try:
            ctx = extract_event(body, validated)
        except PayloadError as e:
            return Verdict.fail(StatusCode.FAILED_PRECONDITION, f"error parsing body: {e.message}", trail)
        trail.append(EngineState.EVENT_EXTRACTED.value)

        try:
            result = self.evaluator.is_authorized(ctx, params)
        except GitHubOwnersError as e:
            return self._failure(e, "error checking owner verification", ctx, trail)
        if result.authorized():
            trail.append(EngineState.DIRECTLY_AUTHORIZED.value)
            return self._verdict(True, EngineState.DIRECTLY_AUTHORIZED, ctx, result, trail)

        try:
            result = self.evaluator.is_authorized_via_trusted_comment(ctx, params)
        except GitHubOwnersError as e:
            return self._failure(e, "error checking comments for verification", ctx, trail)
        if result.authorized():
            trail.append(EngineState.COMMENT_AUTHORIZED.value)
            return self._verdict(True, EngineState.COMMENT_AUTHORIZED, ctx, result, trail)

        trail.append(EngineState.DENIED.value)
        return self._verdict(False, EngineState.DENIED, ctx, result, trail)

    @staticmethod
    def _verdict(allowed, state, ctx, result, trail) -> Verdict:
        return Verdict(
            continue_=allowed,
            state=state,
            context=ctx,
            authorization=result,
            trail=trail,
        )

    @staticmethod
    def _failure(error: GitHubOwnersError, prefix: str, ctx: EventContext, trail: List[str]) -> Verdict:
        if isinstance(error, DeadlineExceededError):
            code = StatusCode.DEADLINE_EXCEEDED
        else:
            code = StatusCode.FAILED_PRECONDITION
        logger.warning("%s for %s#%d: %s", prefix, ctx.full_name, ctx.pr_number, error.message)
        verdict = Verdict.fail(code, f"{prefix}: {error.message}", trail)
        verdict.context = ctx
        return verdict
