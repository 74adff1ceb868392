"""
GitHub Owners Interceptor

The Tekton Triggers entry point. For each InterceptorRequest:

1. Reject form-encoded webhooks
2. Parse the Trigger's interceptor params
3. Reject event types other than pull_request and issue_comment
4. Resolve the GitHub token, if a secretRef is configured
5. Build a RepositoryHost for this request only
6. Run the DecisionEngine

Only immutable configuration (secret store, host factory, timeouts) lives on
the interceptor. Everything request-scoped is created inside process().
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

from .engine import DecisionEngine, StatusCode, Verdict, validate_event_type
from .errors import ParamsError, SecretError, UnsupportedEventTypeError
from .evaluator import AuthorizationParams
from .github import GITHUB_API_URL, GitHubRepositoryHost
from .host import Deadline, RepositoryHost
from .secret_store import SecretStore, resolve_secret

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
ERR_INVALID_CONTENT_TYPE = (
    "form parameter encoding not supported, please change the hook to send JSON payloads"
)

# (token, enterprise_host, deadline) -> host for one request
HostFactory = Callable[[str, Optional[str], Deadline], RepositoryHost]


def canonical_headers(header: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Case-insensitive view of a multi-valued header map; first value wins."""
    result: Dict[str, str] = {}
    for name, values in (header or {}).items():
        if isinstance(values, (list, tuple)):
            value = values[0] if values else ""
        else:
            value = values
        result.setdefault(str(name).lower(), "" if value is None else str(value))
    return result


@dataclass
class InterceptorRequest:
    """A Tekton Triggers InterceptorRequest."""
    body: str = ""
    header: Dict[str, List[str]] = field(default_factory=dict)
    extensions: Dict[str, Any] = field(default_factory=dict)
    interceptor_params: Dict[str, Any] = field(default_factory=dict)
    event_url: Optional[str] = None
    event_id: Optional[str] = None
    trigger_id: Optional[str] = None

    def headers(self) -> Dict[str, str]:
        return canonical_headers(self.header)

    @property
    def event_type(self) -> str:
        return self.headers().get("x-github-event", "")

    @property
    def enterprise_host(self) -> Optional[str]:
        return self.headers().get("x-github-enterprise-host") or None

    @property
    def content_type(self) -> str:
        return self.headers().get("content-type", "")


def github_host_factory(api_url: str = GITHUB_API_URL, timeout: float = 10.0) -> HostFactory:
    """Factory building a fresh GitHubRepositoryHost per request."""

    def build(token: str, enterprise_host: Optional[str], deadline: Deadline) -> RepositoryHost:
        return GitHubRepositoryHost.for_request(
            token=token or None,
            enterprise_host=enterprise_host,
            api_url=api_url,
            timeout=timeout,
            deadline=deadline,
        )

    return build


class GitHubOwnersInterceptor:
    """
    Decides whether a GitHub webhook may start a pipeline.

    Usage:
        interceptor = GitHubOwnersInterceptor(secret_store=store)
        verdict = interceptor.process(request)
        response = verdict.to_response()
    """

    def __init__(
        self,
        secret_store: Optional[SecretStore] = None,
        host_factory: Optional[HostFactory] = None,
        evaluation_timeout: Optional[float] = None,
    ):
        self.secret_store = secret_store
        self.host_factory = host_factory or github_host_factory()
        self.evaluation_timeout = evaluation_timeout

    def process(self, request: InterceptorRequest, deadline: Optional[Deadline] = None) -> Verdict:
        deadline = deadline or Deadline(self.evaluation_timeout)

        if request.content_type.split(";")[0].strip().lower() == FORM_CONTENT_TYPE:
            return Verdict.fail(StatusCode.INVALID_ARGUMENT, ERR_INVALID_CONTENT_TYPE)

        try:
            params = AuthorizationParams.from_dict(request.interceptor_params)
        except ParamsError as e:
            return Verdict.fail(StatusCode.INVALID_ARGUMENT, f"failed to parse interceptor params: {e.message}")

        event_type = request.event_type
        try:
            validate_event_type(event_type)
        except UnsupportedEventTypeError as e:
            return Verdict.fail(StatusCode.FAILED_PRECONDITION, e.message)

        try:
            token = resolve_secret(self.secret_store, params.secret_ref, request.trigger_id)
        except SecretError as e:
            return Verdict.fail(StatusCode.FAILED_PRECONDITION, f"error getting the secret: {e.message}")

        if not token:
            logger.debug("No secretRef configured, using anonymous GitHub access")

        with self.host_factory(token, request.enterprise_host, deadline) as host:
            return DecisionEngine(host).decide(event_type, request.body, params)
