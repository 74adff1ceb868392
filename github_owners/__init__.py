"""
GitHub Owners Interceptor

Version: 1.0.0
License: Apache 2.0

A Tekton Triggers interceptor that decides whether a GitHub pull_request or
issue_comment event may start a pipeline.

The sender is trusted if they are:
    - a public member of the repository's organization (optional)
    - a collaborator on the repository (optional)
    - an approver or reviewer in the repository's top-level OWNERS file

Otherwise a trusted maintainer may vouch for the change by commenting
``/ok-to-test`` on its own line.

Usage:
    from github_owners import (
        AuthorizationParams,
        DecisionEngine,
        GitHubRepositoryHost,
    )

    host = GitHubRepositoryHost(token=token)
    params = AuthorizationParams(repo_member_allowed=True)
    verdict = DecisionEngine(host).decide("pull_request", body, params)

    if verdict.allowed():
        ...  # continue the trigger
    elif verdict.denied():
        ...  # sender is not trusted
    else:
        print(verdict.code.name, verdict.message)
"""

__version__ = "1.0.0"
__license__ = "Apache-2.0"

# Errors
from .errors import (
    GitHubOwnersError,
    ParamsError,
    UnsupportedEventTypeError,
    PayloadErrorReason,
    PayloadError,
    PolicyMalformedError,
    HostError,
    NotFoundError,
    DeadlineExceededError,
    SecretError,
)

# Payload extraction
from .payload import (
    ACCEPTED_EVENT_TYPES,
    EventType,
    EventContext,
    extract_event,
    split_full_name,
)

# OWNERS
from .owners import OWNERS_PATH, OwnersPolicy, parse_owners

# Trust comments
from .comments import (
    OK_TO_TEST_TOKEN,
    OK_TO_TEST_PATTERN,
    TrustComment,
    is_trust_comment,
    filter_trust_comments,
)

# Repository hosts
from .host import Deadline, RepositoryHost, InMemoryRepositoryHost
from .github import GITHUB_API_URL, GitHubRepositoryHost, enterprise_api_url

# Secrets
from .secret_store import (
    SecretReference,
    SecretStore,
    FileSecretStore,
    KubernetesSecretStore,
    parse_trigger_namespace,
    resolve_secret,
)

# Evaluation
from .sources import (
    AuthorizationSource,
    OrgPublicMemberSource,
    RepositoryCollaboratorSource,
    OwnersFileSource,
    build_sources,
)
from .evaluator import AuthorizationParams, AuthorizationResult, AuthorizationEvaluator
from .engine import StatusCode, EngineState, Verdict, DecisionEngine, validate_event_type
from .interceptor import (
    InterceptorRequest,
    GitHubOwnersInterceptor,
    canonical_headers,
    github_host_factory,
)


__all__ = [
    # Version
    "__version__",

    # Errors
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

    # Payload
    "ACCEPTED_EVENT_TYPES",
    "EventType",
    "EventContext",
    "extract_event",
    "split_full_name",

    # OWNERS
    "OWNERS_PATH",
    "OwnersPolicy",
    "parse_owners",

    # Comments
    "OK_TO_TEST_TOKEN",
    "OK_TO_TEST_PATTERN",
    "TrustComment",
    "is_trust_comment",
    "filter_trust_comments",

    # Hosts
    "Deadline",
    "RepositoryHost",
    "InMemoryRepositoryHost",
    "GITHUB_API_URL",
    "GitHubRepositoryHost",
    "enterprise_api_url",

    # Secrets
    "SecretReference",
    "SecretStore",
    "FileSecretStore",
    "KubernetesSecretStore",
    "parse_trigger_namespace",
    "resolve_secret",

    # Evaluation
    "AuthorizationSource",
    "OrgPublicMemberSource",
    "RepositoryCollaboratorSource",
    "OwnersFileSource",
    "build_sources",
    "AuthorizationParams",
    "AuthorizationResult",
    "AuthorizationEvaluator",
    "StatusCode",
    "EngineState",
    "Verdict",
    "DecisionEngine",
    "validate_event_type",

    # Interceptor
    "InterceptorRequest",
    "GitHubOwnersInterceptor",
    "canonical_headers",
    "github_host_factory",
]
