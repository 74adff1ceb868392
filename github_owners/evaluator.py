"""
Authorization Evaluator

Answers two questions for an EventContext:

    is_authorized                      -> is ctx.sender a maintainer?
    is_authorized_via_trusted_comment  -> has a maintainer posted /ok-to-test?

Evaluation order for is_authorized (first grant wins):
    1. Organization public members   (only if orgPublicMemberAllowed)
    2. Repository collaborators      (only if repoMemberAllowed)
    3. OWNERS approvers + reviewers  (always; a missing file grants nothing)

Any host error aborts the evaluation and propagates. An error is never
reported as "not authorized".
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .comments import filter_trust_comments
from .errors import ParamsError
from .host import RepositoryHost
from .payload import EventContext
from .secret_store import SecretReference
from .sources import AuthorizationSource, build_sources

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthorizationParams:
    """Caller-supplied configuration controlling which checks run."""
    secret_ref: Optional[SecretReference] = None
    org_public_member_allowed: bool = False
    repo_member_allowed: bool = False

    @property
    def reviewers_allowed(self) -> bool:
        return self.repo_member_allowed

    @classmethod
    def from_dict(cls, params: Optional[Dict[str, Any]]) -> "AuthorizationParams":
        """
        Build params from the Trigger's ``interceptor_params`` object.

        Unknown keys are ignored; known keys with the wrong type are errors.

        Raises:
            ParamsError: if a known key has the wrong type
        """
        if params is None:
            return cls()
        if not isinstance(params, dict):
            raise ParamsError("interceptor params must be an object")

        flags = {}
        for key in ("orgPublicMemberAllowed", "repoMemberAllowed"):
            value = params.get(key, False)
            if value is None:
                value = False
            if not isinstance(value, bool):
                raise ParamsError(f"{key} must be a boolean, got {type(value).__name__}")
            flags[key] = value

        raw_ref = params.get("secretRef")
        secret_ref = None if raw_ref is None else SecretReference.from_dict(raw_ref)

        return cls(
            secret_ref=secret_ref,
            org_public_member_allowed=flags["orgPublicMemberAllowed"],
            repo_member_allowed=flags["repoMemberAllowed"],
        )


@dataclass
class AuthorizationResult:
    """Outcome of evaluating one candidate login."""
    login: str
    granted_by: Optional[str] = None
    checked: List[str] = field(default_factory=list)
    via_comment: bool = False

    def authorized(self) -> bool:
        return self.granted_by is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "login": self.login,
            "authorized": self.authorized(),
            "granted_by": self.granted_by,
            "checked": list(self.checked),
            "via_comment": self.via_comment,
        }


class AuthorizationEvaluator:
    """
    Evaluates sender authorization against one RepositoryHost.

    The host is passed in explicitly and belongs to a single evaluation, so
    an evaluator carries no state between requests.

    Usage:
        evaluator = AuthorizationEvaluator(host)
        result = evaluator.is_authorized(ctx, params)
        if not result.authorized():
            result = evaluator.is_authorized_via_trusted_comment(ctx, params)
    """

    def __init__(self, host: RepositoryHost):
        self.host = host

    def sources_for(self, params: AuthorizationParams) -> List[AuthorizationSource]:
        return build_sources(params.org_public_member_allowed, params.repo_member_allowed)

    def is_authorized(self, ctx: EventContext, params: AuthorizationParams) -> AuthorizationResult:
        """
        Decide whether ``ctx.sender`` is a maintainer of ``ctx.owner/ctx.repository``.

        Returns:
            AuthorizationResult naming the granting source, if any

        Raises:
            HostError: any remote failure other than a missing OWNERS file
            PolicyMalformedError: OWNERS exists but cannot be parsed
            DeadlineExceededError: the evaluation ran out of time
        """
        result = AuthorizationResult(login=ctx.sender)
        # Every source runs even for an empty sender, which matches nobody.
        for source in self.sources_for(params):
            result.checked.append(source.source_id)
            if source.grants(self.host, ctx):
                result.granted_by = source.source_id
                logger.info(
                    "%s authorized on %s by %s",
                    ctx.sender, ctx.full_name, source.source_id,
                )
                return result

        logger.debug("%s not authorized on %s (checked %s)", ctx.sender, ctx.full_name, result.checked)
        return result

    def is_authorized_via_trusted_comment(self, ctx: EventContext, params: AuthorizationParams) -> AuthorizationResult:
        """
        Look for an /ok-to-test comment posted by a maintainer.

        Each trust comment's author is evaluated with is_authorized, in the
        order the host returned the comments. The first authorized author
        wins; the first error aborts the scan.
        """
        comments = self.host.list_pull_request_comments(ctx.owner, ctx.repository, ctx.pr_number)
        trusted = filter_trust_comments(comments)
        logger.debug(
            "%d of %d comments on %s#%d are trust comments",
            len(trusted), len(comments), ctx.full_name, ctx.pr_number,
        )

        for comment in trusted:
            result = self.is_authorized(ctx.with_sender(comment.author), params)
            if result.authorized():
                result.via_comment = True
                return result

        return AuthorizationResult(login=ctx.sender, via_comment=True)
