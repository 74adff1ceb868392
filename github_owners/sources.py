"""
Authorization sources.

Each source answers one question about a candidate login: is it a public
organization member, a repository collaborator, or named in OWNERS? The
evaluator runs them in a fixed order and stops at the first grant or the
first error.

Sources never swallow host errors. The single exception is an absent OWNERS
file, which means "no grant from this source".
"""

import logging
from abc import ABC, abstractmethod
from typing import List

from .errors import NotFoundError
from .host import RepositoryHost
from .owners import OWNERS_PATH, parse_owners
from .payload import EventContext

logger = logging.getLogger(__name__)


def _same_login(a: str, b: str) -> bool:
    return bool(b) and a.casefold() == b.casefold()


class AuthorizationSource(ABC):
    """Abstract base class for all authorization sources."""

    source_id = "abstract"

    @abstractmethod
    def grants(self, host: RepositoryHost, ctx: EventContext) -> bool:
        """True if this source authorizes ``ctx.sender``. Host errors propagate."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class OrgPublicMemberSource(AuthorizationSource):
    """Public members of the organization that owns the repository."""

    source_id = "org_public_member"

    def grants(self, host, ctx):
        members = host.list_org_public_members(ctx.owner)
        return any(_same_login(m, ctx.sender) for m in members)


class RepositoryCollaboratorSource(AuthorizationSource):
    """Collaborators on the repository."""

    source_id = "repo_collaborator"

    def grants(self, host, ctx):
        collaborators = host.list_collaborators(ctx.owner, ctx.repository)
        return any(_same_login(c, ctx.sender) for c in collaborators)


class OwnersFileSource(AuthorizationSource):
    """Approvers and reviewers listed in the top-level OWNERS file."""

    source_id = "owners_file"

    def __init__(self, path: str = OWNERS_PATH):
        self.path = path

    def grants(self, host, ctx):
        try:
            content = host.get_file_content(ctx.owner, ctx.repository, self.path)
        except NotFoundError:
            logger.debug("No %s file in %s, skipping", self.path, ctx.full_name)
            return False
        return parse_owners(content).includes(ctx.sender)

    def __repr__(self) -> str:
        return f"OwnersFileSource(path={self.path!r})"


def build_sources(org_public_member_allowed: bool, repo_member_allowed: bool) -> List[AuthorizationSource]:
    """The ordered source list for a given set of membership flags."""
    sources: List[AuthorizationSource] = []
    if org_public_member_allowed:
        sources.append(OrgPublicMemberSource())
    if repo_member_allowed:
        sources.append(RepositoryCollaboratorSource())
    sources.append(OwnersFileSource())
    return sources
