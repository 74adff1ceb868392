"""
Repository host interface.

The evaluator asks a RepositoryHost for organization members, collaborators,
file contents and pull request comments. Implementations must:

- Raise NotFoundError (never a generic HostError) when a file is absent
- Return an empty set when an organization does not exist
- Raise HostError for every other failure, without retrying
- Respect the Deadline they were built with

A host instance belongs to exactly one evaluation. Hosts are created per
request and are not shared between concurrent evaluations.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from .comments import TrustComment
from .errors import DeadlineExceededError, HostError, NotFoundError


class Deadline:
    """
    Time budget for one evaluation.

    A Deadline without a budget never expires.
    """

    def __init__(self, seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires_at = None if seconds is None else clock() + seconds
        self.budget = seconds

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self, operation: str) -> None:
        """Raise DeadlineExceededError if no time is left for ``operation``."""
        if self.expired():
            raise DeadlineExceededError(
                f"deadline of {self.budget}s exceeded before {operation}",
                {"operation": operation},
            )

    def timeout(self, default: float) -> float:
        """The per-call timeout: ``default`` capped at the remaining budget."""
        remaining = self.remaining()
        if remaining is None:
            return default
        return min(default, remaining)


class RepositoryHost(ABC):
    """Abstract interface for the GitHub capabilities authorization needs."""

    def close(self) -> None:
        """Release any connections held by the host."""

    def __enter__(self) -> "RepositoryHost":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @abstractmethod
    def list_org_public_members(self, org: str) -> Set[str]:
        """Logins of the public members of ``org``; empty if ``org`` does not exist."""
        pass

    @abstractmethod
    def list_collaborators(self, owner: str, repo: str) -> Set[str]:
        """Logins of the collaborators of ``owner/repo``."""
        pass

    @abstractmethod
    def get_file_content(self, owner: str, repo: str, path: str) -> bytes:
        """
        Raw bytes of ``path`` at the repository root.

        Raises:
            NotFoundError: if the file does not exist
        """
        pass

    @abstractmethod
    def list_pull_request_comments(self, owner: str, repo: str, number: int) -> List[TrustComment]:
        """Comments on pull request ``number`` in the order the host returns them."""
        pass


class InMemoryRepositoryHost(RepositoryHost):
    """
    Dictionary-backed host for development and testing.

    Failures can be injected per capability with ``fail_on``, which maps a
    method name to the exception it should raise. Every call is appended to
    ``calls`` so callers can assert on ordering and short-circuiting.
    """

    def __init__(
        self,
        org_members: Optional[Dict[str, Iterable[str]]] = None,
        collaborators: Optional[Dict[str, Iterable[str]]] = None,
        files: Optional[Dict[Tuple[str, str], bytes]] = None,
        comments: Optional[Dict[Tuple[str, int], List[TrustComment]]] = None,
        fail_on: Optional[Dict[str, Exception]] = None,
        deadline: Optional[Deadline] = None,
    ):
        self.org_members = {k: set(v) for k, v in (org_members or {}).items()}
        self.collaborators = {k: set(v) for k, v in (collaborators or {}).items()}
        self.files = dict(files or {})
        self.comments = dict(comments or {})
        self.fail_on = dict(fail_on or {})
        self.deadline = deadline or Deadline()
        self.calls: List[Tuple[str, ...]] = []
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def _enter(self, name: str, *args) -> None:
        self.deadline.check(name)
        self.calls.append((name,) + tuple(str(a) for a in args))
        if name in self.fail_on:
            raise self.fail_on[name]

    def list_org_public_members(self, org: str) -> Set[str]:
        self._enter("list_org_public_members", org)
        return set(self.org_members.get(org, set()))

    def list_collaborators(self, owner: str, repo: str) -> Set[str]:
        self._enter("list_collaborators", owner, repo)
        key = f"{owner}/{repo}"
        if key not in self.collaborators:
            raise HostError(f"repository {key} not found", status_code=404)
        return set(self.collaborators[key])

    def get_file_content(self, owner: str, repo: str, path: str) -> bytes:
        self._enter("get_file_content", owner, repo, path)
        key = (f"{owner}/{repo}", path)
        if key not in self.files:
            raise NotFoundError(f"{path} not found in {owner}/{repo}")
        content = self.files[key]
        return content.encode("utf-8") if isinstance(content, str) else content

    def list_pull_request_comments(self, owner: str, repo: str, number: int) -> List[TrustComment]:
        self._enter("list_pull_request_comments", owner, repo, number)
        return list(self.comments.get((f"{owner}/{repo}", number), []))
