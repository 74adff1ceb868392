"""
GitHub REST implementation of RepositoryHost.

One instance is built per evaluation with the token resolved for that
request. Nothing about a request outlives it: the session, token and
deadline all belong to the instance.
"""

import base64
import binascii
import logging
from typing import Any, Dict, Iterator, List, Optional, Set

import requests

from .comments import TrustComment
from .errors import DeadlineExceededError, HostError, NotFoundError
from .host import Deadline, RepositoryHost

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
PER_PAGE = "100"
USER_AGENT = "github-owners-interceptor"


def enterprise_api_url(enterprise_host: str) -> str:
    """REST base URL for a GitHub Enterprise Server host."""
    return f"https://{enterprise_host.strip().rstrip('/')}/api/v3"


def _body(item: Dict[str, Any]) -> str:
    body = item.get("body")
    return body if isinstance(body, str) else ""


def _login(item: Dict[str, Any]) -> str:
    user = item.get("user") if "user" in item else item
    if not isinstance(user, dict):
        return ""
    login = user.get("login")
    return login if isinstance(login, str) else ""


class GitHubRepositoryHost(RepositoryHost):
    """
    RepositoryHost backed by the GitHub REST API.

    Usage:
        host = GitHubRepositoryHost(token=token, deadline=Deadline(20))
        members = host.list_org_public_members("acme")
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = GITHUB_API_URL,
        timeout: float = 10.0,
        deadline: Optional[Deadline] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.deadline = deadline or Deadline()
        self._session = session or requests.Session()
        self._session.headers.update({
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        })
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def for_request(
        cls,
        token: Optional[str],
        enterprise_host: Optional[str] = None,
        api_url: str = GITHUB_API_URL,
        timeout: float = 10.0,
        deadline: Optional[Deadline] = None,
    ) -> "GitHubRepositoryHost":
        """Host for one webhook delivery, honouring X-Github-Enterprise-Host."""
        base = enterprise_api_url(enterprise_host) if enterprise_host else api_url
        return cls(token=token, api_url=base, timeout=timeout, deadline=deadline)

    @property
    def authenticated(self) -> bool:
        return "Authorization" in self._session.headers

    def close(self) -> None:
        self._session.close()

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    def _get(self, url: str, params: Optional[Dict[str, str]] = None) -> requests.Response:
        self.deadline.check(f"GET {url}")
        try:
            return self._session.get(url, params=params, timeout=self.deadline.timeout(self.timeout))
        except requests.Timeout as e:
            if self.deadline.expired():
                raise DeadlineExceededError(
                    f"deadline of {self.deadline.budget}s exceeded during GET {url}",
                    {"url": url},
                ) from e
            raise HostError(f"GitHub API timeout: GET {url}") from e
        except requests.RequestException as e:
            raise HostError(f"GitHub API request failed: GET {url}: {e}") from e

    @staticmethod
    def _raise_for_status(response: requests.Response, url: str) -> None:
        if response.status_code >= 400:
            raise HostError(
                f"GitHub API error {response.status_code} for GET {url}: {response.text[:200]}",
                status_code=response.status_code,
            )

    @staticmethod
    def _json(response: requests.Response, url: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise HostError(
                f"GitHub API returned a non-JSON body for GET {url}",
                status_code=response.status_code,
            ) from e

    def _paginate(self, path: str, not_found_ok: bool = False) -> Iterator[Dict[str, Any]]:
        next_url: Optional[str] = f"{self.api_url}{path}"
        params: Optional[Dict[str, str]] = {"per_page": PER_PAGE}
        while next_url:
            response = self._get(next_url, params)
            if response.status_code == 404 and not_found_ok:
                return
            self._raise_for_status(response, next_url)
            payload = self._json(response, next_url)
            if not isinstance(payload, list):
                raise HostError(f"GitHub API returned {type(payload).__name__} for {path}, expected a list")
            for item in payload:
                if not isinstance(item, dict):
                    raise HostError(f"GitHub API returned a {type(item).__name__} entry for {path}, expected an object")
                yield item
            next_url = response.links.get("next", {}).get("url")
            params = None  # the next link already carries the query

    # ------------------------------------------------------------------
    # RepositoryHost
    # ------------------------------------------------------------------

    def list_org_public_members(self, org: str) -> Set[str]:
        members = {_login(m) for m in self._paginate(f"/orgs/{org}/public_members", not_found_ok=True)}
        members.discard("")
        return members

    def list_collaborators(self, owner: str, repo: str) -> Set[str]:
        collaborators = {_login(c) for c in self._paginate(f"/repos/{owner}/{repo}/collaborators")}
        collaborators.discard("")
        return collaborators

    def get_file_content(self, owner: str, repo: str, path: str) -> bytes:
        url = f"{self.api_url}/repos/{owner}/{repo}/contents/{path}"
        response = self._get(url)
        if response.status_code == 404:
            raise NotFoundError(f"{path} not found in {owner}/{repo}")
        self._raise_for_status(response, url)

        payload = self._json(response, url)
        if isinstance(payload, list):
            raise HostError(f"referenced file inside the GitHub repository {path} is a directory")
        if not isinstance(payload, dict):
            raise HostError(f"GitHub API returned {type(payload).__name__} for {path} in {owner}/{repo}, expected an object")
        if payload.get("type") not in (None, "file"):
            raise HostError(f"{path} in {owner}/{repo} is a {payload.get('type')}, not a file")

        content = payload.get("content") or ""
        if not isinstance(content, str):
            raise HostError(f"GitHub API returned non-text content for {path} in {owner}/{repo}")
        encoding = payload.get("encoding")
        if encoding == "base64":
            try:
                return base64.b64decode(content)
            except (binascii.Error, ValueError) as e:
                raise HostError(f"cannot decode {path} in {owner}/{repo}: {e}") from e
        if encoding in (None, "", "utf-8"):
            return content.encode("utf-8")
        raise HostError(f"unsupported encoding {encoding!r} for {path} in {owner}/{repo}")

    def list_pull_request_comments(self, owner: str, repo: str, number: int) -> List[TrustComment]:
        comments: List[TrustComment] = []
        # Conversation comments, where /ok-to-test is normally posted.
        for item in self._paginate(f"/repos/{owner}/{repo}/issues/{number}/comments"):
            comments.append(TrustComment(author=_login(item), body=_body(item)))
        # Review comments; a plain issue has none and answers 404.
        for item in self._paginate(f"/repos/{owner}/{repo}/pulls/{number}/comments", not_found_ok=True):
            comments.append(TrustComment(author=_login(item), body=_body(item)))
        logger.debug("Fetched %d comments for %s/%s#%d", len(comments), owner, repo, number)
        return comments
