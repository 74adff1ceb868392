"""
OWNERS file interpretation.

An OWNERS document is YAML with two optional lists of GitHub logins:

    approvers:
      - alice
    reviewers:
      - bob

Both lists grant the same trust to this interceptor. Logins are compared
case-insensitively, as GitHub treats them.
"""

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Union

import yaml

from .errors import PolicyMalformedError

OWNERS_PATH = "OWNERS"


def _normalize(login: str) -> str:
    return login.strip().casefold()


@dataclass(frozen=True)
class OwnersPolicy:
    """Identities named by an OWNERS document, stored case-folded."""
    approvers: FrozenSet[str] = field(default_factory=frozenset)
    reviewers: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_lists(cls, approvers: Iterable[str] = (), reviewers: Iterable[str] = ()) -> "OwnersPolicy":
        return cls(
            approvers=frozenset(_normalize(a) for a in approvers if _normalize(a)),
            reviewers=frozenset(_normalize(r) for r in reviewers if _normalize(r)),
        )

    def includes(self, login: str) -> bool:
        """True if ``login`` is an approver or reviewer."""
        candidate = _normalize(login or "")
        if not candidate:
            return False
        return candidate in self.approvers or candidate in self.reviewers

    def is_empty(self) -> bool:
        return not self.approvers and not self.reviewers


def _read_list(document: dict, key: str) -> list:
    value = document.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise PolicyMalformedError(f"OWNERS '{key}' must be a list, got {type(value).__name__}")
    logins = []
    for entry in value:
        # YAML turns bare numeric logins into ints
        if isinstance(entry, (str, int)) and not isinstance(entry, bool):
            logins.append(str(entry))
        else:
            raise PolicyMalformedError(f"OWNERS '{key}' entries must be strings, got {entry!r}")
    return logins


def parse_owners(content: Union[bytes, str]) -> OwnersPolicy:
    """
    Parse an OWNERS document.

    An empty document is a policy with no entries. Keys other than
    ``approvers`` and ``reviewers`` are ignored.

    Raises:
        PolicyMalformedError: if the YAML is invalid or the lists have the
            wrong shape
    """
    if isinstance(content, bytes):
        try:
            content = content.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PolicyMalformedError(f"OWNERS is not UTF-8: {e}") from e

    try:
        document: Any = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise PolicyMalformedError(f"OWNERS is not valid YAML: {e}") from e

    if document is None:
        return OwnersPolicy()
    if not isinstance(document, dict):
        raise PolicyMalformedError("OWNERS must be a mapping")

    return OwnersPolicy.from_lists(
        approvers=_read_list(document, "approvers"),
        reviewers=_read_list(document, "reviewers"),
    )
