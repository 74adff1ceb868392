"""
Trust comment matching.

A maintainer vouches for an untrusted change by posting ``/ok-to-test`` alone
on a line of a pull request comment.
"""

import re
from dataclasses import dataclass
from typing import Iterable, List

OK_TO_TEST_TOKEN = "/ok-to-test"

# Start of text or after a line break; then end of text or a line break.
OK_TO_TEST_PATTERN = re.compile(r"(^|\n)/ok-to-test(\r\n|\r|\n|$)")


@dataclass(frozen=True)
class TrustComment:
    """A pull request comment as far as authorization is concerned."""
    author: str
    body: str


def is_trust_comment(body: str) -> bool:
    """True if ``body`` contains the ok-to-test token on a line by itself."""
    if not body:
        return False
    return OK_TO_TEST_PATTERN.search(body) is not None


def filter_trust_comments(comments: Iterable[TrustComment]) -> List[TrustComment]:
    """Keep the trust comments, preserving their order."""
    return [c for c in comments if is_trust_comment(c.body)]
