"""Pull request references embedded in free text."""

import re
from dataclasses import dataclass

PR_URL_PATTERN = re.compile(r"https?://github\.com/[^/]+/[^/]+/pull/\d+")
PR_SHAPE_PATTERN = re.compile(r"github\.com/([^/]+)/([^/]+)/pull/(\d+)")


@dataclass(frozen=True)
class PullRequestReference:
    """A pull request identified by owner, repository and number."""

    owner: str
    repo: str
    number: int

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


def extract_pr_urls(text: str | None) -> list[str]:
    """Extract every GitHub pull request URL from a field value.

    Matches are returned in order of appearance; duplicates are kept and
    other GitHub URLs (issues, commits) are ignored.
    """
    if not text:
        return []
    return PR_URL_PATTERN.findall(str(text))


def parse_pr_reference(url: str) -> PullRequestReference | None:
    """Split a reference into owner, repository and number.

    Returns:
        The reference, or None when the text is not PR-shaped
    """
    match = PR_SHAPE_PATTERN.search(url or "")
    if not match:
        return None
    owner, repo, number = match.groups()
    return PullRequestReference(owner=owner, repo=repo, number=int(number))
