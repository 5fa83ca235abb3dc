"""Review target parsing.

Turns the arguments a user hands the skill (a PR number, a PR URL, a
branch range, or branch names) into a ReviewTarget.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from .config import get_base_branch

# 123, #123, "PR 123", "pr #123"
PR_NUMBER_RE = re.compile(r"^(?:pr\s*)?#?(\d+)$", re.IGNORECASE)
PR_URL_RE = re.compile(
    r"^https?://[^/]+/(?P<repo>[\w.-]+/[\w.-]+)/pull/(?P<number>\d+)(?:[/?#].*)?$"
)
RANGE_RE = re.compile(r"^(?P<base>[^.].*?)(?P<dots>\.{2,3})(?P<head>[^.].*)$")


class TargetError(ValueError):
    """Arguments do not describe a PR or a branch pair."""


@dataclass
class ReviewTarget:
    """What to fetch: a pull request or a base/head branch pair."""
    kind: str  # "pr" or "branches"
    pr: Optional[str] = None
    repo: Optional[str] = None
    base: Optional[str] = None
    head: Optional[str] = None  # None = current branch

    @classmethod
    def for_pr(cls, pr: str, repo: Optional[str] = None) -> "ReviewTarget":
        return cls(kind="pr", pr=pr, repo=repo)

    @classmethod
    def for_branches(cls, base: str, head: Optional[str] = None) -> "ReviewTarget":
        return cls(kind="branches", base=base, head=head)

    def describe(self) -> str:
        if self.kind == "pr":
            return f"PR #{self.pr}" + (f" in {self.repo}" if self.repo else "")
        return f"{self.base}...{self.head or '(current branch)'}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "pr": self.pr,
            "repo": self.repo,
            "base": self.base,
            "head": self.head,
        }


def _parse_pr_number(value: str) -> Optional[str]:
    match = PR_NUMBER_RE.match(value)
    if not match:
        return None
    if int(match.group(1)) == 0:
        raise TargetError(f"Invalid PR number: {value}")
    return str(int(match.group(1)))


def parse_target(args: Sequence[str], repo: Optional[str] = None) -> ReviewTarget:
    """Parse review arguments into a ReviewTarget.

    Args:
        args: Positional arguments as given (empty strings are ignored)
        repo: Optional owner/repo for PR targets

    Returns:
        ReviewTarget for a PR or a branch pair

    Raises:
        TargetError: If the arguments match none of the accepted forms

    Examples:
        parse_target(["123"])                 -> PR 123
        parse_target(["#123"])                -> PR 123
        parse_target(["PR", "123"])           -> PR 123
        parse_target(["https://github.com/o/r/pull/7"]) -> PR 7 in o/r
        parse_target(["main...feature"])      -> main vs feature
        parse_target(["main", "feature"])     -> main vs feature
        parse_target(["main"])                -> main vs current branch
        parse_target([])                      -> default base vs current branch
    """
    values = [a.strip() for a in args if a and a.strip()]

    if not values:
        return ReviewTarget.for_branches(get_base_branch())

    if len(values) > 2:
        raise TargetError(
            f"Expected a PR or at most two branch names, got {len(values)} arguments"
        )

    if len(values) == 2 and values[0].lower() == "pr":
        number = _parse_pr_number(values[1])
        if not number:
            raise TargetError(f"Expected a PR number after '{values[0]}', got: {values[1]}")
        return ReviewTarget.for_pr(number, repo)

    if len(values) == 2:
        base, head = values
        if _parse_pr_number(base) or "..." in base or ".." in base:
            raise TargetError(f"Expected two branch names, got: {base} {head}")
        return ReviewTarget.for_branches(base, head)

    value = values[0]

    number = _parse_pr_number(value)
    if number:
        return ReviewTarget.for_pr(number, repo)

    url = PR_URL_RE.match(value)
    if url:
        if repo and repo != url.group("repo"):
            raise TargetError(
                f"PR URL points at {url.group('repo')} but --repo is {repo}"
            )
        return ReviewTarget.for_pr(_parse_pr_number(url.group("number")), url.group("repo"))

    if value.startswith(("http://", "https://")):
        raise TargetError(f"Not a pull request URL: {value}")

    if ".." in value:
        match = RANGE_RE.match(value)
        if not match or match.group("base").endswith("."):
            raise TargetError(f"Invalid branch range: {value}")
        return ReviewTarget.for_branches(match.group("base"), match.group("head"))

    return ReviewTarget.for_branches(value)
