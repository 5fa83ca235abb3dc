"""Diff fetching for the code-review skill.

Runs gh for pull requests and git for branch pairs, returning the tools'
output verbatim. Failures are reported through the propagated exit code,
never raised.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import PR_VIEW_FIELDS
from .runner import CommandResult, run_command
from .targets import ReviewTarget

logger = logging.getLogger("code-review.fetch")

# Plain a/ b/ headers and rename detection whatever the user's git config says
GIT_DIFF_CMD = [
    "git", "diff", "--no-color", "--no-ext-diff", "-M",
    "--src-prefix=a/", "--dst-prefix=b/",
]


@dataclass
class FetchResult:
    """Everything fetched for one review target."""
    target: ReviewTarget
    results: List[CommandResult] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diff: str = ""

    @property
    def returncode(self) -> int:
        """First non-zero exit code among the commands run, else 0."""
        for result in self.results:
            if result.returncode != 0:
                return result.returncode
        return 0

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def errors(self) -> List[str]:
        return [r.stderr.strip() for r in self.results if not r.ok and r.stderr.strip()]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "target": self.target.to_dict(),
            "metadata": self.metadata,
            "diff": self.diff,
            "returncode": self.returncode,
            "commands": [r.to_dict() for r in self.results],
            "errors": self.errors,
        }


def _repo_args(repo: Optional[str]) -> List[str]:
    return ["--repo", repo] if repo else []


def fetch_pr(pr: str, repo: Optional[str] = None, cwd: Optional[Path] = None) -> FetchResult:
    """Fetch pull request metadata and diff via gh.

    Args:
        pr: PR number (or anything `gh pr view` accepts)
        repo: Optional owner/repo, otherwise gh infers it from cwd
        cwd: Working directory for gh

    Returns:
        FetchResult with parsed `gh pr view` JSON as metadata and the
        `gh pr diff` output as diff. The diff is fetched even if the
        view fails so the caller sees both errors.
    """
    target = ReviewTarget.for_pr(pr, repo)
    fetched = FetchResult(target=target)

    view = run_command(
        ["gh", "pr", "view", pr, *_repo_args(repo), "--json", ",".join(PR_VIEW_FIELDS)],
        cwd=cwd,
    )
    fetched.results.append(view)
    if view.ok:
        try:
            parsed = json.loads(view.stdout)
        except json.JSONDecodeError:
            logger.warning("gh pr view returned non-JSON output for PR %s", pr)
            parsed = None
        if isinstance(parsed, dict):
            fetched.metadata = parsed
        else:
            fetched.metadata = {"raw": view.stdout}

    diff = run_command(
        ["gh", "pr", "diff", pr, *_repo_args(repo), "--color", "never"], cwd=cwd
    )
    fetched.results.append(diff)
    fetched.diff = diff.stdout

    logger.info("Fetched %s (exit %d)", target.describe(), fetched.returncode)
    return fetched


def current_branch(cwd: Optional[Path] = None) -> CommandResult:
    """Run `git branch --show-current`."""
    return run_command(["git", "branch", "--show-current"], cwd=cwd)


def fetch_branches(
    base: str,
    head: Optional[str] = None,
    cwd: Optional[Path] = None,
) -> FetchResult:
    """Fetch the diff between two branches via git.

    Uses the three-dot form so only changes made on head since it forked
    from base are shown.

    Args:
        base: Base branch (what the change merges into)
        head: Head branch; the current branch when None
        cwd: Repository directory

    Returns:
        FetchResult with base/head metadata and the diff. current_branch is
        only looked up (and reported) when head is None.
    """
    fetched = FetchResult(target=ReviewTarget.for_branches(base, head))
    fetched.metadata = {"base": base}

    effective_head = head
    if head is None:
        branch = current_branch(cwd)
        fetched.results.append(branch)
        current = branch.stdout.strip() if branch.ok else ""
        fetched.metadata["current_branch"] = current or None
        effective_head = current or "HEAD"
    fetched.metadata["head"] = effective_head

    diff = run_command([*GIT_DIFF_CMD, f"{base}...{effective_head}"], cwd=cwd)
    fetched.results.append(diff)
    fetched.diff = diff.stdout

    logger.info("Fetched %s...%s (exit %d)", base, effective_head, fetched.returncode)
    return fetched


def fetch(target: ReviewTarget, cwd: Optional[Path] = None) -> FetchResult:
    """Fetch whatever the target describes."""
    if target.kind == "pr":
        return fetch_pr(target.pr, target.repo, cwd=cwd)
    if target.kind == "branches":
        return fetch_branches(target.base, target.head, cwd=cwd)
    raise ValueError(f"Unknown target kind: {target.kind}")


def format_text(fetched: FetchResult) -> str:
    """Render a FetchResult as plain text: a header block, then the diff.

    PR targets print the `gh pr view` JSON; branch targets print the
    resolved base/head.
    """
    parts = []
    if fetched.target.kind == "pr":
        if fetched.metadata:
            parts.append(json.dumps(fetched.metadata, indent=2, ensure_ascii=False))
    else:
        meta = fetched.metadata
        if "current_branch" in meta:
            parts.append(f"Current branch: {meta['current_branch'] or '(detached HEAD)'}")
        parts.append(f"Comparing: {meta.get('base')}...{meta.get('head')}")
    if fetched.diff:
        parts.append(fetched.diff.rstrip("\n"))
    return "\n\n".join(parts)
