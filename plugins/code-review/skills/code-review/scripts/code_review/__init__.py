"""Code Review skill helper package.

Fetches pull-request and branch diffs through gh and git for the
code-review skill, and checks the marketplace, plugin and SKILL.md files
shipped alongside it.
"""
from .diff_parser import FileDiff, split_file_diffs, summarize_diff
from .fetch import FetchResult, fetch, fetch_branches, fetch_pr
from .manifests import ManifestError, ValidationReport, check_repository
from .runner import CommandResult, run_command
from .skill_doc import FrontmatterError, SkillDocument, load_skill, parse_frontmatter
from .targets import ReviewTarget, TargetError, parse_target

__version__ = "1.0.0"

__all__ = [
    "CommandResult",
    "FetchResult",
    "FileDiff",
    "FrontmatterError",
    "ManifestError",
    "ReviewTarget",
    "SkillDocument",
    "TargetError",
    "ValidationReport",
    "check_repository",
    "fetch",
    "fetch_branches",
    "fetch_pr",
    "load_skill",
    "parse_frontmatter",
    "parse_target",
    "run_command",
    "split_file_diffs",
    "summarize_diff",
]
