"""Configuration constants for the code-review helper.

Contains:
- Repository layout (marketplace, plugin and skill paths)
- External CLI settings (gh fields, default base branch)
- Required manifest/frontmatter keys
- Environment-driven settings
"""
from __future__ import annotations

import logging
import os
from pathlib import Path


# Resolve directories: the package ships inside the skill's scripts/ dir
PACKAGE_DIR = Path(__file__).resolve().parent
SCRIPTS_DIR = PACKAGE_DIR.parent
SKILL_DIR = SCRIPTS_DIR.parent
PLUGIN_DIR = SKILL_DIR.parents[1]
# Marketplace checkout root; absent when only the plugin is installed
REPO_ROOT = PLUGIN_DIR.parents[1]

MARKETPLACE_RELPATH = Path(".claude-plugin") / "marketplace.json"
PLUGIN_MANIFEST_RELPATH = Path(".claude-plugin") / "plugin.json"
SKILL_FILENAME = "SKILL.md"

# Fields requested from `gh pr view --json`
PR_VIEW_FIELDS = [
    "number",
    "title",
    "body",
    "author",
    "url",
    "state",
    "baseRefName",
    "headRefName",
    "additions",
    "deletions",
    "changedFiles",
    "files",
]

# Required keys
MARKETPLACE_REQUIRED = ("name", "owner", "plugins")
MARKETPLACE_PLUGIN_REQUIRED = ("name", "source", "description")
PLUGIN_REQUIRED = ("name", "version", "description")
SKILL_REQUIRED = ("name", "description", "version")

# Links inside SKILL.md that must resolve to shipped files
SKILL_LINK_DIRS = ("references", "examples", "scripts")

# Exit codes used when the tool itself never ran
EXIT_NOT_FOUND = 127
EXIT_TIMEOUT = 124
EXIT_USAGE = 2

DEFAULT_TIMEOUT = 60
DEFAULT_BASE_BRANCH = "main"

HELP_TEXT = """
Code Review Helper

Fetches pull-request and branch diffs for the code-review skill and checks
the marketplace, plugin and skill files shipped in this repository.

TARGETS:
  123 | #123                              Pull request number
  https://github.com/owner/repo/pull/123  Pull request URL
  main...feature | main..feature          Branch range
  main feature                            Base and head branches
  main                                    Base vs current branch
  (nothing)                               Default base vs current branch

QUICK START:
  code-review-helper check                # Verify git and gh
  code-review-helper fetch 123            # PR metadata + diff
  code-review-helper fetch main feature   # Branch diff
  code-review-helper files main           # Changed-file summary
  code-review-helper validate             # Check manifests and SKILL.md

ENVIRONMENT:
  CODE_REVIEW_TIMEOUT      Seconds per external command (default 60)
  CODE_REVIEW_BASE_BRANCH  Base branch when none is given (default main)
  CODE_REVIEW_LOG_LEVEL    Logging level (default WARNING)
"""


def get_timeout(default: int = DEFAULT_TIMEOUT) -> int:
    """Get timeout from CODE_REVIEW_TIMEOUT env var with fallback default."""
    try:
        return int(os.environ.get("CODE_REVIEW_TIMEOUT", default))
    except (TypeError, ValueError):
        return default


def get_base_branch() -> str:
    """Base branch used when a target names no base."""
    return os.environ.get("CODE_REVIEW_BASE_BRANCH") or DEFAULT_BASE_BRANCH


def get_log_level() -> int:
    """Logging level from CODE_REVIEW_LOG_LEVEL (name or number), default WARNING."""
    value = os.environ.get("CODE_REVIEW_LOG_LEVEL", "WARNING").strip().upper()
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value)
    return level if isinstance(level, int) else logging.WARNING
