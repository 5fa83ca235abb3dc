"""Tests for PR and branch diff fetching."""

import json

import pytest
from unittest.mock import patch
from code_review.fetch import GIT_DIFF_CMD, fetch, fetch_branches, fetch_pr, format_text
from code_review.runner import CommandResult
from code_review.targets import ReviewTarget

SAMPLE_DIFF = """diff --git a/pricing/cache.py b/pricing/cache.py
new file mode 100644
index 0000000..e69de29
--- /dev/null
+++ b/pricing/cache.py
@@ -0,0 +1,2 @@
+class CacheKey:
+    pass
"""

PR_META = {
    "number": 418,
    "title": "Cache comparison results",
    "baseRefName": "main",
    "headRefName": "feature/cache",
}


def _ok(cmd, stdout=""):
    return CommandResult(cmd=cmd, stdout=stdout)


def _fail(cmd, returncode, stderr):
    return CommandResult(cmd=cmd, stderr=stderr, returncode=returncode)


class TestFetchPr:
    """Tests for fetch_pr."""

    @patch("code_review.fetch.run_command")
    def test_fetch_pr_success(self, mock_cmd):
        """Test metadata and diff are both fetched."""
        mock_cmd.side_effect = [
            _ok(["gh"], json.dumps(PR_META)),
            _ok(["gh"], SAMPLE_DIFF),
        ]

        result = fetch_pr("418")

        assert result.ok
        assert result.metadata["title"] == "Cache comparison results"
        assert result.diff == SAMPLE_DIFF

        view_cmd = mock_cmd.call_args_list[0][0][0]
        diff_cmd = mock_cmd.call_args_list[1][0][0]
        assert view_cmd[:4] == ["gh", "pr", "view", "418"]
        assert "--json" in view_cmd
        assert "baseRefName" in view_cmd[view_cmd.index("--json") + 1]
        assert diff_cmd == ["gh", "pr", "diff", "418", "--color", "never"]

    @patch("code_review.fetch.run_command")
    def test_fetch_pr_with_repo(self, mock_cmd):
        """Test --repo is passed to both gh commands."""
        mock_cmd.side_effect = [_ok(["gh"], "{}"), _ok(["gh"], "")]

        fetch_pr("7", repo="octo/widgets")

        for call in mock_cmd.call_args_list:
            cmd = call[0][0]
            assert cmd[cmd.index("--repo") + 1] == "octo/widgets"

    @patch("code_review.fetch.run_command")
    def test_view_failure_propagates_exit_code(self, mock_cmd):
        """Test the first failing command's exit code wins."""
        mock_cmd.side_effect = [
            _fail(["gh"], 1, "no pull requests found for branch"),
            _fail(["gh"], 4, "authentication required"),
        ]

        result = fetch_pr("999")

        assert result.returncode == 1
        assert result.metadata == {}
        assert result.errors == ["no pull requests found for branch", "authentication required"]
        # diff still attempted
        assert mock_cmd.call_count == 2

    @patch("code_review.fetch.run_command")
    def test_non_json_view_output_kept_raw(self, mock_cmd):
        """Test unparseable gh output is preserved rather than dropped."""
        mock_cmd.side_effect = [_ok(["gh"], "not json"), _ok(["gh"], SAMPLE_DIFF)]

        result = fetch_pr("1")

        assert result.ok
        assert result.metadata == {"raw": "not json"}


class TestFetchBranches:
    """Tests for fetch_branches."""

    @patch("code_review.fetch.run_command")
    def test_head_defaults_to_current_branch(self, mock_cmd):
        """Test the current branch is used when head is omitted."""
        mock_cmd.side_effect = [
            _ok(["git"], "feature/retry-uploads\n"),
            _ok(["git"], SAMPLE_DIFF),
        ]

        result = fetch_branches("main")

        assert result.ok
        assert mock_cmd.call_args_list[0][0][0] == ["git", "branch", "--show-current"]
        assert mock_cmd.call_args_list[1][0][0] == [*GIT_DIFF_CMD, "main...feature/retry-uploads"]
        assert result.metadata == {
            "base": "main",
            "head": "feature/retry-uploads",
            "current_branch": "feature/retry-uploads",
        }

    @patch("code_review.fetch.run_command")
    def test_explicit_head(self, mock_cmd):
        """Test an explicit head is compared without looking up the current branch."""
        mock_cmd.return_value = _ok(["git"], "")

        result = fetch_branches("main", "release")

        assert mock_cmd.call_count == 1
        assert mock_cmd.call_args_list[0][0][0] == [*GIT_DIFF_CMD, "main...release"]
        assert result.metadata == {"base": "main", "head": "release"}
        assert "Current branch" not in format_text(result)

    @patch("code_review.fetch.run_command")
    def test_explicit_head_outside_branch_checkout(self, mock_cmd):
        """Test a failing current-branch lookup cannot fail an explicit comparison."""
        mock_cmd.return_value = _ok(["git"], SAMPLE_DIFF)

        result = fetch_branches("main", "release")

        assert result.ok
        assert all(call[0][0][:2] != ["git", "branch"] for call in mock_cmd.call_args_list)

    def test_diff_command_ignores_user_git_config(self):
        """Test the git diff flags pin colour, prefixes, renames and external drivers."""
        assert "--no-color" in GIT_DIFF_CMD
        assert "--no-ext-diff" in GIT_DIFF_CMD
        assert "-M" in GIT_DIFF_CMD
        assert "--src-prefix=a/" in GIT_DIFF_CMD
        assert "--dst-prefix=b/" in GIT_DIFF_CMD

    @patch("code_review.fetch.run_command")
    def test_detached_head(self, mock_cmd):
        """Test detached HEAD falls back to comparing against HEAD."""
        mock_cmd.side_effect = [_ok(["git"], "\n"), _ok(["git"], SAMPLE_DIFF)]

        result = fetch_branches("main")

        assert mock_cmd.call_args_list[1][0][0] == [*GIT_DIFF_CMD, "main...HEAD"]
        assert result.metadata["current_branch"] is None

    @patch("code_review.fetch.run_command")
    def test_not_a_repository(self, mock_cmd):
        """Test git's exit code is propagated outside a repository."""
        mock_cmd.side_effect = [
            _fail(["git"], 128, "fatal: not a git repository"),
            _fail(["git"], 128, "fatal: not a git repository"),
        ]

        result = fetch_branches("main")

        assert result.returncode == 128
        assert not result.ok


class TestFetchDispatch:
    """Tests for fetch() and format_text()."""

    @patch("code_review.fetch.fetch_pr")
    def test_dispatch_pr(self, mock_pr):
        fetch(ReviewTarget.for_pr("3", "o/r"))

        mock_pr.assert_called_once_with("3", "o/r", cwd=None)

    @patch("code_review.fetch.fetch_branches")
    def test_dispatch_branches(self, mock_branches):
        fetch(ReviewTarget.for_branches("main", "dev"))

        mock_branches.assert_called_once_with("main", "dev", cwd=None)

    def test_dispatch_unknown_kind(self):
        with pytest.raises(ValueError):
            fetch(ReviewTarget(kind="commit"))

    @patch("code_review.fetch.run_command")
    def test_format_text_pr(self, mock_cmd):
        """Test PR text output is metadata JSON then the diff."""
        mock_cmd.side_effect = [_ok(["gh"], json.dumps(PR_META)), _ok(["gh"], SAMPLE_DIFF)]

        text = format_text(fetch_pr("418"))

        meta_part, diff_part = text.split("\n\ndiff --git", 1)
        assert json.loads(meta_part)["number"] == 418
        assert diff_part.startswith(" a/pricing/cache.py")

    @patch("code_review.fetch.run_command")
    def test_format_text_branches(self, mock_cmd):
        """Test branch text output names the compared range."""
        mock_cmd.side_effect = [_ok(["git"], "dev\n"), _ok(["git"], SAMPLE_DIFF)]

        text = format_text(fetch_branches("main"))

        assert text.startswith("Current branch: dev\n\nComparing: main...dev")
        assert "+class CacheKey:" in text
