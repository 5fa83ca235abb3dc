"""Tests for review target parsing."""

import pytest
from code_review.targets import ReviewTarget, TargetError, parse_target


class TestPullRequestTargets:
    """Tests for PR numbers and URLs."""

    def test_plain_number(self):
        """Test a bare PR number."""
        target = parse_target(["123"])

        assert target.kind == "pr"
        assert target.pr == "123"
        assert target.repo is None

    def test_hash_number(self):
        """Test a #-prefixed PR number."""
        target = parse_target(["#42"])

        assert target.kind == "pr"
        assert target.pr == "42"

    def test_number_with_repo(self):
        """Test --repo is carried onto PR targets."""
        target = parse_target(["7"], repo="owner/repo")

        assert target.pr == "7"
        assert target.repo == "owner/repo"

    def test_pr_url(self):
        """Test a GitHub pull request URL."""
        target = parse_target(["https://github.com/octo/widgets/pull/981"])

        assert target.kind == "pr"
        assert target.pr == "981"
        assert target.repo == "octo/widgets"

    def test_pr_url_with_suffix(self):
        """Test a PR URL pointing at the files tab."""
        target = parse_target(["https://github.com/octo/widgets/pull/5/files"])

        assert target.pr == "5"
        assert target.repo == "octo/widgets"

    def test_pr_url_conflicting_repo(self):
        """Test a URL whose repo disagrees with --repo."""
        with pytest.raises(TargetError):
            parse_target(["https://github.com/octo/widgets/pull/5"], repo="other/repo")

    def test_non_pr_url(self):
        """Test URLs that are not pull requests are rejected."""
        with pytest.raises(TargetError):
            parse_target(["https://github.com/octo/widgets/issues/5"])

    @pytest.mark.parametrize("args", [["PR", "123"], ["pr", "#123"], ["PR 123"], ["pr#123"]])
    def test_pr_word_forms(self, args):
        """Test the "PR 123" forms users type, split or as one argument."""
        target = parse_target(args, repo="octo/widgets")

        assert target.kind == "pr"
        assert target.pr == "123"
        assert target.repo == "octo/widgets"

    def test_pr_word_without_number(self):
        with pytest.raises(TargetError):
            parse_target(["PR", "feature"])

    def test_pr_prefixed_branch_name(self):
        """Test branch names that merely start with pr stay branches."""
        target = parse_target(["pr-123"])

        assert target.kind == "branches"
        assert target.base == "pr-123"

    def test_zero_is_invalid(self):
        """Test PR number 0 is rejected."""
        with pytest.raises(TargetError):
            parse_target(["#0"])


class TestBranchTargets:
    """Tests for branch ranges and names."""

    def test_three_dot_range(self):
        """Test base...head."""
        target = parse_target(["main...feature/login"])

        assert target.kind == "branches"
        assert target.base == "main"
        assert target.head == "feature/login"

    def test_two_dot_range(self):
        """Test base..head is treated like base...head."""
        target = parse_target(["develop..fix-1.2"])

        assert target.base == "develop"
        assert target.head == "fix-1.2"

    def test_dotted_branch_names(self):
        """Test single dots inside branch names survive."""
        target = parse_target(["release-1.2...hotfix-1.2.1"])

        assert target.base == "release-1.2"
        assert target.head == "hotfix-1.2.1"

    def test_two_arguments(self):
        """Test base and head given separately."""
        target = parse_target(["main", "feature"])

        assert target.kind == "branches"
        assert target.base == "main"
        assert target.head == "feature"

    def test_single_branch_uses_current(self):
        """Test a single branch name compares against the current branch."""
        target = parse_target(["develop"])

        assert target.kind == "branches"
        assert target.base == "develop"
        assert target.head is None

    def test_no_arguments_uses_default_base(self, monkeypatch):
        """Test the default base branch is used when nothing is given."""
        monkeypatch.delenv("CODE_REVIEW_BASE_BRANCH", raising=False)

        target = parse_target([])

        assert target.kind == "branches"
        assert target.base == "main"
        assert target.head is None

    def test_no_arguments_env_base(self, monkeypatch):
        """Test CODE_REVIEW_BASE_BRANCH overrides the default base."""
        monkeypatch.setenv("CODE_REVIEW_BASE_BRANCH", "trunk")

        assert parse_target([]).base == "trunk"

    def test_blank_arguments_ignored(self, monkeypatch):
        """Test empty strings count as no arguments."""
        monkeypatch.delenv("CODE_REVIEW_BASE_BRANCH", raising=False)

        assert parse_target(["", "  "]).base == "main"

    @pytest.mark.parametrize("value", ["main...", "...feature", "main....feature"])
    def test_invalid_ranges(self, value):
        """Test ranges with a missing side are rejected."""
        with pytest.raises(TargetError):
            parse_target([value])

    def test_too_many_arguments(self):
        """Test three arguments are rejected."""
        with pytest.raises(TargetError):
            parse_target(["a", "b", "c"])

    def test_range_with_second_argument(self):
        """Test a range cannot be combined with another branch."""
        with pytest.raises(TargetError):
            parse_target(["main...feature", "other"])


class TestReviewTarget:
    """Tests for ReviewTarget helpers."""

    def test_describe_pr(self):
        assert ReviewTarget.for_pr("12", "o/r").describe() == "PR #12 in o/r"

    def test_describe_branches_current(self):
        assert ReviewTarget.for_branches("main").describe() == "main...(current branch)"

    def test_to_dict(self):
        data = ReviewTarget.for_branches("main", "dev").to_dict()

        assert data == {"kind": "branches", "pr": None, "repo": None, "base": "main", "head": "dev"}
