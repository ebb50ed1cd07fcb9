"""Unit tests for OWNERS lookup."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from github import GithubException

from approvebot.approvers.owners import Owners, RepoOwners, load_repo_owners, parent_dirs
from approvebot.exceptions import FetchError

# --- Helpers ---


def _repo_owners():
    return RepoOwners(
        {
            "": ["Root-Approver"],
            "pkg": ["pkg-owner"],
            "pkg/api": ["api-owner"],
            "docs": [],
        }
    )


def _tree_element(path, kind="blob"):
    return SimpleNamespace(path=path, type=kind)


class TestParentDirs:
    def test_walks_up_to_root(self):
        assert list(parent_dirs("pkg/api/types.go")) == ["pkg/api", "pkg", ""]

    def test_top_level_file(self):
        assert list(parent_dirs("README.md")) == [""]


class TestRepoOwners:
    """Tests for RepoOwners."""

    def test_approvers_are_inherited_and_lowercased(self):
        owners = _repo_owners()

        assert owners.approvers_for("pkg/api/types.go") == {
            "api-owner",
            "pkg-owner",
            "root-approver",
        }

    def test_closest_approver_dir(self):
        owners = _repo_owners()

        assert owners.closest_approver_dir("pkg/api/v1/types.go") == "pkg/api"
        assert owners.closest_approver_dir("docs/intro.md") == ""

    def test_no_owners_anywhere(self):
        assert RepoOwners().closest_approver_dir("a/b.go") is None


class TestOwners:
    """Tests for the per-PR Owners view."""

    def test_needed_dirs_are_deduplicated_and_sorted(self):
        owners = Owners(["pkg/api/a.go", "pkg/api/b.go", "pkg/util.go", "README.md"], _repo_owners())

        assert owners.needed_dirs() == ["", "pkg", "pkg/api"]

    def test_unapproved_dirs(self):
        owners = Owners(["pkg/api/a.go", "pkg/util.go"], _repo_owners())

        assert owners.unapproved_dirs({"api-owner"}) == ["pkg"]
        assert owners.unapproved_dirs({"pkg-owner"}) == []
        assert owners.unapproved_dirs({"root-approver"}) == []

    def test_unowned_repo_accepts_any_approver(self):
        owners = Owners(["main.go"], RepoOwners())

        assert owners.unapproved_dirs(set()) == [""]
        assert owners.unapproved_dirs({"anyone"}) == []


class TestLoadRepoOwners:
    """Tests for load_repo_owners."""

    def test_reads_owners_files_from_tree(self):
        repo = MagicMock()
        repo.full_name = "acme/widgets"
        repo.get_git_tree.return_value = SimpleNamespace(
            tree=[
                _tree_element("OWNERS"),
                _tree_element("pkg/OWNERS"),
                _tree_element("pkg/main.go"),
                _tree_element("vendor", kind="tree"),
            ]
        )
        contents = {
            "OWNERS": b"approvers:\n  - alice\nreviewers:\n  - carol\n",
            "pkg/OWNERS": b"approvers:\n  - Bob\n",
        }
        repo.get_contents.side_effect = lambda path, ref: SimpleNamespace(decoded_content=contents[path])

        owners = load_repo_owners(repo, "main")

        repo.get_git_tree.assert_called_once_with("main", recursive=True)
        assert owners.dir_approvers("") == {"alice"}
        assert owners.approvers_for("pkg/main.go") == {"alice", "bob"}

    def test_unparsable_owners_file_is_skipped(self):
        repo = MagicMock()
        repo.full_name = "acme/widgets"
        repo.get_git_tree.return_value = SimpleNamespace(tree=[_tree_element("OWNERS")])
        repo.get_contents.return_value = SimpleNamespace(decoded_content=b"approvers: [unclosed")

        owners = load_repo_owners(repo, "main")

        assert owners.closest_approver_dir("a.go") is None

    def test_tree_failure_raises_fetch_error(self):
        repo = MagicMock()
        repo.full_name = "acme/widgets"
        repo.get_git_tree.side_effect = GithubException(404, "missing")

        with pytest.raises(FetchError, match="acme/widgets"):
            load_repo_owners(repo, "main")
