"""OWNERS file lookup: which logins may approve which paths.

Each directory may contain an ``OWNERS`` YAML file with an ``approvers``
list. An approver of a directory is also an approver of everything below it.
"""

import logging
import posixpath
from collections.abc import Iterable, Iterator
from typing import Any

import yaml
from github import GithubException

from approvebot.exceptions import FetchError

logger = logging.getLogger(__name__)

ROOT_DIR = ""


def parent_dirs(path: str) -> Iterator[str]:
    """Yield the directory of ``path`` and each ancestor, ending with the root."""
    directory = posixpath.dirname(path.strip("/"))
    while directory:
        yield directory
        directory = posixpath.dirname(directory)
    yield ROOT_DIR


class RepoOwners:
    """Approvers per directory for one repository."""

    def __init__(
        self, approvers: dict[str, Iterable[str]] | None = None, filename: str = "OWNERS"
    ) -> None:
        self.filename = filename
        self._approvers: dict[str, set[str]] = {
            directory.strip("/"): {login.lower() for login in logins}
            for directory, logins in (approvers or {}).items()
        }

    def dir_approvers(self, directory: str) -> set[str]:
        """Approvers listed in the OWNERS file of exactly this directory."""
        return set(self._approvers.get(directory.strip("/"), set()))

    def approvers_for(self, path: str) -> set[str]:
        """Everyone who may approve ``path``, inherited from parent directories."""
        approvers: set[str] = set()
        for directory in parent_dirs(path):
            approvers |= self.dir_approvers(directory)
        return approvers

    def closest_approver_dir(self, path: str) -> str | None:
        """The nearest directory above ``path`` with a non-empty approver list."""
        for directory in parent_dirs(path):
            if self._approvers.get(directory):
                return directory
        return None


def load_repo_owners(repo: Any, ref: str, filename: str = "OWNERS") -> RepoOwners:
    """Read every OWNERS file of a repository at ``ref`` through PyGithub.

    Args:
        repo: ``github.Repository.Repository``
        ref: Branch or commit to read from (normally the PR base branch)
        filename: Name of the OWNERS files

    Returns:
        RepoOwners built from all readable OWNERS files

    Raises:
        FetchError: If the repository tree or a file cannot be read
    """
    org, _, name = repo.full_name.partition("/")
    try:
        tree = repo.get_git_tree(ref, recursive=True)
    except GithubException as e:
        raise FetchError(f"tree at {ref}", org, name, 0, e) from e

    approvers: dict[str, list[str]] = {}
    for element in tree.tree:
        if element.type != "blob" or posixpath.basename(element.path) != filename:
            continue
        try:
            content = repo.get_contents(element.path, ref=ref)
        except GithubException as e:
            raise FetchError(element.path, org, name, 0, e) from e

        try:
            data = yaml.safe_load(content.decoded_content) or {}
        except yaml.YAMLError as e:
            logger.warning(f"Skipping unparsable {element.path} in {repo.full_name}: {e}")
            continue

        logins = data.get("approvers") if isinstance(data, dict) else None
        approvers[posixpath.dirname(element.path)] = [
            login for login in logins or [] if isinstance(login, str)
        ]

    logger.debug(f"Loaded {len(approvers)} {filename} files from {repo.full_name}@{ref}")
    return RepoOwners(approvers, filename=filename)


class Owners:
    """The OWNERS view of one pull request's changed files."""

    def __init__(self, filenames: list[str], repo_owners: RepoOwners, ref: str = "master") -> None:
        self.filenames = filenames
        self.repo_owners = repo_owners
        self.ref = ref

    def needed_dirs(self) -> list[str]:
        """Directories whose approval covers the changed files, sorted."""
        needed = set()
        for filename in self.filenames:
            closest = self.repo_owners.closest_approver_dir(filename)
            needed.add(ROOT_DIR if closest is None else closest)
        return sorted(needed)

    def approvers_for_dir(self, directory: str) -> set[str]:
        """Approvers of a needed directory including its ancestors."""
        return self.repo_owners.approvers_for(
            posixpath.join(directory, self.repo_owners.filename)
        )

    def unapproved_dirs(self, current_approvers: set[str]) -> list[str]:
        """Needed directories not yet covered by ``current_approvers``.

        A directory with no approvers anywhere above it accepts any approver.
        """
        unapproved = []
        for directory in self.needed_dirs():
            approvers = self.approvers_for_dir(directory)
            if approvers:
                covered = bool(approvers & current_approvers)
            else:
                covered = bool(current_approvers)
            if not covered:
                unapproved.append(directory)
        return unapproved
