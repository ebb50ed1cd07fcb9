"""Approval tracking and the status message rendered from it."""

import json
import posixpath
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from approvebot.approvers.owners import Owners
from approvebot.config.settings import settings

APPROVAL_NOTIFICATION_NAME = "ApprovalNotifier"

HOW_APPROVED = "Approved"
HOW_LGTM = "LGTM"
HOW_SELF_APPROVED = "Author self-approved"


class ApprovalTracker(Protocol):
    """What the reconciler needs from an approval authority."""

    associated_issue: int
    require_issue: bool
    manually_approved: Callable[[], bool]

    def add_approver(self, login: str, reference: str, no_issue: bool) -> None: ...

    def add_author_self_approver(self, login: str, reference: str, no_issue: bool) -> None: ...

    def add_lgtmer(self, login: str, reference: str, no_issue: bool) -> None: ...

    def remove_approver(self, login: str) -> None: ...

    def add_assignees(self, *logins: str) -> None: ...

    def is_approved(self) -> bool: ...


@dataclass
class Approval:
    """The command currently in effect for one login."""

    login: str
    how: str
    reference: str
    no_issue: bool = False


def _never() -> bool:
    return False


class Approvers:
    """OWNERS-backed approval tracker for one pull request.

    Every approval is keyed by login, so adding or removing overwrites
    whatever that login said before. Applying commands in time order
    therefore leaves each login's latest command in effect.
    """

    def __init__(
        self,
        owners: Owners,
        author: str = "",
        self_approve: bool = False,
        associated_issue: int = 0,
        require_issue: bool = False,
        manually_approved: Callable[[], bool] | None = None,
    ) -> None:
        self.owners = owners
        self.author = author
        self.self_approve = self_approve
        self.associated_issue = associated_issue
        self.require_issue = require_issue
        self.manually_approved = manually_approved or _never
        self.assignees: set[str] = set()
        self._approvals: dict[str, Approval] = {}

    def _set(self, login: str, how: str, reference: str, no_issue: bool) -> None:
        self._approvals[login.lower()] = Approval(login, how, reference, no_issue)

    def add_approver(self, login: str, reference: str, no_issue: bool) -> None:
        self._set(login, HOW_APPROVED, reference, no_issue)

    def add_lgtmer(self, login: str, reference: str, no_issue: bool) -> None:
        self._set(login, HOW_LGTM, reference, no_issue)

    def add_author_self_approver(self, login: str, reference: str, no_issue: bool) -> None:
        self._set(login, HOW_SELF_APPROVED, reference, no_issue)

    def remove_approver(self, login: str) -> None:
        self._approvals.pop(login.lower(), None)

    def add_assignees(self, *logins: str) -> None:
        self.assignees.update(login.lower() for login in logins if login)

    def _counts(self, approval: Approval) -> bool:
        """The author's own approval only counts when self approval is enabled."""
        return self.self_approve or approval.login.lower() != self.author.lower()

    @property
    def approvals(self) -> list[Approval]:
        """Approvals in effect, sorted by login."""
        return sorted(
            (a for a in self._approvals.values() if self._counts(a)),
            key=lambda a: a.login.lower(),
        )

    @property
    def approvers(self) -> set[str]:
        return {a.login.lower() for a in self.approvals if a.how != HOW_LGTM}

    @property
    def lgtmers(self) -> set[str]:
        return {a.login.lower() for a in self.approvals if a.how == HOW_LGTM}

    def current_approvers(self) -> set[str]:
        """Logins whose ``/approve`` or ``/lgtm`` is in effect."""
        return {a.login.lower() for a in self.approvals}

    def unapproved_dirs(self) -> list[str]:
        return self.owners.unapproved_dirs(self.current_approvers())

    def are_files_approved(self) -> bool:
        return not self.unapproved_dirs()

    def no_issue_approved(self) -> bool:
        return any(a.no_issue for a in self.approvals)

    def issue_requirement_met(self) -> bool:
        return (
            not self.require_issue
            or self.associated_issue != 0
            or self.no_issue_approved()
        )

    def is_approved(self) -> bool:
        """Approved when every file and the issue rule are satisfied.

        A human-applied label overrides both; it is only consulted when the
        requirements are not met.
        """
        requirements_met = self.are_files_approved() and self.issue_requirement_met()
        return requirements_met or self.manually_approved()

    def suggested_approvers(self) -> list[str]:
        """One approver per unapproved directory, preferring assignees."""
        suggested: list[str] = []
        for directory in self.unapproved_dirs():
            candidates = sorted(self.owners.approvers_for_dir(directory))
            if not self.self_approve:
                candidates = [c for c in candidates if c != self.author.lower()]
            if not candidates or set(candidates) & set(suggested):
                continue
            assigned = [c for c in candidates if c in self.assignees]
            suggested.append(assigned[0] if assigned else candidates[0])
        return suggested


def _owners_link(org: str, repo: str, owners: Owners, directory: str) -> str:
    path = posixpath.join(directory, owners.repo_owners.filename)
    return f"[{path}](https://github.com/{org}/{repo}/blob/{owners.ref}/{path})"


def get_message(tracker: Approvers, org: str, repo: str) -> str | None:
    """Render the status notification for the tracker's current state.

    Returns:
        The markdown comment body, or None when the PR changes no files
    """
    owners = tracker.owners
    if not owners.filenames:
        return None

    approved = tracker.is_approved()
    status = "APPROVED" if approved else "NOT APPROVED"
    lines = [f"[{APPROVAL_NOTIFICATION_NAME.upper()}] This PR is **{status}**", ""]

    approvals = tracker.approvals
    if approvals:
        links = ", ".join(
            f'*<a href="{a.reference}" title="{a.how}">{a.login}</a>*' for a in approvals
        )
        lines.append(f"This pull-request has been approved by: {links}")
    else:
        lines.append("This pull-request has not been approved by anyone yet.")

    suggested = tracker.suggested_approvers()
    if suggested and not approved:
        names = ", ".join(f"**{login}**" for login in suggested)
        mentions = " ".join(f"@{login}" for login in suggested)
        lines.append(
            "To fully approve this pull-request, please assign additional approvers."
        )
        lines.append(f"We suggest the following additional approvers: {names}")
        lines.append("")
        lines.append(
            "If they are not already assigned, you can assign the PR to them "
            f"by writing `/assign {mentions}` in a comment when ready."
        )
    lines.append("")

    if tracker.associated_issue:
        lines.append(f"Associated issue: *#{tracker.associated_issue}*")
        lines.append("")
    elif tracker.require_issue and not tracker.no_issue_approved():
        lines.append(
            "*No associated issue*. Update pull-request body to add a reference "
            "to an issue, or get approval with `/approve no-issue`"
        )
        lines.append("")

    lines.append(
        "The full list of commands accepted by this bot can be found "
        f"[here]({settings.commands_help_url})."
    )
    lines.append("")

    unapproved = set(tracker.unapproved_dirs())
    lines.append("<details open>")
    lines.append("Needs approval from an approver in each of these files:")
    lines.append("")
    for directory in owners.needed_dirs():
        link = _owners_link(org, repo, owners, directory)
        if directory in unapproved:
            lines.append(f"- **{link}**")
        else:
            eligible = owners.approvers_for_dir(directory) or tracker.current_approvers()
            approved_by = sorted(eligible & tracker.current_approvers())
            lines.append(f"- ~~{link}~~ [{', '.join(approved_by)}]")
    lines.append("")
    lines.append("Approvers can indicate their approval by writing `/approve` in a comment")
    lines.append("Approvers can cancel approval by writing `/approve cancel` in a comment")
    lines.append("</details>")

    meta = json.dumps({"approvers": suggested}, sort_keys=True)
    lines.append(f"<!-- META={meta} -->")
    return "\n".join(lines)
