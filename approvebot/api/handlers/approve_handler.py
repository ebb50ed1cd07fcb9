"""Approval reconciliation handler.

One call reconciles one pull request: it reads the changed files, labels
and every kind of comment, replays the ``/approve`` and ``/lgtm`` commands
in time order, then updates the status notification and the approved
label. Running it again with nothing new on the PR changes nothing.
"""

import logging

from github import Auth, Github, GithubException

from approvebot.approvers.approvers import Approvers
from approvebot.approvers.owners import Owners, RepoOwners, load_repo_owners
from approvebot.config.plugins import ApproveConfig, ApproveOptions, load_approve_config
from approvebot.config.settings import settings
from approvebot.exceptions import FetchError
from approvebot.models.github_types import PullRequestState
from approvebot.services.github_auth import GitHubAppAuth
from approvebot.services.github_client import PullRequestClient
from approvebot.utils.commands import approval_command_matcher, find_associated_issue
from approvebot.utils.label_provenance import HumanAddedLabel
from approvebot.utils.notification import (
    notification_matcher,
    reconcile_notification,
    sync_label,
)
from approvebot.utils.timeline import add_approvers, filter_comments, unify_comments

logger = logging.getLogger(__name__)


# === MAIN HANDLER ===


async def handle_approve(
    repo_name: str,
    pr_number: int,
    github_auth: GitHubAppAuth | None = None,
    config: ApproveConfig | None = None,
) -> None:
    """
    Reconcile the approval state of one PR (executed by queue workers).

    Args:
        repo_name: "owner/repo" format
        pr_number: Pull request number
        github_auth: Optional auth service (default: the GitHub App, or the
            GH_TOKEN when no App is configured)
        config: Optional plugin config (default: loaded from
            settings.approve_config_path)

    Raises:
        FetchError: If any read from GitHub fails; nothing was mutated yet
    """
    org, _, name = repo_name.partition("/")
    review_key = f"{repo_name}#{pr_number}"
    logger.info(f"Starting approval reconciliation for {review_key}")

    github_client, bot_login = await _github_client(github_auth)
    try:
        repo = github_client.get_repo(repo_name)
        pr = repo.get_pull(pr_number)
    except GithubException as e:
        raise FetchError("pull request", org, name, pr_number, e) from e

    if pr.state == "closed":
        logger.info(f"Skipping {review_key} - PR is closed")
        return

    if config is None:
        config = load_approve_config(settings.approve_config_path)
    options = config.options_for_repo(org, name)

    base_ref = pr.base.ref
    repo_owners = load_repo_owners(repo, base_ref, settings.owners_filename)
    client = PullRequestClient(github_client, repo, pr, bot_login=bot_login)

    handle(
        client,
        repo_owners,
        options,
        PullRequestState.from_pull_request(org, name, pr),
        ref=base_ref,
    )
    logger.info(f"Finished approval reconciliation for {review_key}")


async def _github_client(github_auth: GitHubAppAuth | None) -> tuple[Github, str | None]:
    """Build a PyGithub client and resolve the login the bot posts as.

    Installation tokens cannot read ``GET /user``, so with a GitHub App the
    login comes from APP_BOT_LOGIN or the App slug. With GH_TOKEN it is left
    unset and PullRequestClient looks it up.
    """
    if github_auth is None and settings.github_app_configured:
        from approvebot.services.github_auth import get_github_app_auth

        github_auth = get_github_app_auth()

    bot_login = settings.github_app_bot_login
    if github_auth is not None:
        token = await github_auth.get_installation_access_token()
        if not bot_login:
            bot_login = await github_auth.get_bot_login()
    elif settings.github_token:
        token = settings.github_token
    else:
        raise ValueError("No GitHub credentials configured (APP_ID or GH_TOKEN)")

    return Github(auth=Auth.Token(token), per_page=100), bot_login


# === RECONCILIATION ===


def handle(
    client: PullRequestClient,
    repo_owners: RepoOwners,
    options: ApproveOptions,
    pr: PullRequestState,
    ref: str = "master",
) -> Approvers:
    """
    Run one reconciliation pass against live PR data.

    All reads happen first, so a FetchError leaves the PR untouched.
    Notification and label mutations are best effort: failures are logged
    and the next event converges the state again.

    Returns:
        The tracker after every command was applied
    """
    filenames = client.get_changed_files()
    has_label = settings.approved_label in client.get_labels()
    bot_name = client.bot_name()
    issue_comments = client.list_issue_comments()
    review_comments = client.list_review_comments()
    reviews = client.list_reviews()

    tracker = Approvers(
        Owners(filenames, repo_owners, ref),
        author=pr.author,
        self_approve=options.implicit_self_approve,
        associated_issue=find_associated_issue(pr.body),
        require_issue=options.issue_required,
        manually_approved=HumanAddedLabel(client, bot_name, has_label),
    )

    comments = unify_comments(issue_comments, review_comments, reviews)
    approve_comments = filter_comments(comments, approval_command_matcher(bot_name))
    add_approvers(tracker, approve_comments, pr.author)
    tracker.add_assignees(*pr.assignees)

    # Notifications are only ever posted as issue comments
    notifications = filter_comments(
        unify_comments(issue_comments, [], []), notification_matcher(bot_name)
    )
    reconcile_notification(client, notifications, tracker, pr.org, pr.repo)

    approved = tracker.is_approved()
    action = sync_label(client, approved, has_label)
    logger.info(
        f"{pr.key}: approved={approved}, approvers={sorted(tracker.approvers)}, "
        f"lgtmers={sorted(tracker.lgtmers)}, label_action={action}"
    )
    return tracker
