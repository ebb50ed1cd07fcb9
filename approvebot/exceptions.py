"""Exception types raised by the approval reconciler."""


class ApproveBotError(Exception):
    """Base class for errors raised by approve-bot."""


class FetchError(ApproveBotError):
    """A read from GitHub failed; the current reconciliation pass is aborted."""

    def __init__(self, resource: str, org: str, repo: str, number: int, error: Exception):
        self.resource = resource
        self.org = org
        self.repo = repo
        self.number = number
        self.error = error
        super().__init__(
            f"failed to get {resource} for {org}/{repo}#{number}: {error}"
        )


class ConfigError(ApproveBotError):
    """The per-repository plugin configuration could not be loaded."""
