"""Who put the approved label on a pull request."""

import logging

from approvebot.config.settings import settings
from approvebot.exceptions import FetchError
from approvebot.services.github_client import PullRequestClient
from approvebot.utils.commands import is_bot

logger = logging.getLogger(__name__)


class HumanAddedLabel:
    """Answers "was the approved label added by a human?" for one pass.

    Create one instance per reconciliation pass and hand it to whatever
    needs the answer. The issue event history is fetched at most once, and
    not at all when the label is absent.
    """

    def __init__(
        self,
        client: PullRequestClient,
        bot_name: str,
        has_label: bool,
        label: str | None = None,
    ) -> None:
        self.client = client
        self.bot_name = bot_name
        self.has_label = has_label
        self.label = label or settings.approved_label
        self._value: bool | None = None

    def __call__(self) -> bool:
        if self._value is None:
            self._value = self._find_out()
        return self._value

    def _find_out(self) -> bool:
        if not self.has_label:
            return False

        try:
            events = self.client.list_issue_events()
        except FetchError:
            logger.exception(
                f"Failed to list issue events for "
                f"{self.client.org}/{self.client.name}#{self.client.number}"
            )
            return False

        last_added = None
        for event in events:
            if event.event == "labeled" and event.label == self.label:
                last_added = event

        if last_added is None or not last_added.actor:
            return False
        return not is_bot(last_added.actor, self.bot_name)
