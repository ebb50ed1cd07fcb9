"""Unit tests for the comment timeline and the approval event applier."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from approvebot.approvers.approvers import Approvers
from approvebot.approvers.owners import Owners, RepoOwners
from approvebot.models.github_types import EPOCH, Comment
from approvebot.utils.timeline import add_approvers, unify_comments

# --- Helpers ---

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def _user(login):
    return SimpleNamespace(login=login)


def _issue_comment(body, login, minute, comment_id=1):
    return SimpleNamespace(
        body=body,
        user=_user(login),
        created_at=T0 + timedelta(minutes=minute),
        html_url=f"https://github.com/acme/widgets/pull/1#issuecomment-{comment_id}",
        id=comment_id,
    )


def _review(body, login, minute, review_id=1):
    return SimpleNamespace(
        body=body,
        user=_user(login),
        submitted_at=None if minute is None else T0 + timedelta(minutes=minute),
        html_url=f"https://github.com/acme/widgets/pull/1#pullrequestreview-{review_id}",
        id=review_id,
    )


def _comment(body, author, minute):
    return Comment(
        body=body,
        author=author,
        created_at=T0 + timedelta(minutes=minute),
        html_url=f"https://example.test/{author}/{minute}",
    )


def _tracker(author="author", self_approve=False):
    owners = Owners(["pkg/a.go"], RepoOwners({"": ["alice", "bob", "author"]}))
    return Approvers(owners, author=author, self_approve=self_approve)


class TestUnifyComments:
    """Tests for unify_comments."""

    def test_orders_all_sources_by_time(self):
        issue = [_issue_comment("i", "a", 5, 1)]
        review_comments = [_issue_comment("rc", "b", 1, 2)]
        reviews = [_review("r", "c", 3, 3)]

        comments = unify_comments(issue, review_comments, reviews)

        assert [c.body for c in comments] == ["rc", "r", "i"]

    def test_equal_timestamps_keep_source_precedence(self):
        issue = [_issue_comment("issue", "a", 0, 1)]
        review_comments = [_issue_comment("review-comment", "b", 0, 2)]
        reviews = [_review("review", "c", 0, 3)]

        comments = unify_comments(reviews=reviews, review_comments=review_comments, issue_comments=issue)

        assert [c.body for c in comments] == ["issue", "review-comment", "review"]

    def test_empty_inputs_give_empty_list(self):
        assert unify_comments([], [], []) == []

    def test_review_without_submission_time_sorts_first(self):
        comments = unify_comments([_issue_comment("i", "a", 0)], [], [_review("r", "b", None)])

        assert comments[0].body == "r"
        assert comments[0].created_at == EPOCH

    def test_deleted_user_has_empty_author(self):
        ghost = SimpleNamespace(
            body="/approve", user=None, created_at=T0, html_url="", id=9
        )

        comments = unify_comments([ghost], [], [])

        assert comments[0].author == ""

    def test_naive_timestamps_compare_with_aware_ones(self):
        naive = _issue_comment("naive", "a", 10)
        naive.created_at = naive.created_at.replace(tzinfo=None)

        comments = unify_comments([naive], [], [_review("aware", "b", 5)])

        assert [c.body for c in comments] == ["aware", "naive"]


class TestAddApprovers:
    """Tests for add_approvers (last command per author wins)."""

    def test_approve_then_cancel_removes_approval(self):
        tracker = _tracker()
        comments = [_comment("/approve", "alice", 1), _comment("/approve cancel", "alice", 2)]

        add_approvers(tracker, comments, "author")

        assert tracker.approvers == set()

    def test_cancel_then_approve_keeps_approval(self):
        tracker = _tracker()
        comments = [_comment("/approve cancel", "alice", 1), _comment("/approve", "alice", 2)]

        add_approvers(tracker, comments, "author")

        assert tracker.approvers == {"alice"}

    def test_lgtm_cancel_clears_both_sets(self):
        tracker = _tracker()
        comments = [_comment("/lgtm", "bob", 1), _comment("/lgtm cancel", "bob", 2)]

        add_approvers(tracker, comments, "author")

        assert "bob" not in tracker.approvers
        assert "bob" not in tracker.lgtmers

    def test_cancel_applies_regardless_of_command_name(self):
        tracker = _tracker()
        comments = [_comment("/approve", "alice", 1), _comment("/lgtm cancel", "alice", 2)]

        add_approvers(tracker, comments, "author")

        assert tracker.current_approvers() == set()

    def test_other_authors_are_independent(self):
        tracker = _tracker()
        comments = [
            _comment("/approve", "alice", 1),
            _comment("/lgtm", "bob", 2),
            _comment("/approve cancel", "bob", 3),
        ]

        add_approvers(tracker, comments, "author")

        assert tracker.approvers == {"alice"}
        assert tracker.lgtmers == set()

    def test_commands_within_one_comment_apply_top_to_bottom(self):
        tracker = _tracker()

        add_approvers(tracker, [_comment("/approve\n/approve cancel", "alice", 1)], "author")

        assert tracker.approvers == set()

    def test_no_issue_argument_is_recorded(self):
        tracker = _tracker()

        add_approvers(tracker, [_comment("/approve no-issue", "alice", 1)], "author")

        assert tracker.no_issue_approved()

    def test_author_approval_ignored_without_self_approve(self):
        tracker = _tracker(self_approve=False)

        add_approvers(tracker, [_comment("/approve", "author", 1)], "author")

        assert tracker.approvers == set()

    def test_author_approval_counts_with_self_approve(self):
        tracker = _tracker(self_approve=True)

        add_approvers(tracker, [_comment("/approve", "author", 1)], "author")

        assert tracker.approvers == {"author"}

    def test_author_is_registered_as_self_approver(self):
        calls = []

        class RecordingTracker:
            def add_author_self_approver(self, login, reference, no_issue):
                calls.append(("self", login, no_issue))

            def add_approver(self, login, reference, no_issue):
                calls.append(("approve", login, no_issue))

            def add_lgtmer(self, login, reference, no_issue):
                calls.append(("lgtm", login, no_issue))

            def remove_approver(self, login):
                calls.append(("remove", login))

        add_approvers(
            RecordingTracker(),
            [
                _comment("/lgtm no-issue", "author", 1),
                _comment("/approve", "alice", 2),
                _comment("/approve cancel", "author", 3),
            ],
            "author",
        )

        assert calls == [
            ("self", "author", True),
            ("lgtm", "author", True),
            ("approve", "alice", False),
            ("remove", "author"),
        ]

    def test_empty_author_is_skipped(self):
        tracker = _tracker()

        add_approvers(tracker, [_comment("/approve", "", 1)], "author")

        assert tracker.current_approvers() == set()
