"""Tests for the issue enrichment pipeline and cached service."""

from unittest.mock import MagicMock

import pytest

from app.approval import says_approve_word
from app.cache import IssueCache
from app.github import Comment, GitHubError, RemoteIssue, Review
from app.models import Issue
from app.pipeline import IssueService, enrich_issue, fetch_enriched_issues


def _issue(number, creator="alice", pr=False, state="open"):
    return RemoteIssue(
        number=number,
        title=f"Item {number}",
        html_url=f"https://github.com/apache/zeppelin/issues/{number}",
        state=state,
        creator=creator,
        is_pull_request=pr,
    )


def _comment(body, user):
    return Comment(body=body, user=user)


@pytest.fixture()
def github():
    """A mocked GitHubClient with no issues, reviews or comments."""
    client = MagicMock()
    client.owner = "apache"
    client.list_issues_by_creator.return_value = []
    client.get_pull_reviews.return_value = []
    client.get_issue_comments.return_value = []
    client.is_pull_merged.return_value = False
    return client


class TestEnrichIssue:
    def test_pull_request_first_approval_and_merge(self, github):
        github.get_pull_reviews.return_value = [
            Review(user="carol", state="COMMENTED"),
            Review(user="A", state="APPROVED"),
            Review(user="B", state="APPROVED"),
        ]
        github.is_pull_merged.return_value = True

        issue = enrich_issue(github, "zeppelin", _issue(7, pr=True))

        assert issue.approved is True
        assert issue.approved_by == "A"
        assert issue.merged is True
        assert issue.is_pull_request is True
        github.get_issue_comments.assert_not_called()
        github.get_pull_reviews.assert_called_once_with("zeppelin", 7)
        github.is_pull_merged.assert_called_once_with("zeppelin", 7)

    def test_unapproved_unmerged_pull_request(self, github):
        issue = enrich_issue(github, "zeppelin", _issue(8, pr=True))
        assert issue.approved is False
        assert issue.approved_by is None
        assert issue.merged is False

    def test_plain_issue_comment_approval(self, github):
        github.get_issue_comments.return_value = [
            _comment("looks good", "bob"),
            _comment("I APPROVE this", "carol"),
        ]

        issue = enrich_issue(github, "zeppelin", _issue(5))

        assert issue.approved is True
        assert issue.approved_by == "carol"
        assert issue.merged is False
        github.get_pull_reviews.assert_not_called()
        github.is_pull_merged.assert_not_called()

    def test_disapprove_counts_by_default(self, github):
        github.get_issue_comments.return_value = [_comment("please disapprove", "eve")]
        issue = enrich_issue(github, "zeppelin", _issue(5))
        assert issue.approved is True
        assert issue.approved_by == "eve"

    def test_word_strategy_can_be_selected(self, github):
        github.get_issue_comments.return_value = [_comment("please disapprove", "eve")]
        issue = enrich_issue(github, "zeppelin", _issue(5), says_approve_word)
        assert issue.approved is False
        assert issue.approved_by is None

    def test_missing_creator_is_unknown(self, github):
        issue = enrich_issue(github, "zeppelin", _issue(5, creator=""))
        assert issue.creator == "unknown"


class TestFetchEnrichedIssues:
    def test_end_to_end_single_issue(self, github):
        github.list_issues_by_creator.return_value = [_issue(5)]
        github.get_issue_comments.return_value = [_comment("approve!", "bob")]

        issues = fetch_enriched_issues(github, "zeppelin", ["alice"])

        assert issues == [
            Issue(
                repo="zeppelin",
                number=5,
                title="Item 5",
                url="https://github.com/apache/zeppelin/issues/5",
                creator="alice",
                approved=True,
                approved_by="bob",
                merged=False,
                is_pull_request=False,
                state="open",
            )
        ]
        github.list_issues_by_creator.assert_called_once_with(
            "zeppelin", "alice", state="all"
        )

    def test_empty_usernames_makes_no_calls(self, github):
        assert fetch_enriched_issues(github, "zeppelin", []) == []
        github.list_issues_by_creator.assert_not_called()

    def test_order_follows_usernames_then_api(self, github):
        by_user = {
            "bob": [_issue(3, "bob"), _issue(1, "bob")],
            "alice": [_issue(9, "alice")],
        }
        github.list_issues_by_creator.side_effect = lambda repo, user, state: by_user[user]

        issues = fetch_enriched_issues(github, "zeppelin", ["bob", "alice"])

        assert [(i.creator, i.number) for i in issues] == [
            ("bob", 3),
            ("bob", 1),
            ("alice", 9),
        ]

    def test_one_user_failure_is_isolated(self, github, caplog):
        def list_issues(repo, user, state):
            if user == "broken":
                raise GitHubError("GitHub API error: 404", status=404)
            return [_issue(1, user)]

        github.list_issues_by_creator.side_effect = list_issues

        issues = fetch_enriched_issues(github, "zeppelin", ["alice", "broken", "bob"])

        assert [i.creator for i in issues] == ["alice", "bob"]
        assert "broken" in caplog.text
        assert "apache/zeppelin" in caplog.text

    def test_unexpected_error_is_isolated(self, github, caplog):
        github.list_issues_by_creator.side_effect = lambda repo, user, state: [
            _issue(1 if user == "alice" else 2, user)
        ]
        # A non-string body makes the approval check itself blow up
        github.get_issue_comments.side_effect = lambda repo, number: (
            [Comment(body=123, user="x")] if number == 1 else [_comment("ok", "y")]
        )

        issues = fetch_enriched_issues(github, "zeppelin", ["alice", "bob"])

        assert [i.creator for i in issues] == ["bob"]
        assert "alice" in caplog.text
        assert "apache/zeppelin" in caplog.text

    def test_enrichment_failure_drops_only_that_user(self, github):
        github.list_issues_by_creator.side_effect = lambda repo, user, state: [
            _issue(1, user, pr=(user == "alice"))
        ]
        github.get_pull_reviews.side_effect = GitHubError("rate limit exceeded", 403)

        issues = fetch_enriched_issues(github, "zeppelin", ["alice", "bob"])

        assert [i.creator for i in issues] == ["bob"]

    def test_concurrent_fetch_keeps_order_and_isolation(self, github):
        def list_issues(repo, user, state):
            if user == "broken":
                raise GitHubError("Network error: timeout")
            return [_issue(n, user) for n in (2, 1)]

        github.list_issues_by_creator.side_effect = list_issues
        users = ["u1", "broken", "u2", "u3"]

        issues = fetch_enriched_issues(github, "zeppelin", users, max_workers=4)

        assert [(i.creator, i.number) for i in issues] == [
            ("u1", 2), ("u1", 1), ("u2", 2), ("u2", 1), ("u3", 2), ("u3", 1),
        ]

    def test_invariants_hold(self, github):
        github.list_issues_by_creator.return_value = [
            _issue(1),
            _issue(2, pr=True),
            _issue(3, pr=True),
        ]
        github.get_issue_comments.return_value = [_comment("nope", "x")]
        github.get_pull_reviews.side_effect = [
            [Review(user="r", state="APPROVED")],
            [],
        ]
        github.is_pull_merged.side_effect = [True, False]

        issues = fetch_enriched_issues(github, "zeppelin", ["alice"])

        for issue in issues:
            assert issue.approved == (issue.approved_by is not None)
            if not issue.is_pull_request:
                assert issue.merged is False


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestIssueService:
    @pytest.fixture()
    def clock(self):
        return FakeClock()

    @pytest.fixture()
    def service(self, github, clock):
        github.list_issues_by_creator.side_effect = lambda repo, user, state: [
            _issue(1, user)
        ]
        return IssueService(github, IssueCache(ttl=5, timer=clock))

    def test_second_call_within_window_uses_cache(self, service, github):
        first = service.get_issues("zeppelin", ["alice"])
        second = service.get_issues("zeppelin", ["alice"])
        assert first == second
        assert github.list_issues_by_creator.call_count == 1

    def test_refetches_after_window(self, service, github, clock):
        service.get_issues("zeppelin", ["alice"])
        clock.now += 5
        service.get_issues("zeppelin", ["alice"])
        assert github.list_issues_by_creator.call_count == 2

    def test_username_order_is_a_separate_key(self, service, github):
        service.get_issues("zeppelin", ["a", "b"])
        service.get_issues("zeppelin", ["b", "a"])
        assert github.list_issues_by_creator.call_count == 4

    def test_failed_user_result_is_cached_empty(self, service, github):
        github.list_issues_by_creator.side_effect = GitHubError("boom")
        assert service.get_issues("zeppelin", ["alice"]) == []
        assert service.get_issues("zeppelin", ["alice"]) == []
        assert github.list_issues_by_creator.call_count == 1

    def test_get_all_issues_concatenates_in_repo_order(self, service):
        issues = service.get_all_issues(["zeppelin", "zeppelin-site"], ["alice"])
        assert [i.repo for i in issues] == ["zeppelin", "zeppelin-site"]

    def test_close_closes_client(self, service, github):
        service.close()
        github.close.assert_called_once()
