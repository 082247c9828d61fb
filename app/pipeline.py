"""Issue enrichment pipeline and the cached service in front of it."""

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from .approval import (
    ApprovalCheck,
    find_comment_approver,
    find_review_approver,
    get_approval_strategy,
    mentions_approve,
)
from .cache import IssueCache
from .config import Settings, load_settings
from .github import GitHubClient, GitHubError, RemoteIssue
from .models import Issue

logger = logging.getLogger(__name__)


def enrich_issue(
    client: GitHubClient,
    repository: str,
    item: RemoteIssue,
    is_approval_comment: ApprovalCheck = mentions_approve,
) -> Issue:
    """Annotate one listed issue or pull request with approval and merge status.

    Pull requests are approved by their first APPROVED review and carry the
    merged flag from their detail record. Plain issues are approved by the
    first comment the approval check accepts and are never merged.
    """
    merged = False
    if item.is_pull_request:
        approved_by = find_review_approver(client.get_pull_reviews(repository, item.number))
        merged = client.is_pull_merged(repository, item.number)
    else:
        approved_by = find_comment_approver(
            client.get_issue_comments(repository, item.number), is_approval_comment
        )

    return Issue(
        repo=repository,
        number=item.number,
        title=item.title,
        url=item.html_url,
        creator=item.creator or "unknown",
        approved=approved_by is not None,
        approved_by=approved_by,
        merged=merged,
        is_pull_request=item.is_pull_request,
        state=item.state,
    )


def _fetch_for_user(
    client: GitHubClient,
    repository: str,
    username: str,
    is_approval_comment: ApprovalCheck,
) -> list[Issue]:
    """Fetch and enrich one user's issues; on failure log and return nothing."""
    try:
        items = client.list_issues_by_creator(repository, username, state="all")
        issues = [
            enrich_issue(client, repository, item, is_approval_comment)
            for item in items
        ]
    except GitHubError as e:
        logger.warning(
            "Failed to fetch issues for %s from %s/%s: %s",
            username,
            client.owner,
            repository,
            e,
        )
        return []
    except Exception:
        logger.exception(
            "Unexpected error processing issues for %s from %s/%s",
            username,
            client.owner,
            repository,
        )
        return []
    logger.debug("Fetched %d issues for %s from %s", len(issues), username, repository)
    return issues


def fetch_enriched_issues(
    client: GitHubClient,
    repository: str,
    usernames: Sequence[str],
    *,
    is_approval_comment: ApprovalCheck = mentions_approve,
    max_workers: int = 1,
) -> list[Issue]:
    """Fetch every issue and pull request the given users created in a repo.

    Results keep username order, then API order within each user. A failure
    for one user drops only that user's issues.

    Args:
        client: GitHub client for the repository owner
        repository: Repository name
        usernames: Authors to include
        is_approval_comment: Check deciding whether an issue comment approves
        max_workers: Users fetched concurrently (1 = sequential)
    """
    if not usernames:
        return []

    if max_workers <= 1 or len(usernames) == 1:
        per_user = [
            _fetch_for_user(client, repository, username, is_approval_comment)
            for username in usernames
        ]
    else:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(usernames))) as executor:
            futures = [
                executor.submit(
                    _fetch_for_user, client, repository, username, is_approval_comment
                )
                for username in usernames
            ]
            per_user = [future.result() for future in futures]

    return [issue for issues in per_user for issue in issues]


class IssueService:
    """Serves enriched issues, running the pipeline only on cache misses."""

    def __init__(
        self,
        client: GitHubClient,
        cache: IssueCache | None = None,
        *,
        is_approval_comment: ApprovalCheck = mentions_approve,
        max_workers: int = 1,
    ):
        self.client = client
        self.cache = cache if cache is not None else IssueCache()
        self.is_approval_comment = is_approval_comment
        self.max_workers = max_workers

    def get_issues(self, repository: str, usernames: Sequence[str]) -> list[Issue]:
        """Get enriched issues for one repository, from cache when fresh."""
        cached = self.cache.get(repository, usernames)
        if cached is not None:
            return cached

        issues = fetch_enriched_issues(
            self.client,
            repository,
            usernames,
            is_approval_comment=self.is_approval_comment,
            max_workers=self.max_workers,
        )
        self.cache.put(repository, usernames, issues)
        return issues

    def get_all_issues(
        self, repositories: Sequence[str], usernames: Sequence[str]
    ) -> list[Issue]:
        """Concatenate issues across repositories, in repository order."""
        issues: list[Issue] = []
        for repository in repositories:
            issues.extend(self.get_issues(repository, usernames))
        return issues

    def close(self) -> None:
        self.client.close()


def build_service(settings: Settings) -> IssueService:
    """Create a service wired from settings."""
    client = GitHubClient(
        owner=settings.owner, token=settings.token or "", base_url=settings.api_url
    )
    cache = IssueCache(ttl=settings.cache_ttl, maxsize=settings.cache_maxsize)
    return IssueService(
        client,
        cache,
        is_approval_comment=get_approval_strategy(settings.approval_heuristic),
        max_workers=settings.fetch_workers,
    )


# Process-wide service (one GitHub client and cache per process)
_service: IssueService | None = None
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def get_service() -> IssueService:
    """Get the cached issue service, building it on first use."""
    global _service
    if _service is None:
        _service = build_service(get_settings())
    return _service


def close_service() -> None:
    """Close the cached service and forget cached settings."""
    global _service, _settings
    if _service is not None:
        _service.close()
        _service = None
    _settings = None
