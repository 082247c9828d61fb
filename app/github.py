"""GitHub REST API client for issue, review and comment data."""

import logging
import os
import warnings
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"

# Pagination limits
MAX_PAGES = 10
PAGE_LIMIT = 100


class GitHubError(Exception):
    """Raised when a GitHub API call fails."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""

    pass


def _normalize_api_url(url: str) -> str:
    """Strip whitespace and trailing slashes from an API base URL."""
    return url.strip().rstrip("/")


# --- Data Models ---


@dataclass(frozen=True)
class RemoteIssue:
    """An issue or pull request as listed by the issues endpoint."""

    number: int
    title: str
    html_url: str
    state: str
    creator: str
    is_pull_request: bool = False


@dataclass(frozen=True)
class Review:
    user: str
    state: str


@dataclass(frozen=True)
class Comment:
    body: str
    user: str


def _text(value) -> str:
    """Coerce an optional payload field to a string; None becomes ''."""
    return "" if value is None else str(value)


def _login(item: dict) -> str:
    """Get the login of an item's user, or 'unknown' if absent."""
    user = item.get("user") or {}
    return _text(user.get("login")) or "unknown"


def _error_for_status(resp: httpx.Response) -> GitHubError:
    """Build a GitHubError for a failed response, naming rate limiting."""
    status = resp.status_code
    if status in (403, 429) and resp.headers.get("X-RateLimit-Remaining") == "0":
        reset = resp.headers.get("X-RateLimit-Reset", "unknown")
        return GitHubError(
            f"GitHub API rate limit exceeded (resets at {reset})", status=status
        )
    return GitHubError(f"GitHub API error: {status}", status=status)


class GitHubClient:
    """Simple GitHub API client bound to one repository owner.

    Configuration is loaded from (in order of precedence):
    1. Constructor arguments
    2. Environment variables (GITHUB_API_URL, GITHUB_TOKEN, GITHUB_OWNER)

    A missing token is allowed: requests go out unauthenticated and are
    subject to the lower anonymous rate limit.
    """

    def __init__(
        self,
        owner: str | None = None,
        token: str | None = None,
        base_url: str | None = None,
        **kwargs,
    ):
        """Initialize the GitHub client.

        Args:
            owner: Repository owner (optional, from env if not provided)
            token: API token (optional, from env if not provided)
            base_url: API base URL (optional, defaults to api.github.com)
            **kwargs: Extra arguments for httpx.Client (e.g. transport)
        """
        self.owner = owner if owner is not None else os.getenv("GITHUB_OWNER", "")
        self.token = token if token is not None else os.getenv("GITHUB_TOKEN", "")
        self.base_url = _normalize_api_url(
            base_url or os.getenv("GITHUB_API_URL", "") or DEFAULT_API_URL
        )

        if not self.owner:
            raise ConfigError(
                "No GitHub owner configured. Set GITHUB_OWNER in .env."
            )

        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        else:
            logger.warning(
                "No GitHub token configured; using unauthenticated rate limits."
            )

        self._client = httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=30.0,
            **kwargs,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "GitHubClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def _get(self, path: str, params: dict | None = None):
        """GET a path and return the decoded JSON body.

        Wraps HTTP status and transport errors as GitHubError so callers
        only need to catch one exception type.
        """
        try:
            resp = self._client.get(path, params=params)
        except httpx.RequestError as e:
            raise GitHubError(f"Network error: {e}") from e
        if resp.status_code >= 400:
            raise _error_for_status(resp)
        try:
            return resp.json()
        except ValueError as e:
            raise GitHubError(f"Invalid JSON from {path}: {e}") from e

    def _get_paginated(
        self,
        path: str,
        params: dict | None = None,
        max_pages: int = MAX_PAGES,
    ) -> list[dict]:
        """Fetch every page of a list endpoint.

        Args:
            path: API path relative to the base URL
            params: Extra query parameters
            max_pages: Maximum pages to fetch (prevents runaway pagination)

        Returns:
            Concatenated list of items, in API order
        """
        base_query: dict[str, str | int] = {**(params or {}), "per_page": PAGE_LIMIT}

        items: list[dict] = []
        page = 1
        truncated = False

        while page <= max_pages:
            data = self._get(path, params={**base_query, "page": page})
            if not isinstance(data, list):
                raise GitHubError(f"Unexpected response from {path}: expected a list")
            if not data:
                break
            items.extend(data)

            # If we got fewer items than the limit, we're on the last page
            if len(data) < PAGE_LIMIT:
                break
            page += 1
        else:
            # Loop completed without break - hit max_pages ceiling
            truncated = True

        if truncated:
            warnings.warn(
                f"{path} truncated at {max_pages} pages "
                f"({len(items)} items). Results may be incomplete.",
                UserWarning,
                stacklevel=2,
            )
        return items

    def list_issues_by_creator(
        self, repo: str, creator: str, state: str = "all"
    ) -> list[RemoteIssue]:
        """List issues and pull requests in a repo created by one user."""
        data = self._get_paginated(
            f"/repos/{self.owner}/{repo}/issues",
            params={"creator": creator, "state": state},
        )
        try:
            return [
                RemoteIssue(
                    number=int(item["number"]),
                    title=_text(item.get("title")),
                    html_url=_text(item.get("html_url")),
                    state=_text(item.get("state")) or "unknown",
                    creator=_login(item),
                    is_pull_request=bool(item.get("pull_request")),
                )
                for item in data
            ]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise GitHubError(f"Malformed issue in {self.owner}/{repo}: {e}") from e

    def get_pull_reviews(self, repo: str, number: int) -> list[Review]:
        """Get reviews for a pull request, in the order GitHub returns them."""
        data = self._get_paginated(f"/repos/{self.owner}/{repo}/pulls/{number}/reviews")
        try:
            return [
                Review(user=_login(item), state=_text(item.get("state")))
                for item in data
            ]
        except AttributeError as e:
            raise GitHubError(f"Malformed review on #{number}: {e}") from e

    def get_issue_comments(self, repo: str, number: int) -> list[Comment]:
        """Get comments for an issue."""
        data = self._get_paginated(
            f"/repos/{self.owner}/{repo}/issues/{number}/comments"
        )
        try:
            return [
                Comment(body=_text(item.get("body")), user=_login(item))
                for item in data
            ]
        except AttributeError as e:
            raise GitHubError(f"Malformed comment on #{number}: {e}") from e

    def is_pull_merged(self, repo: str, number: int) -> bool:
        """Read the merged flag from a pull request's detail record."""
        data = self._get(f"/repos/{self.owner}/{repo}/pulls/{number}")
        if not isinstance(data, dict):
            raise GitHubError(f"Unexpected response for pull request #{number}")
        return data.get("merged") is True
