"""Sorting and summary helpers for the issue table."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from .models import Issue

ASC = "asc"
DESC = "desc"
DIRECTIONS = (ASC, DESC)

# Column name -> sort key. Header order on the page follows this dict.
SORT_COLUMNS: dict[str, Callable[[Issue], Any]] = {
    "repo": lambda i: i.repo,
    "number": lambda i: i.number,
    "title": lambda i: i.title.lower(),
    "creator": lambda i: i.creator.lower(),
    "approved": lambda i: i.approved,
    "merged": lambda i: i.merged,
    "approved_by": lambda i: (i.approved_by or "").lower(),
}

COLUMN_LABELS: dict[str, str] = {
    "repo": "Repository",
    "number": "Issue #",
    "title": "Title",
    "creator": "Creator",
    "approved": "Approved",
    "merged": "Merged",
    "approved_by": "Approved By",
}


def _default_order(issue: Issue) -> tuple[str, int]:
    # Repository A-Z, newest number first
    return (issue.repo, -issue.number)


def sort_issues(
    issues: Sequence[Issue], sort: str | None = None, direction: str = ASC
) -> list[Issue]:
    """Return a sorted copy of the issues.

    Without a column, issues are ordered by repository, then by number
    descending. With a column, ties fall back to repository then number.

    Raises:
        ValueError: if the column or direction is unknown.
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"Unknown sort direction: {direction}")
    reverse = direction == DESC

    if not sort:
        return sorted(issues, key=_default_order, reverse=reverse)

    column_key = SORT_COLUMNS.get(sort)
    if column_key is None:
        raise ValueError(f"Unknown sort column: {sort}")
    return sorted(
        issues,
        key=lambda i: (column_key(i), i.repo, i.number),
        reverse=reverse,
    )


def next_direction(current_sort: str | None, current_direction: str, column: str) -> str:
    """Direction a header link should request when clicked.

    The active column flips direction; any other column starts ascending.
    """
    if column == current_sort:
        return ASC if current_direction == DESC else DESC
    return ASC


def sort_indicator(current_sort: str | None, current_direction: str, column: str) -> str:
    """Arrow shown next to the active column header."""
    if column != current_sort:
        return ""
    return "▼" if current_direction == DESC else "▲"


@dataclass(frozen=True)
class IssueSummary:
    total: int
    merged: int
    unmerged: int
    approved: int


def summarize(issues: Sequence[Issue]) -> IssueSummary:
    """Count total, merged, unmerged and approved issues."""
    total = len(issues)
    merged = sum(1 for i in issues if i.merged)
    approved = sum(1 for i in issues if i.approved)
    return IssueSummary(
        total=total, merged=merged, unmerged=total - merged, approved=approved
    )
