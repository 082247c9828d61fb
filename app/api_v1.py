"""JSON API v1 endpoints for issue status.

All endpoints live under /api/v1/ and return JSON.
Used by the ossca-status CLI in client mode and any other integrations.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .dashboard import DIRECTIONS, SORT_COLUMNS, sort_issues, summarize
from .github import ConfigError
from .models import Issue
from .pipeline import get_service, get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Pydantic response models ---


class IssueOut(BaseModel):
    repo: str
    number: int
    title: str
    url: str
    creator: str
    approved: bool
    approved_by: str | None = None
    merged: bool
    is_pull_request: bool
    state: str


class SummaryOut(BaseModel):
    total: int
    merged: int
    unmerged: int
    approved: int


# --- Helpers ---


def _error(message: str, code: str, status: int) -> JSONResponse:
    return JSONResponse({"error": message, "code": code}, status_code=status)


def _load_issues(repo: str | None) -> list[Issue]:
    """Fetch issues for every configured repository, or just one."""
    settings = get_settings()
    repos = settings.repos
    if repo:
        repos = tuple(r for r in repos if r == repo)
    return get_service().get_all_issues(repos, settings.usernames)


# --- Routes ---


@router.get("/api/v1/issues", response_model=list[IssueOut])
async def list_issues(
    repo: str | None = None,
    sort: str | None = None,
    direction: str = Query(default="asc", alias="dir"),
):
    if direction not in DIRECTIONS:
        return _error(f"Unknown sort direction: {direction}", "invalid_sort", 400)
    if sort and sort not in SORT_COLUMNS:
        return _error(f"Unknown sort column: {sort}", "invalid_sort", 400)
    try:
        issues = _load_issues(repo)
    except ConfigError as e:
        return _error(str(e), "config_error", 500)
    ordered = sort_issues(issues, sort, direction)
    return [IssueOut(**issue.to_dict()) for issue in ordered]


@router.get("/api/v1/summary", response_model=SummaryOut)
async def summary(repo: str | None = None):
    try:
        issues = _load_issues(repo)
    except ConfigError as e:
        return _error(str(e), "config_error", 500)
    counts = summarize(issues)
    return SummaryOut(
        total=counts.total,
        merged=counts.merged,
        unmerged=counts.unmerged,
        approved=counts.approved,
    )
