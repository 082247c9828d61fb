"""OSSCa Status Dashboard - FastAPI application."""

import logging
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from . import api_v1, health
from .dashboard import (
    ASC,
    COLUMN_LABELS,
    DIRECTIONS,
    next_direction,
    sort_indicator,
    sort_issues,
    summarize,
)
from .github import ConfigError
from .pipeline import close_service, get_service, get_settings

logger = logging.getLogger(__name__)

app = FastAPI(title="OSSCa Status")
app.include_router(api_v1.router)
app.include_router(health.router)


@app.on_event("shutdown")
async def shutdown_event():
    """Close the cached GitHub client on shutdown."""
    close_service()


# Templates
templates_dir = Path(__file__).parent.parent / "templates"
templates = Jinja2Templates(directory=templates_dir)


def make_context(sort: str | None, direction: str, **kwargs: Any) -> dict[str, Any]:
    """Build template context with column header helpers.

    Args:
        sort: Active sort column, or None for the default order.
        direction: Active sort direction.
        **kwargs: Additional context variables.

    Returns:
        Context dict with sort state, a per-column header list and kwargs.
    """
    columns = [
        {
            "name": name,
            "label": label,
            "dir": next_direction(sort, direction, name),
            "indicator": sort_indicator(sort, direction, name),
        }
        for name, label in COLUMN_LABELS.items()
    ]
    return {"sort": sort, "dir": direction, "columns": columns, **kwargs}


@app.get("/", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    sort: str | None = Query(default=None),
    direction: str = Query(default=ASC, alias="dir"),
):
    """Dashboard - summary counts and the sortable issue table."""
    try:
        settings = get_settings()
        issues = get_service().get_all_issues(settings.repos, settings.usernames)
    except ConfigError as e:
        return templates.TemplateResponse(
            request, "partials/error.html", {"error": str(e)}
        )

    if sort not in COLUMN_LABELS:
        sort = None
    if direction not in DIRECTIONS:
        direction = ASC

    context = make_context(
        sort,
        direction,
        issues=sort_issues(issues, sort, direction),
        summary=summarize(issues),
        repos=settings.repos,
        owner=settings.owner,
    )

    if request.headers.get("HX-Request"):
        return templates.TemplateResponse(request, "partials/issue_table.html", context)

    return templates.TemplateResponse(request, "dashboard.html", context)
