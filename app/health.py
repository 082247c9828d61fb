"""Health check endpoint for Docker HEALTHCHECK and deploy verification."""

import logging
import os

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .pipeline import get_settings

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
async def health() -> JSONResponse:
    """Return health status, deployed git SHA and whether a token is set.

    Returns 200 when configuration loads, 503 when it is invalid.
    """
    config_status = "ok"
    token_status = "missing"
    try:
        settings = get_settings()
        if settings.token:
            token_status = "ok"
    except Exception:
        logger.exception("Configuration health check failed")
        config_status = "error"

    overall = "ok" if config_status == "ok" else "degraded"
    status_code = 200 if config_status == "ok" else 503
    return JSONResponse(
        content={
            "status": overall,
            "git_sha": os.getenv("GIT_SHA", "dev"),
            "config": config_status,
            "github_token": token_status,
        },
        status_code=status_code,
    )
