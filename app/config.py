"""Dashboard configuration from environment variables and gh CLI config."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .approval import APPROVAL_STRATEGIES
from .cache import DEFAULT_MAXSIZE, DEFAULT_TTL
from .github import DEFAULT_API_URL, ConfigError

logger = logging.getLogger(__name__)

DEFAULT_OWNER = "apache"
DEFAULT_REPOS = ("zeppelin", "zeppelin-site")
GH_HOST = "github.com"


# --- gh CLI Config Support ---


def _get_gh_config_path() -> Path:
    """Get the path to the GitHub CLI hosts file."""
    config_dir = os.getenv("GH_CONFIG_DIR", "").strip()
    if config_dir:
        return Path(config_dir) / "hosts.yml"
    return Path.home() / ".config" / "gh" / "hosts.yml"


def _load_gh_token(host: str = GH_HOST) -> str | None:
    """Read the oauth token for a host from the gh CLI hosts file.

    Returns:
        The token, or None if the file is missing, unreadable or has no
        token for the host (newer gh versions keep it in the keyring).
    """
    path = _get_gh_config_path()
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            hosts = yaml.safe_load(f)
    except (yaml.YAMLError, PermissionError, OSError) as e:
        logger.debug(f"Could not load gh config: {e}")
        return None

    if not isinstance(hosts, dict):
        return None
    entry = hosts.get(host)
    if not isinstance(entry, dict):
        return None
    token = entry.get("oauth_token")
    return token if isinstance(token, str) and token else None


def _split_csv(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def parse_usernames(raw: str | None) -> list[str]:
    """Split a comma-separated username list.

    Whitespace is stripped, blank entries are dropped and order is kept.
    """
    return _split_csv(raw)


def _get_number(name: str, default: float, cast=float):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got '{raw}'") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got '{raw}'")
    return value


@dataclass(frozen=True)
class Settings:
    token: str | None
    usernames: tuple[str, ...]
    owner: str = DEFAULT_OWNER
    repos: tuple[str, ...] = DEFAULT_REPOS
    api_url: str = DEFAULT_API_URL
    cache_ttl: float = DEFAULT_TTL
    cache_maxsize: int = DEFAULT_MAXSIZE
    fetch_workers: int = 1
    approval_heuristic: str = "substring"


def load_settings() -> Settings:
    """Build settings from the environment.

    The token comes from GITHUB_TOKEN, falling back to the gh CLI config.

    Raises:
        ConfigError: if a numeric setting or the approval heuristic is invalid.
    """
    token = os.getenv("GITHUB_TOKEN", "").strip() or _load_gh_token()

    repos = tuple(_split_csv(os.getenv("GITHUB_REPOS"))) or DEFAULT_REPOS

    heuristic = os.getenv("APPROVAL_HEURISTIC", "").strip().lower() or "substring"
    if heuristic not in APPROVAL_STRATEGIES:
        choices = ", ".join(sorted(APPROVAL_STRATEGIES))
        raise ConfigError(
            f"Unknown APPROVAL_HEURISTIC '{heuristic}' (choose from: {choices})"
        )

    return Settings(
        token=token or None,
        usernames=tuple(parse_usernames(os.getenv("GITHUB_USERNAMES"))),
        owner=os.getenv("GITHUB_OWNER", "").strip() or DEFAULT_OWNER,
        repos=repos,
        api_url=os.getenv("GITHUB_API_URL", "").strip() or DEFAULT_API_URL,
        cache_ttl=_get_number("ISSUE_CACHE_TTL", DEFAULT_TTL),
        cache_maxsize=_get_number("ISSUE_CACHE_MAXSIZE", DEFAULT_MAXSIZE, int),
        fetch_workers=_get_number("FETCH_WORKERS", 1, int),
        approval_heuristic=heuristic,
    )
