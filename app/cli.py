"""ossca-status: terminal view of the contribution status dashboard.

Usage:
    ossca-status [--json] [--url URL] COMMAND

Commands:
    issues [--repo REPO] [--sort COL] [--desc]   List enriched issues
    summary [--repo REPO]                        Show total/merged/unmerged counts

Mode:
    Local: query GitHub directly using GITHUB_* environment variables.
    HTTP client: set OSSCA_STATUS_URL or --url to read from a running dashboard.
"""

import argparse
import json
import os
import sys

from .dashboard import ASC, DESC, SORT_COLUMNS, sort_issues, summarize
from .github import ConfigError
from .http_client import StatusClient, StatusError
from .pipeline import close_service, get_service, get_settings


def _get_client(args: argparse.Namespace) -> StatusClient | None:
    """Create a StatusClient when a server URL is configured.

    Stores the client on args._client so main() can close it.
    """
    url = args.url or os.getenv("OSSCA_STATUS_URL", "")
    if not url:
        return None
    client = StatusClient(url)
    args._client = client  # noqa: SLF001
    return client


def _local_issues(repo: str | None) -> list:
    settings = get_settings()
    repos = settings.repos
    if repo:
        repos = tuple(r for r in repos if r == repo)
    return get_service().get_all_issues(repos, settings.usernames)


def _output(data: object, *, json_mode: bool) -> None:
    """Print output as JSON or human-readable text."""
    if json_mode:
        print(json.dumps(data, indent=2, default=str))
    elif isinstance(data, dict):
        _print_row(data)
    else:
        print(data)


def _print_row(d: dict) -> None:
    """Print a dict as a compact key=value line."""
    parts = [f"{k}={v}" for k, v in d.items() if v is not None]
    print("  ".join(parts))


def _mark(flag: bool) -> str:
    return "yes" if flag else "no"


# --- Commands ---


def cmd_issues(args: argparse.Namespace) -> None:
    direction = DESC if args.desc else ASC
    client = _get_client(args)
    if client:
        issues = client.list_issues(repo=args.repo, sort=args.sort, direction=direction)
    else:
        issues = [
            i.to_dict() for i in sort_issues(_local_issues(args.repo), args.sort, direction)
        ]

    if args.json:
        _output(issues, json_mode=True)
        return
    if not issues:
        print("No issues found.")
        return

    # Table output
    print(
        f"{'Repository':<16} {'#':<6} {'Creator':<16} {'Approved':<9} "
        f"{'Merged':<7} {'Approved By':<16} {'Title'}"
    )
    print("-" * 100)
    for i in issues:
        print(
            f"{i['repo']:<16} {i['number']:<6} {i['creator']:<16} "
            f"{_mark(i['approved']):<9} {_mark(i['merged']):<7} "
            f"{i['approved_by'] or 'N/A':<16} {i['title']}"
        )


def cmd_summary(args: argparse.Namespace) -> None:
    client = _get_client(args)
    if client:
        counts = client.get_summary(repo=args.repo)
    else:
        s = summarize(_local_issues(args.repo))
        counts = {
            "total": s.total,
            "merged": s.merged,
            "unmerged": s.unmerged,
            "approved": s.approved,
        }

    if args.json:
        _output(counts, json_mode=True)
        return
    print(f"Total issues:    {counts['total']}")
    print(f"Merged issues:   {counts['merged']}")
    print(f"Unmerged issues: {counts['unmerged']}")
    print(f"Approved issues: {counts['approved']}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ossca-status",
        description="Issue and pull request status for OSSCa members",
    )
    parser.add_argument("--json", action="store_true", help="Output JSON")
    parser.add_argument("--url", help="Dashboard URL (env: OSSCA_STATUS_URL)")

    sub = parser.add_subparsers(dest="command", help="Command")

    # issues
    issues_parser = sub.add_parser("issues", help="List enriched issues")
    issues_parser.add_argument("--repo", help="Only this repository")
    issues_parser.add_argument("--sort", choices=list(SORT_COLUMNS), help="Sort column")
    issues_parser.add_argument(
        "--desc", action="store_true", help="Sort descending"
    )
    issues_parser.set_defaults(func=cmd_issues)

    # summary
    summary_parser = sub.add_parser("summary", help="Show issue counts")
    summary_parser.add_argument("--repo", help="Only this repository")
    summary_parser.set_defaults(func=cmd_summary)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except (ConfigError, StatusError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        client = getattr(args, "_client", None)
        if client is not None:
            client.close()
        else:
            close_service()


if __name__ == "__main__":
    main()
