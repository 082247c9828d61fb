"""Approval detection for pull request reviews and issue comments.

Pull requests count as approved when a formal review has the APPROVED
state. Plain issues have no structured approval, so a comment heuristic
decides; the heuristic is selectable by name so the stricter variant can be
switched on without changing the pipeline.
"""

import re
from collections.abc import Callable, Iterable

from .github import Comment, ConfigError, Review

APPROVED_STATE = "APPROVED"

ApprovalCheck = Callable[[str], bool]

_APPROVE_WORD_RE = re.compile(r"\bapproved?\b", re.IGNORECASE)


def mentions_approve(body: str) -> bool:
    """True if the text contains "approve" anywhere, ignoring case.

    Also matches negations such as "disapprove" or "do not approve".
    """
    return "approve" in (body or "").lower()


def says_approve_word(body: str) -> bool:
    """True if "approve" or "approved" appears as a whole word.

    Rules out "disapprove", but "do not approve" still matches.
    """
    return bool(_APPROVE_WORD_RE.search(body or ""))


APPROVAL_STRATEGIES: dict[str, ApprovalCheck] = {
    "substring": mentions_approve,
    "word": says_approve_word,
}


def get_approval_strategy(name: str) -> ApprovalCheck:
    """Look up a comment approval check by name."""
    try:
        return APPROVAL_STRATEGIES[name.strip().lower()]
    except KeyError:
        choices = ", ".join(sorted(APPROVAL_STRATEGIES))
        raise ConfigError(
            f"Unknown approval heuristic '{name}' (choose from: {choices})"
        ) from None


def find_review_approver(reviews: Iterable[Review]) -> str | None:
    """Return the author of the first APPROVED review, or None.

    Later approvals and dismissals are ignored.
    """
    for review in reviews:
        if review.state == APPROVED_STATE:
            return review.user or "unknown"
    return None


def find_comment_approver(
    comments: Iterable[Comment], is_approval_comment: ApprovalCheck = mentions_approve
) -> str | None:
    """Return the author of the first comment the check accepts, or None."""
    for comment in comments:
        if is_approval_comment(comment.body):
            return comment.user or "unknown"
    return None
