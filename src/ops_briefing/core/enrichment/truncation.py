"""Token-budget truncation helpers for enriched items.

Defaults to the 4 chars/token approximation; the degradation pipeline needs
fast, deterministic costs rather than exact counts. Every helper accepts an
``estimator`` so the budgets stay in the caller's units.
"""

from typing import Callable, Optional

from ops_briefing.core.context.token_counter import estimate_tokens
from ops_briefing.core.enrichment.models import ADOComment

# Marker appended when text is hard-cut mid-sentence
HARD_CUT_MARKER = ".."

# Structural overhead per comment (author, date, markup)
COMMENT_OVERHEAD_TOKENS = 5

_SENTENCE_BOUNDARIES = (". ", "! ", "? ")

TokenEstimator = Callable[[str], int]


def _longest_marked_prefix(text: str, max_tokens: int, estimator: TokenEstimator) -> int:
    """Largest n such that ``text[:n]`` plus the marker fits ``max_tokens``.

    Assumes the estimator never decreases as text grows.
    """
    lo, hi = 0, len(text)
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if estimator(text[:mid] + HARD_CUT_MARKER) <= max_tokens:
            lo = mid
        else:
            hi = mid - 1
    return lo


def truncate_to_token_budget(
    text: Optional[str],
    max_tokens: int,
    estimator: TokenEstimator = estimate_tokens,
) -> str:
    """Truncate text to fit within a token budget.

    Cuts at the last sentence boundary inside the limit when there is one;
    otherwise hard-cuts and appends ``..``. The result never exceeds
    ``max_tokens`` as measured by ``estimator``.

    Args:
        text: Text to truncate
        max_tokens: Maximum token budget
        estimator: Token estimator the budget is expressed in

    Returns:
        The original text if it fits, else the truncated text
    """
    if not text:
        return ""
    if estimator(text) <= max_tokens:
        return text
    if max_tokens <= 0:
        return ""

    char_limit = _longest_marked_prefix(text, max_tokens, estimator)
    if char_limit <= 0:
        return HARD_CUT_MARKER if estimator(HARD_CUT_MARKER) <= max_tokens else ""

    window = text[:char_limit]
    boundary = max(window.rfind(b) for b in _SENTENCE_BOUNDARIES)
    if boundary > 0:
        return text[: boundary + 1]

    return window + HARD_CUT_MARKER


def comment_tokens(comment: ADOComment, estimator: TokenEstimator = estimate_tokens) -> int:
    """Estimated tokens for a comment including metadata overhead."""
    return (
        estimator(comment.text + comment.created_by + comment.created_date)
        + COMMENT_OVERHEAD_TOKENS
    )


def truncate_comments(
    comments: list[ADOComment],
    max_tokens: int,
    estimator: TokenEstimator = estimate_tokens,
) -> list[ADOComment]:
    """Keep the most recent comments that fit within ``max_tokens``.

    Comments are ordered most recent first, so the oldest are dropped.
    Stops at the first comment that would exceed the budget.
    """
    kept: list[ADOComment] = []
    used = 0
    for comment in comments:
        tokens = comment_tokens(comment, estimator)
        if used + tokens > max_tokens:
            break
        kept.append(comment)
        used += tokens
    return kept
