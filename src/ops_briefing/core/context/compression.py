"""Data compression for LLM context.

Reduces token usage by dropping low-value fields, truncating long titles at
word boundaries and summarizing reviewer lists. Selective inclusion is
preferred over summarization to keep the data accurate.
"""

from ops_briefing.core.context.types import (
    CompressedPR,
    CompressedProject,
    CompressedWorkItem,
)
from ops_briefing.core.context.utils import truncate_text
from ops_briefing.core.researchers.models import (
    GSDProject,
    PullRequestData,
    ReviewerInfo,
    WorkItemData,
)

WORK_ITEM_TITLE_LIMIT = 100
PR_TITLE_LIMIT = 80
MAX_REMAINING_TASKS = 3

_APPROVED_VOTES = frozenset(["approved", "approved-with-suggestions"])


def compress_work_item(item: WorkItemData) -> CompressedWorkItem:
    """Compress a work item to its essential fields."""
    return CompressedWorkItem(
        id=item.id,
        title=truncate_text(item.title, WORK_ITEM_TITLE_LIMIT),
        state=item.state,
        priority=item.priority,
        assigned_to=item.assigned_to,
        tags=list(item.tags) if item.tags else None,
    )


def summarize_reviewers(reviewers: list[ReviewerInfo]) -> str:
    """Summarize reviewer votes into a short string.

    Examples:
        [] -> "No reviewers"
        [approved, approved] -> "2/2 approved"
        [approved, waiting, none] -> "1/3 approved, 1 waiting"
        [rejected] -> "0/1 approved, 1 rejected"
    """
    if not reviewers:
        return "No reviewers"

    total = len(reviewers)
    approved = sum(1 for r in reviewers if r.vote in _APPROVED_VOTES)
    waiting = sum(1 for r in reviewers if r.vote == "waiting")
    rejected = sum(1 for r in reviewers if r.vote == "rejected")

    parts = [f"{approved}/{total} approved"]
    if waiting:
        parts.append(f"{waiting} waiting")
    if rejected:
        parts.append(f"{rejected} rejected")
    return ", ".join(parts)


def compress_pr(pr: PullRequestData) -> CompressedPR:
    """Compress a pull request, keeping only the repository basename."""
    repo_name = pr.repository.rstrip("/").split("/")[-1] or pr.repository
    return CompressedPR(
        id=pr.id,
        title=truncate_text(pr.title, PR_TITLE_LIMIT),
        author=pr.author,
        status=pr.status,
        repository=repo_name,
        reviewer_summary=summarize_reviewers(pr.reviewers),
    )


def compress_project(project: GSDProject) -> CompressedProject:
    """Compress a GSD project; blockers are always kept."""
    remaining = project.remaining_tasks
    return CompressedProject(
        name=project.name,
        current_phase=project.current_phase,
        status=project.status,
        remaining_tasks=remaining[:MAX_REMAINING_TASKS] if remaining is not None else None,
        blockers=project.blockers,
    )
