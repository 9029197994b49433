"""XML section builders for the briefing context.

Each builder compresses raw researcher data and renders one XML block
(``<work_items>``, ``<pull_requests>``, ``<projects>``). Empty input renders
a self-closing element with ``count="0"``. When ``max_items`` cuts the list,
the element carries a ``total`` attribute with the original size.
"""

from typing import Optional

from ops_briefing.core.context.compression import (
    compress_pr,
    compress_project,
    compress_work_item,
)
from ops_briefing.core.context.utils import escape_xml
from ops_briefing.core.researchers.models import GSDProject, PullRequestData, WorkItemData


def _limit(items: list, max_items: Optional[int]) -> list:
    return items[:max_items] if max_items else items


def _count_attrs(shown: int, total: int) -> str:
    attrs = f'count="{shown}"'
    if total > shown:
        attrs += f' total="{total}"'
    return attrs


def build_work_items_section(
    items: list[WorkItemData],
    max_items: Optional[int] = None,
) -> str:
    """Build the ``<work_items>`` section.

    Args:
        items: Raw work items from the ADO researcher
        max_items: Optional limit on the number of items (default: all)

    Returns:
        XML string for the work_items section
    """
    compressed = [compress_work_item(item) for item in _limit(items, max_items)]
    if not compressed:
        return '<work_items count="0" />'

    blocks = []
    for item in compressed:
        lines = [
            f'  <item id="{item.id}" priority="P{item.priority}">',
            f"    <title>{escape_xml(item.title)}</title>",
            f"    <state>{escape_xml(item.state)}</state>",
        ]
        if item.assigned_to:
            lines.append(f"    <assigned>{escape_xml(item.assigned_to)}</assigned>")
        if item.tags:
            lines.append(f"    <tags>{escape_xml(', '.join(item.tags))}</tags>")
        lines.append("  </item>")
        blocks.append("\n".join(lines))

    body = "\n".join(blocks)
    return f"<work_items {_count_attrs(len(compressed), len(items))}>\n{body}\n</work_items>"


def build_pull_requests_section(
    prs: list[PullRequestData],
    max_items: Optional[int] = None,
) -> str:
    """Build the ``<pull_requests>`` section."""
    compressed = [compress_pr(pr) for pr in _limit(prs, max_items)]
    if not compressed:
        return '<pull_requests count="0" />'

    blocks = [
        "\n".join(
            [
                f'  <pr id="{pr.id}" status="{escape_xml(pr.status)}">',
                f"    <title>{escape_xml(pr.title)}</title>",
                f"    <author>{escape_xml(pr.author)}</author>",
                f"    <repo>{escape_xml(pr.repository)}</repo>",
                f"    <reviewers>{escape_xml(pr.reviewer_summary)}</reviewers>",
                "  </pr>",
            ]
        )
        for pr in compressed
    ]

    body = "\n".join(blocks)
    return (
        f"<pull_requests {_count_attrs(len(compressed), len(prs))}>\n"
        f"{body}\n</pull_requests>"
    )


def build_projects_section(
    projects: list[GSDProject],
    max_items: Optional[int] = None,
) -> str:
    """Build the ``<projects>`` section."""
    compressed = [compress_project(p) for p in _limit(projects, max_items)]
    if not compressed:
        return '<projects count="0" />'

    blocks = []
    for project in compressed:
        lines = [f'  <project name="{escape_xml(project.name)}">']
        if project.current_phase:
            lines.append(f"    <phase>{escape_xml(project.current_phase)}</phase>")
        if project.status:
            lines.append(f"    <status>{escape_xml(project.status)}</status>")
        if project.remaining_tasks:
            tasks = "; ".join(escape_xml(t) for t in project.remaining_tasks)
            lines.append(f"    <remaining_tasks>{tasks}</remaining_tasks>")
        if project.blockers:
            blockers = "; ".join(escape_xml(b) for b in project.blockers)
            lines.append(f"    <blockers>{blockers}</blockers>")
        lines.append("  </project>")
        blocks.append("\n".join(lines))

    body = "\n".join(blocks)
    return f'<projects count="{len(compressed)}">\n{body}\n</projects>'
