"""Context engine for building budget-bounded LLM context from researcher data.

This package provides token counting, a priority-aware token budget ledger,
data compression, XML section builders and the ContextEngine that ties them
together.
"""

from ops_briefing.core.context.compression import (
    compress_pr,
    compress_project,
    compress_work_item,
    summarize_reviewers,
)
from ops_briefing.core.context.engine import EMPTY_CONTEXT, ContextEngine
from ops_briefing.core.context.sections import (
    build_projects_section,
    build_pull_requests_section,
    build_work_items_section,
)
from ops_briefing.core.context.token_budget import (
    BudgetEntry,
    BudgetOverflowError,
    TokenBudget,
)
from ops_briefing.core.context.token_counter import (
    TokenCounter,
    TokenCountError,
    estimate_tokens,
)
from ops_briefing.core.context.types import (
    CompressedPR,
    CompressedProject,
    CompressedWorkItem,
    ContextSection,
    ContextStats,
    SectionStat,
)
from ops_briefing.core.context.utils import escape_xml, truncate_text

__all__ = [
    # Engine
    "EMPTY_CONTEXT",
    "ContextEngine",
    # Budget
    "BudgetEntry",
    "BudgetOverflowError",
    "TokenBudget",
    # Token counting
    "TokenCounter",
    "TokenCountError",
    "estimate_tokens",
    # Types
    "CompressedPR",
    "CompressedProject",
    "CompressedWorkItem",
    "ContextSection",
    "ContextStats",
    "SectionStat",
    # Compression and sections
    "build_projects_section",
    "build_pull_requests_section",
    "build_work_items_section",
    "compress_pr",
    "compress_project",
    "compress_work_item",
    "summarize_reviewers",
    # Utilities
    "escape_xml",
    "truncate_text",
]
