"""Researcher data models and the concurrent research orchestrator."""

from ops_briefing.core.researchers.models import (
    ADOData,
    GSDData,
    GSDProject,
    PullRequestData,
    ResearcherMetadata,
    ResearcherOutput,
    ResearchSource,
    ResearchStatus,
    ReviewerInfo,
    SprintData,
    WorkItemData,
)
from ops_briefing.core.researchers.orchestrator import (
    ResearchOrchestrator,
    ResearchResults,
    Researcher,
    SourceOutcome,
)

__all__ = [
    # Models
    "ADOData",
    "GSDData",
    "GSDProject",
    "PullRequestData",
    "ResearcherMetadata",
    "ResearcherOutput",
    "ResearchSource",
    "ResearchStatus",
    "ReviewerInfo",
    "SprintData",
    "WorkItemData",
    # Orchestration
    "ResearchOrchestrator",
    "ResearchResults",
    "Researcher",
    "SourceOutcome",
]
