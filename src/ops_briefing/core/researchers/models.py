"""Pydantic models for researcher output.

Researchers gather raw data from the work-tracking API (Azure DevOps) and
the local planning-file scanner (GSD projects). These models are the shapes
the context engine consumes; the researchers themselves live outside this
package.
"""

from datetime import datetime
from enum import Enum
from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================


class ResearchSource(str, Enum):
    """Where a researcher's data came from."""

    AZURE_DEVOPS = "azure-devops"
    GSD_SCANNER = "gsd-scanner"


class ResearchStatus(str, Enum):
    """Completion status reported by a researcher."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


ReviewerVote = Literal[
    "approved", "approved-with-suggestions", "waiting", "rejected", "none"
]


# =============================================================================
# Azure DevOps Models
# =============================================================================


class WorkItemData(BaseModel):
    """A work item with blocking relationships."""

    id: int
    title: str
    state: str
    priority: int
    assigned_to: Optional[str] = None
    created_date: datetime
    changed_date: datetime
    tags: list[str] = Field(default_factory=list)
    sprint_path: Optional[str] = None
    blocked_by: Optional[list[int]] = None
    blocks: Optional[list[int]] = None


class ReviewerInfo(BaseModel):
    """Pull request reviewer vote and requirement status."""

    name: str
    vote: ReviewerVote = "none"
    required: bool = False


class PullRequestData(BaseModel):
    """A pull request with reviewer information."""

    id: int
    title: str
    author: str
    status: str
    created_date: datetime
    repository: str
    target_branch: str
    reviewers: list[ReviewerInfo] = Field(default_factory=list)


class SprintData(BaseModel):
    """Sprint progress and timeline."""

    name: str
    start_date: datetime
    end_date: datetime
    days_remaining: int
    committed_count: int
    completed_count: int


class ADOData(BaseModel):
    """Combined Azure DevOps research output."""

    work_items: list[WorkItemData] = Field(default_factory=list)
    pull_requests: list[PullRequestData] = Field(default_factory=list)
    sprint: Optional[SprintData] = None


# =============================================================================
# GSD Models
# =============================================================================


class GSDProject(BaseModel):
    """A GSD project with planning state."""

    path: str
    name: str
    milestone: Optional[str] = None
    current_phase: Optional[str] = None
    status: Optional[str] = None
    progress: Optional[float] = None
    remaining_tasks: Optional[list[str]] = None
    blockers: Optional[list[str]] = None


class GSDData(BaseModel):
    """Combined GSD research output."""

    projects: list[GSDProject] = Field(default_factory=list)


# =============================================================================
# Researcher Envelope
# =============================================================================

T = TypeVar("T")


class ResearcherMetadata(BaseModel):
    """Timing and volume metadata for one researcher run."""

    timestamp: datetime = Field(default_factory=datetime.now)
    duration_ms: float = 0.0
    items_found: int = 0


class ResearcherOutput(BaseModel, Generic[T]):
    """Standard output envelope shared by all researchers."""

    source: ResearchSource
    status: ResearchStatus = ResearchStatus.SUCCESS
    data: T
    metadata: ResearcherMetadata = Field(default_factory=ResearcherMetadata)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
