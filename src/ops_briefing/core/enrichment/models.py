"""Pydantic models for item enrichment.

Enrichment adds full descriptions, comments and related-item details to the
top-scored items so the briefing model has context for its decisions.
"""

from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class ScoredItemType(str, Enum):
    """Kinds of items produced by triage scoring."""

    WORK_ITEM = "work_item"
    PULL_REQUEST = "pull_request"
    GSD_PROJECT = "gsd_project"


class ScoredItem(BaseModel):
    """A triaged item with its score, highest-scored first in a list.

    ``id`` is the work item / PR id, or the project path for GSD projects.
    """

    type: ScoredItemType
    id: Union[int, str]
    title: str = ""
    score: float = 0.0


class ADOComment(BaseModel):
    """Azure DevOps comment with metadata."""

    id: int
    text: str
    created_date: str
    created_by: str


class EnrichedRelation(BaseModel):
    """Related work item with its title."""

    id: int
    title: str
    type: Literal["parent", "child", "blocker", "blocked-by", "related"]


class EnrichedWorkItem(BaseModel):
    """Work item with full description, comments and relations.

    ``comments`` are ordered most recent first.
    """

    id: int
    title: str
    description: Optional[str] = None
    comments: list[ADOComment] = Field(default_factory=list)
    due_date: Optional[str] = None
    sprint_path: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    area_path: str = ""
    relations: list[EnrichedRelation] = Field(default_factory=list)


class EnrichedGSDItem(BaseModel):
    """GSD project with its PLAN.md goal and SUMMARY.md details."""

    path: str
    name: str
    goal_description: Optional[str] = None
    summary: Optional[str] = None
    current_phase: Optional[str] = None
    status: Optional[str] = None


EnrichedItem = Union[EnrichedWorkItem, EnrichedGSDItem]


class EnrichmentResult(BaseModel):
    """Enriched items with token accounting and per-item errors."""

    items: list[EnrichedItem] = Field(default_factory=list)
    total_tokens: int = 0
    truncated: bool = False
    errors: list[str] = Field(default_factory=list)
