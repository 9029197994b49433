"""Data types for the context engine.

Compressed researcher types drop low-value fields (dates, paths, metadata)
before XML generation. ``ContextSection`` and ``ContextStats`` describe the
assembled context and its token usage.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Optional


@dataclass
class CompressedWorkItem:
    """Work item reduced to the fields a briefing needs.

    Drops created/changed dates, sprint path and blocking links. ``tags`` is
    only set when the source item has tags.
    """

    id: int
    title: str
    state: str
    priority: int
    assigned_to: Optional[str] = None
    tags: Optional[list[str]] = None


@dataclass
class CompressedPR:
    """Pull request with reviewer votes summarized (e.g. "2/3 approved")."""

    id: int
    title: str
    author: str
    status: str
    repository: str
    reviewer_summary: str


@dataclass
class CompressedProject:
    """GSD project with at most three remaining tasks."""

    name: str
    current_phase: Optional[str] = None
    status: Optional[str] = None
    remaining_tasks: Optional[list[str]] = None
    blockers: Optional[list[str]] = None


@dataclass
class ContextSection:
    """A named, priced, prioritized block of formatted context.

    Attributes:
        name: Section identifier, unique within one engine
        content: Formatted section text (XML)
        priority: Overflow priority (higher = kept)
        tokens: Token cost of ``content``
    """

    name: str
    content: str
    priority: int
    tokens: int = 0

    def __post_init__(self) -> None:
        if self.tokens < 0:
            raise ValueError(f"tokens must be non-negative, got {self.tokens}")


@dataclass(frozen=True)
class SectionStat:
    name: str
    tokens: int
    priority: int


@dataclass
class ContextStats:
    """Token usage of an assembled context.

    Attributes:
        total_tokens: Sum of section tokens
        remaining_tokens: Budget left
        section_count: Number of admitted sections
        sections: Per-section breakdown in admission order
    """

    total_tokens: int
    remaining_tokens: int
    section_count: int
    sections: list[SectionStat] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
