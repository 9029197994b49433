"""Graceful degradation of enriched items under a hard token budget.

The DegradationPipeline shrinks a rank-ordered list of enriched items until
it fits a token budget, sacrificing the least important content first:

1. TRUNCATE_COMMENTS: trim each work item's comments to a small per-item
   budget, dropping the oldest first
2. TRUNCATE_DESCRIPTIONS: trim each item's description (or goal) to a
   per-item budget at a sentence boundary
3. DROP_TRAILING: drop items from the tail one at a time, never touching
   the protected prefix of top-ranked items
4. PROTECTED_ONLY: keep only the protected prefix, whatever it costs

Phases are cumulative and each runs only while the list is still over
budget. Items are never reordered, and a list that already fits is
returned unchanged.

Usage:
    from ops_briefing.core.enrichment.degradation import DegradationPipeline

    pipeline = DegradationPipeline(protected_count=5)
    result = pipeline.degrade(enriched_items, budget=2000)
    if result.truncated:
        logger.info(f"Degraded via {[p.value for p in result.phases_applied]}")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Sequence

from ops_briefing.core.context.token_counter import estimate_tokens
from ops_briefing.core.enrichment.models import (
    EnrichedGSDItem,
    EnrichedItem,
    EnrichedWorkItem,
)
from ops_briefing.core.enrichment.truncation import (
    COMMENT_OVERHEAD_TOKENS,
    truncate_comments,
    truncate_to_token_budget,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Degradation Constants
# =============================================================================

# Number of top-ranked items that are never dropped
PROTECTED_PREFIX_SIZE = 5

# Per-item token budget for comments in phase 1
COMMENT_TOKEN_BUDGET = 100

# Per-item token budget for descriptions in phase 2
DESCRIPTION_TOKEN_BUDGET = 100

# Base metadata overhead per item (ids, state, markup)
ITEM_OVERHEAD_TOKENS = 40

# Structural overhead per relation (type, markup)
RELATION_OVERHEAD_TOKENS = 5


class DegradationPhase(str, Enum):
    """Degradation phases, in the order they are applied."""

    TRUNCATE_COMMENTS = "truncate_comments"
    TRUNCATE_DESCRIPTIONS = "truncate_descriptions"
    DROP_TRAILING = "drop_trailing"
    PROTECTED_ONLY = "protected_only"


@dataclass
class DegradationResult:
    """Result of running the degradation pipeline.

    Attributes:
        items: Items after degradation, in their original rank order
        total_tokens: Estimated tokens of ``items``
        budget: Budget the pipeline ran against
        truncated: Whether the input exceeded the budget (any phase ran)
        phases_applied: Phases that ran, in order
        dropped_count: Number of trailing items removed
        warnings: Human-readable notes about what was degraded
    """

    items: list[EnrichedItem] = field(default_factory=list)
    total_tokens: int = 0
    budget: int = 0
    truncated: bool = False
    phases_applied: list[DegradationPhase] = field(default_factory=list)
    dropped_count: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def fits(self) -> bool:
        """Whether the result is within budget."""
        return self.total_tokens <= self.budget

    def to_dict(self) -> dict[str, Any]:
        return {
            "item_count": len(self.items),
            "total_tokens": self.total_tokens,
            "budget": self.budget,
            "truncated": self.truncated,
            "fits": self.fits,
            "phases_applied": [p.value for p in self.phases_applied],
            "dropped_count": self.dropped_count,
            "warnings": self.warnings,
        }


class DegradationPipeline:
    """Fits a ranked list of enriched items into a token budget.

    The protected prefix is authoritative: if even the protected items alone
    exceed the budget, they are still returned (best effort, no error).

    Attributes:
        protected_count: Highest-ranked items that are never dropped
        comment_budget: Per-item comment budget for phase 1
        description_budget: Per-item description budget for phase 2

    Example:
        pipeline = DegradationPipeline(protected_count=5, comment_budget=100)
        result = pipeline.degrade(items, budget=2000)
        if not result.fits:
            logger.warning(
                f"Protected items alone need {result.total_tokens} tokens "
                f"after {[p.value for p in result.phases_applied]}"
            )
    """

    def __init__(
        self,
        *,
        protected_count: int = PROTECTED_PREFIX_SIZE,
        comment_budget: int = COMMENT_TOKEN_BUDGET,
        description_budget: int = DESCRIPTION_TOKEN_BUDGET,
        token_estimator: Optional[Callable[[str], int]] = None,
    ):
        """Initialize the degradation pipeline.

        Args:
            protected_count: Number of top-ranked items never dropped
            comment_budget: Per-item token budget for comments
            description_budget: Per-item token budget for descriptions
            token_estimator: Custom function to estimate tokens for text.
                If not provided, uses the 4 chars/token approximation.
                Also sizes the comment and description truncation, so both
                per-item budgets are in the estimator's units.

        Raises:
            ValueError: If any count or budget is negative
        """
        for label, value in (
            ("protected_count", protected_count),
            ("comment_budget", comment_budget),
            ("description_budget", description_budget),
        ):
            if value < 0:
                raise ValueError(f"{label} must be non-negative, got {value}")

        self.protected_count = protected_count
        self.comment_budget = comment_budget
        self.description_budget = description_budget
        self._estimate = token_estimator or estimate_tokens

    def _tokens(self, text: Optional[str]) -> int:
        return self._estimate(text) if text else 0

    def item_tokens(self, item: EnrichedItem) -> int:
        """Estimated tokens for one item, including structural overhead."""
        if isinstance(item, EnrichedWorkItem):
            total = self._tokens(item.title)
            total += self._tokens(item.description)
            for comment in item.comments:
                total += self._tokens(comment.text)
                total += self._tokens(comment.created_by)
                total += COMMENT_OVERHEAD_TOKENS
            total += self._tokens(item.sprint_path)
            total += self._tokens(item.area_path)
            total += sum(self._tokens(tag) for tag in item.tags)
            for relation in item.relations:
                total += self._tokens(relation.title)
                total += RELATION_OVERHEAD_TOKENS
        else:
            total = self._tokens(item.name)
            total += self._tokens(item.goal_description)
            total += self._tokens(item.summary)
            total += self._tokens(item.current_phase)
            total += self._tokens(item.status)
        return total + ITEM_OVERHEAD_TOKENS

    def total_tokens(self, items: Sequence[EnrichedItem]) -> int:
        """Estimated tokens for a list of items."""
        return sum(self.item_tokens(item) for item in items)

    def _truncate_comments(self, items: list[EnrichedItem]) -> list[EnrichedItem]:
        result: list[EnrichedItem] = []
        for item in items:
            if isinstance(item, EnrichedWorkItem) and item.comments:
                kept = truncate_comments(item.comments, self.comment_budget, self._estimate)
                if len(kept) != len(item.comments):
                    item = item.model_copy(update={"comments": kept})
            result.append(item)
        return result

    def _truncate_descriptions(self, items: list[EnrichedItem]) -> list[EnrichedItem]:
        result: list[EnrichedItem] = []
        for item in items:
            if isinstance(item, EnrichedWorkItem) and item.description:
                shortened = truncate_to_token_budget(
                    item.description, self.description_budget, self._estimate
                )
                if shortened != item.description:
                    item = item.model_copy(update={"description": shortened})
            elif isinstance(item, EnrichedGSDItem) and item.goal_description:
                shortened = truncate_to_token_budget(
                    item.goal_description, self.description_budget, self._estimate
                )
                if shortened != item.goal_description:
                    item = item.model_copy(update={"goal_description": shortened})
            result.append(item)
        return result

    def degrade(self, items: Sequence[EnrichedItem], budget: int) -> DegradationResult:
        """Run the degradation pipeline on items to fit budget.

        Args:
            items: Enriched items, highest rank first
            budget: Hard token budget

        Returns:
            DegradationResult with the surviving items and metadata

        Raises:
            ValueError: If budget is negative
        """
        if budget < 0:
            raise ValueError(f"budget must be non-negative, got {budget}")

        result = list(items)
        current = self.total_tokens(result)
        if current <= budget:
            return DegradationResult(items=result, total_tokens=current, budget=budget)

        original_count = len(result)
        phases: list[DegradationPhase] = []
        warnings: list[str] = []
        logger.debug(f"Enriched items over budget: {current} > {budget} tokens")

        def finish() -> DegradationResult:
            return DegradationResult(
                items=result,
                total_tokens=current,
                budget=budget,
                truncated=True,
                phases_applied=phases,
                dropped_count=original_count - len(result),
                warnings=warnings,
            )

        # Phase 1: comments, oldest first
        result = self._truncate_comments(result)
        phases.append(DegradationPhase.TRUNCATE_COMMENTS)
        previous, current = current, self.total_tokens(result)
        warnings.append(f"COMMENTS_TRUNCATED: {previous} -> {current} tokens")
        if current <= budget:
            return finish()

        # Phase 2: descriptions at sentence boundaries
        result = self._truncate_descriptions(result)
        phases.append(DegradationPhase.TRUNCATE_DESCRIPTIONS)
        previous, current = current, self.total_tokens(result)
        warnings.append(f"DESCRIPTIONS_TRUNCATED: {previous} -> {current} tokens")
        if current <= budget:
            return finish()

        # Phase 3: drop from the tail, stopping at the protected prefix
        if len(result) > self.protected_count:
            phases.append(DegradationPhase.DROP_TRAILING)
            while len(result) > self.protected_count:
                dropped = result.pop()
                current -= self.item_tokens(dropped)
                if current <= budget:
                    break
            warnings.append(
                f"ITEMS_DROPPED: kept {len(result)} of {original_count} items"
            )
            if current <= budget:
                return finish()

        # Last resort: the protected prefix is delivered regardless of cost
        phases.append(DegradationPhase.PROTECTED_ONLY)
        result = result[: self.protected_count]
        current = self.total_tokens(result)
        warnings.append(
            f"PROTECTED_OVERFLOW: {len(result)} protected items use {current} "
            f"tokens (budget {budget})"
        )
        logger.warning(
            f"Protected items exceed enrichment budget: {current} > {budget} tokens"
        )
        return finish()
