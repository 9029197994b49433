"""Core context assembly and enrichment for ops-briefing."""

from ops_briefing.core.context import (
    BudgetOverflowError,
    ContextEngine,
    TokenBudget,
    TokenCounter,
)
from ops_briefing.core.enrichment import (
    DegradationPipeline,
    Enricher,
    EnrichmentCache,
)

__all__ = [
    "BudgetOverflowError",
    "ContextEngine",
    "TokenBudget",
    "TokenCounter",
    "DegradationPipeline",
    "Enricher",
    "EnrichmentCache",
]
