"""Item enrichment with caching and token-budget degradation.

This package enriches top-scored items with full text, caches the results
per workflow run and fits the enriched list into a hard token budget.
"""

from ops_briefing.core.enrichment.cache import CacheStats, EnrichmentCache
from ops_briefing.core.enrichment.degradation import (
    PROTECTED_PREFIX_SIZE,
    DegradationPhase,
    DegradationPipeline,
    DegradationResult,
)
from ops_briefing.core.enrichment.enricher import (
    Enricher,
    ProjectEnricher,
    WorkItemEnricher,
)
from ops_briefing.core.enrichment.models import (
    ADOComment,
    EnrichedGSDItem,
    EnrichedItem,
    EnrichedRelation,
    EnrichedWorkItem,
    EnrichmentResult,
    ScoredItem,
    ScoredItemType,
)
from ops_briefing.core.enrichment.truncation import (
    truncate_comments,
    truncate_to_token_budget,
)

__all__ = [
    # Cache
    "CacheStats",
    "EnrichmentCache",
    # Degradation
    "PROTECTED_PREFIX_SIZE",
    "DegradationPhase",
    "DegradationPipeline",
    "DegradationResult",
    # Orchestration
    "Enricher",
    "ProjectEnricher",
    "WorkItemEnricher",
    # Models
    "ADOComment",
    "EnrichedGSDItem",
    "EnrichedItem",
    "EnrichedRelation",
    "EnrichedWorkItem",
    "EnrichmentResult",
    "ScoredItem",
    "ScoredItemType",
    # Truncation
    "truncate_comments",
    "truncate_to_token_budget",
]
