"""Enrichment orchestrator.

The Enricher takes scored items, selects the top N, enriches them through
the matching source enricher, caches results and enforces the enrichment
token budget through the DegradationPipeline.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from ops_briefing.config import EnrichmentConfig
from ops_briefing.core.enrichment.cache import EnrichmentCache
from ops_briefing.core.enrichment.degradation import DegradationPipeline
from ops_briefing.core.enrichment.models import (
    EnrichedGSDItem,
    EnrichedItem,
    EnrichedWorkItem,
    EnrichmentResult,
    ScoredItem,
    ScoredItemType,
)

logger = logging.getLogger(__name__)


class WorkItemEnricher(Protocol):
    """Fetches description, comments and relations for a work item."""

    async def enrich(self, work_item_id: int) -> EnrichedWorkItem: ...


class ProjectEnricher(Protocol):
    """Reads goal and summary details for a GSD project."""

    async def enrich(self, project_path: str) -> Optional[EnrichedGSDItem]: ...


class Enricher:
    """Coordinates enrichment with caching and token budget enforcement.

    The cache is owned by this instance; create one Enricher per workflow
    run, or pass a shared cache explicitly.

    Example:
        enricher = Enricher(ado_enricher, gsd_enricher, config=EnrichmentConfig())
        result = await enricher.enrich_top_items(scored_items)
        for error in result.errors:
            logger.warning(error)
    """

    def __init__(
        self,
        ado_enricher: WorkItemEnricher,
        gsd_enricher: Optional[ProjectEnricher] = None,
        *,
        config: Optional[EnrichmentConfig] = None,
        cache: Optional[EnrichmentCache] = None,
        pipeline: Optional[DegradationPipeline] = None,
    ):
        self._ado_enricher = ado_enricher
        self._gsd_enricher = gsd_enricher
        self._config = config or EnrichmentConfig()
        if cache is not None:
            self._cache = cache
        elif self._config.cache_ttl > 0:
            self._cache = EnrichmentCache(self._config.cache_ttl)
        else:
            # cache_ttl = 0 turns caching off
            self._cache = EnrichmentCache(enabled=False)
        self._pipeline = pipeline or DegradationPipeline(
            protected_count=self._config.protected_count,
            comment_budget=self._config.comment_budget,
            description_budget=self._config.description_budget,
        )

    @property
    def cache(self) -> EnrichmentCache:
        return self._cache

    @property
    def pipeline(self) -> DegradationPipeline:
        return self._pipeline

    async def enrich_top_items(self, scored_items: Sequence[ScoredItem]) -> EnrichmentResult:
        """Enrich the top N scored items.

        Args:
            scored_items: Items sorted by score, highest first

        Returns:
            EnrichmentResult with items, token count, truncation flag and
            one error string per item that failed to enrich
        """
        if not scored_items:
            return EnrichmentResult()

        errors: list[str] = []
        items: list[EnrichedItem] = []

        for scored_item in scored_items[: self._config.count]:
            try:
                enriched = await self._enrich_item(scored_item)
            except Exception as e:
                message = self._build_error_message(scored_item, e)
                logger.warning(f"Enrichment failed: {message}")
                errors.append(message)
                continue
            if enriched is not None:
                items.append(enriched)

        degraded = self._pipeline.degrade(items, self._config.budget)
        if degraded.truncated:
            logger.info(
                f"Enrichment truncated to {degraded.total_tokens} tokens "
                f"({len(degraded.items)}/{len(items)} items kept)"
            )

        return EnrichmentResult(
            items=degraded.items,
            total_tokens=degraded.total_tokens,
            truncated=degraded.truncated,
            errors=errors,
        )

    async def _enrich_item(self, scored_item: ScoredItem) -> Optional[EnrichedItem]:
        """Route a scored item to its enricher; None means skip."""
        if scored_item.type == ScoredItemType.WORK_ITEM:
            work_item_id = int(scored_item.id)
            key = EnrichmentCache.build_ado_key(work_item_id)
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            enriched = await self._ado_enricher.enrich(work_item_id)
            self._cache.set(key, enriched)
            return enriched

        if scored_item.type == ScoredItemType.GSD_PROJECT:
            if self._gsd_enricher is None:
                return None
            project_path = str(scored_item.id)
            key = EnrichmentCache.build_gsd_key(project_path)
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            enriched_project = await self._gsd_enricher.enrich(project_path)
            if enriched_project is not None:
                self._cache.set(key, enriched_project)
            return enriched_project

        # Pull requests already carry everything the briefing needs
        return None

    @staticmethod
    def _build_error_message(scored_item: ScoredItem, error: Exception) -> str:
        if scored_item.type == ScoredItemType.WORK_ITEM:
            return f"Work item {scored_item.id}: {error}"
        if scored_item.type == ScoredItemType.PULL_REQUEST:
            return f"Pull request {scored_item.id}: {error}"
        return f"Project {scored_item.id}: {error}"
