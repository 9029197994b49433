"""Tests for the Enricher orchestration.

Tests cover:
1. Top-N selection and routing per item type
2. Per-item error isolation
3. Cache reuse across calls
4. Budget enforcement through the degradation pipeline
"""

from unittest.mock import AsyncMock

import pytest

from ops_briefing.config import EnrichmentConfig
from ops_briefing.core.enrichment.cache import EnrichmentCache
from ops_briefing.core.enrichment.enricher import Enricher
from ops_briefing.core.enrichment.models import (
    EnrichedGSDItem,
    EnrichedWorkItem,
    ScoredItem,
    ScoredItemType,
)


def work_item(item_id: int, description: str = "Details.") -> EnrichedWorkItem:
    return EnrichedWorkItem(id=item_id, title=f"Work item {item_id}", description=description)


def scored(item_type: ScoredItemType, item_id, score: float = 1.0) -> ScoredItem:
    return ScoredItem(type=item_type, id=item_id, title=str(item_id), score=score)


@pytest.fixture
def ado_enricher():
    enricher = AsyncMock()
    enricher.enrich.side_effect = lambda item_id: work_item(item_id)
    return enricher


@pytest.fixture
def gsd_enricher():
    enricher = AsyncMock()
    enricher.enrich.side_effect = lambda path: EnrichedGSDItem(
        path=path, name=path.rsplit("/", 1)[-1], goal_description="Ship it."
    )
    return enricher


class TestEnrichTopItems:
    """Tests for enrich_top_items."""

    @pytest.mark.asyncio
    async def test_empty_input(self, ado_enricher):
        result = await Enricher(ado_enricher).enrich_top_items([])
        assert result.items == []
        assert result.truncated is False
        ado_enricher.enrich.assert_not_called()

    @pytest.mark.asyncio
    async def test_only_top_n_enriched(self, ado_enricher):
        """Test only the configured number of items is enriched, in order."""
        items = [scored(ScoredItemType.WORK_ITEM, i) for i in range(15)]
        enricher = Enricher(ado_enricher, config=EnrichmentConfig(count=10))

        result = await enricher.enrich_top_items(items)

        assert [item.id for item in result.items] == list(range(10))
        assert ado_enricher.enrich.await_count == 10
        assert result.total_tokens > 0

    @pytest.mark.asyncio
    async def test_routes_by_type(self, ado_enricher, gsd_enricher):
        """Test work items and projects reach their enrichers; PRs are skipped."""
        items = [
            scored(ScoredItemType.WORK_ITEM, 1),
            scored(ScoredItemType.PULL_REQUEST, 7),
            scored(ScoredItemType.GSD_PROJECT, "/work/alpha"),
        ]

        result = await Enricher(ado_enricher, gsd_enricher).enrich_top_items(items)

        assert len(result.items) == 2
        assert isinstance(result.items[0], EnrichedWorkItem)
        assert isinstance(result.items[1], EnrichedGSDItem)
        assert result.items[1].name == "alpha"
        gsd_enricher.enrich.assert_awaited_once_with("/work/alpha")
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_projects_skipped_without_gsd_enricher(self, ado_enricher):
        items = [scored(ScoredItemType.GSD_PROJECT, "/work/alpha")]
        result = await Enricher(ado_enricher).enrich_top_items(items)
        assert result.items == []
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_missing_project_contributes_nothing(self, ado_enricher):
        gsd = AsyncMock()
        gsd.enrich.return_value = None
        enricher = Enricher(ado_enricher, gsd)

        result = await enricher.enrich_top_items([scored(ScoredItemType.GSD_PROJECT, "/gone")])

        assert result.items == []
        assert enricher.cache.stats().keys == 0

    @pytest.mark.asyncio
    async def test_failures_recorded_per_item(self, caplog):
        """Test one failing item does not abort the others."""

        async def enrich(item_id: int) -> EnrichedWorkItem:
            if item_id == 2:
                raise RuntimeError("404 Not Found")
            return work_item(item_id)

        ado = AsyncMock()
        ado.enrich.side_effect = enrich
        items = [scored(ScoredItemType.WORK_ITEM, i) for i in (1, 2, 3)]

        with caplog.at_level("WARNING"):
            result = await Enricher(ado).enrich_top_items(items)

        assert [item.id for item in result.items] == [1, 3]
        assert result.errors == ["Work item 2: 404 Not Found"]
        assert "Enrichment failed" in caplog.text

    @pytest.mark.asyncio
    async def test_project_failure_message(self, ado_enricher):
        gsd = AsyncMock()
        gsd.enrich.side_effect = OSError("permission denied")

        result = await Enricher(ado_enricher, gsd).enrich_top_items(
            [scored(ScoredItemType.GSD_PROJECT, "/work/beta")]
        )

        assert result.errors == ["Project /work/beta: permission denied"]


class TestEnricherCaching:
    """Tests for cache reuse."""

    @pytest.mark.asyncio
    async def test_second_call_served_from_cache(self, ado_enricher, gsd_enricher):
        enricher = Enricher(ado_enricher, gsd_enricher)
        items = [
            scored(ScoredItemType.WORK_ITEM, 1),
            scored(ScoredItemType.GSD_PROJECT, "/work/alpha/"),
        ]

        first = await enricher.enrich_top_items(items)
        second = await enricher.enrich_top_items(items)

        assert first.items == second.items
        assert ado_enricher.enrich.await_count == 1
        assert gsd_enricher.enrich.await_count == 1
        assert enricher.cache.stats().hits == 2

    @pytest.mark.asyncio
    async def test_shared_cache(self, ado_enricher):
        cache = EnrichmentCache()
        cache.set(EnrichmentCache.build_ado_key(5), work_item(5, "Cached."))

        result = await Enricher(ado_enricher, cache=cache).enrich_top_items(
            [scored(ScoredItemType.WORK_ITEM, 5)]
        )

        assert result.items[0].description == "Cached."
        ado_enricher.enrich.assert_not_called()

    @pytest.mark.asyncio
    async def test_zero_ttl_disables_cache(self, ado_enricher):
        enricher = Enricher(ado_enricher, config=EnrichmentConfig(cache_ttl=0))
        items = [scored(ScoredItemType.WORK_ITEM, 1)]

        await enricher.enrich_top_items(items)
        await enricher.enrich_top_items(items)

        assert enricher.cache.enabled is False
        assert ado_enricher.enrich.await_count == 2

    @pytest.mark.asyncio
    async def test_failures_not_cached(self):
        ado = AsyncMock()
        ado.enrich.side_effect = [RuntimeError("timeout"), work_item(1)]
        enricher = Enricher(ado)
        items = [scored(ScoredItemType.WORK_ITEM, 1)]

        first = await enricher.enrich_top_items(items)
        second = await enricher.enrich_top_items(items)

        assert first.errors == ["Work item 1: timeout"]
        assert [item.id for item in second.items] == [1]


class TestEnricherBudget:
    """Tests for token budget enforcement."""

    @pytest.mark.asyncio
    async def test_within_budget_not_truncated(self, ado_enricher):
        items = [scored(ScoredItemType.WORK_ITEM, i) for i in range(3)]
        result = await Enricher(ado_enricher).enrich_top_items(items)
        assert result.truncated is False

    @pytest.mark.asyncio
    async def test_over_budget_is_degraded(self):
        """Test large enrichments are truncated but keep the protected top items."""
        ado = AsyncMock()
        ado.enrich.side_effect = lambda item_id: work_item(item_id, "Long detail. " * 500)
        items = [scored(ScoredItemType.WORK_ITEM, i) for i in range(10)]
        enricher = Enricher(ado, config=EnrichmentConfig(budget=500, protected_count=5))

        result = await enricher.enrich_top_items(items)

        assert result.truncated is True
        assert len(result.items) >= 5
        assert [item.id for item in result.items[:5]] == [0, 1, 2, 3, 4]
        assert all(len(item.description) <= 400 for item in result.items)
