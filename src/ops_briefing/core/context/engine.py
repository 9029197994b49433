"""Context engine for assembling LLM context from research results.

The ContextEngine orchestrates context assembly with:
- Token counting via TokenCounter (exact API count, approximate fallback)
- Priority-based overflow handling via TokenBudget
- Section ordering that puts the most important material first

The engine's section store is the single source of truth. The TokenBudget
it consults is a projection of that store (name, tokens, priority), rebuilt
on demand, so the two can never disagree.

Usage:
    from ops_briefing.core.context.engine import ContextEngine

    engine = ContextEngine(ContextConfig(total_budget=4000))
    context = await engine.from_research_results(results)
    print(engine.get_stats().to_dict())
"""

from __future__ import annotations

import logging
from typing import Optional

from ops_briefing.config import ContextConfig, SectionPriorities
from ops_briefing.core.context.sections import (
    build_projects_section,
    build_pull_requests_section,
    build_work_items_section,
)
from ops_briefing.core.context.token_budget import BudgetOverflowError, TokenBudget
from ops_briefing.core.context.token_counter import TokenCounter
from ops_briefing.core.context.types import ContextSection, ContextStats, SectionStat
from ops_briefing.core.researchers.orchestrator import ResearchResults

logger = logging.getLogger(__name__)

EMPTY_CONTEXT = "<context />"


class ContextEngine:
    """Assembles prioritized sections into one budget-bounded document.

    Not safe for concurrent use; each assembly run should own an engine,
    and reuse across runs requires ``reset()``.

    Example:
        engine = ContextEngine(ContextConfig(total_budget=2000))
        await engine.add_section("work_items", work_items_xml, 10)
        try:
            await engine.add_section("projects", projects_xml, 6)
        except BudgetOverflowError as e:
            logger.info(f"projects dropped, short by {e.shortfall}")
        prompt_context = engine.build()
    """

    def __init__(
        self,
        config: Optional[ContextConfig] = None,
        *,
        token_counter: Optional[TokenCounter] = None,
    ):
        """Initialize the context engine.

        Args:
            config: Engine configuration (budget, model, priorities).
                Defaults to ContextConfig().
            token_counter: Counter used to price sections. If not provided,
                one is built from the config's API key, model and timeout.
        """
        self._config = config or ContextConfig()
        if self._config.total_budget < 0:
            raise ValueError(
                f"total_budget must be non-negative, got {self._config.total_budget}"
            )
        self._counter = token_counter or TokenCounter(
            api_key=self._config.api_key,
            model=self._config.model,
            base_url=self._config.api_base_url,
            timeout=self._config.timeout,
        )
        self._sections: dict[str, ContextSection] = {}

    @property
    def config(self) -> ContextConfig:
        return self._config

    @property
    def priorities(self) -> SectionPriorities:
        return self._config.priorities

    @property
    def token_counter(self) -> TokenCounter:
        return self._counter

    @property
    def budget(self) -> TokenBudget:
        """Ledger view of the admitted sections (a fresh copy per access)."""
        return self._project_budget()

    @property
    def sections(self) -> list[ContextSection]:
        """Admitted sections in admission order."""
        return list(self._sections.values())

    def _project_budget(self, exclude: Optional[str] = None) -> TokenBudget:
        budget = TokenBudget(
            self._config.total_budget,
            atomic_overflow=self._config.atomic_overflow,
        )
        for section in self._sections.values():
            if section.name != exclude:
                budget.allocate(section.name, section.tokens, section.priority)
        return budget

    async def count_tokens(self, text: str) -> int:
        """Count tokens in text with the configured counter."""
        return await self._counter.count(text)

    async def add_section(self, name: str, content: str, priority: int) -> None:
        """Add a section to the context.

        Counts tokens and either admits the section directly, or evicts
        lower-priority sections to make room. Adding a name that is already
        admitted replaces that section.

        Args:
            name: Section name (identifier)
            content: Formatted section content
            priority: Priority for overflow handling (higher = keep)

        Raises:
            BudgetOverflowError: If the section cannot fit even after
                evicting every lower-priority section. The section is not
                admitted.
        """
        tokens = await self.count_tokens(content)
        budget = self._project_budget(exclude=name)

        if not budget.can_allocate(tokens):
            try:
                dropped = budget.handle_overflow(name, tokens, priority)
            except BudgetOverflowError as e:
                for evicted in e.evicted:
                    self._sections.pop(evicted, None)
                logger.debug(
                    f"Section '{name}' rejected: {e.shortfall} tokens over budget"
                )
                raise

            for evicted in dropped:
                self._sections.pop(evicted, None)
            if dropped:
                logger.debug(f"Section '{name}' evicted lower-priority sections: {dropped}")

        self._sections.pop(name, None)
        self._sections[name] = ContextSection(
            name=name, content=content, priority=priority, tokens=tokens
        )
        logger.debug(f"Added section '{name}' ({tokens} tokens, priority={priority})")

    def build(self) -> str:
        """Build the final context string.

        Sections are ordered by priority, highest first, so the most
        important material sits at the start of the prompt where models
        attend to it most reliably. Equal priorities keep admission order.

        Returns:
            ``<context />`` when empty, otherwise the sections joined by a
            blank line inside ``<context>...</context>``
        """
        if not self._sections:
            return EMPTY_CONTEXT

        ordered = sorted(self._sections.values(), key=lambda s: -s.priority)
        body = "\n\n".join(s.content for s in ordered)
        return f"<context>\n{body}\n</context>"

    def get_stats(self) -> ContextStats:
        """Token usage statistics for the current context."""
        used = sum(s.tokens for s in self._sections.values())
        return ContextStats(
            total_tokens=used,
            remaining_tokens=self._config.total_budget - used,
            section_count=len(self._sections),
            sections=[
                SectionStat(name=s.name, tokens=s.tokens, priority=s.priority)
                for s in self._sections.values()
            ],
        )

    async def from_research_results(self, results: ResearchResults) -> str:
        """Build context from research results.

        Adds every available section with its configured priority:
        - work_items (default 10): daily work focus
        - pull_requests (default 8): code review urgency
        - projects (default 6): project awareness

        Failed researchers and empty lists contribute nothing. A section
        that does not fit is logged and skipped; assembly always completes.

        Args:
            results: Research results from the orchestrator

        Returns:
            The assembled context string
        """
        priorities = self._config.priorities

        if results.ado.ok and results.ado.output is not None:
            ado = results.ado.output.data
            if ado.work_items:
                await self._add_optional_section(
                    "work_items",
                    build_work_items_section(ado.work_items),
                    priorities.work_items,
                )
            if ado.pull_requests:
                await self._add_optional_section(
                    "pull_requests",
                    build_pull_requests_section(ado.pull_requests),
                    priorities.pull_requests,
                )
        elif results.ado.error is not None:
            logger.warning(f"Skipping ADO sections: {results.ado.error}")

        if results.gsd.ok and results.gsd.output is not None:
            gsd = results.gsd.output.data
            if gsd.projects:
                await self._add_optional_section(
                    "projects",
                    build_projects_section(gsd.projects),
                    priorities.projects,
                )
        elif results.gsd.error is not None:
            logger.warning(f"Skipping GSD sections: {results.gsd.error}")

        return self.build()

    async def _add_optional_section(self, name: str, content: str, priority: int) -> None:
        try:
            await self.add_section(name, content, priority)
        except BudgetOverflowError as e:
            logger.warning(f"Could not fit {name} section ({e.shortfall} tokens short)")

    def reset(self) -> None:
        """Clear all sections so the engine can assemble a new context."""
        self._sections.clear()
