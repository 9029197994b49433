"""Research orchestrator for concurrent execution of researchers.

Runs the Azure DevOps and GSD researchers side by side. Each researcher
fails independently: a raised exception becomes an error outcome for that
source only, and the other source's data is still delivered.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Generic, Optional, Protocol, TypeVar, runtime_checkable

from ops_briefing.core.researchers.models import ADOData, GSDData, ResearcherOutput

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class Researcher(Protocol[T]):
    """Contract for researcher implementations."""

    name: str

    async def execute(self) -> ResearcherOutput[T]:
        """Gather data, raising on failure."""
        ...


@dataclass
class SourceOutcome(Generic[T]):
    """Result of one researcher: either its output or the error it raised."""

    output: Optional[ResearcherOutput[T]] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.output is not None and self.error is None

    @classmethod
    def success(cls, output: ResearcherOutput[T]) -> "SourceOutcome[T]":
        return cls(output=output)

    @classmethod
    def failure(cls, error: Exception) -> "SourceOutcome[T]":
        return cls(error=error)


@dataclass
class ResearchResults:
    """Combined results from all researchers."""

    ado: SourceOutcome[ADOData]
    gsd: SourceOutcome[GSDData]

    def has_any_results(self) -> bool:
        """True if at least one researcher succeeded."""
        return self.ado.ok or self.gsd.ok

    def total_items(self) -> int:
        """Total items found across successful researchers."""
        total = 0
        if self.ado.ok and self.ado.output is not None:
            data = self.ado.output.data
            total += len(data.work_items) + len(data.pull_requests)
        if self.gsd.ok and self.gsd.output is not None:
            total += len(self.gsd.output.data.projects)
        return total


class ResearchOrchestrator:
    """Executes the ADO and GSD researchers concurrently.

    Example:
        orchestrator = ResearchOrchestrator(ado_researcher, gsd_researcher)
        results = await orchestrator.execute()
        if results.has_any_results():
            context = await engine.from_research_results(results)
    """

    def __init__(
        self,
        ado_researcher: Researcher[ADOData],
        gsd_researcher: Researcher[GSDData],
    ):
        self._ado_researcher = ado_researcher
        self._gsd_researcher = gsd_researcher

    async def execute(self) -> ResearchResults:
        """Run all researchers; never raises for a researcher failure."""
        start_time = time.perf_counter()
        logger.info("Starting parallel research execution")

        ado_raw, gsd_raw = await asyncio.gather(
            self._ado_researcher.execute(),
            self._gsd_researcher.execute(),
            return_exceptions=True,
        )

        results = ResearchResults(
            ado=self._to_outcome(self._ado_researcher, ado_raw),
            gsd=self._to_outcome(self._gsd_researcher, gsd_raw),
        )

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"Research completed in {duration_ms:.0f}ms")
        return results

    @staticmethod
    def _to_outcome(researcher: Researcher[T], raw: object) -> SourceOutcome[T]:
        if isinstance(raw, BaseException):
            if not isinstance(raw, Exception):
                raise raw
            logger.warning(
                f"Researcher '{getattr(researcher, 'name', 'unknown')}' failed: {raw}"
            )
            return SourceOutcome.failure(raw)
        return SourceOutcome.success(raw)  # type: ignore[arg-type]
