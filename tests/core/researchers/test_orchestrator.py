"""Tests for concurrent research orchestration with partial failures."""

import asyncio
from datetime import datetime

import pytest

from ops_briefing.core.researchers.models import (
    ADOData,
    GSDData,
    GSDProject,
    PullRequestData,
    ResearcherOutput,
    ResearchSource,
    WorkItemData,
)
from ops_briefing.core.researchers.orchestrator import (
    ResearchOrchestrator,
    ResearchResults,
    SourceOutcome,
)

NOW = datetime(2024, 1, 15, 9, 0, 0)


class StubResearcher:
    """Researcher returning a fixed output or raising a fixed error."""

    def __init__(self, name, output=None, error=None, delay: float = 0.0):
        self.name = name
        self._output = output
        self._error = error
        self._delay = delay
        self.calls = 0

    async def execute(self):
        self.calls += 1
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._output


def ado_output() -> ResearcherOutput[ADOData]:
    return ResearcherOutput[ADOData](
        source=ResearchSource.AZURE_DEVOPS,
        data=ADOData(
            work_items=[
                WorkItemData(
                    id=1,
                    title="Fix login bug",
                    state="Active",
                    priority=1,
                    created_date=NOW,
                    changed_date=NOW,
                )
            ],
            pull_requests=[
                PullRequestData(
                    id=2,
                    title="Add cache",
                    author="Sam",
                    status="active",
                    created_date=NOW,
                    repository="platform",
                    target_branch="main",
                )
            ],
        ),
    )


def gsd_output() -> ResearcherOutput[GSDData]:
    return ResearcherOutput[GSDData](
        source=ResearchSource.GSD_SCANNER,
        data=GSDData(projects=[GSDProject(path="/work/alpha", name="alpha")]),
    )


class TestResearchOrchestrator:
    """Tests for ResearchOrchestrator.execute."""

    @pytest.mark.asyncio
    async def test_both_succeed(self):
        ado = StubResearcher("ado", output=ado_output())
        gsd = StubResearcher("gsd", output=gsd_output())

        results = await ResearchOrchestrator(ado, gsd).execute()

        assert results.ado.ok and results.gsd.ok
        assert results.has_any_results()
        assert results.total_items() == 3
        assert ado.calls == gsd.calls == 1

    @pytest.mark.asyncio
    async def test_one_failure_keeps_other_source(self, caplog):
        ado = StubResearcher("ado", error=ConnectionError("ADO unreachable"))
        gsd = StubResearcher("gsd", output=gsd_output())

        with caplog.at_level("WARNING"):
            results = await ResearchOrchestrator(ado, gsd).execute()

        assert not results.ado.ok
        assert isinstance(results.ado.error, ConnectionError)
        assert results.gsd.ok
        assert results.total_items() == 1
        assert "Researcher 'ado' failed" in caplog.text

    @pytest.mark.asyncio
    async def test_both_fail(self):
        ado = StubResearcher("ado", error=RuntimeError("boom"))
        gsd = StubResearcher("gsd", error=OSError("no planning files"))

        results = await ResearchOrchestrator(ado, gsd).execute()

        assert not results.has_any_results()
        assert results.total_items() == 0

    @pytest.mark.asyncio
    async def test_runs_concurrently(self):
        """Test a slow researcher does not delay the other's start."""
        started: list[str] = []

        class Tracking(StubResearcher):
            async def execute(self):
                started.append(self.name)
                return await super().execute()

        ado = Tracking("ado", output=ado_output(), delay=0.05)
        gsd = Tracking("gsd", output=gsd_output(), delay=0.05)

        results = await ResearchOrchestrator(ado, gsd).execute()

        assert started == ["ado", "gsd"]
        assert results.has_any_results()

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self):
        ado = StubResearcher("ado", error=asyncio.CancelledError())
        gsd = StubResearcher("gsd", output=gsd_output())

        with pytest.raises(asyncio.CancelledError):
            await ResearchOrchestrator(ado, gsd).execute()


class TestResearchResults:
    """Tests for ResearchResults helpers."""

    def test_success_outcome(self):
        outcome = SourceOutcome.success(gsd_output())
        assert outcome.ok
        assert outcome.error is None

    def test_failure_outcome(self):
        outcome = SourceOutcome.failure(ValueError("bad"))
        assert not outcome.ok
        assert outcome.output is None

    def test_has_any_results_with_one_source(self):
        results = ResearchResults(
            ado=SourceOutcome.failure(RuntimeError("down")),
            gsd=SourceOutcome.success(gsd_output()),
        )
        assert results.has_any_results()
