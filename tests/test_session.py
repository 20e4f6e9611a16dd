from __future__ import annotations

import asyncio

import pytest

from finsnapshot.domain.errors import NoDataError
from finsnapshot.domain.models.financials import FinancialSnapshot
from finsnapshot.workflows.session import AnalysisSession


async def _settle():
    for _ in range(3):
        await asyncio.sleep(0)


class ScriptedWorkflow:
    """Stands in for ReportWorkflow; each ticker waits on its own gate."""

    def __init__(self):
        self.gates = {}
        self.cancelled = []
        self.closed = 0

    def gate(self, ticker):
        return self.gates.setdefault(ticker, asyncio.Event())

    async def snapshot(self, ticker, providers=None, *, render_charts=False, render_markdown=True):
        try:
            await self.gate(ticker).wait()
        except asyncio.CancelledError:
            self.cancelled.append(ticker)
            raise
        if ticker == "MISSING":
            raise NoDataError(ticker)
        return FinancialSnapshot(ticker=ticker, provider="stub", company_name=ticker, records=[])

    def close(self):
        self.closed += 1


def test_newer_search_supersedes_slow_one():
    async def scenario():
        workflow = ScriptedWorkflow()
        session = AnalysisSession(workflow)

        slow = asyncio.ensure_future(session.search("SLOW"))
        await _settle()
        fast = asyncio.ensure_future(session.search("FAST"))
        await _settle()
        workflow.gate("FAST").set()
        workflow.gate("SLOW").set()
        return workflow, session, await slow, await fast

    workflow, session, slow_result, fast_result = asyncio.run(scenario())

    assert slow_result is None
    assert fast_result.ticker == "FAST"
    assert session.current.ticker == "FAST"
    assert workflow.cancelled == ["SLOW"]


def test_failed_cycle_keeps_previous_snapshot():
    async def scenario():
        workflow = ScriptedWorkflow()
        workflow.gate("GOOD").set()
        workflow.gate("MISSING").set()
        session = AnalysisSession(workflow)
        await session.search("GOOD")
        with pytest.raises(NoDataError):
            await session.search("MISSING")
        return session

    session = asyncio.run(scenario())

    assert session.current.ticker == "GOOD"


def test_clear_resets_and_cancels_inflight():
    async def scenario():
        workflow = ScriptedWorkflow()
        workflow.gate("GOOD").set()
        session = AnalysisSession(workflow)
        await session.search("GOOD")
        pending = asyncio.ensure_future(session.search("SLOW"))
        await _settle()
        session.clear()
        return workflow, session, await pending

    workflow, session, pending_result = asyncio.run(scenario())

    assert pending_result is None
    assert session.current is None
    assert workflow.cancelled == ["SLOW"]
    assert workflow.closed == 1
