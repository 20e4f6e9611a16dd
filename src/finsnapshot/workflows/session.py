"""Single-slot analysis session guarding against stale fetch cycles."""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Sequence

from finsnapshot.domain.models.financials import FinancialSnapshot
from finsnapshot.workflows.graph import ReportWorkflow

logger = logging.getLogger(__name__)


class AnalysisSession:
    """Owns the currently displayed snapshot.

    Each ``search`` starts a new cycle and cancels the one still in flight.
    Only the newest cycle may replace ``current``; a failed cycle leaves it
    untouched and a superseded cycle resolves to ``None``.
    """

    def __init__(self, workflow: ReportWorkflow) -> None:
        self._workflow = workflow
        self._generation = 0
        self._task: Optional[asyncio.Future] = None
        self._current: Optional[FinancialSnapshot] = None

    @property
    def current(self) -> Optional[FinancialSnapshot]:
        return self._current

    @property
    def generation(self) -> int:
        return self._generation

    async def search(
        self,
        ticker: str,
        providers: Optional[Sequence[str]] = None,
        *,
        render_charts: bool = False,
        render_markdown: bool = True,
    ) -> Optional[FinancialSnapshot]:
        self._generation += 1
        generation = self._generation
        self._cancel_inflight()

        task = asyncio.ensure_future(
            self._workflow.snapshot(
                ticker,
                providers,
                render_charts=render_charts,
                render_markdown=render_markdown,
            )
        )
        self._task = task
        try:
            snapshot = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.info("Cycle %d for %s superseded before completion", generation, ticker)
                return None
            raise
        except Exception:
            if generation != self._generation:
                logger.info("Ignoring failure from superseded cycle %d for %s", generation, ticker)
                return None
            raise
        finally:
            if self._task is task:
                self._task = None

        if generation != self._generation:
            logger.info("Discarding result of superseded cycle %d for %s", generation, ticker)
            return None
        self._current = snapshot
        return snapshot

    def clear(self) -> None:
        """Drop the current snapshot and abandon any cycle in flight."""
        self._generation += 1
        self._cancel_inflight()
        self._current = None
        self._workflow.close()

    def _cancel_inflight(self) -> None:
        if self._task is not None and not self._task.done():
            logger.info("Cancelling in-flight cycle")
            self._task.cancel()
        self._task = None
