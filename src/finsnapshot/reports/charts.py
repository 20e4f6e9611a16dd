"""Chart rendering for the five-year snapshot.

Figures are owned by a ``ChartBoard`` instance: ``render`` replaces whatever
the board held before and ``destroy`` releases it. Figures are built with
the ``Figure`` API and never registered with pyplot.
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from matplotlib.figure import Figure

from finsnapshot.domain.models.financials import ChartArtifact, DerivedMetric, FiscalYearRecord

BLUE = "#3b82f6"
GREEN = "#22c55e"
RED = "#ef4444"
ORANGE = "#f97316"

WATERFALL_HEALTHY = (
    "Value chain shows healthy conversion from revenue to cash, with operating cash flows "
    "supporting the closing cash balance."
)
WATERFALL_LEAKY = (
    "Value chain indicates leakage between earnings and cash; review working capital and "
    "non-cash charges for the latest year."
)
WATERFALL_MISSING = "Insufficient data to render waterfall chart."
REV_OCF_TRACKING = (
    "Operating cash flow broadly tracks revenue, suggesting reasonable earnings quality over "
    "the 5-year period."
)
REV_OCF_LAGGING = (
    "Operating cash flow lags revenue growth, indicating potential working capital build-up "
    "or non-cash earnings."
)
EQUITY_CASH_STRONG = (
    "Cash represents a meaningful share of equity, supporting balance sheet strength and "
    "optionality for capital allocation."
)
EQUITY_CASH_MODEST = (
    "Cash balance is modest relative to equity; growth is likely funded by reinvested profits "
    "and external capital."
)
DSO_EFFICIENT = (
    "Receivable cycle appears efficient, with DSO broadly within a comfortable range for most "
    "industries."
)
DSO_EXTENDED = (
    "Receivable cycle is extended, and cash is tied up in working capital; credit risk and "
    "customer terms warrant attention."
)


def latest_complete_year(records: Sequence[FiscalYearRecord]) -> Optional[FiscalYearRecord]:
    """Most recent year with revenue, EBITDA, PAT, OCF and cash all present."""
    for record in reversed(records):
        if None not in (record.revenue, record.ebitda, record.pat, record.ocf, record.cash):
            return record
    return None


def waterfall_steps(record: FiscalYearRecord) -> List[Tuple[str, float, float, str]]:
    """(label, base, height, colour) bars walking Revenue -> EBITDA -> PAT -> OCF -> Cash."""
    values = [
        ("Revenue", record.revenue),
        ("EBITDA", record.ebitda),
        ("PAT", record.pat),
        ("OCF", record.ocf),
        ("Cash", record.cash),
    ]
    steps: List[Tuple[str, float, float, str]] = []
    running = 0.0
    for idx, (label, value) in enumerate(values):
        if idx == 0:
            steps.append((label, 0.0, value, BLUE))
        else:
            change = value - running
            base = running if change >= 0 else running + change
            steps.append((label, base, abs(change), GREEN if change >= 0 else RED))
        running = value
    return steps


def waterfall_caption(records: Sequence[FiscalYearRecord]) -> str:
    latest = latest_complete_year(records)
    if latest is None:
        return WATERFALL_MISSING
    if latest.revenue and latest.ocf and latest.ocf / latest.revenue > 0.2:
        return WATERFALL_HEALTHY
    return WATERFALL_LEAKY


def revenue_ocf_caption(records: Sequence[FiscalYearRecord]) -> str:
    ratios = [r.ocf / r.revenue for r in records if r.revenue and r.ocf is not None]
    average = float(np.mean(ratios)) if ratios else None
    return REV_OCF_TRACKING if average is not None and average > 0.2 else REV_OCF_LAGGING


def equity_cash_caption(records: Sequence[FiscalYearRecord]) -> str:
    if not records:
        return EQUITY_CASH_MODEST
    latest = records[-1]
    if latest.equity and latest.cash and latest.cash / latest.equity > 0.3:
        return EQUITY_CASH_STRONG
    return EQUITY_CASH_MODEST


def dso_caption(metrics: Sequence[DerivedMetric]) -> str:
    values = [m.dso_days for m in metrics if m.dso_days is not None]
    average = float(np.mean(values)) if values else None
    return DSO_EFFICIENT if average is not None and average < 90 else DSO_EXTENDED


def describe_charts(
    records: Sequence[FiscalYearRecord],
    metrics: Sequence[DerivedMetric],
) -> List[ChartArtifact]:
    """Chart titles and captions without drawing anything."""
    return [
        ChartArtifact("waterfall", "Value Chain Waterfall", waterfall_caption(records)),
        ChartArtifact("revenue_ocf", "Revenue vs OCF", revenue_ocf_caption(records)),
        ChartArtifact("equity_cash", "Equity vs Cash", equity_cash_caption(records)),
        ChartArtifact("dso", "DSO Trend", dso_caption(metrics)),
    ]


class ChartBoard:
    """Holds the live figures for one snapshot."""

    def __init__(self) -> None:
        self._figures: Dict[str, Figure] = {}

    @property
    def figures(self) -> Dict[str, Figure]:
        return dict(self._figures)

    def render(
        self,
        ticker: str,
        records: Sequence[FiscalYearRecord],
        metrics: Sequence[DerivedMetric],
        output_dir: Optional[Path] = None,
    ) -> List[ChartArtifact]:
        """Replace the board's figures with charts for ``records``."""
        self.destroy()
        labels = [r.year for r in records]

        latest = latest_complete_year(records)
        if latest is not None:
            self._figures["waterfall"] = self._waterfall(ticker, latest)

        fig = Figure(figsize=(6.5, 3.5))
        ax = fig.add_subplot()
        ax.plot(labels, _series(r.revenue for r in records), marker="o", label="Revenue", color=BLUE)
        ax.plot(labels, _series(r.ocf for r in records), marker="o", label="OCF", color=GREEN)
        ax.set_title(f"{ticker} Revenue vs OCF")
        ax.grid(True, linestyle="--", alpha=0.3)
        ax.legend(loc="lower right")
        self._figures["revenue_ocf"] = fig

        fig = Figure(figsize=(6.5, 3.5))
        ax = fig.add_subplot()
        positions = np.arange(len(labels))
        ax.bar(positions - 0.2, _series(r.equity for r in records), width=0.4, label="Equity", color=BLUE, alpha=0.7)
        ax.bar(positions + 0.2, _series(r.cash for r in records), width=0.4, label="Cash", color=GREEN, alpha=0.7)
        ax.set_xticks(positions)
        ax.set_xticklabels(labels)
        ax.set_title(f"{ticker} Equity vs Cash")
        ax.legend(loc="upper left")
        self._figures["equity_cash"] = fig

        fig = Figure(figsize=(6.5, 3.5))
        ax = fig.add_subplot()
        ax.plot([m.year for m in metrics], _series(m.dso_days for m in metrics), marker="o", label="DSO", color=ORANGE)
        ax.set_title(f"{ticker} Days Sales Outstanding")
        ax.set_ylabel("Days")
        ax.grid(True, linestyle="--", alpha=0.3)
        self._figures["dso"] = fig

        artifacts = describe_charts(records, metrics)
        if output_dir is not None:
            output_dir.mkdir(parents=True, exist_ok=True)
            for artifact in artifacts:
                figure = self._figures.get(artifact.key)
                if figure is None:
                    continue
                path = output_dir / f"{ticker}_{artifact.key}.png"
                figure.tight_layout()
                figure.savefig(path, format="png")
                artifact.path = str(path)
        return artifacts

    def destroy(self) -> None:
        for figure in self._figures.values():
            figure.clear()
        self._figures.clear()

    @staticmethod
    def _waterfall(ticker: str, record: FiscalYearRecord) -> Figure:
        steps = waterfall_steps(record)
        fig = Figure(figsize=(6.5, 3.5))
        ax = fig.add_subplot()
        for label, base, height, color in steps:
            ax.bar(label, height, bottom=base, color=color)
        ax.set_title(f"{ticker} Value Chain FY{record.year}")
        ax.axhline(0, color="#94a3b8", linewidth=0.8, linestyle="--", alpha=0.6)
        return fig


def _series(values) -> List[float]:
    return [np.nan if v is None else float(v) for v in values]
