"""Domain service layer providing per-year financial calculations.

This module implements:
- The metrics engine (margins, cash conversion, DSO, growth, cash/equity)
- The variance bridge, a year-over-year narrative of revenue, PAT, OCF and cash
- Investor-relations notes summarising growth, margin and cash position

All calculations are pure. Where a value cannot be computed because an input
is missing or a denominator is zero, the result is ``None`` rather than zero
or ``float('nan')``.
"""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from finsnapshot.domain.models.financials import (
    BridgeInsight,
    DerivedMetric,
    FiscalYearRecord,
    IRNote,
)

CASH_CONVERSION_BASES = ("ebitda", "pat")

METRIC_LABELS: Dict[str, str] = {
    "ebitda_margin_pct": "EBITDA Margin %",
    "pat_margin_pct": "PAT Margin %",
    "cash_conversion_ratio": "Cash Conversion (x)",
    "dso_days": "DSO (days)",
    "equity_growth_pct": "Equity Growth %",
    "cash_to_equity_ratio": "Cash/Equity (x)",
    "revenue_yoy_pct": "Revenue YoY %",
}


class MetricsEngine:
    """Derive ratios for each year from its record and its predecessor."""

    def __init__(self, cash_conversion_basis: str = "ebitda") -> None:
        if cash_conversion_basis not in CASH_CONVERSION_BASES:
            raise ValueError(
                f"cash_conversion_basis must be one of {CASH_CONVERSION_BASES}, got {cash_conversion_basis!r}"
            )
        self._basis = cash_conversion_basis

    @property
    def cash_conversion_basis(self) -> str:
        return self._basis

    def derive(self, record: FiscalYearRecord, previous: Optional[FiscalYearRecord] = None) -> DerivedMetric:
        conversion_base = record.ebitda if self._basis == "ebitda" else record.pat
        return DerivedMetric(
            year=record.year,
            ebitda_margin_pct=_pct(_sdiv(record.ebitda, record.revenue)),
            pat_margin_pct=_pct(_sdiv(record.pat, record.revenue)),
            cash_conversion_ratio=_sdiv(record.ocf, conversion_base),
            dso_days=_scale(_sdiv(record.ar, record.revenue), 365.0),
            equity_growth_pct=_growth_pct(record.equity, previous.equity if previous else None),
            cash_to_equity_ratio=_sdiv(record.cash, record.equity),
            revenue_yoy_pct=_growth_pct(record.revenue, previous.revenue if previous else None),
        )

    def calculate(self, records: Sequence[FiscalYearRecord]) -> List[DerivedMetric]:
        """Return one DerivedMetric per record, in the same order."""
        metrics: List[DerivedMetric] = []
        previous: Optional[FiscalYearRecord] = None
        for record in records:
            metrics.append(self.derive(record, previous))
            previous = record
        return metrics

    @staticmethod
    def to_frame(metrics: Sequence[DerivedMetric]) -> pd.DataFrame:
        """Year-indexed frame for tables and charts; undefined values are NaN."""
        columns = list(METRIC_LABELS)
        if not metrics:
            return pd.DataFrame(columns=columns, dtype=float)
        rows = []
        for metric in metrics:
            values = metric.as_dict()
            rows.append([np.nan if values[key] is None else values[key] for key in columns])
        frame = pd.DataFrame(rows, index=[m.year for m in metrics], columns=columns, dtype=float)
        frame.index.name = "year"
        return frame


class VarianceBridgeAnalyzer:
    """Classify how revenue, PAT, OCF and cash moved between consecutive years."""

    CASH_LEAK = "Cash conversion leaking: investigate AR and WC"
    MARGIN_SQUEEZE = "Profitability not keeping pace: margin compression"
    LIQUIDITY_STRESS = "Liquidity stress: profits not translating to cash"
    HEALTHY = "Healthy bridge alignment"

    def analyze(self, records: Sequence[FiscalYearRecord]) -> List[BridgeInsight]:
        insights: List[BridgeInsight] = []
        for prev, curr in zip(records, records[1:]):
            insights.append(BridgeInsight(year=curr.year, insight=self._classify(prev, curr)))
        return insights

    def _classify(self, prev: FiscalYearRecord, curr: FiscalYearRecord) -> str:
        d_revenue = _delta(curr.revenue, prev.revenue)
        d_pat = _delta(curr.pat, prev.pat)
        d_ocf = _delta(curr.ocf, prev.ocf)
        d_cash = _delta(curr.cash, prev.cash)

        if _gt(d_revenue, 0) and _gt(d_pat, 0) and _lt(d_ocf, 0):
            return self.CASH_LEAK
        if _gt(d_revenue, 0) and d_pat is not None and d_pat <= 0:
            return self.MARGIN_SQUEEZE
        if _gt(d_pat, 0) and _lt(d_cash, 0):
            return self.LIQUIDITY_STRESS
        return self.HEALTHY


def build_ir_notes(records: Sequence[FiscalYearRecord]) -> List[IRNote]:
    """One note per year after the first: growth, PAT margin and cash direction."""
    notes: List[IRNote] = []
    for prev, curr in zip(records, records[1:]):
        cash_position: Optional[str] = None
        if curr.cash is not None and prev.cash is not None:
            cash_position = "Strong" if curr.cash > prev.cash else "Declining"
        notes.append(
            IRNote(
                year=curr.year,
                revenue_growth_pct=_growth_pct(curr.revenue, prev.revenue),
                pat_margin_pct=_pct(_sdiv(curr.pat, curr.revenue)),
                cash_position=cash_position,
            )
        )
    return notes


# ----------------------------
# Internal helpers
# ----------------------------

def _sdiv(a: Optional[float], b: Optional[float]) -> Optional[float]:
    if a is None or b is None or b == 0:
        return None
    return float(a) / float(b)


def _scale(value: Optional[float], factor: float) -> Optional[float]:
    return None if value is None else value * factor


def _pct(value: Optional[float]) -> Optional[float]:
    return _scale(value, 100.0)


def _growth_pct(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    if current is None:
        return None
    return _pct(_sdiv(_delta(current, previous), previous))


def _delta(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    if current is None or previous is None:
        return None
    return current - previous


def _gt(value: Optional[float], bound: float) -> bool:
    return value is not None and value > bound


def _lt(value: Optional[float], bound: float) -> bool:
    return value is not None and value < bound
