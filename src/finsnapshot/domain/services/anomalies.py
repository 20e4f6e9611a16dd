"""Rule-based anomaly detection over the reconciled five-year sequence.

Two independent detectors live here:

- ``ThresholdAnomalyDetector`` evaluates a fixed, ordered battery of six
  threshold rules per year and always emits at least one row per year.
- ``TrendAnomalyDetector`` evaluates three qualitative cross-year rules over
  consecutive year pairs.

Neither feeds the other.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

from finsnapshot.domain.models.financials import (
    AnomalyFlag,
    FiscalYearRecord,
    TrendFlag,
    YearAnomalies,
)

Predicate = Callable[[FiscalYearRecord, Optional[FiscalYearRecord]], bool]


@dataclass(frozen=True)
class AnomalyRule:
    key: str
    category: str
    severity: str
    condition: str
    interpretation: str
    predicate: Predicate


def _ratio(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """numerator/denominator, defined only for a strictly positive denominator."""
    if numerator is None or denominator is None or denominator <= 0:
        return None
    return numerator / denominator


def _growth(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    if current is None or previous is None or previous == 0:
        return None
    return (current - previous) / previous


def _weak_operating_margin(row: FiscalYearRecord, _prev: Optional[FiscalYearRecord]) -> bool:
    margin = _ratio(row.ebitda, row.revenue)
    return margin is not None and margin < 0.10


def _thin_net_margin(row: FiscalYearRecord, _prev: Optional[FiscalYearRecord]) -> bool:
    margin = _ratio(row.pat, row.revenue)
    return margin is not None and margin < 0.03


def _weak_cash_conversion(row: FiscalYearRecord, _prev: Optional[FiscalYearRecord]) -> bool:
    conversion = _ratio(row.ocf, row.ebitda)
    return conversion is not None and conversion < 0.70


def _stretched_receivables(row: FiscalYearRecord, _prev: Optional[FiscalYearRecord]) -> bool:
    ar_to_sales = _ratio(row.ar, row.revenue)
    return ar_to_sales is not None and ar_to_sales * 365 > 120


def _volume_led_growth(row: FiscalYearRecord, prev: Optional[FiscalYearRecord]) -> bool:
    if prev is None or prev.revenue is None or prev.revenue <= 0:
        return False
    if prev.pat is None or prev.pat <= 0:
        return False
    revenue_growth = _growth(row.revenue, prev.revenue)
    pat_growth = _growth(row.pat, prev.pat)
    if revenue_growth is None or pat_growth is None:
        return False
    return revenue_growth > 0.25 and pat_growth < 0.05


def _cash_rich(row: FiscalYearRecord, _prev: Optional[FiscalYearRecord]) -> bool:
    cash_to_equity = _ratio(row.cash, row.equity)
    return cash_to_equity is not None and cash_to_equity > 0.5


THRESHOLD_RULES: Tuple[AnomalyRule, ...] = (
    AnomalyRule(
        key="weak_operating_margin",
        category="weak operating margin",
        severity="red",
        condition="EBITDA margin < 10%",
        interpretation=(
            "Operating profitability is structurally weak; investigate pricing, input costs and overheads."
        ),
        predicate=_weak_operating_margin,
    ),
    AnomalyRule(
        key="thin_net_margin",
        category="thin net margin",
        severity="orange",
        condition="PAT margin < 3%",
        interpretation=(
            "Net profitability is thin; tax, interest or exceptional items may be depressing earnings."
        ),
        predicate=_thin_net_margin,
    ),
    AnomalyRule(
        key="weak_cash_conversion",
        category="weak cash conversion",
        severity="yellow",
        condition="Cash conversion < 0.7x",
        interpretation=(
            "Accrual profits are not translating into cash; monitor working capital and provisions closely."
        ),
        predicate=_weak_cash_conversion,
    ),
    AnomalyRule(
        key="stretched_receivables",
        category="stretched receivables",
        severity="red",
        condition="DSO > 120 days",
        interpretation=(
            "Receivable cycle is stretched; collection risk and customer quality need deeper review."
        ),
        predicate=_stretched_receivables,
    ),
    AnomalyRule(
        key="volume_led_growth",
        category="volume-led growth without profit conversion",
        severity="purple",
        condition="Revenue jumps but PAT lags",
        interpretation=(
            "Growth appears volume-led with limited profit conversion; review mix, discounts and execution risks."
        ),
        predicate=_volume_led_growth,
    ),
    AnomalyRule(
        key="cash_rich",
        category="cash-rich balance sheet",
        severity="blue",
        condition="Cash/Equity > 0.5x",
        interpretation=(
            "Balance sheet is cash rich; management has scope for dividends, buybacks or reinvestment."
        ),
        predicate=_cash_rich,
    ),
)

NO_FLAGS_CATEGORY = "no major flags"
NO_FLAGS_INTERPRETATION = "Financial profile looks broadly balanced for this year."


class ThresholdAnomalyDetector:
    """Evaluate every threshold rule for every year, in fixed rule order."""

    def __init__(self, rules: Sequence[AnomalyRule] = THRESHOLD_RULES) -> None:
        self._rules = tuple(rules)

    @property
    def rules(self) -> Tuple[AnomalyRule, ...]:
        return self._rules

    def evaluate(self, record: FiscalYearRecord, previous: Optional[FiscalYearRecord] = None) -> YearAnomalies:
        flags = [
            AnomalyFlag(
                year=record.year,
                category=rule.category,
                condition=rule.condition,
                interpretation=rule.interpretation,
                severity=rule.severity,
            )
            for rule in self._rules
            if rule.predicate(record, previous)
        ]
        if not flags:
            flags.append(
                AnomalyFlag(
                    year=record.year,
                    category=NO_FLAGS_CATEGORY,
                    condition="-",
                    interpretation=NO_FLAGS_INTERPRETATION,
                    severity=None,
                )
            )
        return YearAnomalies(year=record.year, flags=flags)

    def detect(self, records: Sequence[FiscalYearRecord]) -> List[YearAnomalies]:
        """Return one YearAnomalies per record, parallel to the input."""
        results: List[YearAnomalies] = []
        previous: Optional[FiscalYearRecord] = None
        for record in records:
            results.append(self.evaluate(record, previous))
            previous = record
        return results


# ----------------------------
# Cross-year qualitative rules
# ----------------------------

@dataclass(frozen=True)
class TrendRule:
    key: str
    category: str
    interpretation: str
    predicate: Callable[[FiscalYearRecord, FiscalYearRecord], bool]


def _profit_up_cash_down(curr: FiscalYearRecord, prev: FiscalYearRecord) -> bool:
    if None in (curr.pat, prev.pat, curr.cash, prev.cash):
        return False
    return curr.pat - prev.pat > 0 and curr.cash - prev.cash < 0


def _receivables_outpace_revenue(curr: FiscalYearRecord, prev: FiscalYearRecord) -> bool:
    ar_growth = _growth(curr.ar, prev.ar)
    revenue_growth = _growth(curr.revenue, prev.revenue)
    if ar_growth is None or revenue_growth is None:
        return False
    return ar_growth > revenue_growth + 0.05


def _revenue_spike_flat_margin(curr: FiscalYearRecord, prev: FiscalYearRecord) -> bool:
    revenue_growth = _growth(curr.revenue, prev.revenue)
    curr_margin = None if not curr.revenue or curr.ebitda is None else curr.ebitda / curr.revenue
    prev_margin = None if not prev.revenue or prev.ebitda is None else prev.ebitda / prev.revenue
    if revenue_growth is None or curr_margin is None or prev_margin is None:
        return False
    return revenue_growth > 0.15 and curr_margin - prev_margin <= 0


TREND_RULES: Tuple[TrendRule, ...] = (
    TrendRule(
        key="profit_up_cash_down",
        category="profit up but cash down",
        interpretation="Earnings quality risk: tighten AR policy",
        predicate=_profit_up_cash_down,
    ),
    TrendRule(
        key="receivables_outpace_revenue",
        category="receivables growing faster than revenue",
        interpretation="Collections lag: enforce AR aging thresholds",
        predicate=_receivables_outpace_revenue,
    ),
    TrendRule(
        key="revenue_spike_flat_margin",
        category="revenue spike with flat-or-declining EBITDA margin",
        interpretation="Potential discount-led growth: audit recognition",
        predicate=_revenue_spike_flat_margin,
    ),
)

OVERALL_HEALTH_CATEGORY = "overall health"
OVERALL_HEALTH_INTERPRETATION = "No major anomalies detected. Financial metrics appear healthy."


class TrendAnomalyDetector:
    """Qualitative year-over-year flags; independent of the threshold battery."""

    def __init__(self, rules: Sequence[TrendRule] = TREND_RULES) -> None:
        self._rules = tuple(rules)

    @property
    def rules(self) -> Tuple[TrendRule, ...]:
        return self._rules

    def detect(self, records: Sequence[FiscalYearRecord]) -> List[TrendFlag]:
        flags: List[TrendFlag] = []
        for prev, curr in zip(records, records[1:]):
            for rule in self._rules:
                if rule.predicate(curr, prev):
                    flags.append(TrendFlag(year=curr.year, category=rule.category, interpretation=rule.interpretation))
        if not flags:
            flags.append(
                TrendFlag(
                    year=None,
                    category=OVERALL_HEALTH_CATEGORY,
                    interpretation=OVERALL_HEALTH_INTERPRETATION,
                    detected=False,
                )
            )
        return flags
