"""Domain models describing the financial data exchanged between services."""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

STATEMENT_TYPES = ("income", "balance", "cash_flow")

# Canonical per-year numeric fields, in CSV/table order.
RECORD_FIELDS = (
    "revenue",
    "ebitda",
    "pat",
    "ocf",
    "fcf",
    "ar",
    "cash",
    "equity",
    "debt",
    "investments_advances",
    "dividends_paid",
    "inventory",
    "payables",
)


@dataclass
class RawReport:
    """Provider report for one period, keyed by semantic field names.

    Values stay raw (strings or numbers) until the reconciler parses them.
    """

    period_end_date: Optional[str]
    values: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CompanyProfile:
    symbol: str
    name: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    currency: Optional[str] = None


@dataclass
class StatementBundle:
    """The three statement arrays (plus profile) returned by one provider."""

    symbol: str
    provider: str
    income: List[RawReport] = field(default_factory=list)
    balance: List[RawReport] = field(default_factory=list)
    cash_flow: List[RawReport] = field(default_factory=list)
    profile: Optional[CompanyProfile] = None

    def is_empty(self) -> bool:
        return not (self.income or self.balance or self.cash_flow)

    def reports(self, statement_type: str) -> List[RawReport]:
        return getattr(self, statement_type)


@dataclass
class FiscalYearRecord:
    """Canonical normalized snapshot for one fiscal year.

    ``None`` marks a missing value; it is never coerced to zero.
    """

    year: str
    revenue: Optional[float] = None
    ebitda: Optional[float] = None
    pat: Optional[float] = None
    ocf: Optional[float] = None
    fcf: Optional[float] = None
    ar: Optional[float] = None
    cash: Optional[float] = None
    equity: Optional[float] = None
    debt: Optional[float] = None
    investments_advances: Optional[float] = None
    dividends_paid: Optional[float] = None
    inventory: Optional[float] = None
    payables: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class DerivedMetric:
    """Ratios derived from one year (and its predecessor where needed)."""

    year: str
    ebitda_margin_pct: Optional[float] = None
    pat_margin_pct: Optional[float] = None
    cash_conversion_ratio: Optional[float] = None
    dso_days: Optional[float] = None
    equity_growth_pct: Optional[float] = None
    cash_to_equity_ratio: Optional[float] = None
    revenue_yoy_pct: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class AnomalyFlag:
    year: str
    category: str
    condition: str
    interpretation: str
    severity: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return self.severity is None


@dataclass
class YearAnomalies:
    """Threshold flags for one year; always holds at least one row."""

    year: str
    flags: List[AnomalyFlag] = field(default_factory=list)

    @property
    def flagged(self) -> bool:
        return any(not flag.is_placeholder for flag in self.flags)


@dataclass
class TrendFlag:
    """Qualitative cross-year flag; ``year`` is None for the overall-health row."""

    year: Optional[str]
    category: str
    interpretation: str
    detected: bool = True


@dataclass
class BridgeInsight:
    year: str
    insight: str


@dataclass
class IRNote:
    year: str
    revenue_growth_pct: Optional[float]
    pat_margin_pct: Optional[float]
    cash_position: Optional[str]


@dataclass
class ChartArtifact:
    key: str
    title: str
    caption: str
    path: Optional[str] = None


@dataclass
class FinancialSnapshot:
    """Everything one successful fetch-and-reconcile cycle produces."""

    ticker: str
    provider: str
    company_name: Optional[str]
    records: List[FiscalYearRecord]
    metrics: List[DerivedMetric] = field(default_factory=list)
    anomalies: List[YearAnomalies] = field(default_factory=list)
    trend_flags: List[TrendFlag] = field(default_factory=list)
    bridge: List[BridgeInsight] = field(default_factory=list)
    ir_notes: List[IRNote] = field(default_factory=list)
    charts: List[ChartArtifact] = field(default_factory=list)
    markdown: Optional[str] = None

    @property
    def years(self) -> List[str]:
        return [record.year for record in self.records]

    def record_for(self, year: str) -> Optional[FiscalYearRecord]:
        for record in self.records:
            if record.year == year:
                return record
        return None
