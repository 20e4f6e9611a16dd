"""Workflow state definitions shared by LangGraph nodes."""
from __future__ import annotations

from typing import List, Optional, TypedDict

from finsnapshot.domain.models.financials import (
    BridgeInsight,
    ChartArtifact,
    DerivedMetric,
    FiscalYearRecord,
    IRNote,
    StatementBundle,
    TrendFlag,
    YearAnomalies,
)


class SnapshotState(TypedDict, total=False):
    ticker: str
    providers: List[str]
    provider: str
    company_name: Optional[str]

    bundles: List[StatementBundle]
    records: List[FiscalYearRecord]
    metrics: List[DerivedMetric]
    anomalies: List[YearAnomalies]
    trend_flags: List[TrendFlag]
    bridge: List[BridgeInsight]
    ir_notes: List[IRNote]
    charts: List[ChartArtifact]
    markdown_report: Optional[str]

    render_charts: bool
    render_markdown: bool
    stage_order: List[str]

    logs: List[str]
    errors: List[str]
