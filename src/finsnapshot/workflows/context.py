"""Workflow dependency container."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import httpx

from finsnapshot.domain.services.anomalies import ThresholdAnomalyDetector, TrendAnomalyDetector
from finsnapshot.domain.services.calculations import MetricsEngine, VarianceBridgeAnalyzer
from finsnapshot.domain.services.reconciliation import YearReconciler
from finsnapshot.infrastructure.data_providers.base import StatementProvider
from finsnapshot.infrastructure.data_providers.registry import build_provider
from finsnapshot.reports.charts import ChartBoard
from finsnapshot.reports.renderer import ReportRenderer
from finsnapshot.settings.config import Config


@dataclass
class WorkflowContext:
    """Holds the collaborators shared by LangGraph nodes."""

    config: Config
    reconciler: YearReconciler
    metrics_engine: MetricsEngine
    threshold_detector: ThresholdAnomalyDetector
    trend_detector: TrendAnomalyDetector
    bridge_analyzer: VarianceBridgeAnalyzer
    renderer: ReportRenderer
    chart_board: ChartBoard = field(default_factory=ChartBoard)
    transport: Optional[httpx.AsyncBaseTransport] = None

    @classmethod
    def from_config(
        cls,
        config: Config,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "WorkflowContext":
        return cls(
            config=config,
            reconciler=YearReconciler(window=config.years_window),
            metrics_engine=MetricsEngine(cash_conversion_basis=config.cash_conversion_basis),
            threshold_detector=ThresholdAnomalyDetector(),
            trend_detector=TrendAnomalyDetector(),
            bridge_analyzer=VarianceBridgeAnalyzer(),
            renderer=ReportRenderer(),
            transport=transport,
        )

    def provider_for(self, name: Optional[str] = None) -> StatementProvider:
        return build_provider(name or self.config.default_provider, self.config, transport=self.transport)

    def close(self) -> None:
        """Release chart figures held for the last snapshot."""
        self.chart_board.destroy()
