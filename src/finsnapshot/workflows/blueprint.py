"""Workflow blueprint describing pipeline stages and their handlers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, TYPE_CHECKING

from finsnapshot.workflows.nodes import anomalies, chart_builder, data_load, quant_metrics, reconcile, writing

if TYPE_CHECKING:
    from finsnapshot.workflows.context import WorkflowContext
    from finsnapshot.workflows.state import SnapshotState


@dataclass
class StageSpec:
    """Single LangGraph stage definition."""

    key: str
    description: str
    # Handlers may be plain functions or coroutines.
    handler: Callable[["SnapshotState", "WorkflowContext"], Any]
    depends_on: List[str] = field(default_factory=list)


def build_default_stages() -> List[StageSpec]:
    """Return the ordered stages for the snapshot workflow."""
    return [
        StageSpec(
            key="ingest_statements",
            description="Fetch income, balance and cash-flow statements concurrently per provider.",
            handler=data_load.run,
        ),
        StageSpec(
            key="reconcile_years",
            description="Merge statements into one record per fiscal year and keep the latest window.",
            handler=reconcile.run,
            depends_on=["ingest_statements"],
        ),
        StageSpec(
            key="derive_metrics",
            description="Compute margins, cash conversion, DSO, growth, bridge insights and IR notes.",
            handler=quant_metrics.run,
            depends_on=["reconcile_years"],
        ),
        StageSpec(
            key="detect_anomalies",
            description="Evaluate threshold rules per year and trend rules across consecutive years.",
            handler=anomalies.run,
            depends_on=["reconcile_years"],
        ),
        StageSpec(
            key="build_charts",
            description="Render waterfall, revenue/OCF, equity/cash and DSO charts with captions.",
            handler=chart_builder.run,
            depends_on=["derive_metrics"],
        ),
        StageSpec(
            key="render_report",
            description="Render the Markdown snapshot with all upstream outputs.",
            handler=writing.run,
            depends_on=["derive_metrics", "detect_anomalies", "build_charts"],
        ),
    ]
