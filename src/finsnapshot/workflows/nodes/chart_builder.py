"""Chart builder node producing chart captions and, on request, PNG files."""
from __future__ import annotations

from pathlib import Path

from finsnapshot.reports.charts import describe_charts
from finsnapshot.workflows.context import WorkflowContext
from finsnapshot.workflows.state import SnapshotState


def run(state: SnapshotState, context: WorkflowContext) -> SnapshotState:
    logs = state.setdefault("logs", [])
    errors = state.setdefault("errors", [])
    ticker = state["ticker"]
    records = state.get("records") or []
    metrics = state.get("metrics") or []

    if not state.get("render_charts"):
        state["charts"] = describe_charts(records, metrics)
        logs.append("ChartBuilder -> captions only, rendering disabled")
        return state

    output_dir = Path(context.config.output_dir) / "charts"
    try:
        state["charts"] = context.chart_board.render(ticker, records, metrics, output_dir=output_dir)
        logs.append(f"ChartBuilder -> saved charts to {output_dir}")
    except (OSError, ValueError, RuntimeError) as exc:
        errors.append(f"ChartBuilder render failed: {exc}")
        state["charts"] = describe_charts(records, metrics)
    return state
