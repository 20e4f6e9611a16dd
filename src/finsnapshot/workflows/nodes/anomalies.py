"""LangGraph node evaluating threshold and trend anomaly rules."""
from __future__ import annotations

from finsnapshot.workflows.context import WorkflowContext
from finsnapshot.workflows.state import SnapshotState


def run(state: SnapshotState, context: WorkflowContext) -> SnapshotState:
    logs = state.setdefault("logs", [])
    records = state.get("records") or []

    anomalies = context.threshold_detector.detect(records)
    trend_flags = context.trend_detector.detect(records)
    state["anomalies"] = anomalies
    state["trend_flags"] = trend_flags

    flagged = sum(1 for year in anomalies if year.flagged)
    detected = sum(1 for flag in trend_flags if flag.detected)
    logs.append(f"Anomalies -> {flagged} flagged years, {detected} trend signals")
    return state
