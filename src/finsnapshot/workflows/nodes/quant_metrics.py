"""LangGraph node computing derived ratios, bridge insights and IR notes."""
from __future__ import annotations

from finsnapshot.domain.services.calculations import build_ir_notes
from finsnapshot.workflows.context import WorkflowContext
from finsnapshot.workflows.state import SnapshotState


def run(state: SnapshotState, context: WorkflowContext) -> SnapshotState:
    logs = state.setdefault("logs", [])
    records = state.get("records") or []

    logs.append(f"QuantMetrics -> derive ratios (cash conversion on {context.metrics_engine.cash_conversion_basis})")
    state["metrics"] = context.metrics_engine.calculate(records)
    state["bridge"] = context.bridge_analyzer.analyze(records)
    state["ir_notes"] = build_ir_notes(records)
    return state
