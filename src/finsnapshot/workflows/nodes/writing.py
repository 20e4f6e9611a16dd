"""LangGraph node responsible for final Markdown assembly."""
from __future__ import annotations

from jinja2 import TemplateError

from finsnapshot.workflows.context import WorkflowContext
from finsnapshot.workflows.state import SnapshotState


def run(state: SnapshotState, context: WorkflowContext) -> SnapshotState:
    logs = state.setdefault("logs", [])
    errors = state.setdefault("errors", [])

    if not state.get("render_markdown", True):
        logs.append("Writing -> Markdown rendering disabled")
        return state

    logs.append("Writing -> render Markdown output")
    records = state.get("records") or []
    payload = {
        "ticker": state["ticker"],
        "company_name": state.get("company_name") or state["ticker"],
        "provider": state.get("provider") or "",
        "years": [record.year for record in records],
        "records": records,
        "metrics": state.get("metrics") or [],
        "cash_conversion_basis": context.metrics_engine.cash_conversion_basis,
        "anomalies": state.get("anomalies") or [],
        "trend_flags": state.get("trend_flags") or [],
        "bridge": state.get("bridge") or [],
        "ir_notes": state.get("ir_notes") or [],
        "charts": state.get("charts") or [],
    }
    try:
        state["markdown_report"] = context.renderer.render(payload)
    except TemplateError as exc:
        errors.append(f"Markdown rendering failed: {exc}")
        state["markdown_report"] = None
    return state
