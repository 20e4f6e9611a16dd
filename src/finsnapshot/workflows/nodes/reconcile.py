"""LangGraph node merging provider statements into fiscal-year records."""
from __future__ import annotations

from finsnapshot.workflows.context import WorkflowContext
from finsnapshot.workflows.state import SnapshotState


def run(state: SnapshotState, context: WorkflowContext) -> SnapshotState:
    logs = state.setdefault("logs", [])
    bundles = state.get("bundles") or []

    records = context.reconciler.reconcile(bundles)
    state["records"] = records
    # Raw reports are not kept past reconciliation.
    state["bundles"] = []
    logs.append(f"Reconcile -> {len(records)} fiscal years: {', '.join(r.year for r in records)}")
    return state
