"""LangGraph node fetching raw statements from the configured providers."""
from __future__ import annotations

from typing import List

from finsnapshot.domain.models.financials import StatementBundle
from finsnapshot.infrastructure.data_providers.base import fetch_statement_bundle
from finsnapshot.workflows.context import WorkflowContext
from finsnapshot.workflows.state import SnapshotState


async def run(state: SnapshotState, context: WorkflowContext) -> SnapshotState:
    """Fetch one bundle per provider; transport and policy errors propagate."""
    logs = state.setdefault("logs", [])
    ticker = state["ticker"]
    names = state.get("providers") or [context.config.default_provider]

    bundles: List[StatementBundle] = []
    for name in names:
        provider = context.provider_for(name)
        logs.append(f"DataLoad -> fetch statements for {ticker} from {provider.name}")
        try:
            bundle = await fetch_statement_bundle(
                provider,
                ticker,
                tolerate_partial_failure=context.config.tolerate_partial_failure,
            )
        finally:
            await provider.aclose()
        logs.append(
            f"DataLoad -> {provider.name}: {len(bundle.income)} income, "
            f"{len(bundle.balance)} balance, {len(bundle.cash_flow)} cash-flow reports"
        )
        bundles.append(bundle)

    state["bundles"] = bundles
    state["provider"] = ",".join(bundle.provider for bundle in bundles)
    state["company_name"] = next(
        (b.profile.name for b in bundles if b.profile is not None and b.profile.name),
        ticker,
    )
    return state
