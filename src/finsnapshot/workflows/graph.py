"""LangGraph workflow assembly for the fetch-reconcile-analyse pipeline."""
from __future__ import annotations

import inspect
import json
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx
from langgraph.graph import END, StateGraph

from finsnapshot.domain.models.financials import FinancialSnapshot
from finsnapshot.settings.config import Config
from finsnapshot.workflows.blueprint import StageSpec, build_default_stages
from finsnapshot.workflows.context import WorkflowContext
from finsnapshot.workflows.state import SnapshotState


class ReportWorkflow:
    """Compose LangGraph nodes into a runnable workflow."""

    def __init__(
        self,
        config: Config,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        context: Optional[WorkflowContext] = None,
    ) -> None:
        self._config = config
        self._context = context or WorkflowContext.from_config(config, transport=transport)
        self._stages: List[StageSpec] = build_default_stages()
        self._graph = self._build_graph()

    @property
    def context(self) -> WorkflowContext:
        return self._context

    def _build_graph(self):
        builder = StateGraph(SnapshotState)

        if not self._stages:
            raise RuntimeError("Workflow blueprint is empty; cannot build LangGraph.")

        for stage in self._stages:
            builder.add_node(stage.key, self._wrap(stage.handler))

        # Serialize execution in declared stage order to avoid concurrent state writes.
        builder.set_entry_point(self._stages[0].key)
        for current, nxt in zip(self._stages, self._stages[1:]):
            builder.add_edge(current.key, nxt.key)
        builder.add_edge(self._stages[-1].key, END)

        return builder.compile(checkpointer=None)

    def _wrap(self, func: Callable[[SnapshotState, WorkflowContext], Any]):
        async def wrapper(state: SnapshotState) -> SnapshotState:
            result = func(state, self._context)
            if inspect.isawaitable(result):
                result = await result
            return result

        return wrapper

    async def run(
        self,
        ticker: str,
        providers: Optional[Sequence[str]] = None,
        *,
        render_charts: bool = False,
        render_markdown: bool = True,
    ) -> SnapshotState:
        """Execute the workflow for a single ticker.

        Fatal data errors (no data, unmappable data, transport failures under
        the strict policy) propagate to the caller unchanged.
        """
        symbol = ticker.strip().upper()
        if not symbol:
            raise ValueError("ticker must not be empty")
        initial_state: SnapshotState = {
            "ticker": symbol,
            "providers": [p.strip().lower() for p in providers or [] if p and p.strip()]
            or [self._config.default_provider],
            "render_charts": render_charts,
            "render_markdown": render_markdown,
            "logs": [],
            "errors": [],
            "stage_order": [stage.key for stage in self._stages],
        }
        result: SnapshotState = await self._graph.ainvoke(initial_state)
        return result

    async def snapshot(
        self,
        ticker: str,
        providers: Optional[Sequence[str]] = None,
        *,
        render_charts: bool = False,
        render_markdown: bool = True,
    ) -> FinancialSnapshot:
        state = await self.run(ticker, providers, render_charts=render_charts, render_markdown=render_markdown)
        return state_to_snapshot(state)

    def persist_state(self, state: SnapshotState, path: Path) -> None:
        """Serialize the workflow state to disk for debugging or auditing."""
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(state, default=_json_serializer, indent=2, ensure_ascii=False)
        path.write_text(payload, encoding="utf-8")

    def persist_markdown(self, markdown: str, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(markdown, encoding="utf-8")

    def describe_stages(self) -> List[str]:
        """Return human-readable workflow stage descriptions."""
        lines = []
        for stage in self._stages:
            line = f"{stage.key}: {stage.description}"
            if stage.depends_on:
                line += f" (after: {', '.join(stage.depends_on)})"
            lines.append(line)
        return lines

    def close(self) -> None:
        self._context.close()


def state_to_snapshot(state: SnapshotState) -> FinancialSnapshot:
    return FinancialSnapshot(
        ticker=state["ticker"],
        provider=state.get("provider") or "",
        company_name=state.get("company_name"),
        records=list(state.get("records") or []),
        metrics=list(state.get("metrics") or []),
        anomalies=list(state.get("anomalies") or []),
        trend_flags=list(state.get("trend_flags") or []),
        bridge=list(state.get("bridge") or []),
        ir_notes=list(state.get("ir_notes") or []),
        charts=list(state.get("charts") or []),
        markdown=state.get("markdown_report"),
    )


def snapshot_payload(snapshot: FinancialSnapshot) -> Dict[str, Any]:
    """JSON-ready view of a snapshot."""
    return json.loads(json.dumps(snapshot, default=_json_serializer))


def _json_serializer(value: Any) -> Any:
    if is_dataclass(value):
        return asdict(value)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if hasattr(value, "tolist"):
        return value.tolist()
    return str(value)
