from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from finsnapshot.domain.errors import NoDataError, TransportError
from finsnapshot.infrastructure.data_providers.base import StatementProvider
from finsnapshot.settings.config import Config
from finsnapshot.workflows.graph import ReportWorkflow, snapshot_payload

from test_data_providers import _av_handler


class EmptyProvider(StatementProvider):
    name = "empty"

    async def fetch_income(self, symbol):
        return []

    async def fetch_balance(self, symbol):
        return []

    async def fetch_cash_flow(self, symbol):
        return []


def _config(tmp_path, **overrides) -> Config:
    return Config(output_dir=tmp_path, default_provider="sample", **overrides)


def test_sample_snapshot_end_to_end(tmp_path):
    workflow = ReportWorkflow(_config(tmp_path))

    snapshot = asyncio.run(workflow.snapshot(" demo "))

    assert snapshot.ticker == "DEMO"
    assert snapshot.provider == "sample"
    assert snapshot.company_name == "DEMO Corp"
    assert snapshot.years == ["2020", "2021", "2022", "2023", "2024"]
    assert len(snapshot.metrics) == 5
    assert snapshot.metrics[0].ebitda_margin_pct == pytest.approx(20.0)
    assert all(year.flags for year in snapshot.anomalies)
    assert [(f.year, f.category) for f in snapshot.trend_flags] == [
        ("2022", "profit up but cash down"),
        ("2022", "receivables growing faster than revenue"),
    ]
    assert snapshot.bridge[1].year == "2022"
    assert "Cash conversion leaking" in snapshot.bridge[1].insight
    assert [c.key for c in snapshot.charts] == ["waterfall", "revenue_ocf", "equity_cash", "dso"]
    assert snapshot.markdown is not None
    assert "# DEMO Corp (DEMO) Five-Year Snapshot" in snapshot.markdown
    assert "| 2024 | 1,900 |" in snapshot.markdown


def test_run_records_stage_logs(tmp_path):
    workflow = ReportWorkflow(_config(tmp_path))

    state = asyncio.run(workflow.run("DEMO", render_markdown=False))

    assert state["stage_order"][0] == "ingest_statements"
    assert state.get("markdown_report") is None
    assert any(line.startswith("Reconcile -> 5 fiscal years") for line in state["logs"])
    assert state["errors"] == []

    target = tmp_path / "state.json"
    workflow.persist_state(state, target)
    assert json.loads(target.read_text(encoding="utf-8"))["ticker"] == "DEMO"


def test_persisted_state_drops_raw_reports(tmp_path):
    workflow = ReportWorkflow(_config(tmp_path))

    state = asyncio.run(workflow.run("DEMO", render_markdown=False))
    assert state["bundles"] == []
    assert len(state["records"]) == 5

    target = tmp_path / "state.json"
    workflow.persist_state(state, target)
    text = target.read_text(encoding="utf-8")

    assert json.loads(text)["bundles"] == []
    assert "period_end_date" not in text


def test_no_data_propagates(tmp_path, monkeypatch):
    workflow = ReportWorkflow(_config(tmp_path))
    monkeypatch.setattr(workflow.context, "provider_for", lambda name=None: EmptyProvider())

    with pytest.raises(NoDataError):
        asyncio.run(workflow.run("NOPE"))


def test_alpha_vantage_through_mock_transport(tmp_path):
    config = _config(tmp_path, alpha_vantage_api_key="demo")
    workflow = ReportWorkflow(config, transport=httpx.MockTransport(_av_handler))

    snapshot = asyncio.run(workflow.snapshot("IBM", ["alphavantage"]))

    assert snapshot.provider == "alphavantage"
    assert snapshot.company_name == "International Business Machines"
    assert snapshot.years == ["2022", "2023"]
    payload = snapshot_payload(snapshot)
    assert payload["records"][1]["debt"] == 0.0


def test_multiple_providers_fill_gaps(tmp_path):
    config = _config(tmp_path, alpha_vantage_api_key="demo")
    workflow = ReportWorkflow(config, transport=httpx.MockTransport(_av_handler))

    snapshot = asyncio.run(workflow.snapshot("IBM", ["alphavantage", "sample"]))

    assert snapshot.provider == "alphavantage,sample"
    assert snapshot.years == ["2020", "2021", "2022", "2023", "2024"]
    ibm_2023 = snapshot.record_for("2023")
    assert ibm_2023.revenue == 61_860_000_000.0
    assert snapshot.record_for("2022").ebitda == 310.0


def test_transport_failure_is_fatal_under_strict_policy(tmp_path):
    def handler(request):
        return httpx.Response(500)

    config = _config(tmp_path, alpha_vantage_api_key="demo")
    workflow = ReportWorkflow(config, transport=httpx.MockTransport(handler))

    with pytest.raises(TransportError):
        asyncio.run(workflow.run("IBM", ["alphavantage"]))


def test_render_charts_writes_pngs(tmp_path):
    workflow = ReportWorkflow(_config(tmp_path))

    snapshot = asyncio.run(workflow.snapshot("DEMO", render_charts=True))

    assert all(chart.path for chart in snapshot.charts)
    assert (tmp_path / "charts" / "DEMO_dso.png").exists()
    workflow.close()
    assert workflow.context.chart_board.figures == {}
