"""Basic smoke tests for configuration and wiring."""
from __future__ import annotations

from finsnapshot.domain.services.calculations import CASH_CONVERSION_BASES
from finsnapshot.settings.config import Config
from finsnapshot.settings.loader import load_settings
from finsnapshot.workflows.graph import ReportWorkflow


def test_config_defaults(monkeypatch):
    for name in ("CASH_CONVERSION_BASIS", "FINSNAP_YEARS", "TOLERATE_PARTIAL_FAILURE", "FINSNAP_PROVIDER"):
        monkeypatch.delenv(name, raising=False)

    cfg = Config.from_env()

    assert cfg.years_window == 5
    assert cfg.cash_conversion_basis == "ebitda"
    assert cfg.tolerate_partial_failure is False
    assert cfg.default_provider == "alphavantage"


def test_config_tolerates_bad_values(monkeypatch):
    monkeypatch.setenv("CASH_CONVERSION_BASIS", "revenue")
    monkeypatch.setenv("FINSNAP_YEARS", "lots")
    monkeypatch.setenv("REQUEST_TIMEOUT", "soon")
    monkeypatch.setenv("TOLERATE_PARTIAL_FAILURE", "yes")

    cfg = Config.from_env()

    assert cfg.cash_conversion_basis == "ebitda"
    assert cfg.years_window == 5
    assert cfg.request_timeout == 30.0
    assert cfg.tolerate_partial_failure is True


def test_load_settings_overrides(monkeypatch):
    monkeypatch.setenv("APP_DEBUG", "0")

    cfg = load_settings(debug_override=True, provider_override=" FMP ")

    assert cfg.debug is True
    assert cfg.default_provider == "fmp"


def test_workflow_stages():
    workflow = ReportWorkflow(Config())
    stages = workflow.describe_stages()

    assert len(stages) == 6
    assert stages[0].startswith("ingest_statements")
    assert stages[-1].startswith("render_report")


def test_stage_descriptions_list_dependencies():
    stages = ReportWorkflow(Config()).describe_stages()

    assert "(after:" not in stages[0]
    assert stages[2].startswith("derive_metrics")
    assert stages[2].endswith("(after: reconcile_years)")
    assert stages[-1].endswith("(after: derive_metrics, detect_anomalies, build_charts)")


def test_config_accepts_every_calculation_basis(monkeypatch):
    for basis in CASH_CONVERSION_BASES:
        monkeypatch.setenv("CASH_CONVERSION_BASIS", basis.upper())

        assert Config.from_env().cash_conversion_basis == basis
