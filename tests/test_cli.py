from __future__ import annotations

from typer.testing import CliRunner

from finsnapshot.cli.commands import app

runner = CliRunner()


def test_analyze_with_sample_provider(tmp_path, monkeypatch):
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path))
    csv_path = tmp_path / "demo.csv"
    md_path = tmp_path / "demo.md"

    result = runner.invoke(
        app,
        ["analyze", "demo", "--provider", "sample", "--csv", str(csv_path), "--markdown", str(md_path)],
    )

    assert result.exit_code == 0, result.output
    assert "Workflow completed successfully" in result.output
    assert csv_path.read_text(encoding="utf-8").startswith("Year,Revenue,EBITDA")
    assert "Five-Year Snapshot" in md_path.read_text(encoding="utf-8")


def test_analyze_unknown_provider_exits_with_error(tmp_path, monkeypatch):
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path))

    result = runner.invoke(app, ["analyze", "demo", "--provider", "yahoo"])

    assert result.exit_code == 1
    assert "Unknown provider" in result.output


def test_analyze_without_api_key_exits_with_error(monkeypatch):
    monkeypatch.delenv("ALPHA_VANTAGE_API_KEY", raising=False)

    result = runner.invoke(app, ["analyze", "IBM", "--provider", "alphavantage"])

    assert result.exit_code == 1
    assert "API key is missing" in result.output


def test_rules_lists_threshold_conditions():
    result = runner.invoke(app, ["rules"])

    assert result.exit_code == 0
    assert "Threshold Rules" in result.output
    assert "Trend Rules" in result.output


def test_plan_lists_stages():
    result = runner.invoke(app, ["plan"])

    assert result.exit_code == 0
    assert "ingest_statements" in result.output
    assert "render_report" in result.output


def test_analyze_reports_unwritable_exports(tmp_path, monkeypatch):
    monkeypatch.setenv("OUTPUT_DIR", str(tmp_path))
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")

    result = runner.invoke(
        app,
        [
            "analyze",
            "demo",
            "--provider",
            "sample",
            "--markdown",
            str(blocker / "demo.md"),
            "--json",
            str(blocker / "state.json"),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Workflow completed with errors" in result.output
    assert "Markdown export failed" in result.output
    assert "State export failed" in result.output
