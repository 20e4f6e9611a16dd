"""CLI command definitions for the five-year financial snapshot."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from finsnapshot.domain.errors import FinancialDataError
from finsnapshot.domain.models.financials import DerivedMetric, FiscalYearRecord, YearAnomalies
from finsnapshot.domain.services.anomalies import THRESHOLD_RULES, TREND_RULES
from finsnapshot.reports.export import CSV_COLUMNS, export_csv
from finsnapshot.reports.renderer import format_amount, format_metric
from finsnapshot.settings.config import Config
from finsnapshot.settings.loader import load_settings
from finsnapshot.utils.logging import configure_logging
from finsnapshot.workflows.graph import ReportWorkflow
from finsnapshot.workflows.state import SnapshotState

console = Console()
app = typer.Typer(help="Build five-year financial snapshots with anomaly flags from the terminal.")

SEVERITY_STYLES = {
    "red": "bold red",
    "orange": "dark_orange",
    "yellow": "yellow",
    "purple": "magenta",
    "blue": "blue",
}


@dataclass
class AppContext:
    """Holds reusable process-wide objects for CLI commands."""

    config: Config
    workflow: ReportWorkflow


def _init_context(debug_override: Optional[bool] = None) -> AppContext:
    """Create a context with configuration, logging, and workflow wiring."""
    config = load_settings(debug_override=debug_override)
    configure_logging(debug=config.debug)
    workflow = ReportWorkflow(config=config)
    return AppContext(config=config, workflow=workflow)


@app.callback()
def main_callback(
    ctx: typer.Context,
    debug: Optional[bool] = typer.Option(
        None,
        "--debug/--no-debug",
        help="Temporarily toggle verbose logging without touching environment variables.",
    ),
) -> None:
    """Attach the lazily constructed application context to Typer."""
    ctx.obj = _init_context(debug_override=debug)


@app.command()
def analyze(
    ctx: typer.Context,
    ticker: str = typer.Argument(..., help="Ticker symbol, e.g. AAPL"),
    providers: Optional[List[str]] = typer.Option(
        None,
        "--provider",
        "-p",
        help="Data provider (alphavantage, fmp, sample). Repeat to merge several; earlier ones win.",
    ),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Write the five-year table to CSV."),
    markdown_path: Optional[Path] = typer.Option(None, "--markdown", help="Write the Markdown snapshot report."),
    charts: bool = typer.Option(False, "--charts", help="Render PNG charts into the output directory."),
    json_path: Optional[Path] = typer.Option(None, "--json", help="Persist the workflow state to JSON."),
) -> None:
    """Fetch, reconcile and analyse the last five fiscal years for one ticker."""
    if ctx.obj is None:
        raise typer.Exit(code=1)

    context: AppContext = ctx.obj
    if charts:
        context.config.ensure_directories()
    console.rule(f"Financial snapshot for {ticker.strip().upper()}")

    try:
        with console.status("[bold cyan]Fetching statements..."):
            result: SnapshotState = asyncio.run(
                context.workflow.run(
                    ticker,
                    providers,
                    render_charts=charts,
                    render_markdown=markdown_path is not None,
                )
            )
    except (FinancialDataError, ValueError) as exc:
        console.print(f"[bold red]{escape(str(exc))}[/bold red]")
        raise typer.Exit(code=1) from exc

    records = result.get("records") or []
    _print_records(records)
    _print_metrics(result.get("metrics") or [])
    _print_flags(result.get("anomalies") or [])
    for flag in result.get("trend_flags") or []:
        prefix = f"{flag.year}: " if flag.year else ""
        style = "yellow" if flag.detected else "green"
        console.print(f"[{style}]{prefix}{flag.category.capitalize()}[/{style}] - {flag.interpretation}")

    if csv_path is not None:
        try:
            export_csv(records, csv_path)
            console.print(f"CSV exported to {csv_path}")
        except OSError as exc:
            result.setdefault("errors", []).append(f"CSV export failed: {exc}")

    if markdown_path is not None and result.get("markdown_report"):
        try:
            context.workflow.persist_markdown(result["markdown_report"], markdown_path)
            console.print(f"Markdown report available at {markdown_path}")
        except OSError as exc:
            result.setdefault("errors", []).append(f"Markdown export failed: {exc}")

    for chart in result.get("charts") or []:
        if chart.path:
            console.print(f"Chart saved to {chart.path}")

    if json_path is not None:
        try:
            context.workflow.persist_state(result, json_path)
            console.print(f"State saved to {json_path}")
        except OSError as exc:
            result.setdefault("errors", []).append(f"State export failed: {exc}")

    if result.get("errors"):
        console.print("[bold red]Workflow completed with errors:[/bold red]")
        for issue in result["errors"]:
            console.print(f"- {escape(issue)}")
    else:
        console.print("[bold green]Workflow completed successfully.[/bold green]")


@app.command()
def rules() -> None:
    """List the anomaly rules in evaluation order."""
    table = Table(title="Threshold Rules")
    table.add_column("Flag")
    table.add_column("Condition", style="cyan")
    table.add_column("Interpretation")
    for rule in THRESHOLD_RULES:
        style = SEVERITY_STYLES.get(rule.severity, "white")
        table.add_row(f"[{style}]{rule.severity}[/{style}]", rule.condition, rule.interpretation)
    console.print(table)

    trend = Table(title="Trend Rules")
    trend.add_column("Signal", style="cyan")
    trend.add_column("Interpretation")
    for rule in TREND_RULES:
        trend.add_row(rule.category, rule.interpretation)
    console.print(trend)


@app.command()
def plan(ctx: typer.Context) -> None:
    """Display the high-level workflow path for quick operator reference."""
    if ctx.obj is None:
        raise typer.Exit(code=1)

    context: AppContext = ctx.obj
    table = Table(title="Workflow Stages")
    table.add_column("Step", style="cyan")
    table.add_column("Description")

    for idx, step in enumerate(context.workflow.describe_stages(), start=1):
        table.add_row(str(idx), step)

    console.print(table)


def _print_records(records: Sequence[FiscalYearRecord]) -> None:
    table = Table(title="Five-Year Financials", show_header=True, header_style="bold magenta")
    for column in CSV_COLUMNS:
        table.add_column(column, justify="right")
    for record in records:
        values = record.as_dict()
        year = values.pop("year")
        table.add_row(year, *(format_amount(value) for value in values.values()))
    console.print(table)


def _print_metrics(metrics: Sequence[DerivedMetric]) -> None:
    table = Table(title="Derived Metrics", show_header=True, header_style="bold magenta")
    for column in ("Year", "EBITDA %", "PAT %", "Cash Conv.", "DSO", "Equity Growth %", "Cash/Equity", "Revenue YoY %"):
        table.add_column(column, justify="right")
    for m in metrics:
        table.add_row(
            m.year,
            format_metric(m.ebitda_margin_pct),
            format_metric(m.pat_margin_pct),
            format_metric(m.cash_conversion_ratio, "x", 2),
            format_metric(m.dso_days, digits=0),
            format_metric(m.equity_growth_pct),
            format_metric(m.cash_to_equity_ratio, "x", 2),
            format_metric(m.revenue_yoy_pct),
        )
    console.print(table)


def _print_flags(anomalies: Sequence[YearAnomalies]) -> None:
    table = Table(title="Anomaly Flags", show_header=True, header_style="bold magenta")
    table.add_column("Year")
    table.add_column("Flag")
    table.add_column("Condition")
    table.add_column("Interpretation")
    for year in anomalies:
        for flag in year.flags:
            if flag.is_placeholder:
                table.add_row(year.year, "[green]ok[/green]", flag.category, flag.interpretation)
                continue
            style = SEVERITY_STYLES.get(flag.severity or "", "white")
            table.add_row(year.year, f"[{style}]{flag.severity}[/{style}]", flag.condition, flag.interpretation)
    console.print(table)
