from __future__ import annotations

from finsnapshot.domain.services.calculations import MetricsEngine
from finsnapshot.reports import charts
from finsnapshot.reports.charts import ChartBoard, waterfall_steps
from finsnapshot.reports.export import CSV_COLUMNS, export_csv, to_csv

from factories import make_record


def _years():
    return [
        make_record("2022", revenue=1000.0, ebitda=200.0, pat=100.0, ocf=250.0, ar=150.0, cash=400.0, equity=1000.0),
        make_record("2023", revenue=1200.0, ebitda=240.0, pat=130.0, ocf=300.0, ar=200.0, cash=450.0, equity=1100.0),
    ]


def test_csv_column_order_and_blank_missing(tmp_path):
    target = export_csv([make_record("2023", revenue=1000.0, cash=0.0)], tmp_path / "out" / "snapshot.csv")

    header, row = target.read_text(encoding="utf-8").splitlines()
    assert header.split(",") == list(CSV_COLUMNS)
    assert header.endswith("Inventory,TradePayables")
    cells = row.split(",")
    assert cells[0] == "2023"
    assert cells[1] == "1000.0"
    assert cells[CSV_COLUMNS.index("Cash")] == "0.0"
    assert cells[CSV_COLUMNS.index("EBITDA")] == ""


def test_csv_has_one_row_per_year():
    assert len(to_csv(_years()).splitlines()) == 3


def test_waterfall_steps_walk_down_to_cash():
    steps = waterfall_steps(make_record("2023", revenue=100.0, ebitda=30.0, pat=10.0, ocf=20.0, cash=15.0))

    assert [s[0] for s in steps] == ["Revenue", "EBITDA", "PAT", "OCF", "Cash"]
    assert steps[0] == ("Revenue", 0.0, 100.0, charts.BLUE)
    assert steps[1] == ("EBITDA", 30.0, 70.0, charts.RED)
    assert steps[3] == ("OCF", 10.0, 10.0, charts.GREEN)


def test_captions_for_healthy_company():
    records = _years()
    metrics = MetricsEngine().calculate(records)

    assert charts.waterfall_caption(records) == charts.WATERFALL_HEALTHY
    assert charts.revenue_ocf_caption(records) == charts.REV_OCF_TRACKING
    assert charts.equity_cash_caption(records) == charts.EQUITY_CASH_STRONG
    assert charts.dso_caption(metrics) == charts.DSO_EFFICIENT


def test_captions_fall_back_when_data_is_thin():
    records = [make_record("2023", revenue=100.0, ar=50.0)]
    metrics = MetricsEngine().calculate(records)

    assert charts.waterfall_caption(records) == charts.WATERFALL_MISSING
    assert charts.revenue_ocf_caption(records) == charts.REV_OCF_LAGGING
    assert charts.equity_cash_caption(records) == charts.EQUITY_CASH_MODEST
    assert charts.dso_caption(metrics) == charts.DSO_EXTENDED


def test_chart_board_replace_and_destroy(tmp_path):
    records = _years()
    metrics = MetricsEngine().calculate(records)
    board = ChartBoard()

    artifacts = board.render("DEMO", records, metrics, output_dir=tmp_path)
    first = board.figures
    board.render("DEMO", records, metrics)

    assert [a.key for a in artifacts] == ["waterfall", "revenue_ocf", "equity_cash", "dso"]
    assert all(a.path and (tmp_path / f"DEMO_{a.key}.png").exists() for a in artifacts)
    assert set(board.figures) == set(first)
    assert all(board.figures[key] is not first[key] for key in first)

    board.destroy()
    assert board.figures == {}


def test_chart_board_skips_waterfall_without_complete_year(tmp_path):
    records = [make_record("2023", revenue=100.0, cash=10.0)]
    board = ChartBoard()

    artifacts = board.render("DEMO", records, [], output_dir=tmp_path)

    assert "waterfall" not in board.figures
    assert artifacts[0].path is None
    assert artifacts[0].caption == charts.WATERFALL_MISSING
