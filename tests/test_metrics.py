from __future__ import annotations

import math

import pytest

from finsnapshot.domain.services.calculations import MetricsEngine

from factories import make_record


def test_derive_basic_ratios():
    prev = make_record("2022", revenue=800.0, equity=1000.0)
    curr = make_record("2023", revenue=1000.0, ebitda=200.0, pat=50.0, ocf=150.0, ar=250.0, cash=300.0, equity=1200.0)

    metric = MetricsEngine().derive(curr, prev)

    assert metric.ebitda_margin_pct == pytest.approx(20.0)
    assert metric.pat_margin_pct == pytest.approx(5.0)
    assert metric.cash_conversion_ratio == pytest.approx(0.75)
    assert metric.dso_days == pytest.approx(91.25)
    assert metric.equity_growth_pct == pytest.approx(20.0)
    assert metric.cash_to_equity_ratio == pytest.approx(0.25)
    assert metric.revenue_yoy_pct == pytest.approx(25.0)


def test_zero_revenue_leaves_revenue_ratios_undefined():
    metric = MetricsEngine().derive(make_record("2023", revenue=0.0, ebitda=10.0, pat=5.0, ar=3.0))

    assert metric.ebitda_margin_pct is None
    assert metric.pat_margin_pct is None
    assert metric.dso_days is None


def test_first_year_has_no_growth():
    records = [make_record("2022", revenue=100.0, equity=50.0), make_record("2023", revenue=150.0, equity=50.0)]

    metrics = MetricsEngine().calculate(records)

    assert metrics[0].revenue_yoy_pct is None
    assert metrics[0].equity_growth_pct is None
    assert metrics[1].revenue_yoy_pct == pytest.approx(50.0)
    assert metrics[1].equity_growth_pct == 0.0


def test_calculate_is_idempotent():
    records = [make_record("2022", revenue=100.0, ebitda=12.0), make_record("2023", revenue=120.0, ebitda=15.0)]
    engine = MetricsEngine()

    assert engine.calculate(records) == engine.calculate(records)


def test_pat_basis_for_cash_conversion():
    record = make_record("2023", ebitda=200.0, pat=100.0, ocf=150.0)

    assert MetricsEngine("pat").derive(record).cash_conversion_ratio == pytest.approx(1.5)
    assert MetricsEngine("ebitda").derive(record).cash_conversion_ratio == pytest.approx(0.75)


def test_unknown_basis_rejected():
    with pytest.raises(ValueError):
        MetricsEngine("revenue")


def test_to_frame_shows_nan_for_undefined():
    metrics = MetricsEngine().calculate([make_record("2023", revenue=0.0, cash=10.0, equity=20.0)])

    frame = MetricsEngine.to_frame(metrics)

    assert list(frame.index) == ["2023"]
    assert math.isnan(frame.loc["2023", "ebitda_margin_pct"])
    assert frame.loc["2023", "cash_to_equity_ratio"] == pytest.approx(0.5)
