from __future__ import annotations

from finsnapshot.domain.services.anomalies import (
    NO_FLAGS_CATEGORY,
    NO_FLAGS_INTERPRETATION,
    THRESHOLD_RULES,
    ThresholdAnomalyDetector,
)

from factories import make_record


def _categories(year_anomalies):
    return [flag.category for flag in year_anomalies.flags]


def test_rule_table_order_and_severity():
    assert [rule.key for rule in THRESHOLD_RULES] == [
        "weak_operating_margin",
        "thin_net_margin",
        "weak_cash_conversion",
        "stretched_receivables",
        "volume_led_growth",
        "cash_rich",
    ]
    assert [rule.severity for rule in THRESHOLD_RULES] == ["red", "orange", "yellow", "red", "purple", "blue"]


def test_ebitda_margin_threshold():
    detector = ThresholdAnomalyDetector()

    low = detector.evaluate(make_record("2023", revenue=100.0, ebitda=5.0))
    high = detector.evaluate(make_record("2023", revenue=100.0, ebitda=15.0))

    assert "weak operating margin" in _categories(low)
    assert "weak operating margin" not in _categories(high)


def test_zero_ebitda_counts_as_present():
    # Zero numerator is a real value, not a missing one.
    result = ThresholdAnomalyDetector().evaluate(make_record("2023", revenue=100.0, ebitda=0.0))

    assert _categories(result) == ["weak operating margin"]


def test_volume_led_growth_needs_prior_year():
    detector = ThresholdAnomalyDetector()
    prev = make_record("2022", revenue=100.0, pat=10.0)

    lagging = detector.evaluate(make_record("2023", revenue=130.0, pat=10.3), prev)
    keeping_up = detector.evaluate(make_record("2023", revenue=130.0, pat=11.0), prev)
    first_year = detector.evaluate(make_record("2023", revenue=130.0, pat=10.3))

    assert "volume-led growth without profit conversion" in _categories(lagging)
    assert "volume-led growth without profit conversion" not in _categories(keeping_up)
    assert "volume-led growth without profit conversion" not in _categories(first_year)


def test_loss_making_prior_year_skips_volume_rule():
    prev = make_record("2022", revenue=100.0, pat=-5.0)

    result = ThresholdAnomalyDetector().evaluate(make_record("2023", revenue=200.0, pat=-4.0), prev)

    assert "volume-led growth without profit conversion" not in _categories(result)


def test_no_flags_placeholder_row():
    (year,) = ThresholdAnomalyDetector().detect([make_record("2023")])

    assert not year.flagged
    (flag,) = year.flags
    assert flag.category == NO_FLAGS_CATEGORY
    assert flag.interpretation == NO_FLAGS_INTERPRETATION
    assert flag.severity is None
    assert flag.condition == "-"


def test_flags_follow_rule_order():
    record = make_record("2023", revenue=100.0, ebitda=5.0, pat=1.0, ocf=1.0, ar=50.0, cash=80.0, equity=100.0)

    (year,) = ThresholdAnomalyDetector().detect([record])

    assert [flag.severity for flag in year.flags] == ["red", "orange", "yellow", "red", "blue"]
    assert year.flagged


def test_detect_emits_one_entry_per_year(healthy_years):
    results = ThresholdAnomalyDetector().detect(healthy_years)

    assert [r.year for r in results] == ["2022", "2023"]
    assert all(r.flags for r in results)


def test_zero_revenue_year_skips_margin_rules():
    record = make_record("2023", revenue=0.0, ebitda=-5.0, pat=-5.0, ar=10.0)

    result = ThresholdAnomalyDetector().evaluate(record)

    assert _categories(result) == [NO_FLAGS_CATEGORY]
