import math

import pytest

from kpi_engine.pacing import (
    FocusChannel,
    compute_pacing,
    elapsed_fraction,
    find_focus_channel,
    pacing_status,
    prorate,
    target_attainment,
)


@pytest.mark.parametrize(
    "ratio, expected",
    [(1.0, "good"), (1.5, "good"), (0.9999, "ok"), (0.9, "ok"), (0.8999, "bad"), (0.0, "bad")],
)
def test_pacing_status_thresholds(ratio, expected):
    assert pacing_status(ratio) == expected


def test_compute_pacing_prorates_target(config):
    result = compute_pacing("Volume UC", 90.0, 310.0, 10.0, 30.0, config)
    assert result.prorated_target == pytest.approx(103.33, abs=0.01)
    assert result.ratio == pytest.approx(0.871, abs=1e-3)
    assert result.status == "bad"
    assert result.actual == 90.0


def test_compute_pacing_zero_days_in_month(config):
    result = compute_pacing("Volume UC", 90.0, 310.0, 10.0, 0.0, config)
    assert result.prorated_target == 0.0
    assert result.ratio == 0.0
    assert result.status == "bad"
    assert not math.isinf(result.ratio) and not math.isnan(result.ratio)


def test_compute_pacing_missing_total_days(config):
    result = compute_pacing("Volume UC", 5.0, 10.0, None, None, config)
    assert result.prorated_target == 0.0
    assert result.status == "bad"


def test_compute_pacing_skips_cumulative_kpis(config):
    assert compute_pacing("Registered Customers", 800.0, 900.0, 10.0, 30.0, config) is None


def test_compute_pacing_good_when_ahead(config):
    result = compute_pacing("Delivered Orders", 50.0, 120.0, 10.0, 30.0, config)
    assert result.ratio == pytest.approx(1.25)
    assert result.status == "good"


def test_elapsed_fraction_and_prorate():
    assert elapsed_fraction(15, 30) == 0.5
    assert elapsed_fraction(15, 0) == 0.0
    assert prorate(200.0, 15, 30) == 100.0


def test_prorate_without_elapsed_share_ignores_unbounded_target(config):
    assert prorate(float("inf"), 10, 0) == 0.0
    assert prorate(float("inf"), 0, 30) == 0.0
    assert compute_pacing("Volume UC", 90.0, float("inf"), 10.0, 30.0, config).ratio == 0.0


def test_target_attainment_guards_zero_target():
    result = target_attainment(10.0, 0.0)
    assert result.ratio == 0.0
    assert result.status == "bad"
    assert target_attainment(95.0, 100.0).status == "ok"


def test_find_focus_channel_picks_worst_gap():
    focus = find_focus_channel([("LKA", 40.0, 40.0), ("DSD", 10.0, 20.0), ("WHS", 15.0, 20.0)])
    assert focus == FocusChannel(name="DSD", gap=pytest.approx(-0.5))


def test_find_focus_channel_below_threshold_only():
    assert find_focus_channel([("LKA", 96.0, 100.0), ("DSD", 100.0, 100.0)]) is None
    assert find_focus_channel([("LKA", 95.5, 100.0)]) is None
    focus = find_focus_channel([("LKA", 94.0, 100.0)])
    assert focus.name == "LKA"
    assert focus.gap == pytest.approx(-0.06)


def test_find_focus_channel_tie_keeps_first_seen():
    focus = find_focus_channel([("WHS", 5.0, 10.0), ("LKA", 50.0, 100.0), ("DSD", 10.0, 20.0)])
    assert focus.name == "WHS"


def test_find_focus_channel_zero_target_counts_as_on_pace():
    assert find_focus_channel([("LKA", 0.0, 0.0), ("DSD", 10.0, 0.0)]) is None


def test_find_focus_channel_empty():
    assert find_focus_channel([]) is None
