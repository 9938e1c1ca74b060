"""Tests for the quadratic trend classifier."""

import pytest

from bottomtick.trends import clamp_window, classify_values, fit_quadratic


GROWING = [100, 110, 121, 133, 146, 160, 176, 193]


def test_flat_data_is_neutral():
    result = classify_values([5.0] * 8)
    assert result.overall_trend == "neutral"
    assert result.short_term_trend == "neutral"
    assert result.latest_value == 5.0


def test_flat_billions_is_neutral():
    result = classify_values([3.2e11] * 12, extended=True)
    assert result.overall_trend == "neutral"
    assert result.short_term_trend == "neutral"


def test_growing_series_is_up():
    result = classify_values(GROWING, short_term_window=3)
    assert result.overall_trend == "up"
    assert result.short_term_trend == "up"   # 160 → 193 is +20.6%
    assert result.latest_value == 193


def test_shrinking_series_is_down():
    result = classify_values(list(reversed(GROWING)), short_term_window=3)
    assert result.overall_trend == "down"
    assert result.short_term_trend == "down"


def test_signals_can_disagree():
    # Long climb, then a sharp drop in the last quarters
    ys = [10, 20, 30, 40, 50, 60, 70, 80, 90, 100, 80, 60]
    result = classify_values(ys, short_term_window=3)
    assert result.overall_trend == "up"
    assert result.short_term_trend == "down"


def test_short_term_band():
    result = classify_values([100, 90, 100, 103], short_term_window=2)
    assert result.short_term_trend == "neutral"     # +3% is inside ±5%
    result = classify_values([100, 90, 100, 106], short_term_window=2)
    assert result.short_term_trend == "up"


def test_short_term_from_zero():
    assert classify_values([0, 0, 5], short_term_window=3).short_term_trend == "up"
    assert classify_values([0, 0, -5], short_term_window=3).short_term_trend == "down"
    assert classify_values([0, 3, 0], short_term_window=3).short_term_trend == "neutral"
    assert classify_values([1, 0, 0], short_term_window=2).short_term_trend == "neutral"


def test_small_values_are_not_degenerate():
    # EPS-scale numbers must still classify
    eps = [0.41, 0.44, 0.47, 0.52, 0.55, 0.61, 0.66, 0.70]
    assert fit_quadratic(eps) is not None
    assert classify_values(eps).overall_trend == "up"


def test_two_points_degenerate_fit():
    assert fit_quadratic([100, 200]) is None
    result = classify_values([100, 200], short_term_window=3)
    assert result.overall_trend == "neutral"
    assert result.short_term_trend == "up"


def test_fewer_than_two_points():
    assert classify_values([]).overall_trend == "neutral"
    single = classify_values([42.0])
    assert single.overall_trend == "neutral"
    assert single.latest_value == 42.0


def test_fit_recovers_exact_quadratic():
    ys = [3 + 2 * x + 0.5 * x * x for x in range(10)]
    fit = fit_quadratic(ys)
    assert fit.a == pytest.approx(3)
    assert fit.b == pytest.approx(2)
    assert fit.c == pytest.approx(0.5)


def test_quarterly_trends_only_when_extended():
    ys = [10, 20, 30, 40, 50, 60, 70, 80]
    assert classify_values(ys).quarterly_trends == []

    result = classify_values(ys, extended=True)
    labels = [q.quarter for q in result.quarterly_trends]
    assert labels == ["6Q ago", "5Q ago", "4Q ago", "3Q ago", "2Q ago", "1Q ago"]
    deltas = [q.trend_percent for q in result.quarterly_trends]
    assert deltas[0] == pytest.approx(50.0, abs=0.01)      # fitted 20 → 30
    assert deltas[-1] == pytest.approx(14.29, abs=0.01)    # fitted 70 → 80


def test_quarterly_trends_need_six_points():
    assert classify_values([1, 2, 3, 4, 5], extended=True).quarterly_trends == []
    assert len(classify_values([1, 2, 3, 4, 5, 6], extended=True).quarterly_trends) == 5


def test_clamp_window():
    assert clamp_window(0) == 1
    assert clamp_window(10) == 6
    assert clamp_window(None) == 3
    assert clamp_window(4) == 4
