"""Unit tests for trend direction, volatility and momentum."""
import pytest

from ticketpulse.analytics.trend_patterns import analyze_trend_pattern
from ticketpulse.standards.schemas import TrendPoint


def _points(*counts):
    return [TrendPoint(f"Week {i + 1}", c) for i, c in enumerate(counts)]


def test_zero_variance_series_is_stable():
    pattern = analyze_trend_pattern(_points(100, 100, 100, 100))
    assert pattern.is_stable is True
    assert pattern.is_volatile is False
    assert pattern.volatility_ratio == 0.0
    assert pattern.momentum == "steady"


def test_fewer_than_two_points_is_neutral():
    for points in ([], _points(5)):
        pattern = analyze_trend_pattern(points)
        assert pattern.is_stable
        assert not (pattern.is_increasing or pattern.is_decreasing or pattern.is_volatile)
        assert pattern.deltas == ()


def test_direction_needs_majority_and_mean_agreement():
    assert analyze_trend_pattern(_points(1, 2, 3, 4)).is_increasing
    assert analyze_trend_pattern(_points(4, 3, 2, 1)).is_decreasing
    mixed = analyze_trend_pattern(_points(5, 4, 10))
    assert not mixed.is_increasing and not mixed.is_decreasing


def test_volatility_ratio_uses_population_std_over_mean_count():
    pattern = analyze_trend_pattern(_points(10, 30, 10, 30))
    assert pattern.deltas == (20, -20, 20)
    # std([20, -20, 20]) = 18.856..., mean count = 20
    assert pattern.volatility_ratio == pytest.approx(0.9428, rel=1e-3)
    assert pattern.is_volatile


def test_momentum_accelerating_and_decelerating():
    assert analyze_trend_pattern(_points(10, 11, 12, 13, 20, 30, 45)).momentum == "accelerating"
    assert analyze_trend_pattern(_points(0, 10, 20, 30, 31, 32, 33)).momentum == "decelerating"
    # exactly three deltas: nothing earlier to compare against
    assert analyze_trend_pattern(_points(1, 5, 20, 60)).momentum == "steady"


def test_all_zero_counts_do_not_divide_by_zero():
    pattern = analyze_trend_pattern(_points(0, 0, 0))
    assert pattern.volatility_ratio == 0.0
    assert pattern.is_stable
