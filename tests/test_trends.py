"""
Test Suite: Search Volume Trends

Covers window selection, stability bands, insufficient-data handling,
seasonality, volatility and the historical volume range.
"""

import pytest

from src.scoring import (
    INSUFFICIENT_DATA,
    MonthPoint,
    build_historical_volume,
    compute_trend,
)
from src.scoring.trends import (
    classify_seasonality,
    classify_volatility,
    monthly_change,
    quarterly_change,
    yearly_change,
)


def points(volumes, start_year=2023, start_month=1):
    """Chronological MonthPoints from a list of volumes."""
    result = []
    year, month = start_year, start_month
    for volume in volumes:
        result.append(MonthPoint(year, month, volume))
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return result


class TestInsufficientData:
    """Fewer than 2 points must never produce a percentage."""

    @pytest.mark.parametrize("history", [[], [1000]])
    def test_every_field_insufficient(self, history):
        trend = compute_trend(points(history))

        for name in (
            "latest_trend", "direction", "period", "monthly_pct",
            "quarterly_pct", "yearly_pct", "seasonality", "volatility",
        ):
            assert getattr(trend, name) == INSUFFICIENT_DATA, f"{name} should be insufficient"

    def test_short_history_marks_long_windows_insufficient(self):
        trend = compute_trend(points([100, 200, 300]))

        assert isinstance(trend.monthly_pct, int)
        assert trend.quarterly_pct == INSUFFICIENT_DATA
        assert trend.yearly_pct == INSUFFICIENT_DATA

    def test_zero_baseline_with_growth_is_insufficient(self):
        assert monthly_change([0, 0, 500, 700]) == INSUFFICIENT_DATA

    def test_zero_baseline_without_growth_is_zero(self):
        assert monthly_change([0, 0]) == 0


class TestWindows:
    """Test the individual comparison windows."""

    def test_two_points_compare_single_months(self):
        assert monthly_change([1000, 1300]) == 30

    def test_monthly_uses_three_point_means(self):
        # last 3 mean 79000 vs previous 3 mean 71000
        volumes = [70000, 72000, 71000, 75000, 80000, 82000]
        assert monthly_change(volumes) == 11

    def test_quarterly_needs_six_points(self):
        assert quarterly_change([1, 2, 3, 4, 5]) == INSUFFICIENT_DATA
        assert quarterly_change([100, 100, 100, 50, 50, 50]) == -50

    def test_yearly_full_comparison(self):
        volumes = [100] * 12 + [150] * 12
        pct, band = yearly_change(volumes)

        assert pct == 50
        assert band == 10

    def test_yearly_half_split_uses_wide_band(self):
        volumes = [100] * 7 + [120] * 7
        pct, band = yearly_change(volumes)

        assert pct == 20
        assert band == 25

    def test_yearly_needs_twelve_points(self):
        pct, _ = yearly_change([100] * 11)
        assert pct == INSUFFICIENT_DATA


class TestLatestTrend:
    """Test direction, period and priority."""

    def test_rising(self):
        trend = compute_trend(points([1000, 1300]))

        assert trend.latest_trend == "+30%"
        assert trend.direction == "up"
        assert trend.period == "monthly"

    def test_falling(self):
        trend = compute_trend(points([1000, 500]))

        assert trend.latest_trend == "-50%"
        assert trend.direction == "down"

    def test_change_inside_band_is_stable(self):
        trend = compute_trend(points([1000, 1050]))

        assert trend.monthly_pct == 5
        assert trend.direction == "stable"
        assert trend.period == "monthly"

    def test_flat_history_is_stable(self):
        trend = compute_trend(points([500] * 8))

        assert trend.latest_trend == "stable"
        assert trend.direction == "stable"
        assert trend.period == "stable"
        assert trend.monthly_pct == 0

    def test_zero_monthly_falls_through_to_yearly(self):
        """A 0% monthly/quarterly change defers to the yearly window."""
        volumes = [100] * 6 + [200] * 6 + [200] * 6 + [200] * 6
        trend = compute_trend(points(volumes))

        assert trend.monthly_pct == 0
        assert trend.quarterly_pct == 0
        assert trend.yearly_pct == 33
        assert trend.period == "yearly"
        assert trend.direction == "up"

    def test_input_order_does_not_matter(self):
        ordered = points([1000, 1100, 1500])
        assert compute_trend(list(reversed(ordered))) == compute_trend(ordered)


class TestSeasonalityAndVolatility:
    """Test the band classifications."""

    @pytest.mark.parametrize("volumes,expected", [
        ([100, 90], "low"),          # 0.10
        ([100, 70], "medium"),       # 0.30
        ([100, 50], "high"),         # 0.50
        ([100, 20], "very_high"),    # 0.80
        ([0, 0], "low"),
    ])
    def test_seasonality(self, volumes, expected):
        assert classify_seasonality(volumes) == expected

    @pytest.mark.parametrize("volumes,expected", [
        ([100, 100, 100], "low"),
        ([80, 120], "medium"),       # cv 0.20
        ([65, 135], "high"),         # cv 0.35
        ([10, 190], "very_high"),    # cv 0.90
        ([0, 0], "low"),
    ])
    def test_volatility(self, volumes, expected):
        assert classify_volatility(volumes) == expected


class TestHistoricalVolume:
    """Test the sorted history and its date range."""

    def test_sorted_with_range(self):
        history = build_historical_volume([
            MonthPoint(2024, 2, 300),
            MonthPoint(2023, 11, 100),
            MonthPoint(2024, 1, 200),
        ])

        assert [p.month for p in history.data_points] == [11, 1, 2]
        assert history.start_date == "2023-11-01"
        assert history.end_date == "2024-02-01"
        assert history.total_months == 3
        assert history.data_points[0].month_name == "November"

    def test_empty_history(self):
        history = build_historical_volume([])

        assert history.start_date == ""
        assert history.end_date == ""
        assert history.to_dict()["data_range"]["total_months"] == 0
