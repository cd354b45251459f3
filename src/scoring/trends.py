"""
Search Volume Trend Analysis

Derives trend direction and magnitude from a keyword's monthly search
history.

Windows:
    monthly:   mean of last w points vs mean of the preceding w, w = min(3, n // 2)
    quarterly: last 3 vs preceding 3 (needs 6 points)
    yearly:    trailing 12 vs prior 12 (needs 24 points); with 12-23 points
               the second half is compared to the first half instead, with a
               wider stability band since no true year-over-year exists

Seasonality = (max - min) / max
Volatility  = population stdev / mean

Anything that cannot be computed reports "insufficient_data". With fewer
than 2 points every field does.
"""

import calendar
import statistics
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Tuple, Union

INSUFFICIENT_DATA = "insufficient_data"

STABLE_BAND_PCT = 10
HALF_SPLIT_STABLE_BAND_PCT = 25

SEASONALITY_BANDS: Tuple[float, float, float] = (0.25, 0.40, 0.60)
VOLATILITY_BANDS: Tuple[float, float, float] = (0.15, 0.30, 0.40)

Percent = Union[int, str]


# ============================================================================
# DATA POINTS
# ============================================================================

@dataclass(frozen=True)
class MonthPoint:
    """One month of search volume."""
    year: int
    month: int
    search_volume: int

    @property
    def month_name(self) -> str:
        return calendar.month_name[self.month]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "month_name": self.month_name,
            "search_volume": self.search_volume,
        }


def sort_points(points: Iterable[MonthPoint]) -> List[MonthPoint]:
    """Chronological order (upstream returns newest first)."""
    return sorted(points, key=lambda p: (p.year, p.month))


@dataclass
class HistoricalVolume:
    """Chronological volume history with its date range."""
    data_points: List[MonthPoint] = field(default_factory=list)
    start_date: str = ""
    end_date: str = ""

    @property
    def total_months(self) -> int:
        return len(self.data_points)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data_points": [p.to_dict() for p in self.data_points],
            "data_range": {
                "start_date": self.start_date,
                "end_date": self.end_date,
                "total_months": self.total_months,
            },
        }


def build_historical_volume(points: Iterable[MonthPoint]) -> HistoricalVolume:
    """Sort points and derive the "YYYY-MM-01" date range."""
    ordered = sort_points(points)
    if not ordered:
        return HistoricalVolume()

    first, last = ordered[0], ordered[-1]
    return HistoricalVolume(
        data_points=ordered,
        start_date=f"{first.year}-{first.month:02d}-01",
        end_date=f"{last.year}-{last.month:02d}-01",
    )


# ============================================================================
# TREND SUMMARY
# ============================================================================

@dataclass
class TrendSummary:
    """Trend direction, per-window changes, seasonality and volatility."""
    latest_trend: str
    direction: str      # "up", "down", "stable" or insufficient_data
    period: str         # "monthly", "quarterly", "yearly", "stable" or insufficient_data
    monthly_pct: Percent
    quarterly_pct: Percent
    yearly_pct: Percent
    seasonality: str
    volatility: str

    @classmethod
    def insufficient(cls) -> "TrendSummary":
        return cls(
            latest_trend=INSUFFICIENT_DATA,
            direction=INSUFFICIENT_DATA,
            period=INSUFFICIENT_DATA,
            monthly_pct=INSUFFICIENT_DATA,
            quarterly_pct=INSUFFICIENT_DATA,
            yearly_pct=INSUFFICIENT_DATA,
            seasonality=INSUFFICIENT_DATA,
            volatility=INSUFFICIENT_DATA,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latest_trend": self.latest_trend,
            "direction": self.direction,
            "period": self.period,
            "all_trends": {
                "monthly": self.monthly_pct,
                "quarterly": self.quarterly_pct,
                "yearly": self.yearly_pct,
            },
            "seasonality": self.seasonality,
            "volatility": self.volatility,
        }


def _mean(values: List[int]) -> float:
    return sum(values) / len(values)


def _pct_change(current: float, baseline: float) -> Percent:
    """Rounded percentage change; a zero baseline only supports "no change"."""
    if baseline == 0:
        return 0 if current == 0 else INSUFFICIENT_DATA
    return int(round((current - baseline) / baseline * 100))


def _band(value: float, bands: Tuple[float, float, float]) -> str:
    low, medium, high = bands
    if value < low:
        return "low"
    elif value < medium:
        return "medium"
    elif value < high:
        return "high"
    else:
        return "very_high"


def monthly_change(volumes: List[int]) -> Percent:
    n = len(volumes)
    if n < 2:
        return INSUFFICIENT_DATA
    w = min(3, n // 2)
    return _pct_change(_mean(volumes[-w:]), _mean(volumes[-2 * w:-w]))


def quarterly_change(volumes: List[int]) -> Percent:
    if len(volumes) < 6:
        return INSUFFICIENT_DATA
    return _pct_change(_mean(volumes[-3:]), _mean(volumes[-6:-3]))


def yearly_change(volumes: List[int]) -> Tuple[Percent, int]:
    """
    Year-level change and the stability band that applies to it.

    Returns:
        (percentage or insufficient_data, stable band in percent)
    """
    n = len(volumes)
    if n >= 24:
        return _pct_change(sum(volumes[-12:]), sum(volumes[-24:-12])), STABLE_BAND_PCT
    if n >= 12:
        half = n // 2
        return (
            _pct_change(_mean(volumes[half:]), _mean(volumes[:half])),
            HALF_SPLIT_STABLE_BAND_PCT,
        )
    return INSUFFICIENT_DATA, STABLE_BAND_PCT


def classify_seasonality(volumes: List[int]) -> str:
    if len(volumes) < 2:
        return INSUFFICIENT_DATA
    peak = max(volumes)
    if peak == 0:
        return "low"
    return _band((peak - min(volumes)) / peak, SEASONALITY_BANDS)


def classify_volatility(volumes: List[int]) -> str:
    if len(volumes) < 2:
        return INSUFFICIENT_DATA
    mean = _mean(volumes)
    if mean == 0:
        return "low"
    return _band(statistics.pstdev(volumes) / mean, VOLATILITY_BANDS)


def _format_pct(pct: int) -> str:
    return f"+{pct}%" if pct > 0 else f"{pct}%"


def compute_trend(points: Iterable[MonthPoint]) -> TrendSummary:
    """
    Compute the trend summary for a volume history.

    Latest trend follows a fixed priority: monthly, then quarterly, then
    yearly. A lower-priority window is only consulted when every higher one
    is zero or missing, so a genuine 0% monthly change is indistinguishable
    from no monthly data. A chosen change inside its stability band is
    reported with direction "stable".

    Args:
        points: Monthly data points in any order

    Returns:
        TrendSummary
    """
    volumes = [p.search_volume for p in sort_points(points)]
    if len(volumes) < 2:
        return TrendSummary.insufficient()

    monthly = monthly_change(volumes)
    quarterly = quarterly_change(volumes)
    yearly, yearly_band = yearly_change(volumes)

    latest_trend = "stable"
    direction = "stable"
    period = "stable"

    candidates = (
        ("monthly", monthly, STABLE_BAND_PCT),
        ("quarterly", quarterly, STABLE_BAND_PCT),
        ("yearly", yearly, yearly_band),
    )
    for name, pct, band in candidates:
        if isinstance(pct, int) and pct != 0:
            latest_trend = _format_pct(pct)
            period = name
            if abs(pct) <= band:
                direction = "stable"
            else:
                direction = "up" if pct > 0 else "down"
            break

    return TrendSummary(
        latest_trend=latest_trend,
        direction=direction,
        period=period,
        monthly_pct=monthly,
        quarterly_pct=quarterly,
        yearly_pct=yearly,
        seasonality=classify_seasonality(volumes),
        volatility=classify_volatility(volumes),
    )
