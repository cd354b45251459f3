"""
Metric Derivation for the Keyword Intelligence Engine

Pure, deterministic functions over extracted upstream data:

1. **Tiers**
   Competition (0-1) and difficulty (0-100) levels, plus the finer
   five-step complexity tag.

2. **Trends**
   Monthly / quarterly / yearly volume change, seasonality and volatility.

3. **SERP Features**
   Feature detection, content opportunities and estimated CTR impact.

4. **Paid Competition**
   Ad count, advertiser dominance and ad quality, with insights from a
   declarative rule table.

Example Usage:
    from src.scoring import classify_competition, compute_trend, MonthPoint

    classify_competition(0.75)  # CompetitionLevel.HIGH

    trend = compute_trend([
        MonthPoint(2024, 1, 1000),
        MonthPoint(2024, 2, 1300),
    ])
    print(trend.latest_trend, trend.direction)  # +30% up
"""

from .tiers import (
    CompetitionLevel,
    DifficultyLevel,
    DifficultyComplexity,
    classify_competition,
    classify_difficulty,
    classify_complexity,
    competition_percentage,
)

from .trends import (
    INSUFFICIENT_DATA,
    MonthPoint,
    HistoricalVolume,
    TrendSummary,
    build_historical_volume,
    compute_trend,
    sort_points,
)

from .serp_features import (
    SERP_FEATURE_TABLE,
    SerpFeatureSet,
    analyze_serp_features,
)

from .paid_competition import (
    PAID_INSIGHT_RULES,
    PaidCompetitionSnapshot,
    analyze_paid_competition,
    score_ad_quality,
)

from .rules import InsightRule, evaluate_rules

__all__ = [
    # Tiers
    "CompetitionLevel",
    "DifficultyLevel",
    "DifficultyComplexity",
    "classify_competition",
    "classify_difficulty",
    "classify_complexity",
    "competition_percentage",

    # Trends
    "INSUFFICIENT_DATA",
    "MonthPoint",
    "HistoricalVolume",
    "TrendSummary",
    "build_historical_volume",
    "compute_trend",
    "sort_points",

    # SERP features
    "SERP_FEATURE_TABLE",
    "SerpFeatureSet",
    "analyze_serp_features",

    # Paid competition
    "PAID_INSIGHT_RULES",
    "PaidCompetitionSnapshot",
    "analyze_paid_competition",
    "score_ad_quality",

    # Rules
    "InsightRule",
    "evaluate_rules",
]
