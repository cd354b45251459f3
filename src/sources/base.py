"""
Source Adapter Base

Each source (Google, Bing) turns one keyword request into several upstream
calls, runs them concurrently, and normalizes the answers into
SourceMetrics. Any terminal failure of any call fails the whole source;
partial metrics are never returned.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Dict, List, Optional

from src.collector.client import DataForSEOClient
from src.collector.envelope import UpstreamEnvelope, extract_first_task_result
from src.collector.errors import DataForSEOError, classify_error
from src.collector.retry import CostLedger
from src.scoring import (
    HistoricalVolume,
    MonthPoint,
    PaidCompetitionSnapshot,
    SerpFeatureSet,
    TrendSummary,
    classify_competition,
    classify_complexity,
    classify_difficulty,
    competition_percentage,
)

if TYPE_CHECKING:
    from src.intelligence.models import MetricRequest

logger = logging.getLogger(__name__)

DEFAULT_INTENT_LABEL = "informational"
CURRENCY = "USD"


@dataclass
class SearchIntent:
    label: str = DEFAULT_INTENT_LABEL
    probability: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "probability": self.probability}


@dataclass
class KeywordCoreMetrics:
    """Normalized headline metrics for one keyword from one source."""
    search_volume: int = 0
    competition_score: float = 0.0
    competition_level: str = "LOW"
    competition_percentage: int = 0
    cpc: float = 0.0
    currency: str = CURRENCY
    monthly_searches: List[MonthPoint] = field(default_factory=list)
    difficulty_score: int = 0
    difficulty_level: str = "LOW"
    difficulty_complexity: str = "easy"
    search_intent: SearchIntent = field(default_factory=SearchIntent)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "search_volume": self.search_volume,
            "competition": {
                "score": self.competition_score,
                "level": self.competition_level,
                "percentage": self.competition_percentage,
            },
            "cpc": {"value": self.cpc, "currency": self.currency},
            "monthly_searches": [p.to_dict() for p in self.monthly_searches],
            "keyword_difficulty": {
                "score": self.difficulty_score,
                "level": self.difficulty_level,
                "complexity": self.difficulty_complexity,
            },
            "search_intent": self.search_intent.to_dict(),
        }


def build_core_metrics(
    search_volume: Optional[int],
    competition: Optional[float],
    cpc: Optional[float],
    monthly_searches: List[MonthPoint],
    difficulty: Optional[int],
    intent: SearchIntent,
) -> KeywordCoreMetrics:
    """
    Apply tier classification to raw values; missing values count as zero.

    Args:
        search_volume: Average monthly searches
        competition: Paid competition score (0-1)
        cpc: Cost per click
        monthly_searches: Chronological monthly volumes
        difficulty: Keyword difficulty (0-100)
        intent: Search intent

    Returns:
        KeywordCoreMetrics
    """
    competition = min(1.0, max(0.0, competition or 0.0))
    difficulty = min(100, max(0, difficulty or 0))

    return KeywordCoreMetrics(
        search_volume=max(0, search_volume or 0),
        competition_score=competition,
        competition_level=classify_competition(competition).value,
        competition_percentage=competition_percentage(competition),
        cpc=max(0.0, cpc or 0.0),
        monthly_searches=monthly_searches,
        difficulty_score=difficulty,
        difficulty_level=classify_difficulty(difficulty).value,
        difficulty_complexity=classify_complexity(difficulty).value,
        search_intent=intent,
    )


@dataclass
class SourceMetrics:
    """One adapter's normalized output."""
    source: str
    core_metrics: KeywordCoreMetrics
    trend: TrendSummary
    historical_volume: HistoricalVolume
    serp_features: Optional[SerpFeatureSet] = None
    paid_competition: Optional[PaidCompetitionSnapshot] = None
    cost: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "core_metrics": self.core_metrics.to_dict(),
            "trend_volume": self.trend.to_dict(),
            "historical_volume": self.historical_volume.to_dict(),
            "serp_features": self.serp_features.to_dict() if self.serp_features else None,
            "paid_competition": self.paid_competition.to_dict() if self.paid_competition else None,
            "cost": self.cost,
        }


def result_items(envelope: UpstreamEnvelope) -> List[Any]:
    """Items of the first result object (DataForSEO Labs layout)."""
    results = extract_first_task_result(envelope)
    if not results or not isinstance(results[0], dict):
        return []
    return results[0].get("items") or []


class SourceAdapter(ABC):
    """
    Base class for search-metrics sources.

    Subclasses set ``name`` and implement ``fetch``.
    """

    name: str = ""

    def __init__(self, client: DataForSEOClient):
        self.client = client

    @abstractmethod
    async def fetch(self, request: "MetricRequest", ledger: CostLedger) -> SourceMetrics:
        """
        Fetch and derive metrics for one keyword.

        Args:
            request: Keyword request
            ledger: Cost ledger scoped to this source

        Returns:
            SourceMetrics

        Raises:
            DataForSEOError: First failure among the source's calls
        """

    async def _run_calls(self, calls: Dict[str, Awaitable[Any]]) -> Dict[str, Any]:
        """
        Run named calls concurrently and return their values by name.

        Every call is awaited to completion so its cost is recorded, then
        the first failure in declaration order is raised.
        """
        names = list(calls)
        outcomes = await asyncio.gather(*calls.values(), return_exceptions=True)

        values: Dict[str, Any] = {}
        first_error: Optional[DataForSEOError] = None
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                error = classify_error(outcome)
                logger.warning(f"{self.name} call '{name}' failed: {error.message}")
                if first_error is None:
                    first_error = error
                continue
            values[name] = outcome

        if first_error is not None:
            raise first_error
        return values
