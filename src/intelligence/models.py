"""
Request and result models for keyword intelligence.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, field_validator, model_validator

from src.scoring import HistoricalVolume, PaidCompetitionSnapshot, SerpFeatureSet, TrendSummary
from src.sources.base import KeywordCoreMetrics, SourceMetrics

Source = Literal["google", "bing", "youtube"]

# Merge priority; also the order of sources_queried
SOURCE_PRIORITY: List[str] = ["google", "bing", "youtube"]

# Sources expanded from sources="all"
ALL_SOURCES: List[str] = ["google", "bing"]

MAX_KEYWORD_LENGTH = 200


class MetricRequest(BaseModel):
    """
    One keyword intelligence request.

    Exactly one of ``source`` (single source, failure propagates) or
    ``sources`` (list or "all", failures become partial errors) is given.
    """
    keyword: str
    location_code: Optional[int] = None
    language_code: Optional[str] = None
    source: Optional[Source] = None
    sources: Optional[Union[Literal["all"], List[Source]]] = None
    include_serp: bool = False

    class Config:
        frozen = True

    @field_validator("keyword")
    @classmethod
    def _clean_keyword(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("keyword must not be empty")
        if len(value) > MAX_KEYWORD_LENGTH:
            raise ValueError(f"keyword must be at most {MAX_KEYWORD_LENGTH} characters")
        return value

    @field_validator("language_code")
    @classmethod
    def _clean_language(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().lower()
        if not value:
            raise ValueError("language_code must not be empty")
        return value

    @field_validator("location_code")
    @classmethod
    def _positive_location(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise ValueError("location_code must be positive")
        return value

    @model_validator(mode="after")
    def _one_source_selector(self) -> "MetricRequest":
        if (self.source is None) == (self.sources is None):
            raise ValueError("Provide exactly one of 'source' or 'sources'")
        if isinstance(self.sources, list) and not self.sources:
            raise ValueError("'sources' must not be empty")
        return self

    @property
    def is_multi_source(self) -> bool:
        return self.sources is not None

    @property
    def requested_sources(self) -> List[str]:
        """Requested sources, deduplicated, in merge priority order."""
        if self.source is not None:
            return [self.source]
        wanted = ALL_SOURCES if self.sources == "all" else self.sources
        return [s for s in SOURCE_PRIORITY if s in wanted]


@dataclass(frozen=True)
class PartialError:
    """A failed source in a multi-source request."""
    source: str
    message: str
    retryable: bool = False
    cost: float = 0.0
    code: str = "API_ERROR"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "message": self.message,
            "retryable": self.retryable,
            "cost": self.cost,
            "code": self.code,
        }


@dataclass(frozen=True)
class KeywordIntelligenceResult:
    """Aggregated keyword intelligence; built once per request."""
    keyword: str
    location_code: int
    language_code: str
    core_metrics: KeywordCoreMetrics
    trend: TrendSummary
    historical_volume: HistoricalVolume
    serp_features: Optional[SerpFeatureSet] = None
    paid_competition: Optional[PaidCompetitionSnapshot] = None
    source_metrics: Dict[str, SourceMetrics] = field(default_factory=dict)
    sources_queried: List[str] = field(default_factory=list)
    total_cost: float = 0.0
    partial_errors: List[PartialError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keyword": self.keyword,
            "location_code": self.location_code,
            "language_code": self.language_code,
            "core_metrics": {
                **self.core_metrics.to_dict(),
                "trend_volume": self.trend.to_dict(),
            },
            "historical_volume": self.historical_volume.to_dict(),
            "serp_features": self.serp_features.to_dict() if self.serp_features else None,
            "paid_competition": self.paid_competition.to_dict() if self.paid_competition else None,
            "source_metrics": {
                name: metrics.to_dict() for name, metrics in self.source_metrics.items()
            },
            "sources_queried": list(self.sources_queried),
            "total_cost": self.total_cost,
            "partial_errors": [e.to_dict() for e in self.partial_errors],
        }
