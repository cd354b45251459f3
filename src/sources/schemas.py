"""
Typed schemas for the result items each source consumes.

Items are validated when they are picked out of a result list; a row that
does not fit its schema fails the call as a MALFORMED envelope instead of
leaking untyped data into the metrics.
"""

from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError, field_validator

from src.collector.errors import EnvelopeError, EnvelopeReason
from src.scoring.trends import MonthPoint

ItemT = TypeVar("ItemT", bound=BaseModel)


def _to_number(value: Any) -> Any:
    """Upstream sometimes sends labels ("HIGH") where a number is expected."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)) or value is None:
        return value
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ============================================================================
# SHARED
# ============================================================================

class MonthlySearch(BaseModel):
    """One month of upstream search volume."""
    year: Optional[int] = None
    month: Optional[int] = None
    search_volume: Optional[int] = None

    def to_point(self) -> Optional[MonthPoint]:
        if self.year is None or self.month is None or not 1 <= self.month <= 12:
            return None
        return MonthPoint(
            year=self.year,
            month=self.month,
            search_volume=self.search_volume or 0,
        )


def to_month_points(searches: Optional[List[MonthlySearch]]) -> List[MonthPoint]:
    """Convert upstream months, dropping rows without a usable date."""
    points = [s.to_point() for s in searches or []]
    return [p for p in points if p is not None]


class KeywordInfo(BaseModel):
    """Volume, competition and CPC block."""
    search_volume: Optional[int] = None
    competition: Optional[float] = None
    competition_level: Optional[str] = None
    cpc: Optional[float] = None
    monthly_searches: Optional[List[MonthlySearch]] = None

    @field_validator("competition", "cpc", mode="before")
    @classmethod
    def _numeric(cls, value):
        return _to_number(value)


# ============================================================================
# GOOGLE
# ============================================================================

class HistorySnapshot(BaseModel):
    """One snapshot of historical keyword data (newest first)."""
    year: Optional[int] = None
    month: Optional[int] = None
    keyword_info: Optional[KeywordInfo] = None


class HistoricalKeywordItem(BaseModel):
    keyword: str
    history: Optional[List[HistorySnapshot]] = None

    @property
    def latest(self) -> Optional[KeywordInfo]:
        if not self.history:
            return None
        return self.history[0].keyword_info


class KeywordIntent(BaseModel):
    label: str = "informational"
    probability: float = 0.0


class SearchIntentItem(BaseModel):
    keyword: str
    keyword_intent: Optional[KeywordIntent] = None


class DifficultyItem(BaseModel):
    keyword: str
    keyword_difficulty: Optional[int] = None


# ============================================================================
# BING
# ============================================================================

class BingVolumeItem(BaseModel):
    """Bing volume row; data sits directly in the result list."""
    keyword: Optional[str] = None
    search_volume: Optional[int] = None
    competition: Optional[float] = None
    cpc: Optional[float] = None
    monthly_searches: Optional[List[MonthlySearch]] = None

    @field_validator("competition", "cpc", mode="before")
    @classmethod
    def _numeric(cls, value):
        return _to_number(value)


# ============================================================================
# PARSING
# ============================================================================

def _same_keyword(left: Optional[str], right: str) -> bool:
    return bool(left) and left.strip().lower() == right.strip().lower()


def parse_item(model: Type[ItemT], raw: Any, endpoint: Optional[str] = None) -> ItemT:
    """
    Validate one result item.

    Raises:
        EnvelopeError: MALFORMED when the item does not match the schema
    """
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise EnvelopeError(
            f"Unexpected {model.__name__} shape: {e.error_count()} schema error(s)",
            reason=EnvelopeReason.MALFORMED,
            endpoint=endpoint,
        ) from e


def find_keyword_item(
    model: Type[ItemT],
    items: List[Any],
    keyword: str,
    endpoint: Optional[str] = None,
) -> Optional[ItemT]:
    """
    Find and validate the row for a keyword.

    Returns:
        The validated row, or None when the keyword is not in the list
    """
    for raw in items or []:
        if isinstance(raw, dict) and _same_keyword(raw.get("keyword"), keyword):
            return parse_item(model, raw, endpoint=endpoint)
    return None
