"""
Keyword intelligence aggregation: request/result models and the engine.
"""

from .models import (
    ALL_SOURCES,
    SOURCE_PRIORITY,
    KeywordIntelligenceResult,
    MetricRequest,
    PartialError,
)
from .engine import KeywordIntelligenceEngine, get_keyword_intelligence

__all__ = [
    "ALL_SOURCES",
    "SOURCE_PRIORITY",
    "KeywordIntelligenceResult",
    "MetricRequest",
    "PartialError",
    "KeywordIntelligenceEngine",
    "get_keyword_intelligence",
]
