"""
Source adapters: one per search-metrics source.

Each adapter turns a keyword request into its upstream calls and returns
normalized SourceMetrics.
"""

from .base import (
    KeywordCoreMetrics,
    SearchIntent,
    SourceAdapter,
    SourceMetrics,
    build_core_metrics,
)
from .bing import BingAdapter
from .google import GoogleAdapter

__all__ = [
    "KeywordCoreMetrics",
    "SearchIntent",
    "SourceAdapter",
    "SourceMetrics",
    "build_core_metrics",
    "BingAdapter",
    "GoogleAdapter",
]
