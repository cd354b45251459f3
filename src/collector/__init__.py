"""
Keyword Intelligence Engine - Upstream Collection Package

This package handles all communication with the DataForSEO API:
- Transport: authenticated single-attempt calls (client)
- Retry: classified retries with exponential backoff and cost accounting
- Envelope: typed validation and extraction of the response envelope
- Errors: the error taxonomy shared by every layer
"""

from .client import DataForSEOClient
from .envelope import (
    ExtractionSummary,
    TaskResult,
    UpstreamEnvelope,
    ensure_envelope_ok,
    extract_all_results,
    extract_first_result_item,
    extract_first_task_result,
    extract_serp_items,
    parse_envelope,
    summarize,
    total_cost,
)
from .errors import (
    STATUS_OK,
    AggregationError,
    AggregationTimeoutError,
    DataForSEOError,
    EnvelopeError,
    EnvelopeReason,
    TransportError,
    TransportKind,
    UnsupportedSourceError,
    UpstreamStatusError,
    classify_error,
    error_code,
)
from .retry import CostEntry, CostLedger, RetryConfig, RetryOutcome, with_retry

__all__ = [
    # Client
    "DataForSEOClient",

    # Envelope
    "ExtractionSummary",
    "TaskResult",
    "UpstreamEnvelope",
    "ensure_envelope_ok",
    "extract_all_results",
    "extract_first_result_item",
    "extract_first_task_result",
    "extract_serp_items",
    "parse_envelope",
    "summarize",
    "total_cost",

    # Errors
    "STATUS_OK",
    "AggregationError",
    "AggregationTimeoutError",
    "DataForSEOError",
    "EnvelopeError",
    "EnvelopeReason",
    "TransportError",
    "TransportKind",
    "UnsupportedSourceError",
    "UpstreamStatusError",
    "classify_error",
    "error_code",

    # Retry
    "CostEntry",
    "CostLedger",
    "RetryConfig",
    "RetryOutcome",
    "with_retry",
]
