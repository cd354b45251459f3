"""
DataForSEO Error Taxonomy

All failures raised by the collector carry enough context for billing-aware
callers: the classified ``retryable`` flag and any ``cost`` already incurred.

Hierarchy:
    DataForSEOError
    ├── TransportError          network failure, timeout, non-2xx HTTP status
    ├── EnvelopeError           malformed or empty response envelope
    │   └── UpstreamStatusError non-20000 envelope or task status
    └── AggregationError        source-level failure (source name attached)
        ├── UnsupportedSourceError
        └── AggregationTimeoutError
"""

from enum import Enum
from typing import Any, Dict, Optional

import httpx


# Upstream success sentinel, used at both envelope and task level
STATUS_OK = 20000

RETRYABLE_HTTP_STATUSES = (429, 500, 502, 503, 504)
RETRYABLE_TRANSPORT_CODES = ("ECONNREFUSED", "ENOTFOUND", "ETIMEDOUT", "ECONNABORTED")


class DataForSEOError(Exception):
    """Base exception for DataForSEO API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        retryable: bool = False,
        cost: float = 0.0,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.endpoint = endpoint
        self.retryable = retryable
        self.cost = cost
        self.attempts = 1

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view of the error for client responses."""
        return {
            "name": type(self).__name__,
            "message": self.message,
            "status_code": self.status_code,
            "endpoint": self.endpoint,
            "retryable": self.retryable,
            "cost": self.cost,
        }


class TransportKind(str, Enum):
    """Why a single upstream attempt failed at the transport level."""
    NETWORK = "network"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"


class TransportError(DataForSEOError):
    """Network failure, timeout, or non-2xx HTTP status from the upstream."""

    def __init__(
        self,
        message: str,
        kind: TransportKind,
        http_status: Optional[int] = None,
        code: Optional[str] = None,
        endpoint: Optional[str] = None,
        cost: float = 0.0,
    ):
        super().__init__(message, status_code=http_status, endpoint=endpoint, cost=cost)
        self.kind = kind
        self.http_status = http_status
        self.code = code


class EnvelopeReason(str, Enum):
    """Reason codes for envelope validation failures."""
    EMPTY = "EMPTY"
    MALFORMED = "MALFORMED"
    NO_TASKS = "NO_TASKS"
    TASK_FAILED = "TASK_FAILED"
    NO_RESULTS = "NO_RESULTS"
    ENVELOPE_FAILED = "ENVELOPE_FAILED"


class EnvelopeError(DataForSEOError):
    """The response envelope is missing, malformed, or has nothing to extract."""

    def __init__(
        self,
        message: str,
        reason: EnvelopeReason,
        status_code: Optional[int] = None,
        endpoint: Optional[str] = None,
        cost: float = 0.0,
    ):
        super().__init__(message, status_code=status_code, endpoint=endpoint, cost=cost)
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["reason"] = self.reason.value
        return data


class UpstreamStatusError(EnvelopeError):
    """The envelope or a task reported a status other than 20000."""

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int],
        status_message: str = "",
        reason: EnvelopeReason = EnvelopeReason.TASK_FAILED,
        endpoint: Optional[str] = None,
        cost: float = 0.0,
    ):
        super().__init__(
            message,
            reason=reason,
            status_code=upstream_status,
            endpoint=endpoint,
            cost=cost,
        )
        self.upstream_status = upstream_status
        self.status_message = status_message


class AggregationError(DataForSEOError):
    """A source adapter failed; wraps the classified cause."""

    def __init__(
        self,
        source: str,
        message: str,
        cause: Optional[DataForSEOError] = None,
        cost: float = 0.0,
    ):
        super().__init__(
            f"{source}: {message}",
            status_code=cause.status_code if cause else None,
            endpoint=cause.endpoint if cause else None,
            retryable=cause.retryable if cause else False,
            cost=cost,
        )
        self.source = source
        self.reason_message = message
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["source"] = self.source
        return data


class UnsupportedSourceError(AggregationError):
    """No adapter is registered for the requested source."""

    def __init__(self, source: str):
        super().__init__(source, f"Unsupported source: {source}")
        self.status_code = 400


class AggregationTimeoutError(AggregationError):
    """The outer request deadline expired before all adapters finished."""

    def __init__(self, timeout: float, cost: float = 0.0, source: str = "request"):
        super().__init__(source, f"Request timed out after {timeout:g}s", cost=cost)
        self.timeout = timeout
        self.status_code = 504
        self.retryable = True


# ============================================================================
# CLASSIFICATION
# ============================================================================

HTTP_STATUS_MESSAGES: Dict[int, str] = {
    401: "Invalid credentials",
    402: "Insufficient credits",
    429: "Rate limit exceeded",
}

TRANSPORT_CODE_MESSAGES: Dict[str, str] = {
    "ECONNREFUSED": "Connection failed",
    "ENOTFOUND": "Connection failed",
    "ETIMEDOUT": "Connection failed",
    "ECONNABORTED": "Request timeout",
}


def classify_transport_error(error: TransportError) -> TransportError:
    """Set ``retryable`` and a stable message on a transport error in place."""
    if error.kind == TransportKind.HTTP_STATUS and error.http_status is not None:
        status = error.http_status
        if status in HTTP_STATUS_MESSAGES:
            error.message = HTTP_STATUS_MESSAGES[status]
        elif 500 <= status < 600:
            error.message = "Upstream server error"
        error.retryable = status == 429 or 500 <= status < 600
    elif error.code in RETRYABLE_TRANSPORT_CODES:
        error.message = TRANSPORT_CODE_MESSAGES[error.code]
        error.retryable = True
    else:
        error.retryable = False
    error.args = (error.message,)
    return error


def classify_error(error: BaseException, endpoint: Optional[str] = None) -> DataForSEOError:
    """
    Classify any exception into a DataForSEOError.

    - HTTP 401/402: terminal
    - HTTP 429 and 5xx: retryable
    - ECONNREFUSED/ENOTFOUND/ETIMEDOUT/ECONNABORTED: retryable
    - Envelope and upstream status errors: terminal
    - Anything else: terminal with status_code 500, so unknown failure
      modes are never treated as safe to retry

    Args:
        error: The raised exception
        endpoint: Endpoint the failing call targeted

    Returns:
        A classified DataForSEOError (the same instance if already classified)
    """
    if isinstance(error, TransportError):
        if error.endpoint is None:
            error.endpoint = endpoint
        return classify_transport_error(error)

    if isinstance(error, DataForSEOError):
        if error.endpoint is None:
            error.endpoint = endpoint
        return error

    if isinstance(error, httpx.TimeoutException):
        return classify_transport_error(TransportError(
            str(error), kind=TransportKind.TIMEOUT, code="ECONNABORTED", endpoint=endpoint,
        ))

    if isinstance(error, httpx.TransportError):
        return classify_transport_error(TransportError(
            str(error), kind=TransportKind.NETWORK, code="ECONNREFUSED", endpoint=endpoint,
        ))

    return DataForSEOError(
        f"Unknown DataForSEO API error: {error}",
        status_code=500,
        endpoint=endpoint,
        retryable=False,
    )


def error_code(error: DataForSEOError) -> str:
    """Map a classified error to the code exposed to API clients."""
    if isinstance(error, AggregationTimeoutError):
        return "REQUEST_TIMEOUT"
    if error.status_code == 402:
        return "INSUFFICIENT_CREDITS"
    if error.status_code == 429:
        return "RATE_LIMIT_EXCEEDED"
    if error.status_code == 401:
        return "INVALID_CREDENTIALS"
    return "API_ERROR"
