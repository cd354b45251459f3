"""
DataForSEO API Client

Async HTTP client with:
- Connection pooling
- HTTP Basic authentication
- Single-attempt transport (``call``) with a fixed per-call timeout
- Retried, envelope-validated requests (``post``) via the retry controller

Usage:
    config = get_settings().to_engine_config()

    async with DataForSEOClient(config) as client:
        outcome = await client.post(
            "dataforseo_labs/google/search_intent/live",
            {"keywords": ["digital marketing"], "language_code": "en"},
        )
        envelope = outcome.value
"""

import base64
import logging
from typing import Any, Dict, Optional

import httpx

from src.utils.config import EngineConfig
from .envelope import UpstreamEnvelope, ensure_envelope_ok, parse_envelope, summarize
from .errors import DataForSEOError, TransportError, TransportKind
from .retry import CostLedger, RetryConfig, RetryOutcome, with_retry

logger = logging.getLogger(__name__)

API_VERSION = "v3"

# Markers httpx/OS put in DNS failure messages
_DNS_FAILURE_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated",
)


def _connect_error_code(error: httpx.ConnectError) -> str:
    text = str(error).lower()
    if any(marker in text for marker in _DNS_FAILURE_MARKERS):
        return "ENOTFOUND"
    return "ECONNREFUSED"


def _error_body_cost(response: httpx.Response) -> float:
    """Cost reported in an error body, if the provider billed the failed call."""
    try:
        body = response.json()
    except ValueError:
        return 0.0
    if isinstance(body, dict):
        cost = body.get("cost")
        if isinstance(cost, (int, float)):
            return float(cost)
    return 0.0


class DataForSEOClient:
    """
    Async client for DataForSEO API.

    Usage:
        client = DataForSEOClient(config)

        raw = await client.call("dataforseo_labs/google/search_intent/live", {
            "keywords": ["digital marketing"],
            "language_code": "en",
        })

        await client.close()
    """

    def __init__(
        self,
        config: EngineConfig,
        retry_config: Optional[RetryConfig] = None,
        max_connections: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize DataForSEO client.

        Args:
            config: Engine configuration (credentials, base URL, timeouts)
            retry_config: Retry configuration (defaults from config)
            max_connections: Maximum concurrent connections
            transport: Optional httpx transport (used by tests)
        """
        self.config = config
        self.retry_config = retry_config or RetryConfig.from_engine_config(config)

        credentials = f"{config.login}:{config.password}"
        auth_token = base64.b64encode(credentials.encode()).decode()

        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={
                "Authorization": f"Basic {auth_token}",
                "Content-Type": "application/json",
            },
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_connections // 2,
            ),
            timeout=httpx.Timeout(config.api_timeout),
            transport=transport,
        )

        self._closed = False

    async def call(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Make a single authenticated POST. No retries.

        The payload is sent as a single-element array, the upstream
        protocol's convention for one task per call.

        Args:
            endpoint: API endpoint path (e.g. "dataforseo_labs/google/search_intent/live")
            payload: Parameters for the single task

        Returns:
            Raw decoded JSON

        Raises:
            TransportError: On network failure, timeout, or non-2xx status
        """
        if self._closed:
            raise DataForSEOError("Client is closed", endpoint=endpoint)

        url = f"/{API_VERSION}/{endpoint.lstrip('/')}"
        logger.debug(f"POST {url}")

        try:
            response = await self._client.post(url, json=[payload])
        except httpx.ConnectTimeout as e:
            raise TransportError(
                f"Connection timed out: {e}",
                kind=TransportKind.TIMEOUT,
                code="ETIMEDOUT",
                endpoint=endpoint,
            ) from e
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timed out: {e}",
                kind=TransportKind.TIMEOUT,
                code="ECONNABORTED",
                endpoint=endpoint,
            ) from e
        except httpx.ConnectError as e:
            raise TransportError(
                f"Connection failed: {e}",
                kind=TransportKind.NETWORK,
                code=_connect_error_code(e),
                endpoint=endpoint,
            ) from e
        except httpx.TransportError as e:
            raise TransportError(
                f"HTTP error: {e}",
                kind=TransportKind.NETWORK,
                code="ECONNABORTED",
                endpoint=endpoint,
            ) from e

        if not response.is_success:
            raise TransportError(
                f"API request failed: {response.status_code}",
                kind=TransportKind.HTTP_STATUS,
                http_status=response.status_code,
                endpoint=endpoint,
                cost=_error_body_cost(response),
            )

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Response is not valid JSON: {e}",
                kind=TransportKind.HTTP_STATUS,
                http_status=response.status_code,
                endpoint=endpoint,
            ) from e

    async def post(
        self,
        endpoint: str,
        payload: Dict[str, Any],
        ledger: Optional[CostLedger] = None,
    ) -> RetryOutcome:
        """
        Make a retried POST and validate the response envelope.

        Args:
            endpoint: API endpoint path
            payload: Parameters for the single task
            ledger: Per-request cost ledger every attempt is recorded in

        Returns:
            RetryOutcome whose value is the validated UpstreamEnvelope

        Raises:
            DataForSEOError: Classified error once retries are exhausted or
                the failure is terminal
        """
        async def attempt() -> UpstreamEnvelope:
            raw = await self.call(endpoint, payload)
            envelope = parse_envelope(raw, endpoint=endpoint)
            ensure_envelope_ok(envelope, endpoint=endpoint)
            return envelope

        logger.info(f"DataForSEO request: {endpoint}", extra={"endpoint": endpoint})

        outcome = await with_retry(
            attempt,
            endpoint,
            config=self.retry_config,
            ledger=ledger,
            cost_of=lambda envelope: envelope.cost,
        )

        logger.info(
            f"DataForSEO request succeeded: {endpoint} "
            f"(attempts={outcome.attempts}, cost=${outcome.cost:.4f})",
            extra={"endpoint": endpoint, "attempts": outcome.attempts, "cost": outcome.cost},
        )

        summary = summarize(outcome.value)
        if summary.failed_tasks:
            logger.debug(
                f"DataForSEO response for {endpoint} has {summary.failed_tasks} failed task(s)",
                extra={"endpoint": endpoint, "warnings": summary.warnings},
            )
        return outcome

    async def ping(self) -> bool:
        """Check that the credentials are accepted by the API."""
        try:
            response = await self._client.get(f"/{API_VERSION}/user")
        except httpx.HTTPError as e:
            logger.error(f"DataForSEO connection test failed: {e}")
            return False
        return response.is_success

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
