"""
Keyword Intelligence Engine

Orchestrates source adapters for one keyword request:

    Single source (request.source)
        the adapter runs directly; any failure propagates as AggregationError

    Multi source (request.sources, list or "all")
        adapters run concurrently; failed sources become partial errors and
        the request fails only when every source fails

A per-request cost ledger records every executed upstream attempt, so the
reported cost is correct even when the outer deadline cancels work in flight.

Usage:
    config = get_settings().to_engine_config()

    async with KeywordIntelligenceEngine(config) as engine:
        result = await engine.get_keyword_intelligence(
            MetricRequest(keyword="digital marketing", source="google")
        )
        print(result.core_metrics.search_volume, result.total_cost)
"""

import asyncio
import logging
from typing import Dict, List, Optional

from src.collector.client import DataForSEOClient
from src.collector.errors import (
    AggregationError,
    AggregationTimeoutError,
    DataForSEOError,
    UnsupportedSourceError,
    error_code,
)
from src.collector.retry import CostLedger
from src.sources import BingAdapter, GoogleAdapter, SourceAdapter, SourceMetrics
from src.utils.config import EngineConfig, get_settings
from .models import (
    SOURCE_PRIORITY,
    KeywordIntelligenceResult,
    MetricRequest,
    PartialError,
)

logger = logging.getLogger(__name__)


class KeywordIntelligenceEngine:
    """
    Aggregates keyword metrics across sources.

    The client and adapters can be injected; by default one client is
    created from the config and shared by the Google and Bing adapters.
    """

    def __init__(
        self,
        config: EngineConfig,
        client: Optional[DataForSEOClient] = None,
        adapters: Optional[Dict[str, SourceAdapter]] = None,
    ):
        self.config = config
        self._owns_client = client is None
        self.client = client or DataForSEOClient(config)

        if adapters is None:
            adapters = {
                "google": GoogleAdapter(self.client),
                "bing": BingAdapter(self.client),
            }
        self.adapters = adapters

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def get_keyword_intelligence(self, request: MetricRequest) -> KeywordIntelligenceResult:
        """
        Aggregate keyword intelligence for a request.

        Args:
            request: Keyword request

        Returns:
            KeywordIntelligenceResult

        Raises:
            AggregationError: Single-source failure, or every source failed
            AggregationTimeoutError: The request deadline expired
        """
        request = self._with_defaults(request)
        ledger = CostLedger()

        logger.info(
            f"Keyword intelligence for '{request.keyword}' "
            f"(sources={request.requested_sources}, location={request.location_code})",
            extra={"keyword": request.keyword, "sources": request.requested_sources},
        )

        result = await self._with_deadline(self._aggregate(request, ledger), ledger)

        logger.info(
            f"Keyword intelligence complete for '{request.keyword}': "
            f"sources={result.sources_queried}, cost=${result.total_cost:.4f}, "
            f"partial_errors={len(result.partial_errors)}",
            extra={"keyword": request.keyword, "cost": result.total_cost},
        )
        return result

    async def get_google_keyword_data(self, request: MetricRequest) -> SourceMetrics:
        """Google metrics only; failures propagate as AggregationError."""
        return await self._get_single_source("google", request)

    async def get_bing_keyword_data(self, request: MetricRequest) -> SourceMetrics:
        """Bing metrics only; failures propagate as AggregationError."""
        return await self._get_single_source("bing", request)

    async def close(self):
        """Close the client if the engine created it."""
        if self._owns_client:
            await self.client.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # =========================================================================
    # ORCHESTRATION
    # =========================================================================

    def _with_defaults(self, request: MetricRequest) -> MetricRequest:
        return request.model_copy(update={
            "location_code": request.location_code or self.config.default_location_code,
            "language_code": request.language_code or self.config.default_language_code,
        })

    async def _with_deadline(self, coro, ledger: CostLedger):
        timeout = self.config.request_timeout
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(
                f"Request timed out after {timeout}s (cost so far ${ledger.total:.4f})",
                extra={"timeout": timeout, "cost": ledger.total},
            )
            raise AggregationTimeoutError(timeout, cost=ledger.total) from None

    async def _get_single_source(self, source: str, request: MetricRequest) -> SourceMetrics:
        request = self._with_defaults(request)
        ledger = CostLedger()
        return await self._with_deadline(self._fetch_source(source, request, ledger), ledger)

    async def _fetch_source(
        self,
        source: str,
        request: MetricRequest,
        ledger: CostLedger,
    ) -> SourceMetrics:
        """
        Run one adapter against a child ledger.

        Raises:
            AggregationError: Unsupported source or any adapter failure
        """
        adapter = self.adapters.get(source)
        if adapter is None:
            raise UnsupportedSourceError(source)

        source_ledger = ledger.child(source)
        try:
            return await adapter.fetch(request, source_ledger)
        except DataForSEOError as e:
            logger.error(
                f"Source '{source}' failed for '{request.keyword}': {e.message}",
                extra={
                    "source": source,
                    "status_code": e.status_code,
                    "retryable": e.retryable,
                    "cost": source_ledger.total,
                },
            )
            raise AggregationError(source, e.message, cause=e, cost=source_ledger.total) from e

    async def _aggregate(self, request: MetricRequest, ledger: CostLedger) -> KeywordIntelligenceResult:
        sources = request.requested_sources

        if not request.is_multi_source:
            source = sources[0]
            metrics = await self._fetch_source(source, request, ledger)
            return self._build_result(request, {source: metrics}, [], ledger)

        outcomes = await asyncio.gather(
            *(self._fetch_source(source, request, ledger) for source in sources),
            return_exceptions=True,
        )

        succeeded: Dict[str, SourceMetrics] = {}
        failures: List[AggregationError] = []
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, AggregationError):
                logger.warning(f"Skipping source '{source}': {outcome.reason_message}")
                failures.append(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                succeeded[source] = outcome

        if not succeeded:
            first = failures[0]
            raise AggregationError(
                ",".join(sources),
                "All sources failed: " + "; ".join(str(f) for f in failures),
                cause=first.cause or first,
                cost=ledger.total,
            )

        partial_errors = [
            PartialError(
                source=f.source,
                message=f.reason_message,
                retryable=f.retryable,
                cost=f.cost,
                code=error_code(f),
            )
            for f in failures
        ]
        return self._build_result(request, succeeded, partial_errors, ledger)

    def _build_result(
        self,
        request: MetricRequest,
        succeeded: Dict[str, SourceMetrics],
        partial_errors: List[PartialError],
        ledger: CostLedger,
    ) -> KeywordIntelligenceResult:
        """Merge source metrics; the highest-priority source is primary."""
        sources_queried = [s for s in SOURCE_PRIORITY if s in succeeded]
        primary = succeeded[sources_queried[0]]

        return KeywordIntelligenceResult(
            keyword=request.keyword,
            location_code=request.location_code,
            language_code=request.language_code,
            core_metrics=primary.core_metrics,
            trend=primary.trend,
            historical_volume=primary.historical_volume,
            serp_features=primary.serp_features,
            paid_competition=primary.paid_competition,
            source_metrics={s: succeeded[s] for s in sources_queried},
            sources_queried=sources_queried,
            total_cost=ledger.total,
            partial_errors=partial_errors,
        )


async def get_keyword_intelligence(
    request: MetricRequest,
    config: Optional[EngineConfig] = None,
) -> KeywordIntelligenceResult:
    """
    Convenience wrapper: build an engine from settings, run one request.

    Args:
        request: Keyword request
        config: Engine config (defaults to environment settings)

    Returns:
        KeywordIntelligenceResult
    """
    config = config or get_settings().to_engine_config()
    async with KeywordIntelligenceEngine(config) as engine:
        return await engine.get_keyword_intelligence(request)
