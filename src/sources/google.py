"""
Google Source Adapter

Calls (concurrently):
- dataforseo_labs/google/historical_keyword_data/live  volume, CPC, competition, history
- dataforseo_labs/google/search_intent/live            intent label and probability
- dataforseo_labs/google/bulk_keyword_difficulty/live  keyword difficulty
- serp/google/organic/live/advanced                    SERP features and ads (opt-in)
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List

from src.collector.client import DataForSEOClient
from src.collector.envelope import extract_serp_items
from src.collector.retry import CostLedger
from src.scoring import (
    analyze_paid_competition,
    analyze_serp_features,
    build_historical_volume,
    compute_trend,
)
from .base import (
    SearchIntent,
    SourceAdapter,
    SourceMetrics,
    build_core_metrics,
    result_items,
)
from .schemas import (
    DifficultyItem,
    HistoricalKeywordItem,
    KeywordInfo,
    SearchIntentItem,
    find_keyword_item,
    to_month_points,
)

if TYPE_CHECKING:
    from src.intelligence.models import MetricRequest

logger = logging.getLogger(__name__)

HISTORICAL_ENDPOINT = "dataforseo_labs/google/historical_keyword_data/live"
SEARCH_INTENT_ENDPOINT = "dataforseo_labs/google/search_intent/live"
DIFFICULTY_ENDPOINT = "dataforseo_labs/google/bulk_keyword_difficulty/live"
SERP_ENDPOINT = "serp/google/organic/live/advanced"


# ============================================================================
# CALLS
# ============================================================================

async def fetch_historical_keyword_info(
    client: DataForSEOClient,
    keyword: str,
    location_code: int,
    language_code: str,
    ledger: CostLedger,
) -> KeywordInfo:
    """Latest keyword_info snapshot; empty when the keyword has no history."""
    outcome = await client.post(
        HISTORICAL_ENDPOINT,
        {
            "keywords": [keyword],
            "location_code": location_code,
            "language_code": language_code,
        },
        ledger=ledger,
    )
    item = find_keyword_item(
        HistoricalKeywordItem, result_items(outcome.value), keyword, HISTORICAL_ENDPOINT,
    )
    if item is None or item.latest is None:
        logger.info(f"No historical data for '{keyword}'")
        return KeywordInfo()
    return item.latest


async def fetch_search_intent(
    client: DataForSEOClient,
    keyword: str,
    language_code: str,
    ledger: CostLedger,
) -> SearchIntent:
    """
    Search intent for a keyword.

    Intent is location-independent upstream and is shared by every source.
    Defaults to informational / 0 when the keyword is not classified.
    """
    outcome = await client.post(
        SEARCH_INTENT_ENDPOINT,
        {"keywords": [keyword], "language_code": language_code},
        ledger=ledger,
    )
    item = find_keyword_item(
        SearchIntentItem, result_items(outcome.value), keyword, SEARCH_INTENT_ENDPOINT,
    )
    if item is None or item.keyword_intent is None:
        return SearchIntent()
    return SearchIntent(
        label=item.keyword_intent.label,
        probability=item.keyword_intent.probability,
    )


async def fetch_keyword_difficulty(
    client: DataForSEOClient,
    endpoint: str,
    keyword: str,
    location_code: int,
    language_code: str,
    ledger: CostLedger,
) -> int:
    """Keyword difficulty (0-100) from a bulk difficulty endpoint; 0 when missing."""
    outcome = await client.post(
        endpoint,
        {
            "keywords": [keyword],
            "location_code": location_code,
            "language_code": language_code,
        },
        ledger=ledger,
    )
    item = find_keyword_item(DifficultyItem, result_items(outcome.value), keyword, endpoint)
    if item is None:
        return 0
    return item.keyword_difficulty or 0


async def fetch_serp_items(
    client: DataForSEOClient,
    endpoint: str,
    keyword: str,
    location_code: int,
    language_code: str,
    ledger: CostLedger,
) -> List[Dict[str, Any]]:
    """Live SERP items (organic, paid and feature blocks)."""
    outcome = await client.post(
        endpoint,
        {
            "keyword": keyword,
            "location_code": location_code,
            "language_code": language_code,
        },
        ledger=ledger,
    )
    return [item for item in extract_serp_items(outcome.value) if isinstance(item, dict)]


# ============================================================================
# ADAPTER
# ============================================================================

class GoogleAdapter(SourceAdapter):
    """Keyword metrics from Google (DataForSEO Labs)."""

    name = "google"

    async def fetch(self, request: "MetricRequest", ledger: CostLedger) -> SourceMetrics:
        keyword = request.keyword
        location = request.location_code
        language = request.language_code

        calls = {
            "historical": fetch_historical_keyword_info(
                self.client, keyword, location, language, ledger,
            ),
            "intent": fetch_search_intent(self.client, keyword, language, ledger),
            "difficulty": fetch_keyword_difficulty(
                self.client, DIFFICULTY_ENDPOINT, keyword, location, language, ledger,
            ),
        }
        if request.include_serp:
            calls["serp"] = fetch_serp_items(
                self.client, SERP_ENDPOINT, keyword, location, language, ledger,
            )

        values = await self._run_calls(calls)

        info: KeywordInfo = values["historical"]
        points = to_month_points(info.monthly_searches)
        history = build_historical_volume(points)

        core = build_core_metrics(
            search_volume=info.search_volume,
            competition=info.competition,
            cpc=info.cpc,
            monthly_searches=history.data_points,
            difficulty=values["difficulty"],
            intent=values["intent"],
        )

        serp_items = values.get("serp")

        return SourceMetrics(
            source=self.name,
            core_metrics=core,
            trend=compute_trend(history.data_points),
            historical_volume=history,
            serp_features=analyze_serp_features(serp_items) if serp_items is not None else None,
            paid_competition=analyze_paid_competition(serp_items) if serp_items is not None else None,
            cost=ledger.total,
        )
