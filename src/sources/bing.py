"""
Bing Source Adapter

Calls (concurrently):
- keywords_data/bing/search_volume/live             volume, CPC, competition, history
- dataforseo_labs/bing/bulk_keyword_difficulty/live keyword difficulty
- dataforseo_labs/google/search_intent/live         intent (shared with Google)
- serp/bing/organic/live/advanced                   SERP features and ads (opt-in)

Bing has no upstream trend fields; trends are derived from monthly volumes.
"""

import logging
from typing import TYPE_CHECKING

from src.collector.client import DataForSEOClient
from src.collector.envelope import extract_first_task_result
from src.collector.retry import CostLedger
from src.scoring import (
    analyze_paid_competition,
    analyze_serp_features,
    build_historical_volume,
    compute_trend,
)
from .base import SourceAdapter, SourceMetrics, build_core_metrics
from .google import fetch_keyword_difficulty, fetch_search_intent, fetch_serp_items
from .schemas import BingVolumeItem, parse_item, to_month_points

if TYPE_CHECKING:
    from src.intelligence.models import MetricRequest

logger = logging.getLogger(__name__)

SEARCH_VOLUME_ENDPOINT = "keywords_data/bing/search_volume/live"
DIFFICULTY_ENDPOINT = "dataforseo_labs/bing/bulk_keyword_difficulty/live"
SERP_ENDPOINT = "serp/bing/organic/live/advanced"


async def fetch_bing_search_volume(
    client: DataForSEOClient,
    keyword: str,
    location_code: int,
    language_code: str,
    ledger: CostLedger,
) -> BingVolumeItem:
    """Bing volume row; the data sits directly in result[0]."""
    outcome = await client.post(
        SEARCH_VOLUME_ENDPOINT,
        {
            "keywords": [keyword],
            "location_code": location_code,
            "language_code": language_code,
        },
        ledger=ledger,
    )
    results = extract_first_task_result(outcome.value)
    if not results:
        logger.info(f"No Bing volume data for '{keyword}'")
        return BingVolumeItem()
    return parse_item(BingVolumeItem, results[0], endpoint=SEARCH_VOLUME_ENDPOINT)


class BingAdapter(SourceAdapter):
    """Keyword metrics from Bing."""

    name = "bing"

    async def fetch(self, request: "MetricRequest", ledger: CostLedger) -> SourceMetrics:
        keyword = request.keyword
        location = request.location_code
        language = request.language_code

        calls = {
            "volume": fetch_bing_search_volume(
                self.client, keyword, location, language, ledger,
            ),
            "difficulty": fetch_keyword_difficulty(
                self.client, DIFFICULTY_ENDPOINT, keyword, location, language, ledger,
            ),
            "intent": fetch_search_intent(self.client, keyword, language, ledger),
        }
        if request.include_serp:
            calls["serp"] = fetch_serp_items(
                self.client, SERP_ENDPOINT, keyword, location, language, ledger,
            )

        values = await self._run_calls(calls)

        volume: BingVolumeItem = values["volume"]
        history = build_historical_volume(to_month_points(volume.monthly_searches))

        core = build_core_metrics(
            search_volume=volume.search_volume,
            competition=volume.competition,
            cpc=volume.cpc,
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
