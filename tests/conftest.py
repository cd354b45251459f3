"""
Pytest Configuration and Shared Fixtures

Provides a fake DataForSEO upstream (served through httpx.MockTransport),
envelope builders and canned keyword data for all test modules.
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest

from src.collector.client import DataForSEOClient
from src.utils.config import EngineConfig


# ============================================================================
# Envelope Builders
# ============================================================================

def build_envelope(
    result: Optional[List[Any]],
    cost: float = 0.0,
    status_code: int = 20000,
    status_message: str = "Ok.",
    task_status: int = 20000,
    task_message: str = "Ok.",
) -> Dict[str, Any]:
    """Single-task DataForSEO envelope."""
    return {
        "version": "0.1.20240801",
        "status_code": status_code,
        "status_message": status_message,
        "time": "0.4521 sec.",
        "cost": cost,
        "tasks_count": 1,
        "tasks": [
            {
                "id": "08011200-1535-0387-0000-0a1b2c3d4e5f",
                "status_code": task_status,
                "status_message": task_message,
                "cost": cost,
                "result_count": len(result or []),
                "result": result,
            }
        ],
    }


def monthly(volumes: List[int], start_year: int = 2023, start_month: int = 1) -> List[Dict[str, int]]:
    """Upstream monthly_searches rows, newest first as DataForSEO returns them."""
    rows = []
    year, month = start_year, start_month
    for volume in volumes:
        rows.append({"year": year, "month": month, "search_volume": volume})
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return list(reversed(rows))


@pytest.fixture
def make_envelope() -> Callable[..., Dict[str, Any]]:
    return build_envelope


@pytest.fixture
def make_monthly() -> Callable[..., List[Dict[str, int]]]:
    return monthly


# ============================================================================
# Fake Upstream
# ============================================================================

class FakeUpstream:
    """
    Routes POST /v3/<endpoint> to queued responses.

    A queued response is a dict (200 JSON), a (status, body) tuple, or an
    exception instance to raise from the transport. The last response of a
    queue repeats.
    """

    def __init__(self):
        self.routes: Dict[str, List[Any]] = {}
        self.calls: List[Tuple[str, Any]] = []
        self.headers: List[httpx.Headers] = []

    def add(self, endpoint: str, *responses: Any):
        self.routes.setdefault(endpoint, []).extend(responses)

    def count(self, endpoint: str) -> int:
        return sum(1 for called, _ in self.calls if called == endpoint)

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path[len("/v3/"):]
        body = json.loads(request.content) if request.content else None
        self.calls.append((endpoint, body))
        self.headers.append(request.headers)

        queue = self.routes.get(endpoint)
        if not queue:
            return httpx.Response(404, json={"status_code": 40400, "status_message": "Not Found."})

        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        if isinstance(response, tuple):
            status, payload = response
            if isinstance(payload, (dict, list)):
                return httpx.Response(status, json=payload)
            return httpx.Response(status, text=payload or "")
        return httpx.Response(200, json=response)


@pytest.fixture
def engine_config() -> EngineConfig:
    """Config with zero backoff so retry tests run instantly."""
    return EngineConfig(
        login="test_login",
        password="test_password",
        base_url="https://api.dataforseo.test",
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        request_timeout=5.0,
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(engine_config, upstream) -> DataForSEOClient:
    return DataForSEOClient(engine_config, transport=httpx.MockTransport(upstream.handler))


# ============================================================================
# Keyword Data Fixtures
# ============================================================================

KEYWORD = "digital marketing"

GOOGLE_HISTORICAL = "dataforseo_labs/google/historical_keyword_data/live"
GOOGLE_INTENT = "dataforseo_labs/google/search_intent/live"
GOOGLE_DIFFICULTY = "dataforseo_labs/google/bulk_keyword_difficulty/live"
GOOGLE_SERP = "serp/google/organic/live/advanced"
BING_VOLUME = "keywords_data/bing/search_volume/live"
BING_DIFFICULTY = "dataforseo_labs/bing/bulk_keyword_difficulty/live"


@pytest.fixture
def google_historical_response() -> Dict[str, Any]:
    """Historical keyword data: volume 74000, competition 0.45, rising history."""
    return build_envelope(
        [{
            "se_type": "google",
            "location_code": 2840,
            "language_code": "en",
            "total_count": 1,
            "items_count": 1,
            "items": [{
                "keyword": KEYWORD,
                "location_code": 2840,
                "language_code": "en",
                "history": [
                    {
                        "year": 2024,
                        "month": 6,
                        "keyword_info": {
                            "se_type": "google",
                            "competition": 0.45,
                            "competition_level": "MEDIUM",
                            "cpc": 12.5,
                            "search_volume": 74000,
                            "monthly_searches": monthly([
                                60000, 62000, 61000, 65000, 64000, 66000,
                                70000, 72000, 71000, 75000, 80000, 82000,
                            ], start_year=2023, start_month=7),
                        },
                    },
                    {
                        "year": 2024,
                        "month": 5,
                        "keyword_info": {"search_volume": 70000},
                    },
                ],
            }],
        }],
        cost=0.0101,
    )


@pytest.fixture
def google_intent_response() -> Dict[str, Any]:
    return build_envelope(
        [{
            "language_code": "en",
            "items_count": 1,
            "items": [{
                "keyword": KEYWORD,
                "keyword_intent": {"label": "commercial", "probability": 0.8},
                "secondary_keyword_intents": [{"label": "informational", "probability": 0.3}],
            }],
        }],
        cost=0.001,
    )


@pytest.fixture
def google_difficulty_response() -> Dict[str, Any]:
    return build_envelope(
        [{
            "location_code": 2840,
            "language_code": "en",
            "items_count": 1,
            "items": [{"keyword": KEYWORD, "keyword_difficulty": 55}],
        }],
        cost=0.0103,
    )


@pytest.fixture
def bing_volume_response() -> Dict[str, Any]:
    return build_envelope(
        [{
            "keyword": KEYWORD,
            "location_code": 2840,
            "language_code": "en",
            "search_volume": 9900,
            "competition": 0.8,
            "cpc": 4.2,
            "monthly_searches": monthly([9000, 9500, 9800, 10200, 9900, 10000]),
        }],
        cost=0.05,
    )


@pytest.fixture
def bing_difficulty_response() -> Dict[str, Any]:
    return build_envelope(
        [{"items": [{"keyword": KEYWORD, "keyword_difficulty": 35}]}],
        cost=0.0103,
    )


@pytest.fixture
def serp_items() -> List[Dict[str, Any]]:
    """Live SERP with two ads, a featured snippet (twice) and People Also Ask."""
    return [
        {
            "type": "paid",
            "rank_group": 1,
            "domain": "hubspot.com",
            "title": "Digital Marketing Software | Try HubSpot Free",
            "description": "Grow traffic, convert leads and report on ROI with the all-in-one "
                           "marketing platform trusted by 200,000 businesses.",
            "highlighted": ["digital marketing"],
            "links": [{"title": "Pricing", "url": "https://hubspot.com/pricing"}],
        },
        {
            "type": "paid",
            "rank_group": 2,
            "domain": "semrush.com",
            "title": "Semrush",
            "description": "Online visibility platform.",
        },
        {"type": "featured_snippet", "rank_group": 1, "domain": "wikipedia.org"},
        {"type": "featured_snippet", "rank_group": 2, "domain": "investopedia.com"},
        {"type": "people_also_ask", "rank_group": 1},
        {"type": "organic", "rank_group": 1, "domain": "wikipedia.org"},
        {"type": "organic", "rank_group": 2, "domain": "mailchimp.com"},
    ]


@pytest.fixture
def serp_response(serp_items) -> Dict[str, Any]:
    return build_envelope(
        [{
            "keyword": KEYWORD,
            "type": "organic",
            "se_domain": "google.com",
            "items_count": len(serp_items),
            "items": serp_items,
        }],
        cost=0.002,
    )


@pytest.fixture
def google_upstream(
    upstream,
    google_historical_response,
    google_intent_response,
    google_difficulty_response,
) -> FakeUpstream:
    """Upstream answering the three Google calls successfully."""
    upstream.add(GOOGLE_HISTORICAL, google_historical_response)
    upstream.add(GOOGLE_INTENT, google_intent_response)
    upstream.add(GOOGLE_DIFFICULTY, google_difficulty_response)
    return upstream


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
