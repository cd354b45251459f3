#!/usr/bin/env python3
"""
Keyword Intelligence Runner

Fetches aggregated keyword metrics and prints them as JSON.

Usage:
    # Set credentials first (or put them in .env):
    export DATAFORSEO_LOGIN=your_login
    export DATAFORSEO_PASSWORD=your_password

    # Google only:
    python scripts/run_keyword_intelligence.py "digital marketing"

    # All sources with SERP analysis:
    python scripts/run_keyword_intelligence.py "digital marketing" --source all --serp
"""

import asyncio
import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from src.collector.errors import DataForSEOError, error_code
from src.intelligence import KeywordIntelligenceEngine, MetricRequest
from src.utils import get_settings, setup_logging

logger = logging.getLogger(__name__)


async def run_keyword_intelligence(
    keyword: str,
    source: str = "google",
    location_code: int = None,
    language_code: str = None,
    include_serp: bool = False,
) -> dict:
    """Run one keyword intelligence request and return the result as a dict."""
    settings = get_settings()
    config = settings.to_engine_config()

    if source == "all":
        request = MetricRequest(
            keyword=keyword,
            sources="all",
            location_code=location_code,
            language_code=language_code,
            include_serp=include_serp,
        )
    else:
        request = MetricRequest(
            keyword=keyword,
            source=source,
            location_code=location_code,
            language_code=language_code,
            include_serp=include_serp,
        )

    async with KeywordIntelligenceEngine(config) as engine:
        result = await engine.get_keyword_intelligence(request)

    return result.to_dict()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Fetch aggregated keyword intelligence from DataForSEO"
    )
    parser.add_argument(
        "keyword",
        help="Keyword to research (e.g., 'digital marketing')"
    )
    parser.add_argument(
        "--source",
        default="google",
        choices=["google", "bing", "all"],
        help="Data source (default: google)"
    )
    parser.add_argument(
        "--location-code",
        type=int,
        default=None,
        help="DataForSEO location code (default from settings, 2840 = United States)"
    )
    parser.add_argument(
        "--language-code",
        default=None,
        help="Language code (default from settings, 'en')"
    )
    parser.add_argument(
        "--serp",
        action="store_true",
        help="Also analyze the live SERP (features and paid competition)"
    )

    args = parser.parse_args()

    load_dotenv()
    setup_logging(get_settings().LOG_LEVEL)

    try:
        result = asyncio.run(run_keyword_intelligence(
            keyword=args.keyword,
            source=args.source,
            location_code=args.location_code,
            language_code=args.language_code,
            include_serp=args.serp,
        ))
    except DataForSEOError as e:
        logger.error(f"Keyword intelligence failed: {e}")
        print(json.dumps({"error": {"code": error_code(e), **e.to_dict()}}, indent=2))
        sys.exit(1)

    print(json.dumps(result, indent=2))


if __name__ == "__main__":
    main()
