"""
Keyword Intelligence Engine

Aggregates keyword metrics from DataForSEO:
1. Calls several upstream endpoints per source (Google, Bing) concurrently
2. Validates the response envelope and retries transient failures
3. Derives trends, competition/difficulty tiers, SERP features and paid competition
4. Merges sources into one result with total cost and partial errors
"""

__version__ = "0.1.0"
