"""
SERP Feature Detection and Strategic Impact

Scans live SERP items for known feature types and maps each present feature
to a content opportunity, an estimated organic CTR delta and a competition
indicator.

CTR impact = sum of per-feature deltas, floored at -50%.
Organic difficulty is driven by feature count only:
    >= 4 very_high, >= 3 high, >= 2 medium, else low
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

CTR_IMPACT_FLOOR = -50


@dataclass(frozen=True)
class SerpFeatureRule:
    """Strategic meaning of one SERP feature."""
    content_opportunity: str
    ctr_delta: int
    competition_indicator: str


# ============================================================================
# FEATURE TABLE
# ============================================================================

SERP_FEATURE_TABLE: Dict[str, SerpFeatureRule] = {
    "ai_overview": SerpFeatureRule(
        "Publish authoritative, well-cited content that AI overviews quote",
        -12,
        "AI overview answers the query above organic results",
    ),
    "answer_box": SerpFeatureRule(
        "Answer the core question in the first paragraph",
        -5,
        "Answer box resolves simple queries on the SERP",
    ),
    "carousel": SerpFeatureRule(
        "Build list-style hub pages that qualify for carousels",
        -2,
        "Carousel pushes organic results below the fold",
    ),
    "featured_snippet": SerpFeatureRule(
        "Structure content with concise definitions, lists and tables to win the featured snippet",
        -8,
        "Featured snippet captures top-of-page clicks",
    ),
    "images": SerpFeatureRule(
        "Add optimized original images with descriptive alt text",
        -2,
        "Image pack competes for visual intent",
    ),
    "knowledge_graph": SerpFeatureRule(
        "Strengthen entity signals with structured data",
        -6,
        "Knowledge panel satisfies entity lookups directly",
    ),
    "local_pack": SerpFeatureRule(
        "Optimize the Google Business Profile and local landing pages",
        -10,
        "Local pack dominates for location intent",
    ),
    "people_also_ask": SerpFeatureRule(
        "Cover related questions in an FAQ section",
        -3,
        "People Also Ask expands answers inside the SERP",
    ),
    "shopping": SerpFeatureRule(
        "Publish product feeds and comparison content",
        -5,
        "Shopping results signal strong transactional competition",
    ),
    "top_stories": SerpFeatureRule(
        "Publish timely news coverage",
        -3,
        "Top stories favour fresh publisher content",
    ),
    "twitter": SerpFeatureRule(
        "Maintain an active social presence for the topic",
        -1,
        "Social results take a SERP slot",
    ),
    "videos": SerpFeatureRule(
        "Create video content for the query",
        -4,
        "Video results attract clicks away from text results",
    ),
}

# Upstream item types that map onto a table entry
FEATURE_ALIASES: Dict[str, str] = {
    "video": "videos",
    "image": "images",
    "knowledge_panel": "knowledge_graph",
    "local_pack_map": "local_pack",
    "popular_products": "shopping",
}


@dataclass
class SerpFeatureSet:
    """Deduplicated SERP features and their strategic impact."""
    features: List[str] = field(default_factory=list)
    content_opportunities: List[str] = field(default_factory=list)
    competition_indicators: List[str] = field(default_factory=list)
    estimated_ctr_impact_pct: int = 0
    organic_difficulty: str = "low"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "features": list(self.features),
            "content_opportunities": list(self.content_opportunities),
            "competition_indicators": list(self.competition_indicators),
            "estimated_ctr_impact_pct": self.estimated_ctr_impact_pct,
            "organic_difficulty": self.organic_difficulty,
        }


def normalize_feature(item_type: Optional[str]) -> Optional[str]:
    """Map an upstream item type to a known feature name, or None."""
    if not item_type:
        return None
    name = FEATURE_ALIASES.get(item_type, item_type)
    return name if name in SERP_FEATURE_TABLE else None


def get_organic_difficulty(feature_count: int) -> str:
    if feature_count >= 4:
        return "very_high"
    elif feature_count >= 3:
        return "high"
    elif feature_count >= 2:
        return "medium"
    else:
        return "low"


def analyze_serp_features(items: Optional[List[Dict[str, Any]]]) -> SerpFeatureSet:
    """
    Detect SERP features and derive their strategic impact.

    Repeated items of one type count once.

    Args:
        items: Live SERP items (each with a "type")

    Returns:
        SerpFeatureSet with features in sorted order
    """
    detected = set()
    for item in items or []:
        if not isinstance(item, dict):
            continue
        feature = normalize_feature(item.get("type"))
        if feature:
            detected.add(feature)

    features = sorted(detected)
    rules = [SERP_FEATURE_TABLE[f] for f in features]

    ctr_impact = max(CTR_IMPACT_FLOOR, sum(r.ctr_delta for r in rules))

    logger.debug(f"Detected SERP features: {features} (CTR impact {ctr_impact}%)")

    return SerpFeatureSet(
        features=features,
        content_opportunities=[r.content_opportunity for r in rules],
        competition_indicators=[r.competition_indicator for r in rules],
        estimated_ctr_impact_pct=ctr_impact,
        organic_difficulty=get_organic_difficulty(len(features)),
    )
