"""
Paid Competition Analysis

Measures advertising pressure on a keyword from the paid items of a live
SERP.

Ad quality rubric (per ad, capped at 10):
    base                                   5.0
    title length 30-60 chars              +1.0
    rating >= 4.0                         +1.5
    rich extensions (sitelinks, extras)   +1.0
    description >= 80 chars               +1.0
    highlighted terms                     +0.5
    price shown                           +0.5

Competition level by ad count:
    0 none, < 3 low, < 5 medium, < 8 high, >= 8 very_high
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .rules import InsightRule, evaluate_rules

MAX_AD_QUALITY = 10.0
TOP_ADVERTISERS_LIMIT = 5


@dataclass
class PaidCompetitionSnapshot:
    """Advertising pressure on one keyword."""
    ads_count: int = 0
    competition_level: str = "none"
    advertiser_domains: List[str] = field(default_factory=list)
    average_ad_quality: float = 0.0
    top_advertisers: List[Dict[str, Any]] = field(default_factory=list)
    strategic_insights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ads_count": self.ads_count,
            "competition_level": self.competition_level,
            "advertiser_domains": list(self.advertiser_domains),
            "average_ad_quality": self.average_ad_quality,
            "top_advertisers": [dict(a) for a in self.top_advertisers],
            "strategic_insights": list(self.strategic_insights),
        }


# ============================================================================
# INSIGHT RULES
# ============================================================================

PAID_INSIGHT_RULES: List[InsightRule] = [
    # No ads at all
    InsightRule(
        "no_advertisers",
        lambda c: c["ads_count"] == 0,
        "No advertisers are bidding on this keyword",
    ),
    InsightRule(
        "entry_opportunity",
        lambda c: c["ads_count"] == 0,
        "Entry opportunity: paid placement should be available at a low CPC",
    ),
    InsightRule(
        "organic_clicks",
        lambda c: c["ads_count"] == 0,
        "Organic results receive most clicks without ads above them",
    ),
    # Ad volume
    InsightRule(
        "light_pressure",
        lambda c: c["competition_level"] == "low",
        "Light paid competition: {ads_count} ad(s) running",
    ),
    InsightRule(
        "moderate_pressure",
        lambda c: c["competition_level"] == "medium",
        "Moderate paid competition with {ads_count} ads",
    ),
    InsightRule(
        "heavy_pressure",
        lambda c: c["competition_level"] in ("high", "very_high"),
        "Heavy paid competition: {ads_count} ads push organic listings down",
    ),
    # Advertiser diversity
    InsightRule(
        "single_advertiser",
        lambda c: c["domain_count"] == 1,
        "A single advertiser ({top_domain}) holds every paid placement",
    ),
    InsightRule(
        "dominant_advertiser",
        lambda c: c["domain_count"] > 1 and c["top_share"] > 0.5,
        "{top_domain} holds {top_share_pct}% of ad slots",
    ),
    InsightRule(
        "fragmented_field",
        lambda c: c["domain_count"] >= 4 and c["top_share"] <= 0.5,
        "Fragmented advertiser field across {domain_count} domains with no dominant bidder",
    ),
    # Ad quality
    InsightRule(
        "strong_ads",
        lambda c: c["ads_count"] > 0 and c["average_ad_quality"] >= 8,
        "Advertisers run polished ads (avg quality {average_ad_quality}/10); expect strong CTR competition",
    ),
    InsightRule(
        "weak_ads",
        lambda c: c["ads_count"] > 0 and c["average_ad_quality"] < 6.5,
        "Ad quality is weak (avg {average_ad_quality}/10); well-crafted ads can win clicks cheaply",
    ),
    InsightRule(
        "mature_market",
        lambda c: c["ads_count"] >= 4 and c["average_ad_quality"] >= 7,
        "Mature paid market: many high-quality ads indicate strong commercial intent",
    ),
]


# ============================================================================
# SCORING
# ============================================================================

def get_competition_level(ads_count: int) -> str:
    if ads_count <= 0:
        return "none"
    elif ads_count < 3:
        return "low"
    elif ads_count < 5:
        return "medium"
    elif ads_count < 8:
        return "high"
    else:
        return "very_high"


def _rating_value(rating: Any) -> Optional[float]:
    if isinstance(rating, dict):
        rating = rating.get("value")
    if isinstance(rating, (int, float)):
        return float(rating)
    return None


def score_ad_quality(ad: Dict[str, Any]) -> float:
    """
    Score one paid item on the additive rubric.

    Args:
        ad: Paid SERP item

    Returns:
        Quality score 0-10
    """
    score = 5.0

    title = ad.get("title") or ""
    if 30 <= len(title) <= 60:
        score += 1.0

    rating = _rating_value(ad.get("rating"))
    if rating is not None and rating >= 4.0:
        score += 1.5

    if ad.get("links") or ad.get("extensions") or ad.get("sitelinks"):
        score += 1.0

    description = ad.get("description") or ""
    if len(description) >= 80:
        score += 1.0

    if ad.get("highlighted"):
        score += 0.5

    if ad.get("price"):
        score += 0.5

    return min(MAX_AD_QUALITY, score)


def analyze_paid_competition(items: Optional[List[Dict[str, Any]]]) -> PaidCompetitionSnapshot:
    """
    Analyze paid competition from SERP items.

    Args:
        items: Live SERP items; only type == "paid" items are considered

    Returns:
        PaidCompetitionSnapshot (level "none" with entry insights when no ads)
    """
    ads = [
        item for item in items or []
        if isinstance(item, dict) and item.get("type") == "paid"
    ]

    domain_counts = Counter(ad["domain"] for ad in ads if ad.get("domain"))
    ranked = sorted(domain_counts.items(), key=lambda kv: (-kv[1], kv[0]))
    top_advertisers = [
        {"domain": domain, "count": count}
        for domain, count in ranked[:TOP_ADVERTISERS_LIMIT]
    ]

    average_quality = 0.0
    if ads:
        average_quality = round(sum(score_ad_quality(ad) for ad in ads) / len(ads), 1)

    level = get_competition_level(len(ads))
    top_domain, top_count = ranked[0] if ranked else ("", 0)
    top_share = top_count / len(ads) if ads else 0.0

    context = {
        "ads_count": len(ads),
        "competition_level": level,
        "domain_count": len(domain_counts),
        "average_ad_quality": average_quality,
        "top_domain": top_domain,
        "top_share": top_share,
        "top_share_pct": round(top_share * 100),
    }

    return PaidCompetitionSnapshot(
        ads_count=len(ads),
        competition_level=level,
        advertiser_domains=sorted(domain_counts),
        average_ad_quality=average_quality,
        top_advertisers=top_advertisers,
        strategic_insights=evaluate_rules(PAID_INSIGHT_RULES, context),
    )
