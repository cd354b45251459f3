"""
Declarative Insight Rules

Insight strings are produced from a table of (condition, template) rules
evaluated against a flat context dict, so each mapping can be reviewed and
tested on its own.

Example:
    rules = [
        InsightRule("crowded", lambda c: c["ads_count"] >= 8, "{ads_count} ads compete"),
    ]
    evaluate_rules(rules, {"ads_count": 9})  # ["9 ads compete"]
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List


@dataclass(frozen=True)
class InsightRule:
    """Condition -> insight template."""
    name: str
    condition: Callable[[Dict[str, Any]], bool]
    template: str


def evaluate_rules(rules: Iterable[InsightRule], context: Dict[str, Any]) -> List[str]:
    """
    Evaluate rules in table order.

    Args:
        rules: Rule table
        context: Values referenced by conditions and templates

    Returns:
        Formatted insight for every rule whose condition holds
    """
    return [
        rule.template.format(**context)
        for rule in rules
        if rule.condition(context)
    ]
