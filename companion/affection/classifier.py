"""
Keyword classifier: message text + current tier -> (delta, category).

Each tier has its own ordered rule table (see config/affection_defaults.yaml).
The first rule whose keyword groups all match wins, so order matters: a
message containing "hi" is a greeting even if it also praises.
"""

import random
from typing import List, Optional

from companion.affection.config import AffectionConfig, get_config
from companion.affection.core import Classification, KeywordRule, NEUTRAL


def rule_matches(rule: KeywordRule, lowered: str) -> bool:
    """
    Check a rule against already-lowercased text.

    Every keyword group must contribute at least one substring hit.
    """
    return all(
        any(keyword in lowered for keyword in group)
        for group in rule.match
    )


def rules_for_tier(tier: str, config: Optional[AffectionConfig] = None) -> List[KeywordRule]:
    """Ordered rule table for a tier (empty if the tier has none)."""
    if config is None:
        config = get_config()
    return config.rules.get(tier, [])


def match_rule(
    text: str,
    tier: str,
    config: Optional[AffectionConfig] = None
) -> Optional[KeywordRule]:
    """
    Find the first rule in a tier's table that matches the text.

    Deterministic: no delta is sampled.
    """
    lowered = text.lower()
    for rule in rules_for_tier(tier, config):
        if rule_matches(rule, lowered):
            return rule
    return None


def sample_delta(rule: KeywordRule, rng: random.Random) -> int:
    """
    Draw a delta for a matched rule.

    Fixed deltas do not consume randomness; ranges are uniform over
    [delta_min, delta_max] inclusive.
    """
    if rule.is_fixed:
        return rule.delta_min
    return rng.randint(rule.delta_min, rule.delta_max)


def classify(
    text: str,
    tier: str,
    rng: Optional[random.Random] = None,
    config: Optional[AffectionConfig] = None
) -> Classification:
    """
    Classify a user message for the given tier.

    Args:
        text: Raw user message; only its lowercased substrings are inspected
        tier: Current relationship tier (selects the rule table)
        rng: Random source for ranged deltas. Pass a seeded
             random.Random for deterministic replay.
        config: Engine config. If None, uses the active config.

    Returns:
        Classification; delta 0 / neutral when nothing matches
    """
    rule = match_rule(text, tier, config)
    if rule is None:
        return Classification(delta=0, category=NEUTRAL, rule_name=None)

    if rng is None:
        rng = random.Random()

    return Classification(
        delta=sample_delta(rule, rng),
        category=rule.category,
        rule_name=rule.name,
    )
