"""
Validation for affection engine configuration.

Ensures:
1. Tier bands are ordered, contiguous and cover the whole score range
2. Level thresholds start at level 1 / 0 XP and strictly increase
3. The unlock gate points at a reachable level or an existing tier
4. Rule tables only reference known tiers and have sane deltas

An inconsistent config makes tier_of()/level_of() ill-defined, so it is
rejected at load time rather than discovered mid-conversation.
"""

from typing import TYPE_CHECKING, Dict, List

from companion.affection.core import CATEGORIES, KeywordRule, LevelThreshold, TierBand

if TYPE_CHECKING:
    from companion.affection.config import AffectionConfig


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class ConfigValidationError(Exception):
    """Raised when an affection configuration is inconsistent."""
    pass


class TierBandError(ConfigValidationError):
    """Raised when tier bands have gaps, overlaps or bad ordering."""
    pass


class LevelThresholdError(ConfigValidationError):
    """Raised when the level threshold table is not strictly increasing."""
    pass


class UnlockConfigError(ConfigValidationError):
    """Raised when the unlock gate can never be reached."""
    pass


class RuleTableError(ConfigValidationError):
    """Raised when a keyword rule table is malformed."""
    pass


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================

def validate_tier_bands(bands: List[TierBand], min_score: int, max_score: int) -> None:
    """
    Validate tier bands cover [min_score, max_score] exactly once.

    Raises:
        TierBandError: On empty table, duplicate names, inverted bands,
            gaps, overlaps, or incomplete coverage
    """
    if min_score > max_score:
        raise TierBandError(f"Score range is inverted: min {min_score} > max {max_score}")

    if not bands:
        raise TierBandError("At least one tier band is required")

    seen = set()
    for band in bands:
        if band.name in seen:
            raise TierBandError(f"Duplicate tier name '{band.name}'")
        seen.add(band.name)
        if band.min_score > band.max_score:
            raise TierBandError(
                f"Tier '{band.name}' is inverted: {band.min_score} > {band.max_score}"
            )

    if bands[0].min_score != min_score:
        raise TierBandError(
            f"First tier '{bands[0].name}' starts at {bands[0].min_score}, "
            f"expected score minimum {min_score}"
        )
    if bands[-1].max_score != max_score:
        raise TierBandError(
            f"Last tier '{bands[-1].name}' ends at {bands[-1].max_score}, "
            f"expected score maximum {max_score}"
        )

    for prev, band in zip(bands, bands[1:]):
        if band.min_score <= prev.max_score:
            raise TierBandError(
                f"Tiers '{prev.name}' and '{band.name}' overlap "
                f"({prev.max_score} >= {band.min_score})"
            )
        if band.min_score != prev.max_score + 1:
            raise TierBandError(
                f"Gap between tiers '{prev.name}' and '{band.name}' "
                f"({prev.max_score} -> {band.min_score})"
            )


def validate_level_thresholds(thresholds: List[LevelThreshold]) -> None:
    """
    Validate the level table: level 1 at 0 XP, consecutive levels,
    strictly increasing XP.

    Raises:
        LevelThresholdError: If the table is empty or not monotonic
    """
    if not thresholds:
        raise LevelThresholdError("At least one level threshold is required")

    first = thresholds[0]
    if first.level != 1 or first.xp_required != 0:
        raise LevelThresholdError(
            f"Level table must start at level 1 with 0 XP, got level "
            f"{first.level} at {first.xp_required} XP"
        )

    for prev, entry in zip(thresholds, thresholds[1:]):
        if entry.level != prev.level + 1:
            raise LevelThresholdError(
                f"Levels must be consecutive: {prev.level} followed by {entry.level}"
            )
        if entry.xp_required <= prev.xp_required:
            raise LevelThresholdError(
                f"Level {entry.level} requires {entry.xp_required} XP, which is not "
                f"more than level {prev.level} ({prev.xp_required} XP)"
            )


def validate_rule(rule: KeywordRule, tier_name: str) -> None:
    """
    Validate a single keyword rule.

    Raises:
        RuleTableError: On unknown category, inverted delta range or
            empty keyword groups
    """
    where = f"Rule '{rule.name}' in tier '{tier_name}'"

    if rule.category not in CATEGORIES:
        raise RuleTableError(
            f"{where} has unknown category '{rule.category}' "
            f"(expected one of {', '.join(CATEGORIES)})"
        )
    if rule.delta_min > rule.delta_max:
        raise RuleTableError(
            f"{where} has inverted delta range [{rule.delta_min}, {rule.delta_max}]"
        )
    if not rule.match:
        raise RuleTableError(f"{where} has no keyword groups")
    for group in rule.match:
        if not group:
            raise RuleTableError(f"{where} has an empty keyword group")
        for keyword in group:
            if not keyword:
                raise RuleTableError(f"{where} has an empty keyword")
            # Messages are lowercased before matching
            if keyword != keyword.lower():
                raise RuleTableError(
                    f"{where} keyword '{keyword}' must be lowercase to ever match"
                )


def validate_rule_tables(rules: Dict[str, List[KeywordRule]], tier_names: List[str]) -> int:
    """
    Validate all per-tier rule tables.

    Returns:
        Total number of rules validated

    Raises:
        RuleTableError: If any table fails validation (all errors reported)
    """
    count = 0
    errors = []
    known = set(tier_names)

    for tier_name, table in rules.items():
        if tier_name not in known:
            errors.append(f"Rules defined for unknown tier '{tier_name}'")
            continue
        for rule in table:
            try:
                validate_rule(rule, tier_name)
                count += 1
            except RuleTableError as e:
                errors.append(str(e))

    if errors:
        raise RuleTableError(
            f"Rule validation failed with {len(errors)} errors:\n" +
            "\n".join(f"  - {e}" for e in errors)
        )

    return count


def validate_unlock(config: "AffectionConfig") -> None:
    """
    Validate the unlock gate.

    Raises:
        UnlockConfigError: If neither gate is set, the level is beyond the
            table, or the tier does not exist
    """
    unlock = config.unlock
    if unlock.level is None and unlock.tier is None:
        raise UnlockConfigError("Unlock config needs a level, a tier, or both")

    if unlock.level is not None:
        top = config.level_thresholds[-1].level if config.level_thresholds else 1
        if not 1 <= unlock.level <= top:
            raise UnlockConfigError(
                f"Unlock level {unlock.level} is outside the level table (1..{top})"
            )

    if unlock.tier is not None:
        names = [band.name for band in config.tier_bands]
        if unlock.tier not in names:
            raise UnlockConfigError(f"Unlock tier '{unlock.tier}' is not a defined tier")


def validate_config(config: "AffectionConfig") -> None:
    """
    Validate a complete affection configuration.

    Every check runs; failures are collected and raised together. A
    single failure is raised as-is so callers can catch the specific
    subclass.

    Raises:
        ConfigValidationError: If any check fails
    """
    errors: List[ConfigValidationError] = []
    score_min = config.score_range.min
    score_max = config.score_range.max
    tier_names = [band.name for band in config.tier_bands]

    checks = [
        lambda: validate_tier_bands(config.tier_bands, score_min, score_max),
        lambda: validate_level_thresholds(config.level_thresholds),
        lambda: validate_unlock(config),
        lambda: validate_rule_tables(config.rules, tier_names),
    ]
    for check in checks:
        try:
            check()
        except ConfigValidationError as e:
            errors.append(e)

    if config.xp_multiplier < 0:
        errors.append(ConfigValidationError(
            f"xp_multiplier must not be negative, got {config.xp_multiplier}"
        ))
    if config.max_history_items < 0:
        errors.append(ConfigValidationError(
            f"max_history_items must not be negative, got {config.max_history_items}"
        ))
    if not score_min <= config.initial_score <= score_max:
        errors.append(ConfigValidationError(
            f"initial_score {config.initial_score} is outside the score range "
            f"[{score_min}, {score_max}]"
        ))
    if config.default_tier not in tier_names:
        errors.append(ConfigValidationError(
            f"default_tier '{config.default_tier}' is not a defined tier"
        ))

    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise ConfigValidationError(
            f"Config validation failed with {len(errors)} errors:\n" +
            "\n".join(f"  - {e}" for e in errors)
        )
