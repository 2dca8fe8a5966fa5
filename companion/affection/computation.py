"""
Score, tier and progression computation.

Score/tier state machine:
    new_score = clamp(score + delta, min_score, max_score)
    tier      = the band containing new_score (never stored independently)

Progression:
    xp_gain   = delta * xp_multiplier   if delta > 0 else 0
    level     = greatest level whose xp_required <= total_xp
    unlocked  = unlocked OR level >= unlock.level OR tier >= unlock.tier
"""

import logging
from bisect import bisect_right
from typing import Optional, Tuple

from companion.affection.config import AffectionConfig, get_config
from companion.affection.core import LevelProgress, TierBand

log = logging.getLogger("affection.computation")


def _resolve(config: Optional[AffectionConfig]) -> AffectionConfig:
    return config if config is not None else get_config()


# =============================================================================
# SCORE / TIER
# =============================================================================

def clamp_score(score: int, config: Optional[AffectionConfig] = None) -> int:
    """Clamp a score into the configured range."""
    config = _resolve(config)
    return max(config.score_range.min, min(config.score_range.max, score))


def apply_delta(score: int, delta: int, config: Optional[AffectionConfig] = None) -> int:
    """
    Apply a delta to a score, clamping into [min_score, max_score].

    Out-of-range results are recovered locally, never reported.
    """
    return clamp_score(score + delta, config)


def tier_of(score: int, config: Optional[AffectionConfig] = None) -> str:
    """
    Find the tier band containing a score.

    Bands are validated as sorted and contiguous, so a binary search on
    the band minimums is exact.

    Args:
        score: Relationship score (expected in range)
        config: Engine config. If None, uses the active config.

    Returns:
        Tier name; the configured default tier if no band matches
    """
    config = _resolve(config)
    bands = config.tier_bands
    mins = [band.min_score for band in bands]

    i = bisect_right(mins, score) - 1
    if 0 <= i < len(bands) and bands[i].contains(score):
        return bands[i].name

    log.error(
        "No tier band contains score %s (range %s..%s); falling back to '%s'",
        score, config.score_range.min, config.score_range.max, config.default_tier,
    )
    return config.default_tier


def get_tier_band(name: str, config: Optional[AffectionConfig] = None) -> Optional[TierBand]:
    """Look up a tier band by name."""
    config = _resolve(config)
    for band in config.tier_bands:
        if band.name == name:
            return band
    return None


def tier_rank(name: str, config: Optional[AffectionConfig] = None) -> int:
    """Position of a tier in the band order, -1 if unknown."""
    config = _resolve(config)
    return config.tier_index.get(name, -1)


# =============================================================================
# PROGRESSION
# =============================================================================

def gain_xp(delta: int, config: Optional[AffectionConfig] = None) -> int:
    """
    Convert a score delta into XP.

    Only positive deltas earn XP; negative deltas never take XP away.
    """
    if delta <= 0:
        return 0
    return delta * _resolve(config).xp_multiplier


def level_of(total_xp: int, config: Optional[AffectionConfig] = None) -> int:
    """
    Greatest level whose xp_required <= total_xp.

    Returns 1 for anything below the first threshold (including
    negative input).
    """
    thresholds = _resolve(config).level_thresholds
    required = [entry.xp_required for entry in thresholds]
    i = bisect_right(required, total_xp) - 1
    if i < 0:
        return 1
    return thresholds[i].level


def max_level(config: Optional[AffectionConfig] = None) -> int:
    """Highest level in the threshold table."""
    return _resolve(config).level_thresholds[-1].level


def unlock_reached(level: int, tier: str, config: Optional[AffectionConfig] = None) -> bool:
    """Check whether the configured unlock gate is satisfied."""
    config = _resolve(config)
    unlock = config.unlock

    if unlock.level is not None and level >= unlock.level:
        return True
    if unlock.tier is not None:
        rank = tier_rank(tier, config)
        return rank >= 0 and rank >= tier_rank(unlock.tier, config)
    return False


def apply_progression(
    total_xp: int,
    unlocked: bool,
    delta: int,
    tier: Optional[str] = None,
    config: Optional[AffectionConfig] = None
) -> Tuple[int, int, bool]:
    """
    Apply one raw score delta to the progression track.

    Args:
        total_xp: XP before this turn
        unlocked: Unlock flag before this turn (monotonic)
        delta: Raw classifier delta (not the clamped score change)
        tier: Tier after this turn, for tier-gated unlocks
        config: Engine config. If None, uses the active config.

    Returns:
        (new_total_xp, new_level, new_unlocked)
    """
    config = _resolve(config)
    # Floor at 0 even though gain_xp is never negative
    new_total_xp = max(0, total_xp + gain_xp(delta, config))
    new_level = level_of(new_total_xp, config)
    new_unlocked = unlocked or unlock_reached(new_level, tier or "", config)
    return new_total_xp, new_level, new_unlocked


# =============================================================================
# LEVEL PROGRESS
# =============================================================================

def xp_for_level(level: int, config: Optional[AffectionConfig] = None) -> int:
    """XP required to reach a level (0 for unknown levels)."""
    for entry in _resolve(config).level_thresholds:
        if entry.level == level:
            return entry.xp_required
    return 0


def xp_for_next_level(level: int, config: Optional[AffectionConfig] = None) -> int:
    """XP required for the level after `level`, capped at the top threshold."""
    thresholds = _resolve(config).level_thresholds
    for entry in thresholds:
        if entry.level == level + 1:
            return entry.xp_required
    return thresholds[-1].xp_required


def level_progress(total_xp: int, config: Optional[AffectionConfig] = None) -> LevelProgress:
    """
    XP progress inside the current level.

    At the top level there is nothing left to earn and progress reads 100%.
    """
    config = _resolve(config)
    level = level_of(total_xp, config)
    floor = xp_for_level(level, config)
    needed = xp_for_next_level(level, config) - floor
    into = max(0, total_xp - floor)

    if needed <= 0:
        percent = 100.0
    else:
        percent = min(100.0, into / needed * 100)

    return LevelProgress(
        level=level,
        xp_into_level=into,
        xp_needed=max(0, needed),
        percent=percent,
    )
