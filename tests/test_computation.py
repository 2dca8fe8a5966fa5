"""
Tests for score/tier and progression computation.

See companion/affection/computation.py for implementation.
"""

import pytest

from companion.affection.computation import (
    apply_delta,
    clamp_score,
    tier_of,
    get_tier_band,
    tier_rank,
    gain_xp,
    level_of,
    max_level,
    unlock_reached,
    apply_progression,
    xp_for_level,
    xp_for_next_level,
    level_progress,
)
from companion.affection.config import get_config

from tests.helpers import make_config, xp_required


# =============================================================================
# SCORE / TIER
# =============================================================================

def test_apply_delta_clamps_to_range():
    assert apply_delta(50, 10) == 60
    assert apply_delta(95, 10) == 100
    assert apply_delta(3, -10) == 0


def test_apply_delta_negative_range(compact_config):
    assert apply_delta(0, -4, compact_config) == -4
    assert apply_delta(-8, -5, compact_config) == -10
    assert apply_delta(14, 3, compact_config) == 15


@pytest.mark.parametrize("score,delta", [(0, 0), (0, -5), (50, 7), (99, 40), (100, -200)])
def test_clamping_is_idempotent(score, delta):
    once = apply_delta(score, delta)
    assert apply_delta(once, 0) == once


def test_clamp_score_out_of_range():
    assert clamp_score(-5) == 0
    assert clamp_score(500) == 100


def test_every_score_maps_to_exactly_one_tier():
    config = get_config()
    for score in range(config.score_range.min, config.score_range.max + 1):
        tier = tier_of(score)
        containing = [b.name for b in config.tier_bands if b.contains(score)]
        assert containing == [tier]


def test_tier_boundaries_are_contiguous():
    """tier_of(band.max) and tier_of(band.max + 1) differ for inner bands."""
    config = get_config()
    for band in config.tier_bands[:-1]:
        assert tier_of(band.max_score) == band.name
        assert tier_of(band.max_score + 1) != band.name


def test_default_tier_boundaries():
    assert tier_of(0) == "zero"
    assert tier_of(5) == "zero"
    assert tier_of(6) == "neutral"
    assert tier_of(35) == "neutral"
    assert tier_of(36) == "interested"
    assert tier_of(61) == "attracted"
    assert tier_of(75) == "attracted"
    assert tier_of(76) == "intimate"
    assert tier_of(100) == "intimate"


def test_tier_of_negative_range(compact_config):
    assert tier_of(-10, compact_config) == "cold"
    assert tier_of(-1, compact_config) == "cold"
    assert tier_of(0, compact_config) == "neutral"
    assert tier_of(15, compact_config) == "close"


def test_tier_of_out_of_range_falls_back(caplog):
    """Scores outside every band log an error and use the default tier."""
    with caplog.at_level("ERROR", logger="affection.computation"):
        assert tier_of(500) == "zero"
        assert tier_of(-1) == "zero"
    assert "No tier band contains score" in caplog.text


def test_get_tier_band_and_rank():
    band = get_tier_band("interested")
    assert band.min_score == 36
    assert band.max_score == 60
    assert get_tier_band("missing") is None

    assert tier_rank("zero") == 0
    assert tier_rank("intimate") == 4
    assert tier_rank("missing") == -1


# =============================================================================
# PROGRESSION
# =============================================================================

def test_gain_xp_only_for_positive_deltas():
    assert gain_xp(5) == 10
    assert gain_xp(1) == 2
    assert gain_xp(0) == 0
    assert gain_xp(-7) == 0


def test_gain_xp_uses_multiplier():
    config = make_config(xp_multiplier=3)
    assert gain_xp(4, config) == 12


def test_level_of_thresholds():
    assert level_of(0) == 1
    assert level_of(49) == 1
    assert level_of(50) == 2
    assert level_of(199) == 4
    assert level_of(200) == 5
    assert level_of(3024) == 22
    assert level_of(3025) == 23
    assert level_of(10 ** 6) == 23


def test_level_of_below_zero():
    assert level_of(-10) == 1


def test_level_of_is_monotonic():
    previous = level_of(0)
    for xp in range(0, 3200):
        level = level_of(xp)
        assert level >= previous
        previous = level


def test_level_of_matches_greatest_threshold():
    """level_of(xp) is the greatest level whose xp_required <= xp."""
    config = get_config()
    for xp in (0, 1, 74, 275, 776, 1524, 2600):
        expected = max(t.level for t in config.level_thresholds if t.xp_required <= xp)
        assert level_of(xp) == expected


def test_max_level():
    assert max_level() == 23
    assert max_level(make_config()) == 5


def test_unlock_by_level():
    assert not unlock_reached(4, "zero")
    assert unlock_reached(5, "zero")
    assert unlock_reached(12, "zero")


def test_unlock_by_tier(compact_config):
    assert not unlock_reached(5, "warm", compact_config)
    assert unlock_reached(1, "close", compact_config)


def test_unlock_by_either_gate():
    config = make_config(unlock_level=4, unlock_tier="high")
    assert unlock_reached(1, "high", config)
    assert unlock_reached(4, "low", config)
    assert not unlock_reached(3, "low", config)


def test_apply_progression_positive_delta():
    total_xp, level, unlocked = apply_progression(40, False, 6)
    assert total_xp == 52
    assert level == 2
    assert unlocked is False


def test_apply_progression_negative_delta_keeps_xp():
    total_xp, level, unlocked = apply_progression(120, False, -8)
    assert total_xp == 120
    assert level == 3
    assert unlocked is False


def test_apply_progression_crosses_unlock_level():
    total_xp, level, unlocked = apply_progression(xp_required(5) - 2, False, 1)
    assert level == 5
    assert unlocked is True


def test_apply_progression_unlock_is_sticky():
    """An unlocked flag never goes back to False."""
    _, level, unlocked = apply_progression(0, True, -10)
    assert level == 1
    assert unlocked is True


def test_apply_progression_floors_xp_at_zero():
    total_xp, level, _ = apply_progression(-30, False, 0)
    assert total_xp == 0
    assert level == 1


def test_apply_progression_tier_gate(compact_config):
    _, _, unlocked = apply_progression(0, False, 2, tier="close", config=compact_config)
    assert unlocked is True
    _, _, unlocked = apply_progression(0, False, 2, tier="warm", config=compact_config)
    assert unlocked is False


# =============================================================================
# LEVEL PROGRESS
# =============================================================================

def test_xp_for_level_and_next():
    assert xp_for_level(1) == 0
    assert xp_for_level(6) == 275
    assert xp_for_level(99) == 0
    assert xp_for_next_level(1) == 50
    assert xp_for_next_level(5) == 275
    # Capped at the top threshold
    assert xp_for_next_level(23) == 3025


def test_level_progress_mid_level():
    progress = level_progress(230)
    assert progress.level == 5
    assert progress.xp_into_level == 30
    assert progress.xp_needed == 75
    assert progress.percent == pytest.approx(40.0)


def test_level_progress_at_threshold():
    progress = level_progress(50)
    assert progress.level == 2
    assert progress.xp_into_level == 0
    assert progress.percent == 0.0


def test_level_progress_at_max_level():
    progress = level_progress(5000)
    assert progress.level == 23
    assert progress.xp_needed == 0
    assert progress.percent == 100.0
