"""
Affection Engine - Relationship Progression for Companion Characters

Every user message is classified into an affection delta that moves a
bounded score through named relationship tiers, while positive deltas
feed an XP/level track that raises a one-way unlock flag.

See config/affection_defaults.yaml for the default tables.
"""

from companion.affection.core import (
    TierBand,
    LevelThreshold,
    KeywordRule,
    Classification,
    InteractionRecord,
    EngineState,
    MessageState,
    LevelProgress,
    TurnResult,
    POSITIVE,
    NEGATIVE,
    NEUTRAL,
)
from companion.affection.classifier import classify, match_rule
from companion.affection.computation import (
    apply_delta,
    tier_of,
    gain_xp,
    level_of,
    apply_progression,
    level_progress,
)
from companion.affection.history import record
from companion.affection.persistence import (
    initial_state,
    serialize_state,
    deserialize_state,
)
from companion.affection.turn import process_turn, settle_turn, rewind

__all__ = [
    # Core data structures
    "TierBand",
    "LevelThreshold",
    "KeywordRule",
    "Classification",
    "InteractionRecord",
    "EngineState",
    "MessageState",
    "LevelProgress",
    "TurnResult",
    "POSITIVE",
    "NEGATIVE",
    "NEUTRAL",
    # Classification
    "classify",
    "match_rule",
    # Computation
    "apply_delta",
    "tier_of",
    "gain_xp",
    "level_of",
    "apply_progression",
    "level_progress",
    # History
    "record",
    # Persistence
    "initial_state",
    "serialize_state",
    "deserialize_state",
    # Turns
    "process_turn",
    "settle_turn",
    "rewind",
]
