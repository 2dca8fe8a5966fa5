"""
Core data structures for the affection engine.

Everything here is plain data. The engine never keeps a live, mutable
copy of the relationship between turns: the host hands an EngineState in,
gets a new one back, and stores it.
"""

from dataclasses import dataclass, field
from typing import List, Optional


# Interaction categories produced by the classifier
POSITIVE = "positive"
NEGATIVE = "negative"
NEUTRAL = "neutral"

CATEGORIES = (POSITIVE, NEGATIVE, NEUTRAL)


@dataclass
class TierBand:
    """
    A named, inclusive band of the relationship score.

    Bands are ordered and contiguous; together they cover the whole
    configured score range.
    """
    name: str
    min_score: int
    max_score: int
    description: str = ""

    def contains(self, score: int) -> bool:
        return self.min_score <= score <= self.max_score


@dataclass
class LevelThreshold:
    """Total XP required to reach a level."""
    level: int
    xp_required: int


@dataclass
class KeywordRule:
    """
    One entry of a tier's ordered rule table.

    `match` is a list of keyword groups. The rule fires when every group
    has at least one keyword that is a substring of the lowercased message:
    [["your"], ["opinion", "think", "feel"]] reads "your" AND one of the rest.

    A fixed delta is expressed as delta_min == delta_max.
    """
    name: str
    category: str                 # POSITIVE / NEGATIVE / NEUTRAL
    match: List[List[str]]
    delta_min: int
    delta_max: int

    @property
    def is_fixed(self) -> bool:
        return self.delta_min == self.delta_max


@dataclass
class Classification:
    """Result of classifying one message against a tier's rules."""
    delta: int
    category: str
    rule_name: Optional[str] = None   # None = no rule matched


@dataclass
class InteractionRecord:
    """A single applied interaction, kept for audit and display."""
    text: str
    delta: int
    timestamp: float
    category: str = NEUTRAL


@dataclass
class EngineState:
    """
    Everything the host persists between turns.

    `tier` and `level` are derived values (from score and total_xp). They
    are carried for the host's convenience but always recomputed on
    restore.
    """
    score: int
    tier: str
    total_xp: int = 0
    level: int = 1
    unlocked: bool = False
    history: List[InteractionRecord] = field(default_factory=list)


@dataclass
class MessageState:
    """
    Per-message snapshot stored by the host next to each chat message.

    Lets the host rewind the engine when the user jumps back to an
    earlier message.
    """
    previous_score: int
    previous_tier: str
    previous_level: int
    previous_total_xp: int
    previous_unlocked: bool
    last_change: int = 0
    last_category: str = NEUTRAL


@dataclass
class LevelProgress:
    """XP progress inside the current level."""
    level: int
    xp_into_level: int
    xp_needed: int
    percent: float        # 0.0–100.0


@dataclass
class TurnResult:
    """Output of one processed user message."""
    state: EngineState
    message_state: MessageState
    notification: Optional[str]
    classification: Classification
    tier_changed: bool = False
    leveled_up: bool = False
    newly_unlocked: bool = False
