"""
Snapshot encoding for engine state.

The host stores whatever serialize_state() returns and hands it back on
the next turn. Snapshots are JSON-compatible dicts.

Restoring never fails: every missing or invalid field is replaced by its
documented default and the repair is logged. Derived fields (tier, level)
are recomputed from score and total_xp instead of being trusted.
"""

import logging
from typing import Any, Dict, List, Optional

from companion.affection.config import AffectionConfig, get_config
from companion.affection.core import (
    CATEGORIES,
    EngineState,
    InteractionRecord,
    MessageState,
    NEUTRAL,
)
from companion.affection.computation import clamp_score, level_of, tier_of, unlock_reached

log = logging.getLogger("affection.persistence")


# =============================================================================
# FIELD REPAIR
# =============================================================================

def _int_field(data: Dict[str, Any], key: str, default: int) -> int:
    """Read an integer field, falling back to default on anything odd."""
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        if key in data:
            log.warning("Repairing invalid %s=%r -> %s", key, value, default)
        else:
            log.warning("Missing %s in snapshot, using %s", key, default)
        return default
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            log.warning("Repairing non-finite %s -> %s", key, default)
            return default
        return int(value)
    return value


def _bool_field(data: Dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        log.warning("Repairing non-boolean %s=%r -> %s", key, value, default)
        return default
    return value


def _category_field(value: Any) -> str:
    return value if value in CATEGORIES else NEUTRAL


# =============================================================================
# HISTORY RECORDS
# =============================================================================

def _encode_record(entry: InteractionRecord) -> dict:
    """Convert InteractionRecord to JSON-serializable dict."""
    return {
        "text": entry.text,
        "delta": entry.delta,
        "timestamp": entry.timestamp,
        "category": entry.category,
    }


def _decode_record(data: Any) -> Optional[InteractionRecord]:
    """
    Reconstruct an InteractionRecord, or None if it is beyond repair.

    A record without text carries no audit value and is dropped.
    """
    if not isinstance(data, dict) or not isinstance(data.get("text"), str):
        return None

    delta = data.get("delta", 0)
    if isinstance(delta, bool) or not isinstance(delta, int):
        delta = 0

    timestamp = data.get("timestamp", 0.0)
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
        timestamp = 0.0

    return InteractionRecord(
        text=data["text"],
        delta=delta,
        timestamp=float(timestamp),
        category=_category_field(data.get("category", NEUTRAL)),
    )


def _decode_history(data: Any, max_items: int) -> List[InteractionRecord]:
    if not isinstance(data, list):
        if data is not None:
            log.warning("Snapshot history is not a list, starting empty")
        return []

    history = []
    for item in data:
        entry = _decode_record(item)
        if entry is None:
            log.warning("Dropping malformed history record: %r", item)
            continue
        history.append(entry)

    if max_items <= 0:
        return []
    return history[-max_items:]


# =============================================================================
# ENGINE STATE
# =============================================================================

def initial_state(config: Optional[AffectionConfig] = None) -> EngineState:
    """Fresh state for a conversation with no snapshot."""
    if config is None:
        config = get_config()
    score = config.initial_score
    tier = tier_of(score, config)
    return EngineState(
        score=score,
        tier=tier,
        total_xp=0,
        level=1,
        unlocked=unlock_reached(1, tier, config),
        history=[],
    )


def serialize_state(state: EngineState) -> dict:
    """
    Serialize engine state to a JSON-compatible dict.

    Args:
        state: State to serialize

    Returns:
        JSON-serializable dict
    """
    return {
        "score": state.score,
        "tier": state.tier,
        "total_xp": state.total_xp,
        "level": state.level,
        "unlocked": state.unlocked,
        "history": [_encode_record(entry) for entry in state.history],
    }


def deserialize_state(data: Any, config: Optional[AffectionConfig] = None) -> EngineState:
    """
    Restore engine state from a host snapshot, repairing as needed.

    - Non-dict snapshot: fresh initial state
    - score: must be numeric, clamped into range
    - tier: always recomputed from score
    - total_xp: floored at 0
    - level: always recomputed from total_xp
    - unlocked: stored value OR the gate, never lowered
    - history: malformed records dropped, truncated to capacity

    Args:
        data: Snapshot from serialize_state() (or anything else)
        config: Engine config. If None, uses the active config.

    Returns:
        A consistent EngineState
    """
    if config is None:
        config = get_config()

    if not isinstance(data, dict):
        if data is not None:
            log.warning("Snapshot is %s, not a dict; using initial state", type(data).__name__)
        return initial_state(config)

    raw_score = _int_field(data, "score", config.initial_score)
    score = clamp_score(raw_score, config)
    if score != raw_score:
        log.warning("Clamped restored score %s -> %s", raw_score, score)

    tier = tier_of(score, config)
    stored_tier = data.get("tier")
    if stored_tier is not None and stored_tier != tier:
        log.debug("Stored tier %r disagrees with score %s; using %r", stored_tier, score, tier)

    total_xp = _int_field(data, "total_xp", 0)
    if total_xp < 0:
        log.warning("Repairing negative total_xp %s -> 0", total_xp)
        total_xp = 0

    level = level_of(total_xp, config)
    unlocked = _bool_field(data, "unlocked", False) or unlock_reached(level, tier, config)

    return EngineState(
        score=score,
        tier=tier,
        total_xp=total_xp,
        level=level,
        unlocked=unlocked,
        history=_decode_history(data.get("history"), config.max_history_items),
    )


# =============================================================================
# MESSAGE STATE
# =============================================================================

def serialize_message_state(message_state: MessageState) -> dict:
    """Serialize a per-message snapshot to a JSON-compatible dict."""
    return {
        "previous_score": message_state.previous_score,
        "previous_tier": message_state.previous_tier,
        "previous_level": message_state.previous_level,
        "previous_total_xp": message_state.previous_total_xp,
        "previous_unlocked": message_state.previous_unlocked,
        "last_change": message_state.last_change,
        "last_category": message_state.last_category,
    }


def deserialize_message_state(
    data: Any,
    config: Optional[AffectionConfig] = None
) -> MessageState:
    """
    Restore a per-message snapshot with the same repair policy as
    deserialize_state(): derived fields are recomputed.
    """
    if config is None:
        config = get_config()
    if not isinstance(data, dict):
        log.warning("Message state is %s, not a dict; using defaults", type(data).__name__)
        data = {}

    score = clamp_score(_int_field(data, "previous_score", config.initial_score), config)
    total_xp = max(0, _int_field(data, "previous_total_xp", 0))

    return MessageState(
        previous_score=score,
        previous_tier=tier_of(score, config),
        previous_level=level_of(total_xp, config),
        previous_total_xp=total_xp,
        previous_unlocked=_bool_field(data, "previous_unlocked", False),
        last_change=_int_field(data, "last_change", 0),
        last_category=_category_field(data.get("last_category", NEUTRAL)),
    )
