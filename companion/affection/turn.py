"""
Turn orchestration: one user message in, new engine state out.

    snapshot -> classify -> score/tier -> progression -> history -> notify

process_turn() is a pure reducer over EngineState (plus an injected
random source and clock). The host persists the returned state and
passes it back on the next turn; nothing is kept between calls.
"""

import logging
import random
from dataclasses import replace
from typing import Any, Optional, Union

from companion.affection.classifier import classify
from companion.affection.computation import (
    apply_delta,
    clamp_score,
    apply_progression,
    level_of,
    tier_of,
    unlock_reached,
)
from companion.affection.config import AffectionConfig, get_config
from companion.affection.core import (
    EngineState,
    MessageState,
    NEUTRAL,
    TurnResult,
)
from companion.affection.history import make_record, record
from companion.affection.persistence import (
    deserialize_message_state,
    deserialize_state,
    initial_state,
)

log = logging.getLogger("affection.turn")

StateInput = Union[EngineState, dict, None]


def _restore(state: StateInput, config: AffectionConfig) -> EngineState:
    """
    Normalize the incoming state.

    Snapshots go through the repairing decoder. Live EngineState objects
    get their derived fields recomputed so a stale tier can't leak in.
    """
    if state is None or isinstance(state, dict):
        return deserialize_state(state, config)
    if isinstance(state, EngineState):
        level = level_of(max(0, state.total_xp), config)
        score = clamp_score(state.score, config)
        tier = tier_of(score, config)
        return replace(
            state,
            score=score,
            tier=tier,
            total_xp=max(0, state.total_xp),
            level=level,
            unlocked=state.unlocked or unlock_reached(level, tier, config),
        )
    log.warning("Unrecognized state type %s; starting fresh", type(state).__name__)
    return initial_state(config)


def compose_notification(
    delta: int,
    previous_tier: str,
    tier: str,
    previous_level: int,
    level: int,
    newly_unlocked: bool,
    config: Optional[AffectionConfig] = None
) -> Optional[str]:
    """
    Build the human-readable notice for a turn.

    Returns:
        Space-joined announcement, or None when nothing changed
    """
    if config is None:
        config = get_config()
    name = config.character_name
    parts = []

    if delta != 0:
        direction = "increased" if delta > 0 else "decreased"
        parts.append(f"{name}'s affection {direction} by {abs(delta)}. Current state: {tier}")

    if tier != previous_tier:
        parts.append(f"RELATIONSHIP STATE CHANGED! {name} is now {tier}!")

    if level > previous_level:
        parts.append(f"LEVEL UP! You're now at level {level}!")

    if newly_unlocked:
        parts.append(f"{config.unlock.label} is now unlocked!")

    if not parts:
        return None
    return " ".join(parts)


def process_turn(
    state: StateInput,
    text: str,
    rng: Optional[random.Random] = None,
    config: Optional[AffectionConfig] = None,
    now: Optional[float] = None
) -> TurnResult:
    """
    Process one user message.

    Args:
        state: Previous EngineState, a snapshot dict, or None on the first turn
        text: The user's message
        rng: Random source for ranged deltas (seed it for replay)
        config: Engine config. If None, uses the active config.
        now: Timestamp for the history record. If None, uses current time.

    Returns:
        TurnResult with the new state, the per-message snapshot and an
        optional notification
    """
    if config is None:
        config = get_config()
    if text is None:
        text = ""

    current = _restore(state, config)

    # Snapshot before mutation
    previous = MessageState(
        previous_score=current.score,
        previous_tier=current.tier,
        previous_level=current.level,
        previous_total_xp=current.total_xp,
        previous_unlocked=current.unlocked,
    )

    classification = classify(text, current.tier, rng=rng, config=config)
    delta = classification.delta

    new_score = apply_delta(current.score, delta, config)
    new_tier = tier_of(new_score, config)

    # Progression runs on the raw delta, not the clamped score change
    new_total_xp, new_level, new_unlocked = apply_progression(
        current.total_xp, current.unlocked, delta, tier=new_tier, config=config
    )

    history = current.history
    if delta != 0 or config.record_neutral_turns:
        entry = make_record(text, delta, classification.category, now=now)
        history = record(history, entry, config.max_history_items)

    tier_changed = new_tier != current.tier
    leveled_up = new_level > current.level
    newly_unlocked = new_unlocked and not current.unlocked

    notification = compose_notification(
        delta,
        current.tier,
        new_tier,
        current.level,
        new_level,
        newly_unlocked,
        config,
    )

    new_state = EngineState(
        score=new_score,
        tier=new_tier,
        total_xp=new_total_xp,
        level=new_level,
        unlocked=new_unlocked,
        history=history,
    )

    log.debug(
        "turn: rule=%s delta=%+d score %s->%s tier %s->%s xp %s->%s level %s->%s",
        classification.rule_name, delta,
        current.score, new_score,
        current.tier, new_tier,
        current.total_xp, new_total_xp,
        current.level, new_level,
    )
    if newly_unlocked:
        log.info("Unlock gate reached at level %s (tier %s)", new_level, new_tier)

    return TurnResult(
        state=new_state,
        message_state=replace(
            previous,
            last_change=delta,
            last_category=classification.category,
        ),
        notification=notification,
        classification=classification,
        tier_changed=tier_changed,
        leveled_up=leveled_up,
        newly_unlocked=newly_unlocked,
    )


def settle_turn(state: EngineState) -> MessageState:
    """
    Message snapshot to store after the character has replied.

    Records the current values with no pending change, so rewinding to
    the reply restores the state as it stood after the user's message.
    """
    return MessageState(
        previous_score=state.score,
        previous_tier=state.tier,
        previous_level=state.level,
        previous_total_xp=state.total_xp,
        previous_unlocked=state.unlocked,
        last_change=0,
        last_category=NEUTRAL,
    )


def rewind(
    state: StateInput,
    message_state: Any,
    config: Optional[AffectionConfig] = None
) -> EngineState:
    """
    Restore the engine to a stored message snapshot.

    Score and XP come from the snapshot; tier and level are recomputed.
    History is kept, and the unlock flag never goes back to False.

    Args:
        state: Current engine state (or snapshot dict)
        message_state: MessageState or its serialized dict
        config: Engine config. If None, uses the active config.

    Returns:
        Rewound EngineState
    """
    if config is None:
        config = get_config()

    current = _restore(state, config)
    if not isinstance(message_state, MessageState):
        message_state = deserialize_message_state(message_state, config)

    score = clamp_score(message_state.previous_score, config)
    total_xp = max(0, message_state.previous_total_xp)
    tier = tier_of(score, config)
    level = level_of(total_xp, config)

    return EngineState(
        score=score,
        tier=tier,
        total_xp=total_xp,
        level=level,
        unlocked=current.unlocked or message_state.previous_unlocked or unlock_reached(level, tier, config),
        history=list(current.history),
    )
