"""
Admin and status commands for the affection engine.

These are not host commands themselves, but the logic a host command
handler or debug console would call. Output is plain text.
"""

import time
from typing import Optional

from companion.affection.classifier import match_rule
from companion.affection.computation import get_tier_band, level_progress, max_level
from companion.affection.config import AffectionConfig, get_config
from companion.affection.core import EngineState
from companion.affection.history import recent


def _format_time(timestamp: float) -> str:
    return time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(timestamp))


def cmd_affection_status(
    state: EngineState,
    config: Optional[AffectionConfig] = None
) -> str:
    """
    Command: affection/status

    Show score, tier, level progress and unlock status.

    Args:
        state: Current engine state
        config: Engine config. If None, uses the active config.

    Returns:
        Formatted string for display
    """
    if config is None:
        config = get_config()

    band = get_tier_band(state.tier, config)
    progress = level_progress(state.total_xp, config)

    output = []
    output.append(f"{config.character_name}'s Affection")
    if band is not None and band.description:
        output.append(f"  State: {state.tier} ({band.description})")
    else:
        output.append(f"  State: {state.tier}")
    output.append(f"  Score: {state.score} / {config.score_range.max}")

    if progress.level >= max_level(config):
        output.append(f"  Level: {progress.level} (max)")
    else:
        output.append(f"  Level: {progress.level}")
    output.append(
        f"  XP: {progress.xp_into_level} / {progress.xp_needed} "
        f"({progress.percent:.0f}%), {state.total_xp} total"
    )

    gates = []
    if config.unlock.level is not None:
        gates.append(f"level {config.unlock.level}")
    if config.unlock.tier is not None:
        gates.append(f"tier {config.unlock.tier}")
    status = "unlocked" if state.unlocked else "locked"
    output.append(f"  {config.unlock.label}: {status} (at {' or '.join(gates)})")

    return "\n".join(output)


def cmd_affection_history(state: EngineState, limit: int = 10) -> str:
    """
    Command: affection/history

    Show recent interactions, newest first.

    Args:
        state: Current engine state
        limit: Maximum number of records to show

    Returns:
        Formatted history
    """
    output = []
    output.append(f"Interaction History ({len(state.history)} recorded)")

    entries = recent(state.history, limit)
    if not entries:
        output.append("  (no interactions recorded)")
        return "\n".join(output)

    for i, entry in enumerate(entries):
        output.append(f"  {i+1}. {entry.delta:+d} [{entry.category}] {entry.text!r}")
        output.append(f"     At: {_format_time(entry.timestamp)}")

    return "\n".join(output)


def cmd_affection_explain(
    text: str,
    tier: str,
    config: Optional[AffectionConfig] = None
) -> str:
    """
    Command: affection/explain <tier> <message>

    Show which rule a message would hit in a tier, without sampling.

    Args:
        text: Message to test
        tier: Tier whose rule table to use
        config: Engine config. If None, uses the active config.

    Returns:
        Formatted explanation
    """
    if config is None:
        config = get_config()

    output = []
    output.append(f"Rule Check: {text!r}")
    output.append(f"  Tier: {tier}")

    if tier not in config.rules:
        output.append("  (tier has no rule table; every message is neutral)")
        return "\n".join(output)

    rule = match_rule(text, tier, config)
    if rule is None:
        output.append("  No rule matched: delta 0 (neutral)")
        return "\n".join(output)

    if rule.is_fixed:
        delta = f"{rule.delta_min:+d}"
    else:
        delta = f"{rule.delta_min:+d}..{rule.delta_max:+d}"
    output.append(f"  Matched rule: {rule.name} ({rule.category})")
    output.append(f"  Delta: {delta}")
    output.append(
        "  Keywords: " + " AND ".join("(" + " | ".join(group) + ")" for group in rule.match)
    )

    return "\n".join(output)
