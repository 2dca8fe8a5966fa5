"""
Bounded interaction history.

Append-only from the engine's point of view: new records go on the end,
the oldest fall off the front once the log is over capacity.
"""

import time
from typing import List, Optional

from companion.affection.config import get_config
from companion.affection.core import InteractionRecord, NEUTRAL


def make_record(
    text: str,
    delta: int,
    category: str = NEUTRAL,
    now: Optional[float] = None
) -> InteractionRecord:
    """Create a history record, stamped with `now` (default: current time)."""
    if now is None:
        now = time.time()
    return InteractionRecord(text=text, delta=delta, timestamp=now, category=category)


def record(
    log: List[InteractionRecord],
    entry: InteractionRecord,
    max_items: Optional[int] = None
) -> List[InteractionRecord]:
    """
    Append an entry and keep only the most recent `max_items`.

    Returns a new list; the input list is left untouched.

    Args:
        log: Existing history, oldest first
        entry: Record to append
        max_items: Capacity. If None, uses config.max_history_items.

    Returns:
        New history, oldest first, at most max_items long
    """
    if max_items is None:
        max_items = get_config().max_history_items
    if max_items <= 0:
        return []

    updated = list(log)
    updated.append(entry)
    return updated[-max_items:]


def recent(log: List[InteractionRecord], limit: int = 10) -> List[InteractionRecord]:
    """Newest-first view of the last `limit` records."""
    if limit <= 0:
        return []
    return list(reversed(log[-limit:]))
