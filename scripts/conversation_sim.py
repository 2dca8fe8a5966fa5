#!/usr/bin/env python3
"""Conversation sim: a scripted chat replayed through the affection engine.

This is a lightweight, host-free simulation that demonstrates:
- per-tier keyword classification and sampled deltas
- score/tier transitions and XP leveling
- the one-way unlock flag
- rewinding a turn from its stored message state

Run:
  source .venv/bin/activate
  python scripts/conversation_sim.py
  python scripts/conversation_sim.py config/affection_compact.yaml 7

Notes:
- The state is round-tripped through serialize_state() every turn, the way
  a host would persist it between messages.
"""

from __future__ import annotations

import random
import sys
import time
from pathlib import Path

# Ensure repo root is on sys.path when running as a script
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from companion.affection.admin_commands import cmd_affection_history, cmd_affection_status
from companion.affection.config import load_config_from_yaml, set_config, reset_config
from companion.affection.persistence import serialize_state
from companion.affection.turn import process_turn, rewind


SCRIPT = [
    "hello there",
    "how are you today?",
    "i'm a little nervous, honestly",
    "what's your opinion on rainy days?",
    "you are so creative",
    "that's a funny joke",
    "you look beautiful tonight",
    "ugh, you're annoying",
    "sorry. i think you're wonderful",
    "i'm so curious about you",
    "tell me what you think about my music",
    "you're perfect",
    "i love talking with you",
    "i feel like i can tell you anything",
    "you're amazing",
]


def simulate(config_path: str = "config/affection_defaults.yaml", seed: int = 42) -> int:
    rng = random.Random(seed)

    config = load_config_from_yaml(str(project_root / config_path))
    set_config(config)

    print("=" * 72)
    print(f"CONVERSATION SIM: {config.character_name} / {Path(config_path).name}")
    print(f"seed={seed}")
    print("=" * 72)

    snapshot = None
    last = None
    now = time.time()

    for turn, text in enumerate(SCRIPT, start=1):
        result = process_turn(snapshot, text, rng=rng, now=now + turn)
        snapshot = serialize_state(result.state)
        last = result

        label = result.classification.rule_name or "-"
        print(f"\n--- TURN {turn} ---")
        print(f"USER: {text}")
        print(
            f"RULE: {label} ({result.classification.category}) "
            f"delta={result.classification.delta:+d}"
        )
        print(
            f"STATE  score={result.state.score}  tier={result.state.tier}  "
            f"level={result.state.level}  xp={result.state.total_xp}  "
            f"unlocked={result.state.unlocked}"
        )
        if result.notification:
            print("NOTICE:", result.notification)

    print("\n" + cmd_affection_status(last.state, config))
    print("\n" + cmd_affection_history(last.state, limit=5))

    # Undo the last message, as a host would on a swipe/regenerate
    rewound = rewind(last.state, last.message_state, config)
    print(
        f"\nREWIND: score {last.state.score} -> {rewound.score}, "
        f"xp {last.state.total_xp} -> {rewound.total_xp}"
    )

    reset_config()
    return 0


if __name__ == "__main__":
    args = sys.argv[1:]
    if len(args) >= 2:
        raise SystemExit(simulate(args[0], int(args[1])))
    if args:
        raise SystemExit(simulate(args[0]))
    raise SystemExit(simulate())
