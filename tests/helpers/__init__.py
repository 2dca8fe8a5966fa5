"""
Deterministic engine test helpers.

Provides utilities for testing the engine without real randomness,
global config mutation, or time drift.
"""

from pathlib import Path

from tests.helpers.determinism import (
    EdgeRandom,
    low_rng,
    high_rng,
    state_at,
    xp_required,
    make_config,
)

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"
DEFAULTS_YAML = str(CONFIG_DIR / "affection_defaults.yaml")
COMPACT_YAML = str(CONFIG_DIR / "affection_compact.yaml")

__all__ = [
    "EdgeRandom",
    "low_rng",
    "high_rng",
    "state_at",
    "xp_required",
    "make_config",
    "CONFIG_DIR",
    "DEFAULTS_YAML",
    "COMPACT_YAML",
]
