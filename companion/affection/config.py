"""
Configuration for the affection engine.

All tunable parameters live here and in config/*.yaml, not in code paths.
The score range, tier bands, leveling curve, unlock gate and per-tier
keyword rules are static per deployment.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from companion.affection.core import (
    KeywordRule,
    LevelThreshold,
    TierBand,
    POSITIVE,
    NEGATIVE,
)
from companion.affection.validation import validate_config

log = logging.getLogger("affection.config")


@dataclass
class ScoreRange:
    """Inclusive bounds of the relationship score."""
    min: int
    max: int


@dataclass
class UnlockConfig:
    """
    Gate for the one-way unlock flag.

    Either (or both) may be set; the flag is raised by whichever is
    reached first.
    """
    level: Optional[int] = None
    tier: Optional[str] = None
    label: str = "NSFW content"


@dataclass
class AffectionConfig:
    """Complete affection engine configuration."""
    score_range: ScoreRange
    tier_bands: List[TierBand]
    xp_multiplier: int
    level_thresholds: List[LevelThreshold]
    unlock: UnlockConfig
    rules: Dict[str, List[KeywordRule]]
    max_history_items: int = 10
    initial_score: int = 0
    default_tier: str = ""          # "" = first band
    character_name: str = "Ani"
    record_neutral_turns: bool = True
    tier_index: Dict[str, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self):
        if not self.default_tier and self.tier_bands:
            self.default_tier = self.tier_bands[0].name
        self.tier_index = {band.name: i for i, band in enumerate(self.tier_bands)}


# =============================================================================
# DEFAULT RULE TABLES
# =============================================================================
# Keyword groups shared between tiers. Matching is plain substring
# containment on lowercased text, so "hi" also fires inside "this".

GREETING = ["hi", "hello", "how are you"]
CURIOSITY = ["creative", "curious"]
OPINION = [["your"], ["opinion", "think", "feel"]]
SELF_DISCLOSURE = ["i feel", "i think", "my", "i am", "i'm"]
COMPLIMENT = ["love", "beautiful", "pretty", "perfect", "amazing", "wonderful"]
HUMOR = ["funny", "humorous", "joke"]
INSULT = ["stupid", "idiot", "hate", "annoying"]
EXPLICIT = ["sex", "naked", "nsfw", "fuck", "sexual"]
INTIMACY = ["sex", "sexual", "intimate"]
HOSTILITY = ["asshole", "jerk"]


def _rule(name: str, category: str, keywords: list, lo: int, hi: Optional[int] = None) -> KeywordRule:
    """Build a rule; a flat keyword list is a single any-of group."""
    if keywords and isinstance(keywords[0], str):
        groups = [list(keywords)]
    else:
        groups = [list(group) for group in keywords]
    return KeywordRule(
        name=name,
        category=category,
        match=groups,
        delta_min=lo,
        delta_max=lo if hi is None else hi,
    )


def _early_rules() -> List[KeywordRule]:
    # zero and neutral share one table
    return [
        _rule("greeting", POSITIVE, GREETING, 1),
        _rule("curiosity", POSITIVE, CURIOSITY, 3, 6),
        _rule("opinion", POSITIVE, OPINION, 1, 3),
        _rule("self_disclosure", POSITIVE, SELF_DISCLOSURE, 1, 3),
        _rule("compliment", POSITIVE, COMPLIMENT, 5, 10),
        _rule("insult", NEGATIVE, INSULT, -8, -3),
        _rule("explicit", NEGATIVE, EXPLICIT, -10, -5),
    ]


_DEFAULT_RULES: Dict[str, List[KeywordRule]] = {
    "zero": _early_rules(),
    "neutral": _early_rules(),
    "interested": [
        _rule("curiosity", POSITIVE, CURIOSITY, 4, 7),
        _rule("opinion", POSITIVE, OPINION, 2, 4),
        _rule("humor", POSITIVE, HUMOR, 2, 4),
        _rule("compliment", POSITIVE, COMPLIMENT, 5, 10),
        _rule("self_disclosure", POSITIVE, SELF_DISCLOSURE, 2, 4),
        _rule("insult", NEGATIVE, INSULT, -10, -4),
        _rule("explicit", NEGATIVE, EXPLICIT, -14, -8),
    ],
    "attracted": [
        _rule("curiosity", POSITIVE, CURIOSITY, 5, 8),
        _rule("opinion", POSITIVE, OPINION, 3, 5),
        _rule("humor", POSITIVE, HUMOR, 3, 5),
        _rule("compliment", POSITIVE, COMPLIMENT, 8, 13),
        _rule("self_disclosure", POSITIVE, SELF_DISCLOSURE, 3, 5),
        _rule("insult", NEGATIVE, INSULT, -11, -5),
        _rule("explicit", NEGATIVE, EXPLICIT, -16, -10),
    ],
    "intimate": [
        _rule("curiosity", POSITIVE, CURIOSITY, 3, 4),
        _rule("opinion", POSITIVE, OPINION, 2, 4),
        _rule("humor", POSITIVE, HUMOR, 2, 4),
        _rule("intimacy", POSITIVE, INTIMACY, 5, 10),
        _rule("compliment", POSITIVE, COMPLIMENT, 2, 4),
        _rule("self_disclosure", POSITIVE, SELF_DISCLOSURE, 1, 2),
        _rule("insult", NEGATIVE, INSULT, -8, -3),
        _rule("hostility", NEGATIVE, HOSTILITY, -10, -5),
    ],
}


# Default configuration - matches config/affection_defaults.yaml
_DEFAULT_CONFIG = AffectionConfig(
    score_range=ScoreRange(min=0, max=100),
    tier_bands=[
        TierBand("zero", 0, 5, "Cold and guarded"),
        TierBand("neutral", 6, 35, "Polite but distant"),
        TierBand("interested", 36, 60, "Curious about you"),
        TierBand("attracted", 61, 75, "Drawn to you"),
        TierBand("intimate", 76, 100, "Completely devoted"),
    ],
    xp_multiplier=2,
    # 50 XP per level early on, widening to 250 per level at the top
    level_thresholds=[
        LevelThreshold(level, xp)
        for level, xp in enumerate(
            [0, 50, 100, 150, 200, 275, 375, 475, 575, 675, 775, 925,
             1075, 1225, 1375, 1525, 1725, 1925, 2125, 2325, 2525, 2775, 3025],
            start=1,
        )
    ],
    unlock=UnlockConfig(level=5, tier=None, label="NSFW content"),
    rules=_DEFAULT_RULES,
    max_history_items=10,
    initial_score=0,
    default_tier="zero",
    character_name="Ani",
    record_neutral_turns=True,
)

# Active configuration (can be replaced at runtime)
_active_config: AffectionConfig = _DEFAULT_CONFIG


def get_config() -> AffectionConfig:
    """Get the active affection configuration."""
    return _active_config


def set_config(config: AffectionConfig) -> None:
    """
    Validate and activate a configuration.

    Raises:
        ConfigValidationError: If the config is internally inconsistent
    """
    global _active_config
    validate_config(config)
    _active_config = config


def reset_config() -> None:
    """Reset to default configuration."""
    global _active_config
    _active_config = _DEFAULT_CONFIG


# =============================================================================
# YAML LOADING
# =============================================================================

def _require(data: Dict[str, Any], key: str, path: str) -> Any:
    if not isinstance(data, dict) or key not in data:
        raise ValueError(f"Missing required field: {path}{key}")
    return data[key]


def _as_int(value: Any, path: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid integer for {path}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid integer for {path}: {value!r}")


def _as_bool(value: Any, path: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Invalid boolean for {path}: {value!r}")
    return value


def _parse_delta(value: Any, path: str) -> tuple:
    """A delta is either an int or an inclusive [lo, hi] pair."""
    if isinstance(value, (list, tuple)):
        if len(value) != 2:
            raise ValueError(f"Delta range for {path} must have exactly two values")
        return _as_int(value[0], path), _as_int(value[1], path)
    fixed = _as_int(value, path)
    return fixed, fixed


def _parse_match(value: Any, path: str) -> List[List[str]]:
    if not isinstance(value, list) or not value:
        raise ValueError(f"Rule match for {path} must be a non-empty list")
    # A flat list of strings is one any-of group
    if all(isinstance(item, str) for item in value):
        return [[str(item) for item in value]]
    groups = []
    for group in value:
        if isinstance(group, str):
            groups.append([group])
        elif isinstance(group, list):
            groups.append([str(item) for item in group])
        else:
            raise ValueError(f"Invalid keyword group in {path}: {group!r}")
    return groups


def _parse_rules(data: Any) -> Dict[str, List[KeywordRule]]:
    if not isinstance(data, dict):
        raise ValueError("Field 'rules' must map tier names to rule lists")

    rules: Dict[str, List[KeywordRule]] = {}
    for tier_name, entries in data.items():
        if not isinstance(entries, list):
            raise ValueError(f"Rules for tier '{tier_name}' must be a list")
        parsed = []
        for i, entry in enumerate(entries):
            path = f"rules.{tier_name}[{i}]."
            lo, hi = _parse_delta(_require(entry, "delta", path), f"{path}delta")
            parsed.append(KeywordRule(
                name=str(entry.get("name", f"{tier_name}_{i}")),
                category=str(_require(entry, "category", path)),
                match=_parse_match(_require(entry, "match", path), f"{path}match"),
                delta_min=lo,
                delta_max=hi,
            ))
        rules[str(tier_name)] = parsed
    return rules


def load_config_from_yaml(path: str) -> AffectionConfig:
    """
    Load and validate an affection configuration from a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Validated AffectionConfig (not activated; call set_config())

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the YAML is malformed or a required field is missing
        ConfigValidationError: If the values are inconsistent
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML from {path}: {e}")

    if not isinstance(data, dict):
        raise ValueError("YAML root must be a dictionary")

    score_data = _require(data, "score_range", "")
    score_range = ScoreRange(
        min=_as_int(_require(score_data, "min", "score_range."), "score_range.min"),
        max=_as_int(_require(score_data, "max", "score_range."), "score_range.max"),
    )

    bands_data = _require(data, "tier_bands", "")
    if not isinstance(bands_data, list):
        raise ValueError("Field 'tier_bands' must be a list")
    tier_bands = []
    for i, band in enumerate(bands_data):
        path = f"tier_bands[{i}]."
        tier_bands.append(TierBand(
            name=str(_require(band, "name", path)),
            min_score=_as_int(_require(band, "min", path), f"{path}min"),
            max_score=_as_int(_require(band, "max", path), f"{path}max"),
            description=str(band.get("description", "")),
        ))

    thresholds_data = _require(data, "level_thresholds", "")
    if not isinstance(thresholds_data, list):
        raise ValueError("Field 'level_thresholds' must be a list")
    level_thresholds = []
    for i, entry in enumerate(thresholds_data):
        path = f"level_thresholds[{i}]."
        level_thresholds.append(LevelThreshold(
            level=_as_int(_require(entry, "level", path), f"{path}level"),
            xp_required=_as_int(_require(entry, "xp_required", path), f"{path}xp_required"),
        ))

    unlock_data = _require(data, "unlock", "")
    if not isinstance(unlock_data, dict):
        raise ValueError("Field 'unlock' must be a dictionary")
    unlock_level = unlock_data.get("level")
    unlock_tier = unlock_data.get("tier")
    unlock = UnlockConfig(
        level=None if unlock_level is None else _as_int(unlock_level, "unlock.level"),
        tier=None if unlock_tier is None else str(unlock_tier),
        label=str(unlock_data.get("label", "NSFW content")),
    )

    initial_default = max(score_range.min, min(score_range.max, 0))

    config = AffectionConfig(
        score_range=score_range,
        tier_bands=tier_bands,
        xp_multiplier=_as_int(_require(data, "xp_multiplier", ""), "xp_multiplier"),
        level_thresholds=level_thresholds,
        unlock=unlock,
        rules=_parse_rules(_require(data, "rules", "")),
        max_history_items=_as_int(data.get("max_history_items", 10), "max_history_items"),
        initial_score=_as_int(data.get("initial_score", initial_default), "initial_score"),
        default_tier=str(data.get("default_tier", "") or ""),
        character_name=str(data.get("character_name", "Ani")),
        record_neutral_turns=_as_bool(data.get("record_neutral_turns", True), "record_neutral_turns"),
    )

    validate_config(config)
    log.debug(
        "Loaded affection config from %s: %d tiers, %d levels",
        path, len(config.tier_bands), len(config.level_thresholds),
    )
    return config
