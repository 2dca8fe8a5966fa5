"""
Pytest configuration for affection engine tests.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


# =============================================================================
# VALIDATION ON TEST RUN
# =============================================================================

def pytest_configure(config):
    """
    Validate shipped config presets before running tests.

    This ensures a bad YAML table can't ship - validation errors
    surface as test collection failures.
    """
    from companion.affection.config import load_config_from_yaml
    from companion.affection.validation import ConfigValidationError

    for name in ("affection_defaults.yaml", "affection_compact.yaml"):
        path = project_root / "config" / name
        try:
            load_config_from_yaml(str(path))
        except (ConfigValidationError, ValueError) as e:
            pytest.fail(f"Config validation failed for {name}:\n{e}", pytrace=False)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def clean_config():
    """Every test starts and ends on the default configuration."""
    from companion.affection.config import reset_config
    reset_config()
    yield
    reset_config()


@pytest.fixture
def compact_config():
    """The compact preset: score -10..15, unlock by tier."""
    from companion.affection.config import load_config_from_yaml
    from tests.helpers import COMPACT_YAML
    return load_config_from_yaml(COMPACT_YAML)
