"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Add tests to path for azure_mock imports
tests_path = Path(__file__).parent
sys.path.insert(0, str(tests_path))

from azure_mock import RESOURCE_ID  # noqa: E402

from update_operator.models import DesiredConfig  # noqa: E402

UPDATED_MAX_WORKERS = 5
NEW_TAG_KEY = "NEW_KEY"
NEW_TAG_VALUE = "NEW_VALUE"


@pytest.fixture
def desired() -> DesiredConfig:
    """Desired config raising maxWorkers and replacing the tag set."""
    return DesiredConfig(
        identity=RESOURCE_ID,
        properties={"maxWorkers": UPDATED_MAX_WORKERS},
        tags={NEW_TAG_KEY: NEW_TAG_VALUE},
    )
