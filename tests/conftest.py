# tests/conftest.py
# Ensure project root is on sys.path so `import dutycheck` works reliably in pytest.
import sys
from pathlib import Path

import pytest

# Resolve project root as the parent of the tests folder
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    # put project root at front so local packages take precedence
    sys.path.insert(0, str(ROOT))

from dutycheck.models import Regulator, UserPreferences  # noqa: E402
from dutycheck.planner import Planner  # noqa: E402


@pytest.fixture
def toronto():
    """TC preferences with entries and acclimatization in America/Toronto."""
    return UserPreferences(
        regulator=Regulator.TC,
        acclimatization_zone="America/Toronto",
        reference_zone="America/Toronto",
    )


@pytest.fixture
def planner():
    return Planner()
