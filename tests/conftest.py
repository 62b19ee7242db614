from __future__ import annotations

import copy

import pytest

from engine.allocation_engine import AllocationEngine
from tests._trees import SNAPSHOT


@pytest.fixture
def engine() -> AllocationEngine:
    """Engine over the Electronics/Furniture sample with default policy."""
    return AllocationEngine.from_snapshot(copy.deepcopy(SNAPSHOT))
