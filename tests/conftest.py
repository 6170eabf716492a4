"""Test configuration and fixtures."""

import pytest

from agent_memory.domain.context.memory.memory_store import InMemoryMemoryStore
from agent_memory.infrastructure.observability.logging import metrics
from tests.helpers import NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def store(clock) -> InMemoryMemoryStore:
    return InMemoryMemoryStore(clock=clock)


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()
