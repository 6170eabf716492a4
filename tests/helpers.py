"""Shared test data builders and fake collaborators."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from agent_memory.domain.context.memory.embedding_provider import EmbeddingProvider
from agent_memory.domain.models.memory import MemoryCategory, MemoryRecord

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
AGENT = "agent-1"


def unit(index: int, dimension: int = 4) -> List[float]:
    """Basis vector with a single 1.0 at index"""
    vector = [0.0] * dimension
    vector[index] = 1.0
    return vector


def make_record(
    key: str,
    category: MemoryCategory = MemoryCategory.GENERAL,
    embedding: Optional[List[float]] = None,
    age_days: float = 0.0,
    expires_in_days: Optional[float] = None,
    value: Optional[str] = None,
) -> MemoryRecord:
    return MemoryRecord(
        key=key,
        value=value if value is not None else f"value of {key}",
        category=category,
        embedding=embedding,
        updated_at=NOW - timedelta(days=age_days),
        expires_at=NOW + timedelta(days=expires_in_days) if expires_in_days is not None else None,
    )


class StaticEmbeddingProvider(EmbeddingProvider):
    """Returns the same vector for every text and records the queries"""

    def __init__(self, vector: List[float]):
        self.vector = vector
        self.queries: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.queries.append(text)
        return list(self.vector)


class FailingEmbeddingProvider(EmbeddingProvider):
    def __init__(self, error: Exception = None):
        self.error = error or ConnectionError("embedding service down")
        self.calls = 0

    async def embed(self, text: str) -> List[float]:
        self.calls += 1
        raise self.error


class SlowEmbeddingProvider(EmbeddingProvider):
    def __init__(self, delay: float):
        self.delay = delay

    async def embed(self, text: str) -> List[float]:
        await asyncio.sleep(self.delay)
        return unit(0)
