from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional
from datetime import datetime
import asyncio

import structlog

from agent_memory.domain.models.memory import (
    GroupFilter, MemoryCategory, MemoryRecord, categories_in, utc_now
)

logger = structlog.get_logger(__name__)


class MemoryStore(ABC):
    """Read contract the retrieval engine needs from a memory backend.

    Implementations must leave out records whose expires_at has passed and
    return a consistent snapshot for the duration of one retrieval.
    """

    @abstractmethod
    async def count_active(self, agent_id: str) -> int:
        """Number of non-expired memories for the agent"""

    @abstractmethod
    async def list_active(self, agent_id: str, group: GroupFilter = GroupFilter.ALL) -> List[MemoryRecord]:
        """Non-expired memories for the agent in the requested group, in store order"""


class InMemoryMemoryStore(MemoryStore):
    """Process-local memory store keyed by agent and memory key"""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self.memories: Dict[str, Dict[str, MemoryRecord]] = {}
        self.clock = clock
        self._lock = asyncio.Lock()

    async def upsert(
        self,
        agent_id: str,
        key: str,
        value: str,
        category: MemoryCategory = MemoryCategory.GENERAL,
        embedding: Optional[List[float]] = None,
        expires_at: Optional[datetime] = None
    ) -> MemoryRecord:
        """Create or replace the memory stored under agent_id + key"""

        async with self._lock:
            agent_memories = self.memories.setdefault(agent_id, {})

            record = MemoryRecord(
                key=key,
                value=value,
                category=category,
                embedding=embedding,
                updated_at=self.clock(),
                expires_at=expires_at,
            )

            # Re-assigning an existing dict key keeps its insertion position
            agent_memories[key] = record

            logger.debug("Memory upserted", agent_id=agent_id, key=key, category=record.category.value)
            return record

    async def put(self, agent_id: str, record: MemoryRecord) -> None:
        """Store a fully built record as-is, including its updated_at"""

        async with self._lock:
            self.memories.setdefault(agent_id, {})[record.key] = record

    async def get(self, agent_id: str, key: str) -> Optional[MemoryRecord]:
        """Get an active memory by key"""

        async with self._lock:
            record = self.memories.get(agent_id, {}).get(key)
            if record is None or not record.is_active(self.clock()):
                return None
            return record

    async def delete(self, agent_id: str, key: str) -> bool:
        """Delete a memory; True if it existed"""

        async with self._lock:
            agent_memories = self.memories.get(agent_id)
            if agent_memories and key in agent_memories:
                del agent_memories[key]
                return True
            return False

    async def clear_expired(self, agent_id: Optional[str] = None) -> int:
        """Remove expired memories and return how many were dropped"""

        async with self._lock:
            now = self.clock()
            agent_ids = [agent_id] if agent_id is not None else list(self.memories)
            removed = 0

            for aid in agent_ids:
                agent_memories = self.memories.get(aid, {})
                expired_keys = [
                    key for key, record in agent_memories.items()
                    if not record.is_active(now)
                ]
                for key in expired_keys:
                    del agent_memories[key]
                removed += len(expired_keys)

            return removed

    async def count_active(self, agent_id: str) -> int:
        async with self._lock:
            now = self.clock()
            return sum(
                1 for record in self.memories.get(agent_id, {}).values()
                if record.is_active(now)
            )

    async def list_active(self, agent_id: str, group: GroupFilter = GroupFilter.ALL) -> List[MemoryRecord]:
        async with self._lock:
            now = self.clock()
            wanted = set(categories_in(group))
            return [
                record for record in self.memories.get(agent_id, {}).values()
                if record.category in wanted and record.is_active(now)
            ]
