from typing import Any, Dict, Optional, Sequence
import structlog

from agent_memory.domain.models.memory import MemoryContext, RetrievedMemory
from .memory.cache_memory_store import CacheMemoryStore
from .memory_retriever import MemoryRetriever

logger = structlog.get_logger(__name__)

MEMORY_SECTION_HEADER = "## Memories"


def format_memories(memories: Sequence[RetrievedMemory]) -> str:
    """Render memories as a system prompt section, or "" when there are none"""

    if not memories:
        return ""

    lines = [f"- {m.key}: {m.value}" for m in memories]
    return MEMORY_SECTION_HEADER + "\n" + "\n".join(lines)


class ContextManager:
    """Assembles the memory part of an agent's prompt"""

    def __init__(
        self,
        retriever: MemoryRetriever,
        cache_store: Optional[CacheMemoryStore] = None,
        summary_ttl: int = 3600
    ):
        self.retriever = retriever
        self.cache_store = cache_store or CacheMemoryStore()
        self.summary_ttl = summary_ttl

    async def build_memory_context(
        self,
        agent_id: str,
        user_message: str,
        *,
        timeout: Optional[float] = None
    ) -> MemoryContext:
        """Retrieve memories for this turn and render them for the system prompt"""

        logger.info("Building memory context", agent_id=agent_id)

        result = await self.retriever.retrieve_with_strategy(agent_id, user_message, timeout=timeout)

        context = MemoryContext(
            agent_id=agent_id,
            query=user_message,
            memories=result.memories,
            strategy=result.strategy,
            prompt_section=format_memories(result.memories),
        )

        await self.cache_store.set(f"memory_context_{agent_id}", context.get_context_summary(), ttl=self.summary_ttl)

        return context

    async def enhance_system_prompt(self, system_prompt: str, agent_id: str, user_message: str) -> str:
        """Append the memory section to a system prompt"""

        context = await self.build_memory_context(agent_id, user_message)
        if not context.prompt_section:
            return system_prompt
        return f"{system_prompt}\n\n{context.prompt_section}"

    async def get_context_summary(self, agent_id: str) -> Dict[str, Any]:
        """Summary of the last memory context built for an agent"""

        cached = await self.cache_store.get(f"memory_context_{agent_id}")
        if cached:
            return cached

        return {
            "agent_id": agent_id,
            "status": "no_context"
        }

    async def clear_agent_context(self, agent_id: str) -> None:
        logger.info("Clearing memory context summary", agent_id=agent_id)
        await self.cache_store.delete(f"memory_context_{agent_id}")
