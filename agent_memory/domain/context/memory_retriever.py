from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar
from datetime import datetime
import asyncio
import time

import structlog

from agent_memory.domain.models.memory import (
    GroupFilter, MemoryRecord, RetrievedMemory, RetrievalResult, RetrievalStrategy,
    ScoredMemory, utc_now
)
from agent_memory.infrastructure.observability.logging import memory_logger, metrics
from agent_memory.infrastructure.observability.langfuse_tracing import annotate_retrieval, traced
from .config import RetrievalConfig
from .context_ranker import CompositeScorer, ImportanceFn
from .errors import DependencyUnavailable, ValidationError
from .memory.embedding_provider import EmbeddingProvider
from .memory.memory_store import MemoryStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")

STORE = "memory_store"
EMBEDDINGS = "embedding_provider"


def merge_memories(core: Sequence[MemoryRecord], contextual: Sequence[ScoredMemory]) -> List[RetrievedMemory]:
    """Core memories first, then ranked contextual ones; first occurrence of a key wins"""

    seen = set()
    merged: List[RetrievedMemory] = []

    for memory in list(core) + list(contextual):
        if memory.key in seen:
            continue
        seen.add(memory.key)
        merged.append(memory.to_retrieved())

    return merged


class MemoryRetriever:
    """Selects which agent memories go into the prompt.

    Small memory sets (at or below ``config.bulk_threshold`` active records)
    are returned whole without touching the embedding provider. Larger sets
    keep every core memory and add the best-scoring contextual memories.

    The retriever only reads from its collaborators and holds no per-call
    state, so one instance can serve concurrent retrievals.
    """

    def __init__(
        self,
        store: MemoryStore,
        embedding_provider: EmbeddingProvider,
        config: Optional[RetrievalConfig] = None,
        importance_fn: Optional[ImportanceFn] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.embedding_provider = embedding_provider
        self.config = config or RetrievalConfig()
        self.scorer = CompositeScorer(self.config, importance_fn=importance_fn)
        self.clock = clock

    async def retrieve(
        self,
        agent_id: str,
        user_message: str,
        *,
        timeout: Optional[float] = None
    ) -> List[RetrievedMemory]:
        """Memories to inject for this turn, duplicate-free and core-complete"""

        result = await self.retrieve_with_strategy(agent_id, user_message, timeout=timeout)
        return result.memories

    @traced("memory_retrieval")
    async def retrieve_with_strategy(
        self,
        agent_id: str,
        user_message: str,
        *,
        timeout: Optional[float] = None
    ) -> RetrievalResult:
        """Like retrieve(), but also reports which path produced the result"""

        self._validate(agent_id, user_message)

        timeout = timeout if timeout is not None else self.config.timeout_seconds
        deadline = asyncio.get_running_loop().time() + timeout if timeout is not None else None
        started = time.perf_counter()

        with structlog.contextvars.bound_contextvars(agent_id=agent_id):
            result = await self._retrieve(agent_id, user_message, deadline)

            duration_ms = (time.perf_counter() - started) * 1000
            metrics.record_latency("memory_retrieval", duration_ms, tags={"strategy": result.strategy.value})
            metrics.increment_counter(f"memory_retrieval.{result.strategy.value}")
            metrics.set_gauge("memory_retrieval.active_count", result.active_count)
            metrics.set_gauge("memory_retrieval.returned_count", len(result.memories))
            memory_logger.log_retrieval(
                agent_id=agent_id,
                strategy=result.strategy.value,
                active_count=result.active_count,
                returned_count=len(result.memories),
                duration_ms=round(duration_ms, 3),
            )
            annotate_retrieval(agent_id, {
                "strategy": result.strategy.value,
                "active_count": result.active_count,
                "returned_count": len(result.memories),
            })

        return result

    async def _retrieve(self, agent_id: str, user_message: str, deadline: Optional[float]) -> RetrievalResult:
        active_count = await self._call(STORE, lambda: self.store.count_active(agent_id), deadline, agent_id)

        if active_count <= self.config.bulk_threshold:
            records = await self._call(
                STORE, lambda: self.store.list_active(agent_id, GroupFilter.ALL), deadline, agent_id
            )
            return RetrievalResult(
                memories=[record.to_retrieved() for record in records],
                strategy=RetrievalStrategy.BULK,
                active_count=active_count,
            )

        queries = [
            asyncio.ensure_future(self._call(
                STORE, lambda group=group: self.store.list_active(agent_id, group), deadline, agent_id
            ))
            for group in (GroupFilter.CORE, GroupFilter.CONTEXTUAL)
        ]
        try:
            core, contextual = await asyncio.gather(*queries)
        except BaseException:
            # Cancel the sibling query when one fails
            for query in queries:
                query.cancel()
            raise

        if not contextual:
            return RetrievalResult(
                memories=merge_memories(core, []),
                strategy=RetrievalStrategy.CORE_ONLY,
                active_count=active_count,
            )

        try:
            query_embedding = await self._call(
                EMBEDDINGS, lambda: self.embedding_provider.embed(user_message), deadline, agent_id
            )
        except DependencyUnavailable as e:
            if self.config.embedding_failure_policy == "core_only":
                memory_logger.log_dependency_failure(agent_id, EMBEDDINGS, str(e), fallback="core_only")
                return RetrievalResult(
                    memories=merge_memories(core, []),
                    strategy=RetrievalStrategy.DEGRADED,
                    active_count=active_count,
                )
            memory_logger.log_dependency_failure(agent_id, EMBEDDINGS, str(e))
            raise

        now = self.clock()
        scored = self.scorer.score_all(query_embedding, contextual, now)
        ranked = self.scorer.rank(scored)

        logger.debug(
            "Scored contextual memories",
            contextual_count=len(contextual),
            kept=len(ranked),
            top_score=ranked[0].score if ranked else None,
        )

        return RetrievalResult(
            memories=merge_memories(core, ranked),
            strategy=RetrievalStrategy.HYBRID,
            active_count=active_count,
        )

    async def _call(
        self,
        dependency: str,
        call: Callable[[], Awaitable[T]],
        deadline: Optional[float],
        agent_id: str
    ) -> T:
        """Await a collaborator within the remaining deadline, wrapping failures"""

        remaining = None
        if deadline is not None:
            remaining = deadline - asyncio.get_running_loop().time()
            if remaining <= 0:
                raise DependencyUnavailable(dependency, "deadline exceeded", agent_id=agent_id)

        try:
            return await asyncio.wait_for(call(), timeout=remaining)
        except DependencyUnavailable:
            raise
        except Exception as e:
            reason = "deadline exceeded" if isinstance(e, asyncio.TimeoutError) else (str(e) or type(e).__name__)
            # Embedding failures are logged by the caller, which knows the fallback policy
            if dependency == STORE:
                memory_logger.log_dependency_failure(agent_id, dependency, reason)
            raise DependencyUnavailable(dependency, reason, agent_id=agent_id) from e

    @staticmethod
    def _validate(agent_id: str, user_message: str) -> None:
        if not isinstance(agent_id, str) or not agent_id.strip():
            raise ValidationError("agent_id must be a non-empty string")
        if not isinstance(user_message, str):
            raise ValidationError("user_message must be a string")
