"""Hybrid memory retrieval for agent prompts."""

from agent_memory.domain.context import (
    CompositeScorer,
    ContextManager,
    DataAnomaly,
    DependencyUnavailable,
    MemoryRetrievalError,
    MemoryRetriever,
    RetrievalConfig,
    ValidationError,
    format_memories,
)
from agent_memory.domain.context.memory import (
    EmbeddingProvider,
    HashEmbeddingProvider,
    InMemoryMemoryStore,
    MemoryStore,
)
from agent_memory.domain.models.memory import (
    GroupFilter,
    MemoryCategory,
    MemoryGroup,
    MemoryRecord,
    RetrievedMemory,
    RetrievalStrategy,
    ScoredMemory,
    classify_category,
)

__version__ = "0.1.0"
