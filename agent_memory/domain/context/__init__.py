# This module handles memory retrieval for prompt construction

# +---------------------------+
# |       Memory Store        |   (Persistent, external, per agent)
# |---------------------------|
# | key / value / category    |
# | embedding (optional)      |
# | updated_at / expires_at   |
# +---------------------------+
#          |
#          |  count_active  <= threshold  -->  everything, store order
#          |
#          v  > threshold
# +---------------------------+     +---------------------------+
# |  Core                     |     |  Contextual               |
# |  INSTRUCTION, PREFERENCE, |     |  GENERAL, CONTEXT,        |
# |  STYLE_CORRECTION         |     |  HISTORY                  |
# |  (always kept)            |     |  scored: semantic,        |
# |                           |     |  recency, importance      |
# +---------------------------+     +---------------------------+
#          \                               /
#           \                             /  filter, rank, top N
#            v                           v
# +------------------------------------------+
# |  Core + ranked contextual, deduped by key |
# +------------------------------------------+
#         |
#         v
#   [system prompt "## Memories" section]

from .config import RetrievalConfig
from .context_manager import ContextManager, format_memories
from .context_ranker import CompositeScorer, cosine_similarity, recency_score
from .errors import DataAnomaly, DependencyUnavailable, MemoryRetrievalError, ValidationError
from .memory_retriever import MemoryRetriever, merge_memories

__all__ = [
    "RetrievalConfig",
    "ContextManager",
    "format_memories",
    "CompositeScorer",
    "cosine_similarity",
    "recency_score",
    "DataAnomaly",
    "DependencyUnavailable",
    "MemoryRetrievalError",
    "ValidationError",
    "MemoryRetriever",
    "merge_memories",
]
