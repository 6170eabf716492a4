from .cache_memory_store import CacheMemoryStore
from .embedding_provider import EmbeddingProvider, HashEmbeddingProvider
from .memory_store import InMemoryMemoryStore, MemoryStore

__all__ = [
    "CacheMemoryStore",
    "EmbeddingProvider",
    "HashEmbeddingProvider",
    "InMemoryMemoryStore",
    "MemoryStore",
]
