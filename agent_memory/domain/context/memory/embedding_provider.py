from abc import ABC, abstractmethod
from typing import List
import hashlib
import math
import re


class EmbeddingProvider(ABC):
    """Maps text to a fixed-dimension vector matching stored embeddings"""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Embed a single piece of text"""


class HashEmbeddingProvider(EmbeddingProvider):
    """Deterministic offline embeddings for tests and local development.

    Each word is hashed into one of `dimension` buckets and the resulting
    count vector is L2-normalised, so texts sharing words have positive
    cosine similarity. Empty text yields the zero vector.
    """

    def __init__(self, dimension: int = 384):
        if dimension <= 0:
            raise ValueError("dimension must be positive")
        self.dimension = dimension
        self.calls = 0

    async def embed(self, text: str) -> List[float]:
        self.calls += 1
        return self.embed_sync(text)

    def embed_sync(self, text: str) -> List[float]:
        vector = [0.0] * self.dimension
        for word in re.findall(r'\w+', text.lower()):
            digest = hashlib.sha256(word.encode("utf-8")).digest()
            vector[int.from_bytes(digest[:4], "big") % self.dimension] += 1.0

        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0.0:
            return vector
        return [v / norm for v in vector]
