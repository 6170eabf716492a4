from typing import Callable, List, Optional, Sequence
from datetime import datetime
import math

import structlog

from agent_memory.domain.models.memory import MemoryRecord, ScoredMemory
from .config import RetrievalConfig
from .errors import DataAnomaly

logger = structlog.get_logger(__name__)

SECONDS_PER_DAY = 86400.0

ImportanceFn = Callable[[MemoryRecord], float]


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors.

    Raises DataAnomaly when the vectors cannot be compared (length mismatch,
    zero length, zero norm or non-finite components).
    """

    if len(a) != len(b):
        raise DataAnomaly(f"dimension mismatch: {len(a)} != {len(b)}")
    if len(a) == 0:
        raise DataAnomaly("zero-length vector")

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if not (math.isfinite(dot) and math.isfinite(norm_a) and math.isfinite(norm_b)):
        raise DataAnomaly("non-finite vector component")
    if norm_a == 0.0 or norm_b == 0.0:
        raise DataAnomaly("zero-norm vector")

    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def recency_score(updated_at: datetime, now: datetime, half_life_days: float) -> float:
    """Exponential decay: 1.0 when fresh, 0.5 after one half-life"""

    age_days = (now - updated_at).total_seconds() / SECONDS_PER_DAY
    # Clock skew can put updated_at slightly in the future
    if age_days < 0:
        age_days = 0.0
    return 0.5 ** (age_days / half_life_days)


class CompositeScorer:
    """Scores contextual memories by semantic, recency and importance signals"""

    def __init__(self, config: Optional[RetrievalConfig] = None, importance_fn: Optional[ImportanceFn] = None):
        self.config = config or RetrievalConfig()
        self.importance_fn = importance_fn or self._default_importance

    def _default_importance(self, record: MemoryRecord) -> float:
        return self.config.default_importance

    def semantic_score(
        self,
        query_embedding: Optional[Sequence[float]],
        record: MemoryRecord
    ) -> float:
        """Similarity to the query, or the configured default when unusable"""

        if query_embedding is None or record.embedding is None:
            return self.config.default_semantic_score

        try:
            similarity = cosine_similarity(query_embedding, record.embedding)
        except DataAnomaly as e:
            logger.warning(
                "Unusable memory embedding, using default semantic score",
                key=record.key,
                reason=str(e),
            )
            return self.config.default_semantic_score

        return min(max(similarity, 0.0), 1.0)

    def score(self, query_embedding: Optional[Sequence[float]], record: MemoryRecord, now: datetime) -> ScoredMemory:
        """Score a single contextual memory"""

        semantic = self.semantic_score(query_embedding, record)
        recency = recency_score(record.updated_at, now, self.config.recency_half_life_days)
        importance = self.importance_fn(record)

        composite = (
            self.config.semantic_weight * semantic
            + self.config.recency_weight * recency
            + self.config.importance_weight * importance
        )

        return ScoredMemory(
            key=record.key,
            value=record.value,
            category=record.category,
            score=composite,
            semantic=semantic,
            recency=recency,
            importance=importance,
        )

    def score_all(
        self,
        query_embedding: Sequence[float],
        records: Sequence[MemoryRecord],
        now: datetime
    ) -> List[ScoredMemory]:
        """Score records, preserving their input order"""

        query: Optional[Sequence[float]] = query_embedding
        try:
            # Self-similarity is defined for any comparable vector
            cosine_similarity(query_embedding, query_embedding)
        except DataAnomaly as e:
            logger.warning("Unusable query embedding, using default semantic scores", reason=str(e))
            query = None

        return [self.score(query, record, now) for record in records]

    def rank(self, scored: Sequence[ScoredMemory]) -> List[ScoredMemory]:
        """Drop low scores, sort best first and cap the result size.

        sorted() is stable, so memories with equal scores keep store order.
        """

        kept = [m for m in scored if m.score >= self.config.min_similarity_score]
        ranked = sorted(kept, key=lambda m: m.score, reverse=True)
        return ranked[:self.config.max_contextual_results]
