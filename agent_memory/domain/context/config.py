from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field
import os


EmbeddingFailurePolicy = Literal["raise", "core_only"]


class RetrievalConfig(BaseModel):
    """Tuning knobs for hybrid memory retrieval.

    The three weights are expected to sum to 1.0 so composite scores stay in
    [0, 1]. That is a convention for whoever builds the config; it is not
    checked here.
    """
    model_config = ConfigDict(frozen=True)

    bulk_threshold: int = Field(
        default=30, ge=0,
        description="Active memory count at or below which every memory is returned unscored"
    )
    max_contextual_results: int = Field(default=10, ge=0, description="Cap on contextual memories returned")
    min_similarity_score: float = Field(default=0.3, description="Composite score a contextual memory must reach")

    semantic_weight: float = Field(default=0.6)
    recency_weight: float = Field(default=0.3)
    importance_weight: float = Field(default=0.1)

    recency_half_life_days: float = Field(default=30.0, gt=0, description="Age at which recency decays to 0.5")
    default_semantic_score: float = Field(
        default=0.5, description="Semantic score for memories without a usable embedding"
    )
    default_importance: float = Field(default=0.5, description="Importance used until a per-record signal exists")

    embedding_failure_policy: EmbeddingFailurePolicy = Field(
        default="raise",
        description="'raise' surfaces embedding failures, 'core_only' falls back to core memories"
    )
    timeout_seconds: Optional[float] = Field(
        default=None, gt=0, description="Default deadline for one retrieval call"
    )

    @classmethod
    def from_env(cls, prefix: str = "MEMORY_") -> "RetrievalConfig":
        """Build a config from environment variables, e.g. MEMORY_BULK_THRESHOLD=50"""

        overrides = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw is not None and raw.strip() != "":
                overrides[name] = raw.strip()

        # pydantic coerces the strings to the declared field types
        return cls(**overrides)
