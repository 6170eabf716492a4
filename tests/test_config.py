"""Tests for retrieval configuration."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from agent_memory.domain.context.config import RetrievalConfig


class TestRetrievalConfigDefaults:
    def test_defaults(self):
        config = RetrievalConfig()
        assert config.bulk_threshold == 30
        assert config.max_contextual_results == 10
        assert config.min_similarity_score == 0.3
        assert (config.semantic_weight, config.recency_weight, config.importance_weight) == (0.6, 0.3, 0.1)
        assert config.recency_half_life_days == 30.0
        assert config.default_semantic_score == 0.5
        assert config.default_importance == 0.5
        assert config.embedding_failure_policy == "raise"
        assert config.timeout_seconds is None

    def test_frozen(self):
        config = RetrievalConfig()
        with pytest.raises(PydanticValidationError):
            config.bulk_threshold = 5

    def test_weights_need_not_sum_to_one(self):
        config = RetrievalConfig(semantic_weight=1.0, recency_weight=1.0, importance_weight=1.0)
        assert config.semantic_weight + config.recency_weight + config.importance_weight == 3.0

    def test_rejects_non_positive_half_life(self):
        with pytest.raises(PydanticValidationError):
            RetrievalConfig(recency_half_life_days=0)

    def test_rejects_unknown_failure_policy(self):
        with pytest.raises(PydanticValidationError):
            RetrievalConfig(embedding_failure_policy="ignore")


class TestRetrievalConfigFromEnv:
    def test_reads_overrides(self, monkeypatch):
        monkeypatch.setenv("MEMORY_BULK_THRESHOLD", "50")
        monkeypatch.setenv("MEMORY_SEMANTIC_WEIGHT", "0.7")
        monkeypatch.setenv("MEMORY_EMBEDDING_FAILURE_POLICY", "core_only")

        config = RetrievalConfig.from_env()

        assert config.bulk_threshold == 50
        assert config.semantic_weight == 0.7
        assert config.embedding_failure_policy == "core_only"
        assert config.max_contextual_results == 10

    def test_blank_values_ignored(self, monkeypatch):
        monkeypatch.setenv("MEMORY_TIMEOUT_SECONDS", "  ")
        assert RetrievalConfig.from_env().timeout_seconds is None

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("AGENT_MAX_CONTEXTUAL_RESULTS", "3")
        assert RetrievalConfig.from_env(prefix="AGENT_").max_contextual_results == 3
