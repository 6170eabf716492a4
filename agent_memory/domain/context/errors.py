"""Errors raised by memory retrieval.

ValidationError and DependencyUnavailable reach the caller. DataAnomaly is
raised for a single unusable embedding and handled inside the scorer.
"""

from typing import Optional


class MemoryRetrievalError(Exception):
    """Base class for memory retrieval failures"""


class ValidationError(MemoryRetrievalError, ValueError):
    """Caller supplied an unusable argument (e.g. empty agent id)"""


class DependencyUnavailable(MemoryRetrievalError):
    """Memory store or embedding provider failed or timed out"""

    def __init__(self, dependency: str, message: str, agent_id: Optional[str] = None):
        self.dependency = dependency
        self.agent_id = agent_id
        super().__init__(f"{dependency} unavailable: {message}")


class DataAnomaly(MemoryRetrievalError, ValueError):
    """A stored embedding cannot be compared with the query embedding"""
