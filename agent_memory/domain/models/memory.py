from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, timezone
from enum import Enum


def utc_now() -> datetime:
    """Timezone-aware current time in UTC"""
    return datetime.now(timezone.utc)


class MemoryCategory(str, Enum):
    """Closed set of memory categories"""
    INSTRUCTION = "INSTRUCTION"
    PREFERENCE = "PREFERENCE"
    STYLE_CORRECTION = "STYLE_CORRECTION"
    GENERAL = "GENERAL"
    CONTEXT = "CONTEXT"
    HISTORY = "HISTORY"


class MemoryGroup(str, Enum):
    """Retrieval groups a category belongs to"""
    CORE = "core"
    CONTEXTUAL = "contextual"


class GroupFilter(str, Enum):
    """Group selector accepted by memory stores"""
    ALL = "all"
    CORE = "core"
    CONTEXTUAL = "contextual"


# Every category must appear exactly once; checked below at import time.
_CATEGORY_GROUPS: Dict[MemoryCategory, MemoryGroup] = {
    MemoryCategory.INSTRUCTION: MemoryGroup.CORE,
    MemoryCategory.PREFERENCE: MemoryGroup.CORE,
    MemoryCategory.STYLE_CORRECTION: MemoryGroup.CORE,
    MemoryCategory.GENERAL: MemoryGroup.CONTEXTUAL,
    MemoryCategory.CONTEXT: MemoryGroup.CONTEXTUAL,
    MemoryCategory.HISTORY: MemoryGroup.CONTEXTUAL,
}

_unmapped = set(MemoryCategory) - set(_CATEGORY_GROUPS)
if _unmapped:
    raise RuntimeError(
        f"Memory categories without a retrieval group: {sorted(c.value for c in _unmapped)}"
    )


def classify_category(category: MemoryCategory) -> MemoryGroup:
    """Map a category to CORE (always kept) or CONTEXTUAL (relevance-filtered)"""
    return _CATEGORY_GROUPS[MemoryCategory(category)]


def categories_in(group: GroupFilter) -> List[MemoryCategory]:
    """Categories selected by a store group filter, in declaration order"""
    if group == GroupFilter.ALL:
        return list(MemoryCategory)
    return [
        category for category, category_group in _CATEGORY_GROUPS.items()
        if category_group.value == GroupFilter(group).value
    ]


CORE_CATEGORIES = categories_in(GroupFilter.CORE)
CONTEXTUAL_CATEGORIES = categories_in(GroupFilter.CONTEXTUAL)


class MemoryRecord(BaseModel):
    """One durable fact about an agent, as read from a memory store"""
    model_config = ConfigDict(frozen=True)

    key: str = Field(description="Identity of the memory within an agent")
    value: str = Field(description="Content injected verbatim into the prompt")
    category: MemoryCategory = Field(default=MemoryCategory.GENERAL)
    embedding: Optional[List[float]] = Field(
        None, description="Embedding vector; None when not yet computed"
    )
    updated_at: datetime = Field(default_factory=utc_now)
    expires_at: Optional[datetime] = Field(None, description="Inactive once this time has passed")

    @field_validator("updated_at", "expires_at")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Naive timestamps are read as UTC"""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def group(self) -> MemoryGroup:
        return classify_category(self.category)

    def is_active(self, now: datetime) -> bool:
        """True while the record has not expired"""
        return self.expires_at is None or self.expires_at > now

    def to_retrieved(self) -> "RetrievedMemory":
        return RetrievedMemory(key=self.key, value=self.value, category=self.category)


class RetrievedMemory(BaseModel):
    """A memory selected for prompt injection"""
    model_config = ConfigDict(frozen=True)

    key: str
    value: str
    category: MemoryCategory


class ScoredMemory(BaseModel):
    """Contextual memory with its composite relevance score"""
    key: str
    value: str
    category: MemoryCategory
    score: float = Field(description="Weighted composite score")
    semantic: float = Field(description="Semantic sub-score")
    recency: float = Field(description="Recency sub-score")
    importance: float = Field(description="Importance sub-score")

    def to_retrieved(self) -> RetrievedMemory:
        return RetrievedMemory(key=self.key, value=self.value, category=self.category)


class RetrievalStrategy(str, Enum):
    """Which path produced a retrieval result"""
    BULK = "bulk"
    CORE_ONLY = "core_only"
    HYBRID = "hybrid"
    DEGRADED = "degraded"


class RetrievalResult(BaseModel):
    """Retrieved memories together with how they were selected"""
    memories: List[RetrievedMemory] = Field(default_factory=list)
    strategy: RetrievalStrategy
    active_count: int = Field(description="Active memories counted before selection")


class MemoryContext(BaseModel):
    """Memories assembled for one prompt, with the rendered prompt section"""
    agent_id: str = Field(description="Agent the memories belong to")
    query: str = Field(description="User message used as the semantic query")
    memories: List[RetrievedMemory] = Field(default_factory=list)
    strategy: RetrievalStrategy = Field(default=RetrievalStrategy.BULK)
    prompt_section: str = Field(default="", description="System prompt section listing the memories")
    built_at: datetime = Field(default_factory=utc_now)

    def get_context_summary(self) -> Dict[str, object]:
        """Get a summary of the assembled context"""
        return {
            "agent_id": self.agent_id,
            "strategy": self.strategy.value,
            "memory_count": len(self.memories),
            "core_count": sum(1 for m in self.memories if classify_category(m.category) == MemoryGroup.CORE),
            "built_at": self.built_at.isoformat(),
        }
