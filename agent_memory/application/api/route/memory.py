from typing import Any, Dict, List
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
import structlog

from agent_memory.domain.context.context_manager import ContextManager
from agent_memory.domain.models.memory import RetrievedMemory, RetrievalStrategy

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1/agents", tags=["memories"])


class RetrieveRequest(BaseModel):
    """Body of a memory retrieval request"""
    message: str = Field(default="", description="Current user message, used as the semantic query")


class RetrieveResponse(BaseModel):
    agent_id: str
    memories: List[RetrievedMemory] = Field(default_factory=list)
    strategy: RetrievalStrategy
    prompt_section: str = ""


def get_context_manager(request: Request) -> ContextManager:
    return request.app.state.context_manager


@router.post("/{agent_id}/memories/retrieve", response_model=RetrieveResponse)
async def retrieve_memories(
    agent_id: str,
    body: RetrieveRequest,
    context_manager: ContextManager = Depends(get_context_manager)
) -> RetrieveResponse:
    """Memories to inject into the prompt for this turn"""

    context = await context_manager.build_memory_context(agent_id, body.message)

    return RetrieveResponse(
        agent_id=context.agent_id,
        memories=context.memories,
        strategy=context.strategy,
        prompt_section=context.prompt_section,
    )


@router.get("/{agent_id}/memories/context")
async def get_memory_context_summary(
    agent_id: str,
    context_manager: ContextManager = Depends(get_context_manager)
) -> Dict[str, Any]:
    """Summary of the last memory context built for the agent"""
    return await context_manager.get_context_summary(agent_id)
