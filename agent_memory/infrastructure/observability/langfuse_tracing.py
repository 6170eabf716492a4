# Langfuse integration
from typing import Any, Callable, Dict, Optional, TypeVar
import functools
import os

import structlog
from langfuse import get_client, observe

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def tracing_enabled() -> bool:
    """Langfuse tracing is on only when credentials are configured"""
    return bool(os.getenv("LANGFUSE_PUBLIC_KEY") and os.getenv("LANGFUSE_SECRET_KEY"))


def traced(name: str) -> Callable[[F], F]:
    """Trace the decorated coroutine function as a langfuse observation.

    Tracing is decided per call, so credentials set after import still apply.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if not tracing_enabled():
                return await func(*args, **kwargs)
            return await observe(name=name)(func)(*args, **kwargs)

        return wrapper

    return decorator


def annotate_retrieval(agent_id: str, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Attach retrieval metadata to the current langfuse span"""

    if not tracing_enabled():
        return

    try:
        get_client().update_current_span(
            metadata={"agent_id": agent_id, **(metadata or {})}
        )
    except Exception as e:
        # Tracing must never break retrieval
        logger.warning("Failed to annotate langfuse span", error=str(e))
