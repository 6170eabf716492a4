from typing import Optional
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from agent_memory.domain.context.config import RetrievalConfig
from agent_memory.domain.context.context_manager import ContextManager
from agent_memory.domain.context.errors import DependencyUnavailable, ValidationError
from agent_memory.domain.context.memory.embedding_provider import EmbeddingProvider, HashEmbeddingProvider
from agent_memory.domain.context.memory.memory_store import InMemoryMemoryStore, MemoryStore
from agent_memory.domain.context.memory_retriever import MemoryRetriever
from agent_memory.infrastructure.observability.logging import metrics, setup_logging
from .route.memory import router as memory_router

logger = structlog.get_logger(__name__)


def create_app(
    store: Optional[MemoryStore] = None,
    embedding_provider: Optional[EmbeddingProvider] = None,
    config: Optional[RetrievalConfig] = None,
    configure_logging: bool = True
) -> FastAPI:
    """Build the memory retrieval API.

    Without arguments the app runs on an in-process store and hash embeddings,
    which is only useful for local development.
    """

    if configure_logging:
        setup_logging(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )

    retriever = MemoryRetriever(
        store=store or InMemoryMemoryStore(),
        embedding_provider=embedding_provider or HashEmbeddingProvider(),
        config=config or RetrievalConfig.from_env(),
    )

    app = FastAPI(title="Agent Memory Retrieval")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.context_manager = ContextManager(retriever)
    app.include_router(memory_router)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"error": "validation_error", "detail": str(exc)})

    @app.exception_handler(DependencyUnavailable)
    async def dependency_error_handler(request: Request, exc: DependencyUnavailable):
        logger.error("Memory dependency unavailable", dependency=exc.dependency, agent_id=exc.agent_id)
        return JSONResponse(
            status_code=503,
            content={"error": "dependency_unavailable", "dependency": exc.dependency, "detail": str(exc)}
        )

    @app.get("/health")
    async def health():
        return {"status": "ok", "metrics": metrics.get_metrics_summary()}

    logger.info("Memory retrieval API created", bulk_threshold=retriever.config.bulk_threshold)

    return app
