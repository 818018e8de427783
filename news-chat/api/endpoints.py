"""
API endpoints for sessions, chat, ingestion, health and status using FastAPI.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException

from chat.query_orchestrator import QueryOrchestrator
from models.errors import NewsChatError, ProviderError, StoreError, ValidationError
from models.query import (
    ChatRequest,
    ChatResponse,
    ClearResponse,
    HealthResponse,
    HistoryResponse,
    IngestResponse,
    SessionResponse,
    StatusResponse,
)
from services.dependencies import get_embedding_client, get_generative_client, get_ingestion_service, get_orchestrator, get_session_store, get_vector_index
from services.embedding_client import EmbeddingClient
from services.generative_client import GenerativeClient
from services.ingestion_service import IngestionService
from services.session_store import SessionStore
from services.vector_index import VectorIndex
from utils.logging_config import setup_logging

log = setup_logging("api_endpoints.log")

router = APIRouter(prefix="/api", tags=["chat"])
health_router = APIRouter(tags=["health"])


def to_http_error(error: NewsChatError, message: str) -> HTTPException:
    """Map a pipeline error to a status code without leaking provider details."""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, StoreError):
        return HTTPException(status_code=503, detail=message)
    if isinstance(error, ProviderError):
        return HTTPException(status_code=502, detail=message)
    return HTTPException(status_code=500, detail=message)


@health_router.get("/health", response_model=HealthResponse)
def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", timestamp=datetime.now(timezone.utc).isoformat())


@router.get("/status", response_model=StatusResponse)
async def get_status(
        index: VectorIndex = Depends(get_vector_index),
        embedder: EmbeddingClient = Depends(get_embedding_client),
        generator: GenerativeClient = Depends(get_generative_client),
):
    """Get system status and collection information."""
    try:
        count = await index.count()
    except ProviderError as e:
        log.error(f"Status check failed: {e}")
        raise to_http_error(e, "Failed to get status")
    return StatusResponse(
        status="operational",
        collection_count=count,
        model_info={"embeddings": embedder.describe(), "llm": generator.describe()},
    )


@router.post("/sessions", response_model=SessionResponse)
def create_session(store: SessionStore = Depends(get_session_store)):
    """Mint a new session id."""
    session_id = store.create_session()
    log.info(f"🆕 Created session {session_id}")
    return {"sessionId": session_id}


@router.get("/sessions/{session_id}/history", response_model=HistoryResponse, response_model_exclude_none=True)
async def get_history(session_id: str, store: SessionStore = Depends(get_session_store)):
    """Full ordered history; empty for unknown or expired sessions."""
    try:
        history = await store.read(session_id)
    except StoreError as e:
        raise to_http_error(e, "Failed to get session history")
    return {"history": [turn.to_dict() for turn in history]}


@router.delete("/sessions/{session_id}", response_model=ClearResponse)
async def clear_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    try:
        success = await store.clear(session_id)
    except StoreError as e:
        raise to_http_error(e, "Failed to clear session")
    log.info(f"🧹 Cleared session {session_id}: {success}")
    return ClearResponse(success=success)


@router.post("/chat", response_model=ChatResponse)
async def chat_handler(req: ChatRequest, orchestrator: QueryOrchestrator = Depends(get_orchestrator)):
    """Process a message and return a response with its sources."""
    try:
        result = await orchestrator.process_query(req.session_id, req.message)
    except NewsChatError as e:
        log.error(f"Query processing failed: {e}", exc_info=not isinstance(e, ValidationError))
        raise to_http_error(e, "Failed to process query")
    return result.to_dict()


@router.post("/ingest", response_model=IngestResponse)
async def ingest_handler(service: IngestionService = Depends(get_ingestion_service)):
    """Fetch the configured feeds and upsert their articles."""
    try:
        await service.prepare_index()
        result = await service.ingest()
    except NewsChatError as e:
        log.error(f"Ingestion failed: {e}", exc_info=True)
        raise to_http_error(e, "Failed to ingest articles")
    return IngestResponse(count=result.count, message=f"Successfully ingested {result.count} articles")
