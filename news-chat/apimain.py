#!/usr/bin/env python3
# apimain.py
# To run this app, use: uvicorn apimain:app --reload

import os
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Ensure package imports work when running this file directly
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config.settings import APP_HOST, APP_PORT, FRONTEND_URL, INGEST_ON_STARTUP, INGEST_STARTUP_DELAY  # noqa: E402
from utils.logging_config import setup_logging  # noqa: E402

log = setup_logging("apimain.log")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared clients once, then start background ingestion."""
    from models.errors import NewsChatError
    from services.dependencies import get_ingestion_service, get_orchestrator, get_session_store, get_vector_index
    from workers.ingest_worker import cancel_task, schedule_startup_ingestion

    get_orchestrator()
    store = get_session_store()
    if not await store.ping():
        log.warning("⚠️ Redis is not reachable yet; session calls will fail until it is")

    ingestion = get_ingestion_service()
    try:
        await ingestion.prepare_index()
    except NewsChatError as e:
        log.error(f"💥 Error initializing vector store: {e}")

    task = None
    if INGEST_ON_STARTUP:
        task = schedule_startup_ingestion(ingestion, INGEST_STARTUP_DELAY)
    app.state.ingest_task = task

    yield

    await cancel_task(task)
    await store.close()
    await get_vector_index().close()


def create_app(with_lifespan: bool = True) -> FastAPI:
    # Import routers lazily to keep module-level imports at the top
    from api.endpoints import health_router, router as api_router
    from api.events import router as events_router

    app = FastAPI(
        title="News Chat API",
        description="Chat with recent news using RAG (Retrieval-Augmented Generation)",
        version="1.0.0",
        lifespan=lifespan if with_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(api_router)
    app.include_router(events_router)

    @app.get("/")
    def root():
        return {"message": "News Chat API is running. POST /api/chat or connect to /ws to chat."}

    return app


app = create_app()


def main() -> None:
    uvicorn.run(app, host=APP_HOST, port=APP_PORT)


if __name__ == "__main__":
    main()
