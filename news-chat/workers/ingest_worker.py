#!/usr/bin/env python3
"""
Background ingestion worker.

At startup the API schedules one ingestion pass as an asyncio task so the
query path is ready immediately; errors stay inside the task.
"""
import asyncio
from typing import Optional

from models.data_models import IngestionResult
from services.ingestion_service import IngestionService
from utils.logging_config import setup_logging

log = setup_logging("ingest_worker.log")


async def startup_ingestion(service: IngestionService, delay: float = 0.0) -> Optional[IngestionResult]:
    """Wait ``delay`` seconds, then ingest once. Never raises except on cancellation."""
    if delay > 0:
        await asyncio.sleep(delay)
    log.info("🕒 Initializing articles...")
    try:
        await service.prepare_index()
        result = await service.ingest()
    except asyncio.CancelledError:
        log.info("👋 Startup ingestion cancelled")
        raise
    except Exception as e:
        log.error(f"💥 Failed to initialize articles: {e}", exc_info=True)
        return None
    log.info(f"✅ Articles initialized successfully ({result.count} articles)")
    return result


def schedule_startup_ingestion(service: IngestionService, delay: float) -> asyncio.Task:
    return asyncio.create_task(startup_ingestion(service, delay), name="startup-ingestion")


async def cancel_task(task: Optional[asyncio.Task]) -> None:
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


async def run_once(service: IngestionService) -> IngestionResult:
    """One foreground pass for the command line; failures propagate."""
    await service.prepare_index()
    return await service.ingest()
