#!/usr/bin/env python3
"""
Core chat logic: the session-scoped retrieval-augmented query pipeline.

One query runs strictly in order:

    validate -> read history -> append user turn -> retrieve -> build prompt
    -> generate -> append assistant turn -> return

The user turn is appended before retrieval so it survives a failed
generation; a retrieval or generation failure leaves no assistant turn
behind. Concurrent queries on the same session are not serialized: both
user turns are kept but their relative order is whatever Redis saw.
"""
from typing import Awaitable, Callable, List, Optional

from chat.prompt_assembler import PromptAssembler
from models.data_models import ChatTurn, QueryResult, RetrievedPassage
from models.errors import NewsChatError, ValidationError
from services.generative_client import GenerativeClient
from services.retrieval_engine import RetrievalEngine
from services.session_store import SessionStore
from utils.chat_utils import sources_from_passages
from utils.logging_config import setup_logging
from utils.metrics import QueryMetrics
from utils.text_utils import is_blank

log = setup_logging("query_orchestrator.log")

ChunkCallback = Callable[[str], Awaitable[None]]


def validate_request(session_id: Optional[str], query: Optional[str]) -> None:
    if is_blank(session_id) or is_blank(query):
        raise ValidationError("Missing sessionId or message")


class QueryOrchestrator:
    """Coordinates store, retrieval, prompt assembly and generation for one query."""

    def __init__(
        self,
        store: SessionStore,
        retriever: RetrievalEngine,
        generator: GenerativeClient,
        assembler: PromptAssembler = None,
    ):
        self.store = store
        self.retriever = retriever
        self.generator = generator
        self.assembler = assembler or PromptAssembler()

    async def _prepare(self, session_id: str, query: str, metrics: QueryMetrics):
        """Steps up to the prompt; returns (prompt, passages)."""
        with metrics.timer("history_read"):
            history = await self.store.read(session_id)
        metrics.add_counter("history_turns", len(history))

        with metrics.timer("user_append"):
            await self.store.append(session_id, ChatTurn.user(query))

        with metrics.timer("retrieval"):
            passages = await self.retriever.retrieve(query)
        metrics.add_counter("passages", len(passages))

        # History from before this question; the question itself goes in its own section
        prompt = self.assembler.build(history, passages, query)
        metrics.add_counter("prompt_chars", len(prompt))
        return prompt, passages

    async def _finish(self, session_id: str, text: str, passages: List[RetrievedPassage], metrics: QueryMetrics) -> QueryResult:
        sources = sources_from_passages(passages)
        with metrics.timer("assistant_append"):
            await self.store.append(session_id, ChatTurn.assistant(text, sources))
        return QueryResult(response=text, sources=sources)

    async def _run(self, session_id: str, query: str, generate, mode: str) -> QueryResult:
        validate_request(session_id, query)
        metrics = QueryMetrics(session_id=session_id, mode=mode)
        log.info(f"💬 [{session_id}] Processing query ({mode}): {query!r}")
        try:
            with metrics.timer("total"):
                prompt, passages = await self._prepare(session_id, query, metrics)
                with metrics.timer("generation"):
                    text = await generate(prompt)
                result = await self._finish(session_id, text, passages, metrics)
            metrics.add_field("status", "ok")
        except NewsChatError as e:
            metrics.add_field("status", type(e).__name__)
            log.error(f"❌ [{session_id}] Query failed: {type(e).__name__}: {e}")
            raise
        finally:
            metrics.emit(log)

        log.info(f"✅ [{session_id}] Answered with {len(result.sources)} sources")
        return result

    async def process_query(self, session_id: str, query: str) -> QueryResult:
        """Answer ``query`` in the context of ``session_id``."""
        return await self._run(session_id, query, self.generator.complete, "complete")

    async def stream_query(self, session_id: str, query: str, on_chunk: ChunkCallback) -> QueryResult:
        """
        Same pipeline, delivering completion chunks through ``on_chunk``.

        The assistant turn is appended once the stream has ended and holds the
        full accumulated text. A stream that fails part-way appends nothing.
        """

        async def generate(prompt: str) -> str:
            parts = []
            async for chunk in self.generator.stream(prompt):
                parts.append(chunk)
                await on_chunk(chunk)
            return "".join(parts).strip()

        return await self._run(session_id, query, generate, "stream")
