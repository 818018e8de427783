#!/usr/bin/env python3
"""
Query-time retrieval: embed the question, search the index, map payloads.
"""
from typing import List

from config.settings import RETRIEVER_TOP_K
from models.data_models import RetrievedPassage, SearchHit
from models.errors import ProviderError, RetrievalError
from services.embedding_client import EmbeddingClient
from services.vector_index import VectorIndex
from utils.logging_config import setup_logging

log = setup_logging("retrieval_engine.log")


def to_passage(hit: SearchHit) -> RetrievedPassage:
    payload = hit.payload
    return RetrievedPassage(
        score=hit.score,
        title=payload.get("title", ""),
        content=payload.get("content", ""),
        url=payload.get("url", ""),
        publish_date=payload.get("publishDate", ""),
    )


class RetrievalEngine:
    """Top-K passage retrieval over the article index."""

    def __init__(self, embedder: EmbeddingClient, index: VectorIndex, top_k: int = RETRIEVER_TOP_K):
        self.embedder = embedder
        self.index = index
        self.top_k = top_k

    async def retrieve(self, query: str) -> List[RetrievedPassage]:
        """
        Return at most ``top_k`` passages, highest score first.

        An empty index gives an empty list. Provider failures raise
        RetrievalError; they are never turned into an empty result.
        """
        try:
            vector = await self.embedder.embed(query)
            hits = await self.index.search(vector, limit=self.top_k)
        except ProviderError as e:
            log.error(f"💥 Retrieval failed: {e}")
            raise RetrievalError(str(e)) from e

        passages = [to_passage(hit) for hit in hits[: self.top_k]]
        # The index already orders by score; keep that order stable on ties
        passages.sort(key=lambda p: p.score, reverse=True)
        log.debug(f"🔎 Retrieved {len(passages)} passages (top score: {passages[0].score if passages else 'n/a'})")
        return passages
