#!/usr/bin/env python3
"""
Ingestion of news feeds into the vector index.

A source that cannot be fetched or parsed is logged and skipped; the other
sources are still ingested. Embedding and upsert failures are not per-source
and propagate as ProviderError.
"""
from typing import List, Optional

import httpx
from more_itertools import chunked

from config.settings import FEED_TIMEOUT, INGEST_BATCH_SIZE, INGEST_SAMPLE_FALLBACK, MAX_ARTICLES, NEWS_FEEDS
from models.data_models import Article, IndexPoint, IngestionResult
from models.errors import IngestionError
from processors.feed_processor import fetch_feed, sample_articles
from services.embedding_client import EmbeddingClient
from services.vector_index import VectorIndex
from utils.logging_config import setup_logging
from utils.metrics import IngestMetrics

log = setup_logging("ingestion_service.log")


class IngestionService:
    """Fetches feeds, embeds articles and upserts them by id."""

    def __init__(
        self,
        embedder: EmbeddingClient,
        index: VectorIndex,
        sources: Optional[List[str]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        max_articles: int = MAX_ARTICLES,
        batch_size: int = INGEST_BATCH_SIZE,
        sample_fallback: bool = INGEST_SAMPLE_FALLBACK,
    ):
        self.embedder = embedder
        self.index = index
        self.sources = list(NEWS_FEEDS if sources is None else sources)
        self.http_client = http_client
        self.max_articles = max_articles
        self.batch_size = batch_size
        self.sample_fallback = sample_fallback

    async def collect_articles(self, metrics: IngestMetrics) -> List[Article]:
        """Fetch every source, isolating failures, and cap the total."""
        articles: List[Article] = []
        client = self.http_client or httpx.AsyncClient(timeout=FEED_TIMEOUT)
        try:
            for source in self.sources:
                try:
                    fetched = await fetch_feed(client, source)
                except IngestionError as e:
                    log.error(f"❌ Failed to fetch {source}: {e}")
                    metrics.add_source(source, 0, success=False)
                    continue
                log.info(f"📰 {source}: {len(fetched)} articles")
                metrics.add_source(source, len(fetched))
                articles.extend(fetched)
        finally:
            if self.http_client is None:
                await client.aclose()

        # Same story in two feeds keeps one point
        unique = {}
        for article in articles:
            unique.setdefault(article.id, article)
        return list(unique.values())[: self.max_articles]

    async def upsert_articles(self, articles: List[Article]) -> int:
        count = 0
        for batch in chunked(articles, self.batch_size):
            vectors = await self.embedder.embed_documents([a.embedding_text() for a in batch])
            points = [IndexPoint(id=a.id, vector=v, payload=a.payload()) for a, v in zip(batch, vectors)]
            await self.index.upsert(points)
            count += len(points)
            log.info(f"📥 Upserted batch of {len(points)} articles ({count}/{len(articles)})")
        return count

    async def ingest(self) -> IngestionResult:
        """Run one ingestion pass; safe to re-run."""
        log.info("🚀 Starting article ingestion...")
        metrics = IngestMetrics(source_count=len(self.sources))

        with metrics.timer("fetch"):
            articles = await self.collect_articles(metrics)

        used_sample = False
        if not articles and self.sample_fallback:
            log.warning("⚠️ No articles found, using sample data...")
            articles = sample_articles()
            used_sample = True

        with metrics.timer("upsert"):
            count = await self.upsert_articles(articles)

        metrics.add_counter("articles", count)
        metrics.add_field("used_sample", used_sample)
        metrics.emit(log)

        sources = metrics.metrics.get("sources", [])
        result = IngestionResult(
            count=count,
            sources_ok=[s["source"] for s in sources if s["success"]],
            sources_failed=[s["source"] for s in sources if not s["success"]],
            used_sample=used_sample,
        )
        log.info(f"✅ Successfully ingested {count} articles")
        return result

    async def prepare_index(self) -> None:
        """Create the collection if missing; safe when it already exists."""
        await self.index.ensure_collection(self.index.collection, self.embedder.dim, "cosine")
