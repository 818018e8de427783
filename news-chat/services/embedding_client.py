#!/usr/bin/env python3
"""
Embedding providers.

Both clients turn text into fixed-length vectors of ``dim`` floats and report
any failure (transport, timeout, wrong dimension) as an EmbeddingError.
"""
import asyncio
from typing import List, Optional

import httpx
from langchain_core.embeddings import Embeddings

from config.settings import (
    EMBEDDING_DEVICE,
    EMBEDDING_DIM,
    EMBEDDING_MODEL_PATH,
    EMBEDDING_PROVIDER,
    EMBEDDING_TIMEOUT,
    JINA_API_KEY,
    JINA_API_URL,
    JINA_MODEL,
)
from models.errors import EmbeddingError
from utils.logging_config import setup_logging

log = setup_logging("embedding_client.log")


class EmbeddingClient:
    """Base class: timeout and dimension checks around a provider call."""

    provider = "base"

    def __init__(self, dim: int = EMBEDDING_DIM, timeout: float = EMBEDDING_TIMEOUT):
        self.dim = dim
        self.timeout = timeout

    async def _embed_query(self, text: str) -> List[float]:
        raise NotImplementedError()

    async def _embed_documents(self, texts: List[str]) -> List[List[float]]:
        raise NotImplementedError()

    async def _guard(self, coro):
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise EmbeddingError(f"{self.provider} embedding timed out after {self.timeout}s") from e
        except EmbeddingError:
            raise
        except Exception as e:
            raise EmbeddingError(f"{self.provider} embedding failed: {e}") from e

    def _check(self, vector) -> List[float]:
        if not vector or len(vector) != self.dim:
            got = len(vector) if vector else 0
            raise EmbeddingError(f"{self.provider} returned a {got}-d vector, expected {self.dim}")
        return [float(v) for v in vector]

    async def embed(self, text: str) -> List[float]:
        """Embed a search query."""
        vector = await self._guard(self._embed_query(text))
        return self._check(vector)

    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        """Embed passages for indexing, preserving input order."""
        if not texts:
            return []
        vectors = await self._guard(self._embed_documents(texts))
        if len(vectors) != len(texts):
            raise EmbeddingError(f"{self.provider} returned {len(vectors)} vectors for {len(texts)} texts")
        return [self._check(v) for v in vectors]

    def describe(self) -> dict:
        return {"provider": self.provider, "dim": self.dim}


class LangchainEmbeddingClient(EmbeddingClient):
    """
    Wraps any langchain ``Embeddings`` (a local HuggingFace model by default).

    E5-family models expect "query: " / "passage: " prefixes; pass them in
    when the model needs them.
    """

    provider = "huggingface"

    def __init__(self, embeddings: Embeddings, query_prefix: str = "", passage_prefix: str = "", **kwargs):
        super().__init__(**kwargs)
        self.embeddings = embeddings
        self.query_prefix = query_prefix
        self.passage_prefix = passage_prefix

    async def _embed_query(self, text: str) -> List[float]:
        return await self.embeddings.aembed_query(f"{self.query_prefix}{text}")

    async def _embed_documents(self, texts: List[str]) -> List[List[float]]:
        return await self.embeddings.aembed_documents([f"{self.passage_prefix}{t}" for t in texts])


class JinaEmbeddingClient(EmbeddingClient):
    """Calls the Jina embeddings HTTP API."""

    provider = "jina"

    def __init__(
        self,
        api_key: str = JINA_API_KEY,
        model: str = JINA_MODEL,
        url: str = JINA_API_URL,
        http_client: Optional[httpx.AsyncClient] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.model = model
        self.url = url
        self.http = http_client or httpx.AsyncClient()
        self.headers = {"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"}

    async def _post(self, texts: List[str], task: str) -> List[List[float]]:
        body = {"model": self.model, "input": texts}
        if "v3" in self.model:
            body["task"] = task
            body["dimensions"] = self.dim
        response = await self.http.post(self.url, json=body, headers=self.headers, timeout=self.timeout)
        if response.status_code // 100 != 2:
            raise EmbeddingError(f"jina responded {response.status_code}")
        try:
            data = sorted(response.json()["data"], key=lambda d: d.get("index", 0))
            return [item["embedding"] for item in data]
        except (ValueError, KeyError, TypeError) as e:
            raise EmbeddingError(f"Malformed jina response: {e}") from e

    async def _embed_query(self, text: str) -> List[float]:
        return (await self._post([text], "retrieval.query"))[0]

    async def _embed_documents(self, texts: List[str]) -> List[List[float]]:
        return await self._post(texts, "retrieval.passage")

    def describe(self) -> dict:
        return {**super().describe(), "model": self.model}

    async def close(self) -> None:
        await self.http.aclose()


def create_embedding_client() -> EmbeddingClient:
    """Build the configured embedding client."""
    if EMBEDDING_PROVIDER == "jina":
        log.info(f"Embeddings: jina ({JINA_MODEL}, dim={EMBEDDING_DIM})")
        return JinaEmbeddingClient()

    # Loading the model pulls in torch; keep it out of import time
    from langchain_huggingface import HuggingFaceEmbeddings

    log.info(f"Embeddings: huggingface ({EMBEDDING_MODEL_PATH} on {EMBEDDING_DEVICE}, dim={EMBEDDING_DIM})")
    embeddings = HuggingFaceEmbeddings(
        model_name=EMBEDDING_MODEL_PATH,
        model_kwargs={"device": EMBEDDING_DEVICE, "trust_remote_code": True},
        encode_kwargs={"normalize_embeddings": True},
    )
    is_e5 = "e5" in EMBEDDING_MODEL_PATH.lower()
    return LangchainEmbeddingClient(
        embeddings,
        query_prefix="query: " if is_e5 else "",
        passage_prefix="passage: " if is_e5 else "",
    )
