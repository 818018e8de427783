#!/usr/bin/env python3
"""
Vector index service backed by Qdrant.
"""
import asyncio
import uuid
from typing import List

from qdrant_client import AsyncQdrantClient
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse
from qdrant_client.models import Distance, PointStruct, VectorParams

from config.settings import VECTOR_DB_API_KEY, VECTOR_DB_COLLECTION, VECTOR_DB_HOST, VECTOR_DB_PORT, VECTOR_DB_TIMEOUT, VECTOR_DB_URL
from models.data_models import IndexPoint, SearchHit
from models.errors import VectorIndexError
from utils.logging_config import setup_logging

log = setup_logging("vector_index.log")

# Qdrant only accepts UUIDs or unsigned ints as point ids
ID_NAMESPACE = uuid.UUID("6ba7b810-9dad-11d1-80b4-00c04fd430c8")

METRICS = {
    "cosine": Distance.COSINE,
    "dot": Distance.DOT,
    "euclid": Distance.EUCLID,
}


def to_point_id(id_: str) -> str:
    """Keep valid UUIDs as-is, map anything else to a stable uuid5."""
    try:
        return str(uuid.UUID(str(id_)))
    except ValueError:
        return str(uuid.uuid5(ID_NAMESPACE, str(id_)))


class VectorIndex:
    """Upsert-by-id and top-K similarity search over one Qdrant collection."""

    def __init__(self, client: AsyncQdrantClient, collection: str = VECTOR_DB_COLLECTION, timeout: float = VECTOR_DB_TIMEOUT):
        self.client = client
        self.collection = collection
        self.timeout = timeout

    async def _call(self, op: str, coro):
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise VectorIndexError(f"Qdrant {op} timed out after {self.timeout}s") from e
        except (UnexpectedResponse, ResponseHandlingException) as e:
            raise VectorIndexError(f"Qdrant {op} failed: {e}") from e
        except VectorIndexError:
            raise
        except Exception as e:
            # Transport errors surface as httpx/grpc exceptions depending on the client mode
            raise VectorIndexError(f"Qdrant {op} failed: {e}") from e

    async def ensure_collection(self, name: str = None, dim: int = 1024, metric: str = "cosine") -> bool:
        """
        Create the collection if it is missing.

        Returns True when a collection was created, False when it already
        existed. Losing a creation race to another process counts as existing.
        """
        name = name or self.collection
        if await self._call("collection_exists", self.client.collection_exists(name)):
            log.info(f"✅ Qdrant collection '{name}' already exists")
            return False

        log.info(f"🆕 Creating Qdrant collection '{name}' (dim={dim}, metric={metric})")
        try:
            await asyncio.wait_for(
                self.client.create_collection(
                    collection_name=name,
                    vectors_config=VectorParams(size=dim, distance=METRICS[metric]),
                ),
                timeout=self.timeout,
            )
        except UnexpectedResponse as e:
            if e.status_code == 409:
                log.info(f"Collection '{name}' was created concurrently")
                return False
            raise VectorIndexError(f"Qdrant create_collection failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise VectorIndexError(f"Qdrant create_collection timed out after {self.timeout}s") from e
        except Exception as e:
            raise VectorIndexError(f"Qdrant create_collection failed: {e}") from e
        return True

    async def upsert(self, points: List[IndexPoint]) -> None:
        """Insert or overwrite points by id; waits until Qdrant has applied them."""
        if not points:
            return
        structs = [PointStruct(id=to_point_id(p.id), vector=p.vector, payload=p.payload) for p in points]
        await self._call("upsert", self.client.upsert(collection_name=self.collection, points=structs, wait=True))
        log.debug(f"📥 Upserted {len(structs)} points into '{self.collection}'")

    async def search(self, vector: List[float], limit: int) -> List[SearchHit]:
        """Nearest neighbours by descending score, payload included, vectors omitted."""
        result = await self._call(
            "search",
            self.client.query_points(
                collection_name=self.collection,
                query=vector,
                limit=limit,
                with_payload=True,
                with_vectors=False,
            ),
        )
        return [SearchHit(id=str(p.id), score=float(p.score), payload=p.payload or {}) for p in result.points]

    async def count(self) -> int:
        result = await self._call("count", self.client.count(collection_name=self.collection, exact=True))
        return result.count

    async def close(self) -> None:
        await self.client.close()


def get_qdrant_client() -> AsyncQdrantClient:
    if VECTOR_DB_URL:
        return AsyncQdrantClient(url=VECTOR_DB_URL, api_key=VECTOR_DB_API_KEY, timeout=int(VECTOR_DB_TIMEOUT))
    return AsyncQdrantClient(host=VECTOR_DB_HOST, port=VECTOR_DB_PORT, api_key=VECTOR_DB_API_KEY, timeout=int(VECTOR_DB_TIMEOUT))
