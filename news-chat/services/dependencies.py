#!/usr/bin/env python3
"""
Dependencies for FastAPI services.

Every provider client is built once per process and shared by all requests
and socket connections. Tests replace them through ``app.dependency_overrides``.
"""
from functools import lru_cache

from chat.prompt_assembler import PromptAssembler
from chat.query_orchestrator import QueryOrchestrator
from services.embedding_client import EmbeddingClient, create_embedding_client
from services.generative_client import GenerativeClient, create_generative_client
from services.ingestion_service import IngestionService
from services.retrieval_engine import RetrievalEngine
from services.session_store import SessionStore, get_redis_client
from services.vector_index import VectorIndex, get_qdrant_client


class DependenciesService:
    """Dependencies for FastAPI services as static methods."""

    @staticmethod
    @lru_cache()
    def get_session_store() -> SessionStore:
        return SessionStore(get_redis_client())

    @staticmethod
    @lru_cache()
    def get_embedding_client() -> EmbeddingClient:
        return create_embedding_client()

    @staticmethod
    @lru_cache()
    def get_vector_index() -> VectorIndex:
        return VectorIndex(get_qdrant_client())

    @staticmethod
    @lru_cache()
    def get_generative_client() -> GenerativeClient:
        return create_generative_client()

    @staticmethod
    @lru_cache()
    def get_retrieval_engine() -> RetrievalEngine:
        return RetrievalEngine(DependenciesService.get_embedding_client(), DependenciesService.get_vector_index())

    @staticmethod
    @lru_cache()
    def get_orchestrator() -> QueryOrchestrator:
        """Get the shared query pipeline."""
        return QueryOrchestrator(
            store=DependenciesService.get_session_store(),
            retriever=DependenciesService.get_retrieval_engine(),
            generator=DependenciesService.get_generative_client(),
            assembler=PromptAssembler(),
        )

    @staticmethod
    @lru_cache()
    def get_ingestion_service() -> IngestionService:
        return IngestionService(DependenciesService.get_embedding_client(), DependenciesService.get_vector_index())


# Expose static methods as module-level functions after class definition
get_session_store = DependenciesService.get_session_store
get_vector_index = DependenciesService.get_vector_index
get_generative_client = DependenciesService.get_generative_client
get_embedding_client = DependenciesService.get_embedding_client
get_orchestrator = DependenciesService.get_orchestrator
get_ingestion_service = DependenciesService.get_ingestion_service
