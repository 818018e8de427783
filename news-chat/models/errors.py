#!/usr/bin/env python3
"""
Exception hierarchy for the chat pipeline.

Adapters map these onto transport failures:
ValidationError -> 400, ProviderError -> 502, StoreError -> 503.
"""


class NewsChatError(Exception):
    """Base class for all service errors."""


class ValidationError(NewsChatError):
    """Request is missing a session id or message."""


class StoreError(NewsChatError):
    """Session store unreachable, timed out or returned corrupt data."""


class ProviderError(NewsChatError):
    """An external provider failed, timed out or returned a malformed response."""


class EmbeddingError(ProviderError):
    pass


class VectorIndexError(ProviderError):
    pass


class RetrievalError(ProviderError):
    """Embedding or similarity search failed while answering a query."""


class GenerationError(ProviderError):
    """The language model failed or produced an empty completion."""


class IngestionError(NewsChatError):
    """A single news source could not be fetched or parsed."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
