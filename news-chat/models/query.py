#!/usr/bin/env python3
"""
Request and response models for the API endpoints.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SourceModel(BaseModel):
    title: str
    url: str


class ChatTurnModel(BaseModel):
    role: str
    content: str
    timestamp: int
    sources: Optional[List[SourceModel]] = None


class ChatRequest(BaseModel):
    """Request model for sending a chat message.

    Both fields are optional at the schema level so that missing values are
    rejected by the pipeline's own validation with a 400.
    """
    model_config = ConfigDict(populate_by_name=True)

    session_id: Optional[str] = Field(default=None, alias="sessionId")
    message: Optional[str] = None


class ChatResponse(BaseModel):
    """Response model for an answered chat message."""
    response: str
    sources: List[SourceModel]


class SessionResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")


class HistoryResponse(BaseModel):
    history: List[ChatTurnModel]


class ClearResponse(BaseModel):
    success: bool


class IngestResponse(BaseModel):
    count: int
    message: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str


class StatusResponse(BaseModel):
    status: str
    collection_count: int
    model_info: Dict[str, Any]
