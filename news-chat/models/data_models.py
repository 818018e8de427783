#!/usr/bin/env python3
"""
Data models for the news chat pipeline.
"""
import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

USER = "user"
ASSISTANT = "assistant"
ROLES = (USER, ASSISTANT)


def now_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Source:
    """Citation attached to an assistant turn."""
    title: str
    url: str

    def to_dict(self) -> Dict[str, str]:
        return {"title": self.title, "url": self.url}


@dataclass(frozen=True)
class ChatTurn:
    """One message in a session log. Sources are only kept on assistant turns."""
    role: str
    content: str
    timestamp: int = field(default_factory=now_millis)
    sources: Optional[List[Source]] = None

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValueError(f"Unknown chat role: {self.role}")
        if self.role == USER and self.sources is not None:
            raise ValueError("User turns do not carry sources")

    @classmethod
    def user(cls, content: str) -> "ChatTurn":
        return cls(role=USER, content=content)

    @classmethod
    def assistant(cls, content: str, sources: List[Source]) -> "ChatTurn":
        return cls(role=ASSISTANT, content=content, sources=list(sources))

    def to_dict(self) -> Dict[str, Any]:
        data = {"role": self.role, "content": self.content, "timestamp": self.timestamp}
        if self.sources is not None:
            data["sources"] = [s.to_dict() for s in self.sources]
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatTurn":
        if not isinstance(data, dict):
            raise ValueError(f"Chat turn must be a JSON object, got {type(data).__name__}")
        sources = data.get("sources")
        if sources is not None:
            sources = [Source(title=s.get("title", ""), url=s.get("url", "")) for s in sources]
        return cls(
            role=data["role"],
            content=data["content"],
            timestamp=int(data.get("timestamp", 0)),
            sources=sources,
        )

    @classmethod
    def from_json(cls, raw: str) -> "ChatTurn":
        return cls.from_dict(json.loads(raw))


@dataclass
class Article:
    """A news article as produced by feed parsing, before embedding."""
    id: str
    title: str
    content: str
    url: str
    publish_date: str
    source: str

    def embedding_text(self) -> str:
        return f"{self.title}\n\n{self.content}"

    def payload(self) -> Dict[str, str]:
        return {
            "article_id": self.id,
            "title": self.title,
            "content": self.content,
            "url": self.url,
            "publishDate": self.publish_date,
            "source": self.source,
        }


@dataclass(frozen=True)
class RetrievedPassage:
    """A search hit mapped out of the vector index payload."""
    score: float
    title: str
    content: str
    url: str
    publish_date: str

    def as_source(self) -> Source:
        return Source(title=self.title, url=self.url)


@dataclass(frozen=True)
class IndexPoint:
    """A point to upsert into the vector index."""
    id: str
    vector: List[float]
    payload: Dict[str, Any]


@dataclass(frozen=True)
class SearchHit:
    id: str
    score: float
    payload: Dict[str, Any]


@dataclass
class QueryResult:
    """Outcome of one pipeline run."""
    response: str
    sources: List[Source]

    def to_dict(self) -> Dict[str, Any]:
        return {"response": self.response, "sources": [s.to_dict() for s in self.sources]}


@dataclass
class IngestionResult:
    """Represents an ingestion pass."""
    count: int
    sources_ok: List[str] = None
    sources_failed: List[str] = None
    used_sample: bool = False

    def __post_init__(self):
        if self.sources_ok is None:
            self.sources_ok = []
        if self.sources_failed is None:
            self.sources_failed = []
