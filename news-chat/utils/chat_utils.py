#!/usr/bin/env python3
"""
Utility functions for chat formatting and citation.
"""
from typing import List, Sequence

from models.data_models import ChatTurn, RetrievedPassage, Source


def format_passages(passages: Sequence[RetrievedPassage]) -> List[str]:
    """Render passages in the order given, each with its title, content and URL."""
    return [f"Title: {p.title}\nContent: {p.content}\nURL: {p.url}\n---" for p in passages]


def format_history(history: Sequence[ChatTurn]) -> List[str]:
    return [f"{turn.role}: {turn.content}" for turn in history]


def recent_turns(history: Sequence[ChatTurn], window: int) -> List[ChatTurn]:
    """Keep only the last ``window`` turns; older ones are dropped."""
    if window <= 0:
        return []
    return list(history)[-window:]


def sources_from_passages(passages: Sequence[RetrievedPassage]) -> List[Source]:
    """One source per passage, in passage order."""
    return [p.as_source() for p in passages]
