#!/usr/bin/env python3
"""
Builds the bounded generation prompt.
"""
from typing import Sequence

from config.settings import HISTORY_WINDOW
from models.data_models import ChatTurn, RetrievedPassage
from prompts.chat_prompts import NEWS_CHAT_PROMPT, NO_ARTICLES, NO_HISTORY
from utils.chat_utils import format_history, format_passages, recent_turns


class PromptAssembler:
    """
    Renders instructions, trimmed history, passages and the question.

    ``build`` is pure: the same inputs always give the same text.
    """

    def __init__(self, history_window: int = HISTORY_WINDOW, template=NEWS_CHAT_PROMPT):
        self.history_window = history_window
        self.template = template

    def build(self, history: Sequence[ChatTurn], passages: Sequence[RetrievedPassage], query: str) -> str:
        history_lines = format_history(recent_turns(history, self.history_window))
        passage_blocks = format_passages(passages)
        return self.template.format(
            chat_history="\n".join(history_lines) if history_lines else NO_HISTORY,
            context="\n\n".join(passage_blocks) if passage_blocks else NO_ARTICLES,
            question=query,
        )
