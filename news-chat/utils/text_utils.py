#!/usr/bin/env python3
"""
Text processing utility functions.
"""
import re
import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning
from ftfy import fix_text

_WHITESPACE = re.compile(r"[ \t\r\f\v]+")
_BLANK_LINES = re.compile(r"\n\s*\n+")


class TextUtils:
    """Text processing utility functions as static methods."""

    @staticmethod
    def fix_mojibake(text: str) -> str:
        """Use ftfy to fix common mojibake/encoding issues in feed text."""
        if not text:
            return ""
        return fix_text(text)

    @staticmethod
    def strip_html(text: str) -> str:
        """Drop markup from an RSS description, keeping only the visible text."""
        if not text:
            return ""
        if "<" not in text and "&" not in text:
            return text
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
            soup = BeautifulSoup(text, "html5lib")  # Most forgiving parser
        return soup.get_text(separator=" ", strip=True)

    @staticmethod
    def normalize_whitespace(text: str) -> str:
        text = _WHITESPACE.sub(" ", text)
        text = _BLANK_LINES.sub("\n\n", text)  # Collapse extra blank lines
        return text.strip()

    @staticmethod
    def clean_feed_text(text: str) -> str:
        """Full cleanup chain for titles and descriptions pulled from a feed."""
        return TextUtils.normalize_whitespace(TextUtils.strip_html(TextUtils.fix_mojibake(text)))

    @staticmethod
    def is_blank(text) -> bool:
        return text is None or not str(text).strip()


fix_mojibake = TextUtils.fix_mojibake
strip_html = TextUtils.strip_html
normalize_whitespace = TextUtils.normalize_whitespace
clean_feed_text = TextUtils.clean_feed_text
is_blank = TextUtils.is_blank
