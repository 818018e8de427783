#!/usr/bin/env python3
"""
RSS feed fetching and parsing into articles.
"""
import uuid
from typing import List, Optional

import httpx
from bs4 import BeautifulSoup

from config.settings import FEED_TIMEOUT, FEED_USER_AGENT, MAX_ITEMS_PER_FEED
from models.data_models import Article
from models.errors import IngestionError
from utils.text_utils import clean_feed_text

ARTICLE_NAMESPACE = uuid.UUID("0b6f3c4e-6a8e-5d1c-9a57-5e2c3f1d7b10")

FEED_HEADERS = {
    "User-Agent": FEED_USER_AGENT,
    "Accept": "application/rss+xml, application/xml, text/xml;q=0.9,*/*;q=0.8",
}


def article_id(url: str, title: str) -> str:
    """Stable id so re-ingesting the same story overwrites its point."""
    return str(uuid.uuid5(ARTICLE_NAMESPACE, url or title))


class FeedProcessor:
    """Feed processing functionality as static methods."""

    @staticmethod
    def _text(item, tag: str) -> str:
        node = item.find(tag)
        return node.get_text() if node is not None else ""

    @staticmethod
    def parse_feed(xml: str, source: str, max_items: int = MAX_ITEMS_PER_FEED) -> List[Article]:
        """
        Extract articles from RSS ``<item>`` elements.

        Items without both a title and a description are skipped.
        """
        soup = BeautifulSoup(xml, "xml")
        articles = []
        for item in soup.find_all("item")[:max_items]:
            title = clean_feed_text(FeedProcessor._text(item, "title"))
            content = clean_feed_text(FeedProcessor._text(item, "description"))
            if not title or not content:
                continue
            url = FeedProcessor._text(item, "link").strip()
            articles.append(Article(
                id=article_id(url, title),
                title=title,
                content=content,
                url=url,
                publish_date=FeedProcessor._text(item, "pubDate").strip(),
                source=source,
            ))
        return articles

    @staticmethod
    async def fetch_feed(client: httpx.AsyncClient, source: str, timeout: float = FEED_TIMEOUT, max_items: int = MAX_ITEMS_PER_FEED) -> List[Article]:
        """Download and parse one feed; any failure is an IngestionError for that source."""
        try:
            response = await client.get(source, headers=FEED_HEADERS, timeout=timeout, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise IngestionError(source, f"fetch failed: {e}") from e

        try:
            return FeedProcessor.parse_feed(response.text, source, max_items=max_items)
        except Exception as e:
            raise IngestionError(source, f"parse failed: {e}") from e


def sample_articles(published: Optional[str] = None) -> List[Article]:
    """Built-in corpus used when no feed could be read."""
    published = published or ""
    samples = [
        ("Technology Advances in AI",
         "Artificial Intelligence continues to evolve rapidly with new breakthroughs in machine learning and natural language processing.",
         "https://example.com/tech-ai"),
        ("Global Climate Change Summit",
         "World leaders gather to discuss climate change initiatives and sustainable development goals for the next decade.",
         "https://example.com/climate"),
        ("Central Banks Weigh Interest Rate Moves",
         "Policy makers signal caution as inflation cools, with markets watching for the first rate cut of the cycle.",
         "https://example.com/rates"),
        ("Space Agency Prepares Lunar Mission",
         "Engineers complete final tests on the crew capsule ahead of a planned mission to orbit the Moon.",
         "https://example.com/lunar"),
        ("Renewable Energy Hits Record Share",
         "Wind and solar generated a record share of electricity last year as new capacity came online across several regions.",
         "https://example.com/renewables"),
    ]
    return [
        Article(id=article_id(url, title), title=title, content=content, url=url, publish_date=published, source="sample")
        for title, content, url in samples
    ]


parse_feed = FeedProcessor.parse_feed
fetch_feed = FeedProcessor.fetch_feed
