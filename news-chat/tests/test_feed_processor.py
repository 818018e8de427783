#!/usr/bin/env python3
"""
Tests for RSS parsing and fetching.
"""
import httpx
import pytest

from models.errors import IngestionError
from processors.feed_processor import article_id, fetch_feed, parse_feed, sample_articles

FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example News</title>
    <item>
      <title>Central bank holds rates</title>
      <description><![CDATA[<p>The central bank kept rates <b>unchanged</b> on Tuesday.</p>]]></description>
      <link>https://example.com/rates</link>
      <pubDate>Tue, 07 May 2024 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>No description here</title>
      <link>https://example.com/empty</link>
    </item>
    <item>
      <title>Storm   hits \t coast</title>
      <description>Heavy rain overnight.</description>
      <link>https://example.com/storm</link>
    </item>
  </channel>
</rss>
"""


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_parse_feed_extracts_complete_items():
    articles = parse_feed(FEED, "https://example.com/feed")

    assert [a.title for a in articles] == ["Central bank holds rates", "Storm hits coast"]
    first = articles[0]
    assert first.content == "The central bank kept rates unchanged on Tuesday."
    assert first.url == "https://example.com/rates"
    assert first.publish_date == "Tue, 07 May 2024 10:00:00 GMT"
    assert first.source == "https://example.com/feed"
    assert articles[1].publish_date == ""


def test_parse_feed_respects_max_items():
    assert len(parse_feed(FEED, "src", max_items=1)) == 1


def test_parse_feed_without_items_is_empty():
    assert parse_feed("<rss><channel></channel></rss>", "src") == []


def test_article_ids_are_stable_per_url():
    assert article_id("https://example.com/a", "A") == article_id("https://example.com/a", "Other title")
    assert article_id("https://example.com/a", "A") != article_id("https://example.com/b", "A")
    assert article_id("", "Title only") == article_id("", "Title only")


def test_payload_fields():
    payload = parse_feed(FEED, "src")[0].payload()
    assert set(payload) == {"article_id", "title", "content", "url", "publishDate", "source"}


def test_sample_articles():
    samples = sample_articles()
    assert len(samples) == 5
    assert len({a.id for a in samples}) == 5
    assert all(a.title and a.content and a.url for a in samples)


@pytest.mark.asyncio
async def test_fetch_feed_success():
    def handler(request):
        assert "User-Agent" in request.headers
        return httpx.Response(200, text=FEED)

    async with _client(handler) as client:
        articles = await fetch_feed(client, "https://example.com/feed")

    assert len(articles) == 2


@pytest.mark.asyncio
async def test_fetch_feed_http_error_raises_ingestion_error():
    async with _client(lambda request: httpx.Response(503)) as client:
        with pytest.raises(IngestionError) as excinfo:
            await fetch_feed(client, "https://example.com/down")

    assert excinfo.value.source == "https://example.com/down"


@pytest.mark.asyncio
async def test_fetch_feed_transport_error_raises_ingestion_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(IngestionError):
            await fetch_feed(client, "https://example.com/refused")
