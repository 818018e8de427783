#!/usr/bin/env python3
"""
Tests for pipeline and ingestion metrics.
"""
import json
import logging
import time
from unittest.mock import MagicMock, patch

from utils.metrics import IngestMetrics, QueryMetrics, Timer


def test_timer_measures_elapsed_time():
    with Timer() as t:
        time.sleep(0.01)
    assert t.elapsed_ms >= 5


def test_query_metrics_event_shape():
    metrics = QueryMetrics(session_id="s1", mode="complete")
    with metrics.timer("retrieval"):
        pass
    metrics.add_counter("passages", 3)
    metrics.add_field("status", "ok")

    event = metrics.build_event()

    assert event["event"] == "query_complete"
    assert event["session_id"] == "s1"
    assert event["mode"] == "complete"
    assert event["metrics"]["passages"] == 3
    assert event["metrics"]["status"] == "ok"
    assert "retrieval_time_ms" in event["metrics"]


def test_ingest_metrics_tracks_sources():
    metrics = IngestMetrics(source_count=2)
    metrics.add_source("a", 5)
    metrics.add_source("b", 0, success=False)

    event = metrics.build_event()

    assert event["event"] == "ingestion_complete"
    assert event["metrics"]["sources"] == [
        {"source": "a", "articles": 5, "success": True},
        {"source": "b", "articles": 0, "success": False},
    ]


def test_emit_logs_json(caplog):
    logger = logging.getLogger("metrics_test")
    metrics = QueryMetrics(session_id="s1")
    metrics.add_field("status", "ok")

    with patch("config.settings.METRICS_ENABLED", True), patch("config.settings.METRICS_LOG_TO_STDOUT", True), patch("config.settings.METRICS_LOG_FILE", ""):
        with caplog.at_level(logging.INFO, logger="metrics_test"):
            metrics.emit(logger)

    line = next(r.getMessage() for r in caplog.records if r.getMessage().startswith("METRICS: "))
    assert json.loads(line[len("METRICS: "):])["session_id"] == "s1"


def test_emit_writes_metrics_file(tmp_path):
    path = tmp_path / "metrics.jsonl"
    metrics = IngestMetrics()

    with patch("config.settings.METRICS_ENABLED", True), patch("config.settings.METRICS_LOG_TO_STDOUT", False), patch("config.settings.METRICS_LOG_FILE", str(path)):
        metrics.emit(logging.getLogger("metrics_test"))

    assert json.loads(path.read_text().strip())["event"] == "ingestion_complete"


def test_emit_disabled_does_nothing():
    logger = MagicMock()
    with patch("config.settings.METRICS_ENABLED", False):
        QueryMetrics(session_id="s1").emit(logger)
    logger.info.assert_not_called()


def test_emit_never_raises():
    logger = MagicMock()
    metrics = QueryMetrics(session_id="s1")
    metrics.add_field("bad", object())

    with patch("config.settings.METRICS_ENABLED", True), patch("config.settings.METRICS_LOG_TO_STDOUT", True):
        metrics.emit(logger)

    logger.debug.assert_called_once()
