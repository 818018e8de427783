#!/usr/bin/env python3
"""
Performance metrics collection for the chat pipeline and ingestion.

Provides lightweight timing instrumentation with structured JSON logging.
"""
import json
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class Timer:
    """
    Context manager for timing operations with high-resolution timing.

    Usage:
        with Timer() as t:
            # do work
            pass
        elapsed_ms = t.elapsed_ms
    """

    def __init__(self):
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.elapsed_ms: float = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        if self.start_time is not None:
            self.elapsed_ms = (self.end_time - self.start_time) * 1000.0
        return False


class _Metrics:
    """Named timers plus free-form fields, emitted as one JSON event."""

    event_name = "metrics"

    def __init__(self, **kwargs):
        self.extra_fields = kwargs
        self.timers: Dict[str, Timer] = {}
        self.metrics: Dict[str, Any] = {}

    def timer(self, name: str) -> Timer:
        """
        Return the timer registered under ``name``.

        The metric key is ``<name>_time_ms``. Re-entering a name restarts it.
        """
        if name not in self.timers:
            self.timers[name] = Timer()
        return self.timers[name]

    def add_field(self, name: str, value: Any):
        self.metrics[name] = value

    def add_counter(self, name: str, value: int):
        self.metrics[name] = value

    def finalize(self) -> Dict[str, Any]:
        final_metrics = dict(self.metrics)
        for name, timer in self.timers.items():
            final_metrics[f"{name}_time_ms"] = round(timer.elapsed_ms, 3)
        return final_metrics

    def build_event(self) -> Dict[str, Any]:
        event = {
            "event": self.event_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "metrics": self.finalize(),
        }
        event.update(self.extra_fields)
        return event

    def emit(self, logger: logging.Logger):
        """Emit the structured event; never raises."""
        try:
            from config.settings import METRICS_ENABLED, METRICS_LOG_FILE, METRICS_LOG_TO_STDOUT

            if not METRICS_ENABLED:
                return

            event = self.build_event()

            if METRICS_LOG_TO_STDOUT:
                logger.info(f"METRICS: {json.dumps(event)}")

            if METRICS_LOG_FILE:
                try:
                    with open(METRICS_LOG_FILE, "a") as f:
                        f.write(json.dumps(event) + "\n")
                except OSError as e:
                    logger.debug(f"Failed to write metrics to file: {e}")

        except Exception as e:
            # Metrics must never fail a query
            logger.debug(f"Failed to emit metrics: {e}")


class QueryMetrics(_Metrics):
    """
    Tracks one run of the query pipeline.

    Usage:
        metrics = QueryMetrics(session_id="abc")
        with metrics.timer("retrieval"):
            ...
        metrics.add_field("status", "ok")
        metrics.emit(log)
    """

    event_name = "query_complete"

    def __init__(self, session_id: str, **kwargs):
        super().__init__(session_id=session_id, **kwargs)


class IngestMetrics(_Metrics):
    """Tracks one ingestion pass across all sources."""

    event_name = "ingestion_complete"

    def add_source(self, source: str, articles: int, success: bool = True):
        self.metrics.setdefault("sources", []).append({
            "source": source,
            "articles": articles,
            "success": success,
        })
