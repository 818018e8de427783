#!/usr/bin/env python3
import os
import sys
import tempfile
from pathlib import Path

# Set minimal environment variables as early as possible (on import),
# so modules imported during test collection see them.
_base_dir = Path(tempfile.mkdtemp(prefix="test_env_"))
_logs = _base_dir / "logs"
_logs.mkdir(parents=True, exist_ok=True)

os.environ.setdefault("LOG_DIR", str(_logs))
os.environ.setdefault("LOG_LEVEL", "DEBUG")

# Nothing in the tests talks to a real Redis, Qdrant, feed or model
os.environ.setdefault("INGEST_ON_STARTUP", "false")
os.environ.setdefault("INGEST_STARTUP_DELAY", "0")
os.environ.setdefault("EMBEDDING_DIM", "16")
os.environ.setdefault("SESSION_TTL", "3600")
os.environ.setdefault("HISTORY_WINDOW", "6")
os.environ.setdefault("RETRIEVER_TOP_K", "5")

# Explicit defaults used in tests
os.environ.setdefault("METRICS_ENABLED", "true")
os.environ.setdefault("METRICS_LOG_TO_STDOUT", "true")
os.environ.setdefault("METRICS_LOG_FILE", "")

# Service modules import each other as top-level packages from news-chat/
_app_dir = Path(__file__).resolve().parent / "news-chat"
if str(_app_dir) not in sys.path:
    sys.path.insert(0, str(_app_dir))
