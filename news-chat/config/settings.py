#!/usr/bin/env python3
"""
Configuration settings for the news chat service.

- When running standalone, default values are used for all environment variables.
- When running in Docker Compose, values from news-chat.env will override the defaults.
- A local .env file, if present, is loaded before any value is read.
"""
import os

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def _abs_path(path, base=PROJECT_ROOT):
    if not path:
        raise ValueError("Missing required path.")
    if os.path.isabs(path):
        return path
    return os.path.join(base, path)


def _env_bool(name, default):
    return os.getenv(name, default).lower() == "true"


# Logging
LOG_DIR = _abs_path(os.getenv("LOG_DIR", "logs"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Server
APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
APP_PORT = int(os.getenv("APP_PORT", "5000"))
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Redis Configuration (session history)
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD") or None
REDIS_TIMEOUT = float(os.getenv("REDIS_TIMEOUT", "5"))
SESSION_TTL = int(os.getenv("SESSION_TTL", "3600"))  # seconds since last append
SESSION_KEY_PREFIX = os.getenv("SESSION_KEY_PREFIX", "session")

# Vector DB Configuration (Qdrant)
VECTOR_DB_HOST = os.getenv("VECTOR_DB_HOST", "localhost")
VECTOR_DB_PORT = int(os.getenv("VECTOR_DB_PORT", "6333"))
# When set, the URL wins over host/port (e.g. Qdrant Cloud)
VECTOR_DB_URL = os.getenv("VECTOR_DB_URL") or None
VECTOR_DB_API_KEY = os.getenv("VECTOR_DB_API_KEY") or None
VECTOR_DB_COLLECTION = os.getenv("VECTOR_DB_COLLECTION", "news_articles")
VECTOR_DB_TIMEOUT = float(os.getenv("VECTOR_DB_TIMEOUT", "10"))

# Embeddings
# "huggingface" loads EMBEDDING_MODEL_PATH locally, "jina" calls the Jina embeddings API
EMBEDDING_PROVIDER = os.getenv("EMBEDDING_PROVIDER", "huggingface").lower()
EMBEDDING_MODEL_PATH = os.getenv("EMBEDDING_MODEL_PATH", "intfloat/e5-large-v2")
EMBEDDING_DIM = int(os.getenv("EMBEDDING_DIM", "1024"))
EMBEDDING_DEVICE = os.getenv("EMBEDDING_DEVICE", "cpu")
EMBEDDING_TIMEOUT = float(os.getenv("EMBEDDING_TIMEOUT", "30"))
JINA_API_URL = os.getenv("JINA_API_URL", "https://api.jina.ai/v1/embeddings")
JINA_API_KEY = os.getenv("JINA_API_KEY", "")
JINA_MODEL = os.getenv("JINA_MODEL", "jina-embeddings-v3")

# LLM and Chat Configuration
USE_OLLAMA = os.getenv("USE_OLLAMA", "1") == "1"
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.1")
OLLAMA_URL = os.getenv("OLLAMA_URL", "http://localhost:11434")
LLM_PATH = os.getenv("LLM_PATH", "")
LLM_TIMEOUT = float(os.getenv("LLM_TIMEOUT", "60"))

LLAMA_USE_GPU = _env_bool("LLAMA_USE_GPU", "false")
LLAMA_N_CTX = int(os.getenv("LLAMA_N_CTX", "8192"))
LLAMA_N_GPU_LAYERS = int(os.getenv("LLAMA_N_GPU_LAYERS", "35"))
LLAMA_N_THREADS = int(os.getenv("LLAMA_N_THREADS", "8"))
LLAMA_N_BATCH = int(os.getenv("LLAMA_N_BATCH", "512"))
LLAMA_TEMPERATURE = float(os.getenv("LLAMA_TEMPERATURE", "0.3"))
# When generating each token, restrict sampling to the top k most likely next tokens.
LLAMA_TOP_K = int(os.getenv("LLAMA_TOP_K", "25"))
LLAMA_TOP_P = float(os.getenv("LLAMA_TOP_P", "0.85"))
LLAMA_REPEAT_PENALTY = float(os.getenv("LLAMA_REPEAT_PENALTY", "1.2"))
LLAMA_MAX_TOKENS = int(os.getenv("LLAMA_MAX_TOKENS", "512"))
LLAMA_VERBOSE = _env_bool("LLAMA_VERBOSE", "false")
LLAMA_SEED = int(os.getenv("LLAMA_SEED", "42"))

# Retrieve the top k most relevant articles (based on vector similarity) for a given query.
RETRIEVER_TOP_K = int(os.getenv("RETRIEVER_TOP_K", "5"))
# Number of most recent turns included in the prompt; the store keeps everything.
HISTORY_WINDOW = int(os.getenv("HISTORY_WINDOW", "6"))

# Ingestion
DEFAULT_NEWS_FEEDS = (
    "https://rss.cnn.com/rss/edition.rss,"
    "https://feeds.bbci.co.uk/news/rss.xml,"
    "https://feeds.reuters.com/reuters/worldNews"
)
NEWS_FEEDS = [f.strip() for f in os.getenv("NEWS_FEEDS", DEFAULT_NEWS_FEEDS).split(",") if f.strip()]
MAX_ARTICLES = int(os.getenv("MAX_ARTICLES", "50"))
MAX_ITEMS_PER_FEED = int(os.getenv("MAX_ITEMS_PER_FEED", "20"))
FEED_TIMEOUT = float(os.getenv("FEED_TIMEOUT", "15"))
FEED_USER_AGENT = os.getenv(
    "FEED_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/123.0 Safari/537.36",
)
INGEST_BATCH_SIZE = int(os.getenv("INGEST_BATCH_SIZE", "64"))
INGEST_ON_STARTUP = _env_bool("INGEST_ON_STARTUP", "true")
INGEST_STARTUP_DELAY = float(os.getenv("INGEST_STARTUP_DELAY", "5"))
INGEST_SAMPLE_FALLBACK = _env_bool("INGEST_SAMPLE_FALLBACK", "true")

# Metrics Configuration
METRICS_ENABLED = _env_bool("METRICS_ENABLED", "true")
METRICS_LOG_FILE = os.getenv("METRICS_LOG_FILE", "")
METRICS_LOG_TO_STDOUT = _env_bool("METRICS_LOG_TO_STDOUT", "true")

os.makedirs(LOG_DIR, exist_ok=True)
