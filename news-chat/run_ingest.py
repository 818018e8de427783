#!/usr/bin/env python3
"""
Main entry point for a one-off ingestion pass.
"""
import asyncio
import os
import sys

# Add the project root to the Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from services.dependencies import get_ingestion_service  # noqa: E402
from workers.ingest_worker import run_once  # noqa: E402


def main() -> None:
    result = asyncio.run(run_once(get_ingestion_service()))
    print(f"Ingested {result.count} articles ({len(result.sources_failed)} sources failed, sample={result.used_sample})")


if __name__ == "__main__":
    main()
