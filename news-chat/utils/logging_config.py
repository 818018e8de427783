#!/usr/bin/env python3
"""
Logging configuration utilities.
"""
import logging
import os
import sys

from config.settings import LOG_DIR, LOG_LEVEL


class FlushFileHandler(logging.FileHandler):
    """File handler that flushes after each log record."""
    def emit(self, record):
        super().emit(record)
        self.flush()


def setup_logging(log_file: str, level: int = None) -> logging.Logger:
    """
    Set up logging configuration with both file and console handlers.

    The root logger is configured once per process; later calls only return
    a logger named after the log file so records still carry their origin.

    Args:
        log_file: Log file name, relative to LOG_DIR unless absolute
        level: Logging level, defaults to LOG_LEVEL

    Returns:
        Configured logger
    """
    if level is None:
        level = getattr(logging, LOG_LEVEL, logging.INFO)

    root = logging.getLogger()
    if not root.handlers:
        path = log_file if os.path.isabs(log_file) else os.path.join(LOG_DIR, log_file)

        stream_handler = logging.StreamHandler(sys.stdout)
        file_handler = FlushFileHandler(path)

        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
        stream_handler.setFormatter(formatter)
        file_handler.setFormatter(formatter)

        logging.basicConfig(level=level, handlers=[stream_handler, file_handler])

    quiet_third_party_loggers()

    logger = logging.getLogger(os.path.splitext(os.path.basename(log_file))[0])
    logger.setLevel(level)
    return logger


def quiet_third_party_loggers():
    """Keep HTTP client chatter out of the service log."""
    for name in ("httpx", "httpcore", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)
