# app/utils.py
"""Shared utilities: logging setup, clock and chunking helpers."""
import os
import logging
import time
from dotenv import load_dotenv

load_dotenv()

def get_logger(name=__name__):
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        level=getattr(logging, level, logging.INFO)
    )
    return logging.getLogger(name)

logger = get_logger("marketplace")


def now_ms() -> int:
    """Current time as epoch milliseconds, the unit every stored timestamp uses."""
    return int(time.time() * 1000)


def chunked(items, size):
    for i in range(0, len(items), size):
        yield items[i:i + size]
