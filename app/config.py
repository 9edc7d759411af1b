# app/config.py
"""Runtime settings read from the environment (and `.env` when present)."""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default):
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./marketplace.db")
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", 5))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", 10))

ADMIN_GROUP_NAME = os.getenv("ADMIN_GROUP_NAME", "biddu-admin")

# bids must reach this share of the expected price
BID_FLOOR_RATIO = float(os.getenv("BID_FLOOR_RATIO", "0.8"))

# store query limits
ID_OR_CHAIN_LIMIT = int(os.getenv("ID_OR_CHAIN_LIMIT", 20))
ID_SCAN_BATCH_SIZE = int(os.getenv("ID_SCAN_BATCH_SIZE", 10))
BATCH_GET_MAX_KEYS = int(os.getenv("BATCH_GET_MAX_KEYS", 100))
PREDICATE_BUDGET = int(os.getenv("PREDICATE_BUDGET", 50))

HYDRATION_WORKERS = int(os.getenv("HYDRATION_WORKERS", 4))

GEOHASH_KEY_LENGTH = int(os.getenv("GEOHASH_KEY_LENGTH", 6))
DEFAULT_RADIUS_KM = float(os.getenv("DEFAULT_RADIUS_KM", "5"))
NEARBY_VERIFIED_ONLY = _env_bool("NEARBY_VERIFIED_ONLY", True)

API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", 8000))
