"""
config.py: environment-driven settings
=======================================
Values come from a `.env` file next to the sources (if present) or the
process environment. Anything malformed falls back to the default.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent

# Load local .env regardless of launch directory.
load_dotenv(dotenv_path=BASE_DIR / ".env")

DEFAULT_HISTORY_LIMIT = 20
MAX_HISTORY_LIMIT = 20  # undo and redo stacks never hold more than this
DEFAULT_STORAGE_PATH = BASE_DIR / "data" / "dcf_workbook.json"


def _positive_int(raw, default: int) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def history_limit(raw) -> int:
    """DCF_HISTORY_LIMIT may lower the stack cap, never raise it above MAX_HISTORY_LIMIT."""
    return min(_positive_int(raw, DEFAULT_HISTORY_LIMIT), MAX_HISTORY_LIMIT)


HISTORY_LIMIT = history_limit(os.getenv("DCF_HISTORY_LIMIT"))
STORAGE_PATH = Path(os.getenv("DCF_STORAGE_PATH") or DEFAULT_STORAGE_PATH)
if not STORAGE_PATH.is_absolute():
    STORAGE_PATH = BASE_DIR / STORAGE_PATH
LOG_LEVEL = os.getenv("DCF_LOG_LEVEL", "INFO")

# Storage keys for the two persisted records
HISTORICAL_STORAGE_KEY = "dcf_historical"
PROJECTIONS_STORAGE_KEY = "dcf_projections"
