"""
Environment variable loading for TrustGate.

- TRUSTGATE_DB_URL / DATABASE_URL: SQLAlchemy URL for the baseline store
- TRUSTGATE_DB_PATH: SQLite file used when no URL is set (default: trustgate.db)
- TRUSTGATE_ATTEST_TIMEOUT: seconds to wait for an attestation verdict
- TRUSTGATE_TERMINATE_ON_CRITICAL_DECAY: 1/0, block primary devices on critical decay
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is trustgate/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_SQLITE_PATH = "trustgate.db"
DEFAULT_ATTEST_TIMEOUT_S = 5.0

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def load_trustgate_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides real env."""
    load_dotenv(_ENV_PATH, override=False)


def get_database_url() -> str:
    """
    Resolve the baseline store URL.
    Order: TRUSTGATE_DB_URL > DATABASE_URL > sqlite:///<TRUSTGATE_DB_PATH or trustgate.db>.
    """
    load_trustgate_env()
    url = (os.getenv("TRUSTGATE_DB_URL") or os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url
    path = (os.getenv("TRUSTGATE_DB_PATH") or "").strip() or DEFAULT_SQLITE_PATH
    return f"sqlite:///{path}"


def get_env_float(name: str, default: float) -> float:
    """Return a float env var; default when unset or unparsable."""
    load_trustgate_env()
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_env_flag(name: str, default: bool) -> bool:
    """Return a boolean env var (1/true/yes/on, 0/false/no/off); default otherwise."""
    load_trustgate_env()
    raw = (os.getenv(name) or "").strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    return default
