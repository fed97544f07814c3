"""
Application settings.

Typed, read-once view over the environment (see config/env.py) for the
verifier and the SQL store. Score thresholds are not settings; they live as
constants next to the code that applies them.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from trustgate.config.env import (
    DEFAULT_ATTEST_TIMEOUT_S,
    get_database_url,
    get_env_flag,
    get_env_float,
    load_trustgate_env,
)


@dataclass(frozen=True)
class Settings:
    database_url: str
    log_level: str = "INFO"
    log_format: str = "json"
    attestation_timeout_s: float = DEFAULT_ATTEST_TIMEOUT_S
    terminate_on_critical_decay: bool = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process settings (cached; call get_settings.cache_clear() in tests)."""
    load_trustgate_env()
    return Settings(
        database_url=get_database_url(),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_format=os.getenv("LOG_FORMAT", "json").strip().lower(),
        attestation_timeout_s=get_env_float("TRUSTGATE_ATTEST_TIMEOUT", DEFAULT_ATTEST_TIMEOUT_S),
        terminate_on_critical_decay=get_env_flag("TRUSTGATE_TERMINATE_ON_CRITICAL_DECAY", True),
    )
