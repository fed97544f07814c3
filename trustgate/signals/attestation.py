"""
Attestation verdict acquisition with a bounded wait.

The attestation service is an injected callable; this module only turns its
outcome into an AttestationVerdict before the snapshot is built. Failures and
timeouts become the "unknown" sentinel so they never reach the engine as
exceptions.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Protocol

from trustgate.signals.models import AttestationVerdict
from trustgate.trustgate_logging import get_logger

logger = get_logger(__name__)


class AttestationOracle(Protocol):
    def __call__(self, key_id: str | None) -> AttestationVerdict: ...


def fetch_attestation(
    oracle: AttestationOracle | None,
    key_id: str | None = None,
    timeout_s: float = 5.0,
) -> AttestationVerdict:
    """
    Ask the oracle for a verdict, waiting at most timeout_s seconds.

    No oracle -> unsupported. Oracle error, invalid verdict or timeout -> unknown.
    """
    if oracle is None:
        return AttestationVerdict.unsupported()

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="attest")
    future = executor.submit(oracle, key_id)
    try:
        verdict = future.result(timeout=timeout_s)
    except FutureTimeoutError:
        logger.warning("attestation_timeout", key_id=key_id, timeout_s=timeout_s)
        return AttestationVerdict.unknown(key_id)
    except Exception as e:
        logger.warning("attestation_failed", key_id=key_id, error_type=type(e).__name__, error=str(e))
        return AttestationVerdict.unknown(key_id)
    finally:
        # Do not block on a stuck oracle call; the worker thread finishes on its own.
        executor.shutdown(wait=False)

    if not isinstance(verdict, AttestationVerdict):
        logger.warning("attestation_invalid_verdict", key_id=key_id, type=type(verdict).__name__)
        return AttestationVerdict.unknown(key_id)
    return verdict
