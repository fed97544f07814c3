"""
Core utilities: shared exceptions used across the engine, stores and verifier.
"""

from trustgate.core.exceptions import BaselineStoreError, InvalidSignalError, TrustGateError

__all__ = ["BaselineStoreError", "InvalidSignalError", "TrustGateError"]
