"""
Application-level exceptions.

Blocked and re-verify outcomes are results, not errors; these cover malformed
input and collaborator failures only.
"""

from __future__ import annotations


class TrustGateError(Exception):
    """Base class for all TrustGate errors."""


class InvalidSignalError(TrustGateError, ValueError):
    """A signal snapshot or attestation verdict was built with out-of-range values."""


class BaselineStoreError(TrustGateError):
    """Reading or writing a baseline, cluster or decay record failed."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
