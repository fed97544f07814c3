from trustgate.verification.verifier import (
    NextAction,
    TrustDecision,
    TrustVerifier,
    VerificationOutcome,
    decide,
)

__all__ = [
    "NextAction",
    "TrustDecision",
    "TrustVerifier",
    "VerificationOutcome",
    "decide",
]
