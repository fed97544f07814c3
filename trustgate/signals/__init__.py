"""
Signal and baseline data model consumed by the trust engine.
"""

from trustgate.signals.attestation import AttestationOracle, fetch_attestation
from trustgate.signals.baselines import (
    AttributeBaseline,
    LocationCluster,
    ScoreBaseline,
    ip_range_for,
)
from trustgate.signals.models import (
    AttestationVerdict,
    AttestRiskTier,
    DeviceType,
    GeoPoint,
    MotionState,
    NetworkType,
    SignalSnapshot,
)

__all__ = [
    "AttestationOracle",
    "AttestationVerdict",
    "AttestRiskTier",
    "AttributeBaseline",
    "DeviceType",
    "GeoPoint",
    "LocationCluster",
    "MotionState",
    "NetworkType",
    "ScoreBaseline",
    "SignalSnapshot",
    "fetch_attestation",
    "ip_range_for",
]
