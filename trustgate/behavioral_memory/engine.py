"""
Behavioral decay engine: compare successive trust scores and classify the drop.

Rule-based only. The severity tier is handed to the caller; this module makes
no access decision and performs no I/O.
"""

from __future__ import annotations

from typing import Iterable

from trustgate.analysis_engine.models import (
    FACTOR_IP,
    FACTOR_JAILBREAK,
    FACTOR_LOCATION,
    FACTOR_LOGIN_TIME,
    FACTOR_NETWORK,
    FACTOR_TIMEZONE,
    FACTOR_VPN,
    FactorReport,
)
from trustgate.behavioral_memory.models import DecaySeverity, DecaySnapshotResult
from trustgate.trustgate_logging import get_logger

logger = get_logger(__name__)

# Lower bound (inclusive) of each tier, highest first. Anything above 0 and
# below the last bound is minimal.
CRITICAL_DECAY = 50
HIGH_DECAY = 30
MEDIUM_DECAY = 15
LOW_DECAY = 5

_SEVERITY_BOUNDS: tuple[tuple[int, DecaySeverity], ...] = (
    (CRITICAL_DECAY, DecaySeverity.CRITICAL),
    (HIGH_DECAY, DecaySeverity.HIGH),
    (MEDIUM_DECAY, DecaySeverity.MEDIUM),
    (LOW_DECAY, DecaySeverity.LOW),
)

# Factor name -> DecaySnapshotResult field.
ATTRIBUTED_FACTORS: dict[str, str] = {
    FACTOR_LOCATION: "location_decay",
    FACTOR_VPN: "vpn_decay",
    FACTOR_NETWORK: "network_decay",
    FACTOR_TIMEZONE: "timezone_decay",
    FACTOR_IP: "ip_decay",
    FACTOR_LOGIN_TIME: "login_time_decay",
    FACTOR_JAILBREAK: "jailbreak_decay",
}


def classify_decay_severity(decay_amount: int) -> DecaySeverity:
    for lower, severity in _SEVERITY_BOUNDS:
        if decay_amount >= lower:
            return severity
    if decay_amount > 0:
        return DecaySeverity.MINIMAL
    return DecaySeverity.NONE


def _attribute_decay(factors: Iterable[FactorReport]) -> dict[str, int]:
    """Negative deltas of the tracked factors; positives and unknown names are ignored."""
    breakdown = {attr: 0 for attr in ATTRIBUTED_FACTORS.values()}
    for factor in factors:
        attr = ATTRIBUTED_FACTORS.get(factor.factor)
        if attr is not None and factor.score_impact < 0:
            breakdown[attr] = factor.score_impact
    return breakdown


def track_decay(
    previous_score: int,
    current_score: int,
    factors: Iterable[FactorReport],
) -> DecaySnapshotResult:
    """
    Compute the decay between two scores and attribute it to factors.

    Args:
        previous_score: Last stored score for this user+device.
        current_score: Score of the evaluation just completed.
        factors: Ordered factor reports of that evaluation.

    Returns:
        DecaySnapshotResult; decay_amount may be negative (improvement).
    """
    decay_amount = previous_score - current_score
    severity = classify_decay_severity(decay_amount)
    breakdown = _attribute_decay(factors)
    result = DecaySnapshotResult(
        previous_score=previous_score,
        current_score=current_score,
        decay_amount=decay_amount,
        severity=severity,
        **breakdown,
    )
    log = logger.warning if severity in (DecaySeverity.HIGH, DecaySeverity.CRITICAL) else logger.debug
    log(
        "decay_tracked",
        previous_score=previous_score,
        current_score=current_score,
        decay_amount=decay_amount,
        severity=severity.value,
        breakdown={k: v for k, v in breakdown.items() if v < 0},
    )
    return result
