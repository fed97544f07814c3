"""
Factor score aggregation: twelve independent weighted factors.

Each factor compares one live signal with the stored reference or the
attribute baseline and yields a signed delta plus an explanation. The total
trust score is the plain sum of the deltas. A missing attribute baseline
(first login on this device) sends every baseline-dependent factor to its
neutral branch instead of failing.

Factor order is fixed; the decay tracker and reports rely on it.
"""

from __future__ import annotations

from typing import Callable, Iterable

from trustgate.analysis_engine.location_trust import evaluate_location_trust
from trustgate.analysis_engine.models import (
    FACTOR_APP_ATTEST,
    FACTOR_BOT,
    FACTOR_DEVICE_SIGNATURE,
    FACTOR_EMAIL,
    FACTOR_IP,
    FACTOR_JAILBREAK,
    FACTOR_LOCATION,
    FACTOR_LOGIN_TIME,
    FACTOR_NETWORK,
    FACTOR_TIMEZONE,
    FACTOR_UPTIME,
    FACTOR_VPN,
    BotDetectionReport,
    FactorReport,
    FactorStatus,
)
from trustgate.signals.baselines import AttributeBaseline, LocationCluster
from trustgate.signals.models import AttestationVerdict, AttestRiskTier, SignalSnapshot
from trustgate.trustgate_logging import get_logger

logger = get_logger(__name__)

DEVICE_MATCH_POINTS = 25
EMAIL_MATCH_POINTS = 10
NOT_JAILBROKEN_POINTS = 10
JAILBROKEN_PENALTY = -10
VPN_MATCH_POINTS = 5
VPN_MISMATCH_PENALTY = -8
STABLE_UPTIME_POINTS = 5
NEW_DEVICE_LOW_UPTIME_PENALTY = -5
STABLE_UPTIME_MINUTES = 120
NEW_DEVICE_LOW_UPTIME_MINUTES = 10
NETWORK_MATCH_POINTS = 5
NETWORK_MISMATCH_PENALTY = -3
TIMEZONE_MATCH_POINTS = 10
TIMEZONE_MISMATCH_PENALTY = -15
KNOWN_IP_POINTS = 5
UNKNOWN_IP_PENALTY = -10
LOGIN_HOUR_POINTS = 5
LOGIN_HOUR_PENALTY = -5

ATTEST_VERIFIED_POINTS = 10
ATTEST_LOW_UNVERIFIED_PENALTY = -10
ATTEST_MEDIUM_PENALTY = -15
ATTEST_HIGH_PENALTY = -20
ATTEST_UNKNOWN_PENALTY = -15
ATTEST_UNRECOGNIZED_PENALTY = -10
ATTEST_LOW_SCORE_CAP = -15

# (min, max) delta each factor can contribute.
FACTOR_BOUNDS: dict[str, tuple[int, int]] = {
    FACTOR_DEVICE_SIGNATURE: (0, DEVICE_MATCH_POINTS),
    FACTOR_EMAIL: (0, EMAIL_MATCH_POINTS),
    FACTOR_JAILBREAK: (JAILBROKEN_PENALTY, NOT_JAILBROKEN_POINTS),
    FACTOR_VPN: (VPN_MISMATCH_PENALTY, VPN_MATCH_POINTS),
    FACTOR_UPTIME: (NEW_DEVICE_LOW_UPTIME_PENALTY, STABLE_UPTIME_POINTS),
    FACTOR_BOT: (1, 19),
    FACTOR_APP_ATTEST: (ATTEST_HIGH_PENALTY, ATTEST_VERIFIED_POINTS),
    FACTOR_LOCATION: (-20, 15),
    FACTOR_NETWORK: (NETWORK_MISMATCH_PENALTY, NETWORK_MATCH_POINTS),
    FACTOR_TIMEZONE: (TIMEZONE_MISMATCH_PENALTY, TIMEZONE_MATCH_POINTS),
    FACTOR_IP: (UNKNOWN_IP_PENALTY, KNOWN_IP_POINTS),
    FACTOR_LOGIN_TIME: (LOGIN_HOUR_PENALTY, LOGIN_HOUR_POINTS),
}

# Score range: sums of the per-factor extremes. Reports are not clamped to it.
SCORE_CEILING = 124
SCORE_FLOOR = -95


def _status_for(points: int) -> FactorStatus:
    if points > 0:
        return FactorStatus.SUCCESS
    if points < 0:
        return FactorStatus.FAILURE
    return FactorStatus.NEUTRAL


# -----------------------------------------------------------------------------
# Identity factors (stored values on the snapshot)
# -----------------------------------------------------------------------------


def device_signature_factor(signals: SignalSnapshot) -> FactorReport:
    if not signals.is_new_device:
        return FactorReport(
            FACTOR_DEVICE_SIGNATURE,
            FactorStatus.SUCCESS,
            DEVICE_MATCH_POINTS,
            "Device matches stored signature",
        )
    return FactorReport(
        FACTOR_DEVICE_SIGNATURE,
        FactorStatus.FAILURE,
        0,
        "New device detected - signature mismatch",
    )


def email_factor(signals: SignalSnapshot) -> FactorReport:
    if not signals.email_mismatch:
        return FactorReport(FACTOR_EMAIL, FactorStatus.SUCCESS, EMAIL_MATCH_POINTS, "Email matches stored email")
    return FactorReport(FACTOR_EMAIL, FactorStatus.FAILURE, 0, "Email mismatch detected")


def jailbreak_factor(signals: SignalSnapshot) -> FactorReport:
    if not signals.is_jailbroken:
        return FactorReport(
            FACTOR_JAILBREAK, FactorStatus.SUCCESS, NOT_JAILBROKEN_POINTS, "Device is not jailbroken"
        )
    return FactorReport(FACTOR_JAILBREAK, FactorStatus.FAILURE, JAILBROKEN_PENALTY, "Device is jailbroken")


def uptime_factor(signals: SignalSnapshot) -> FactorReport:
    minutes = signals.uptime_minutes
    if minutes > STABLE_UPTIME_MINUTES:
        return FactorReport(
            FACTOR_UPTIME,
            FactorStatus.SUCCESS,
            STABLE_UPTIME_POINTS,
            f"Device has stable uptime ({minutes} mins)",
        )
    if signals.is_new_device and minutes < NEW_DEVICE_LOW_UPTIME_MINUTES:
        return FactorReport(
            FACTOR_UPTIME,
            FactorStatus.FAILURE,
            NEW_DEVICE_LOW_UPTIME_PENALTY,
            f"New device with very low uptime (<{NEW_DEVICE_LOW_UPTIME_MINUTES} mins)",
        )
    return FactorReport(FACTOR_UPTIME, FactorStatus.NEUTRAL, 0, "Uptime moderate, no impact")


# -----------------------------------------------------------------------------
# Liveness, attestation, location
# -----------------------------------------------------------------------------


def bot_factor(bot_report: BotDetectionReport) -> FactorReport:
    result = bot_report.result
    if result.is_bot:
        status = FactorStatus.FAILURE
    elif result.is_suspicious:
        status = FactorStatus.WARNING
    else:
        status = FactorStatus.SUCCESS
    return FactorReport(FACTOR_BOT, status, bot_report.score_contribution, bot_report.reason)


def attestation_points(attestation: AttestationVerdict) -> tuple[int, str]:
    """Tiered App Attest delta and reason; a low integrity score caps it at -15."""
    if not attestation.is_supported:
        return 0, "App Attest not supported on this device"

    tier = attestation.tier
    score = attestation.score
    if tier is AttestRiskTier.LOW:
        if attestation.verified:
            points, reason = ATTEST_VERIFIED_POINTS, f"App integrity verified (low risk, score: {score})"
        else:
            points, reason = ATTEST_LOW_UNVERIFIED_PENALTY, "App Attest verification failed (low risk)"
    elif tier is AttestRiskTier.MEDIUM:
        points, reason = ATTEST_MEDIUM_PENALTY, f"App integrity medium risk (score: {score})"
    elif tier is AttestRiskTier.HIGH:
        points, reason = ATTEST_HIGH_PENALTY, f"App integrity high risk (score: {score})"
    elif tier is AttestRiskTier.UNKNOWN:
        points, reason = ATTEST_UNKNOWN_PENALTY, "App Attest verification failed (unknown status)"
    else:
        points, reason = ATTEST_UNRECOGNIZED_PENALTY, f"App Attest unrecognized risk tier '{attestation.risk_tier}'"

    if attestation.has_low_score:
        points = min(points, ATTEST_LOW_SCORE_CAP)
        reason = f"App integrity score below threshold ({score}/100)"
    return points, reason


def app_attest_factor(signals: SignalSnapshot) -> FactorReport:
    points, reason = attestation_points(signals.attestation)
    return FactorReport(FACTOR_APP_ATTEST, _status_for(points), points, reason)


def location_factor(signals: SignalSnapshot, clusters: Iterable[LocationCluster]) -> FactorReport:
    result = evaluate_location_trust(signals.location, clusters)
    status = FactorStatus.SUCCESS if result.points > 0 else FactorStatus.FAILURE
    return FactorReport(FACTOR_LOCATION, status, result.points, result.reason)


# -----------------------------------------------------------------------------
# Baseline-dependent factors
# -----------------------------------------------------------------------------


def vpn_factor(signals: SignalSnapshot, baseline: AttributeBaseline | None) -> FactorReport:
    vpn_on = signals.is_vpn_enabled
    if baseline is None:
        if not vpn_on:
            return FactorReport(FACTOR_VPN, FactorStatus.SUCCESS, VPN_MATCH_POINTS, "No VPN detected")
        return FactorReport(FACTOR_VPN, FactorStatus.NEUTRAL, 0, "VPN active (no baseline to compare)")

    if vpn_on == baseline.normal_vpn_state:
        state = "ON" if baseline.normal_vpn_state else "OFF"
        return FactorReport(
            FACTOR_VPN, FactorStatus.SUCCESS, VPN_MATCH_POINTS, f"VPN state matches baseline ({state})"
        )
    message = "VPN turned ON (baseline: OFF)" if vpn_on else "VPN turned OFF (baseline: ON)"
    return FactorReport(FACTOR_VPN, FactorStatus.FAILURE, VPN_MISMATCH_PENALTY, message)


def network_factor(signals: SignalSnapshot, baseline: AttributeBaseline | None) -> FactorReport:
    current = signals.network_type.value
    if baseline is None:
        return FactorReport(FACTOR_NETWORK, FactorStatus.NEUTRAL, 0, f"Network: {current} (no baseline)")
    normal = baseline.normal_network_type.value
    if signals.network_type is baseline.normal_network_type:
        return FactorReport(
            FACTOR_NETWORK,
            FactorStatus.SUCCESS,
            NETWORK_MATCH_POINTS,
            f"Network type matches baseline ({normal})",
        )
    return FactorReport(
        FACTOR_NETWORK,
        FactorStatus.FAILURE,
        NETWORK_MISMATCH_PENALTY,
        f"Network changed: {normal} -> {current}",
    )


def timezone_factor(signals: SignalSnapshot, baseline: AttributeBaseline | None) -> FactorReport:
    if baseline is None:
        return FactorReport(
            FACTOR_TIMEZONE, FactorStatus.NEUTRAL, 0, f"Timezone: {signals.timezone} (no baseline)"
        )
    if signals.timezone == baseline.normal_timezone:
        return FactorReport(
            FACTOR_TIMEZONE,
            FactorStatus.SUCCESS,
            TIMEZONE_MATCH_POINTS,
            f"Timezone matches baseline ({baseline.normal_timezone})",
        )
    return FactorReport(
        FACTOR_TIMEZONE,
        FactorStatus.FAILURE,
        TIMEZONE_MISMATCH_PENALTY,
        f"CRITICAL: Timezone changed ({baseline.normal_timezone} -> {signals.timezone})",
    )


def ip_factor(signals: SignalSnapshot, baseline: AttributeBaseline | None) -> FactorReport:
    if baseline is None:
        return FactorReport(FACTOR_IP, FactorStatus.NEUTRAL, 0, f"IP: {signals.ip_address} (no baseline)")
    if baseline.is_known_ip(signals.ip_address):
        return FactorReport(FACTOR_IP, FactorStatus.SUCCESS, KNOWN_IP_POINTS, "IP in known range")
    return FactorReport(
        FACTOR_IP, FactorStatus.FAILURE, UNKNOWN_IP_PENALTY, f"New IP detected: {signals.ip_address}"
    )


def login_time_factor(signals: SignalSnapshot, baseline: AttributeBaseline | None) -> FactorReport:
    hour = signals.local_hour
    if baseline is None:
        return FactorReport(FACTOR_LOGIN_TIME, FactorStatus.NEUTRAL, 0, f"Login time: {hour}:00 (no baseline)")
    window = f"{baseline.login_hour_start}:00-{baseline.login_hour_end}:00"
    if baseline.is_normal_login_hour(hour):
        return FactorReport(
            FACTOR_LOGIN_TIME, FactorStatus.SUCCESS, LOGIN_HOUR_POINTS, f"Normal login hours ({window})"
        )
    return FactorReport(
        FACTOR_LOGIN_TIME,
        FactorStatus.FAILURE,
        LOGIN_HOUR_PENALTY,
        f"Unusual time: {hour}:00 (normal: {window})",
    )


# -----------------------------------------------------------------------------
# Aggregation
# -----------------------------------------------------------------------------


def score_factors(
    signals: SignalSnapshot,
    bot_report: BotDetectionReport,
    baseline: AttributeBaseline | None,
    clusters: Iterable[LocationCluster] = (),
) -> list[FactorReport]:
    """
    Evaluate all twelve factors in their fixed order.

    Args:
        signals: Snapshot for this evaluation.
        bot_report: Liveness classification of the same snapshot.
        baseline: Attribute baseline for this user+device; None on first login.
        clusters: The user's location clusters.

    Returns:
        Ordered factor reports; their score_impact values sum to the trust score.
    """
    evaluators: tuple[Callable[[], FactorReport], ...] = (
        lambda: device_signature_factor(signals),
        lambda: email_factor(signals),
        lambda: jailbreak_factor(signals),
        lambda: vpn_factor(signals, baseline),
        lambda: uptime_factor(signals),
        lambda: bot_factor(bot_report),
        lambda: app_attest_factor(signals),
        lambda: location_factor(signals, clusters),
        lambda: network_factor(signals, baseline),
        lambda: timezone_factor(signals, baseline),
        lambda: ip_factor(signals, baseline),
        lambda: login_time_factor(signals, baseline),
    )
    factors = [evaluate() for evaluate in evaluators]
    logger.debug(
        "factors_scored",
        has_baseline=baseline is not None,
        impacts={f.factor: f.score_impact for f in factors},
    )
    return factors


def total_score(factors: Iterable[FactorReport]) -> int:
    return sum(f.score_impact for f in factors)
