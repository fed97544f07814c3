"""
Tests for factor scoring (factors.score_factors) and app attest tiering.
"""

from __future__ import annotations

import pytest

from conftest import build_baseline, build_cluster, build_snapshot
from trustgate.analysis_engine.bot_detector import classify_liveness
from trustgate.analysis_engine.factors import (
    FACTOR_BOUNDS,
    SCORE_CEILING,
    SCORE_FLOOR,
    attestation_points,
    score_factors,
    total_score,
)
from trustgate.analysis_engine.models import FactorStatus
from trustgate.signals.models import AttestationVerdict, MotionState, NetworkType

FACTOR_ORDER = [
    "Device Signature",
    "Email",
    "Jailbreak Check",
    "VPN",
    "Uptime",
    "Bot Detection",
    "App Attest",
    "Location Clustering",
    "Network",
    "Timezone",
    "IP Address",
    "Login Time",
]


def _score(signals, baseline=None, clusters=()):
    bot = classify_liveness(signals.is_user_interacting, signals.motion_state)
    return score_factors(signals, bot, baseline, list(clusters))


def _by_name(factors):
    return {f.factor: f for f in factors}


def test_factor_order_is_fixed(snapshot, baseline, home_cluster):
    factors = _score(snapshot, baseline, [home_cluster])
    assert [f.factor for f in factors] == FACTOR_ORDER


def test_clean_returning_user(snapshot, baseline, home_cluster):
    """Touch + still, nothing deviates: every factor succeeds; bot is 18 (0.90 * 20)."""
    factors = _by_name(_score(snapshot, baseline, [home_cluster]))
    assert factors["Bot Detection"].score_impact == 18
    for name in ("Device Signature", "Email", "Jailbreak Check", "VPN", "Network", "Timezone",
                 "IP Address", "Login Time", "Location Clustering", "Uptime"):
        assert factors[name].status is FactorStatus.SUCCESS, name
    assert factors["App Attest"].score_impact == 0
    assert total_score(factors.values()) == 113


def test_first_login_neutral_branches(snapshot, home_cluster):
    """No attribute baseline: VPN off is +5, network/timezone/IP/login are neutral 0."""
    factors = _by_name(_score(snapshot, None, [home_cluster]))
    assert factors["VPN"].score_impact == 5
    for name in ("Network", "Timezone", "IP Address", "Login Time"):
        assert factors[name].score_impact == 0
        assert factors[name].status is FactorStatus.NEUTRAL
    assert factors["Bot Detection"].score_impact == 18
    assert factors["Location Clustering"].score_impact == 15
    assert factors["App Attest"].score_impact == 0


def test_first_login_vpn_on_is_neutral():
    factors = _by_name(_score(build_snapshot(is_vpn_enabled=True)))
    assert factors["VPN"].score_impact == 0
    assert factors["VPN"].status is FactorStatus.NEUTRAL


def test_baseline_deviations(home_cluster):
    signals = build_snapshot(
        is_vpn_enabled=True,
        network_type=NetworkType.CELLULAR,
        timezone="Asia/Tokyo",
        ip_address="203.0.113.9",
    )
    factors = _by_name(_score(signals, build_baseline(), [home_cluster]))
    assert factors["VPN"].score_impact == -8
    assert factors["VPN"].reason == "VPN turned ON (baseline: OFF)"
    assert factors["Network"].score_impact == -3
    assert factors["Timezone"].score_impact == -15
    assert factors["Timezone"].reason.startswith("CRITICAL")
    assert factors["IP Address"].score_impact == -10


def test_unusual_login_hour(home_cluster):
    """03:15 Berlin time is outside the 8-12 window."""
    from datetime import datetime, timezone

    signals = build_snapshot(captured_at=datetime(2026, 1, 14, 2, 15, tzinfo=timezone.utc))
    factors = _by_name(_score(signals, build_baseline(), [home_cluster]))
    assert factors["Login Time"].score_impact == -5
    assert factors["Login Time"].status is FactorStatus.FAILURE


@pytest.mark.parametrize(
    "uptime_s,new_device,points",
    [
        (121 * 60, False, 5),
        (120 * 60, False, 0),
        (5 * 60, False, 0),
        (9 * 60, True, -5),
        (10 * 60, True, 0),
    ],
)
def test_uptime(uptime_s, new_device, points):
    overrides = {"uptime_seconds": uptime_s}
    if new_device:
        overrides["device_id"] = "device-NEW"
    factors = _by_name(_score(build_snapshot(**overrides)))
    assert factors["Uptime"].score_impact == points


def test_new_device_and_email_mismatch_score_zero():
    factors = _by_name(_score(build_snapshot(device_id="device-NEW", email="other@example.com")))
    assert factors["Device Signature"].score_impact == 0
    assert factors["Device Signature"].status is FactorStatus.FAILURE
    assert factors["Email"].score_impact == 0


def test_jailbroken_penalty():
    factors = _by_name(_score(build_snapshot(is_jailbroken=True)))
    assert factors["Jailbreak Check"].score_impact == -10


@pytest.mark.parametrize(
    "touch,motion,status",
    [
        (False, MotionState.STILL, FactorStatus.FAILURE),
        (False, MotionState.MOVING, FactorStatus.WARNING),
        (True, MotionState.UNKNOWN, FactorStatus.WARNING),
        (True, MotionState.MOVING, FactorStatus.SUCCESS),
    ],
)
def test_bot_factor_status(touch, motion, status):
    factors = _by_name(_score(build_snapshot(is_user_interacting=touch, motion_state=motion)))
    assert factors["Bot Detection"].status is status


@pytest.mark.parametrize(
    "verdict,points",
    [
        (AttestationVerdict.unsupported(), 0),
        (AttestationVerdict(verified=True, score=92, risk_tier="low"), 10),
        (AttestationVerdict(verified=False, score=92, risk_tier="low"), -10),
        (AttestationVerdict(verified=True, score=70, risk_tier="medium"), -15),
        (AttestationVerdict(verified=True, score=70, risk_tier="high"), -20),
        (AttestationVerdict.unknown("key-1"), -15),
        (AttestationVerdict(verified=True, score=80, risk_tier="elevated"), -10),
        # Low score caps the penalty at -15 even for a good tier
        (AttestationVerdict(verified=True, score=40, risk_tier="low"), -15),
        (AttestationVerdict(verified=True, score=40, risk_tier="high"), -20),
        (AttestationVerdict(verified=True, score=50, risk_tier="low"), 10),
    ],
)
def test_attestation_points(verdict, points):
    assert attestation_points(verdict)[0] == points


def test_sum_invariant_across_variants(home_cluster):
    """Total equals the sum of factor deltas for a spread of snapshots."""
    variants = [
        build_snapshot(),
        build_snapshot(is_vpn_enabled=True, network_type="cellular"),
        build_snapshot(location=None, uptime_seconds=30),
        build_snapshot(is_user_interacting=False, motion_state=MotionState.MOVING),
        build_snapshot(attestation=AttestationVerdict(verified=True, score=20, risk_tier="medium")),
    ]
    for signals in variants:
        for baseline in (None, build_baseline()):
            factors = _score(signals, baseline, [home_cluster])
            assert total_score(factors) == sum(f.score_impact for f in factors)
            assert SCORE_FLOOR <= total_score(factors) <= SCORE_CEILING


def test_score_range_constants():
    assert SCORE_CEILING == sum(hi for _, hi in FACTOR_BOUNDS.values()) == 124
    assert SCORE_FLOOR == sum(lo for lo, _ in FACTOR_BOUNDS.values()) == -95
    assert list(FACTOR_BOUNDS) == FACTOR_ORDER


def test_best_case_reaches_ceiling(home_cluster):
    signals = build_snapshot(
        motion_state=MotionState.MOVING,
        attestation=AttestationVerdict(verified=True, score=97, risk_tier="low"),
    )
    factors = _score(signals, build_baseline(), [home_cluster])
    assert total_score(factors) == SCORE_CEILING
