"""
Tests for the hard-block rule set (hard_block.check_hard_block and the rule table).
"""

from __future__ import annotations

import itertools

import pytest

from conftest import build_snapshot
from trustgate.analysis_engine.bot_detector import classify_liveness
from trustgate.analysis_engine.hard_block import (
    HARD_BLOCK_RULES,
    check_hard_block,
    derive_risk_signals,
    evaluate_hard_block_rules,
)
from trustgate.analysis_engine.models import RiskSignal
from trustgate.signals.models import AttestationVerdict, MotionState

S = RiskSignal


def _check(**overrides):
    signals = build_snapshot(**overrides)
    bot = classify_liveness(signals.is_user_interacting, signals.motion_state)
    return check_hard_block(signals, bot)


def test_clean_snapshot_not_blocked():
    result = _check()
    assert result.triggered is False
    assert result.rule_ids == ()
    assert result.reason == ""


def test_bot_jailbroken_new_device_fires_rules_1_and_3():
    """No touch, no gyro, jailbroken, new device: rules 1 and 3 both fire."""
    result = _check(
        is_user_interacting=False,
        motion_state=MotionState.UNKNOWN,
        is_jailbroken=True,
        device_id="device-NEW",
    )
    assert result.triggered is True
    assert 1 in result.rule_ids
    assert 3 in result.rule_ids
    assert "Bot detected" in result.reason
    assert "Jailbroken device" in result.reason
    assert "New device" in result.reason
    assert "Suspicious behavior" not in result.reason


def test_jailbroken_new_device_alone_blocks():
    result = _check(is_jailbroken=True, device_id="device-NEW")
    assert result.triggered is True
    assert result.rule_ids == (3,)
    assert result.reason == "Jailbroken device + New device"


def test_jailbroken_known_device_not_blocked():
    assert _check(is_jailbroken=True).triggered is False


def test_bot_vpn_new_device_low_uptime():
    result = _check(
        is_user_interacting=False,
        motion_state=MotionState.STILL,
        is_vpn_enabled=True,
        device_id="device-NEW",
        uptime_seconds=120,
    )
    assert result.rule_ids == (2,)
    assert result.reason == "Bot detected + New device + VPN active + Low uptime"


def test_attest_low_score_label_includes_score():
    """Rule 12: supported attestation with low score, bot, VPN."""
    result = _check(
        is_user_interacting=False,
        motion_state=MotionState.STILL,
        is_vpn_enabled=True,
        attestation=AttestationVerdict(verified=True, score=30, risk_tier="low"),
    )
    assert 12 in result.rule_ids
    assert "Low integrity score (30)" in result.reason
    assert "App Attest supported" not in result.reason


def test_unsupported_attestation_never_gates_attest_rules():
    """Medium risk on an unsupported verdict cannot happen; attest rules need support."""
    active = frozenset({S.BOT, S.ATTEST_MEDIUM_RISK, S.JAILBROKEN})
    assert evaluate_hard_block_rules(active).triggered is False
    assert evaluate_hard_block_rules(active | {S.ATTEST_SUPPORTED}).rule_ids == (8,)


def test_derive_risk_signals_clean():
    signals = build_snapshot()
    bot = classify_liveness(True, MotionState.STILL)
    assert derive_risk_signals(signals, bot) == frozenset()


def test_every_rule_fires_on_its_own_predicates():
    for rule_id, predicates, _ in HARD_BLOCK_RULES:
        result = evaluate_hard_block_rules(predicates)
        assert result.triggered
        assert rule_id in result.rule_ids


@pytest.mark.parametrize("rule_id,predicates", [(r, p) for r, p, _ in HARD_BLOCK_RULES])
def test_monotonic_under_added_evidence(rule_id, predicates):
    """Adding any extra risk predicates to a firing set never un-trips the block."""
    extras = [s for s in RiskSignal if s not in predicates]
    for size in (1, 2, 3):
        for combo in itertools.combinations(extras, size):
            result = evaluate_hard_block_rules(predicates | frozenset(combo))
            assert result.triggered
            assert rule_id in result.rule_ids


def test_rule_ids_are_unique_and_ordered():
    ids = [rule_id for rule_id, _, _ in HARD_BLOCK_RULES]
    assert ids == sorted(ids) == list(range(1, 13))
