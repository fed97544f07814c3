"""
Hard-block rule set: short-circuit security rules evaluated before scoring.

Each rule is a conjunction of risk predicates; the set is their disjunction.
If any rule fires the evaluation ends with score 0 and a blocked status. The
rules are fixed and hand-authored; there is no rule language.
"""

from __future__ import annotations

from dataclasses import replace

from trustgate.analysis_engine.models import BotDetectionReport, HardBlockResult, RiskSignal
from trustgate.signals.models import MotionState, SignalSnapshot
from trustgate.trustgate_logging import get_logger

logger = get_logger(__name__)

LOW_UPTIME_MINUTES = 5

S = RiskSignal

# (rule id, predicates that must all hold, short description for logs)
HARD_BLOCK_RULES: tuple[tuple[int, frozenset[RiskSignal], str], ...] = (
    (1, frozenset({S.BOT, S.JAILBROKEN, S.NEW_DEVICE}), "bot_jailbroken_new_device"),
    (2, frozenset({S.BOT, S.VPN, S.NEW_DEVICE, S.LOW_UPTIME}), "bot_vpn_new_device_low_uptime"),
    (3, frozenset({S.JAILBROKEN, S.NEW_DEVICE}), "jailbroken_new_device"),
    (
        4,
        frozenset({S.BOT, S.NEW_DEVICE, S.IP_MISMATCH, S.TIMEZONE_MISMATCH, S.EMAIL_MISMATCH}),
        "bot_multiple_anomalies",
    ),
    (5, frozenset({S.BOT, S.NO_MOTION, S.JAILBROKEN}), "bot_no_motion_jailbroken"),
    (6, frozenset({S.BOT, S.NO_MOTION, S.VPN, S.NEW_DEVICE}), "bot_no_motion_vpn_new_device"),
    (7, frozenset({S.SUSPICIOUS, S.JAILBROKEN, S.NEW_DEVICE}), "suspicious_jailbroken_new_device"),
    (
        8,
        frozenset({S.ATTEST_SUPPORTED, S.BOT, S.ATTEST_MEDIUM_RISK, S.JAILBROKEN}),
        "bot_attest_medium_jailbroken",
    ),
    (
        9,
        frozenset({S.ATTEST_SUPPORTED, S.BOT, S.ATTEST_MEDIUM_RISK, S.VPN, S.NEW_DEVICE}),
        "bot_attest_medium_vpn_new_device",
    ),
    (
        10,
        frozenset({S.ATTEST_SUPPORTED, S.ATTEST_LOW_SCORE, S.JAILBROKEN, S.NEW_DEVICE}),
        "attest_low_score_jailbroken_new_device",
    ),
    (
        11,
        frozenset({S.ATTEST_SUPPORTED, S.ATTEST_MEDIUM_RISK, S.JAILBROKEN, S.VPN}),
        "attest_medium_jailbroken_vpn",
    ),
    (
        12,
        frozenset({S.ATTEST_SUPPORTED, S.BOT, S.ATTEST_LOW_SCORE, S.VPN}),
        "bot_attest_low_score_vpn",
    ),
)

# Gating predicate only; never named in the block reason.
_UNLABELED = frozenset({S.ATTEST_SUPPORTED})


def derive_risk_signals(
    signals: SignalSnapshot,
    bot_report: BotDetectionReport,
) -> frozenset[RiskSignal]:
    """Return the set of risk predicates that hold for this snapshot."""
    attestation = signals.attestation
    checks = {
        S.BOT: bot_report.result.is_bot,
        S.SUSPICIOUS: bot_report.result.is_suspicious,
        S.JAILBROKEN: signals.is_jailbroken,
        S.NEW_DEVICE: signals.is_new_device,
        S.VPN: signals.is_vpn_enabled,
        S.LOW_UPTIME: signals.uptime_minutes < LOW_UPTIME_MINUTES,
        S.TIMEZONE_MISMATCH: signals.timezone_mismatch,
        S.IP_MISMATCH: signals.ip_mismatch,
        S.EMAIL_MISMATCH: signals.email_mismatch,
        S.NO_MOTION: signals.motion_state is MotionState.UNKNOWN,
        S.ATTEST_SUPPORTED: attestation.is_supported,
        S.ATTEST_MEDIUM_RISK: attestation.is_medium_risk,
        S.ATTEST_LOW_SCORE: attestation.has_low_score,
    }
    return frozenset(sig for sig, holds in checks.items() if holds)


def evaluate_hard_block_rules(active: frozenset[RiskSignal]) -> HardBlockResult:
    """
    Apply the rule table to a set of active predicates.

    Separated from derive_risk_signals so the rule table can be exercised
    directly with arbitrary predicate sets.
    """
    fired = [(rule_id, preds) for rule_id, preds, _ in HARD_BLOCK_RULES if preds <= active]
    if not fired:
        return HardBlockResult(triggered=False)

    involved: set[RiskSignal] = set()
    for _, preds in fired:
        involved |= preds
    ordered = tuple(sig for sig in RiskSignal if sig in involved)
    hidden = set(_UNLABELED)
    if S.BOT in involved:
        # Every bot is also suspicious; naming both is noise.
        hidden.add(S.SUSPICIOUS)
    reason = " + ".join(sig.label for sig in ordered if sig not in hidden)
    return HardBlockResult(
        triggered=True,
        rule_ids=tuple(rule_id for rule_id, _ in fired),
        signals=ordered,
        reason=reason,
    )


def check_hard_block(
    signals: SignalSnapshot,
    bot_report: BotDetectionReport,
) -> HardBlockResult:
    """
    Run the full hard-block rule set for one snapshot.

    Returns:
        HardBlockResult; triggered=False means scoring may proceed.
    """
    result = evaluate_hard_block_rules(derive_risk_signals(signals, bot_report))
    if S.ATTEST_LOW_SCORE in result.signals:
        label = S.ATTEST_LOW_SCORE.label
        result = replace(
            result,
            reason=result.reason.replace(label, f"{label} ({signals.attestation.score})"),
        )
    if result.triggered:
        first = result.rule_ids[0]
        logger.warning(
            "hard_block_triggered",
            rule_id=first,
            rule_name=next(name for rid, _, name in HARD_BLOCK_RULES if rid == first),
            rule_ids=list(result.rule_ids),
            reason=result.reason,
        )
    return result
