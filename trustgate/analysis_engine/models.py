"""
Data models for trust engine output.

Bot verdicts, factor reports, hard-block results and the aggregate
evaluation report. Everything is immutable and serializes to a flat dict for
storage and telemetry.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

from trustgate.signals.models import MotionState

# Factor names, in evaluation order. The decay tracker keys on these.
FACTOR_DEVICE_SIGNATURE = "Device Signature"
FACTOR_EMAIL = "Email"
FACTOR_JAILBREAK = "Jailbreak Check"
FACTOR_VPN = "VPN"
FACTOR_UPTIME = "Uptime"
FACTOR_BOT = "Bot Detection"
FACTOR_APP_ATTEST = "App Attest"
FACTOR_LOCATION = "Location Clustering"
FACTOR_NETWORK = "Network"
FACTOR_TIMEZONE = "Timezone"
FACTOR_IP = "IP Address"
FACTOR_LOGIN_TIME = "Login Time"
FACTOR_HARD_BLOCK = "Hard Block"

HARD_BLOCK_IMPACT = -100

# Bot factor: floor(weight * confidence); Unknown is a flat neutral score.
BOT_SCORE_WEIGHT = 20
UNKNOWN_BOT_SCORE = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FactorStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"
    WARNING = "warning"


class TrustStatus(str, Enum):
    TRUSTED = "trusted"
    REVERIFY_IDENTITY = "reverify_identity"
    BLOCKED = "blocked"


# -----------------------------------------------------------------------------
# Liveness verdict: Human | Suspicious | Bot | Unknown
# -----------------------------------------------------------------------------


class BotVerdict:
    """Base of the liveness verdict sum type. Confidence is the human-likelihood in [0, 1]."""

    label: ClassVar[str] = "unknown"

    @property
    def is_bot(self) -> bool:
        return isinstance(self, Bot)

    @property
    def is_suspicious(self) -> bool:
        return isinstance(self, (Suspicious, Bot))

    @property
    def score_contribution(self) -> int:
        return UNKNOWN_BOT_SCORE

    def describe(self) -> str:
        return "Unknown"


@dataclass(frozen=True)
class Human(BotVerdict):
    confidence: float
    label: ClassVar[str] = "human"

    @property
    def score_contribution(self) -> int:
        return math.floor(BOT_SCORE_WEIGHT * self.confidence)

    def describe(self) -> str:
        return f"Human (confidence: {self.confidence * 100:.0f}%)"


@dataclass(frozen=True)
class Suspicious(BotVerdict):
    confidence: float
    label: ClassVar[str] = "suspicious"

    @property
    def score_contribution(self) -> int:
        return math.floor(BOT_SCORE_WEIGHT * self.confidence)

    def describe(self) -> str:
        return f"Suspicious (confidence: {self.confidence * 100:.0f}%)"


@dataclass(frozen=True)
class Bot(BotVerdict):
    confidence: float
    label: ClassVar[str] = "bot"

    @property
    def score_contribution(self) -> int:
        return math.floor(BOT_SCORE_WEIGHT * self.confidence)

    def describe(self) -> str:
        # Reported as bot-likelihood, the complement of the human confidence.
        return f"Bot (confidence: {(1.0 - self.confidence) * 100:.0f}%)"


@dataclass(frozen=True)
class Unknown(BotVerdict):
    label: ClassVar[str] = "unknown"


@dataclass(frozen=True)
class BotDetectionReport:
    result: BotVerdict
    touch_interaction: bool
    motion_state: MotionState
    motion_magnitude: float
    reason: str
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def score_contribution(self) -> int:
        """0-20 points; Unknown is neutral (5)."""
        return self.result.score_contribution

    def to_dict(self) -> dict[str, Any]:
        return {
            "verdict": self.result.label,
            "confidence": getattr(self.result, "confidence", None),
            "score_contribution": self.score_contribution,
            "touch_interaction": self.touch_interaction,
            "motion_state": self.motion_state.value,
            "motion_magnitude": self.motion_magnitude,
            "reason": self.reason,
            "timestamp": self.timestamp.isoformat(),
        }


# -----------------------------------------------------------------------------
# Hard-block predicates and result
# -----------------------------------------------------------------------------


class RiskSignal(str, Enum):
    """Hard-block predicate tags. Declaration order is the order used in reasons."""

    BOT = "bot"
    SUSPICIOUS = "suspicious"
    JAILBROKEN = "jailbroken"
    NEW_DEVICE = "new_device"
    VPN = "vpn"
    LOW_UPTIME = "low_uptime"
    TIMEZONE_MISMATCH = "timezone_mismatch"
    IP_MISMATCH = "ip_mismatch"
    EMAIL_MISMATCH = "email_mismatch"
    NO_MOTION = "no_motion"
    ATTEST_SUPPORTED = "attest_supported"
    ATTEST_MEDIUM_RISK = "attest_medium_risk"
    ATTEST_LOW_SCORE = "attest_low_score"

    @property
    def label(self) -> str:
        return RISK_SIGNAL_LABELS[self]


RISK_SIGNAL_LABELS: dict[RiskSignal, str] = {
    RiskSignal.BOT: "Bot detected",
    RiskSignal.SUSPICIOUS: "Suspicious behavior",
    RiskSignal.JAILBROKEN: "Jailbroken device",
    RiskSignal.NEW_DEVICE: "New device",
    RiskSignal.VPN: "VPN active",
    RiskSignal.LOW_UPTIME: "Low uptime",
    RiskSignal.TIMEZONE_MISMATCH: "Timezone mismatch",
    RiskSignal.IP_MISMATCH: "IP mismatch",
    RiskSignal.EMAIL_MISMATCH: "Email mismatch",
    RiskSignal.NO_MOTION: "No gyroscope",
    RiskSignal.ATTEST_SUPPORTED: "App Attest supported",
    RiskSignal.ATTEST_MEDIUM_RISK: "App Attest medium risk",
    RiskSignal.ATTEST_LOW_SCORE: "Low integrity score",
}


@dataclass(frozen=True)
class HardBlockResult:
    """
    Outcome of the hard-block pre-filter.

    rule_ids: every rule that fired, ascending (the first is the one logged).
    signals: union of the firing rules' predicates, in RiskSignal order.
    reason: human labels of those predicates joined with " + ".
    """

    triggered: bool
    rule_ids: tuple[int, ...] = ()
    signals: tuple[RiskSignal, ...] = ()
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "triggered": self.triggered,
            "rule_ids": list(self.rule_ids),
            "signals": [s.value for s in self.signals],
            "reason": self.reason,
        }


# -----------------------------------------------------------------------------
# Factor and evaluation reports
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class FactorReport:
    factor: str
    status: FactorStatus
    score_impact: int
    reason: str

    def describe(self) -> str:
        sign = "+" if self.score_impact > 0 else ""
        return f"{self.factor}: {self.reason} ({sign}{self.score_impact} points)"

    def to_dict(self) -> dict[str, Any]:
        return {
            "factor": self.factor,
            "status": self.status.value,
            "score_impact": self.score_impact,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class TrustEvaluationReport:
    user_id: str
    total_score: int
    final_status: TrustStatus
    factors: tuple[FactorReport, ...]
    is_hard_blocked: bool
    bot_report: BotDetectionReport | None = None
    hard_block: HardBlockResult | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def should_allow_access(self) -> bool:
        return self.final_status is TrustStatus.TRUSTED and not self.is_hard_blocked

    @property
    def requires_reverification(self) -> bool:
        bot_suspicious = self.bot_report is not None and self.bot_report.result.is_suspicious
        return self.final_status is TrustStatus.REVERIFY_IDENTITY or bot_suspicious

    @property
    def should_block(self) -> bool:
        return self.final_status is TrustStatus.BLOCKED or self.is_hard_blocked

    def failing_reasons(self) -> list[str]:
        """Reasons of factors that cost points, in evaluation order."""
        return [f.reason for f in self.factors if f.status is FactorStatus.FAILURE]

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "total_score": self.total_score,
            "final_status": self.final_status.value,
            "factors": [f.to_dict() for f in self.factors],
            "is_hard_blocked": self.is_hard_blocked,
            "bot_detection": self.bot_report.to_dict() if self.bot_report else None,
            "hard_block": self.hard_block.to_dict() if self.hard_block else None,
            "timestamp": self.timestamp.isoformat(),
        }
