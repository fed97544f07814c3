"""
Data models for behavioral decay tracking.

A decay snapshot compares the current trust score with the previous one for
the same user+device and attributes the drop to the factors that lost points.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class DecaySeverity(str, Enum):
    """Severity tier of a score drop; independent of the absolute-score decision."""

    NONE = "none"
    MINIMAL = "minimal"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class DecaySnapshotResult:
    """
    Result of comparing two successive trust scores.

    decay_amount: previous - current; negative means the score improved.
    *_decay: negative delta of that factor in the current evaluation, else 0.
    """

    previous_score: int
    current_score: int
    decay_amount: int
    severity: DecaySeverity
    location_decay: int = 0
    vpn_decay: int = 0
    network_decay: int = 0
    timezone_decay: int = 0
    ip_decay: int = 0
    login_time_decay: int = 0
    jailbreak_decay: int = 0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def total_attribute_decay(self) -> int:
        return (
            self.location_decay
            + self.vpn_decay
            + self.network_decay
            + self.timezone_decay
            + self.ip_decay
            + self.login_time_decay
            + self.jailbreak_decay
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "previous_score": self.previous_score,
            "current_score": self.current_score,
            "decay_amount": self.decay_amount,
            "severity": self.severity.value,
            "location_decay": self.location_decay,
            "vpn_decay": self.vpn_decay,
            "network_decay": self.network_decay,
            "timezone_decay": self.timezone_decay,
            "ip_decay": self.ip_decay,
            "login_time_decay": self.login_time_decay,
            "jailbreak_decay": self.jailbreak_decay,
            "total_attribute_decay": self.total_attribute_decay,
            "timestamp": self.timestamp.isoformat(),
        }
