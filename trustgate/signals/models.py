"""
Signal snapshot model: one immutable record of everything collected for a
single trust evaluation.

The snapshot carries both the live readings (device, network, motion,
attestation) and the stored values they are compared against. It is built
once by the collector layer and never mutated; the engine only reads it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from trustgate.core.exceptions import InvalidSignalError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NetworkType(str, Enum):
    WIFI = "wifi"
    CELLULAR = "cellular"
    NONE = "none"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str | NetworkType | None) -> NetworkType:
        """Case-insensitive parse ("WiFi" -> WIFI); anything unrecognized is UNKNOWN."""
        if isinstance(raw, NetworkType):
            return raw
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


class MotionState(str, Enum):
    STILL = "still"
    MOVING = "moving"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str | MotionState | None) -> MotionState:
        if isinstance(raw, MotionState):
            return raw
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return cls.UNKNOWN


class DeviceType(str, Enum):
    """Set by the external device classifier; primary = first registered device."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class AttestRiskTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    UNKNOWN = "unknown"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidSignalError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidSignalError(f"longitude out of range: {self.longitude}")

    @classmethod
    def from_string(cls, raw: str | None) -> GeoPoint | None:
        """Parse "lat,lon"; None when absent or malformed."""
        if not raw:
            return None
        parts = raw.split(",")
        if len(parts) != 2:
            return None
        try:
            return cls(float(parts[0]), float(parts[1]))
        except (ValueError, InvalidSignalError):
            return None

    def to_dict(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class AttestationVerdict:
    """
    Integrity verdict produced by the attestation service, consumed as data.

    risk_tier is kept as the raw (lower-cased) string: the factor scoring has
    a distinct penalty for tiers it does not recognize.
    """

    verified: bool = False
    score: int = 0
    risk_tier: str = AttestRiskTier.UNSUPPORTED.value
    key_id: str | None = None

    def __post_init__(self) -> None:
        if not 0 <= self.score <= 100:
            raise InvalidSignalError(f"attestation score out of range: {self.score}")
        object.__setattr__(self, "risk_tier", (self.risk_tier or "").strip().lower())

    @classmethod
    def unsupported(cls) -> AttestationVerdict:
        return cls(verified=False, score=0, risk_tier=AttestRiskTier.UNSUPPORTED.value)

    @classmethod
    def unknown(cls, key_id: str | None = None) -> AttestationVerdict:
        """Sentinel for a failed or timed-out verification."""
        return cls(verified=False, score=0, risk_tier=AttestRiskTier.UNKNOWN.value, key_id=key_id)

    @property
    def tier(self) -> AttestRiskTier | None:
        """Known tier, or None when the service returned something unrecognized."""
        try:
            return AttestRiskTier(self.risk_tier)
        except ValueError:
            return None

    @property
    def is_supported(self) -> bool:
        return self.risk_tier != AttestRiskTier.UNSUPPORTED.value

    @property
    def is_medium_risk(self) -> bool:
        return self.risk_tier == AttestRiskTier.MEDIUM.value

    @property
    def has_low_score(self) -> bool:
        """Score strictly between 0 and 50; 0 means no score was reported."""
        return 0 < self.score < 50

    def to_dict(self) -> dict[str, Any]:
        return {
            "verified": self.verified,
            "score": self.score,
            "risk_tier": self.risk_tier,
            "key_id": self.key_id,
        }


@dataclass(frozen=True)
class SignalSnapshot:
    """
    Trust signals for one evaluation.

    stored_* fields are the values recorded for this user at registration or
    last verification; mismatch predicates compare against them.
    """

    device_id: str
    email: str
    timezone: str
    ip_address: str
    stored_device_id: str | None = None
    stored_email: str | None = None
    stored_timezone: str | None = None
    stored_ip_address: str | None = None
    stored_os_version: str | None = None
    is_jailbroken: bool = False
    is_vpn_enabled: bool = False
    is_user_interacting: bool = False
    uptime_seconds: float = 0.0
    location: GeoPoint | None = None
    battery_level: float | None = None
    os_version: str = ""
    network_type: NetworkType = NetworkType.UNKNOWN
    motion_state: MotionState = MotionState.UNKNOWN
    motion_magnitude: float = 0.0
    attestation: AttestationVerdict = field(default_factory=AttestationVerdict.unsupported)
    captured_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.uptime_seconds < 0:
            raise InvalidSignalError(f"uptime_seconds must be >= 0, got {self.uptime_seconds}")
        object.__setattr__(self, "network_type", NetworkType.parse(self.network_type))
        object.__setattr__(self, "motion_state", MotionState.parse(self.motion_state))
        if self.captured_at.tzinfo is None:
            object.__setattr__(self, "captured_at", self.captured_at.replace(tzinfo=timezone.utc))

    @property
    def uptime_minutes(self) -> int:
        return int(self.uptime_seconds // 60)

    @property
    def is_new_device(self) -> bool:
        return self.device_id != self.stored_device_id

    @property
    def email_mismatch(self) -> bool:
        return self.email != self.stored_email

    @property
    def timezone_mismatch(self) -> bool:
        return self.timezone != self.stored_timezone

    @property
    def ip_mismatch(self) -> bool:
        return self.ip_address != self.stored_ip_address

    @property
    def local_hour(self) -> int:
        """Hour of capture in the device's timezone; UTC hour if the zone is unknown."""
        try:
            zone = ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            return self.captured_at.astimezone(timezone.utc).hour
        return self.captured_at.astimezone(zone).hour

    def to_dict(self) -> dict[str, Any]:
        return {
            "device_id": self.device_id,
            "email": self.email,
            "timezone": self.timezone,
            "ip_address": self.ip_address,
            "stored_device_id": self.stored_device_id,
            "stored_email": self.stored_email,
            "stored_timezone": self.stored_timezone,
            "stored_ip_address": self.stored_ip_address,
            "stored_os_version": self.stored_os_version,
            "is_jailbroken": self.is_jailbroken,
            "is_vpn_enabled": self.is_vpn_enabled,
            "is_user_interacting": self.is_user_interacting,
            "uptime_seconds": self.uptime_seconds,
            "location": self.location.to_dict() if self.location else None,
            "battery_level": self.battery_level,
            "os_version": self.os_version,
            "network_type": self.network_type.value,
            "motion_state": self.motion_state.value,
            "motion_magnitude": self.motion_magnitude,
            "attestation": self.attestation.to_dict(),
            "captured_at": self.captured_at.isoformat(),
        }
