"""
Baseline records read by the engine.

- AttributeBaseline: the last-known-normal profile for a user+device (VPN,
  network, IP ranges, timezone, login hours).
- ScoreBaseline: last recorded trust score for the primary device (keyed by
  user) or for one secondary device (keyed by user+device).
- LocationCluster: a learned geographic center; formation happens elsewhere.

The persistence layer owns these; the engine reads them and proposes
replacements, it never mutates one in place.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from trustgate.signals.models import DeviceType, GeoPoint, NetworkType

IPV4_RANGE_PREFIX = 16
IPV6_RANGE_PREFIX = 48

DEFAULT_CLUSTER_RADIUS_M = 700.0
TRUSTED_CLUSTER_MIN_VISITS = 3
TRUSTED_CLUSTER_MIN_MINUTES = 45.0


def ip_range_for(ip: str | None) -> str | None:
    """
    Return the CIDR range an address belongs to for baseline purposes
    (/16 for IPv4, /48 for IPv6). None for empty or malformed input.
    """
    try:
        addr = ipaddress.ip_address((ip or "").strip())
    except ValueError:
        return None
    prefix = IPV4_RANGE_PREFIX if addr.version == 4 else IPV6_RANGE_PREFIX
    return str(ipaddress.ip_network(f"{addr}/{prefix}", strict=False))


@dataclass(frozen=True)
class AttributeBaseline:
    user_id: str
    device_id: str
    normal_vpn_state: bool = False
    normal_network_type: NetworkType = NetworkType.WIFI
    known_ip_ranges: tuple[str, ...] = ()
    normal_timezone: str = ""
    login_hour_start: int = 0
    login_hour_end: int = 23
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        object.__setattr__(self, "normal_network_type", NetworkType.parse(self.normal_network_type))
        object.__setattr__(self, "known_ip_ranges", tuple(self.known_ip_ranges))

    def is_known_ip(self, ip: str | None) -> bool:
        try:
            addr = ipaddress.ip_address((ip or "").strip())
        except ValueError:
            return False
        for cidr in self.known_ip_ranges:
            network = ipaddress.ip_network(cidr, strict=False)
            if addr.version == network.version and addr in network:
                return True
        return False

    def is_normal_login_hour(self, hour: int) -> bool:
        return self.login_hour_start <= hour <= self.login_hour_end

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "device_id": self.device_id,
            "normal_vpn_state": self.normal_vpn_state,
            "normal_network_type": self.normal_network_type.value,
            "known_ip_ranges": list(self.known_ip_ranges),
            "normal_timezone": self.normal_timezone,
            "login_hour_start": self.login_hour_start,
            "login_hour_end": self.login_hour_end,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class ScoreBaseline:
    """Previous-score record. Exactly one live record per (user, device) scope."""

    user_id: str
    device_id: str
    device_type: DeviceType
    last_trust_score: int
    last_login_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "device_id": self.device_id,
            "device_type": self.device_type.value,
            "last_trust_score": self.last_trust_score,
            "last_login_at": self.last_login_at.isoformat(),
        }


@dataclass(frozen=True)
class LocationCluster:
    cluster_id: str
    user_id: str
    center: GeoPoint
    radius_m: float = DEFAULT_CLUSTER_RADIUS_M
    visit_count: int = 0
    total_duration_minutes: float = 0.0

    @property
    def is_trusted(self) -> bool:
        """Visited often enough, for long enough, to count as a trusted place."""
        return (
            self.visit_count >= TRUSTED_CLUSTER_MIN_VISITS
            and self.total_duration_minutes >= TRUSTED_CLUSTER_MIN_MINUTES
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "cluster_id": self.cluster_id,
            "user_id": self.user_id,
            "center": self.center.to_dict(),
            "radius_m": self.radius_m,
            "visit_count": self.visit_count,
            "total_duration_minutes": self.total_duration_minutes,
        }
