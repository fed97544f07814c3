"""
Attribute baseline learning: propose the baseline to store after an evaluation.

The proposal is a new record; the caller decides whether to persist it (it is
skipped after a hard block).
"""

from __future__ import annotations

from dataclasses import replace

from trustgate.signals.baselines import AttributeBaseline, ip_range_for
from trustgate.signals.models import SignalSnapshot

LOGIN_WINDOW_HOURS = 2


def initial_login_window(hour: int) -> tuple[int, int]:
    return max(0, hour - LOGIN_WINDOW_HOURS), min(23, hour + LOGIN_WINDOW_HOURS)


def propose_baseline_update(
    existing: AttributeBaseline | None,
    signals: SignalSnapshot,
    user_id: str,
) -> AttributeBaseline:
    """
    Fold the current snapshot into the attribute baseline.

    VPN state, network type and timezone take the current values. The current
    IP range is appended when not yet known. The login window is only set when
    the baseline is first created.
    """
    ip_range = ip_range_for(signals.ip_address)

    if existing is None:
        start, end = initial_login_window(signals.local_hour)
        return AttributeBaseline(
            user_id=user_id,
            device_id=signals.device_id,
            normal_vpn_state=signals.is_vpn_enabled,
            normal_network_type=signals.network_type,
            known_ip_ranges=(ip_range,) if ip_range else (),
            normal_timezone=signals.timezone,
            login_hour_start=start,
            login_hour_end=end,
            created_at=signals.captured_at,
            updated_at=signals.captured_at,
        )

    known = existing.known_ip_ranges
    if ip_range and ip_range not in known:
        known = known + (ip_range,)
    return replace(
        existing,
        normal_vpn_state=signals.is_vpn_enabled,
        normal_network_type=signals.network_type,
        known_ip_ranges=known,
        normal_timezone=signals.timezone,
        updated_at=signals.captured_at,
    )
