"""
Pytest fixtures for TrustGate tests: snapshot and baseline builders, in-memory
stores, and a temporary SQLite baseline store.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from trustgate.signals.baselines import AttributeBaseline, LocationCluster
from trustgate.signals.models import GeoPoint, MotionState, NetworkType, SignalSnapshot

USER_ID = "user-7f3a9c2e41"
DEVICE_ID = "device-A1B2C3D4"
EMAIL = "jane@example.com"
TZ = "Europe/Berlin"
IP = "84.12.33.7"
HOME = GeoPoint(52.5200, 13.4050)
# 10:15 in Berlin (CET, UTC+1)
CAPTURED_AT = datetime(2026, 1, 14, 9, 15, tzinfo=timezone.utc)


def build_snapshot(**overrides) -> SignalSnapshot:
    """A clean, returning-user snapshot: every comparison matches, human liveness."""
    values = dict(
        device_id=DEVICE_ID,
        email=EMAIL,
        timezone=TZ,
        ip_address=IP,
        stored_device_id=DEVICE_ID,
        stored_email=EMAIL,
        stored_timezone=TZ,
        stored_ip_address=IP,
        stored_os_version="17.2",
        is_jailbroken=False,
        is_vpn_enabled=False,
        is_user_interacting=True,
        uptime_seconds=6 * 3600,
        location=HOME,
        battery_level=0.8,
        os_version="17.2",
        network_type=NetworkType.WIFI,
        motion_state=MotionState.STILL,
        captured_at=CAPTURED_AT,
    )
    values.update(overrides)
    return SignalSnapshot(**values)


def build_baseline(**overrides) -> AttributeBaseline:
    """Attribute baseline matching build_snapshot()."""
    values = dict(
        user_id=USER_ID,
        device_id=DEVICE_ID,
        normal_vpn_state=False,
        normal_network_type=NetworkType.WIFI,
        known_ip_ranges=("84.12.0.0/16",),
        normal_timezone=TZ,
        login_hour_start=8,
        login_hour_end=12,
        created_at=CAPTURED_AT,
        updated_at=CAPTURED_AT,
    )
    values.update(overrides)
    return AttributeBaseline(**values)


def build_cluster(**overrides) -> LocationCluster:
    """Trusted home cluster for USER_ID."""
    values = dict(
        cluster_id="cluster-home",
        user_id=USER_ID,
        center=HOME,
        radius_m=700.0,
        visit_count=12,
        total_duration_minutes=900.0,
    )
    values.update(overrides)
    return LocationCluster(**values)


@pytest.fixture
def snapshot():
    return build_snapshot()


@pytest.fixture
def baseline():
    return build_baseline()


@pytest.fixture
def home_cluster():
    return build_cluster()


@pytest.fixture
def memory_stores():
    """(baseline store, cluster store) held in memory."""
    from trustgate.database import InMemoryBaselineStore, InMemoryClusterStore

    return InMemoryBaselineStore(), InMemoryClusterStore()


@pytest.fixture
def settings(tmp_path):
    from trustgate.config import Settings

    return Settings(database_url=f"sqlite:///{tmp_path / 'trustgate.db'}")


@pytest.fixture
def sql_stores(tmp_path, monkeypatch):
    """
    SQL baseline and cluster stores on a temporary SQLite file. Unset
    TRUSTGATE_DB_URL / DATABASE_URL so the path setting is used.
    """
    monkeypatch.delenv("TRUSTGATE_DB_URL", raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("TRUSTGATE_DB_PATH", str(tmp_path / "trustgate.db"))

    from trustgate.config import get_settings
    from trustgate.database import SqlBaselineStore, SqlClusterStore, create_store_engine

    get_settings.cache_clear()
    engine = create_store_engine()
    baselines = SqlBaselineStore(engine=engine)
    clusters = SqlClusterStore(engine=engine)
    baselines.init_db()
    yield baselines, clusters
    engine.dispose()
    get_settings.cache_clear()
