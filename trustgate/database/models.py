"""
SQLAlchemy table models for the baseline store.

One row per (user, device) attribute baseline, one primary score row per user,
one secondary score row per (user, device), append-only decay history, and
location clusters keyed by cluster id.
"""

from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class AttributeBaselineRow(Base):
    __tablename__ = "attribute_baselines"
    __table_args__ = (UniqueConstraint("user_id", "device_id", name="uq_attribute_baseline_user_device"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)
    device_id = Column(String(128), nullable=False)
    normal_vpn_state = Column(Boolean, nullable=False, default=False)
    normal_network_type = Column(String(16), nullable=False, default="wifi")
    known_ip_ranges = Column(JSON, nullable=False, default=list)  # list of CIDR strings
    normal_timezone = Column(String(64), nullable=False, default="")
    login_hour_start = Column(Integer, nullable=False, default=0)
    login_hour_end = Column(Integer, nullable=False, default=23)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class TrustBaselineRow(Base):
    """Primary-device score record; one per user."""

    __tablename__ = "trust_baselines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), unique=True, nullable=False, index=True)
    device_id = Column(String(128), nullable=False)
    last_trust_score = Column(Integer, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=False)


class SecondaryDeviceBaselineRow(Base):
    """Secondary-device score record; one per (user, device)."""

    __tablename__ = "secondary_device_baselines"
    __table_args__ = (UniqueConstraint("user_id", "device_id", name="uq_secondary_baseline_user_device"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)
    device_id = Column(String(128), nullable=False)
    last_trust_score = Column(Integer, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=False)


class LocationClusterRow(Base):
    __tablename__ = "location_clusters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cluster_id = Column(String(64), unique=True, nullable=False)
    user_id = Column(String(128), nullable=False, index=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    radius_m = Column(Float, nullable=False)
    visit_count = Column(Integer, nullable=False, default=0)
    total_duration_minutes = Column(Float, nullable=False, default=0.0)


class DecaySnapshotRow(Base):
    """Append-only decay history."""

    __tablename__ = "decay_snapshots"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), nullable=False, index=True)
    device_id = Column(String(128), nullable=False, index=True)
    previous_score = Column(Integer, nullable=False)
    current_score = Column(Integer, nullable=False)
    decay_amount = Column(Integer, nullable=False)
    severity = Column(String(16), nullable=False)
    location_decay = Column(Integer, nullable=False, default=0)
    vpn_decay = Column(Integer, nullable=False, default=0)
    network_decay = Column(Integer, nullable=False, default=0)
    timezone_decay = Column(Integer, nullable=False, default=0)
    ip_decay = Column(Integer, nullable=False, default=0)
    login_time_decay = Column(Integer, nullable=False, default=0)
    jailbreak_decay = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
