"""
SQLAlchemy-backed baseline and cluster stores.

Uses the configured database URL (TRUSTGATE_DB_URL / DATABASE_URL, else a
SQLite file). One session per operation; commits on success, rolls back on
error. Driver errors surface as BaselineStoreError.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from trustgate.behavioral_memory.models import DecaySeverity, DecaySnapshotResult
from trustgate.config import get_settings
from trustgate.core.exceptions import BaselineStoreError
from trustgate.database.models import (
    AttributeBaselineRow,
    Base,
    DecaySnapshotRow,
    LocationClusterRow,
    SecondaryDeviceBaselineRow,
    TrustBaselineRow,
)
from trustgate.database.stores import (
    DEFAULT_DECAY_HISTORY_LIMIT,
    BaselineStore,
    LocationClusterStore,
)
from trustgate.signals.baselines import AttributeBaseline, LocationCluster, ScoreBaseline
from trustgate.signals.models import DeviceType, GeoPoint
from trustgate.trustgate_logging import get_logger

logger = get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    """Stored values are UTC; SQLite hands them back naive."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _redact_url(url: str) -> str:
    return url.split("?")[0].split("//")[-1].split("@")[-1]


def create_store_engine(database_url: str | None = None) -> Engine:
    """Create an engine for the given URL (default: settings.database_url)."""
    url = database_url or get_settings().database_url
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
    logger.info("baseline_store_engine", url=_redact_url(url))
    return engine


class _SqlStoreBase:
    def __init__(self, database_url: str | None = None, *, engine: Engine | None = None) -> None:
        self._engine = engine or create_store_engine(database_url)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    def init_db(self) -> None:
        """Create tables if they do not exist. Safe to call on every startup."""
        try:
            Base.metadata.create_all(bind=self._engine)
        except SQLAlchemyError as e:
            logger.exception("baseline_store_init_failed", error=str(e))
            raise BaselineStoreError("init_db", str(e)) from e
        logger.info("baseline_store_init_db", url=_redact_url(str(self._engine.url)))

    @contextmanager
    def _session_scope(self, operation: str) -> Iterator[Session]:
        """Single session per operation. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception("baseline_store_operation_failed", operation=operation, error=str(e))
            raise BaselineStoreError(operation, str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# -----------------------------------------------------------------------------
# Row <-> record conversion
# -----------------------------------------------------------------------------


def _attribute_from_row(row: AttributeBaselineRow) -> AttributeBaseline:
    return AttributeBaseline(
        user_id=row.user_id,
        device_id=row.device_id,
        normal_vpn_state=bool(row.normal_vpn_state),
        normal_network_type=row.normal_network_type,
        known_ip_ranges=tuple(row.known_ip_ranges or ()),
        normal_timezone=row.normal_timezone or "",
        login_hour_start=row.login_hour_start,
        login_hour_end=row.login_hour_end,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _score_from_row(
    row: TrustBaselineRow | SecondaryDeviceBaselineRow,
    device_type: DeviceType,
) -> ScoreBaseline:
    return ScoreBaseline(
        user_id=row.user_id,
        device_id=row.device_id,
        device_type=device_type,
        last_trust_score=row.last_trust_score,
        last_login_at=_as_utc(row.last_login_at),
    )


def _decay_from_row(row: DecaySnapshotRow) -> DecaySnapshotResult:
    return DecaySnapshotResult(
        previous_score=row.previous_score,
        current_score=row.current_score,
        decay_amount=row.decay_amount,
        severity=DecaySeverity(row.severity),
        location_decay=row.location_decay,
        vpn_decay=row.vpn_decay,
        network_decay=row.network_decay,
        timezone_decay=row.timezone_decay,
        ip_decay=row.ip_decay,
        login_time_decay=row.login_time_decay,
        jailbreak_decay=row.jailbreak_decay,
        timestamp=_as_utc(row.created_at),
    )


def _cluster_from_row(row: LocationClusterRow) -> LocationCluster:
    return LocationCluster(
        cluster_id=row.cluster_id,
        user_id=row.user_id,
        center=GeoPoint(row.latitude, row.longitude),
        radius_m=row.radius_m,
        visit_count=row.visit_count,
        total_duration_minutes=row.total_duration_minutes,
    )


# -----------------------------------------------------------------------------
# Stores
# -----------------------------------------------------------------------------


class SqlBaselineStore(_SqlStoreBase, BaselineStore):
    def get_attribute_baseline(self, user_id: str, device_id: str) -> AttributeBaseline | None:
        with self._session_scope("get_attribute_baseline") as session:
            row = (
                session.query(AttributeBaselineRow)
                .filter(AttributeBaselineRow.user_id == user_id, AttributeBaselineRow.device_id == device_id)
                .first()
            )
            return _attribute_from_row(row) if row else None

    def save_attribute_baseline(self, baseline: AttributeBaseline) -> None:
        with self._session_scope("save_attribute_baseline") as session:
            row = (
                session.query(AttributeBaselineRow)
                .filter(
                    AttributeBaselineRow.user_id == baseline.user_id,
                    AttributeBaselineRow.device_id == baseline.device_id,
                )
                .first()
            )
            if row is None:
                row = AttributeBaselineRow(
                    user_id=baseline.user_id,
                    device_id=baseline.device_id,
                    created_at=_as_utc(baseline.created_at),
                )
                session.add(row)
            row.normal_vpn_state = baseline.normal_vpn_state
            row.normal_network_type = baseline.normal_network_type.value
            row.known_ip_ranges = list(baseline.known_ip_ranges)
            row.normal_timezone = baseline.normal_timezone
            row.login_hour_start = baseline.login_hour_start
            row.login_hour_end = baseline.login_hour_end
            row.updated_at = _as_utc(baseline.updated_at)
        logger.debug(
            "attribute_baseline_saved",
            user_id=baseline.user_id,
            device_id=baseline.device_id,
            ip_ranges=len(baseline.known_ip_ranges),
        )

    def get_score_baseline(
        self,
        user_id: str,
        device_id: str,
        device_type: DeviceType,
    ) -> ScoreBaseline | None:
        device_type = DeviceType(device_type)
        with self._session_scope("get_score_baseline") as session:
            if device_type is DeviceType.PRIMARY:
                row = session.query(TrustBaselineRow).filter(TrustBaselineRow.user_id == user_id).first()
            else:
                row = (
                    session.query(SecondaryDeviceBaselineRow)
                    .filter(
                        SecondaryDeviceBaselineRow.user_id == user_id,
                        SecondaryDeviceBaselineRow.device_id == device_id,
                    )
                    .first()
                )
            return _score_from_row(row, device_type) if row else None

    def save_score_baseline(self, baseline: ScoreBaseline) -> None:
        device_type = DeviceType(baseline.device_type)
        with self._session_scope("save_score_baseline") as session:
            if device_type is DeviceType.PRIMARY:
                row = session.query(TrustBaselineRow).filter(TrustBaselineRow.user_id == baseline.user_id).first()
                if row is None:
                    row = TrustBaselineRow(user_id=baseline.user_id)
                    session.add(row)
            else:
                row = (
                    session.query(SecondaryDeviceBaselineRow)
                    .filter(
                        SecondaryDeviceBaselineRow.user_id == baseline.user_id,
                        SecondaryDeviceBaselineRow.device_id == baseline.device_id,
                    )
                    .first()
                )
                if row is None:
                    row = SecondaryDeviceBaselineRow(user_id=baseline.user_id, device_id=baseline.device_id)
                    session.add(row)
            row.device_id = baseline.device_id
            row.last_trust_score = baseline.last_trust_score
            row.last_login_at = _as_utc(baseline.last_login_at)

    def record_decay_snapshot(self, user_id: str, device_id: str, result: DecaySnapshotResult) -> None:
        with self._session_scope("record_decay_snapshot") as session:
            session.add(
                DecaySnapshotRow(
                    user_id=user_id,
                    device_id=device_id,
                    previous_score=result.previous_score,
                    current_score=result.current_score,
                    decay_amount=result.decay_amount,
                    severity=result.severity.value,
                    location_decay=result.location_decay,
                    vpn_decay=result.vpn_decay,
                    network_decay=result.network_decay,
                    timezone_decay=result.timezone_decay,
                    ip_decay=result.ip_decay,
                    login_time_decay=result.login_time_decay,
                    jailbreak_decay=result.jailbreak_decay,
                    created_at=_as_utc(result.timestamp),
                )
            )

    def list_decay_history(
        self,
        user_id: str,
        device_id: str,
        *,
        limit: int = DEFAULT_DECAY_HISTORY_LIMIT,
    ) -> list[DecaySnapshotResult]:
        with self._session_scope("list_decay_history") as session:
            rows = (
                session.query(DecaySnapshotRow)
                .filter(DecaySnapshotRow.user_id == user_id, DecaySnapshotRow.device_id == device_id)
                .order_by(DecaySnapshotRow.id.desc())
                .limit(limit)
                .all()
            )
            return [_decay_from_row(r) for r in rows]


class SqlClusterStore(_SqlStoreBase, LocationClusterStore):
    def clusters_for(self, user_id: str) -> list[LocationCluster]:
        with self._session_scope("clusters_for") as session:
            rows = (
                session.query(LocationClusterRow)
                .filter(LocationClusterRow.user_id == user_id)
                .order_by(LocationClusterRow.id)
                .all()
            )
            return [_cluster_from_row(r) for r in rows]

    def add(self, cluster: LocationCluster) -> None:
        with self._session_scope("add_cluster") as session:
            row = session.query(LocationClusterRow).filter(LocationClusterRow.cluster_id == cluster.cluster_id).first()
            if row is None:
                row = LocationClusterRow(cluster_id=cluster.cluster_id)
                session.add(row)
            row.user_id = cluster.user_id
            row.latitude = cluster.center.latitude
            row.longitude = cluster.center.longitude
            row.radius_m = cluster.radius_m
            row.visit_count = cluster.visit_count
            row.total_duration_minutes = cluster.total_duration_minutes
