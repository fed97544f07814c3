"""
Baseline, cluster and decay-history store interfaces with in-memory backends.

The verifier only talks to the abstract interfaces; swap in the SQLAlchemy
backends (database/sql_store.py) for persistence across processes.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod

from trustgate.behavioral_memory.models import DecaySnapshotResult
from trustgate.signals.baselines import AttributeBaseline, LocationCluster, ScoreBaseline
from trustgate.signals.models import DeviceType

DEFAULT_DECAY_HISTORY_LIMIT = 50


# -----------------------------------------------------------------------------
# Abstract interfaces
# -----------------------------------------------------------------------------


class BaselineStore(ABC):
    """Attribute baselines, score baselines and decay history."""

    @abstractmethod
    def get_attribute_baseline(self, user_id: str, device_id: str) -> AttributeBaseline | None:
        """Return the attribute baseline for user+device, or None on first login."""
        ...

    @abstractmethod
    def save_attribute_baseline(self, baseline: AttributeBaseline) -> None:
        """Insert or replace the attribute baseline for baseline.user_id+device_id."""
        ...

    @abstractmethod
    def get_score_baseline(
        self,
        user_id: str,
        device_id: str,
        device_type: DeviceType,
    ) -> ScoreBaseline | None:
        """
        Return the previous-score record. Primary devices share one record per
        user; each secondary device has its own.
        """
        ...

    @abstractmethod
    def save_score_baseline(self, baseline: ScoreBaseline) -> None:
        """Insert or replace the score record in the scope of baseline.device_type."""
        ...

    @abstractmethod
    def record_decay_snapshot(self, user_id: str, device_id: str, result: DecaySnapshotResult) -> None:
        """Append a decay snapshot to the history."""
        ...

    @abstractmethod
    def list_decay_history(
        self,
        user_id: str,
        device_id: str,
        *,
        limit: int = DEFAULT_DECAY_HISTORY_LIMIT,
    ) -> list[DecaySnapshotResult]:
        """Return decay snapshots for user+device, newest first."""
        ...


class LocationClusterStore(ABC):
    """Learned location clusters, scoped per user."""

    @abstractmethod
    def clusters_for(self, user_id: str) -> list[LocationCluster]:
        ...

    @abstractmethod
    def add(self, cluster: LocationCluster) -> None:
        """Insert or replace a cluster by cluster_id."""
        ...


def score_scope_key(user_id: str, device_id: str, device_type: DeviceType) -> tuple[str, str]:
    """Key of the score record: (user, "") for primary, (user, device) for secondary."""
    if DeviceType(device_type) is DeviceType.PRIMARY:
        return user_id, ""
    return user_id, device_id


# -----------------------------------------------------------------------------
# In-memory backends
# -----------------------------------------------------------------------------


class InMemoryBaselineStore(BaselineStore):
    """Process-local store; every operation holds one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._attributes: dict[tuple[str, str], AttributeBaseline] = {}
        self._scores: dict[tuple[DeviceType, str, str], ScoreBaseline] = {}
        self._decay: dict[tuple[str, str], list[DecaySnapshotResult]] = {}

    def get_attribute_baseline(self, user_id: str, device_id: str) -> AttributeBaseline | None:
        with self._lock:
            return self._attributes.get((user_id, device_id))

    def save_attribute_baseline(self, baseline: AttributeBaseline) -> None:
        with self._lock:
            self._attributes[(baseline.user_id, baseline.device_id)] = baseline

    def get_score_baseline(
        self,
        user_id: str,
        device_id: str,
        device_type: DeviceType,
    ) -> ScoreBaseline | None:
        key = (DeviceType(device_type), *score_scope_key(user_id, device_id, device_type))
        with self._lock:
            return self._scores.get(key)

    def save_score_baseline(self, baseline: ScoreBaseline) -> None:
        key = (
            DeviceType(baseline.device_type),
            *score_scope_key(baseline.user_id, baseline.device_id, baseline.device_type),
        )
        with self._lock:
            self._scores[key] = baseline

    def record_decay_snapshot(self, user_id: str, device_id: str, result: DecaySnapshotResult) -> None:
        with self._lock:
            self._decay.setdefault((user_id, device_id), []).append(result)

    def list_decay_history(
        self,
        user_id: str,
        device_id: str,
        *,
        limit: int = DEFAULT_DECAY_HISTORY_LIMIT,
    ) -> list[DecaySnapshotResult]:
        with self._lock:
            history = list(self._decay.get((user_id, device_id), ()))
        return list(reversed(history))[:limit]


class InMemoryClusterStore(LocationClusterStore):
    def __init__(self, clusters: list[LocationCluster] | None = None) -> None:
        self._lock = threading.Lock()
        self._clusters: dict[str, LocationCluster] = {}
        for cluster in clusters or ():
            self.add(cluster)

    def clusters_for(self, user_id: str) -> list[LocationCluster]:
        with self._lock:
            return [c for c in self._clusters.values() if c.user_id == user_id]

    def add(self, cluster: LocationCluster) -> None:
        with self._lock:
            self._clusters[cluster.cluster_id] = cluster
