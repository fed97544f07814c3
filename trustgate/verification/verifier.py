"""
Verification orchestration: read baselines, evaluate, track decay, apply the
decay policy and write the baselines back.

Evaluations that share a score record (every primary device of a user, or one
secondary device) are serialized with a keyed lock so the previous score read
here is always the one the prior evaluation wrote. Lock entries are dropped
once no thread holds or waits on them.
Store failures never hide a computed decision; they are logged and reported
in the outcome.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

from trustgate.analysis_engine import evaluate_trust
from trustgate.analysis_engine.models import TrustEvaluationReport, TrustStatus
from trustgate.behavioral_memory import propose_baseline_update, track_decay
from trustgate.behavioral_memory.models import DecaySeverity, DecaySnapshotResult
from trustgate.config import Settings, get_settings
from trustgate.core.exceptions import BaselineStoreError
from trustgate.database.stores import BaselineStore, LocationClusterStore, score_scope_key
from trustgate.signals.attestation import AttestationOracle, fetch_attestation
from trustgate.signals.baselines import AttributeBaseline, ScoreBaseline
from trustgate.signals.models import AttestationVerdict, DeviceType, SignalSnapshot
from trustgate.trustgate_logging import bind_user, evaluation_context


class NextAction(str, Enum):
    """What the session layer should do with the decision."""

    ALLOW_ACCESS = "allow_access"
    REQUIRE_REVERIFICATION = "require_reverification"
    BLOCK_ACCESS = "block_access"
    TERMINATE_SESSION = "terminate_session"
    REMOVE_DEVICE = "remove_device"


_ACTION_FOR_STATUS = {
    TrustStatus.TRUSTED: NextAction.ALLOW_ACCESS,
    TrustStatus.REVERIFY_IDENTITY: NextAction.REQUIRE_REVERIFICATION,
    TrustStatus.BLOCKED: NextAction.BLOCK_ACCESS,
}

_SEVERE_DECAY = (DecaySeverity.HIGH, DecaySeverity.CRITICAL)


@dataclass
class _LockEntry:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


@dataclass(frozen=True)
class TrustDecision:
    status: TrustStatus
    score: int
    reasons: tuple[str, ...]
    next_action: NextAction

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "score": self.score,
            "reasons": list(self.reasons),
            "next_action": self.next_action.value,
        }


@dataclass(frozen=True)
class VerificationOutcome:
    report: TrustEvaluationReport
    decay: DecaySnapshotResult
    decision: TrustDecision
    baseline_persisted: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "report": self.report.to_dict(),
            "decay": self.decay.to_dict(),
            "decision": self.decision.to_dict(),
            "baseline_persisted": self.baseline_persisted,
        }


def decide(
    report: TrustEvaluationReport,
    decay: DecaySnapshotResult,
    device_type: DeviceType,
    *,
    terminate_on_critical_decay: bool = True,
) -> TrustDecision:
    """
    Combine the absolute-score status with the decay severity.

    - hard block or blocked score: blocked, block_access
    - primary device: critical decay terminates the session, high decay forces
      re-verification
    - secondary device: high or critical decay removes the device
    """
    reasons = list(report.failing_reasons())
    device_type = DeviceType(device_type)
    severity = decay.severity
    decay_reason = f"Trust dropped {decay.decay_amount} points ({severity.value} decay)"

    if report.should_block:
        return TrustDecision(TrustStatus.BLOCKED, report.total_score, tuple(reasons), NextAction.BLOCK_ACCESS)

    if device_type is DeviceType.PRIMARY:
        if severity is DecaySeverity.CRITICAL and terminate_on_critical_decay:
            return TrustDecision(
                TrustStatus.BLOCKED,
                report.total_score,
                tuple([decay_reason, *reasons]),
                NextAction.TERMINATE_SESSION,
            )
        if severity in _SEVERE_DECAY:
            return TrustDecision(
                TrustStatus.REVERIFY_IDENTITY,
                report.total_score,
                tuple([decay_reason, *reasons]),
                NextAction.REQUIRE_REVERIFICATION,
            )
    elif severity in _SEVERE_DECAY:
        return TrustDecision(
            TrustStatus.BLOCKED,
            report.total_score,
            tuple([decay_reason, *reasons]),
            NextAction.REMOVE_DEVICE,
        )

    status = report.final_status
    return TrustDecision(status, report.total_score, tuple(reasons), _ACTION_FOR_STATUS[status])


class TrustVerifier:
    """
    Runs one verification per call against injected stores.

    Args:
        baselines: Attribute/score baseline and decay history store.
        clusters: Location cluster store (read-only here).
        attestation_oracle: Optional attestation service for acquire_attestation.
        settings: Defaults to get_settings().
    """

    def __init__(
        self,
        baselines: BaselineStore,
        clusters: LocationClusterStore,
        *,
        attestation_oracle: AttestationOracle | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._baselines = baselines
        self._clusters = clusters
        self._oracle = attestation_oracle
        self._settings = settings or get_settings()
        self._locks: dict[tuple[str, str], _LockEntry] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _score_scope_locked(self, user_id: str, device_id: str, device_type: DeviceType) -> Iterator[None]:
        """Hold the lock of the score record this evaluation reads and writes."""
        key = score_scope_key(user_id, device_id, device_type)
        with self._locks_guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = self._locks[key] = _LockEntry()
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._locks[key]

    def acquire_attestation(self, key_id: str | None) -> AttestationVerdict:
        """Fetch a verdict from the configured oracle with the configured timeout."""
        return fetch_attestation(self._oracle, key_id, timeout_s=self._settings.attestation_timeout_s)

    def verify(
        self,
        signals: SignalSnapshot,
        user_id: str,
        device_type: DeviceType = DeviceType.PRIMARY,
    ) -> VerificationOutcome:
        """
        Evaluate a snapshot for a user and apply the decay policy.

        Returns:
            VerificationOutcome. baseline_persisted is False when the store
            could not be read or written; the decision is still valid.
        """
        device_type = DeviceType(device_type)
        log = bind_user(user_id, signals.device_id)

        scope_lock = self._score_scope_locked(user_id, signals.device_id, device_type)
        with scope_lock, evaluation_context(user_id, signals.device_id):
            store_ok = True
            attribute_baseline: AttributeBaseline | None = None
            score_baseline: ScoreBaseline | None = None
            clusters = []
            try:
                attribute_baseline = self._baselines.get_attribute_baseline(user_id, signals.device_id)
                score_baseline = self._baselines.get_score_baseline(user_id, signals.device_id, device_type)
                clusters = self._clusters.clusters_for(user_id)
            except BaselineStoreError as e:
                store_ok = False
                log.error("baseline_read_failed", operation=e.operation, error=str(e))

            report = evaluate_trust(
                signals,
                user_id,
                attribute_baseline=attribute_baseline,
                clusters=clusters,
                device_type=device_type,
                has_device_history=score_baseline is not None,
            )
            previous = score_baseline.last_trust_score if score_baseline else report.total_score
            decay = track_decay(previous, report.total_score, report.factors)
            decision = decide(
                report,
                decay,
                device_type,
                terminate_on_critical_decay=self._settings.terminate_on_critical_decay,
            )

            persisted = False
            if store_ok and not report.is_hard_blocked:
                persisted = self._persist(signals, user_id, device_type, report, decay, attribute_baseline, log)

        log.info(
            "verification_completed",
            device_type=device_type.value,
            score=report.total_score,
            status=decision.status.value,
            next_action=decision.next_action.value,
            decay_severity=decay.severity.value,
            baseline_persisted=persisted,
        )
        return VerificationOutcome(report=report, decay=decay, decision=decision, baseline_persisted=persisted)

    def _persist(
        self,
        signals: SignalSnapshot,
        user_id: str,
        device_type: DeviceType,
        report: TrustEvaluationReport,
        decay: DecaySnapshotResult,
        attribute_baseline: AttributeBaseline | None,
        log: Any,
    ) -> bool:
        # Score first: a decay snapshot is only recorded for a score that was stored.
        try:
            self._baselines.save_score_baseline(
                ScoreBaseline(
                    user_id=user_id,
                    device_id=signals.device_id,
                    device_type=device_type,
                    last_trust_score=report.total_score,
                    last_login_at=signals.captured_at,
                )
            )
            self._baselines.record_decay_snapshot(user_id, signals.device_id, decay)
            self._baselines.save_attribute_baseline(
                propose_baseline_update(attribute_baseline, signals, user_id)
            )
        except BaselineStoreError as e:
            log.error("baseline_persist_failed", operation=e.operation, error=str(e))
            return False
        return True
