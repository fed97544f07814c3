# Session-to-session behavioral memory: score decay tracking and attribute
# baseline learning. Rule-based; no I/O.

from trustgate.behavioral_memory.baseline import propose_baseline_update
from trustgate.behavioral_memory.engine import (
    classify_decay_severity,
    track_decay,
)
from trustgate.behavioral_memory.models import (
    DecaySeverity,
    DecaySnapshotResult,
)

__all__ = [
    "DecaySeverity",
    "DecaySnapshotResult",
    "classify_decay_severity",
    "propose_baseline_update",
    "track_decay",
]
