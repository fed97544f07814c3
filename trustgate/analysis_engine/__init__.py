# Trust scoring & decision engine: liveness, hard-block rules, weighted factors,
# location trust and the decision table. Pure functions; no storage access.

from trustgate.analysis_engine.bot_detector import classify_liveness
from trustgate.analysis_engine.decision import (
    REVERIFY_THRESHOLD,
    TRUSTED_THRESHOLD,
    classify_trust,
)
from trustgate.analysis_engine.evaluator import evaluate_trust
from trustgate.analysis_engine.factors import (
    SCORE_CEILING,
    SCORE_FLOOR,
    attestation_points,
    score_factors,
)
from trustgate.analysis_engine.hard_block import check_hard_block
from trustgate.analysis_engine.location_trust import evaluate_location_trust
from trustgate.analysis_engine.models import (
    Bot,
    BotDetectionReport,
    BotVerdict,
    FactorReport,
    FactorStatus,
    HardBlockResult,
    Human,
    RiskSignal,
    Suspicious,
    TrustEvaluationReport,
    TrustStatus,
    Unknown,
)

__all__ = [
    "Bot",
    "BotDetectionReport",
    "BotVerdict",
    "FactorReport",
    "FactorStatus",
    "HardBlockResult",
    "Human",
    "REVERIFY_THRESHOLD",
    "RiskSignal",
    "SCORE_CEILING",
    "SCORE_FLOOR",
    "Suspicious",
    "TRUSTED_THRESHOLD",
    "TrustEvaluationReport",
    "TrustStatus",
    "Unknown",
    "attestation_points",
    "check_hard_block",
    "classify_liveness",
    "classify_trust",
    "evaluate_location_trust",
    "evaluate_trust",
    "score_factors",
]
