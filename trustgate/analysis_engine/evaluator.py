"""
Trust evaluation pipeline: liveness -> hard block -> factors -> decision.

Pure and synchronous. Baselines and clusters are passed in by the caller;
nothing is read from or written to storage here.
"""

from __future__ import annotations

from typing import Iterable

from trustgate.analysis_engine.bot_detector import classify_liveness
from trustgate.analysis_engine.decision import classify_trust
from trustgate.analysis_engine.factors import score_factors, total_score
from trustgate.analysis_engine.hard_block import check_hard_block
from trustgate.analysis_engine.models import (
    FACTOR_HARD_BLOCK,
    HARD_BLOCK_IMPACT,
    FactorReport,
    FactorStatus,
    TrustEvaluationReport,
    TrustStatus,
)
from trustgate.signals.baselines import AttributeBaseline, LocationCluster
from trustgate.signals.models import DeviceType, SignalSnapshot
from trustgate.trustgate_logging import get_logger

logger = get_logger(__name__)


def evaluate_trust(
    signals: SignalSnapshot,
    user_id: str,
    attribute_baseline: AttributeBaseline | None = None,
    clusters: Iterable[LocationCluster] = (),
    device_type: DeviceType = DeviceType.PRIMARY,
    has_device_history: bool = True,
) -> TrustEvaluationReport:
    """
    Evaluate one signal snapshot.

    Args:
        signals: Snapshot to evaluate.
        user_id: Evaluating user; clusters must belong to this user.
        attribute_baseline: Baseline for this user+device, None on first login.
        clusters: The user's location clusters.
        device_type: Primary or secondary device.
        has_device_history: False when no score baseline exists for this device.

    Returns:
        TrustEvaluationReport. A hard block yields score 0, status blocked and
        a single "Hard Block" factor.
    """
    bot_report = classify_liveness(
        signals.is_user_interacting,
        signals.motion_state,
        signals.motion_magnitude,
    )

    hard_block = check_hard_block(signals, bot_report)
    if hard_block.triggered:
        report = TrustEvaluationReport(
            user_id=user_id,
            total_score=0,
            final_status=TrustStatus.BLOCKED,
            factors=(
                FactorReport(
                    FACTOR_HARD_BLOCK,
                    FactorStatus.FAILURE,
                    HARD_BLOCK_IMPACT,
                    f"SECURITY BLOCK: {hard_block.reason}",
                ),
            ),
            is_hard_blocked=True,
            bot_report=bot_report,
            hard_block=hard_block,
        )
        logger.info(
            "trust_evaluated",
            user_id=user_id,
            score=0,
            status=report.final_status.value,
            hard_blocked=True,
        )
        return report

    factors = score_factors(signals, bot_report, attribute_baseline, list(clusters))
    score = total_score(factors)
    status = classify_trust(score, device_type=device_type, has_device_history=has_device_history)
    report = TrustEvaluationReport(
        user_id=user_id,
        total_score=score,
        final_status=status,
        factors=tuple(factors),
        is_hard_blocked=False,
        bot_report=bot_report,
        hard_block=hard_block,
    )
    logger.info(
        "trust_evaluated",
        user_id=user_id,
        score=score,
        status=status.value,
        hard_blocked=False,
        bot=bot_report.result.label,
        has_baseline=attribute_baseline is not None,
    )
    return report
