"""
Liveness ("bot") classification from touch interaction and device motion.

Two coarse signals, six rules, one verdict. The classifier is pure: the
caller supplies the motion state it sampled, nothing is cached between calls.
"""

from __future__ import annotations

from trustgate.analysis_engine.models import (
    Bot,
    BotDetectionReport,
    BotVerdict,
    Human,
    Suspicious,
    Unknown,
)
from trustgate.signals.models import MotionState
from trustgate.trustgate_logging import get_logger

logger = get_logger(__name__)

# (touch, motion) -> (verdict, reason). Total over the 2x3 input space.
_LIVENESS_RULES: dict[tuple[bool, MotionState], tuple[BotVerdict, str]] = {
    (False, MotionState.UNKNOWN): (
        Bot(0.05),
        "No touch interaction + No gyroscope data = Automated script",
    ),
    (False, MotionState.STILL): (
        Bot(0.10),
        "No touch interaction + Still device = Bot on stationary device",
    ),
    (False, MotionState.MOVING): (
        Suspicious(0.40),
        "No touch but device moving = Possible auto-login or bot with motion simulation",
    ),
    (True, MotionState.UNKNOWN): (
        Suspicious(0.50),
        "Touch detected but no gyroscope = Simulator, no permission, or unavailable sensor",
    ),
    (True, MotionState.STILL): (
        Human(0.90),
        "Touch interaction + Still device = Normal stationary use",
    ),
    (True, MotionState.MOVING): (
        Human(0.95),
        "Touch interaction + Device motion = Natural human behavior",
    ),
}

_UNKNOWN_REASON = "Unable to determine bot status from available signals"


def classify_liveness(
    touch_interaction: bool,
    motion_state: MotionState,
    motion_magnitude: float = 0.0,
) -> BotDetectionReport:
    """
    Classify the session as human, suspicious, bot or unknown.

    Args:
        touch_interaction: A real touch was observed during the flow.
        motion_state: Gyroscope state sampled by the caller.
        motion_magnitude: Rotation magnitude, carried into the report only.

    Returns:
        BotDetectionReport with the verdict and the rule's reason.
    """
    motion = MotionState.parse(motion_state)
    verdict, reason = _LIVENESS_RULES.get(
        (bool(touch_interaction), motion),
        (Unknown(), _UNKNOWN_REASON),
    )
    logger.debug(
        "liveness_classified",
        verdict=verdict.label,
        touch=touch_interaction,
        motion=motion.value,
        magnitude=round(motion_magnitude, 3),
    )
    return BotDetectionReport(
        result=verdict,
        touch_interaction=touch_interaction,
        motion_state=motion,
        motion_magnitude=motion_magnitude,
        reason=reason,
    )


def is_bot(touch_interaction: bool, motion_state: MotionState) -> bool:
    return classify_liveness(touch_interaction, motion_state).result.is_bot


def is_suspicious(touch_interaction: bool, motion_state: MotionState) -> bool:
    return classify_liveness(touch_interaction, motion_state).result.is_suspicious

