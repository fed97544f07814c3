"""
Decision classifier: map a total trust score to an access status.
"""

from __future__ import annotations

from trustgate.analysis_engine.models import TrustStatus
from trustgate.signals.models import DeviceType

TRUSTED_THRESHOLD = 70
REVERIFY_THRESHOLD = 45


def classify_trust(
    score: int,
    *,
    device_type: DeviceType = DeviceType.PRIMARY,
    has_device_history: bool = True,
) -> TrustStatus:
    """
    >= 70 trusted, 45..69 reverify_identity, < 45 blocked.

    A secondary device seen for the first time is capped at reverify_identity.
    """
    if score >= TRUSTED_THRESHOLD:
        status = TrustStatus.TRUSTED
    elif score >= REVERIFY_THRESHOLD:
        status = TrustStatus.REVERIFY_IDENTITY
    else:
        status = TrustStatus.BLOCKED

    if (
        status is TrustStatus.TRUSTED
        and DeviceType(device_type) is DeviceType.SECONDARY
        and not has_device_history
    ):
        return TrustStatus.REVERIFY_IDENTITY
    return status
