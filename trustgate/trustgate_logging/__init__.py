"""
Structured logging for TrustGate.

JSON logs with timestamp, event_type, truncated user/device ids and
evaluation context.
"""

from trustgate.trustgate_logging.logger import (
    bind_user,
    configure_logging,
    evaluation_context,
    get_logger,
    short_id,
)

__all__ = ["bind_user", "configure_logging", "evaluation_context", "get_logger", "short_id"]
