"""
Test that trustgate_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from trustgate_logging and use the logger."""
    from trustgate.trustgate_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "warning")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")


def test_short_id_truncates():
    from trustgate.trustgate_logging import short_id

    assert short_id("user-7f3a9c2e41") == "user-7f3..."
    assert short_id("abc") == "abc"
    assert short_id(None) == ""


def test_bind_user_logger():
    from trustgate.trustgate_logging import bind_user

    log = bind_user("user-7f3a9c2e41", "device-A1B2C3D4")
    log.info("bound_message")


def test_engine_modules_import_cleanly():
    """Package import order does not trip a circular import."""
    import trustgate.verification
    from trustgate.database import SqlBaselineStore
    from trustgate.verification import TrustVerifier

    assert TrustVerifier is not None
    assert SqlBaselineStore is not None
    assert trustgate.verification.decide is not None


def test_ids_truncated_before_render():
    from trustgate.trustgate_logging.logger import _truncate_ids

    event = _truncate_ids(None, "info", {"event": "x", "user_id": "user-7f3a9c2e41", "device_id": "dev1"})
    assert event["user_id"] == "user-7f3..."
    assert event["device_id"] == "dev1"


def test_evaluation_context_binds_and_clears():
    import structlog

    from trustgate.trustgate_logging import evaluation_context

    with evaluation_context("user-7f3a9c2e41", "device-A1B2C3D4"):
        bound = structlog.contextvars.get_contextvars()
        assert bound["user_id"] == "user-7f3a9c2e41"
        assert bound["device_id"] == "device-A1B2C3D4"
    assert "user_id" not in structlog.contextvars.get_contextvars()


def test_configure_logging_defaults_from_settings(monkeypatch):
    """Renderer follows Settings.log_format when no explicit format is given."""
    import structlog

    from trustgate.config import get_settings
    from trustgate.trustgate_logging import configure_logging

    monkeypatch.setenv("LOG_FORMAT", "console")
    get_settings.cache_clear()
    try:
        configure_logging()
        assert isinstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)
        configure_logging(fmt="json")
        assert isinstance(structlog.get_config()["processors"][-1], structlog.processors.JSONRenderer)
    finally:
        monkeypatch.delenv("LOG_FORMAT")
        get_settings.cache_clear()
        configure_logging()
