"""
Configuration management for TrustGate.

Loads settings from environment variables and an optional .env file.
"""

from trustgate.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
