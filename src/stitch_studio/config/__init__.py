"""Configuration and settings management."""

from stitch_studio.config.constants import DEFAULT_API_URL, Endpoints, Limits, Timeouts
from stitch_studio.config.logging import get_logger, setup_logging
from stitch_studio.config.settings import Settings, clear_settings_cache, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "clear_settings_cache",
    "setup_logging",
    "get_logger",
    "DEFAULT_API_URL",
    "Endpoints",
    "Timeouts",
    "Limits",
]
