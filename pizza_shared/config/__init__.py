"""
Configuration module: Settings, logging, constants.
"""

from pizza_shared.config.settings import settings, get_settings, DATABASE_URL
from pizza_shared.config.logging import get_logger, setup_logging

__all__ = [
    "settings",
    "get_settings",
    "DATABASE_URL",
    "get_logger",
    "setup_logging",
]
