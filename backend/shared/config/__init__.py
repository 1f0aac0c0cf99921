"""
Configuration module: Settings, logging.
"""

from shared.config.settings import settings, DATABASE_URL
from shared.config.logging import get_logger, setup_logging

__all__ = [
    # settings
    "settings",
    "DATABASE_URL",
    # logging
    "get_logger",
    "setup_logging",
]
