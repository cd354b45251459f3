"""Utility modules for the Keyword Intelligence Engine."""

from .config import EngineConfig, Settings, get_settings
from .logging import setup_logging

__all__ = [
    "EngineConfig",
    "Settings",
    "get_settings",
    "setup_logging",
]
