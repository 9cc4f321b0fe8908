"""
bot/utils/__init__.py
Configuration and logging helpers for the leveling bot
"""

from .config import BotSettings, Config
from .logging_config import setup_logging

__all__ = ["BotSettings", "Config", "setup_logging"]
