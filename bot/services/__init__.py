"""
bot/services/__init__.py
Services package for the leveling bot
"""

from .logging_service import EmbedLogger, LogLevel

__all__ = ["EmbedLogger", "LogLevel"]
