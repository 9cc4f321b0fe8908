"""
bot/database/models/__init__.py
Database models package
"""
from .economy import EconomyRecord
from .event import EventParticipant, EventRecord, LeaderboardEntry
from .leveling import UserProgress, XpGain
from .shop import OwnedItem, ShopListing

__all__ = [
    "EconomyRecord",
    "EventParticipant",
    "EventRecord",
    "LeaderboardEntry",
    "OwnedItem",
    "ShopListing",
    "UserProgress",
    "XpGain",
]
