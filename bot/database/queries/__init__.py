"""
bot/database/queries/__init__.py
Database queries package
"""
from .economy_queries import EconomyQueries
from .event_queries import EventQueries
from .leveling_queries import LevelingQueries
from .shop_queries import ShopQueries

__all__ = [
    "EconomyQueries",
    "EventQueries",
    "LevelingQueries",
    "ShopQueries",
]
