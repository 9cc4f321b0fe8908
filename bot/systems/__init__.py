"""
bot/systems/__init__.py
Pure game engines: XP curve, cards, fishing odds and volatile stores.
"""

from .cards import BlackjackHand, Card, PokerHand, evaluate_poker_hand, new_deck
from .fishing_rng import FishingTables
from .progression import ProgressionCurve
from .stores import CooldownTracker, FishingStore, GameStateStore, InMemoryFishingStore

__all__ = [
    "BlackjackHand",
    "Card",
    "CooldownTracker",
    "FishingStore",
    "FishingTables",
    "GameStateStore",
    "InMemoryFishingStore",
    "PokerHand",
    "ProgressionCurve",
    "evaluate_poker_hand",
    "new_deck",
]
