"""
bot/services/errors.py
Typed failures raised by the economy, shop, fishing and event services.

Every error derives from ValueError so callers that only care about
"the request was refused" can keep catching that.
"""
from __future__ import annotations


class EconomyError(ValueError):
    """Base for refusals a user can be told about."""


class InsufficientWallet(EconomyError):
    def __init__(self, needed: int = 0):
        super().__init__("Insufficient wallet balance")
        self.needed = needed


class InsufficientBank(EconomyError):
    def __init__(self):
        super().__init__("Insufficient bank balance")


class BankLimitExceeded(EconomyError):
    def __init__(self, limit: int, current: int):
        super().__init__(f"Bank limit exceeded ({current}/{limit})")
        self.limit = limit
        self.current = current


class MaxLevelReached(EconomyError):
    def __init__(self):
        super().__init__("Bank is already at max level")


class NoUpgradeAvailable(EconomyError):
    def __init__(self):
        super().__init__("No upgrade available")


class InsufficientFunds(EconomyError):
    def __init__(self, needed: int):
        super().__init__(f"Insufficient funds, {needed} more needed")
        self.needed = needed


class AlreadyClaimed(EconomyError):
    def __init__(self, remaining: float):
        super().__init__("Daily reward already claimed")
        self.remaining = remaining


class OnCooldown(EconomyError):
    def __init__(self, remaining: float):
        super().__init__("Still on cooldown")
        self.remaining = remaining


class Caught(EconomyError):
    def __init__(self):
        super().__init__("Caught while stealing")


class NoMoney(EconomyError):
    def __init__(self):
        super().__init__("Target has no money")


class NoTarget(EconomyError):
    def __init__(self):
        super().__init__("No one worth robbing")


class ItemNotFound(EconomyError):
    def __init__(self, item_id: str = ""):
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


class InvalidBet(EconomyError):
    def __init__(self, min_bet: int, max_bet: int, reason: str = "out of range"):
        super().__init__(f"Invalid bet ({reason}), allowed {min_bet}-{max_bet}")
        self.min_bet = min_bet
        self.max_bet = max_bet
        self.reason = reason


class OutOfStock(EconomyError):
    def __init__(self, available: int):
        super().__init__(f"Out of stock, {available} available")
        self.available = available


class NotEnoughBait(EconomyError):
    def __init__(self, bait: str, available: int):
        super().__init__(f"Not enough {bait}, {available} left")
        self.bait = bait
        self.available = available


class FeatureDisabled(EconomyError):
    def __init__(self, feature: str):
        super().__init__(f"{feature} is disabled")
        self.feature = feature


class GameNotFound(EconomyError):
    def __init__(self):
        super().__init__("Game not found or expired")


class InvalidTarget(EconomyError):
    def __init__(self, reason: str = "You can't target yourself"):
        super().__init__(reason)


class UnknownEventType(EconomyError):
    def __init__(self, event_type: str):
        super().__init__(f"Unknown event type: {event_type}")
        self.event_type = event_type


class EventAlreadyActive(EconomyError):
    def __init__(self, event_type: str):
        super().__init__(f"{event_type} is already running")
        self.event_type = event_type


class EventNotFound(EconomyError):
    def __init__(self, event_id: int):
        super().__init__(f"No event with id {event_id}")
        self.event_id = event_id
