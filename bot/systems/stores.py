# bot/systems/stores.py
"""
Volatile per-user state: fish nets, bait, shop bait stock, open games and
cooldowns. Nothing here survives a restart.
"""
from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

from bot.services.errors import ItemNotFound, NotEnoughBait, OutOfStock
from bot.systems.fishing_rng import RARITY_ORDER, CaughtFish, FishingTables

Clock = Callable[[], float]
V = TypeVar("V")


@dataclass
class FishNet:
    fish: List[CaughtFish] = field(default_factory=list)

    @property
    def total_value(self) -> int:
        return sum(f.value for f in self.fish)

    def by_rarity(self) -> Dict[str, List[CaughtFish]]:
        groups: Dict[str, List[CaughtFish]] = {}
        for rarity in RARITY_ORDER:
            hits = [f for f in self.fish if f.rarity == rarity]
            if hits:
                groups[rarity] = hits
        return groups


@dataclass(frozen=True)
class FishSale:
    fish_count: int
    total_value: int
    fish_sold: Tuple[CaughtFish, ...]


class FishingStore(ABC):
    """Fish, bait and bait-shop stock, keyed by user id."""

    @abstractmethod
    def get_net(self, user_id: int) -> FishNet: ...

    @abstractmethod
    def add_fish(self, user_id: int, fish: CaughtFish) -> FishNet: ...

    @abstractmethod
    def sell_all(self, user_id: int) -> Optional[FishSale]:
        """Empties the net; None when it was already empty."""

    @abstractmethod
    def get_bait(self, user_id: int) -> Dict[str, int]: ...

    @abstractmethod
    def add_bait(self, user_id: int, bait: str, amount: int) -> Dict[str, int]: ...

    @abstractmethod
    def use_bait(self, user_id: int, bait: str, amount: int = 1) -> int:
        """Returns what is left; raises NotEnoughBait."""

    @abstractmethod
    def give_daily_bait(self, user_id: int) -> Dict[str, int]: ...

    @abstractmethod
    def shop_bait_stock(self) -> Dict[str, int]: ...

    @abstractmethod
    def next_bait_reset(self) -> float: ...

    @abstractmethod
    def reserve_bait_stock(self, bait: str, quantity: int) -> int:
        """Take stock for a purchase; returns the total cost."""

    @abstractmethod
    def release_bait_stock(self, bait: str, quantity: int) -> None: ...


class InMemoryFishingStore(FishingStore):
    def __init__(self, tables: FishingTables, clock: Clock = time.time):
        self.tables = tables
        self._clock = clock
        self._nets: Dict[int, FishNet] = {}
        self._bait: Dict[int, Dict[str, int]] = {}
        self._stock: Dict[str, int] = {}
        self._last_reset: Optional[float] = None

    # fish
    def get_net(self, user_id: int) -> FishNet:
        return self._nets.setdefault(user_id, FishNet())

    def add_fish(self, user_id: int, fish: CaughtFish) -> FishNet:
        net = self.get_net(user_id)
        net.fish.append(fish)
        return net

    def sell_all(self, user_id: int) -> Optional[FishSale]:
        net = self._nets.pop(user_id, None)
        if not net or not net.fish:
            return None
        return FishSale(len(net.fish), net.total_value, tuple(net.fish))

    # bait
    def get_bait(self, user_id: int) -> Dict[str, int]:
        if user_id not in self._bait:
            self._bait[user_id] = dict(self.tables.starting_bait)
        return self._bait[user_id]

    def add_bait(self, user_id: int, bait: str, amount: int) -> Dict[str, int]:
        inv = self.get_bait(user_id)
        inv[bait] = inv.get(bait, 0) + amount
        return inv

    def use_bait(self, user_id: int, bait: str, amount: int = 1) -> int:
        inv = self.get_bait(user_id)
        have = inv.get(bait, 0)
        if have < amount:
            raise NotEnoughBait(bait, have)
        inv[bait] = have - amount
        return inv[bait]

    def give_daily_bait(self, user_id: int) -> Dict[str, int]:
        for bait, amount in self.tables.daily_bait.items():
            self.add_bait(user_id, bait, amount)
        return dict(self.tables.daily_bait)

    # shop stock
    def _reset_if_due(self) -> None:
        now = self._clock()
        period = self.tables.bait_reset_hours * 3600
        if self._last_reset is None or now - self._last_reset >= period:
            self._stock = {k: b.shop_stock for k, b in self.tables.bait.items() if b.shop_stock > 0}
            self._last_reset = now

    def shop_bait_stock(self) -> Dict[str, int]:
        self._reset_if_due()
        return {k: self._stock.get(k, 0) for k, b in self.tables.bait.items() if b.purchasable}

    def next_bait_reset(self) -> float:
        self._reset_if_due()
        return (self._last_reset or self._clock()) + self.tables.bait_reset_hours * 3600

    def reserve_bait_stock(self, bait: str, quantity: int) -> int:
        self._reset_if_due()
        info = self.tables.bait.get(bait)
        if info is None or not info.purchasable:
            raise ItemNotFound(bait)
        available = self._stock.get(bait, 0)
        if available < quantity:
            raise OutOfStock(available)
        self._stock[bait] = available - quantity
        return info.shop_price * quantity

    def release_bait_stock(self, bait: str, quantity: int) -> None:
        if bait in self._stock:
            self._stock[bait] += quantity


class GameStateStore(Generic[V]):
    """Open game state per key with a TTL; expired entries are reaped on access."""

    def __init__(self, ttl: float = 300.0, clock: Clock = time.time):
        self.ttl = ttl
        self._clock = clock
        self._items: Dict[Hashable, Tuple[float, V]] = {}

    def put(self, key: Hashable, value: V) -> None:
        self._items[key] = (self._clock() + self.ttl, value)

    def get(self, key: Hashable) -> Optional[V]:
        entry = self._items.get(key)
        if entry is None:
            return None
        expires, value = entry
        if self._clock() >= expires:
            del self._items[key]
            return None
        return value

    def pop(self, key: Hashable) -> Optional[V]:
        value = self.get(key)
        self._items.pop(key, None)
        return value

    def reap(self) -> List[Tuple[Hashable, V]]:
        """Drop every expired entry and return them."""
        now = self._clock()
        dead = [(k, v) for k, (exp, v) in self._items.items() if now >= exp]
        for k, _ in dead:
            del self._items[k]
        return dead

    def __len__(self) -> int:
        return len(self._items)


class CooldownTracker:
    """Last-use timestamps per key."""

    def __init__(self, clock: Clock = time.time):
        self._clock = clock
        self._last: Dict[Hashable, float] = {}

    def remaining(self, key: Hashable, cooldown: float) -> float:
        last = self._last.get(key)
        if last is None:
            return 0.0
        return max(0.0, last + cooldown - self._clock())

    def try_acquire(self, key: Hashable, cooldown: float) -> float:
        """Stamp and return 0 when free; otherwise return the seconds left."""
        left = self.remaining(key, cooldown)
        if left > 0:
            return left
        self._last[key] = self._clock()
        return 0.0
