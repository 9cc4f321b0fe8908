"""
bot/services/fishing_service.py
Casting, selling and bait purchases; fish pay out only when sold
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from ..database.queries.economy_queries import EconomyQueries
from ..systems.fishing_rng import CaughtFish, FishingTables
from ..systems.stores import CooldownTracker, FishingStore, FishSale, InMemoryFishingStore
from ..utils.config import FishingSettings
from .errors import FeatureDisabled, InsufficientFunds, NotEnoughBait, OnCooldown

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatchResult:
    fish: CaughtFish
    rod: str
    bait: str
    weather: str
    bait_left: int


@dataclass(frozen=True)
class SaleResult:
    sale: FishSale
    new_balance: int


@dataclass(frozen=True)
class BaitPurchase:
    bait: str
    quantity: int
    total_cost: int
    remaining_stock: int
    new_balance: int


class FishingService:
    def __init__(
        self,
        engine: AsyncEngine,
        settings: FishingSettings,
        tables: Optional[FishingTables],
        store: Optional[FishingStore] = None,
        starting_money: int = 1000,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self.engine = engine
        self.settings = settings
        self.tables = tables
        self.clock = clock
        self.rng = rng or random.Random()
        self.starting_money = starting_money
        self.store = store or (InMemoryFishingStore(tables, clock) if tables else None)
        self.cooldowns = CooldownTracker(clock)

    @property
    def enabled(self) -> bool:
        return self.settings.enabled and self.tables is not None and self.store is not None

    @property
    def cooldown_seconds(self) -> float:
        if self.settings.cooldown_minutes is not None:
            return self.settings.cooldown_minutes * 60
        return self.tables.base_fishing_cooldown if self.tables else 0.0

    def _require(self) -> None:
        if not self.enabled:
            raise FeatureDisabled("Fishing")

    def bait_inventory(self, user_id: int) -> Dict[str, int]:
        self._require()
        return dict(self.store.get_bait(user_id))

    def give_daily_bait(self, user_id: int) -> Dict[str, int]:
        if not self.enabled:
            return {}
        return self.store.give_daily_bait(user_id)

    def cast(self, user_id: int, rod: str = "wooden", bait: str = "worm", luck_potion: bool = False) -> CatchResult:
        self._require()
        # refuse before stamping the cooldown so an empty bait box costs nothing
        have = self.store.get_bait(user_id).get(bait, 0)
        if have < 1:
            raise NotEnoughBait(bait, have)
        remaining = self.cooldowns.try_acquire(user_id, self.cooldown_seconds)
        if remaining > 0:
            raise OnCooldown(remaining)

        left = self.store.use_bait(user_id, bait)
        weather = self.tables.random_weather(self.rng)
        fish = self.tables.catch_fish(rod, weather, bait, luck_potion, rng=self.rng, now=self.clock())
        self.store.add_fish(user_id, fish)
        logger.debug(f"User {user_id} caught {fish.name} ({fish.rarity}) rod={rod} bait={bait} weather={weather}")
        return CatchResult(fish, rod, bait, weather, left)

    async def sell_all(self, user_id: int, guild_id: int) -> Optional[SaleResult]:
        """None when the net is empty."""
        self._require()
        sale = self.store.sell_all(user_id)
        if sale is None:
            return None
        try:
            async with self.engine.begin() as conn:
                await EconomyQueries.get(conn, user_id, guild_id, self.starting_money, self.clock())
                await EconomyQueries.adjust_wallet(conn, user_id, guild_id, sale.total_value)
                record = await EconomyQueries.get(conn, user_id, guild_id, self.starting_money, self.clock())
        except Exception:
            # net goes back so the catch is not lost
            for fish in sale.fish_sold:
                self.store.add_fish(user_id, fish)
            raise
        logger.info(f"User {user_id} sold {sale.fish_count} fish for {sale.total_value}")
        return SaleResult(sale, record.money)

    async def purchase_bait(self, user_id: int, guild_id: int, bait: str, quantity: int = 1) -> BaitPurchase:
        self._require()
        if quantity <= 0:
            raise ValueError("Quantity must be positive")
        cost = self.store.reserve_bait_stock(bait, quantity)
        try:
            async with self.engine.begin() as conn:
                record = await EconomyQueries.get(conn, user_id, guild_id, self.starting_money, self.clock())
                if record.money < cost or not await EconomyQueries.spend(conn, user_id, guild_id, cost):
                    raise InsufficientFunds(cost - record.money)
        except Exception:
            self.store.release_bait_stock(bait, quantity)
            raise
        self.store.add_bait(user_id, bait, quantity)
        return BaitPurchase(bait, quantity, cost, self.store.shop_bait_stock().get(bait, 0), record.money - cost)
