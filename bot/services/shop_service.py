"""
bot/services/shop_service.py
Daily shop rotation, purchases and item use
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncEngine

from ..database.models.shop import OwnedItem, ShopListing
from ..database.queries.economy_queries import EconomyQueries
from ..database.queries.event_queries import EventQueries
from ..database.queries.shop_queries import ShopQueries
from ..utils.config import CatalogItem, ShopSettings
from .errors import FeatureDisabled, InsufficientFunds, ItemNotFound

logger = logging.getLogger(__name__)

EVENT_PRICE_MULTIPLIER = 1.8


@dataclass(frozen=True)
class RefreshResult:
    daily_count: int
    event_count: int


@dataclass(frozen=True)
class PurchaseResult:
    item: ShopListing
    new_balance: int


@dataclass
class UseResult:
    item: OwnedItem
    effects: List[str] = field(default_factory=list)
    consumed: bool = False
    coins_gained: int = 0


class ShopService:
    def __init__(
        self,
        engine: AsyncEngine,
        settings: ShopSettings,
        starting_money: int = 1000,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self.engine = engine
        self.settings = settings
        self.starting_money = starting_money
        self.clock = clock
        self.rng = rng or random.Random()

    def _listing(
        self, guild_id: int, item: CatalogItem, today: str, event_type: Optional[str] = None
    ) -> ShopListing:
        if event_type is None:
            price = self.settings.price_for(item)
        else:
            price = int(item.base_price * self.settings.rarity_multipliers.get(item.rarity, EVENT_PRICE_MULTIPLIER))
        return ShopListing(
            guild_id=guild_id,
            item_id=item.item_id,
            item_name=item.name,
            item_description=item.description,
            price=price,
            category=item.category,
            rarity=item.rarity,
            effects=list(item.effects),
            is_event_item=event_type is not None,
            event_type=event_type,
            date_added=today,
        )

    async def refresh_shop(self, guild_id: int) -> RefreshResult:
        """Replace the guild's shop with a fresh daily rotation plus active event items."""
        now = self.clock()
        today = datetime.fromtimestamp(now).strftime("%Y-%m-%d")
        if not self.settings.enabled:
            async with self.engine.begin() as conn:
                await ShopQueries.clear_shop(conn, guild_id)
            raise FeatureDisabled("Shop")

        async with self.engine.begin() as conn:
            await ShopQueries.clear_shop(conn, guild_id)

            catalog = list(self.settings.catalog)
            self.rng.shuffle(catalog)
            daily = catalog[: self.settings.daily_item_count]

            event_items: List[Tuple[CatalogItem, str]] = []
            for event in await EventQueries.get_active_events(conn, guild_id, now):
                for item in self.settings.event_items.get(event.event_type, ()):
                    event_items.append((item, event.event_type))
            event_items = event_items[: self.settings.event_item_count]

            for item in daily:
                await ShopQueries.insert_listing(conn, self._listing(guild_id, item, today))
            for item, event_type in event_items:
                await ShopQueries.insert_listing(conn, self._listing(guild_id, item, today, event_type))

        logger.info(f"Refreshed shop for guild {guild_id}: daily={len(daily)} event={len(event_items)}")
        return RefreshResult(len(daily), len(event_items))

    async def get_shop_inventory(self, guild_id: int) -> List[ShopListing]:
        async with self.engine.connect() as conn:
            return await ShopQueries.get_shop_inventory(conn, guild_id)

    async def get_user_inventory(self, user_id: int, guild_id: int) -> List[OwnedItem]:
        async with self.engine.connect() as conn:
            return await ShopQueries.get_user_inventory(conn, user_id, guild_id)

    async def purchase_item(self, user_id: int, guild_id: int, item_id: str) -> PurchaseResult:
        now = self.clock()
        async with self.engine.begin() as conn:
            listing = await ShopQueries.get_listing(conn, guild_id, item_id)
            if listing is None:
                raise ItemNotFound(item_id)
            record = await EconomyQueries.get(conn, user_id, guild_id, self.starting_money, now)
            if record.money < listing.price:
                raise InsufficientFunds(listing.price - record.money)
            if not await EconomyQueries.spend(conn, user_id, guild_id, listing.price):
                raise InsufficientFunds(listing.price)
            await ShopQueries.add_to_inventory(conn, user_id, guild_id, listing, now)
        logger.info(f"User {user_id} bought {item_id} for {listing.price} in guild {guild_id}")
        return PurchaseResult(listing, record.money - listing.price)

    async def use_item(self, user_id: int, guild_id: int, inventory_id: int) -> UseResult:
        async with self.engine.begin() as conn:
            item = await ShopQueries.get_owned(conn, inventory_id, user_id, guild_id)
            if item is None:
                raise ItemNotFound(str(inventory_id))

            result = UseResult(item=item, consumed=item.consumable)
            if item.consumable and not await ShopQueries.consume_one(conn, inventory_id, user_id, guild_id):
                raise ItemNotFound(str(inventory_id))

            for effect in item.effects:
                if effect == "instant_coins":
                    lo, hi = self.settings.instant_coins
                    coins = self.rng.randint(lo, hi)
                    await EconomyQueries.get(conn, user_id, guild_id, self.starting_money, self.clock())
                    await EconomyQueries.credit(conn, user_id, guild_id, coins)
                    result.coins_gained += coins
                    result.effects.append(f"Gained {coins} coins!")
                elif "xp_boost" in effect:
                    result.effects.append("XP boost activated (no lasting effect yet)")
                elif "luck_boost" in effect:
                    result.effects.append("Luck boost activated (no lasting effect yet)")
                else:
                    result.effects.append(f"Applied effect: {effect}")
        return result
