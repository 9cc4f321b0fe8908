# bot/database/queries/shop_queries.py
from __future__ import annotations

import json
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from ..models.shop import OwnedItem, ShopListing


class ShopQueries:
    @staticmethod
    async def clear_shop(conn: AsyncConnection, guild_id: int) -> None:
        await conn.execute(text("DELETE FROM shop_inventory WHERE guild_id = :guild_id"), {"guild_id": guild_id})

    @staticmethod
    async def insert_listing(conn: AsyncConnection, listing: ShopListing) -> None:
        await conn.execute(
            text(
                """
            INSERT INTO shop_inventory(guild_id, item_id, item_name, item_description, price, category,
                                       rarity, effects, is_event_item, event_type, date_added)
            VALUES (:guild_id, :item_id, :item_name, :item_description, :price, :category,
                    :rarity, :effects, :is_event_item, :event_type, :date_added)
            """
            ),
            {
                "guild_id": listing.guild_id,
                "item_id": listing.item_id,
                "item_name": listing.item_name,
                "item_description": listing.item_description,
                "price": listing.price,
                "category": listing.category,
                "rarity": listing.rarity,
                "effects": json.dumps(listing.effects),
                "is_event_item": listing.is_event_item,
                "event_type": listing.event_type,
                "date_added": listing.date_added,
            },
        )

    @staticmethod
    async def get_shop_inventory(conn: AsyncConnection, guild_id: int) -> List[ShopListing]:
        rows = (
            await conn.execute(
                text(
                    """
            SELECT * FROM shop_inventory WHERE guild_id = :guild_id
             ORDER BY is_event_item DESC, category, rarity, item_name
            """
                ),
                {"guild_id": guild_id},
            )
        ).mappings().all()
        return [ShopListing.from_row(r) for r in rows]

    @staticmethod
    async def get_listing(conn: AsyncConnection, guild_id: int, item_id: str) -> Optional[ShopListing]:
        row = (
            await conn.execute(
                text("SELECT * FROM shop_inventory WHERE guild_id = :guild_id AND item_id = :item_id LIMIT 1"),
                {"guild_id": guild_id, "item_id": item_id},
            )
        ).mappings().first()
        return ShopListing.from_row(row) if row else None

    @staticmethod
    async def add_to_inventory(
        conn: AsyncConnection, user_id: int, guild_id: int, listing: ShopListing, now: float
    ) -> None:
        await conn.execute(
            text(
                """
            INSERT INTO user_inventory(user_id, guild_id, item_id, item_name, quantity, effects, purchased_at, is_active)
            VALUES (:user_id, :guild_id, :item_id, :item_name, 1, :effects, :now, :active)
            """
            ),
            {
                "user_id": user_id,
                "guild_id": guild_id,
                "item_id": listing.item_id,
                "item_name": listing.item_name,
                "effects": json.dumps(listing.effects),
                "now": now,
                "active": True,
            },
        )

    @staticmethod
    async def get_user_inventory(conn: AsyncConnection, user_id: int, guild_id: int) -> List[OwnedItem]:
        rows = (
            await conn.execute(
                text(
                    """
            SELECT * FROM user_inventory
             WHERE user_id = :user_id AND guild_id = :guild_id AND is_active = :active
             ORDER BY purchased_at DESC, id DESC
            """
                ),
                {"user_id": user_id, "guild_id": guild_id, "active": True},
            )
        ).mappings().all()
        return [OwnedItem.from_row(r) for r in rows]

    @staticmethod
    async def get_owned(conn: AsyncConnection, inventory_id: int, user_id: int, guild_id: int) -> Optional[OwnedItem]:
        row = (
            await conn.execute(
                text(
                    """
            SELECT * FROM user_inventory
             WHERE id = :id AND user_id = :user_id AND guild_id = :guild_id
               AND is_active = :active AND quantity > 0
            """
                ),
                {"id": inventory_id, "user_id": user_id, "guild_id": guild_id, "active": True},
            )
        ).mappings().first()
        return OwnedItem.from_row(row) if row else None

    @staticmethod
    async def consume_one(conn: AsyncConnection, inventory_id: int, user_id: int, guild_id: int) -> bool:
        """Decrement; the row is deactivated when it reaches zero."""
        result = await conn.execute(
            text(
                """
            UPDATE user_inventory
               SET is_active = CASE WHEN quantity <= 1 THEN :inactive ELSE is_active END,
                   quantity = quantity - 1
             WHERE id = :id AND user_id = :user_id AND guild_id = :guild_id
               AND is_active = :active AND quantity > 0
            """
            ),
            {"id": inventory_id, "user_id": user_id, "guild_id": guild_id, "active": True, "inactive": False},
        )
        return result.rowcount == 1
