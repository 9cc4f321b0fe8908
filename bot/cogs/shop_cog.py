# bot/cogs/shop_cog.py
from __future__ import annotations

import logging
import time
from typing import List, Optional

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from bot.services.errors import FeatureDisabled
from bot.services.logging_service import LogLevel
from bot.utils.interactions import format_remaining, handle_command_error, is_admin, reply

logger = logging.getLogger(__name__)

RARITY_EMOJI = {
    "common": "⚪",
    "uncommon": "🟢",
    "rare": "🔵",
    "epic": "🟣",
    "legendary": "🟠",
    "mythic": "🔴",
}


class ShopCog(commands.Cog):
    """Daily rotating shop, event items, bait and the member inventory."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.embed_logger = getattr(bot, "embed_logger", None)
        self.settings = bot.settings.shop
        self.admin_role_id = bot.settings.events.admin_role_id
        self.shop = bot.shop
        self.fishing = bot.fishing

    def _require_shop(self):
        if not self.settings.enabled:
            raise FeatureDisabled("The shop")

    group = app_commands.Group(name="shop", description="Buy and use items")

    @group.command(name="browse", description="See today's items")
    async def shop_browse(self, itx: Interaction):
        try:
            self._require_shop()
            await itx.response.defer()
            listings = await self.shop.get_shop_inventory(itx.guild_id)
            if not listings:
                await self.shop.refresh_shop(itx.guild_id)
                listings = await self.shop.get_shop_inventory(itx.guild_id)
            if not listings:
                return await reply(itx, "The shop is empty today.")

            embed = discord.Embed(
                title="🛒 Item Shop",
                description="Buy with `/shop buy item_id:<id>`",
                color=discord.Color.blurple(),
            )
            sections: dict[str, list[str]] = {}
            for item in listings:
                header = (
                    f"🎉 {item.event_type.title()} Event"
                    if item.is_event_item
                    else self.settings.category_names.get(item.category, item.category.title())
                )
                sections.setdefault(header, []).append(
                    f"{RARITY_EMOJI.get(item.rarity, '⚪')} **{item.item_name}** • {item.price:,} coins\n"
                    f"`{item.item_id}` {item.item_description}"
                )
            for header, lines in sections.items():
                embed.add_field(name=header, value="\n".join(lines)[:1024], inline=False)
            embed.set_footer(text=f"Stock of {listings[0].date_added}")
            await reply(itx, embed=embed)
        except Exception as e:
            await handle_command_error(itx, e, service="Shop", context="/shop browse", embed_logger=self.embed_logger)

    async def _item_autocomplete(self, itx: Interaction, current: str) -> List[app_commands.Choice[str]]:
        try:
            listings = await self.shop.get_shop_inventory(itx.guild_id)
        except Exception as e:
            logger.warning(f"Shop autocomplete failed: {e}")
            return []
        current = current.lower()
        return [
            app_commands.Choice(name=f"{i.item_name} ({i.price:,})"[:100], value=i.item_id)
            for i in listings
            if current in i.item_name.lower() or current in i.item_id
        ][:25]

    @group.command(name="buy", description="Buy an item from today's shop")
    @app_commands.describe(item_id="Item to buy")
    @app_commands.autocomplete(item_id=_item_autocomplete)
    async def shop_buy(self, itx: Interaction, item_id: str):
        try:
            self._require_shop()
            result = await self.shop.purchase_item(itx.user.id, itx.guild_id, item_id)
            await reply(
                itx,
                f"✅ Bought **{result.item.item_name}** for **{result.item.price:,}** coins. "
                f"Wallet: **{result.new_balance:,}**",
                ephemeral=True,
            )
            if self.embed_logger:
                await self.embed_logger.log_custom(
                    service="Shop",
                    title="Purchase",
                    description=f"<@{itx.user.id}> bought {result.item.item_name}",
                    level=LogLevel.ECONOMY,
                    fields={"Item": result.item.item_id, "Price": f"{result.item.price:,}"},
                )
        except Exception as e:
            await handle_command_error(itx, e, service="Shop", context="/shop buy", embed_logger=self.embed_logger)

    async def _bait_autocomplete(self, itx: Interaction, current: str) -> List[app_commands.Choice[str]]:
        if not self.fishing.enabled:
            return []
        current = current.lower()
        return [
            app_commands.Choice(name=f"{b.name} ({b.shop_price:,} each)"[:100], value=key)
            for key, b in self.fishing.tables.bait.items()
            if b.purchasable and (current in key or current in b.name.lower())
        ][:25]

    @group.command(name="bait", description="Buy fishing bait, or see what's in stock")
    @app_commands.describe(bait="Bait to buy", quantity="How many")
    @app_commands.autocomplete(bait=_bait_autocomplete)
    async def shop_bait(
        self, itx: Interaction, bait: Optional[str] = None, quantity: app_commands.Range[int, 1, 100] = 1
    ):
        try:
            if bait is None:
                stock = self.fishing.store.shop_bait_stock() if self.fishing.enabled else {}
                if not stock:
                    raise FeatureDisabled("Bait shop")
                owned = self.fishing.bait_inventory(itx.user.id)
                tables = self.fishing.tables
                lines = [
                    f"{tables.bait[k].emoji} **{tables.bait[k].name}** • {tables.bait[k].shop_price:,} coins • "
                    f"stock {qty} • you have {owned.get(k, 0)}"
                    for k, qty in stock.items()
                ]
                embed = discord.Embed(title="🪱 Bait Shop", description="\n".join(lines), color=discord.Color.teal())
                reset_in = self.fishing.store.next_bait_reset() - time.time()
                embed.set_footer(text=f"Stock resets in {format_remaining(reset_in)}")
                return await reply(itx, embed=embed, ephemeral=True)

            purchase = await self.fishing.purchase_bait(itx.user.id, itx.guild_id, bait, quantity)
            await reply(
                itx,
                f"🪱 Bought **{purchase.quantity}× {bait}** for **{purchase.total_cost:,}** coins. "
                f"Wallet: **{purchase.new_balance:,}** • stock left: {purchase.remaining_stock}",
                ephemeral=True,
            )
        except Exception as e:
            await handle_command_error(itx, e, service="Shop", context="/shop bait", embed_logger=self.embed_logger)

    @group.command(name="inventory", description="Items you own")
    async def shop_inventory(self, itx: Interaction):
        try:
            items = await self.shop.get_user_inventory(itx.user.id, itx.guild_id)
            if not items:
                return await reply(itx, "🎒 Your inventory is empty.", ephemeral=True)
            lines = [
                f"`#{i.id}` **{i.item_name}** ×{i.quantity}" + (" • usable" if i.consumable else "")
                for i in items
            ]
            embed = discord.Embed(
                title="🎒 Inventory",
                description="\n".join(lines)[:4000],
                color=discord.Color.dark_teal(),
            )
            embed.set_footer(text="Use an item with /shop use inventory_id:<#>")
            await reply(itx, embed=embed, ephemeral=True)
        except Exception as e:
            await handle_command_error(
                itx, e, service="Shop", context="/shop inventory", embed_logger=self.embed_logger
            )

    @group.command(name="use", description="Use an item from your inventory")
    @app_commands.describe(inventory_id="Inventory number shown in /shop inventory")
    async def shop_use(self, itx: Interaction, inventory_id: int):
        try:
            result = await self.shop.use_item(itx.user.id, itx.guild_id, inventory_id)
            effects = "\n".join(f"• {e}" for e in result.effects) or "Nothing happened."
            await reply(itx, f"✨ Used **{result.item.item_name}**\n{effects}", ephemeral=True)
        except Exception as e:
            await handle_command_error(itx, e, service="Shop", context="/shop use", embed_logger=self.embed_logger)

    @group.command(name="refresh", description="(Admin) Restock the shop now")
    async def shop_refresh(self, itx: Interaction):
        if not is_admin(itx.user, self.admin_role_id):
            return await reply(itx, "❌ Only admins can refresh the shop.", ephemeral=True)
        try:
            result = await self.shop.refresh_shop(itx.guild_id)
            await reply(
                itx,
                f"🔄 Shop refreshed: {result.daily_count} daily item(s), {result.event_count} event item(s).",
                ephemeral=True,
            )
            if self.embed_logger:
                await self.embed_logger.log_custom(
                    service="Shop",
                    title="Shop Refreshed",
                    description=f"Manual refresh by <@{itx.user.id}>",
                    level=LogLevel.ECONOMY,
                    fields={"Daily": str(result.daily_count), "Event": str(result.event_count)},
                )
        except Exception as e:
            await handle_command_error(
                itx, e, service="Shop", context="/shop refresh", embed_logger=self.embed_logger
            )


async def setup(bot: commands.Bot):
    await bot.add_cog(ShopCog(bot))
