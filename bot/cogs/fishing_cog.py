# bot/cogs/fishing_cog.py
from __future__ import annotations

import logging
from typing import List, Optional

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from bot.services.errors import FeatureDisabled, ItemNotFound
from bot.services.logging_service import LogLevel
from bot.utils.interactions import handle_command_error, reply

logger = logging.getLogger(__name__)


class FishingCog(commands.Cog):
    """Casting a line and selling the catch."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.embed_logger = getattr(bot, "embed_logger", None)
        self.fishing = bot.fishing

    def _require_fishing(self):
        if not self.fishing.enabled:
            raise FeatureDisabled("Fishing")

    async def _rod_autocomplete(self, itx: Interaction, current: str) -> List[app_commands.Choice[str]]:
        if not self.fishing.enabled:
            return []
        current = current.lower()
        return [
            app_commands.Choice(name=f"{rod.get('emoji', '🎣')} {rod.get('name', key.title())}"[:100], value=key)
            for key, rod in self.fishing.tables.rods.items()
            if current in key
        ][:25]

    async def _bait_autocomplete(self, itx: Interaction, current: str) -> List[app_commands.Choice[str]]:
        if not self.fishing.enabled:
            return []
        owned = self.fishing.bait_inventory(itx.user.id)
        current = current.lower()
        return [
            app_commands.Choice(name=f"{self.fishing.tables.bait_info(key).name} ({qty} left)"[:100], value=key)
            for key, qty in owned.items()
            if qty > 0 and current in key
        ][:25]

    @app_commands.command(name="fish", description="Cast your line and catch a fish")
    @app_commands.describe(rod="Fishing rod to use", bait="Bait to use")
    @app_commands.autocomplete(rod=_rod_autocomplete, bait=_bait_autocomplete)
    async def fish(self, itx: Interaction, rod: Optional[str] = None, bait: Optional[str] = None):
        try:
            self._require_fishing()
            tables = self.fishing.tables
            rod = rod or "wooden"
            bait = bait or "worm"
            if rod not in tables.rods:
                raise ItemNotFound(rod)
            if bait not in tables.bait:
                raise ItemNotFound(bait)

            result = self.fishing.cast(itx.user.id, rod, bait)
            fish = result.fish
            rod_info = tables.rod(rod)
            weather = tables.weather_info(result.weather)
            bait_info = tables.bait_info(bait)

            embed = discord.Embed(
                title="🎣 Fishing Success!",
                description=f"{tables.random_start_message()}\n\n{fish.emoji} **You caught a {fish.name}!**",
                color=tables.rarity_color(fish.rarity),
            )
            embed.add_field(
                name="🎣 Rod", value=f"{rod_info.get('emoji', '🎣')} {rod_info.get('name', rod.title())}", inline=True
            )
            embed.add_field(name="🪱 Bait", value=f"{bait_info.emoji} {bait_info.name}", inline=True)
            embed.add_field(
                name="🌤️ Weather",
                value=f"{weather.get('emoji', '')} {weather.get('name', result.weather.title())}".strip(),
                inline=True,
            )
            embed.add_field(name="⭐ Rarity", value=fish.rarity.title(), inline=True)
            embed.add_field(name="💰 Value", value=f"{fish.value:,}", inline=True)
            embed.add_field(name="🪱 Bait Left", value=f"{result.bait_left}×", inline=True)
            embed.set_footer(text=f"Chance {fish.final_chance:.2f}% • sell your catch with /sell")
            await reply(itx, embed=embed)
        except Exception as e:
            await handle_command_error(itx, e, service="Fishing", context="/fish", embed_logger=self.embed_logger)

    @app_commands.command(name="sell", description="Sell every fish in your net")
    async def sell(self, itx: Interaction):
        try:
            self._require_fishing()
            net = self.fishing.store.get_net(itx.user.id)
            if not net.fish:
                return await reply(itx, "🪣 Your net is empty. Go `/fish` first!", ephemeral=True)

            lines = [
                f"{group[0].emoji} {rarity.title()}: {len(group)} fish • {sum(f.value for f in group):,} coins"
                for rarity, group in net.by_rarity().items()
            ]
            embed = discord.Embed(
                title="💰 Sell Your Catch?",
                description="\n".join(lines) + f"\n\n**Total: {net.total_value:,} coins**",
                color=discord.Color.gold(),
            )
            await reply(itx, embed=embed, view=SellConfirmView(self, itx.user.id), ephemeral=True)
        except Exception as e:
            await handle_command_error(itx, e, service="Fishing", context="/sell", embed_logger=self.embed_logger)


class SellConfirmView(discord.ui.View):
    def __init__(self, cog: FishingCog, user_id: int):
        super().__init__(timeout=60)
        self.cog = cog
        self.user_id = user_id

    async def interaction_check(self, interaction: Interaction) -> bool:
        return interaction.user.id == self.user_id

    def _close(self):
        for item in self.children:
            item.disabled = True
        self.stop()

    @discord.ui.button(label="Sell All", style=discord.ButtonStyle.success, emoji="💰")
    async def confirm(self, interaction: Interaction, button: discord.ui.Button):
        self._close()
        try:
            result = await self.cog.fishing.sell_all(interaction.user.id, interaction.guild_id)
            if result is None:
                return await interaction.response.edit_message(content="🪣 Your net is empty.", embed=None, view=self)
            await interaction.response.edit_message(
                content=(
                    f"✅ Sold **{result.sale.fish_count}** fish for **{result.sale.total_value:,}** coins. "
                    f"Wallet: **{result.new_balance:,}**"
                ),
                embed=None,
                view=self,
            )
            if self.cog.embed_logger and result.sale.total_value >= 1000:
                await self.cog.embed_logger.log_custom(
                    service="Fishing",
                    title="Big Catch Sold",
                    description=f"<@{interaction.user.id}> sold {result.sale.fish_count} fish",
                    level=LogLevel.ECONOMY,
                    fields={"Value": f"{result.sale.total_value:,}"},
                )
        except Exception as e:
            await handle_command_error(
                interaction, e, service="Fishing", context="sell confirm", embed_logger=self.cog.embed_logger
            )

    @discord.ui.button(label="Cancel", style=discord.ButtonStyle.secondary)
    async def cancel(self, interaction: Interaction, button: discord.ui.Button):
        self._close()
        await interaction.response.edit_message(content="Kept your fish.", embed=None, view=self)


async def setup(bot: commands.Bot):
    await bot.add_cog(FishingCog(bot))
