# bot/cogs/economy_cog.py
from __future__ import annotations

import logging
from typing import Optional

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from bot.services.errors import Caught, FeatureDisabled, InvalidTarget, NoMoney
from bot.services.logging_service import LogLevel
from bot.utils.interactions import format_remaining, handle_command_error, reply

logger = logging.getLogger(__name__)


class EconomyCog(commands.Cog):
    """Wallet balance, daily reward and stealing."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.embed_logger = getattr(bot, "embed_logger", None)
        self.settings = bot.settings.gambling
        self.economy = bot.economy
        self.fishing = bot.fishing

    def _require_economy(self):
        if not self.settings.enabled:
            raise FeatureDisabled("The economy")

    async def _balance_embed(self, member: discord.abc.User, guild_id: int) -> discord.Embed:
        record = await self.economy.get_economy(member.id, guild_id)
        embed = discord.Embed(title=f"💰 {member.display_name}'s Balance", color=discord.Color.gold())
        embed.add_field(name="👛 Wallet", value=f"{record.money:,}", inline=True)
        embed.add_field(name="🏦 Bank", value=f"{record.bank_money:,}", inline=True)
        embed.add_field(name="💎 Total", value=f"{record.total:,}", inline=True)
        embed.add_field(
            name="Bank Level",
            value=f"{record.bank_level} (limit {self.economy.bank_limit(record.bank_level):,})",
            inline=True,
        )
        embed.add_field(name="🔥 Daily Streak", value=str(record.daily_streak), inline=True)
        remaining = self.economy.daily_remaining(record)
        embed.add_field(
            name="🎁 Next Daily",
            value=(
                f"{self.economy.next_daily_reward(record):,} coins"
                if remaining <= 0
                else f"in {format_remaining(remaining)}"
            ),
            inline=True,
        )
        embed.set_thumbnail(url=member.display_avatar.url)
        return embed

    # --- Slash Commands ---
    balance = app_commands.Group(name="balance", description="Wallet and bank balances")

    @balance.command(name="me", description="Show your balance")
    async def balance_me(self, itx: Interaction):
        try:
            self._require_economy()
            await reply(itx, embed=await self._balance_embed(itx.user, itx.guild_id))
        except Exception as e:
            await handle_command_error(
                itx, e, service="Economy", context="/balance me", embed_logger=self.embed_logger
            )

    @balance.command(name="user", description="Show another member's balance")
    @app_commands.describe(user="Member to look up")
    async def balance_user(self, itx: Interaction, user: discord.Member):
        try:
            self._require_economy()
            if user.bot:
                raise InvalidTarget("Bots don't have wallets")
            await reply(itx, embed=await self._balance_embed(user, itx.guild_id))
        except Exception as e:
            await handle_command_error(
                itx, e, service="Economy", context="/balance user", embed_logger=self.embed_logger
            )

    @balance.command(name="leaderboard", description="Richest members (wallet + bank)")
    @app_commands.describe(limit="How many members to show (1-25)")
    async def balance_leaderboard(self, itx: Interaction, limit: app_commands.Range[int, 1, 25] = 10):
        try:
            self._require_economy()
            rows = await self.economy.get_money_leaderboard(itx.guild_id, limit)
            if not rows:
                return await reply(itx, "No balances yet.", ephemeral=True)
            medals = {1: "🥇", 2: "🥈", 3: "🥉"}
            lines = [
                f"{medals.get(i, f'**{i}.**')} <@{r.user_id}> • {r.total:,} coins "
                f"(👛 {r.money:,} / 🏦 {r.bank_money:,})"
                for i, r in enumerate(rows, 1)
            ]
            embed = discord.Embed(
                title="💰 Money Leaderboard", description="\n".join(lines), color=discord.Color.gold()
            )
            await reply(itx, embed=embed)
        except Exception as e:
            await handle_command_error(
                itx, e, service="Economy", context="/balance leaderboard", embed_logger=self.embed_logger
            )

    @app_commands.command(name="daily", description="Claim your daily reward")
    async def daily(self, itx: Interaction):
        try:
            self._require_economy()
            claim = await self.economy.claim_daily(itx.user.id, itx.guild_id)
            bait = self.fishing.give_daily_bait(itx.user.id)

            embed = discord.Embed(
                title="🎁 Daily Reward Claimed!",
                description=f"You received **{claim.reward:,}** coins.",
                color=discord.Color.green(),
            )
            embed.add_field(name="🔥 Streak", value=f"{claim.streak} day(s)", inline=True)
            embed.add_field(name="👛 Wallet", value=f"{claim.new_balance:,}", inline=True)
            if bait:
                embed.add_field(
                    name="🪱 Daily Bait",
                    value=", ".join(f"{qty}× {key}" for key, qty in bait.items()),
                    inline=False,
                )
            await reply(itx, embed=embed)
        except Exception as e:
            await handle_command_error(itx, e, service="Economy", context="/daily", embed_logger=self.embed_logger)

    @app_commands.command(name="steal", description="Try to steal coins from someone's wallet")
    @app_commands.describe(target="Who to rob (random if omitted)")
    async def steal(self, itx: Interaction, target: Optional[discord.Member] = None):
        try:
            self._require_economy()
            if target is not None and target.bot:
                raise InvalidTarget("You can't rob a bot")
            target_id = target.id if target else await self.economy.pick_steal_target(itx.user.id, itx.guild_id)
            try:
                result = await self.economy.attempt_steal(itx.user.id, target_id, itx.guild_id)
            except Caught:
                return await reply(itx, f"🚨 You got caught trying to rob <@{target_id}> and ran off empty-handed!")
            except NoMoney:
                return await reply(itx, f"🕳️ <@{target_id}> has nothing worth stealing.")

            embed = discord.Embed(
                title="🦹 Successful Heist!",
                description=f"You stole **{result.amount:,}** coins from <@{result.target_id}>!",
                color=discord.Color.dark_red(),
            )
            embed.add_field(name="👛 Your Wallet", value=f"{result.stealer_balance:,}", inline=True)
            await reply(itx, embed=embed)

            if self.embed_logger:
                await self.embed_logger.log_custom(
                    service="Economy",
                    title="Steal",
                    description=f"<@{itx.user.id}> robbed <@{result.target_id}>",
                    level=LogLevel.ECONOMY,
                    fields={"Amount": f"{result.amount:,}", "Guild": str(itx.guild_id)},
                )
        except Exception as e:
            await handle_command_error(itx, e, service="Economy", context="/steal", embed_logger=self.embed_logger)


async def setup(bot: commands.Bot):
    await bot.add_cog(EconomyCog(bot))
