# bot/cogs/help_cog.py
from __future__ import annotations

import logging

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from bot.utils.interactions import reply

logger = logging.getLogger(__name__)


class HelpCog(commands.Cog):
    """/help: one embed with every command group that is switched on."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.settings = bot.settings

    def build_embed(self) -> discord.Embed:
        s = self.settings
        embed = discord.Embed(
            title="📖 Bot Commands",
            description="Chat to earn XP, then spend your coins on games, items and fishing.",
            color=s.messages.level_color,
        )
        if s.leveling.enabled:
            embed.add_field(
                name="📈 Leveling",
                value=(
                    "`/level [user]` your level, XP and rank\n"
                    "`/leaderboard [limit]` top members by XP\n"
                    f"Earn {s.leveling.xp_per_message} XP per message "
                    f"(every {int(s.leveling.xp_cooldown_seconds)}s)."
                ),
                inline=False,
            )
        if s.gambling.enabled:
            embed.add_field(
                name="💰 Economy",
                value=(
                    "`/balance me|user|leaderboard` wallets and banks\n"
                    "`/daily` daily coins with a streak bonus\n"
                    "`/bank info|deposit|withdraw|upgrade` safe storage\n"
                    "`/steal [target]` rob a wallet (risky!)"
                ),
                inline=False,
            )
            embed.add_field(
                name="🎰 Gambling",
                value="`/gambling play` coin flip, blackjack or poker\n`/gambling rules` payouts",
                inline=False,
            )
        if s.shop.enabled:
            embed.add_field(
                name="🛒 Shop",
                value="`/shop browse|buy|inventory|use` daily items\n`/shop bait` fishing bait",
                inline=False,
            )
        if s.fishing.enabled:
            embed.add_field(name="🎣 Fishing", value="`/fish [rod] [bait]` cast a line\n`/sell` sell your net", inline=False)
        if s.events.enabled:
            embed.add_field(
                name="🎉 Events",
                value="`/calendar` seasonal events\n`/admin-event start|end|list|rewards` (admins)",
                inline=False,
            )
        utility = ["`/help` this message", "`/clean` delete recent messages (admins)"]
        if s.colors.enabled:
            utility.append("`/colorpicker select|current|remove` name colors")
        embed.add_field(name="🛠️ Utility", value="\n".join(utility), inline=False)
        return embed

    @app_commands.command(name="help", description="List the bot's commands")
    async def help(self, itx: Interaction):
        await reply(itx, embed=self.build_embed(), ephemeral=True)


async def setup(bot: commands.Bot):
    await bot.add_cog(HelpCog(bot))
