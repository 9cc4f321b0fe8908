# bot/cogs/leveling_cog.py
from __future__ import annotations

import logging
from typing import Optional

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from bot.database.models.leveling import XpGain
from bot.services.event_service import ParticipationReward
from bot.services.logging_service import LogLevel
from bot.utils.interactions import handle_command_error, reply

logger = logging.getLogger(__name__)


class LevelingCog(commands.Cog):
    """Message XP, level-up announcements, role rewards and event participation."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.embed_logger = getattr(bot, "embed_logger", None)
        self.settings = bot.settings
        self.leveling = bot.leveling
        self.events = bot.events
        self.legacy_rewards = getattr(bot.config, "level_rewards", {})

    def _is_booster(self, member) -> bool:
        role_id = self.settings.leveling.booster_role_id
        if not role_id or not isinstance(member, discord.Member):
            return False
        return member.get_role(role_id) is not None

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        if message.author.bot or message.guild is None:
            return

        try:
            gain = await self.leveling.handle_message(
                message.author.id, message.guild.id, str(message.author), self._is_booster(message.author)
            )
        except Exception as e:
            logger.exception(f"Error awarding message XP to {message.author.id}")
            if self.embed_logger:
                await self.embed_logger.log_error(service="Leveling", error=e, context="on_message XP award")
            gain = None

        if gain is not None and gain.leveled_up:
            await self._announce_level_up(message, gain)

        try:
            rewards = await self.events.record_participation(message.author.id, message.guild.id)
        except Exception as e:
            logger.exception(f"Error recording event participation for {message.author.id}")
            if self.embed_logger:
                await self.embed_logger.log_error(service="Events", error=e, context="participation roll")
            return
        for reward in rewards:
            await self._announce_participation(message, reward)

    async def _announce_level_up(self, message: discord.Message, gain: XpGain):
        msgs = self.settings.messages
        level = gain.progress.level
        embed = discord.Embed(
            title=msgs.level_up_title,
            description=f"{message.author.mention} reached **level {level}**!",
            color=msgs.level_up_color,
        )
        embed.set_thumbnail(url=message.author.display_avatar.url)
        embed.set_footer(text=msgs.level_up_footer)

        granted = await self._grant_level_roles(message.author, gain.old_level, level)
        if granted:
            embed.add_field(name="🏆 New Roles", value=", ".join(r.mention for r in granted), inline=False)

        try:
            await message.channel.send(embed=embed)
        except discord.HTTPException as e:
            logger.warning(f"Could not post level-up message: {e}")

    async def _grant_level_roles(self, member, old_level: int, new_level: int) -> list[discord.Role]:
        if not isinstance(member, discord.Member):
            return []
        granted = []
        for level in range(old_level + 1, new_level + 1):
            role_ids = []
            reward = self.settings.role_rewards.get(level)
            if reward and reward.role_id:
                role_ids.append(reward.role_id)
            if self.legacy_rewards.get(level):
                role_ids.append(self.legacy_rewards[level])
            for role_id in role_ids:
                role = member.guild.get_role(role_id)
                if role is None or role in member.roles:
                    continue
                try:
                    await member.add_roles(role, reason=f"Reached level {level}")
                    granted.append(role)
                except discord.HTTPException as e:
                    logger.warning(f"Failed to give role {role_id} to {member.id}: {e}")
                    if self.embed_logger:
                        await self.embed_logger.log_error(
                            service="Leveling", error=e, context=f"role reward {role_id} for level {level}"
                        )
        if granted and self.embed_logger:
            await self.embed_logger.log_custom(
                service="Leveling",
                title="Role Reward",
                description=f"{member.mention} reached level {new_level}",
                level=LogLevel.SUCCESS,
                fields={"Roles": ", ".join(r.name for r in granted)},
            )
        return granted

    async def _announce_participation(self, message: discord.Message, reward: ParticipationReward):
        etype = reward.event_type
        lines = [f"💰 **{reward.coins:,}** coins"]
        if reward.item:
            lines.append(f"🎁 **{reward.item}**")
        embed = discord.Embed(
            title=f"🎊 {etype.name if etype else reward.event.event_name} Reward!",
            description=f"{message.author.mention} found a bonus for taking part:\n" + "\n".join(lines),
            color=etype.color if etype else discord.Color.gold(),
        )
        try:
            await message.channel.send(embed=embed)
        except discord.HTTPException as e:
            logger.warning(f"Could not post participation reward: {e}")

    # --- Slash Commands ---

    @app_commands.command(name="level", description="Show your level or another member's")
    @app_commands.describe(user="Member to look up")
    async def level(self, itx: Interaction, user: Optional[discord.Member] = None):
        target = user or itx.user
        try:
            record = await self.leveling.get_user(target.id, itx.guild_id)
            if record is None:
                return await reply(itx, f"{target.mention} hasn't earned any XP yet.", ephemeral=True)
            snap = self.leveling.curve.snapshot(record.xp)
            rank = await self.leveling.get_user_rank(target.id, itx.guild_id)

            filled = snap.progress // 10
            bar = "▰" * filled + "▱" * (10 - filled)
            embed = discord.Embed(
                title=f"📊 {target.display_name}",
                color=self.settings.messages.level_color,
            )
            embed.set_thumbnail(url=target.display_avatar.url)
            embed.add_field(name="Level", value=str(snap.level), inline=True)
            embed.add_field(name="XP", value=f"{snap.xp:,}", inline=True)
            embed.add_field(name="Rank", value=f"#{rank}" if rank else "n/a", inline=True)
            embed.add_field(
                name="Progress",
                value=f"{bar} {snap.progress}%\n{snap.xp_needed:,} XP to level {snap.level + 1}",
                inline=False,
            )
            await reply(itx, embed=embed)
        except Exception as e:
            await handle_command_error(
                itx, e, service="Leveling", context="/level", embed_logger=self.embed_logger
            )

    @app_commands.command(name="leaderboard", description="Top members by XP")
    @app_commands.describe(limit="How many members to show (1-25)")
    async def leaderboard(self, itx: Interaction, limit: app_commands.Range[int, 1, 25] = 10):
        try:
            rows = await self.leveling.get_leaderboard(itx.guild_id, limit)
            if not rows:
                return await reply(itx, "No one has earned XP yet.", ephemeral=True)
            medals = {1: "🥇", 2: "🥈", 3: "🥉"}
            lines = [
                f"{medals.get(i, f'**{i}.**')} <@{r.user_id}> • Level {r.level} • {r.xp:,} XP"
                for i, r in enumerate(rows, 1)
            ]
            embed = discord.Embed(
                title="🏆 XP Leaderboard",
                description="\n".join(lines),
                color=self.settings.messages.level_color,
            )
            await reply(itx, embed=embed)
        except Exception as e:
            await handle_command_error(
                itx, e, service="Leveling", context="/leaderboard", embed_logger=self.embed_logger
            )


async def setup(bot: commands.Bot):
    await bot.add_cog(LevelingCog(bot))
