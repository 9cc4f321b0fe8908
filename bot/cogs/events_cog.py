# bot/cogs/events_cog.py
from __future__ import annotations

import logging
from typing import List, Optional

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from bot.database.models.event import EventRecord
from bot.services.errors import FeatureDisabled
from bot.services.logging_service import LogLevel
from bot.utils.interactions import handle_command_error, is_admin, reply

logger = logging.getLogger(__name__)

CATEGORY_TITLES = {"robbing": "🦹 Top Robbers", "balance": "💰 Richest", "level": "📈 Highest Level"}


class EventsCog(commands.Cog):
    """Seasonal events: admin lifecycle commands and the public calendar."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.embed_logger = getattr(bot, "embed_logger", None)
        self.settings = bot.settings.events
        self.events = bot.events
        self.shop = bot.shop

    async def announce_start(self, guild: discord.Guild, event: EventRecord):
        """Post the start embed to the event channel and restock the shop with event items."""
        etype = self.settings.event_types.get(event.event_type)
        channel = guild.get_channel(self.settings.event_channel_id) if self.settings.event_channel_id else None
        if isinstance(channel, discord.TextChannel):
            embed = discord.Embed(
                title=f"🎉 {event.event_name} has started!",
                description=etype.description if etype else "",
                color=etype.color if etype else discord.Color.gold(),
            )
            embed.add_field(name="Ends", value=f"<t:{int(event.end_date)}:R>", inline=True)
            if etype:
                lo, hi = etype.participation_coins
                embed.add_field(name="Chat Rewards", value=f"{lo:,}-{hi:,} coins and event items", inline=True)
            ping = f"<@&{self.settings.event_role_id}>" if self.settings.event_role_id else None
            try:
                await channel.send(content=ping, embed=embed)
            except discord.HTTPException as e:
                logger.warning(f"Could not announce event {event.id}: {e}")

        if self.shop.settings.enabled:
            await self.shop.refresh_shop(guild.id)

        if self.embed_logger:
            await self.embed_logger.log_custom(
                service="Events",
                title="Event Started",
                description=f"{event.event_name} started in {guild.name}",
                level=LogLevel.EVENT,
                fields={"Event ID": str(event.id), "Ends": f"<t:{int(event.end_date)}:f>"},
            )

    def _require_admin(self, itx: Interaction):
        if not self.settings.enabled:
            raise FeatureDisabled("Events")
        return is_admin(itx.user, self.settings.admin_role_id)

    async def _type_autocomplete(self, itx: Interaction, current: str) -> List[app_commands.Choice[str]]:
        current = current.lower()
        return [
            app_commands.Choice(name=etype.name[:100], value=key)
            for key, etype in self.settings.event_types.items()
            if current in key or current in etype.name.lower()
        ][:25]

    group = app_commands.Group(name="admin-event", description="Manage seasonal events (admin)")

    @group.command(name="start", description="Start an event now")
    @app_commands.describe(event_type="Event to start", duration="Length in days (default from config)")
    @app_commands.autocomplete(event_type=_type_autocomplete)
    async def event_start(
        self, itx: Interaction, event_type: str, duration: Optional[app_commands.Range[int, 1, 90]] = None
    ):
        try:
            if not self._require_admin(itx):
                return await reply(itx, "❌ Only event admins can do that.", ephemeral=True)
            await itx.response.defer(ephemeral=True)
            event = await self.events.start_event(itx.guild_id, event_type, duration)
            await self.announce_start(itx.guild, event)
            await reply(itx, f"✅ Started **{event.event_name}** (#{event.id}), ends <t:{int(event.end_date)}:R>.")
        except Exception as e:
            await handle_command_error(
                itx, e, service="Events", context="/admin-event start", embed_logger=self.embed_logger
            )

    @group.command(name="end", description="End a running event")
    @app_commands.describe(event_id="Event number from /admin-event list")
    async def event_end(self, itx: Interaction, event_id: int):
        try:
            if not self._require_admin(itx):
                return await reply(itx, "❌ Only event admins can do that.", ephemeral=True)
            event = await self.events.end_event(itx.guild_id, event_id)
            await reply(itx, f"🛑 Ended **{event.event_name}** (#{event.id}).", ephemeral=True)
            if self.embed_logger:
                await self.embed_logger.log_custom(
                    service="Events",
                    title="Event Ended",
                    description=f"<@{itx.user.id}> ended {event.event_name}",
                    level=LogLevel.EVENT,
                    fields={"Event ID": str(event.id)},
                )
        except Exception as e:
            await handle_command_error(
                itx, e, service="Events", context="/admin-event end", embed_logger=self.embed_logger
            )

    @group.command(name="list", description="Running and scheduled events")
    async def event_list(self, itx: Interaction):
        try:
            if not self._require_admin(itx):
                return await reply(itx, "❌ Only event admins can do that.", ephemeral=True)
            active = await self.events.get_active_events(itx.guild_id)
            upcoming = await self.events.get_upcoming_events(itx.guild_id)
            embed = discord.Embed(title="📋 Events", color=discord.Color.blurple())
            embed.add_field(
                name="Active",
                value="\n".join(f"#{e.id} **{e.event_name}** • ends <t:{int(e.end_date)}:R>" for e in active)
                or "None",
                inline=False,
            )
            embed.add_field(
                name="Upcoming",
                value="\n".join(f"#{e.id} **{e.event_name}** • starts <t:{int(e.start_date)}:R>" for e in upcoming)
                or "None",
                inline=False,
            )
            embed.add_field(
                name="Configured Types",
                value=", ".join(f"`{k}`" for k in self.settings.event_types) or "None",
                inline=False,
            )
            await reply(itx, embed=embed, ephemeral=True)
        except Exception as e:
            await handle_command_error(
                itx, e, service="Events", context="/admin-event list", embed_logger=self.embed_logger
            )

    @group.command(name="rewards", description="Pay the leaderboard prizes for an event")
    @app_commands.describe(event_id="Event number from /admin-event list")
    async def event_rewards(self, itx: Interaction, event_id: int):
        try:
            if not self._require_admin(itx):
                return await reply(itx, "❌ Only event admins can do that.", ephemeral=True)
            await itx.response.defer()
            payouts = await self.events.distribute_rewards(itx.guild_id, event_id)
            if not payouts:
                return await reply(itx, "No prizes to pay for that event.")

            embed = discord.Embed(title="🏆 Event Prizes", color=discord.Color.gold())
            for category, title in CATEGORY_TITLES.items():
                rows = [p for p in payouts if p.category == category]
                if rows:
                    embed.add_field(
                        name=title,
                        value="\n".join(f"**{p.place}.** <@{p.user_id}> +{p.coins:,}" for p in rows),
                        inline=False,
                    )
            await reply(itx, embed=embed)

            if self.embed_logger:
                await self.embed_logger.log_custom(
                    service="Events",
                    title="Rewards Distributed",
                    description=f"<@{itx.user.id}> paid prizes for event #{event_id}",
                    level=LogLevel.EVENT,
                    fields={"Payouts": str(len(payouts)), "Coins": f"{sum(p.coins for p in payouts):,}"},
                )
        except Exception as e:
            await handle_command_error(
                itx, e, service="Events", context="/admin-event rewards", embed_logger=self.embed_logger
            )

    @app_commands.command(name="calendar", description="Seasonal event calendar")
    async def calendar(self, itx: Interaction):
        try:
            if not self.settings.enabled:
                raise FeatureDisabled("Events")
            active = await self.events.get_active_events(itx.guild_id)
            upcoming = await self.events.get_upcoming_events(itx.guild_id)
            embed = discord.Embed(title="📅 Event Calendar", color=discord.Color.purple())
            if active:
                embed.add_field(
                    name="🎉 Happening Now",
                    value="\n".join(f"**{e.event_name}** • ends <t:{int(e.end_date)}:R>" for e in active),
                    inline=False,
                )
            if upcoming:
                embed.add_field(
                    name="🗓️ Scheduled",
                    value="\n".join(f"**{e.event_name}** • <t:{int(e.start_date)}:D>" for e in upcoming),
                    inline=False,
                )
            seasons = [
                f"{'🟢' if w.in_season else '⚪'} **{w.event_type.name}** "
                f"({w.event_type.dates[0]} to {w.event_type.dates[1]}) • "
                + ("active now" if w.in_season else f"starts in {w.days_until} day(s)")
                for w in self.events.seasonal_windows()
            ]
            embed.add_field(name="🌍 Seasons", value="\n".join(seasons)[:1024] or "None configured", inline=False)
            if self.settings.automatic_events:
                embed.set_footer(text="Seasonal events start automatically when their window opens")
            await reply(itx, embed=embed)
        except Exception as e:
            await handle_command_error(itx, e, service="Events", context="/calendar", embed_logger=self.embed_logger)


async def setup(bot: commands.Bot):
    await bot.add_cog(EventsCog(bot))
