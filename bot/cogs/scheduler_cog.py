# bot/cogs/scheduler_cog.py
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Dict

from discord.ext import commands, tasks

from bot.services.logging_service import LogLevel
from bot.systems.seasons import is_refresh_hour

logger = logging.getLogger(__name__)


class SchedulerCog(commands.Cog):
    """Auto-starts seasonal events hourly; checks the daily shop refresh every minute."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.embed_logger = getattr(bot, "embed_logger", None)
        self.settings = bot.settings
        self.events = bot.events
        self.shop = bot.shop
        self._last_refresh: Dict[int, date] = {}

    async def cog_load(self):
        self.hourly.start()
        self.shop_clock.start()

    async def cog_unload(self):
        self.hourly.cancel()
        self.shop_clock.cancel()

    @tasks.loop(hours=1)
    async def hourly(self):
        for guild in self.bot.guilds:
            await self.start_seasonal_events(guild)

    # refreshTime has minute precision, so the shop check ticks every minute
    @tasks.loop(minutes=1)
    async def shop_clock(self):
        now = datetime.now()
        for guild in self.bot.guilds:
            await self.refresh_shop_if_due(guild.id, now)

    @hourly.before_loop
    @shop_clock.before_loop
    async def before_loops(self):
        await self.bot.wait_until_ready()

    @hourly.error
    async def hourly_error(self, error: Exception):
        logger.exception("Scheduler loop crashed", exc_info=error)
        if self.embed_logger:
            await self.embed_logger.log_error(service="Scheduler", error=error, context="hourly loop")

    @shop_clock.error
    async def shop_clock_error(self, error: Exception):
        logger.exception("Shop refresh loop crashed", exc_info=error)
        if self.embed_logger:
            await self.embed_logger.log_error(service="Scheduler", error=error, context="shop refresh loop")

    async def start_seasonal_events(self, guild):
        try:
            started = await self.events.start_due_seasonal_events(guild.id)
        except Exception as e:
            logger.exception(f"Seasonal check failed for guild {guild.id}")
            if self.embed_logger:
                await self.embed_logger.log_error(service="Scheduler", error=e, context=f"seasonal events {guild.id}")
            return

        events_cog = self.bot.get_cog("EventsCog")
        for event in started:
            logger.info(f"Auto-started {event.event_type} in guild {guild.id}")
            if events_cog is not None:
                await events_cog.announce_start(guild, event)

    async def refresh_shop_if_due(self, guild_id: int, now: datetime) -> bool:
        """At most one automatic refresh per guild per calendar day."""
        if not self.settings.shop.enabled:
            return False
        if not is_refresh_hour(now, self.settings.shop.refresh_time):
            return False
        if self._last_refresh.get(guild_id) == now.date():
            return False
        try:
            result = await self.shop.refresh_shop(guild_id)
        except Exception as e:
            logger.exception(f"Daily shop refresh failed for guild {guild_id}")
            if self.embed_logger:
                await self.embed_logger.log_error(service="Scheduler", error=e, context=f"shop refresh {guild_id}")
            return False
        self._last_refresh[guild_id] = now.date()
        if self.embed_logger:
            await self.embed_logger.log_custom(
                service="Scheduler",
                title="Daily Shop Refresh",
                description=f"Shop restocked for guild {guild_id}",
                level=LogLevel.SYSTEM,
                fields={"Daily": str(result.daily_count), "Event": str(result.event_count)},
            )
        return True


async def setup(bot: commands.Bot):
    await bot.add_cog(SchedulerCog(bot))
