"""
bot/services/leveling_service.py
Message XP, levels, rank and leaderboard
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from ..database.models.leveling import UserProgress, XpGain
from ..database.queries.leveling_queries import LevelingQueries
from ..systems.progression import ProgressionCurve
from ..systems.stores import CooldownTracker
from ..utils.config import LevelingSettings

logger = logging.getLogger(__name__)


class LevelingService:
    def __init__(
        self,
        engine: AsyncEngine,
        settings: LevelingSettings,
        cooldowns: Optional[CooldownTracker] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.engine = engine
        self.settings = settings
        self.curve = ProgressionCurve(settings.base_xp_required, settings.xp_multiplier)
        self.clock = clock
        self.cooldowns = cooldowns or CooldownTracker(clock)

    def xp_for_message(self, is_booster: bool) -> int:
        xp = self.settings.xp_per_message
        if is_booster:
            xp = int(xp * self.settings.booster_xp_multiplier)
        return xp

    async def add_xp(self, user_id: int, guild_id: int, amount: int, username: Optional[str] = None) -> XpGain:
        now = self.clock()
        async with self.engine.begin() as conn:
            xp, old_level = await LevelingQueries.add_xp(conn, user_id, guild_id, amount, username, now)
            level = self.curve.calculate_level(xp)
            if level != old_level:
                await LevelingQueries.set_level(conn, user_id, guild_id, level)
        progress = UserProgress(user_id, guild_id, xp, level, username, now)
        if level > old_level:
            logger.info(f"User {user_id} reached level {level} in guild {guild_id}")
        return XpGain(progress, old_level)

    async def handle_message(
        self, user_id: int, guild_id: int, username: Optional[str] = None, is_booster: bool = False
    ) -> Optional[XpGain]:
        """None while the member is on XP cooldown."""
        if not self.settings.enabled:
            return None
        if self.cooldowns.try_acquire((user_id, guild_id), self.settings.xp_cooldown_seconds) > 0:
            return None
        return await self.add_xp(user_id, guild_id, self.xp_for_message(is_booster), username)

    async def get_user(self, user_id: int, guild_id: int) -> Optional[UserProgress]:
        async with self.engine.connect() as conn:
            return await LevelingQueries.get_user(conn, user_id, guild_id)

    async def get_user_rank(self, user_id: int, guild_id: int) -> Optional[int]:
        async with self.engine.connect() as conn:
            return await LevelingQueries.get_rank(conn, user_id, guild_id)

    async def get_leaderboard(self, guild_id: int, limit: int = 10) -> List[UserProgress]:
        async with self.engine.connect() as conn:
            return await LevelingQueries.get_leaderboard(conn, guild_id, limit)
