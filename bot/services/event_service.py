"""
bot/services/event_service.py
Seasonal events: lifecycle, participation rewards and leaderboard payouts
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from ..database.models.event import EventRecord, LeaderboardEntry
from ..database.queries.economy_queries import EconomyQueries
from ..database.queries.event_queries import EventQueries
from ..database.queries.leveling_queries import LevelingQueries
from ..systems.seasons import days_until, in_window
from ..utils.config import EventSettings, EventType
from .errors import EventAlreadyActive, EventNotFound, FeatureDisabled, UnknownEventType

logger = logging.getLogger(__name__)

LEADERBOARD_CATEGORIES = ("robbing", "balance", "level")


@dataclass(frozen=True)
class ParticipationReward:
    event: EventRecord
    event_type: Optional[EventType]
    coins: int
    item: Optional[str]


@dataclass(frozen=True)
class RewardPayout:
    category: str
    place: int
    user_id: int
    coins: int


@dataclass(frozen=True)
class SeasonalWindow:
    key: str
    event_type: EventType
    in_season: bool
    days_until: int


class EventService:
    def __init__(
        self,
        engine: AsyncEngine,
        settings: EventSettings,
        starting_money: int = 1000,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self.engine = engine
        self.settings = settings
        self.starting_money = starting_money
        self.clock = clock
        self.rng = rng or random.Random()

    def event_type(self, key: str) -> EventType:
        try:
            return self.settings.event_types[key]
        except KeyError:
            raise UnknownEventType(key) from None

    def today(self) -> date:
        return datetime.fromtimestamp(self.clock()).date()

    # ------------------------------------------------------------ lifecycle

    async def start_event(self, guild_id: int, key: str, duration_days: Optional[int] = None) -> EventRecord:
        if not self.settings.enabled:
            raise FeatureDisabled("Events")
        etype = self.event_type(key)
        now = self.clock()
        days = duration_days if duration_days and duration_days > 0 else etype.duration_days
        async with self.engine.begin() as conn:
            active = await EventQueries.get_active_events(conn, guild_id, now)
            if any(e.event_type == key for e in active):
                raise EventAlreadyActive(etype.name)
            event_id = await EventQueries.create_event(conn, guild_id, key, etype.name, now, now + days * 86400)
            event = await EventQueries.get_event(conn, event_id)
        logger.info(f"Started event {key} (#{event_id}) in guild {guild_id} for {days} days")
        return event

    async def end_event(self, guild_id: int, event_id: int) -> EventRecord:
        async with self.engine.begin() as conn:
            event = await EventQueries.get_event(conn, event_id)
            if event is None or event.guild_id != guild_id:
                raise EventNotFound(event_id)
            if not await EventQueries.end_event(conn, event_id, guild_id):
                raise EventNotFound(event_id)
            event = await EventQueries.get_event(conn, event_id)
        logger.info(f"Ended event #{event_id} in guild {guild_id}")
        return event

    async def get_active_events(self, guild_id: int) -> List[EventRecord]:
        async with self.engine.connect() as conn:
            return await EventQueries.get_active_events(conn, guild_id, self.clock())

    async def get_upcoming_events(self, guild_id: int, limit: int = 5) -> List[EventRecord]:
        async with self.engine.connect() as conn:
            return await EventQueries.get_upcoming_events(conn, guild_id, self.clock(), limit)

    def seasonal_windows(self, today: Optional[date] = None) -> List[SeasonalWindow]:
        today = today or self.today()
        out = []
        for key, etype in self.settings.event_types.items():
            start, end = etype.dates
            current = in_window(today, start, end)
            out.append(SeasonalWindow(key, etype, current, 0 if current else days_until(today, start)))
        return sorted(out, key=lambda w: (not w.in_season, w.days_until))

    async def start_due_seasonal_events(self, guild_id: int, today: Optional[date] = None) -> List[EventRecord]:
        """Auto-start every event type whose window contains today and is not running."""
        if not (self.settings.enabled and self.settings.automatic_events):
            return []
        started = []
        active = {e.event_type for e in await self.get_active_events(guild_id)}
        for window in self.seasonal_windows(today):
            if window.in_season and window.key not in active:
                started.append(await self.start_event(guild_id, window.key))
        return started

    # ------------------------------------------------------------ participation

    async def record_participation(self, user_id: int, guild_id: int) -> List[ParticipationReward]:
        if not self.settings.enabled:
            return []
        now = self.clock()
        rewards: List[ParticipationReward] = []
        async with self.engine.begin() as conn:
            for event in await EventQueries.get_active_events(conn, guild_id, now):
                participant = await EventQueries.add_participation(conn, event.id, user_id, guild_id)
                cap = self.settings.max_participation_rewards
                if cap > 0 and participant.rewards_claimed >= cap:
                    continue
                if self.rng.random() >= self.settings.participation_chance:
                    continue
                etype = self.settings.event_types.get(event.event_type)
                if etype is None:
                    continue
                lo, hi = etype.participation_coins
                coins = self.rng.randint(lo, hi) if hi >= lo else lo
                item = self.rng.choice(etype.participation_items) if etype.participation_items else None
                granted = await EventQueries.record_reward(
                    conn, event.id, user_id, guild_id, coins, [item] if item else [], cap
                )
                if not granted:
                    continue
                await EconomyQueries.get(conn, user_id, guild_id, self.starting_money, now)
                await EconomyQueries.credit(conn, user_id, guild_id, coins)
                rewards.append(ParticipationReward(event, etype, coins, item))
        return rewards

    # ------------------------------------------------------------ leaderboards

    async def get_leaderboards(self, guild_id: int) -> Dict[str, List[LeaderboardEntry]]:
        async with self.engine.connect() as conn:
            balance = await EconomyQueries.money_leaderboard(conn, guild_id, 3)
            return {
                "robbing": await EconomyQueries.robbing_leaderboard(conn, guild_id, 3),
                "balance": [LeaderboardEntry(r.user_id, r.total) for r in balance],
                "level": await LevelingQueries.level_leaderboard(conn, guild_id, 3),
            }

    async def distribute_rewards(self, guild_id: int, event_id: int) -> List[RewardPayout]:
        """Pay the configured 1st/2nd/3rd coins for each leaderboard category."""
        async with self.engine.connect() as conn:
            event = await EventQueries.get_event(conn, event_id)
        if event is None or event.guild_id != guild_id:
            raise EventNotFound(event_id)
        etype = self.event_type(event.event_type)
        boards = await self.get_leaderboards(guild_id)

        payouts: List[RewardPayout] = []
        now = self.clock()
        async with self.engine.begin() as conn:
            for category in LEADERBOARD_CATEGORIES:
                prizes = etype.leaderboard_rewards.get(category, ())
                for place, (entry, coins) in enumerate(zip(boards[category], prizes), start=1):
                    if coins <= 0:
                        continue
                    await EconomyQueries.get(conn, entry.user_id, guild_id, self.starting_money, now)
                    await EconomyQueries.credit(conn, entry.user_id, guild_id, coins)
                    payouts.append(RewardPayout(category, place, entry.user_id, coins))
        logger.info(f"Distributed {len(payouts)} leaderboard rewards for event #{event_id}")
        return payouts
