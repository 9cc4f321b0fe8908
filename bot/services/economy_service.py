"""
bot/services/economy_service.py
Wallet, bank, daily reward and steal rules on top of EconomyQueries.

Every operation runs in one transaction and validates before it mutates.
Business refusals are raised as EconomyError subclasses.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from ..database.models.economy import EconomyRecord
from ..database.queries.economy_queries import EconomyQueries
from ..utils.config import GamblingSettings
from .errors import (
    AlreadyClaimed,
    BankLimitExceeded,
    Caught,
    FeatureDisabled,
    InsufficientBank,
    InsufficientFunds,
    InsufficientWallet,
    InvalidBet,
    InvalidTarget,
    MaxLevelReached,
    NoMoney,
    NoTarget,
    NoUpgradeAvailable,
    OnCooldown,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyClaim:
    reward: int
    streak: int
    new_balance: int


@dataclass(frozen=True)
class BankUpgrade:
    new_level: int
    new_limit: int
    cost: int
    new_wallet: int


@dataclass(frozen=True)
class StealResult:
    target_id: int
    amount: int
    stealer_balance: int
    target_balance: int


class EconomyService:
    def __init__(
        self,
        engine: AsyncEngine,
        settings: GamblingSettings,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self.engine = engine
        self.settings = settings
        self.clock = clock
        self.rng = rng or random.Random()

    # ------------------------------------------------------------ helpers

    def bank_limit(self, bank_level: int) -> int:
        return self.settings.bank.limit_for(bank_level)

    def next_daily_reward(self, record: EconomyRecord) -> int:
        """What the next claim pays if made now."""
        streak = self._next_streak(record, self.clock())
        return self.settings.daily.reward_for(streak)

    def daily_remaining(self, record: EconomyRecord) -> float:
        if record.last_daily is None:
            return 0.0
        return max(0.0, record.last_daily + self.settings.daily.cooldown_seconds - self.clock())

    def steal_remaining(self, record: EconomyRecord) -> float:
        if record.last_steal is None:
            return 0.0
        return max(0.0, record.last_steal + self.settings.steal.cooldown_seconds - self.clock())

    def _next_streak(self, record: EconomyRecord, now: float) -> int:
        daily = self.settings.daily
        streak = 1
        if record.last_daily is not None and now - record.last_daily < daily.streak_window_seconds:
            streak = record.daily_streak + 1
        return min(streak, daily.max_streak)

    async def _get(self, conn, user_id: int, guild_id: int) -> EconomyRecord:
        return await EconomyQueries.get(conn, user_id, guild_id, self.settings.starting_money, self.clock())

    # ------------------------------------------------------------ reads

    async def get_economy(self, user_id: int, guild_id: int) -> EconomyRecord:
        async with self.engine.begin() as conn:
            return await self._get(conn, user_id, guild_id)

    async def get_money_leaderboard(self, guild_id: int, limit: int = 10) -> List[EconomyRecord]:
        async with self.engine.connect() as conn:
            return await EconomyQueries.money_leaderboard(conn, guild_id, limit)

    # ------------------------------------------------------------ wallet

    async def adjust_wallet(self, user_id: int, guild_id: int, delta: int) -> EconomyRecord:
        """Unclamped credit/debit with game stats; callers pre-validate debits."""
        async with self.engine.begin() as conn:
            await self._get(conn, user_id, guild_id)
            await EconomyQueries.adjust_wallet(conn, user_id, guild_id, delta)
            return await self._get(conn, user_id, guild_id)

    async def apply_game_result(self, user_id: int, guild_id: int, net: int) -> EconomyRecord:
        """Like adjust_wallet, but a loss larger than the wallet is refused."""
        async with self.engine.begin() as conn:
            record = await self._get(conn, user_id, guild_id)
            if not await EconomyQueries.adjust_wallet(conn, user_id, guild_id, net, require_funds=True):
                raise InsufficientWallet(needed=-net - record.money)
            return await self._get(conn, user_id, guild_id)

    async def credit(self, user_id: int, guild_id: int, amount: int) -> EconomyRecord:
        """Non-game income (event rewards, item effects); stats untouched."""
        async with self.engine.begin() as conn:
            await self._get(conn, user_id, guild_id)
            await EconomyQueries.credit(conn, user_id, guild_id, amount)
            return await self._get(conn, user_id, guild_id)

    async def validate_bet(self, user_id: int, guild_id: int, bet: int) -> EconomyRecord:
        if not self.settings.enabled:
            raise FeatureDisabled("Gambling")
        if bet < self.settings.min_bet or bet > self.settings.max_bet:
            raise InvalidBet(self.settings.min_bet, self.settings.max_bet)
        record = await self.get_economy(user_id, guild_id)
        if bet > record.money:
            raise InsufficientWallet(needed=bet - record.money)
        return record

    async def escrow_bet(self, user_id: int, guild_id: int, bet: int) -> EconomyRecord:
        """Take the stake up front for multi-step games."""
        await self.validate_bet(user_id, guild_id, bet)
        async with self.engine.begin() as conn:
            record = await self._get(conn, user_id, guild_id)
            if not await EconomyQueries.spend(conn, user_id, guild_id, bet):
                raise InsufficientWallet(needed=bet - record.money)
            return await self._get(conn, user_id, guild_id)

    async def settle_escrow(self, user_id: int, guild_id: int, bet: int, net: int) -> EconomyRecord:
        """Return the stake plus the net result (net == -bet returns nothing)."""
        async with self.engine.begin() as conn:
            await self._get(conn, user_id, guild_id)
            await EconomyQueries.adjust_wallet(conn, user_id, guild_id, net, escrowed=bet)
            return await self._get(conn, user_id, guild_id)

    # ------------------------------------------------------------ bank

    async def deposit(self, user_id: int, guild_id: int, amount: int) -> EconomyRecord:
        if amount <= 0:
            raise ValueError("Amount must be positive")
        async with self.engine.begin() as conn:
            record = await self._get(conn, user_id, guild_id)
            limit = self.bank_limit(record.bank_level)
            if amount > record.money:
                raise InsufficientWallet(needed=amount - record.money)
            if record.bank_money + amount > limit:
                raise BankLimitExceeded(limit, record.bank_money)
            if not await EconomyQueries.deposit(conn, user_id, guild_id, amount, record.bank_level, limit):
                raise InsufficientWallet(needed=amount)
            return await self._get(conn, user_id, guild_id)

    async def withdraw(self, user_id: int, guild_id: int, amount: int) -> EconomyRecord:
        if amount <= 0:
            raise ValueError("Amount must be positive")
        async with self.engine.begin() as conn:
            await self._get(conn, user_id, guild_id)
            if not await EconomyQueries.withdraw(conn, user_id, guild_id, amount):
                raise InsufficientBank()
            return await self._get(conn, user_id, guild_id)

    async def upgrade_bank(self, user_id: int, guild_id: int) -> BankUpgrade:
        bank = self.settings.bank
        async with self.engine.begin() as conn:
            record = await self._get(conn, user_id, guild_id)
            if record.bank_level >= bank.max_bank_level:
                raise MaxLevelReached()
            cost = bank.upgrade_cost(record.bank_level)
            if cost is None:
                raise NoUpgradeAvailable()
            if record.money < cost:
                raise InsufficientFunds(cost - record.money)
            if not await EconomyQueries.upgrade_bank(conn, user_id, guild_id, record.bank_level, cost):
                raise InsufficientFunds(cost)
            new_level = record.bank_level + 1
            logger.info(f"Bank upgrade user={user_id} guild={guild_id} level={new_level} cost={cost}")
            return BankUpgrade(new_level, self.bank_limit(new_level), cost, record.money - cost)

    # ------------------------------------------------------------ daily

    async def claim_daily(self, user_id: int, guild_id: int) -> DailyClaim:
        daily = self.settings.daily
        now = self.clock()
        async with self.engine.begin() as conn:
            record = await self._get(conn, user_id, guild_id)
            if record.last_daily is not None and now - record.last_daily < daily.cooldown_seconds:
                raise AlreadyClaimed(record.last_daily + daily.cooldown_seconds - now)

            streak = self._next_streak(record, now)
            reward = daily.reward_for(streak)
            claimed = await EconomyQueries.claim_daily(
                conn,
                user_id,
                guild_id,
                reward=reward,
                streak=streak,
                now=now,
                seen_last_daily=record.last_daily,
                cutoff=now - daily.cooldown_seconds,
            )
            if not claimed:
                # lost the race to a concurrent claim
                raise AlreadyClaimed(daily.cooldown_seconds)
            return DailyClaim(reward, streak, record.money + reward)

    # ------------------------------------------------------------ steal

    async def pick_steal_target(self, stealer_id: int, guild_id: int) -> int:
        async with self.engine.connect() as conn:
            target = await EconomyQueries.random_steal_target(
                conn, guild_id, stealer_id, self.settings.steal.min_steal_amount
            )
        if target is None:
            raise NoTarget()
        return target

    async def attempt_steal(self, stealer_id: int, target_id: int, guild_id: int) -> StealResult:
        """
        The cooldown is stamped whether or not the attempt succeeds, so the
        Caught/NoMoney refusals are raised only after the stamp is committed.
        """
        steal = self.settings.steal
        if not self.settings.enabled or not steal.enabled:
            raise FeatureDisabled("Stealing")
        if stealer_id == target_id:
            raise InvalidTarget("You can't steal from yourself")

        now = self.clock()
        refusal: Optional[Exception] = None
        async with self.engine.begin() as conn:
            stealer = await self._get(conn, stealer_id, guild_id)
            if not await EconomyQueries.stamp_steal(conn, stealer_id, guild_id, now, now - steal.cooldown_seconds):
                raise OnCooldown(self.steal_remaining(stealer))

            target = await self._get(conn, target_id, guild_id)
            if self.rng.random() >= steal.success_chance:
                refusal = Caught()
            else:
                amount = steal.steal_amount(target.money)
                if amount <= 0 or not await EconomyQueries.transfer_stolen(conn, stealer_id, target_id, guild_id, amount):
                    refusal = NoMoney()
                else:
                    result = StealResult(target_id, amount, stealer.money + amount, target.money - amount)

        if refusal is not None:
            logger.info(f"Steal refused stealer={stealer_id} target={target_id}: {refusal}")
            raise refusal
        logger.info(f"Steal stealer={stealer_id} target={target_id} amount={result.amount}")
        return result
