# bot/database/queries/economy_queries.py
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from ..models.economy import EconomyRecord
from ..models.event import LeaderboardEntry


class EconomyQueries:
    """
    Wallet/bank SQL. Every debit is a conditional UPDATE; callers check the
    returned bool (rowcount) instead of trusting an earlier read.
    """

    @staticmethod
    async def _ensure_row(conn: AsyncConnection, user_id: int, guild_id: int, starting_money: int, now: float) -> None:
        await conn.execute(
            text(
                """
            INSERT INTO economy(user_id, guild_id, money, bank_money, bank_level, daily_streak,
                                total_winnings, total_losses, total_stolen, total_stolen_from,
                                games_played, created_at)
            VALUES (:user_id, :guild_id, :money, 0, 1, 0, 0, 0, 0, 0, 0, :now)
            ON CONFLICT (user_id, guild_id) DO NOTHING
            """
            ),
            {"user_id": user_id, "guild_id": guild_id, "money": starting_money, "now": now},
        )

    @staticmethod
    async def get(
        conn: AsyncConnection, user_id: int, guild_id: int, starting_money: int, now: float
    ) -> EconomyRecord:
        """Row is created on first read"""
        await EconomyQueries._ensure_row(conn, user_id, guild_id, starting_money, now)
        row = (
            await conn.execute(
                text("SELECT * FROM economy WHERE user_id = :user_id AND guild_id = :guild_id"),
                {"user_id": user_id, "guild_id": guild_id},
            )
        ).mappings().one()
        return EconomyRecord.from_row(row)

    @staticmethod
    async def adjust_wallet(
        conn: AsyncConnection,
        user_id: int,
        guild_id: int,
        delta: int,
        *,
        require_funds: bool = False,
        escrowed: int = 0,
    ) -> bool:
        """
        Game result: moves delta (+ any escrowed stake being returned) and
        bumps winnings/losses by delta and games_played by one.
        """
        guard = " AND money + :delta + :escrowed >= 0" if require_funds else ""
        result = await conn.execute(
            text(
                f"""
            UPDATE economy
               SET money = money + :delta + :escrowed,
                   total_winnings = total_winnings + :won,
                   total_losses = total_losses + :lost,
                   games_played = games_played + 1
             WHERE user_id = :user_id AND guild_id = :guild_id{guard}
            """
            ),
            {
                "delta": delta,
                "escrowed": escrowed,
                "won": max(delta, 0),
                "lost": max(-delta, 0),
                "user_id": user_id,
                "guild_id": guild_id,
            },
        )
        return result.rowcount == 1

    @staticmethod
    async def credit(conn: AsyncConnection, user_id: int, guild_id: int, amount: int) -> None:
        await conn.execute(
            text("UPDATE economy SET money = money + :amount WHERE user_id = :user_id AND guild_id = :guild_id"),
            {"amount": amount, "user_id": user_id, "guild_id": guild_id},
        )

    @staticmethod
    async def spend(conn: AsyncConnection, user_id: int, guild_id: int, amount: int) -> bool:
        result = await conn.execute(
            text(
                """
            UPDATE economy SET money = money - :amount
             WHERE user_id = :user_id AND guild_id = :guild_id AND money >= :amount
            """
            ),
            {"amount": amount, "user_id": user_id, "guild_id": guild_id},
        )
        return result.rowcount == 1

    @staticmethod
    async def deposit(
        conn: AsyncConnection, user_id: int, guild_id: int, amount: int, bank_level: int, bank_limit: int
    ) -> bool:
        result = await conn.execute(
            text(
                """
            UPDATE economy
               SET money = money - :amount, bank_money = bank_money + :amount
             WHERE user_id = :user_id AND guild_id = :guild_id
               AND money >= :amount
               AND bank_level = :bank_level
               AND bank_money + :amount <= :bank_limit
            """
            ),
            {
                "amount": amount,
                "user_id": user_id,
                "guild_id": guild_id,
                "bank_level": bank_level,
                "bank_limit": bank_limit,
            },
        )
        return result.rowcount == 1

    @staticmethod
    async def withdraw(conn: AsyncConnection, user_id: int, guild_id: int, amount: int) -> bool:
        result = await conn.execute(
            text(
                """
            UPDATE economy
               SET money = money + :amount, bank_money = bank_money - :amount
             WHERE user_id = :user_id AND guild_id = :guild_id AND bank_money >= :amount
            """
            ),
            {"amount": amount, "user_id": user_id, "guild_id": guild_id},
        )
        return result.rowcount == 1

    @staticmethod
    async def upgrade_bank(conn: AsyncConnection, user_id: int, guild_id: int, from_level: int, cost: int) -> bool:
        result = await conn.execute(
            text(
                """
            UPDATE economy
               SET money = money - :cost, bank_level = bank_level + 1
             WHERE user_id = :user_id AND guild_id = :guild_id
               AND bank_level = :from_level AND money >= :cost
            """
            ),
            {"cost": cost, "user_id": user_id, "guild_id": guild_id, "from_level": from_level},
        )
        return result.rowcount == 1

    @staticmethod
    async def claim_daily(
        conn: AsyncConnection,
        user_id: int,
        guild_id: int,
        *,
        reward: int,
        streak: int,
        now: float,
        seen_last_daily: Optional[float],
        cutoff: float,
    ) -> bool:
        """Compare-and-set on last_daily: a concurrent claim makes this a no-op."""
        result = await conn.execute(
            text(
                """
            UPDATE economy
               SET money = money + :reward, daily_streak = :streak, last_daily = :now
             WHERE user_id = :user_id AND guild_id = :guild_id
               AND COALESCE(last_daily, 0) = :seen
               AND COALESCE(last_daily, 0) <= :cutoff
            """
            ),
            {
                "reward": reward,
                "streak": streak,
                "now": now,
                "user_id": user_id,
                "guild_id": guild_id,
                "seen": seen_last_daily or 0,
                "cutoff": cutoff,
            },
        )
        return result.rowcount == 1

    @staticmethod
    async def stamp_steal(conn: AsyncConnection, user_id: int, guild_id: int, now: float, cutoff: float) -> bool:
        """False when the stealer is still on cooldown."""
        result = await conn.execute(
            text(
                """
            UPDATE economy SET last_steal = :now
             WHERE user_id = :user_id AND guild_id = :guild_id
               AND COALESCE(last_steal, 0) <= :cutoff
            """
            ),
            {"now": now, "user_id": user_id, "guild_id": guild_id, "cutoff": cutoff},
        )
        return result.rowcount == 1

    @staticmethod
    async def transfer_stolen(conn: AsyncConnection, stealer_id: int, target_id: int, guild_id: int, amount: int) -> bool:
        taken = await conn.execute(
            text(
                """
            UPDATE economy
               SET money = money - :amount, total_stolen_from = total_stolen_from + :amount
             WHERE user_id = :target_id AND guild_id = :guild_id AND money >= :amount
            """
            ),
            {"amount": amount, "target_id": target_id, "guild_id": guild_id},
        )
        if taken.rowcount != 1:
            return False
        await conn.execute(
            text(
                """
            UPDATE economy
               SET money = money + :amount, total_stolen = total_stolen + :amount
             WHERE user_id = :stealer_id AND guild_id = :guild_id
            """
            ),
            {"amount": amount, "stealer_id": stealer_id, "guild_id": guild_id},
        )
        return True

    @staticmethod
    async def random_steal_target(
        conn: AsyncConnection, guild_id: int, exclude_user_id: int, min_amount: int
    ) -> Optional[int]:
        row = (
            await conn.execute(
                text(
                    """
            SELECT user_id FROM economy
             WHERE guild_id = :guild_id AND user_id != :exclude AND money > :min_amount
             ORDER BY RANDOM() LIMIT 1
            """
                ),
                {"guild_id": guild_id, "exclude": exclude_user_id, "min_amount": min_amount},
            )
        ).first()
        return int(row[0]) if row else None

    @staticmethod
    async def money_leaderboard(conn: AsyncConnection, guild_id: int, limit: int = 10) -> List[EconomyRecord]:
        rows = (
            await conn.execute(
                text(
                    """
            SELECT * FROM economy WHERE guild_id = :guild_id
             ORDER BY money + bank_money DESC, user_id
             LIMIT :limit
            """
                ),
                {"guild_id": guild_id, "limit": limit},
            )
        ).mappings().all()
        return [EconomyRecord.from_row(r) for r in rows]

    @staticmethod
    async def robbing_leaderboard(conn: AsyncConnection, guild_id: int, limit: int = 3) -> List[LeaderboardEntry]:
        rows = (
            await conn.execute(
                text(
                    """
            SELECT user_id, total_stolen FROM economy
             WHERE guild_id = :guild_id AND total_stolen > 0
             ORDER BY total_stolen DESC, user_id
             LIMIT :limit
            """
                ),
                {"guild_id": guild_id, "limit": limit},
            )
        ).all()
        return [LeaderboardEntry(int(r[0]), int(r[1])) for r in rows]
