# bot/database/queries/leveling_queries.py
from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from ..models.event import LeaderboardEntry
from ..models.leveling import UserProgress


class LevelingQueries:
    @staticmethod
    async def _ensure_row(conn: AsyncConnection, user_id: int, guild_id: int, username: Optional[str], now: float) -> None:
        await conn.execute(
            text(
                """
            INSERT INTO users(user_id, guild_id, username, xp, level, created_at)
            VALUES (:user_id, :guild_id, :username, 0, 1, :now)
            ON CONFLICT (user_id, guild_id) DO NOTHING
            """
            ),
            {"user_id": user_id, "guild_id": guild_id, "username": username, "now": now},
        )

    @staticmethod
    async def get_user(conn: AsyncConnection, user_id: int, guild_id: int) -> Optional[UserProgress]:
        row = (
            await conn.execute(
                text("SELECT * FROM users WHERE user_id = :user_id AND guild_id = :guild_id"),
                {"user_id": user_id, "guild_id": guild_id},
            )
        ).mappings().first()
        return UserProgress.from_row(row) if row else None

    @staticmethod
    async def add_xp(
        conn: AsyncConnection, user_id: int, guild_id: int, amount: int, username: Optional[str], now: float
    ) -> Tuple[int, int]:
        """Atomic increment; returns (new_xp, stored_level_before)."""
        await LevelingQueries._ensure_row(conn, user_id, guild_id, username, now)
        await conn.execute(
            text(
                """
            UPDATE users
               SET xp = xp + :amount,
                   username = COALESCE(:username, username),
                   last_message_time = :now
             WHERE user_id = :user_id AND guild_id = :guild_id
            """
            ),
            {"amount": amount, "username": username, "now": now, "user_id": user_id, "guild_id": guild_id},
        )
        row = (
            await conn.execute(
                text("SELECT xp, level FROM users WHERE user_id = :user_id AND guild_id = :guild_id"),
                {"user_id": user_id, "guild_id": guild_id},
            )
        ).one()
        return int(row[0]), int(row[1])

    @staticmethod
    async def set_level(conn: AsyncConnection, user_id: int, guild_id: int, level: int) -> None:
        await conn.execute(
            text("UPDATE users SET level = :level WHERE user_id = :user_id AND guild_id = :guild_id"),
            {"level": level, "user_id": user_id, "guild_id": guild_id},
        )

    @staticmethod
    async def get_rank(conn: AsyncConnection, user_id: int, guild_id: int) -> Optional[int]:
        """1 + members with strictly more XP; None for unknown members."""
        user = await LevelingQueries.get_user(conn, user_id, guild_id)
        if user is None:
            return None
        row = (
            await conn.execute(
                text(
                    """
            SELECT COUNT(*) + 1 FROM users
             WHERE guild_id = :guild_id
               AND xp > :xp
            """
                ),
                {"guild_id": guild_id, "xp": user.xp},
            )
        ).one()
        return int(row[0])

    @staticmethod
    async def get_leaderboard(conn: AsyncConnection, guild_id: int, limit: int = 10) -> List[UserProgress]:
        rows = (
            await conn.execute(
                text("SELECT * FROM users WHERE guild_id = :guild_id ORDER BY xp DESC, user_id LIMIT :limit"),
                {"guild_id": guild_id, "limit": limit},
            )
        ).mappings().all()
        return [UserProgress.from_row(r) for r in rows]

    @staticmethod
    async def level_leaderboard(conn: AsyncConnection, guild_id: int, limit: int = 3) -> List[LeaderboardEntry]:
        rows = (
            await conn.execute(
                text(
                    """
            SELECT user_id, level FROM users WHERE guild_id = :guild_id
             ORDER BY level DESC, xp DESC, user_id LIMIT :limit
            """
                ),
                {"guild_id": guild_id, "limit": limit},
            )
        ).all()
        return [LeaderboardEntry(int(r[0]), int(r[1])) for r in rows]
