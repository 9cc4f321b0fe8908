# bot/database/queries/event_queries.py
from __future__ import annotations

import json
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

from ..models.event import EventParticipant, EventRecord


class EventQueries:
    @staticmethod
    async def create_event(
        conn: AsyncConnection, guild_id: int, event_type: str, event_name: str, start: float, end: float
    ) -> int:
        await conn.execute(
            text(
                """
            INSERT INTO events(guild_id, event_type, event_name, start_date, end_date, is_active, created_at)
            VALUES (:guild_id, :event_type, :event_name, :start, :end, :active, :start)
            """
            ),
            {
                "guild_id": guild_id,
                "event_type": event_type,
                "event_name": event_name,
                "start": start,
                "end": end,
                "active": True,
            },
        )
        row = (
            await conn.execute(
                text(
                    """
            SELECT id FROM events WHERE guild_id = :guild_id AND event_type = :event_type
             ORDER BY id DESC LIMIT 1
            """
                ),
                {"guild_id": guild_id, "event_type": event_type},
            )
        ).one()
        return int(row[0])

    @staticmethod
    async def get_event(conn: AsyncConnection, event_id: int) -> Optional[EventRecord]:
        row = (
            await conn.execute(text("SELECT * FROM events WHERE id = :id"), {"id": event_id})
        ).mappings().first()
        return EventRecord.from_row(row) if row else None

    @staticmethod
    async def get_active_events(conn: AsyncConnection, guild_id: int, now: float) -> List[EventRecord]:
        rows = (
            await conn.execute(
                text(
                    """
            SELECT * FROM events
             WHERE guild_id = :guild_id AND is_active = :active AND end_date > :now
             ORDER BY start_date
            """
                ),
                {"guild_id": guild_id, "active": True, "now": now},
            )
        ).mappings().all()
        return [EventRecord.from_row(r) for r in rows]

    @staticmethod
    async def get_upcoming_events(conn: AsyncConnection, guild_id: int, now: float, limit: int = 5) -> List[EventRecord]:
        rows = (
            await conn.execute(
                text(
                    """
            SELECT * FROM events WHERE guild_id = :guild_id AND start_date > :now
             ORDER BY start_date LIMIT :limit
            """
                ),
                {"guild_id": guild_id, "now": now, "limit": limit},
            )
        ).mappings().all()
        return [EventRecord.from_row(r) for r in rows]

    @staticmethod
    async def end_event(conn: AsyncConnection, event_id: int, guild_id: int) -> bool:
        result = await conn.execute(
            text(
                """
            UPDATE events SET is_active = :inactive
             WHERE id = :id AND guild_id = :guild_id AND is_active = :active
            """
            ),
            {"inactive": False, "active": True, "id": event_id, "guild_id": guild_id},
        )
        return result.rowcount == 1

    @staticmethod
    async def add_participation(conn: AsyncConnection, event_id: int, user_id: int, guild_id: int) -> EventParticipant:
        params = {"event_id": event_id, "user_id": user_id, "guild_id": guild_id}
        await conn.execute(
            text(
                """
            INSERT INTO event_participants(event_id, user_id, guild_id, participation_count,
                                           coins_received, items_received, rewards_claimed)
            VALUES (:event_id, :user_id, :guild_id, 0, 0, '[]', 0)
            ON CONFLICT (event_id, user_id, guild_id) DO NOTHING
            """
            ),
            params,
        )
        await conn.execute(
            text(
                """
            UPDATE event_participants SET participation_count = participation_count + 1
             WHERE event_id = :event_id AND user_id = :user_id AND guild_id = :guild_id
            """
            ),
            params,
        )
        return await EventQueries.get_participant(conn, event_id, user_id, guild_id)

    @staticmethod
    async def get_participant(conn: AsyncConnection, event_id: int, user_id: int, guild_id: int) -> EventParticipant:
        row = (
            await conn.execute(
                text(
                    """
            SELECT * FROM event_participants
             WHERE event_id = :event_id AND user_id = :user_id AND guild_id = :guild_id
            """
                ),
                {"event_id": event_id, "user_id": user_id, "guild_id": guild_id},
            )
        ).mappings().one()
        return EventParticipant.from_row(row)

    @staticmethod
    async def record_reward(
        conn: AsyncConnection,
        event_id: int,
        user_id: int,
        guild_id: int,
        coins: int,
        items: List[str],
        max_rewards: int,
    ) -> bool:
        """False when the participant already hit ``max_rewards`` (0 = no cap)."""
        current = await EventQueries.get_participant(conn, event_id, user_id, guild_id)
        cap = " AND rewards_claimed < :max_rewards" if max_rewards > 0 else ""
        result = await conn.execute(
            text(
                f"""
            UPDATE event_participants
               SET coins_received = coins_received + :coins,
                   items_received = :items,
                   rewards_claimed = rewards_claimed + 1
             WHERE event_id = :event_id AND user_id = :user_id AND guild_id = :guild_id
               AND rewards_claimed = :seen{cap}
            """
            ),
            {
                "coins": coins,
                "items": json.dumps(current.items_received + list(items)),
                "event_id": event_id,
                "user_id": user_id,
                "guild_id": guild_id,
                "seen": current.rewards_claimed,
                "max_rewards": max_rewards,
            },
        )
        return result.rowcount == 1
