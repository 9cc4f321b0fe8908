# bot/database/models/event.py
import json
from dataclasses import dataclass, field
from typing import Any, List, Mapping


@dataclass
class EventRecord:
    id: int
    guild_id: int
    event_type: str
    event_name: str
    start_date: float
    end_date: float
    is_active: bool

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EventRecord":
        return cls(
            id=int(row["id"]),
            guild_id=int(row["guild_id"]),
            event_type=row["event_type"],
            event_name=row["event_name"],
            start_date=float(row["start_date"]),
            end_date=float(row["end_date"]),
            is_active=bool(row["is_active"]),
        )


@dataclass
class EventParticipant:
    event_id: int
    user_id: int
    guild_id: int
    participation_count: int = 0
    coins_received: int = 0
    items_received: List[str] = field(default_factory=list)
    rewards_claimed: int = 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EventParticipant":
        return cls(
            event_id=int(row["event_id"]),
            user_id=int(row["user_id"]),
            guild_id=int(row["guild_id"]),
            participation_count=int(row["participation_count"]),
            coins_received=int(row["coins_received"]),
            items_received=json.loads(row["items_received"] or "[]"),
            rewards_claimed=int(row["rewards_claimed"]),
        )


@dataclass
class LeaderboardEntry:
    user_id: int
    score: int
