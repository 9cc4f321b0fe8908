# bot/database/models/leveling.py
from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass
class UserProgress:
    user_id: int
    guild_id: int
    xp: int
    level: int
    username: Optional[str] = None
    last_message_time: Optional[float] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "UserProgress":
        return cls(
            user_id=int(row["user_id"]),
            guild_id=int(row["guild_id"]),
            xp=int(row["xp"]),
            level=int(row["level"]),
            username=row["username"],
            last_message_time=row["last_message_time"],
        )


@dataclass
class XpGain:
    """Outcome of one XP award"""
    progress: UserProgress
    old_level: int

    @property
    def leveled_up(self) -> bool:
        return self.progress.level > self.old_level
