# bot/database/models/economy.py
from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass
class EconomyRecord:
    user_id: int
    guild_id: int
    money: int
    bank_money: int
    bank_level: int
    daily_streak: int
    last_daily: Optional[float]
    last_steal: Optional[float]
    total_winnings: int = 0
    total_losses: int = 0
    total_stolen: int = 0
    total_stolen_from: int = 0
    games_played: int = 0

    @property
    def total(self) -> int:
        return self.money + self.bank_money

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "EconomyRecord":
        return cls(
            user_id=int(row["user_id"]),
            guild_id=int(row["guild_id"]),
            money=int(row["money"]),
            bank_money=int(row["bank_money"]),
            bank_level=int(row["bank_level"]),
            daily_streak=int(row["daily_streak"]),
            last_daily=row["last_daily"],
            last_steal=row["last_steal"],
            total_winnings=int(row["total_winnings"]),
            total_losses=int(row["total_losses"]),
            total_stolen=int(row["total_stolen"]),
            total_stolen_from=int(row["total_stolen_from"]),
            games_played=int(row["games_played"]),
        )
