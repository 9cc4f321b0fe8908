# bot/systems/fishing_rng.py
"""
Fishing catch engine.

A catch is picked by weighting every fish's base chance with per-rarity
bonuses from the rod, weather, bait and (optionally) a luck potion,
flooring at ``minimum_chance`` and renormalising to 100.
"""
from __future__ import annotations

import json
import logging
import random
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

RARITY_ORDER = ("mythic", "legendary", "rare", "uncommon", "common")


@dataclass(frozen=True)
class Fish:
    name: str
    rarity: str
    value: int
    emoji: str
    base_chance: float


@dataclass(frozen=True)
class WeightedFish:
    fish: Fish
    adjusted_chance: float
    normalized_chance: float


@dataclass(frozen=True)
class CaughtFish:
    name: str
    rarity: str
    value: int
    emoji: str
    base_chance: float
    final_chance: float
    caught_at: float

    @classmethod
    def from_weighted(cls, w: WeightedFish, caught_at: float) -> "CaughtFish":
        f = w.fish
        return cls(f.name, f.rarity, f.value, f.emoji, f.base_chance, w.normalized_chance, caught_at)


@dataclass(frozen=True)
class BaitInfo:
    key: str
    name: str
    emoji: str
    description: str
    shop_price: int
    shop_stock: int
    bonuses: Dict[str, float]

    @property
    def purchasable(self) -> bool:
        return self.shop_price > 0


@dataclass(frozen=True)
class FishingTables:
    fish: Dict[str, Tuple[Fish, ...]]
    rods: Dict[str, Dict[str, Any]]
    weather: Dict[str, Dict[str, Any]]
    bait: Dict[str, BaitInfo]
    minimum_chance: float = 0.01
    base_fishing_cooldown: float = 30.0
    luck_potion: Dict[str, float] = field(default_factory=dict)
    starting_bait: Dict[str, int] = field(default_factory=dict)
    daily_bait: Dict[str, int] = field(default_factory=dict)
    bait_reset_hours: float = 24.0
    rarity_colors: Dict[str, int] = field(default_factory=dict)
    fishing_start: Tuple[str, ...] = ("🎣 You cast your line...",)

    # ------------------------------------------------------------------ load

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FishingTables":
        fish = {
            rarity: tuple(
                Fish(
                    name=str(f["name"]),
                    rarity=str(f.get("rarity", rarity)),
                    value=int(f["value"]),
                    emoji=str(f.get("emoji", "🐟")),
                    base_chance=float(f["base_chance"]),
                )
                for f in group
            )
            for rarity, group in raw["fish"].items()
        }
        if not fish.get("common"):
            raise ValueError("fish table needs at least one common fish")
        for table in ("rods", "weather", "bait"):
            if not raw.get(table):
                raise ValueError(f"'{table}' table is empty")
        bait = {
            key: BaitInfo(
                key=key,
                name=str(b.get("name", key)),
                emoji=str(b.get("emoji", "🪱")),
                description=str(b.get("description", "")),
                shop_price=int(b.get("shop_price", 0)),
                shop_stock=int(b.get("shop_stock", 0)),
                bonuses={k: float(v) for k, v in b.items() if k.endswith("_bonus")},
            )
            for key, b in raw["bait"].items()
        }
        modifiers = raw.get("modifiers", {})
        colors = {
            k: int(str(v).lstrip("#"), 16) if isinstance(v, str) else int(v)
            for k, v in raw.get("rarity_colors", {}).items()
        }
        return cls(
            fish=fish,
            rods=dict(raw["rods"]),
            weather=dict(raw["weather"]),
            bait=bait,
            minimum_chance=float(modifiers.get("minimum_chance", 0.01)),
            base_fishing_cooldown=float(modifiers.get("base_fishing_cooldown", 30000)) / 1000,
            luck_potion={k: float(v) for k, v in modifiers.get("luck_potion", {}).items()},
            starting_bait={k: int(v) for k, v in raw.get("starting_bait", {}).items()},
            daily_bait={k: int(v) for k, v in raw.get("daily_rewards", {}).get("bait", {}).items()},
            bait_reset_hours=float(raw.get("shop_settings", {}).get("bait_reset_hours", 24)),
            rarity_colors=colors,
            fishing_start=tuple(raw.get("messages", {}).get("fishing_start", cls.fishing_start)),
        )

    @classmethod
    def load(cls, path: str | Path) -> Optional["FishingTables"]:
        """None means fishing stays disabled."""
        try:
            tables = cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))
        except FileNotFoundError:
            logger.warning(f"Fishing config {path} not found - fishing disabled")
            return None
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Fishing config {path} is malformed ({e}) - fishing disabled")
            return None
        logger.info(f"Loaded fishing tables: {len(tables.all_fish())} fish, {len(tables.rods)} rods")
        return tables

    # --------------------------------------------------------------- lookups

    def all_fish(self) -> List[Fish]:
        return [f for group in self.fish.values() for f in group]

    def rod(self, key: str) -> Dict[str, Any]:
        return self.rods.get(key) or self.rods.get("wooden") or next(iter(self.rods.values()))

    def weather_info(self, key: str) -> Dict[str, Any]:
        return self.weather.get(key) or self.weather.get("cloudy") or next(iter(self.weather.values()))

    def bait_info(self, key: str) -> BaitInfo:
        return self.bait.get(key) or self.bait.get("worm") or next(iter(self.bait.values()))

    def rarity_color(self, rarity: str) -> int:
        return self.rarity_colors.get(rarity, self.rarity_colors.get("common", 0x95A5A6))

    def random_weather(self, rng: Optional[random.Random] = None) -> str:
        return (rng or random).choice(list(self.weather))

    def random_start_message(self, rng: Optional[random.Random] = None) -> str:
        return (rng or random).choice(self.fishing_start)

    # ---------------------------------------------------------------- engine

    def calculate_probabilities(
        self, rod: str = "wooden", weather: str = "cloudy", bait: str = "worm", luck_potion: bool = False
    ) -> List[WeightedFish]:
        rod_data = self.rod(rod)
        weather_data = self.weather_info(weather)
        bait_data = self.bait_info(bait).bonuses
        luck = self.luck_potion if luck_potion else None

        adjusted: List[Tuple[Fish, float]] = []
        for f in self.all_fish():
            key = f"{f.rarity}_bonus"
            chance = f.base_chance
            chance *= float(rod_data.get(key, 1.0))
            chance *= float(weather_data.get(key, 1.0))
            chance *= float(bait_data.get(key, 1.0))
            if luck:
                chance *= float(luck.get(key, 1.0))
            adjusted.append((f, max(chance, self.minimum_chance)))

        total = sum(c for _, c in adjusted)
        return [WeightedFish(f, c, c / total * 100) for f, c in adjusted]

    def catch_fish(
        self,
        rod: str = "wooden",
        weather: str = "cloudy",
        bait: str = "worm",
        luck_potion: bool = False,
        roll: Optional[float] = None,
        rng: Optional[random.Random] = None,
        now: Optional[float] = None,
    ) -> CaughtFish:
        """``roll`` in [0, 100); drawn from ``rng`` when omitted."""
        weighted = self.calculate_probabilities(rod, weather, bait, luck_potion)
        if roll is None:
            roll = (rng or random).random() * 100
        caught_at = time.time() if now is None else now

        cumulative = 0.0
        for w in weighted:
            cumulative += w.normalized_chance
            if roll <= cumulative:
                return CaughtFish.from_weighted(w, caught_at)

        # float drift left the roll past the last bucket
        common = self.fish["common"][0]
        fallback = next(w for w in weighted if w.fish == common)
        return CaughtFish.from_weighted(fallback, caught_at)
