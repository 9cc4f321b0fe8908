# bot/utils/config.py
"""
Process configuration (environment) and feature settings (config.json).

Environment values live on ``Config``. Tunables live in one JSON document
parsed once into frozen dataclasses; a missing or malformed section turns
the matching feature off instead of failing the whole bot.
"""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _split_csv(name: str, default: str = "") -> List[str]:
    raw = os.getenv(name, default)
    parts = [p.strip() for p in raw.split(",") if p.strip()]
    return parts


def _env_int(name: str, default: int = 0) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {name}: {raw!r}")
        return default


def _database_url() -> str:
    url = os.getenv("DATABASE_URL", "")
    if url:
        return url
    path = os.getenv("DATABASE_PATH", "./data/leveling.db")
    return f"sqlite+aiosqlite:///{path}"


def _legacy_level_rewards() -> Dict[int, int]:
    """LEVEL_REWARDS="5:123,10:456" -> {5: 123, 10: 456}"""
    out: Dict[int, int] = {}
    for part in _split_csv("LEVEL_REWARDS"):
        level, _, role_id = part.partition(":")
        try:
            out[int(level)] = int(role_id.strip())
        except ValueError:
            logger.warning(f"Ignoring malformed LEVEL_REWARDS entry: {part!r}")
    return out


@dataclass
class Config:
    # Discord
    bot_token: str = field(default_factory=lambda: os.getenv("DISCORD_TOKEN", ""))
    guild_id: int = field(default_factory=lambda: _env_int("DISCORD_GUILD_ID"))
    command_prefix: str = field(default_factory=lambda: os.getenv("COMMAND_PREFIX", "!"))
    admin_log_channel_id: int = field(default_factory=lambda: _env_int("ADMIN_LOG_CHANNEL_ID"))

    # Storage
    database_url: str = field(default_factory=_database_url)

    # Settings documents
    settings_path: str = field(default_factory=lambda: os.getenv("BOT_CONFIG_PATH", "config.json"))
    fishing_config_path: str = field(
        default_factory=lambda: os.getenv("FISHING_CONFIG_PATH", "fishing_config.json")
    )

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: str = field(default_factory=lambda: os.getenv("LOG_FILE", "bot.log"))

    # Legacy role rewards from env
    level_rewards: Dict[int, int] = field(default_factory=_legacy_level_rewards)


# --------------------------------------------------------------------------
# Feature settings
# --------------------------------------------------------------------------


def _role_id(value: Any) -> int:
    """Role ids may be placeholders such as "YOUR_ROLE_ID"; those map to 0."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _color(value: Any, default: int = 0x5865F2) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value:
        return int(value.lstrip("#"), 16)
    return default


@dataclass(frozen=True)
class LevelingSettings:
    enabled: bool = True
    xp_per_message: int = 15
    xp_cooldown_seconds: float = 60.0
    base_xp_required: int = 100
    xp_multiplier: float = 1.5
    booster_role_id: int = 0
    booster_xp_multiplier: float = 1.5

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "LevelingSettings":
        base = int(raw.get("baseXpRequired", 100))
        mult = float(raw.get("xpMultiplier", 1.5))
        if base < 1 or mult < 1:
            raise ValueError("baseXpRequired must be >= 1 and xpMultiplier >= 1")
        return cls(
            enabled=bool(raw.get("enabled", True)),
            xp_per_message=int(raw.get("xpPerMessage", 15)),
            xp_cooldown_seconds=int(raw.get("xpCooldown", 60000)) / 1000,
            base_xp_required=base,
            xp_multiplier=mult,
            booster_role_id=_role_id(raw.get("boosterRoleId")),
            booster_xp_multiplier=float(raw.get("boosterXpMultiplier", 1.5)),
        )


@dataclass(frozen=True)
class RoleReward:
    role_id: int
    name: str
    description: str = ""


@dataclass(frozen=True)
class MessageSettings:
    level_up_title: str = "🎉 Level Up!"
    level_up_color: int = 0x00FF00
    level_up_footer: str = "Keep chatting to earn more XP!"
    level_color: int = 0x5865F2

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "MessageSettings":
        level_up = raw.get("levelUp", {})
        level = raw.get("level", {})
        return cls(
            level_up_title=level_up.get("title", cls.level_up_title),
            level_up_color=_color(level_up.get("color"), cls.level_up_color),
            level_up_footer=level_up.get("footer", cls.level_up_footer),
            level_color=_color(level.get("color"), cls.level_color),
        )


@dataclass(frozen=True)
class DailyRewardSettings:
    base_amount: int = 100
    streak_bonus: int = 50
    max_streak: int = 30
    cooldown_seconds: float = 24 * 3600
    streak_window_seconds: float = 48 * 3600

    def reward_for(self, streak: int) -> int:
        return self.base_amount + self.streak_bonus * (streak - 1)


@dataclass(frozen=True)
class BankSettings:
    enabled: bool = True
    base_bank_limit: int = 5000
    upgrade_limits: Tuple[int, ...] = (10000, 25000, 50000, 100000, 250000, 500000)
    upgrade_costs: Tuple[int, ...] = (2500, 7500, 15000, 35000, 75000, 150000)
    max_bank_level: int = 7

    def limit_for(self, bank_level: int) -> int:
        if bank_level <= 1:
            return self.base_bank_limit
        idx = bank_level - 2
        if idx < len(self.upgrade_limits):
            return self.upgrade_limits[idx]
        return self.base_bank_limit

    def upgrade_cost(self, bank_level: int) -> Optional[int]:
        """Cost to reach the next level; None when that level has no configured limit."""
        idx = bank_level - 1
        # upgrading to level L+1 uses upgrade_costs[L-1] and upgrade_limits[L-1]
        if 0 <= idx < min(len(self.upgrade_costs), len(self.upgrade_limits)):
            return self.upgrade_costs[idx]
        return None


@dataclass(frozen=True)
class StealSettings:
    enabled: bool = True
    success_chance: float = 0.45
    min_steal_amount: int = 50
    max_steal_percentage: float = 0.25
    cooldown_seconds: float = 86400.0

    def steal_amount(self, target_wallet: int) -> int:
        """Never more than the target holds."""
        return min(max(self.min_steal_amount, int(target_wallet * self.max_steal_percentage)), target_wallet)


@dataclass(frozen=True)
class GamblingSettings:
    enabled: bool = False
    starting_money: int = 1000
    min_bet: int = 10
    max_bet: int = 10000
    coin_flip_payout: float = 2.0
    blackjack_payout: float = 2.0
    poker_payouts: Dict[str, float] = field(default_factory=dict)
    daily: DailyRewardSettings = field(default_factory=DailyRewardSettings)
    bank: BankSettings = field(default_factory=BankSettings)
    steal: StealSettings = field(default_factory=StealSettings)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "GamblingSettings":
        games = raw.get("games", {})
        daily = raw.get("dailyReward", {})
        bank = raw.get("bank", {})
        steal = raw.get("steal", {})
        return cls(
            enabled=bool(raw.get("enabled", True)),
            starting_money=int(raw.get("startingMoney", 1000)),
            min_bet=int(raw.get("minBet", 10)),
            max_bet=int(raw.get("maxBet", 10000)),
            coin_flip_payout=float(games.get("coinFlip", {}).get("payout", 2.0)),
            blackjack_payout=float(games.get("blackjack", {}).get("payout", 2.0)),
            poker_payouts={k: float(v) for k, v in games.get("poker", {}).get("payouts", {}).items()},
            daily=DailyRewardSettings(
                base_amount=int(daily.get("baseAmount", 100)),
                streak_bonus=int(daily.get("streakBonus", 50)),
                max_streak=int(daily.get("maxStreak", 30)),
            ),
            bank=BankSettings(
                enabled=bool(bank.get("enabled", True)),
                base_bank_limit=int(bank.get("baseBankLimit", 5000)),
                upgrade_limits=tuple(int(x) for x in bank.get("upgradeLimits", BankSettings.upgrade_limits)),
                upgrade_costs=tuple(int(x) for x in bank.get("upgradeCosts", BankSettings.upgrade_costs)),
                max_bank_level=int(bank.get("maxBankLevel", 7)),
            ),
            steal=StealSettings(
                enabled=bool(steal.get("enabled", True)),
                success_chance=float(steal.get("successChance", 0.45)),
                min_steal_amount=int(steal.get("minStealAmount", 50)),
                max_steal_percentage=float(steal.get("maxStealPercentage", 0.25)),
                cooldown_seconds=int(steal.get("cooldown", 86400000)) / 1000,
            ),
        )


def event_item_id(name: str) -> str:
    return "event_" + re.sub(r"[^\w]", "_", name)


@dataclass(frozen=True)
class CatalogItem:
    item_id: str
    name: str
    description: str
    base_price: int
    rarity: str
    category: str
    effects: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, item_id: str, category: str, raw: Dict[str, Any]) -> "CatalogItem":
        return cls(
            item_id=item_id,
            name=str(raw["name"]),
            description=str(raw.get("description", "")),
            base_price=int(raw["basePrice"]),
            rarity=str(raw.get("rarity", "common")),
            category=category,
            effects=tuple(raw.get("effects", [])),
        )


@dataclass(frozen=True)
class ShopSettings:
    enabled: bool = False
    daily_item_count: int = 6
    event_item_count: int = 3
    refresh_time: Tuple[int, int] = (0, 0)
    rarity_multipliers: Dict[str, float] = field(default_factory=dict)
    catalog: Tuple[CatalogItem, ...] = ()
    event_items: Dict[str, Tuple[CatalogItem, ...]] = field(default_factory=dict)
    instant_coins: Tuple[int, int] = (100, 500)
    category_names: Dict[str, str] = field(default_factory=dict)

    def price_for(self, item: CatalogItem) -> int:
        return int(item.base_price * self.rarity_multipliers.get(item.rarity, 1.0))

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ShopSettings":
        hour, _, minute = str(raw.get("refreshTime", "00:00")).partition(":")
        catalog: List[CatalogItem] = []
        names: Dict[str, str] = {}
        for cat_key, category in raw.get("categories", {}).items():
            names[cat_key] = str(category.get("name", cat_key))
            for item_key, item in category.get("items", {}).items():
                catalog.append(CatalogItem.from_dict(item_key, cat_key, item))
        event_items = {
            ev_type: tuple(
                CatalogItem.from_dict(event_item_id(it["name"]), "event", it) for it in items
            )
            for ev_type, items in raw.get("eventItems", {}).items()
        }
        lo, hi = raw.get("instantCoins", [100, 500])
        return cls(
            enabled=bool(raw.get("enabled", True)),
            daily_item_count=int(raw.get("dailyItemCount", 6)),
            event_item_count=int(raw.get("eventItemCount", 3)),
            refresh_time=(int(hour), int(minute or 0)),
            rarity_multipliers={k: float(v) for k, v in raw.get("rarityMultipliers", {}).items()},
            catalog=tuple(catalog),
            event_items=event_items,
            instant_coins=(int(lo), int(hi)),
            category_names=names,
        )


@dataclass(frozen=True)
class EventType:
    key: str
    name: str
    description: str
    color: int
    dates: Tuple[str, str]
    duration_days: int
    participation_coins: Tuple[int, int]
    participation_items: Tuple[str, ...]
    leaderboard_rewards: Dict[str, Tuple[int, ...]]

    @classmethod
    def from_dict(cls, key: str, raw: Dict[str, Any]) -> "EventType":
        rewards = raw.get("rewards", {})
        participation = rewards.get("participation", {})
        lo, hi = participation.get("coins", [0, 0])
        dates = raw.get("dates", [])
        if len(dates) < 2:
            raise ValueError(f"event {key} needs a [start, end] date window")
        return cls(
            key=key,
            name=str(raw["name"]),
            description=str(raw.get("description", "")),
            color=_color(raw.get("color")),
            dates=(str(dates[0]), str(dates[1])),
            duration_days=int(raw.get("duration", 7)),
            participation_coins=(int(lo), int(hi)),
            participation_items=tuple(participation.get("items", [])),
            leaderboard_rewards={
                cat: tuple(int(x) for x in vals) for cat, vals in rewards.get("leaderboard", {}).items()
            },
        )


@dataclass(frozen=True)
class EventSettings:
    enabled: bool = False
    automatic_events: bool = False
    admin_role_id: int = 0
    event_channel_id: int = 0
    event_role_id: int = 0
    participation_chance: float = 0.05
    max_participation_rewards: int = 10
    event_types: Dict[str, EventType] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "EventSettings":
        return cls(
            enabled=bool(raw.get("enabled", True)),
            automatic_events=bool(raw.get("automaticEvents", False)),
            admin_role_id=_role_id(raw.get("adminRoleId")),
            event_channel_id=_role_id(raw.get("eventChannelId")),
            event_role_id=_role_id(raw.get("eventRoleId")),
            participation_chance=float(raw.get("participationChance", 0.05)),
            max_participation_rewards=int(raw.get("maxParticipationRewards", 10)),
            event_types={k: EventType.from_dict(k, v) for k, v in raw.get("eventTypes", {}).items()},
        )


@dataclass(frozen=True)
class FishingSettings:
    enabled: bool = False
    cooldown_minutes: Optional[float] = None

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FishingSettings":
        cd = raw.get("cooldown_minutes")
        return cls(enabled=bool(raw.get("enabled", True)), cooldown_minutes=float(cd) if cd is not None else None)


@dataclass(frozen=True)
class ColorRole:
    key: str
    name: str
    role_id: int
    hex: str = ""
    emoji: str = ""


@dataclass(frozen=True)
class ColorSettings:
    enabled: bool = False
    remove_other_colors: bool = True
    colors: Tuple[ColorRole, ...] = ()

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ColorSettings":
        colors = []
        for key, c in raw.get("colors", {}).items():
            role = str(c.get("roleId", ""))
            if role.startswith("YOUR_"):
                continue
            colors.append(ColorRole(key, str(c.get("name", key)), int(role), c.get("hex", ""), c.get("emoji", "")))
        return cls(
            enabled=bool(raw.get("enabled", True)),
            remove_other_colors=bool(raw.get("removeOtherColors", True)),
            colors=tuple(colors),
        )


@dataclass(frozen=True)
class BotSettings:
    leveling: LevelingSettings = field(default_factory=LevelingSettings)
    role_rewards: Dict[int, RoleReward] = field(default_factory=dict)
    messages: MessageSettings = field(default_factory=MessageSettings)
    gambling: GamblingSettings = field(default_factory=GamblingSettings)
    shop: ShopSettings = field(default_factory=ShopSettings)
    events: EventSettings = field(default_factory=EventSettings)
    fishing: FishingSettings = field(default_factory=FishingSettings)
    colors: ColorSettings = field(default_factory=ColorSettings)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "BotSettings":
        return cls(
            leveling=_section(raw, "leveling", LevelingSettings.from_dict, LevelingSettings()),
            role_rewards=_section(raw, "roleRewards", _parse_role_rewards, {}),
            messages=_section(raw, "messages", MessageSettings.from_dict, MessageSettings()),
            gambling=_section(raw, "gambling", GamblingSettings.from_dict, GamblingSettings()),
            shop=_section(raw, "shop", ShopSettings.from_dict, ShopSettings()),
            events=_section(raw, "events", EventSettings.from_dict, EventSettings()),
            fishing=_section(raw, "fishing", FishingSettings.from_dict, FishingSettings()),
            colors=_section(raw, "colors", ColorSettings.from_dict, ColorSettings()),
        )

    @classmethod
    def load(cls, path: str | Path) -> "BotSettings":
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except FileNotFoundError:
            logger.error(f"Settings file {path} not found - running with defaults, optional features disabled")
            return cls()
        except json.JSONDecodeError as e:
            logger.error(f"Settings file {path} is not valid JSON ({e}) - optional features disabled")
            return cls()
        if not isinstance(raw, dict):
            logger.error(f"Settings file {path} must hold a JSON object - optional features disabled")
            return cls()
        settings = cls.from_dict(raw)
        logger.info(
            "Loaded settings from %s (leveling=%s gambling=%s shop=%s events=%s fishing=%s colors=%s)",
            path,
            settings.leveling.enabled,
            settings.gambling.enabled,
            settings.shop.enabled,
            settings.events.enabled,
            settings.fishing.enabled,
            settings.colors.enabled,
        )
        return settings


def _parse_role_rewards(raw: Dict[str, Any]) -> Dict[int, RoleReward]:
    out: Dict[int, RoleReward] = {}
    for level, reward in raw.items():
        role_id = _role_id(reward.get("roleId"))
        if role_id:
            out[int(level)] = RoleReward(role_id, str(reward.get("name", "")), str(reward.get("description", "")))
    return out


def _section(raw: Dict[str, Any], key: str, parse: Callable[[Dict[str, Any]], T], fallback: T) -> T:
    value = raw.get(key)
    if value is None:
        if key != "leveling":
            logger.info(f"Settings section '{key}' missing - feature disabled")
        return fallback
    try:
        if not isinstance(value, dict):
            raise TypeError(f"expected an object, got {type(value).__name__}")
        return parse(value)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Settings section '{key}' is malformed ({e}) - feature disabled")
        if isinstance(fallback, LevelingSettings):
            return LevelingSettings(enabled=False)  # type: ignore[return-value]
        return fallback
