import copy
import random

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from bot.database.models.sqlalchemy_models import Base
from bot.systems.fishing_rng import FishingTables

# 2024-06-15 12:00:00 UTC
T0 = 1718452800.0


class FakeClock:
    def __init__(self, start: float = T0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


FISHING_RAW = {
    "fish": {
        "common": [
            {"name": "Minnow", "value": 10, "emoji": "🐟", "base_chance": 40.0},
            {"name": "Perch", "value": 20, "emoji": "🐟", "base_chance": 30.0},
        ],
        "uncommon": [{"name": "Trout", "value": 50, "emoji": "🐠", "base_chance": 15.0}],
        "rare": [{"name": "Salmon", "value": 150, "emoji": "🐡", "base_chance": 10.0}],
        "legendary": [{"name": "Shark", "value": 1000, "emoji": "🦈", "base_chance": 4.0}],
        "mythic": [{"name": "Kraken", "value": 5000, "emoji": "🐙", "base_chance": 1.0}],
    },
    "rods": {
        "wooden": {"name": "Wooden Rod", "emoji": "🎣"},
        "diamond": {"name": "Diamond Rod", "emoji": "💎", "common_bonus": 0.5, "mythic_bonus": 3.0},
    },
    "weather": {
        "cloudy": {"name": "Cloudy"},
        "stormy": {"name": "Stormy", "legendary_bonus": 2.0},
    },
    "bait": {
        "worm": {"name": "Worm", "shop_price": 5, "shop_stock": 10},
        "squid": {"name": "Squid", "shop_price": 100, "shop_stock": 2, "rare_bonus": 2.0},
        "magic_lure": {"name": "Magic Lure", "shop_price": 0, "shop_stock": 0, "mythic_bonus": 5.0},
    },
    "modifiers": {
        "minimum_chance": 0.01,
        "base_fishing_cooldown": 30000,
        "luck_potion": {"common_bonus": 0.5, "rare_bonus": 2.0},
    },
    "starting_bait": {"worm": 3},
    "daily_rewards": {"bait": {"worm": 5}},
    "shop_settings": {"bait_reset_hours": 24},
    "rarity_colors": {"common": "#95A5A6", "mythic": "#9B59B6"},
    "messages": {"fishing_start": ["🎣 Casting..."]},
}


@pytest.fixture
def fishing_tables():
    return FishingTables.from_dict(FISHING_RAW)


@pytest.fixture
def fishing_raw():
    return copy.deepcopy(FISHING_RAW)
