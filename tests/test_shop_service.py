import random
from datetime import datetime

import pytest

from bot.services.economy_service import EconomyService
from bot.services.errors import FeatureDisabled, InsufficientFunds, ItemNotFound
from bot.services.event_service import EventService
from bot.services.shop_service import ShopService
from bot.utils.config import EventSettings, EventType, GamblingSettings, ShopSettings

GUILD = 1
ALICE = 100

SHOP_RAW = {
    "dailyItemCount": 3,
    "eventItemCount": 1,
    "instantCoins": [100, 100],
    "rarityMultipliers": {"common": 1.0, "rare": 2.0},
    "categories": {
        "boosts": {
            "name": "Boosts",
            "items": {
                "coin_pouch": {"name": "Coin Pouch", "basePrice": 200, "rarity": "common", "effects": ["instant_coins"]},
                "xp_boost": {"name": "XP Boost", "basePrice": 300, "rarity": "rare", "effects": ["xp_boost_1h"]},
            },
        },
        "collectibles": {
            "name": "Collectibles",
            "items": {
                "trophy": {"name": "Trophy", "basePrice": 900, "rarity": "rare"},
                "duck": {"name": "Duck", "basePrice": 50, "rarity": "common"},
            },
        },
    },
    "eventItems": {
        "halloween": [
            {"name": "Pumpkin", "basePrice": 100, "rarity": "epic"},
            {"name": "Candy", "basePrice": 10, "rarity": "common"},
        ]
    },
}


@pytest.fixture
def shop(engine, clock):
    return ShopService(engine, ShopSettings.from_dict(SHOP_RAW), clock=clock, rng=random.Random(5))


@pytest.fixture
def economy(engine, clock):
    return EconomyService(engine, GamblingSettings(enabled=True), clock=clock)


async def _stock_everything(engine, clock):
    """Refresh with a catalog small enough that every item is listed."""
    settings = ShopSettings.from_dict({**SHOP_RAW, "dailyItemCount": 10})
    service = ShopService(engine, settings, clock=clock, rng=random.Random(5))
    await service.refresh_shop(GUILD)


async def test_refresh_lists_daily_rotation(shop, clock):
    today = datetime.fromtimestamp(clock()).strftime("%Y-%m-%d")
    result = await shop.refresh_shop(GUILD)
    assert (result.daily_count, result.event_count) == (3, 0)
    listings = await shop.get_shop_inventory(GUILD)
    assert len(listings) == 3
    assert len({item.item_id for item in listings}) == 3
    assert all(not item.is_event_item for item in listings)
    assert all(item.date_added == today for item in listings)


async def test_refresh_replaces_previous_shop(shop):
    await shop.refresh_shop(GUILD)
    await shop.refresh_shop(GUILD)
    assert len(await shop.get_shop_inventory(GUILD)) == 3


async def test_refresh_adds_event_items(engine, shop, clock):
    halloween = EventType(
        key="halloween",
        name="Halloween",
        description="",
        color=0,
        dates=("10-20", "11-02"),
        duration_days=7,
        participation_coins=(0, 0),
        participation_items=(),
        leaderboard_rewards={},
    )
    events = EventService(engine, EventSettings(enabled=True, event_types={"halloween": halloween}), clock=clock)
    await events.start_event(GUILD, "halloween")

    result = await shop.refresh_shop(GUILD)
    assert result.event_count == 1
    event_listings = [item for item in await shop.get_shop_inventory(GUILD) if item.is_event_item]
    assert len(event_listings) == 1
    pumpkin = event_listings[0]
    assert pumpkin.item_id == "event_Pumpkin"
    assert pumpkin.event_type == "halloween"
    # no multiplier configured for epic, so the event default applies
    assert pumpkin.price == 180


async def test_disabled_shop_is_cleared(engine, shop, clock):
    await shop.refresh_shop(GUILD)
    disabled = ShopService(engine, ShopSettings(enabled=False), clock=clock)
    with pytest.raises(FeatureDisabled):
        await disabled.refresh_shop(GUILD)
    assert await shop.get_shop_inventory(GUILD) == []


async def test_purchase(engine, shop, economy, clock):
    await _stock_everything(engine, clock)
    with pytest.raises(ItemNotFound):
        await shop.purchase_item(ALICE, GUILD, "nope")

    result = await shop.purchase_item(ALICE, GUILD, "xp_boost")
    assert result.item.price == 600
    assert result.new_balance == 400
    assert (await economy.get_economy(ALICE, GUILD)).money == 400

    with pytest.raises(InsufficientFunds) as exc:
        await shop.purchase_item(ALICE, GUILD, "trophy")
    assert exc.value.needed == 1400
    assert (await economy.get_economy(ALICE, GUILD)).money == 400

    owned = await shop.get_user_inventory(ALICE, GUILD)
    assert [o.item_id for o in owned] == ["xp_boost"]


async def test_use_consumable_pays_and_disappears(engine, shop, economy, clock):
    await _stock_everything(engine, clock)
    await shop.purchase_item(ALICE, GUILD, "coin_pouch")
    owned = (await shop.get_user_inventory(ALICE, GUILD))[0]
    assert owned.consumable

    result = await shop.use_item(ALICE, GUILD, owned.id)
    assert result.consumed
    assert result.coins_gained == 100
    assert (await economy.get_economy(ALICE, GUILD)).money == 1000 - 200 + 100
    assert await shop.get_user_inventory(ALICE, GUILD) == []

    with pytest.raises(ItemNotFound):
        await shop.use_item(ALICE, GUILD, owned.id)


async def test_collectibles_stay_in_inventory(engine, shop, clock):
    await _stock_everything(engine, clock)
    await shop.purchase_item(ALICE, GUILD, "duck")
    owned = (await shop.get_user_inventory(ALICE, GUILD))[0]
    assert not owned.consumable

    result = await shop.use_item(ALICE, GUILD, owned.id)
    assert not result.consumed
    assert result.effects == []
    assert len(await shop.get_user_inventory(ALICE, GUILD)) == 1


async def test_cannot_use_someone_elses_item(engine, shop, clock):
    await _stock_everything(engine, clock)
    await shop.purchase_item(ALICE, GUILD, "duck")
    owned = (await shop.get_user_inventory(ALICE, GUILD))[0]
    with pytest.raises(ItemNotFound):
        await shop.use_item(999, GUILD, owned.id)
