import copy
import json
import random

import pytest

from bot.services.economy_service import EconomyService
from bot.services.errors import FeatureDisabled, InsufficientFunds, ItemNotFound, NotEnoughBait, OnCooldown, OutOfStock
from bot.services.fishing_service import FishingService
from bot.systems.fishing_rng import FishingTables
from bot.utils.config import FishingSettings, GamblingSettings


GUILD = 1
ALICE = 100


# --- catch engine ---------------------------------------------------------


@pytest.mark.parametrize(
    "rod,weather,bait,luck",
    [
        ("wooden", "cloudy", "worm", False),
        ("diamond", "stormy", "squid", True),
        ("diamond", "cloudy", "magic_lure", False),
        ("unknown-rod", "unknown-weather", "unknown-bait", False),
    ],
)
def test_probabilities_sum_to_100(fishing_tables, rod, weather, bait, luck):
    weighted = fishing_tables.calculate_probabilities(rod, weather, bait, luck)
    assert sum(w.normalized_chance for w in weighted) == pytest.approx(100.0)
    assert all(w.adjusted_chance >= fishing_tables.minimum_chance for w in weighted)


def test_bonuses_shift_odds(fishing_tables):
    def share(weighted, rarity):
        return sum(w.normalized_chance for w in weighted if w.fish.rarity == rarity)

    plain = fishing_tables.calculate_probabilities("wooden", "cloudy", "worm")
    geared = fishing_tables.calculate_probabilities("diamond", "cloudy", "magic_lure")
    assert share(geared, "mythic") > share(plain, "mythic")
    assert share(geared, "common") < share(plain, "common")


def test_minimum_chance_floor(fishing_raw):
    raw = copy.deepcopy(fishing_raw)
    raw["rods"]["cursed"] = {"mythic_bonus": 0.0}
    tables = FishingTables.from_dict(raw)
    weighted = tables.calculate_probabilities("cursed")
    kraken = next(w for w in weighted if w.fish.name == "Kraken")
    assert kraken.adjusted_chance == tables.minimum_chance


@pytest.mark.parametrize("roll", [0.0, 50.0, 99.999, 100.0])
def test_every_roll_resolves(fishing_tables, roll):
    fish = fishing_tables.catch_fish(roll=roll, now=5.0)
    assert fish.name in {f.name for f in fishing_tables.all_fish()}
    assert fish.caught_at == 5.0


def test_roll_zero_is_first_fish(fishing_tables):
    assert fishing_tables.catch_fish(roll=0.0).name == "Minnow"


def test_overshooting_roll_falls_back_to_first_common(fishing_tables):
    weighted = fishing_tables.calculate_probabilities("diamond", "stormy", "squid")
    minnow = next(w for w in weighted if w.fish.name == "Minnow")

    fish = fishing_tables.catch_fish("diamond", "stormy", "squid", roll=100.5)
    assert fish.name == "Minnow"
    assert fish.final_chance == minnow.normalized_chance
    assert fish.final_chance != fish.base_chance


def test_seeded_catches_are_repeatable(fishing_tables):
    rng_a, rng_b = random.Random(9), random.Random(9)
    first = [fishing_tables.catch_fish(rng=rng_a, now=0).name for _ in range(20)]
    second = [fishing_tables.catch_fish(rng=rng_b, now=0).name for _ in range(20)]
    assert first == second


def test_table_validation(fishing_raw):
    raw = copy.deepcopy(fishing_raw)
    raw["fish"]["common"] = []
    with pytest.raises(ValueError):
        FishingTables.from_dict(raw)

    raw = copy.deepcopy(fishing_raw)
    raw["rods"] = {}
    with pytest.raises(ValueError):
        FishingTables.from_dict(raw)


def test_load_missing_or_broken_file(tmp_path, fishing_raw):
    assert FishingTables.load(tmp_path / "nope.json") is None

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    assert FishingTables.load(broken) is None

    good = tmp_path / "fishing.json"
    good.write_text(json.dumps(fishing_raw), encoding="utf-8")
    tables = FishingTables.load(good)
    assert tables is not None
    assert tables.base_fishing_cooldown == 30.0
    assert tables.rarity_color("mythic") == 0x9B59B6
    assert tables.rarity_color("legendary") == 0x95A5A6


# --- service --------------------------------------------------------------


@pytest.fixture
def fishing(engine, fishing_tables, clock, rng):
    return FishingService(engine, FishingSettings(enabled=True), fishing_tables, clock=clock, rng=rng)


@pytest.fixture
def economy(engine, clock):
    return EconomyService(engine, GamblingSettings(enabled=True), clock=clock)


def test_disabled_without_tables(engine):
    service = FishingService(engine, FishingSettings(enabled=True), None)
    assert not service.enabled
    with pytest.raises(FeatureDisabled):
        service.cast(ALICE)
    assert service.give_daily_bait(ALICE) == {}


def test_cast_uses_bait_and_fills_net(fishing, fishing_raw):
    result = fishing.cast(ALICE, "wooden", "worm")
    assert result.bait_left == 2
    assert result.weather in fishing_raw["weather"]
    assert fishing.store.get_net(ALICE).fish == [result.fish]


def test_cast_cooldown(fishing, clock):
    fishing.cast(ALICE)
    with pytest.raises(OnCooldown) as exc:
        fishing.cast(ALICE)
    assert exc.value.remaining == pytest.approx(30.0)
    clock.advance(30)
    fishing.cast(ALICE)


def test_cooldown_override(engine, fishing_tables):
    service = FishingService(engine, FishingSettings(enabled=True, cooldown_minutes=2), fishing_tables)
    assert service.cooldown_seconds == 120


def test_no_bait_costs_no_cooldown(fishing):
    with pytest.raises(NotEnoughBait):
        fishing.cast(ALICE, bait="squid")
    # cooldown was not stamped by the refused cast
    fishing.cast(ALICE, bait="worm")


def test_daily_bait(fishing):
    assert fishing.give_daily_bait(ALICE) == {"worm": 5}
    assert fishing.bait_inventory(ALICE)["worm"] == 8


async def test_sell_all_pays_out(fishing, economy, clock):
    assert await fishing.sell_all(ALICE, GUILD) is None

    catches = []
    for _ in range(3):
        catches.append(fishing.cast(ALICE).fish)
        clock.advance(30)
    total = sum(f.value for f in catches)

    result = await fishing.sell_all(ALICE, GUILD)
    assert result.sale.fish_count == 3
    assert result.sale.total_value == total
    assert result.new_balance == 1000 + total
    assert fishing.store.get_net(ALICE).fish == []
    record = await economy.get_economy(ALICE, GUILD)
    assert record.money == 1000 + total


async def test_purchase_bait(fishing, economy):
    purchase = await fishing.purchase_bait(ALICE, GUILD, "squid", 2)
    assert purchase.total_cost == 200
    assert purchase.remaining_stock == 0
    assert purchase.new_balance == 800
    assert fishing.bait_inventory(ALICE)["squid"] == 2

    with pytest.raises(OutOfStock):
        await fishing.purchase_bait(ALICE, GUILD, "squid", 1)


async def test_purchase_bait_refusals(fishing, economy):
    with pytest.raises(ItemNotFound):
        await fishing.purchase_bait(ALICE, GUILD, "magic_lure", 1)
    with pytest.raises(ValueError):
        await fishing.purchase_bait(ALICE, GUILD, "worm", 0)

    await economy.deposit(ALICE, GUILD, 1000)
    with pytest.raises(InsufficientFunds):
        await fishing.purchase_bait(ALICE, GUILD, "worm", 1)
    # stock reserved for the failed purchase is released
    assert fishing.store.shop_bait_stock()["worm"] == 10


def test_bait_stock_resets(fishing, clock):
    fishing.store.reserve_bait_stock("worm", 4)
    assert fishing.store.shop_bait_stock()["worm"] == 6
    reset_at = fishing.store.next_bait_reset()
    assert reset_at == pytest.approx(clock() + 24 * 3600)

    clock.advance(24 * 3600)
    assert fishing.store.shop_bait_stock()["worm"] == 10
    assert "magic_lure" not in fishing.store.shop_bait_stock()
