import pytest

from bot.services.errors import NotEnoughBait
from bot.systems.stores import CooldownTracker, GameStateStore, InMemoryFishingStore


def test_game_state_expires(clock):
    store = GameStateStore(ttl=300, clock=clock)
    store.put(("u", "g"), "hand")
    clock.advance(299)
    assert store.get(("u", "g")) == "hand"
    clock.advance(1)
    assert store.get(("u", "g")) is None
    assert len(store) == 0


def test_put_refreshes_ttl(clock):
    store = GameStateStore(ttl=300, clock=clock)
    store.put(1, "a")
    clock.advance(200)
    store.put(1, "b")
    clock.advance(200)
    assert store.get(1) == "b"


def test_pop_and_reap(clock):
    store = GameStateStore(ttl=10, clock=clock)
    store.put(1, "one")
    store.put(2, "two")
    assert store.pop(1) == "one"
    assert store.pop(1) is None

    clock.advance(10)
    store.put(3, "three")
    assert store.reap() == [(2, "two")]
    assert store.get(3) == "three"


def test_cooldown_tracker(clock):
    tracker = CooldownTracker(clock)
    assert tracker.try_acquire("k", 60) == 0
    clock.advance(20)
    assert tracker.try_acquire("k", 60) == pytest.approx(40)
    assert tracker.remaining("other", 60) == 0
    clock.advance(40)
    assert tracker.try_acquire("k", 60) == 0


def test_bait_and_net(fishing_tables, clock):
    store = InMemoryFishingStore(fishing_tables, clock)
    assert store.get_bait(7) == {"worm": 3}
    assert store.use_bait(7, "worm", 2) == 1
    with pytest.raises(NotEnoughBait) as exc:
        store.use_bait(7, "worm", 2)
    assert exc.value.available == 1

    fish = fishing_tables.catch_fish(roll=0.0, now=clock())
    store.add_fish(7, fish)
    store.add_fish(7, fish)
    net = store.get_net(7)
    assert net.total_value == 20
    assert list(net.by_rarity()) == ["common"]

    sale = store.sell_all(7)
    assert sale.fish_count == 2
    assert store.sell_all(7) is None
