import random
from datetime import date

import pytest

from bot.services.economy_service import EconomyService
from bot.services.errors import EventAlreadyActive, EventNotFound, FeatureDisabled, UnknownEventType
from bot.services.event_service import EventService
from bot.services.leveling_service import LevelingService
from bot.utils.config import EventSettings, EventType, GamblingSettings, LevelingSettings

GUILD = 1
ALICE = 100
BOB = 200


def _event_type(key, dates, **overrides):
    values = dict(
        key=key,
        name=key.title(),
        description="",
        color=0,
        dates=dates,
        duration_days=7,
        participation_coins=(50, 50),
        participation_items=("Candy",),
        leaderboard_rewards={"balance": (500, 250, 100), "level": (300,), "robbing": (1000,)},
    )
    values.update(overrides)
    return EventType(**values)


@pytest.fixture
def event_types():
    return {
        "halloween": _event_type("halloween", ("10-20", "11-02")),
        "christmas": _event_type("christmas", ("12-15", "01-05")),
    }


@pytest.fixture
def settings(event_types):
    return EventSettings(
        enabled=True,
        automatic_events=True,
        participation_chance=1.0,
        max_participation_rewards=2,
        event_types=event_types,
    )


@pytest.fixture
def events(engine, settings, clock):
    return EventService(engine, settings, clock=clock, rng=random.Random(3))


@pytest.fixture
def economy(engine, clock):
    return EconomyService(engine, GamblingSettings(enabled=True), clock=clock)


async def test_start_and_end(events, clock):
    event = await events.start_event(GUILD, "halloween")
    assert event.is_active
    assert event.end_date - event.start_date == 7 * 86400
    assert [e.id for e in await events.get_active_events(GUILD)] == [event.id]

    ended = await events.end_event(GUILD, event.id)
    assert not ended.is_active
    assert await events.get_active_events(GUILD) == []


async def test_duration_override(events):
    event = await events.start_event(GUILD, "christmas", duration_days=2)
    assert event.end_date - event.start_date == 2 * 86400


async def test_start_refusals(engine, events, event_types, clock):
    with pytest.raises(UnknownEventType):
        await events.start_event(GUILD, "easter")

    await events.start_event(GUILD, "halloween")
    with pytest.raises(EventAlreadyActive):
        await events.start_event(GUILD, "halloween")

    disabled = EventService(engine, EventSettings(enabled=False, event_types=event_types), clock=clock)
    with pytest.raises(FeatureDisabled):
        await disabled.start_event(GUILD, "christmas")


async def test_end_refusals(events):
    event = await events.start_event(GUILD, "halloween")
    with pytest.raises(EventNotFound):
        await events.end_event(GUILD + 1, event.id)
    with pytest.raises(EventNotFound):
        await events.end_event(GUILD, 9999)

    await events.end_event(GUILD, event.id)
    with pytest.raises(EventNotFound):
        await events.end_event(GUILD, event.id)


async def test_event_expires_by_end_date(events, clock):
    await events.start_event(GUILD, "halloween", duration_days=1)
    clock.advance(86400)
    assert await events.get_active_events(GUILD) == []


def test_seasonal_windows(events):
    windows = events.seasonal_windows(date(2024, 12, 31))
    assert windows[0].key == "christmas"
    assert windows[0].in_season
    halloween = windows[1]
    assert not halloween.in_season
    assert halloween.days_until == (date(2025, 10, 20) - date(2024, 12, 31)).days


async def test_seasonal_autostart(events):
    started = await events.start_due_seasonal_events(GUILD, date(2024, 10, 25))
    assert [e.event_type for e in started] == ["halloween"]
    assert await events.start_due_seasonal_events(GUILD, date(2024, 10, 26)) == []


async def test_no_autostart_when_manual(engine, event_types, clock):
    events = EventService(engine, EventSettings(enabled=True, event_types=event_types), clock=clock)
    assert await events.start_due_seasonal_events(GUILD, date(2024, 10, 25)) == []


async def test_participation_rewards_are_capped(events, economy):
    await events.start_event(GUILD, "halloween")

    rewards = []
    for _ in range(4):
        rewards.extend(await events.record_participation(ALICE, GUILD))
    assert len(rewards) == 2
    assert all(r.coins == 50 and r.item == "Candy" for r in rewards)
    assert (await economy.get_economy(ALICE, GUILD)).money == 1100


async def test_participation_without_event(events):
    assert await events.record_participation(ALICE, GUILD) == []


async def test_participation_chance_zero(engine, event_types, clock):
    settings = EventSettings(enabled=True, participation_chance=0.0, event_types=event_types)
    events = EventService(engine, settings, clock=clock)
    await events.start_event(GUILD, "halloween")
    assert await events.record_participation(ALICE, GUILD) == []


async def test_distribute_rewards(engine, events, economy, clock):
    leveling = LevelingService(engine, LevelingSettings(), clock=clock)
    await leveling.add_xp(BOB, GUILD, 500)
    await economy.credit(ALICE, GUILD, 500)
    await economy.get_economy(BOB, GUILD)

    event = await events.start_event(GUILD, "halloween")
    payouts = await events.distribute_rewards(GUILD, event.id)

    by_category = {(p.category, p.place): (p.user_id, p.coins) for p in payouts}
    assert by_category[("balance", 1)] == (ALICE, 500)
    assert by_category[("balance", 2)] == (BOB, 250)
    assert by_category[("level", 1)] == (BOB, 300)
    assert not any(p.category == "robbing" for p in payouts)

    assert (await economy.get_economy(ALICE, GUILD)).money == 1500 + 500
    assert (await economy.get_economy(BOB, GUILD)).money == 1000 + 250 + 300


async def test_distribute_rewards_unknown_event(events):
    with pytest.raises(EventNotFound):
        await events.distribute_rewards(GUILD, 42)
