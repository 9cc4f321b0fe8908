from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from bot.cogs.gambling_cog import GamblingCog
from bot.cogs.scheduler_cog import SchedulerCog
from bot.services.economy_service import EconomyService
from bot.services.event_service import EventService
from bot.services.shop_service import ShopService
from bot.systems.cards import BlackjackHand
from bot.systems.stores import GameStateStore
from bot.utils.config import BotSettings, EventSettings, GamblingSettings, ShopSettings

GUILD = 1
ALICE = 100


@pytest.fixture
def bot(engine, clock):
    shop_settings = ShopSettings.from_dict(
        {
            "refreshTime": "00:00",
            "categories": {"misc": {"items": {"duck": {"name": "Duck", "basePrice": 50}}}},
        }
    )
    settings = BotSettings(gambling=GamblingSettings(enabled=True), shop=shop_settings)
    return SimpleNamespace(
        settings=settings,
        embed_logger=None,
        economy=EconomyService(engine, settings.gambling, clock=clock),
        shop=ShopService(engine, shop_settings, clock=clock),
        events=EventService(engine, EventSettings(enabled=True), clock=clock),
        game_states=GameStateStore(ttl=300, clock=clock),
        guilds=[],
    )


async def test_expired_blackjack_stake_is_forfeited(bot, clock):
    cog = GamblingCog(bot)
    await bot.economy.escrow_bet(ALICE, GUILD, 100)
    bot.game_states.put((ALICE, GUILD), BlackjackHand(bet=100, payout=2.0, deck=[]))

    await cog._reap()
    assert len(bot.game_states) == 1

    clock.advance(300)
    await cog._reap()
    assert len(bot.game_states) == 0

    record = await bot.economy.get_economy(ALICE, GUILD)
    assert record.money == 900
    assert record.total_losses == 100
    assert record.games_played == 1


async def test_shop_refreshes_once_per_day(bot):
    cog = SchedulerCog(bot)
    assert await cog.refresh_shop_if_due(GUILD, datetime(2024, 6, 15, 0, 5))
    assert len(await bot.shop.get_shop_inventory(GUILD)) == 1

    assert not await cog.refresh_shop_if_due(GUILD, datetime(2024, 6, 15, 0, 40))
    assert not await cog.refresh_shop_if_due(GUILD, datetime(2024, 6, 16, 3, 0))
    assert await cog.refresh_shop_if_due(GUILD, datetime(2024, 6, 16, 0, 10))


async def test_no_refresh_when_shop_disabled(bot):
    bot.settings = BotSettings()
    cog = SchedulerCog(bot)
    assert not await cog.refresh_shop_if_due(GUILD, datetime(2024, 6, 15, 0, 5))


async def test_refresh_time_with_minutes_is_hit(bot):
    bot.settings = BotSettings(
        shop=ShopSettings.from_dict(
            {
                "refreshTime": "12:30",
                "categories": {"misc": {"items": {"duck": {"name": "Duck", "basePrice": 50}}}},
            }
        )
    )
    cog = SchedulerCog(bot)
    assert cog.shop_clock.minutes == 1

    start = datetime(2024, 6, 15, 12, 15)
    fired = [
        minute
        for minute in range(60)
        if await cog.refresh_shop_if_due(GUILD, start + timedelta(minutes=minute))
    ]
    assert fired == [15]
