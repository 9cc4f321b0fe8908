import pytest

from bot.services.leveling_service import LevelingService
from bot.utils.config import LevelingSettings

GUILD = 1
ALICE = 100
BOB = 200


@pytest.fixture
def leveling(engine, clock):
    return LevelingService(engine, LevelingSettings(), clock=clock)


async def test_first_message_creates_member(leveling):
    gain = await leveling.handle_message(ALICE, GUILD, "alice")
    assert gain.progress.xp == 15
    assert gain.progress.level == 1
    assert not gain.leveled_up

    stored = await leveling.get_user(ALICE, GUILD)
    assert stored.username == "alice"
    assert stored.xp == 15


async def test_cooldown_blocks_xp(leveling, clock):
    assert await leveling.handle_message(ALICE, GUILD) is not None
    clock.advance(30)
    assert await leveling.handle_message(ALICE, GUILD) is None
    clock.advance(30)
    gain = await leveling.handle_message(ALICE, GUILD)
    assert gain.progress.xp == 30


async def test_cooldown_is_per_guild(leveling):
    assert await leveling.handle_message(ALICE, GUILD) is not None
    assert await leveling.handle_message(ALICE, GUILD + 1) is not None


async def test_booster_bonus(leveling):
    assert leveling.xp_for_message(False) == 15
    assert leveling.xp_for_message(True) == 22
    gain = await leveling.handle_message(ALICE, GUILD, is_booster=True)
    assert gain.progress.xp == 22


async def test_level_up_is_reported_once(leveling):
    gain = await leveling.add_xp(ALICE, GUILD, 260)
    assert gain.leveled_up
    assert (gain.old_level, gain.progress.level) == (1, 3)

    gain = await leveling.add_xp(ALICE, GUILD, 10)
    assert not gain.leveled_up
    assert (await leveling.get_user(ALICE, GUILD)).level == 3


async def test_disabled_leveling(engine, clock):
    service = LevelingService(engine, LevelingSettings(enabled=False), clock=clock)
    assert await service.handle_message(ALICE, GUILD) is None
    assert await service.get_user(ALICE, GUILD) is None


async def test_rank_and_leaderboard(leveling):
    assert await leveling.get_user_rank(ALICE, GUILD) is None

    await leveling.add_xp(ALICE, GUILD, 100)
    await leveling.add_xp(BOB, GUILD, 300)
    await leveling.add_xp(300, GUILD, 100)
    await leveling.add_xp(ALICE, GUILD + 1, 5000)

    assert await leveling.get_user_rank(BOB, GUILD) == 1
    # ties share a rank
    assert await leveling.get_user_rank(ALICE, GUILD) == 2
    assert await leveling.get_user_rank(300, GUILD) == 2

    board = await leveling.get_leaderboard(GUILD, limit=2)
    assert [p.user_id for p in board] == [BOB, ALICE]
