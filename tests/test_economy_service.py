import pytest

from bot.services.economy_service import EconomyService
from bot.services.errors import (
    AlreadyClaimed,
    BankLimitExceeded,
    Caught,
    EconomyError,
    FeatureDisabled,
    InsufficientBank,
    InsufficientFunds,
    InsufficientWallet,
    InvalidBet,
    InvalidTarget,
    MaxLevelReached,
    NoTarget,
    NoUpgradeAvailable,
    OnCooldown,
)
from bot.utils.config import BankSettings, GamblingSettings, StealSettings

GUILD = 1
ALICE = 100
BOB = 200


class FixedRoll:
    """random.Random stand-in whose random() always returns ``value``."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def settings():
    return GamblingSettings(enabled=True)


@pytest.fixture
def economy(engine, settings, clock):
    return EconomyService(engine, settings, clock=clock, rng=FixedRoll(0.0))


async def test_new_member_gets_starting_money(economy):
    record = await economy.get_economy(ALICE, GUILD)
    assert record.money == 1000
    assert record.bank_money == 0
    assert record.bank_level == 1


async def test_withdraw_more_than_bank_is_refused(economy):
    with pytest.raises(InsufficientBank):
        await economy.withdraw(ALICE, GUILD, 1500)
    record = await economy.get_economy(ALICE, GUILD)
    assert (record.money, record.bank_money) == (1000, 0)


async def test_deposit_then_withdraw(economy):
    record = await economy.deposit(ALICE, GUILD, 500)
    assert (record.money, record.bank_money) == (500, 500)

    record = await economy.withdraw(ALICE, GUILD, 200)
    assert (record.money, record.bank_money) == (700, 300)


async def test_deposit_more_than_wallet(economy):
    with pytest.raises(InsufficientWallet):
        await economy.deposit(ALICE, GUILD, 1001)


async def test_deposit_over_bank_limit(engine, clock):
    settings = GamblingSettings(enabled=True, bank=BankSettings(base_bank_limit=600))
    economy = EconomyService(engine, settings, clock=clock)
    await economy.deposit(ALICE, GUILD, 400)
    with pytest.raises(BankLimitExceeded) as exc:
        await economy.deposit(ALICE, GUILD, 300)
    assert exc.value.limit == 600
    record = await economy.get_economy(ALICE, GUILD)
    assert (record.money, record.bank_money) == (600, 400)


async def test_non_positive_amounts_rejected(economy):
    with pytest.raises(ValueError):
        await economy.deposit(ALICE, GUILD, 0)
    with pytest.raises(ValueError):
        await economy.withdraw(ALICE, GUILD, -5)


async def test_bank_upgrade(engine, clock):
    settings = GamblingSettings(enabled=True, bank=BankSettings(max_bank_level=2))
    economy = EconomyService(engine, settings, clock=clock)

    with pytest.raises(InsufficientFunds) as exc:
        await economy.upgrade_bank(ALICE, GUILD)
    assert exc.value.needed == 1500

    await economy.credit(ALICE, GUILD, 2000)
    upgrade = await economy.upgrade_bank(ALICE, GUILD)
    assert upgrade.new_level == 2
    assert upgrade.new_limit == 10000
    assert upgrade.cost == 2500
    assert upgrade.new_wallet == 500

    with pytest.raises(MaxLevelReached):
        await economy.upgrade_bank(ALICE, GUILD)


async def test_upgrade_needs_a_configured_limit(engine, clock):
    bank = BankSettings(upgrade_limits=(10000,), upgrade_costs=(100, 100), max_bank_level=3)
    economy = EconomyService(engine, GamblingSettings(enabled=True, bank=bank), clock=clock)

    await economy.upgrade_bank(ALICE, GUILD)
    await economy.credit(ALICE, GUILD, 9100)
    await economy.deposit(ALICE, GUILD, 10000)

    with pytest.raises(NoUpgradeAvailable):
        await economy.upgrade_bank(ALICE, GUILD)
    record = await economy.get_economy(ALICE, GUILD)
    assert record.bank_level == 2
    assert record.bank_money <= economy.bank_limit(record.bank_level)


async def test_deposits_and_withdrawals_conserve_money(economy):
    await economy.credit(ALICE, GUILD, 5000)
    moves = [
        ("deposit", 700), ("withdraw", 300), ("deposit", 5000), ("deposit", 4500),
        ("withdraw", 9999), ("withdraw", 100), ("deposit", 1200), ("deposit", 1),
        ("withdraw", 4801), ("deposit", 6000), ("withdraw", 1),
    ]
    for op, amount in moves:
        try:
            await getattr(economy, op)(ALICE, GUILD, amount)
        except EconomyError:
            pass
        record = await economy.get_economy(ALICE, GUILD)
        assert record.money + record.bank_money == 6000
        assert 0 <= record.bank_money <= economy.bank_limit(record.bank_level)
        assert record.money >= 0


async def test_daily_claim_and_repeat(economy, clock):
    claim = await economy.claim_daily(ALICE, GUILD)
    assert (claim.reward, claim.streak, claim.new_balance) == (100, 1, 1100)

    clock.advance(3600)
    with pytest.raises(AlreadyClaimed) as exc:
        await economy.claim_daily(ALICE, GUILD)
    assert exc.value.remaining == pytest.approx(23 * 3600)
    record = await economy.get_economy(ALICE, GUILD)
    assert record.money == 1100
    assert record.daily_streak == 1


async def test_daily_streak_grows_and_resets(economy, clock):
    await economy.claim_daily(ALICE, GUILD)
    clock.advance(25 * 3600)
    claim = await economy.claim_daily(ALICE, GUILD)
    assert (claim.streak, claim.reward) == (2, 150)

    clock.advance(49 * 3600)
    claim = await economy.claim_daily(ALICE, GUILD)
    assert (claim.streak, claim.reward) == (1, 100)


async def test_bet_validation(economy, engine, clock):
    with pytest.raises(InvalidBet):
        await economy.validate_bet(ALICE, GUILD, 5)
    with pytest.raises(InvalidBet):
        await economy.validate_bet(ALICE, GUILD, 10001)
    with pytest.raises(InsufficientWallet):
        await economy.validate_bet(ALICE, GUILD, 5000)

    disabled = EconomyService(engine, GamblingSettings(enabled=False), clock=clock)
    with pytest.raises(FeatureDisabled):
        await disabled.validate_bet(ALICE, GUILD, 100)


async def test_game_loss_larger_than_wallet_is_refused(economy):
    with pytest.raises(InsufficientWallet):
        await economy.apply_game_result(ALICE, GUILD, -2000)
    record = await economy.get_economy(ALICE, GUILD)
    assert record.money == 1000
    assert record.games_played == 0


async def test_game_result_updates_stats(economy):
    await economy.apply_game_result(ALICE, GUILD, 300)
    record = await economy.apply_game_result(ALICE, GUILD, -100)
    assert record.money == 1200
    assert record.total_winnings == 300
    assert record.total_losses == 100
    assert record.games_played == 2


async def test_escrow_and_settle(economy):
    record = await economy.escrow_bet(ALICE, GUILD, 100)
    assert record.money == 900

    record = await economy.settle_escrow(ALICE, GUILD, 100, 200)
    assert record.money == 1200
    assert record.total_winnings == 200

    await economy.escrow_bet(ALICE, GUILD, 100)
    record = await economy.settle_escrow(ALICE, GUILD, 100, -100)
    assert record.money == 1100
    assert record.total_losses == 100
    assert record.games_played == 2


async def test_steal_success_moves_coins(economy):
    await economy.get_economy(BOB, GUILD)
    result = await economy.attempt_steal(ALICE, BOB, GUILD)
    assert result.amount == 250
    assert result.stealer_balance == 1250
    assert result.target_balance == 750

    alice = await economy.get_economy(ALICE, GUILD)
    bob = await economy.get_economy(BOB, GUILD)
    assert alice.money == 1250 and alice.total_stolen == 250
    assert bob.money == 750 and bob.total_stolen_from == 250


async def test_steal_never_exceeds_target_wallet(engine, clock):
    settings = GamblingSettings(enabled=True, steal=StealSettings(min_steal_amount=500))
    economy = EconomyService(engine, settings, clock=clock, rng=FixedRoll(0.0))
    await economy.get_economy(BOB, GUILD)
    await economy.deposit(BOB, GUILD, 800)

    result = await economy.attempt_steal(ALICE, BOB, GUILD)
    assert result.amount == 200
    bob = await economy.get_economy(BOB, GUILD)
    assert bob.money == 0
    assert bob.bank_money == 800


async def test_caught_costs_nothing_but_starts_cooldown(engine, settings, clock):
    economy = EconomyService(engine, settings, clock=clock, rng=FixedRoll(0.99))
    await economy.get_economy(BOB, GUILD)
    with pytest.raises(Caught):
        await economy.attempt_steal(ALICE, BOB, GUILD)

    alice = await economy.get_economy(ALICE, GUILD)
    assert alice.money == 1000
    assert alice.last_steal == clock()

    clock.advance(60)
    with pytest.raises(OnCooldown) as exc:
        await economy.attempt_steal(ALICE, BOB, GUILD)
    assert exc.value.remaining == pytest.approx(86400 - 60)


async def test_steal_from_self_is_refused(economy):
    with pytest.raises(InvalidTarget):
        await economy.attempt_steal(ALICE, ALICE, GUILD)


async def test_steal_target_selection(economy):
    await economy.get_economy(ALICE, GUILD)
    with pytest.raises(NoTarget):
        await economy.pick_steal_target(ALICE, GUILD)

    await economy.get_economy(BOB, GUILD)
    assert await economy.pick_steal_target(ALICE, GUILD) == BOB


async def test_money_leaderboard_counts_bank(economy):
    await economy.get_economy(ALICE, GUILD)
    await economy.credit(BOB, GUILD, 500)
    await economy.deposit(BOB, GUILD, 1000)
    board = await economy.get_money_leaderboard(GUILD)
    assert [r.user_id for r in board] == [BOB, ALICE]
    assert board[0].total == 1500
