from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from bot.services.errors import AlreadyClaimed, InsufficientWallet, InvalidBet, NotEnoughBait
from bot.utils.interactions import GENERIC_FAILURE, describe_error, format_remaining, handle_command_error, is_admin


@pytest.mark.parametrize(
    "seconds,text",
    [(0, "0s"), (-5, "0s"), (45, "45s"), (125, "2m 5s"), (3 * 3600 + 61, "3h 1m")],
)
def test_format_remaining(seconds, text):
    assert format_remaining(seconds) == text


def test_describe_error():
    assert "23h 0m" in describe_error(AlreadyClaimed(23 * 3600))
    assert "1,500" in describe_error(InsufficientWallet(1500))
    assert "10" in describe_error(InvalidBet(10, 10000))
    assert "/shop bait" in describe_error(NotEnoughBait("worm", 0))


def _interaction():
    itx = MagicMock()
    itx.user.id = 7
    itx.response.is_done.return_value = False
    itx.response.send_message = AsyncMock()
    itx.followup.send = AsyncMock()
    return itx


async def test_refusals_are_told_to_the_user():
    itx = _interaction()
    embed_logger = MagicMock()
    embed_logger.log_error = AsyncMock()
    await handle_command_error(itx, InsufficientWallet(10), service="Gambling", context="/gambling", embed_logger=embed_logger)

    message = itx.response.send_message.await_args.args[0]
    assert message.startswith("❌ ")
    assert itx.response.send_message.await_args.kwargs["ephemeral"] is True
    embed_logger.log_error.assert_not_awaited()


async def test_unexpected_errors_are_logged():
    itx = _interaction()
    itx.response.is_done.return_value = True
    embed_logger = MagicMock()
    embed_logger.log_error = AsyncMock()
    await handle_command_error(itx, RuntimeError("db down"), service="Bank", context="/bank", embed_logger=embed_logger)

    embed_logger.log_error.assert_awaited_once()
    assert itx.followup.send.await_args.args[0] == GENERIC_FAILURE


def test_is_admin():
    admin = MagicMock(spec=discord.Member)
    admin.guild_permissions.administrator = True
    assert is_admin(admin)

    member = MagicMock(spec=discord.Member)
    member.guild_permissions.administrator = False
    member.get_role.return_value = None
    assert not is_admin(member, 55)

    member.get_role.return_value = object()
    assert is_admin(member, 55)
    assert not is_admin(member, 0)

    assert not is_admin(MagicMock(), 55)
