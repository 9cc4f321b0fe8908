# bot/utils/interactions.py
"""
Reply helpers shared by the cogs: response-or-followup sending,
user-facing wording for refusals, and the command-boundary error handler.
"""
from __future__ import annotations

import logging

import discord
from discord import Interaction

from bot.services.errors import (
    AlreadyClaimed,
    BankLimitExceeded,
    EconomyError,
    InsufficientFunds,
    InsufficientWallet,
    InvalidBet,
    NotEnoughBait,
    OnCooldown,
    OutOfStock,
)

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "❌ Something went wrong. Please try again later."


def format_remaining(seconds: float) -> str:
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def describe_error(error: EconomyError) -> str:
    if isinstance(error, AlreadyClaimed):
        return f"You already claimed your daily reward. Come back in **{format_remaining(error.remaining)}**."
    if isinstance(error, OnCooldown):
        return f"You're on cooldown. Try again in **{format_remaining(error.remaining)}**."
    if isinstance(error, InsufficientWallet):
        return f"You don't have enough coins in your wallet (need **{error.needed:,}** more)."
    if isinstance(error, InsufficientFunds):
        return f"You need **{error.needed:,}** more coins."
    if isinstance(error, BankLimitExceeded):
        return f"That would exceed your bank limit ({error.current:,}/{error.limit:,}). Upgrade your bank first."
    if isinstance(error, InvalidBet):
        return f"Bets must be between **{error.min_bet:,}** and **{error.max_bet:,}** coins."
    if isinstance(error, OutOfStock):
        return f"Not enough stock left (**{error.available}** available)."
    if isinstance(error, NotEnoughBait):
        return f"You're out of **{error.bait}**. Buy more with `/shop bait`."
    return f"{error}."


async def reply(
    itx: Interaction,
    content: str | None = None,
    *,
    embed: discord.Embed | None = None,
    view: discord.ui.View | None = None,
    ephemeral: bool = False,
):
    kwargs = {"ephemeral": ephemeral}
    if embed is not None:
        kwargs["embed"] = embed
    if view is not None:
        kwargs["view"] = view
    if itx.response.is_done():
        await itx.followup.send(content, **kwargs)
    else:
        await itx.response.send_message(content, **kwargs)


async def handle_command_error(itx: Interaction, error: Exception, *, service: str, context: str, embed_logger=None):
    """Refusals go back to the user; anything else is logged and answered generically."""
    if isinstance(error, EconomyError):
        message = f"❌ {describe_error(error)}"
    else:
        logger.exception(f"{service}: {context}", exc_info=error)
        if embed_logger:
            await embed_logger.log_error(service=service, error=error, context=f"{context} - user {itx.user.id}")
        message = GENERIC_FAILURE
    try:
        await reply(itx, message, ephemeral=True)
    except discord.HTTPException as e:
        logger.warning(f"Could not send error reply: {e}")


def is_admin(member, admin_role_id: int = 0) -> bool:
    """Administrator permission, or the configured admin role."""
    if not isinstance(member, discord.Member):
        return False
    if member.guild_permissions.administrator:
        return True
    return bool(admin_role_id) and member.get_role(admin_role_id) is not None
