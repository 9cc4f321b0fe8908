# bot/cogs/gambling_cog.py
from __future__ import annotations

import logging
import random
from typing import Literal, Optional, Tuple

import discord
from discord import Interaction, app_commands
from discord.ext import commands, tasks

from bot.services.errors import FeatureDisabled, GameNotFound
from bot.services.logging_service import LogLevel
from bot.systems.cards import BlackjackHand, PokerHand, play_coin_flip, play_poker
from bot.utils.interactions import handle_command_error, reply

logger = logging.getLogger(__name__)

GameKey = Tuple[int, int]


def fmt_delta(v: int) -> str:
    return f"{v:+,d}"


def fmt_cards(cards) -> str:
    return " ".join(str(c) for c in cards)


class GamblingCog(commands.Cog):
    """Coin flip, blackjack and poker against the wallet."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.embed_logger = getattr(bot, "embed_logger", None)
        self.settings = bot.settings.gambling
        self.economy = bot.economy
        self.games = bot.game_states
        self.rng = random.Random()

    async def cog_load(self):
        self.reap_expired.start()

    async def cog_unload(self):
        self.reap_expired.cancel()

    @tasks.loop(minutes=1)
    async def reap_expired(self):
        await self._reap()

    async def _reap(self):
        """Expired hands forfeit their escrowed stake; record it as a loss."""
        for (user_id, guild_id), hand in self.games.reap():
            try:
                await self.economy.settle_escrow(user_id, guild_id, hand.bet, -hand.bet)
                logger.info(f"Blackjack hand of {user_id} expired, stake {hand.bet} forfeited")
            except Exception as e:
                logger.exception(f"Failed to settle expired hand for {user_id}")
                if self.embed_logger:
                    await self.embed_logger.log_error(service="Gambling", error=e, context="expired hand")

    async def _log_game(self, itx: Interaction, game: str, bet: int, net: int):
        if self.embed_logger:
            await self.embed_logger.log_custom(
                service="Gambling",
                title=f"{game} played",
                description=f"user=<@{itx.user.id}> bet={bet:,} net={fmt_delta(net)}",
                level=LogLevel.ECONOMY,
            )

    # Group
    group = app_commands.Group(name="gambling", description="Bet your coins")

    @group.command(name="play", description="Play a game of chance")
    @app_commands.describe(game="Which game", bet="Coins to bet", choice="Heads or tails (coin flip)")
    async def gambling_play(
        self,
        itx: Interaction,
        game: Literal["coinflip", "blackjack", "poker", "random"],
        bet: int,
        choice: Optional[Literal["heads", "tails"]] = None,
    ):
        try:
            if game == "random":
                game = self.rng.choice(("coinflip", "blackjack", "poker"))
            if game == "coinflip":
                await self._coin_flip(itx, bet, choice or self.rng.choice(("heads", "tails")))
            elif game == "poker":
                await self._poker(itx, bet)
            else:
                await self._blackjack(itx, bet)
        except Exception as e:
            await handle_command_error(
                itx, e, service="Gambling", context=f"/gambling play {game}", embed_logger=self.embed_logger
            )

    async def _coin_flip(self, itx: Interaction, bet: int, choice: str):
        await self.economy.validate_bet(itx.user.id, itx.guild_id, bet)
        result = play_coin_flip(bet, choice, self.settings.coin_flip_payout, self.rng)
        record = await self.economy.apply_game_result(itx.user.id, itx.guild_id, result.net)

        embed = discord.Embed(
            title="🪙 Coin Flip",
            description=(
                f"You picked **{result.choice}**, the coin landed on **{result.landed}**.\n"
                + ("🎉 **You win!**" if result.won else "💸 **You lose!**")
            ),
            color=discord.Color.green() if result.won else discord.Color.red(),
        )
        embed.add_field(name="Bet", value=f"{bet:,}", inline=True)
        embed.add_field(name="Result", value=fmt_delta(result.net), inline=True)
        embed.add_field(name="👛 Wallet", value=f"{record.money:,}", inline=True)
        await reply(itx, embed=embed)
        await self._log_game(itx, "Coin flip", bet, result.net)

    async def _poker(self, itx: Interaction, bet: int):
        await self.economy.validate_bet(itx.user.id, itx.guild_id, bet)
        result = play_poker(bet, self.settings.poker_payouts, self.rng)
        record = await self.economy.apply_game_result(itx.user.id, itx.guild_id, result.net)

        embed = discord.Embed(
            title="🃏 Five Card Poker",
            description=f"{fmt_cards(result.cards)}\n\n**{result.hand.label}**",
            color=discord.Color.green() if result.net > 0 else discord.Color.red(),
        )
        embed.add_field(name="Multiplier", value=f"×{result.multiplier:g}", inline=True)
        embed.add_field(name="Result", value=fmt_delta(result.net), inline=True)
        embed.add_field(name="👛 Wallet", value=f"{record.money:,}", inline=True)
        await reply(itx, embed=embed)
        await self._log_game(itx, "Poker", bet, result.net)

    async def _blackjack(self, itx: Interaction, bet: int):
        key: GameKey = (itx.user.id, itx.guild_id)
        await self._reap()
        if self.games.get(key) is not None:
            return await reply(itx, "🃏 Finish your current blackjack hand first.", ephemeral=True)

        await self.economy.escrow_bet(itx.user.id, itx.guild_id, bet)
        hand = BlackjackHand.deal(bet, self.settings.blackjack_payout, self.rng)
        if hand.finished:
            record = await self.economy.settle_escrow(itx.user.id, itx.guild_id, bet, hand.net)
            await reply(itx, embed=blackjack_embed(hand, record.money))
            return await self._log_game(itx, "Blackjack", bet, hand.net)

        self.games.put(key, hand)
        view = BlackjackView(self, key, timeout=self.games.ttl)
        await reply(itx, embed=blackjack_embed(hand), view=view)

    async def finish_blackjack(self, itx: Interaction, key: GameKey, hand: BlackjackHand) -> int:
        self.games.pop(key)
        record = await self.economy.settle_escrow(key[0], key[1], hand.bet, hand.net)
        await self._log_game(itx, "Blackjack", hand.bet, hand.net)
        return record.money

    @group.command(name="rules", description="How the games pay out")
    async def gambling_rules(self, itx: Interaction):
        s = self.settings
        if not s.enabled:
            return await handle_command_error(
                itx, FeatureDisabled("Gambling"), service="Gambling", context="/gambling rules"
            )
        embed = discord.Embed(
            title="🎰 Gambling Rules",
            description=f"Bets between **{s.min_bet:,}** and **{s.max_bet:,}** coins, paid from your wallet.",
            color=discord.Color.purple(),
        )
        embed.add_field(
            name="🪙 Coin Flip",
            value=f"Pick heads or tails. A win pays **{s.coin_flip_payout:g}×** your bet.",
            inline=False,
        )
        embed.add_field(
            name="🃏 Blackjack",
            value=(
                f"Get closer to 21 than the dealer. A win pays **{s.blackjack_payout:g}×** your bet, "
                f"a tie returns it. The dealer draws below 17. "
                f"Open hands expire after {int(self.games.ttl // 60)} minutes."
            ),
            inline=False,
        )
        payouts = "\n".join(
            f"{hand.label}: ×{s.poker_payouts[hand.value]:g}" for hand in PokerHand if hand.value in s.poker_payouts
        )
        embed.add_field(name="🂡 Poker", value=payouts or "No payouts configured", inline=False)
        await reply(itx, embed=embed, ephemeral=True)


def blackjack_embed(hand: BlackjackHand, wallet: Optional[int] = None) -> discord.Embed:
    if hand.finished:
        dealer = f"{fmt_cards(hand.dealer)} (**{hand.dealer_score}**)"
        color = discord.Color.green() if hand.net > 0 else (
            discord.Color.light_grey() if hand.net == 0 else discord.Color.red()
        )
    else:
        dealer = f"{hand.dealer[0]} 🂠"
        color = discord.Color.blurple()
    embed = discord.Embed(title="🃏 Blackjack", color=color)
    embed.add_field(name="Your Hand", value=f"{fmt_cards(hand.player)} (**{hand.player_score}**)", inline=False)
    embed.add_field(name="Dealer", value=dealer, inline=False)
    embed.add_field(name="Bet", value=f"{hand.bet:,}", inline=True)
    if hand.finished:
        embed.description = hand.outcome.label
        embed.add_field(name="Result", value=fmt_delta(hand.net), inline=True)
    if wallet is not None:
        embed.add_field(name="👛 Wallet", value=f"{wallet:,}", inline=True)
    return embed


# ---------- Safe interaction mixin ----------
class _SafeView(discord.ui.View):
    async def _safe_edit(self, interaction: Interaction, *, content: str | None = None, embed=None, view=None):
        try:
            if interaction.response.is_done():
                await interaction.edit_original_response(content=content, embed=embed, view=view)
            else:
                await interaction.response.edit_message(content=content, embed=embed, view=view)
        except discord.HTTPException:
            await self._safe_send(interaction, content or "Could not update the game.", ephemeral=True)

    async def _safe_send(self, interaction: Interaction, content: str, *, ephemeral: bool = False):
        try:
            if interaction.response.is_done():
                await interaction.followup.send(content, ephemeral=ephemeral)
            else:
                await interaction.response.send_message(content, ephemeral=ephemeral)
        except discord.HTTPException as e:
            logger.warning(f"Could not send game message: {e}")


# ---------- Blackjack View ----------
class BlackjackView(_SafeView):
    def __init__(self, cog: GamblingCog, key: GameKey, timeout: float = 300):
        super().__init__(timeout=timeout)
        self.cog = cog
        self.key = key

    async def interaction_check(self, interaction: Interaction) -> bool:
        if interaction.user.id != self.key[0]:
            await self._safe_send(interaction, "This isn't your hand.", ephemeral=True)
            return False
        return True

    def _close(self):
        for item in self.children:
            item.disabled = True
        self.stop()

    async def _act(self, interaction: Interaction, action: str):
        try:
            await self.cog._reap()
            hand = self.cog.games.get(self.key)
            if hand is None:
                self._close()
                raise GameNotFound()
            if action == "hit":
                hand.hit()
            else:
                hand.stand()

            if not hand.finished:
                # each action keeps the hand alive for another TTL window
                self.cog.games.put(self.key, hand)
                return await self._safe_edit(interaction, embed=blackjack_embed(hand), view=self)

            wallet = await self.cog.finish_blackjack(interaction, self.key, hand)
            self._close()
            await self._safe_edit(interaction, embed=blackjack_embed(hand, wallet), view=self)
        except GameNotFound:
            await self._safe_edit(
                interaction, content="⌛ That hand expired. Start a new one with `/gambling play`.", view=self
            )
        except Exception as e:
            await handle_command_error(
                interaction, e, service="Gambling", context=f"blackjack {action}", embed_logger=self.cog.embed_logger
            )

    @discord.ui.button(label="Hit", style=discord.ButtonStyle.primary, emoji="🃏")
    async def hit(self, interaction: Interaction, button: discord.ui.Button):
        await self._act(interaction, "hit")

    @discord.ui.button(label="Stand", style=discord.ButtonStyle.secondary, emoji="✋")
    async def stand(self, interaction: Interaction, button: discord.ui.Button):
        await self._act(interaction, "stand")

    async def on_timeout(self):
        for item in self.children:
            item.disabled = True


async def setup(bot: commands.Bot):
    await bot.add_cog(GamblingCog(bot))
