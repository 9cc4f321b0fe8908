# bot/cogs/bank_cog.py
from __future__ import annotations

import logging

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from bot.services.errors import FeatureDisabled
from bot.services.logging_service import LogLevel
from bot.utils.interactions import handle_command_error, reply

logger = logging.getLogger(__name__)


class BankCog(commands.Cog):
    """Bank deposits, withdrawals and capacity upgrades."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.embed_logger = getattr(bot, "embed_logger", None)
        self.settings = bot.settings.gambling
        self.economy = bot.economy

    def _require_bank(self):
        if not (self.settings.enabled and self.settings.bank.enabled):
            raise FeatureDisabled("The bank")

    group = app_commands.Group(name="bank", description="Keep coins safe from thieves")

    @group.command(name="info", description="Show your bank account")
    async def bank_info(self, itx: Interaction):
        try:
            self._require_bank()
            record = await self.economy.get_economy(itx.user.id, itx.guild_id)
            bank = self.settings.bank
            limit = self.economy.bank_limit(record.bank_level)

            embed = discord.Embed(title="🏦 Bank Account", color=discord.Color.blue())
            embed.add_field(name="Balance", value=f"{record.bank_money:,} / {limit:,}", inline=True)
            embed.add_field(name="Level", value=f"{record.bank_level} / {bank.max_bank_level}", inline=True)
            embed.add_field(name="👛 Wallet", value=f"{record.money:,}", inline=True)
            cost = bank.upgrade_cost(record.bank_level)
            if record.bank_level < bank.max_bank_level and cost is not None:
                embed.add_field(
                    name="⬆️ Next Upgrade",
                    value=f"{cost:,} coins → limit {self.economy.bank_limit(record.bank_level + 1):,}",
                    inline=False,
                )
            else:
                embed.add_field(name="⬆️ Next Upgrade", value="Max level reached", inline=False)
            embed.set_footer(text="Coins in the bank can't be stolen.")
            await reply(itx, embed=embed, ephemeral=True)
        except Exception as e:
            await handle_command_error(itx, e, service="Bank", context="/bank info", embed_logger=self.embed_logger)

    @group.command(name="deposit", description="Move coins from your wallet to the bank")
    @app_commands.describe(amount="Coins to deposit")
    async def bank_deposit(self, itx: Interaction, amount: app_commands.Range[int, 1, None]):
        try:
            self._require_bank()
            record = await self.economy.deposit(itx.user.id, itx.guild_id, amount)
            await reply(
                itx,
                f"🏦 Deposited **{amount:,}** coins. Wallet: **{record.money:,}** • "
                f"Bank: **{record.bank_money:,}** / {self.economy.bank_limit(record.bank_level):,}",
                ephemeral=True,
            )
        except Exception as e:
            await handle_command_error(
                itx, e, service="Bank", context="/bank deposit", embed_logger=self.embed_logger
            )

    @group.command(name="withdraw", description="Move coins from the bank to your wallet")
    @app_commands.describe(amount="Coins to withdraw")
    async def bank_withdraw(self, itx: Interaction, amount: app_commands.Range[int, 1, None]):
        try:
            self._require_bank()
            record = await self.economy.withdraw(itx.user.id, itx.guild_id, amount)
            await reply(
                itx,
                f"👛 Withdrew **{amount:,}** coins. Wallet: **{record.money:,}** • Bank: **{record.bank_money:,}**",
                ephemeral=True,
            )
        except Exception as e:
            await handle_command_error(
                itx, e, service="Bank", context="/bank withdraw", embed_logger=self.embed_logger
            )

    @group.command(name="upgrade", description="Raise your bank limit")
    async def bank_upgrade(self, itx: Interaction):
        try:
            self._require_bank()
            upgrade = await self.economy.upgrade_bank(itx.user.id, itx.guild_id)
            embed = discord.Embed(
                title="⬆️ Bank Upgraded!",
                description=f"Your bank is now level **{upgrade.new_level}**.",
                color=discord.Color.green(),
            )
            embed.add_field(name="New Limit", value=f"{upgrade.new_limit:,}", inline=True)
            embed.add_field(name="Cost", value=f"{upgrade.cost:,}", inline=True)
            embed.add_field(name="👛 Wallet", value=f"{upgrade.new_wallet:,}", inline=True)
            await reply(itx, embed=embed)

            if self.embed_logger:
                await self.embed_logger.log_custom(
                    service="Bank",
                    title="Bank Upgrade",
                    description=f"<@{itx.user.id}> upgraded their bank",
                    level=LogLevel.ECONOMY,
                    fields={"Level": str(upgrade.new_level), "Cost": f"{upgrade.cost:,}"},
                )
        except Exception as e:
            await handle_command_error(
                itx, e, service="Bank", context="/bank upgrade", embed_logger=self.embed_logger
            )


async def setup(bot: commands.Bot):
    await bot.add_cog(BankCog(bot))
