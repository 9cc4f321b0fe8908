# bot/cogs/admin.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import discord
from discord import Interaction, app_commands
from discord.ext import commands

from ..services.errors import ItemNotFound
from ..services.logging_service import LogLevel
from ..utils.interactions import handle_command_error, reply

logger = logging.getLogger(__name__)

BULK_DELETE_WINDOW = timedelta(days=14)


class AdminCog(commands.Cog):
    """Channel cleanup and self-service color roles"""

    def __init__(self, bot):
        self.bot = bot
        self.colors = bot.settings.colors

    @property
    def embed_logger(self):
        """Get embed logger from bot"""
        return getattr(self.bot, "embed_logger", None)

    @app_commands.command(name="clean", description="Delete recent messages in this channel (admin only)")
    @app_commands.checks.has_permissions(administrator=True)
    @app_commands.describe(
        amount="Number of messages to delete (1-100)",
        user="Only delete messages from this member",
        reason="Why the messages are removed",
    )
    async def clean(
        self,
        interaction: Interaction,
        amount: app_commands.Range[int, 1, 100],
        user: Optional[discord.Member] = None,
        reason: Optional[app_commands.Range[str, 1, 512]] = None,
    ):
        channel = interaction.channel
        if not isinstance(channel, (discord.TextChannel, discord.Thread, discord.VoiceChannel)):
            return await reply(interaction, "❌ This channel can't be cleaned.", ephemeral=True)
        if not channel.permissions_for(interaction.guild.me).manage_messages:
            return await reply(interaction, '❌ I need the "Manage Messages" permission.', ephemeral=True)

        await interaction.response.defer(ephemeral=True)
        cutoff = datetime.now(timezone.utc) - BULK_DELETE_WINDOW
        matched = 0

        def check(message: discord.Message) -> bool:
            nonlocal matched
            if matched >= amount:
                return False
            if user is not None and message.author.id != user.id:
                return False
            matched += 1
            return True

        try:
            # scan further back when filtering by author
            limit = min(amount * 5, 500) if user else amount
            deleted = await channel.purge(limit=limit, check=check, after=cutoff, reason=reason)
        except Exception as e:
            return await handle_command_error(
                interaction, e, service="Admin Commands", context="/clean", embed_logger=self.embed_logger
            )

        if not deleted:
            who = f" from {user.display_name}" if user else ""
            return await reply(interaction, f"❌ No messages{who} newer than 14 days found.", ephemeral=True)

        who = f" from **{user.display_name}**" if user else ""
        await reply(
            interaction,
            f"✅ Deleted **{len(deleted)}** message(s){who} in {channel.mention}.\n"
            f"**Reason:** {reason or 'No reason provided'}",
            ephemeral=True,
        )
        logger.info(f"{interaction.user} deleted {len(deleted)} messages in #{channel} ({reason})")
        if self.embed_logger:
            await self.embed_logger.log_custom(
                service="Admin Commands",
                title="Messages Cleaned",
                description=f"<@{interaction.user.id}> cleaned {channel.mention}",
                level=LogLevel.WARNING,
                fields={
                    "Deleted": str(len(deleted)),
                    "Filter": user.mention if user else "all",
                    "Reason": reason or "No reason provided",
                },
            )

    # --- Color roles ---
    colorpicker = app_commands.Group(name="colorpicker", description="Pick a name color")

    def _available(self):
        return [c for c in self.colors.colors if c.role_id]

    def _current(self, member: discord.Member):
        return [c for c in self._available() if member.get_role(c.role_id) is not None]

    async def apply_color(self, member: discord.Member, key: str) -> discord.Role:
        color = next((c for c in self._available() if c.key == key), None)
        role = member.guild.get_role(color.role_id) if color else None
        if role is None:
            raise ItemNotFound(key)
        if self.colors.remove_other_colors:
            others = [
                member.guild.get_role(c.role_id) for c in self._current(member) if c.role_id != role.id
            ]
            others = [r for r in others if r is not None]
            if others:
                await member.remove_roles(*others, reason="Color change")
        await member.add_roles(role, reason="Color picked")
        return role

    @colorpicker.command(name="select", description="Choose a color role")
    async def color_select(self, interaction: Interaction):
        if not self.colors.enabled or not self._available():
            return await reply(interaction, "🎨 Color roles aren't set up on this server.", ephemeral=True)
        await reply(interaction, "🎨 Pick a color:", view=ColorSelectView(self, interaction.user.id), ephemeral=True)

    @colorpicker.command(name="current", description="Show your color role")
    async def color_current(self, interaction: Interaction):
        if not self.colors.enabled:
            return await reply(interaction, "🎨 Color roles aren't set up on this server.", ephemeral=True)
        current = self._current(interaction.user)
        if not current:
            return await reply(interaction, "You don't have a color role yet.", ephemeral=True)
        await reply(
            interaction,
            "Your color: " + ", ".join(f"{c.emoji} **{c.name}**".strip() for c in current),
            ephemeral=True,
        )

    @colorpicker.command(name="remove", description="Remove your color role")
    async def color_remove(self, interaction: Interaction):
        if not self.colors.enabled:
            return await reply(interaction, "🎨 Color roles aren't set up on this server.", ephemeral=True)
        roles = [interaction.guild.get_role(c.role_id) for c in self._current(interaction.user)]
        roles = [r for r in roles if r is not None]
        if not roles:
            return await reply(interaction, "You don't have a color role.", ephemeral=True)
        try:
            await interaction.user.remove_roles(*roles, reason="Color removed")
        except Exception as e:
            return await handle_command_error(
                interaction, e, service="Color Picker", context="/colorpicker remove", embed_logger=self.embed_logger
            )
        await reply(interaction, "🧽 Color removed.", ephemeral=True)


class ColorSelectView(discord.ui.View):
    def __init__(self, cog: AdminCog, user_id: int):
        super().__init__(timeout=120)
        self.cog = cog
        self.user_id = user_id
        select = discord.ui.Select(
            placeholder="Choose a color",
            options=[
                discord.SelectOption(label=c.name, value=c.key, emoji=c.emoji or None, description=c.hex or None)
                for c in cog._available()[:25]
            ],
        )
        select.callback = self.on_select
        self.add_item(select)
        self.select = select

    async def interaction_check(self, interaction: Interaction) -> bool:
        return interaction.user.id == self.user_id

    async def on_select(self, interaction: Interaction):
        try:
            role = await self.cog.apply_color(interaction.user, self.select.values[0])
        except Exception as e:
            return await handle_command_error(
                interaction, e, service="Color Picker", context="/colorpicker select", embed_logger=self.cog.embed_logger
            )
        self.stop()
        await interaction.response.edit_message(content=f"🎨 You now have {role.mention}!", view=None)
