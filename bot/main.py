"""
bot/main.py
Slim bootstrap: load settings, init services, load cogs, sync slash commands (guild-first)
"""
import asyncio
import logging
import signal
import sys
from datetime import datetime

import discord
from discord import app_commands
from discord.ext import commands

from bot.database.database_service import database_service
from bot.services.logging_service import EmbedLogger, LogLevel
from bot.services.service_loader import init_core_services, init_feature_cogs, shutdown_services
from bot.utils.config import BotSettings, Config
from bot.utils.interactions import GENERIC_FAILURE, reply
from bot.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


class LevelingBot(commands.Bot):
    def __init__(self, config: Config, settings: BotSettings):
        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True
        intents.message_content = True  # XP and event participation read messages
        super().__init__(command_prefix=config.command_prefix, intents=intents)
        self.config = config
        self.settings = settings
        self.db_service = database_service
        self.embed_logger: EmbedLogger | None = None
        self.startup_time = None
        self.tree.on_error = self.on_app_command_error

    async def setup_hook(self):
        """Called when the bot is starting up"""
        logger.info("Bot setup hook called - initializing services...")
        self.startup_time = datetime.utcnow()

        try:
            self.embed_logger = await init_core_services(self, self.config)
            await init_feature_cogs(self, self.embed_logger)
            logger.info("Core services initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize core services: {e}")
            raise

        await self._sync_app_commands()

        # Schedule post-login init that runs AFTER we're actually connected
        asyncio.create_task(self._post_login_init())

    async def _post_login_init(self):
        await self.wait_until_ready()
        if self.embed_logger:
            try:
                await self.embed_logger.setup()
            except Exception as e:
                logger.warning(f"Embed logger setup failed: {e}")

    async def _sync_app_commands(self):
        """Guild sync when DISCORD_GUILD_ID is set (immediate), otherwise global"""
        try:
            synced_guild, synced_global = [], []
            if self.config.guild_id:
                gobj = discord.Object(id=self.config.guild_id)
                # guild copy only; syncing globally too would list every command twice there
                self.tree.copy_global_to(guild=gobj)
                synced_guild = await self.tree.sync(guild=gobj)
                logger.info(f"Synced {len(synced_guild)} guild slash command(s) to {self.config.guild_id}")
            else:
                # up to 1 hour propagation
                synced_global = await self.tree.sync()
                logger.info(f"Synced {len(synced_global)} global slash command(s)")

            if self.embed_logger:
                await self.embed_logger.log_custom(
                    service="Bot Startup",
                    title="Commands Synced",
                    description="Guild and global slash commands registered",
                    level=LogLevel.SUCCESS,
                    fields={
                        "Guild ID": str(self.config.guild_id or "n/a"),
                        "Guild Commands": str(len(synced_guild)),
                        "Global Commands": str(len(synced_global)),
                    },
                )
        except Exception as e:
            logger.exception("Slash command sync failed")
            if self.embed_logger:
                await self.embed_logger.log_error(
                    service="Bot Startup", error=e, context="Slash command sync failed during startup"
                )

    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Errors that escaped a command, including failed permission checks"""
        if isinstance(error, app_commands.MissingPermissions):
            message = "❌ You don't have permission to use this command."
        elif isinstance(error, app_commands.CheckFailure):
            message = "❌ You can't use this command here."
        else:
            original = getattr(error, "original", error)
            command = interaction.command.qualified_name if interaction.command else "unknown"
            logger.exception(f"Unhandled error in /{command}", exc_info=original)
            if self.embed_logger:
                await self.embed_logger.log_error(
                    service="Bot Commands",
                    error=original,
                    context=f"/{command} - User: {interaction.user.id}, Guild: {interaction.guild_id or 'DM'}",
                )
            message = GENERIC_FAILURE
        try:
            await reply(interaction, message, ephemeral=True)
        except discord.HTTPException as e:
            logger.warning(f"Could not report command error: {e}")

    async def on_ready(self):
        """Called when bot is ready"""
        startup_duration = None
        if self.startup_time:
            startup_duration = (datetime.utcnow() - self.startup_time).total_seconds()

        logger.info(f"Logged in as {self.user} ({self.user.id}) in {len(self.guilds)} guild(s)")
        await self.change_presence(activity=discord.Game(name="/help • leveling & economy"))

        if self.embed_logger:
            await self.embed_logger.log_custom(
                service="Bot Status",
                title="🚀 Bot Ready",
                description="Leveling bot is online",
                level=LogLevel.SUCCESS,
                fields={
                    "Bot": str(self.user),
                    "Startup Time": f"{startup_duration:.2f}s" if startup_duration else "Unknown",
                    "Guilds": str(len(self.guilds)),
                    "Cogs Loaded": str(len(self.cogs)),
                },
            )

    async def on_error(self, event: str, *args, **kwargs):
        """Global error handler"""
        logger.exception(f"Error in event {event}")
        if self.embed_logger:
            await self.embed_logger.log_error(
                service="Bot Core",
                error=Exception(f"Event error: {event}"),
                context=f"Global error in event {event} - Args: {len(args)}, Kwargs: {len(kwargs)}",
            )

    async def close(self):
        """Clean shutdown: dispose the database, then the gateway"""
        logger.info("Bot shutting down...")
        try:
            await shutdown_services(self.embed_logger if self.is_ready() else None)
        except Exception as e:
            logger.error(f"Error during service shutdown: {e}")
        await super().close()


def _install_signal_handlers(bot: LevelingBot):
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda s=sig: asyncio.create_task(_shutdown(bot, s)))
        except (NotImplementedError, RuntimeError):
            # e.g. Windows event loops
            logger.debug(f"Signal handler for {sig} not supported")


async def _shutdown(bot: LevelingBot, sig):
    logger.info(f"Received {signal.Signals(sig).name} - shutting down gracefully...")
    if not bot.is_closed():
        await bot.close()


async def main() -> int:
    """Main entry point"""
    config = Config()
    if not config.bot_token:
        logger.error("Missing critical configuration: DISCORD_TOKEN")
        return 1

    settings = BotSettings.load(config.settings_path)

    logger.info("=" * 60)
    logger.info("Starting leveling bot...")
    logger.info(f"Database: {database_service.url.render_as_string(hide_password=True)}")
    logger.info(f"Settings: {config.settings_path}")
    logger.info(f"Guild ID: {config.guild_id or 'global only'}")
    logger.info(f"Admin Log Channel: {config.admin_log_channel_id or 'disabled'}")
    logger.info("=" * 60)

    bot = LevelingBot(config, settings)
    _install_signal_handlers(bot)

    try:
        await bot.start(config.bot_token)
    except discord.LoginFailure as e:
        logger.error(f"Login failed: {e}")
        return 1
    finally:
        if not bot.is_closed():
            await bot.close()
        logger.info("Bot shutdown complete")
    return 0


def run():
    config = Config()
    setup_logging(config.log_level, config.log_file)
    try:
        code = asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested via keyboard interrupt")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    run()
