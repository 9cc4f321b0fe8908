# bot/services/service_loader.py
import logging
from datetime import datetime

import discord

from bot.database.database_service import database_service
from bot.services.economy_service import EconomyService
from bot.services.event_service import EventService
from bot.services.fishing_service import FishingService
from bot.services.leveling_service import LevelingService
from bot.services.logging_service import EmbedLogger, LogLevel
from bot.services.shop_service import ShopService
from bot.systems.fishing_rng import FishingTables
from bot.systems.stores import GameStateStore, InMemoryFishingStore
from bot.utils.config import BotSettings

logger = logging.getLogger(__name__)

_initialization_start = None


def _state(enabled: bool) -> str:
    return "✅ Enabled" if enabled else "⚠️ Disabled"


async def init_core_services(bot: discord.Client, config):
    """Initialize the database, the embed logger and every domain service on the bot."""
    global _initialization_start
    _initialization_start = datetime.utcnow()

    logger.info("Starting core services initialization...")

    try:
        logger.info("Initializing database service...")
        start_time = datetime.utcnow()
        await database_service.initialize()
        db_init_time = (datetime.utcnow() - start_time).total_seconds()
        logger.info(f"Database service initialized in {db_init_time:.2f}s")
    except Exception as e:
        logger.error(f"Failed to initialize database service: {e}")
        raise

    # Created here, set up after login when fetch_channel works
    embed_logger = None
    if config.admin_log_channel_id:
        try:
            logger.info(f"Creating embed logger for channel {config.admin_log_channel_id}...")
            embed_logger = EmbedLogger(bot, int(config.admin_log_channel_id))
            database_service.set_logger(embed_logger)
        except Exception as e:
            logger.warning(f"Failed to create embed logger: {e}")
    else:
        logger.info("Admin log channel not configured - running without embed logging")

    settings: BotSettings = bot.settings
    engine = database_service.get_engine()
    starting_money = settings.gambling.starting_money

    tables = None
    if settings.fishing.enabled:
        tables = FishingTables.load(config.fishing_config_path)
        if tables is None:
            logger.warning(f"Fishing disabled: could not load {config.fishing_config_path}")

    bot.leveling = LevelingService(engine, settings.leveling)
    bot.economy = EconomyService(engine, settings.gambling)
    bot.shop = ShopService(engine, settings.shop, starting_money)
    bot.fishing = FishingService(
        engine,
        settings.fishing,
        tables,
        store=InMemoryFishingStore(tables) if tables else None,
        starting_money=starting_money,
    )
    bot.events = EventService(engine, settings.events, starting_money)
    bot.game_states = GameStateStore()

    total_init_time = (datetime.utcnow() - _initialization_start).total_seconds()
    logger.info(f"Core services initialization completed in {total_init_time:.2f}s")

    if embed_logger:
        try:
            await embed_logger.log_custom(
                service="Service Loader",
                title="Core Services Initialized",
                description="Database and domain services are ready",
                level=LogLevel.SUCCESS,
                fields={
                    "Database": f"✅ {database_service.dialect} ({db_init_time:.2f}s)",
                    "Leveling": _state(settings.leveling.enabled),
                    "Gambling": _state(settings.gambling.enabled),
                    "Shop": _state(settings.shop.enabled),
                    "Fishing": _state(bot.fishing.enabled),
                    "Events": _state(settings.events.enabled),
                    "Total Init Time": f"{total_init_time:.2f}s",
                },
            )
        except Exception as e:
            logger.warning(f"Failed to log core services initialization: {e}")

    return embed_logger


async def init_feature_cogs(bot: discord.Client, embed_logger: EmbedLogger | None) -> float:
    """Add one cog per feature area. A cog that fails to load is logged and skipped."""
    from bot.cogs.admin import AdminCog
    from bot.cogs.bank_cog import BankCog
    from bot.cogs.economy_cog import EconomyCog
    from bot.cogs.events_cog import EventsCog
    from bot.cogs.fishing_cog import FishingCog
    from bot.cogs.gambling_cog import GamblingCog
    from bot.cogs.help_cog import HelpCog
    from bot.cogs.leveling_cog import LevelingCog
    from bot.cogs.scheduler_cog import SchedulerCog
    from bot.cogs.shop_cog import ShopCog

    t0 = datetime.utcnow()
    loaded, failed = [], []
    for cog_cls in (
        LevelingCog,
        EconomyCog,
        BankCog,
        GamblingCog,
        ShopCog,
        FishingCog,
        EventsCog,
        SchedulerCog,
        AdminCog,
        HelpCog,
    ):
        try:
            await bot.add_cog(cog_cls(bot))
            loaded.append(cog_cls.__name__)
        except Exception as e:
            logger.exception(f"Failed to load {cog_cls.__name__}")
            failed.append(f"{cog_cls.__name__}: {e}")
            if embed_logger:
                await embed_logger.log_error(
                    service="Service Loader", error=e, context=f"Failed to load {cog_cls.__name__}"
                )

    dt = (datetime.utcnow() - t0).total_seconds()
    logger.info(f"Loaded {len(loaded)} feature cogs in {dt:.2f}s ({len(failed)} failed)")

    if embed_logger:
        fields = {"Cogs Loaded": ", ".join(loaded) or "none", "Load Time": f"{dt:.2f}s"}
        if failed:
            fields["Failed"] = "\n".join(failed)
        await embed_logger.log_custom(
            service="Service Loader",
            title="Feature Cogs Loaded",
            description="Leveling, economy and event features are active",
            level=LogLevel.SUCCESS if not failed else LogLevel.WARNING,
            fields=fields,
        )
    return dt


async def get_service_status(bot: discord.Client) -> dict:
    """Get status of all services"""
    status = {
        "initialization_time": None,
        "database": {"status": "unknown"},
        "leveling": {"status": "unknown"},
        "gambling": {"status": "unknown"},
        "shop": {"status": "unknown"},
        "fishing": {"status": "unknown"},
        "events": {"status": "unknown"},
    }

    if _initialization_start:
        uptime = (datetime.utcnow() - _initialization_start).total_seconds()
        status["initialization_time"] = f"{uptime:.2f}s ago"
        status["uptime_seconds"] = uptime

    try:
        if database_service.engine is not None:
            health = await database_service.health_check()
            status["database"] = {
                "status": "healthy" if health else "unhealthy",
                "dialect": database_service.dialect,
            }
    except Exception as e:
        status["database"] = {"status": "error", "error": str(e)}

    settings: BotSettings | None = getattr(bot, "settings", None)
    if settings is not None:
        status["leveling"] = {"status": "enabled" if settings.leveling.enabled else "disabled"}
        status["gambling"] = {"status": "enabled" if settings.gambling.enabled else "disabled"}
        status["shop"] = {"status": "enabled" if settings.shop.enabled else "disabled"}
        status["events"] = {
            "status": "enabled" if settings.events.enabled else "disabled",
            "event_types": len(settings.events.event_types),
        }
    fishing = getattr(bot, "fishing", None)
    if fishing is not None:
        status["fishing"] = {"status": "enabled" if fishing.enabled else "disabled"}
    games = getattr(bot, "game_states", None)
    if games is not None:
        status["open_games"] = {"status": "ready", "count": len(games)}

    return status


async def log_service_status(bot: discord.Client, embed_logger: EmbedLogger):
    """Log current service status"""
    if not embed_logger:
        return

    try:
        status = await get_service_status(bot)

        fields = {}
        for service_name, service_info in status.items():
            if service_name in ["initialization_time", "uptime_seconds"]:
                continue

            service_status = service_info.get("status", "unknown")
            if service_status in ("healthy", "ready", "enabled"):
                status_emoji = "✅"
            elif service_status == "disabled":
                status_emoji = "⚠️"
            elif service_status in ("error", "unhealthy"):
                status_emoji = "❌"
            else:
                status_emoji = "❓"

            fields[service_name.replace("_", " ").title()] = f"{status_emoji} {service_status}"

        if status.get("uptime_seconds"):
            uptime = status["uptime_seconds"]
            fields["Uptime"] = f"{uptime//3600:.0f}h {(uptime%3600)//60:.0f}m {uptime%60:.0f}s"

        await embed_logger.log_custom(
            service="Service Loader",
            title="Service Status Check",
            description="Current status of all bot services",
            level=LogLevel.INFO,
            fields=fields,
        )

    except Exception as e:
        logger.error(f"Failed to log service status: {e}")
        await embed_logger.log_error(
            service="Service Loader", error=e, context="Failed to generate service status report"
        )


async def shutdown_services(embed_logger: EmbedLogger | None = None):
    """Gracefully shutdown all services"""
    logger.info("Starting graceful service shutdown...")

    if embed_logger:
        await embed_logger.log_custom(
            service="Service Loader",
            title="Service Shutdown Initiated",
            description="Gracefully shutting down all bot services",
            level=LogLevel.WARNING,
            fields={"Status": "🔴 Shutting down..."},
        )

    shutdown_errors = []
    try:
        logger.info("Shutting down database service...")
        await database_service.close()
        logger.info("Database service shutdown complete")
    except Exception as e:
        shutdown_errors.append(f"Database: {e}")
        logger.error(f"Error shutting down database service: {e}")

    logger.info(f"Service shutdown complete. Errors: {len(shutdown_errors)}")
    return len(shutdown_errors) == 0
