"""
bot/services/logging_service.py
Admin-channel audit log built from Discord embeds
"""

import asyncio
import logging
import traceback
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import discord
from discord import Color, Embed

logger = logging.getLogger(__name__)

Fields = Optional[Union[List[tuple], Dict[str, Any]]]


class LogLevel(Enum):
    """Log level colors and emojis"""
    INFO = (Color.blue(), "ℹ️")
    SUCCESS = (Color.green(), "✅")
    WARNING = (Color.orange(), "⚠️")
    ERROR = (Color.red(), "❌")
    CRITICAL = (Color.dark_red(), "🚨")
    ECONOMY = (Color.gold(), "💰")
    EVENT = (Color.purple(), "🎉")
    SYSTEM = (Color.greyple(), "🔧")


class EmbedLogger:
    """Posts notable bot activity to an admin channel, rate limited"""

    def __init__(self, bot: discord.Client, admin_channel_id: int, max_per_minute: int = 30):
        self.bot = bot
        self.admin_channel_id = int(admin_channel_id)
        self.admin_channel: Optional[discord.TextChannel | discord.Thread] = None
        self._setup_done: bool = False
        self._setup_attempted: bool = False
        self._retry_task: Optional[asyncio.Task] = None

        self.stats = {
            "logs_sent": 0,
            "logs_failed": 0,
            "logs_dropped": 0,
            "logs_by_level": {level.name: 0 for level in LogLevel},
            "logs_by_service": {},
            "start_time": datetime.utcnow(),
        }

        # Rate limiting to prevent spam
        self.rate_limit = {
            "messages": [],
            "max_per_minute": max_per_minute,
            "similar_message_cache": {},
        }

    async def _resolve_channel(self) -> Optional[discord.TextChannel | discord.Thread]:
        """Resolve the admin channel via API with cache fallback."""
        try:
            chan = await self.bot.fetch_channel(self.admin_channel_id)
            if isinstance(chan, (discord.TextChannel, discord.Thread)):
                return chan
        except discord.DiscordException as e:
            logger.debug(f"fetch_channel({self.admin_channel_id}) failed: {e}")
        chan = self.bot.get_channel(self.admin_channel_id)
        if isinstance(chan, (discord.TextChannel, discord.Thread)):
            return chan
        return None

    async def setup(self) -> bool:
        """
        Initialize the logging channel.
        Safe to call multiple times; it re-tries once after ready if the channel is not resolvable yet.
        """
        self._setup_attempted = True
        self.admin_channel = await self._resolve_channel()

        if not self.admin_channel:
            logger.error(f"Admin log channel {self.admin_channel_id} not found (yet). Will retry once after ready.")
            if not self._retry_task:
                self._retry_task = asyncio.create_task(self._delayed_retry())
            return False

        self._setup_done = True
        await self.log_system_event(
            title="🚀 Leveling Bot Logger Started",
            description="Admin audit log is ready",
            level=LogLevel.SUCCESS,
            fields=[
                ("Channel ID", str(self.admin_channel_id), True),
                ("Rate Limit", f"{self.rate_limit['max_per_minute']}/min", True),
            ],
        )
        return True

    async def _delayed_retry(self):
        """Retry channel resolution once after a short delay (post-ready)."""
        try:
            await self.bot.wait_until_ready()
            await asyncio.sleep(2)
            self.admin_channel = await self._resolve_channel()
            if self.admin_channel:
                self._setup_done = True
                logger.info(f"Admin log channel {self.admin_channel_id} resolved on retry.")
            else:
                logger.error(f"Admin log channel {self.admin_channel_id} still not found after retry.")
        except Exception as e:
            logger.exception(f"Logger delayed retry failed: {e}")

    def _should_rate_limit(self, content_hash: str, now: Optional[datetime] = None) -> bool:
        """True when the message should be dropped"""
        now = now or datetime.utcnow()

        self.rate_limit["messages"] = [
            t for t in self.rate_limit["messages"] if (now - t).total_seconds() < 60
        ]
        if len(self.rate_limit["messages"]) >= self.rate_limit["max_per_minute"]:
            return True

        # Same message within 10 seconds
        last_sent = self.rate_limit["similar_message_cache"].get(content_hash)
        if last_sent and (now - last_sent).total_seconds() < 10:
            return True

        self.rate_limit["messages"].append(now)
        self.rate_limit["similar_message_cache"][content_hash] = now
        return False

    async def _safe_send(self, embed: Embed, content_hash: Optional[str] = None) -> Optional[discord.Message]:
        """Send embed if channel is ready and rate limiting allows."""
        if not self._setup_done and self._setup_attempted and not self.admin_channel:
            self.admin_channel = await self._resolve_channel()
            self._setup_done = self.admin_channel is not None

        if not self.admin_channel:
            return None

        if content_hash and self._should_rate_limit(content_hash):
            logger.debug("Rate limiting admin log message")
            self.stats["logs_dropped"] += 1
            return None

        try:
            message = await self.admin_channel.send(embed=embed)
            self.stats["logs_sent"] += 1
            return message
        except discord.HTTPException as e:
            if e.status == 429:
                logger.warning("Discord rate limited admin logging")
            else:
                logger.debug(f"Failed to send admin embed: {e}")
            self.stats["logs_failed"] += 1
        return None

    def _create_base_embed(self, title: str, description: str, level: LogLevel) -> Embed:
        """Create base embed with consistent formatting"""
        color, emoji = level.value
        embed = Embed(
            title=f"{emoji} {title}",
            description=description[:2000] if description else None,
            color=color,
            timestamp=datetime.utcnow(),
        )
        self.stats["logs_by_level"][level.name] += 1
        return embed

    def _add_fields_to_embed(self, embed: Embed, fields: Fields):
        """Add fields to embed; dicts get inline for short values"""
        if not fields:
            return

        if isinstance(fields, dict):
            field_list = [(k, v, len(str(v)) < 50) for k, v in fields.items()]
        else:
            field_list = fields

        for field in field_list:
            if len(field) == 2:
                name, value = field
                inline = len(str(value)) < 50
            elif len(field) == 3:
                name, value, inline = field
            else:
                continue

            name = str(name)[:256]
            value = str(value)[:1024] if value not in (None, "") else "N/A"
            embed.add_field(name=name, value=value, inline=bool(inline))

            # Discord caps embeds at 25 fields
            if len(embed.fields) >= 25:
                break

    def _count_service(self, service: str):
        self.stats["logs_by_service"][service] = self.stats["logs_by_service"].get(service, 0) + 1

    # --------------- Logging methods ---------------

    async def log_system_event(self, title: str, description: str, level: LogLevel = LogLevel.INFO, fields: Fields = None):
        embed = self._create_base_embed(title, description, level)
        self._add_fields_to_embed(embed, fields)
        embed.set_footer(text="System Event Monitor")
        await self._safe_send(embed, f"system_{title.replace(' ', '_').lower()}")

    async def log_error(self, service: str, error: Exception, context: Optional[str] = None):
        """Log errors with context and the traceback tail"""
        embed = self._create_base_embed(
            title="Service Error",
            description=f"Error occurred in **{service}**",
            level=LogLevel.CRITICAL,
        )
        error_type = type(error).__name__
        self._add_fields_to_embed(embed, {
            "Service": service,
            "Error Type": f"`{error_type}`",
            "Timestamp": datetime.utcnow().strftime("%H:%M:%S UTC"),
        })
        embed.add_field(name="Error Message", value=f"```python\n{str(error)[:1000]}\n```", inline=False)
        if context:
            embed.add_field(name="Context", value=context[:500], inline=False)

        tb = traceback.format_exc()
        if tb and tb != "NoneType: None\n":
            embed.add_field(name="Traceback (tail)", value=f"```python\n{tb[-800:]}\n```", inline=False)

        embed.set_footer(text="Error Monitor")
        self._count_service(service)
        await self._safe_send(embed, f"error_{service}_{error_type}".lower())

    async def log_custom(
        self,
        service: str,
        title: str,
        description: str,
        level: LogLevel = LogLevel.INFO,
        fields: Fields = None,
        footer: Optional[str] = None,
    ):
        """Log custom events with flexible formatting"""
        embed = self._create_base_embed(title=f"[{service}] {title}", description=description, level=level)
        self._add_fields_to_embed(embed, fields)
        embed.set_footer(text=footer or f"{service} Monitor")
        self._count_service(service)
        await self._safe_send(embed, f"custom_{service}_{title}_{description[:40]}".lower().replace(" ", "_"))

    async def get_logging_stats(self) -> Dict[str, Any]:
        uptime = (datetime.utcnow() - self.stats["start_time"]).total_seconds()
        sent, failed = self.stats["logs_sent"], self.stats["logs_failed"]
        return {
            "uptime_seconds": uptime,
            "total_logs_sent": sent,
            "total_logs_failed": failed,
            "total_logs_dropped": self.stats["logs_dropped"],
            "success_rate": round(sent / max(1, sent + failed) * 100, 2),
            "logs_by_level": dict(self.stats["logs_by_level"]),
            "logs_by_service": dict(self.stats["logs_by_service"]),
            "channel_resolved": self.admin_channel is not None,
        }
