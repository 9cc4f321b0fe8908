from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from bot.services.logging_service import EmbedLogger, LogLevel


@pytest.fixture
def embed_logger():
    logger = EmbedLogger(MagicMock(), admin_channel_id=42, max_per_minute=3)
    logger.admin_channel = MagicMock()
    logger.admin_channel.send = AsyncMock()
    logger._setup_done = True
    return logger


def test_rate_limit_per_minute(embed_logger):
    now = datetime(2024, 1, 1, 12, 0, 0)
    assert not embed_logger._should_rate_limit("a", now)
    assert not embed_logger._should_rate_limit("b", now)
    assert not embed_logger._should_rate_limit("c", now)
    assert embed_logger._should_rate_limit("d", now)
    assert not embed_logger._should_rate_limit("d", now + timedelta(seconds=61))


def test_duplicate_messages_are_dropped(embed_logger):
    now = datetime(2024, 1, 1, 12, 0, 0)
    assert not embed_logger._should_rate_limit("same", now)
    assert embed_logger._should_rate_limit("same", now + timedelta(seconds=5))
    assert not embed_logger._should_rate_limit("same", now + timedelta(seconds=11))


async def test_log_custom_sends_embed(embed_logger):
    await embed_logger.log_custom(
        service="Economy",
        title="Big Sale",
        description="Someone sold a kraken",
        level=LogLevel.ECONOMY,
        fields={"Value": "5000"},
    )
    embed_logger.admin_channel.send.assert_awaited_once()
    embed = embed_logger.admin_channel.send.await_args.kwargs["embed"]
    assert embed.title == "💰 [Economy] Big Sale"
    assert embed.fields[0].name == "Value"
    assert embed_logger.stats["logs_sent"] == 1
    assert embed_logger.stats["logs_by_service"]["Economy"] == 1


async def test_log_error_records_context(embed_logger):
    await embed_logger.log_error(service="Fishing", error=RuntimeError("boom"), context="/sell")
    embed = embed_logger.admin_channel.send.await_args.kwargs["embed"]
    names = [f.name for f in embed.fields]
    assert "Error Message" in names
    assert "Context" in names


async def test_nothing_sent_without_channel():
    logger = EmbedLogger(MagicMock(), admin_channel_id=42)
    await logger.log_custom(service="X", title="Y", description="Z")
    assert logger.stats["logs_sent"] == 0


async def test_stats(embed_logger):
    await embed_logger.log_system_event("Started", "ok")
    stats = await embed_logger.get_logging_stats()
    assert stats["total_logs_sent"] == 1
    assert stats["channel_resolved"]
    assert stats["logs_by_level"]["INFO"] == 1
