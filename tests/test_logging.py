"""
Tests for structured logging helpers
"""

import asyncio

import structlog
from structlog.testing import capture_logs

from reelfeed.core.logging import _order_context, get_logger, log_context


def test_logger_name_is_bound():
    logger = get_logger("reelfeed.services.feed_cursor")

    with capture_logs() as logs:
        logger.info("feed_reset", generation=1)

    assert logs[0]["event"] == "feed_reset"
    assert logs[0]["logger"] == "reelfeed.services.feed_cursor"


def test_log_context_binds_for_block_only():
    with log_context(generation=3, term="aww"):
        assert structlog.contextvars.get_contextvars()["generation"] == 3

    assert "generation" not in structlog.contextvars.get_contextvars()


async def _seen_generation(generation):
    with log_context(generation=generation):
        await asyncio.sleep(0)
        return structlog.contextvars.get_contextvars()["generation"]


def test_context_stays_with_its_task():
    async def main():
        return await asyncio.gather(_seen_generation(1), _seen_generation(2))

    assert asyncio.run(main()) == [1, 2]


def test_context_keys_rendered_first():
    event = _order_context(None, "info", {
        "event": "proxy_attempt_failed",
        "proxy": "corsproxy",
        "term": "aww",
        "generation": 2,
    })

    assert list(event) == ["event", "generation", "term", "proxy"]
