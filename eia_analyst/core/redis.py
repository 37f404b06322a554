"""
Status events over Redis pub/sub (FF_USE_REDIS).

Events are JSON: {"type": ..., "data": ..., "published_at": <iso8601>}.
With the flag off every publish returns immediately. A broken or missing
Redis is logged and ignored; callers never see the failure.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from .config import get_settings
from .flags import get_flags

logger = logging.getLogger(__name__)

_client = None


async def _get_redis():
    global _client
    if _client is None:
        import redis.asyncio as aioredis

        url = get_settings().redis_url or "redis://localhost:6379/0"
        _client = aioredis.from_url(url, decode_responses=True, socket_connect_timeout=5)
        logger.info("Redis client created for status events")
    return _client


def _event(event_type: str, data: Any) -> str:
    return json.dumps({
        "type": event_type,
        "data": data,
        "published_at": datetime.now(timezone.utc).isoformat(),
    })


async def publish(channel: str, event_type: str, data: Any = None) -> None:
    if not get_flags().use_redis:
        return

    try:
        redis_client = await _get_redis()
        receivers = await redis_client.publish(channel, _event(event_type, data))
        logger.debug("Published %s on %s (%d receivers)", event_type, channel, receivers)
    except Exception as e:
        logger.warning("Dropped %s event on %s: %s", event_type, channel, e)


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
        logger.info("Redis connection closed")
