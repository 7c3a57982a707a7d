from __future__ import annotations

import json
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Any, AsyncIterator
from uuid import UUID

import redis.asyncio as redis
from redis.exceptions import RedisError

from . import config
from .logging_config import get_logger

logger = get_logger(__name__)

_redis = None


async def get_redis():
    global _redis
    if _redis is None:
        if config.TESTING:
            from fakeredis import aioredis

            _redis = aioredis.FakeRedis()
        else:
            _redis = redis.from_url(config.REDIS_URL)
    return _redis


def _json_default(value: Any) -> Any:
    # purpose: convert datetime and UUID values for event payloads
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return value


def _serialize_event(event: dict[str, Any]) -> str:
    return json.dumps(event, default=_json_default)


def _decode(data: Any) -> str:
    return data.decode() if isinstance(data, bytes) else str(data)


def workflow_channel(kind: str) -> str:
    return f"workflow:{kind}"


async def publish_workflow_event(kind: str, event: dict[str, Any]) -> None:
    """Publish a workflow status change to dashboard subscribers."""

    # purpose: broadcast committed status changes on the namespaced workflow channel
    channel = workflow_channel(kind)
    try:
        r = await get_redis()
        await r.publish(channel, _serialize_event(event))
    except RedisError as exc:
        logger.warning("workflow_event_publish_failed", channel=channel, error=str(exc))


async def _messages(listener) -> AsyncIterator[str]:
    async for message in listener.listen():
        if message.get("type") == "message":
            yield _decode(message.get("data"))


@asynccontextmanager
async def workflow_subscription(kind: str) -> AsyncIterator[AsyncIterator[str]]:
    """Subscribe to a workflow channel and yield its decoded messages.

    The subscription is live once the context is entered, so events published
    after that point are not missed.
    """

    channel = workflow_channel(kind)
    r = await get_redis()
    async with r.pubsub() as listener:
        await listener.subscribe(channel)
        logger.debug("workflow_subscription_opened", channel=channel)
        yield _messages(listener)
