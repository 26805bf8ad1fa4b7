import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional

from ..common.config import Settings
from ..common.redis_client import close_redis, get_redis, reset_redis

_logger = logging.getLogger(__name__)

Deliver = Callable[[str, Any], Awaitable[None]]


class RedisRelay:
    """Carries bus events between server instances over a Redis pub/sub channel."""

    def __init__(self, cfg: Settings):
        self._cfg = cfg
        self.channel = cfg.EVENTS_CHANNEL

    async def publish(self, event: str, payload: Any) -> None:
        r = await get_redis(self._cfg)
        message = {"event": event, "data": payload, "origin": self._cfg.INSTANCE_ID}
        await r.publish(self.channel, json.dumps(message))

    async def run(self, deliver: Deliver, stop_event: asyncio.Event) -> None:
        pubsub = None
        backoff = 1.0
        try:
            while not stop_event.is_set():
                try:
                    if pubsub is None:
                        r = await get_redis(self._cfg)
                        pubsub = r.pubsub(ignore_subscribe_messages=True)
                        await pubsub.subscribe(self.channel)
                        _logger.info("Relay subscribed | channel=%s", self.channel)
                    message = await pubsub.get_message(timeout=1.0)
                    if message:
                        await self._dispatch(message.get("data"), deliver)
                    backoff = 1.0  # reset after success
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    _logger.warning("Relay error, retrying in %ss | err=%s", int(backoff), e)
                    await _close_pubsub(pubsub, self.channel)
                    pubsub = None
                    await reset_redis()
                    try:
                        await asyncio.wait_for(stop_event.wait(), timeout=backoff)
                    except asyncio.TimeoutError:
                        pass
                    backoff = min(backoff * 2, 15.0)
        finally:
            await _close_pubsub(pubsub, self.channel)

    async def _dispatch(self, raw: Any, deliver: Deliver) -> None:
        try:
            message = json.loads(raw)
            event = message["event"]
        except (TypeError, ValueError, KeyError):
            _logger.warning("Relay ignoring malformed message | raw=%r", raw)
            return
        await deliver(event, message.get("data"))

    async def close(self) -> None:
        await close_redis()


async def _close_pubsub(pubsub: Optional[Any], channel: str) -> None:
    if pubsub is None:
        return
    try:
        await pubsub.unsubscribe(channel)
        await pubsub.aclose()
    except Exception as e:
        _logger.debug("Ignoring error while closing pubsub | err=%s", e)
