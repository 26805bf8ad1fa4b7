import asyncio
import logging
import ssl
from typing import Optional

from redis.asyncio import Redis

from .config import Settings, settings as default_settings

_logger = logging.getLogger(__name__)

_redis: Optional[Redis] = None
_lock = asyncio.Lock()


def _connection_kwargs(cfg: Settings) -> dict:
    conn_kwargs = {
        "host": cfg.REDIS_HOST,
        "port": cfg.REDIS_PORT,
        "username": cfg.REDIS_USERNAME or None,
        "password": cfg.REDIS_PASSWORD or None,
        "db": cfg.REDIS_DB,
        "decode_responses": True,
    }
    if cfg.REDIS_SSL:
        # relax cert verification for local/dev unless overridden by env
        conn_kwargs.update({"ssl": True, "ssl_cert_reqs": ssl.CERT_NONE})
    return conn_kwargs


async def get_redis(cfg: Optional[Settings] = None) -> Redis:
    """Shared client for the event relay; connected lazily on first use."""
    global _redis
    cfg = cfg or default_settings
    if _redis is None:
        async with _lock:
            if _redis is None:
                client = Redis(**_connection_kwargs(cfg))
                try:
                    await client.ping()
                except Exception as e:
                    _logger.error("Failed to connect to Redis: %s", str(e))
                    await client.aclose()
                    raise
                _redis = client
                _logger.info(
                    "Connected to Redis at %s:%s (SSL=%s)",
                    cfg.REDIS_HOST,
                    cfg.REDIS_PORT,
                    cfg.REDIS_SSL,
                )
    return _redis


async def reset_redis() -> None:
    """Drop a broken client so the next get_redis() reconnects."""
    global _redis
    client, _redis = _redis, None
    if client is not None:
        try:
            await client.aclose()
        except Exception as e:
            _logger.debug("Ignoring error while closing Redis | err=%s", e)


async def close_redis() -> None:
    await reset_redis()
