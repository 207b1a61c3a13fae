from __future__ import annotations

from collections.abc import Generator

import redis

from gridmerge.config import GameConfig, load_config
from gridmerge.core.luck import LuckFn, sha256_luck
from gridmerge.infra.redis_client import create_redis


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        try:
            client.close()
        except redis.RedisError:
            # Some redis client versions don't require explicit close.
            pass


def get_config() -> GameConfig:
    return load_config()


def get_luck() -> LuckFn:
    return sha256_luck
