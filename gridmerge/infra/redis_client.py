from __future__ import annotations

import redis

from gridmerge.config import get_redis_socket_timeout, get_redis_url


def create_redis() -> redis.Redis:
    # decode_responses=True => strings in/out instead of bytes.
    # A short socket timeout keeps a dead Redis from stalling gameplay; saves are best-effort.
    return redis.Redis.from_url(
        get_redis_url(),
        decode_responses=True,
        socket_timeout=get_redis_socket_timeout(),
    )
