from __future__ import annotations

import logging
from typing import cast
from uuid import UUID

import redis

from gridmerge.core.events import EventListener, GameEvent

logger = logging.getLogger(__name__)


def cell_stream_key(game_id: UUID | str) -> str:
    return f"cells:{game_id}"


def publish_event(*, r: redis.Redis, game_id: UUID | str, event: GameEvent) -> str | None:
    """Append a change notification to the game's stream. Returns None if Redis refused it."""

    try:
        stream_id = r.xadd(cell_stream_key(game_id), {"game_id": str(game_id), **event.to_fields()})
    except redis.RedisError:
        logger.exception("Failed to publish %s for game %s", event.type, game_id)
        return None
    return cast(str, stream_id)


def stream_listener(*, r: redis.Redis, game_id: UUID | str) -> EventListener:
    def _listener(event: GameEvent) -> None:
        publish_event(r=r, game_id=game_id, event=event)

    return _listener
