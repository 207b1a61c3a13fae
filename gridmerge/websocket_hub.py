from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from fastapi import WebSocket

from gridmerge.core.events import GameEvent

logger = logging.getLogger(__name__)


class GameWebSocketHub:
    """Pushes engine GameEvents to the renderers watching a game.

    Each message is one event's `to_fields()` plus the `game_id`, the same flat
    shape written to the cell stream. Sockets that fail a send are dropped.
    """

    def __init__(self) -> None:
        self._watchers: dict[str, set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    def watcher_count(self, game_id: str) -> int:
        return len(self._watchers.get(game_id, ()))

    async def connect(self, game_id: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._watchers.setdefault(game_id, set()).add(websocket)

    async def disconnect(self, game_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            self._forget(game_id, [websocket])

    async def broadcast(self, game_id: str, events: Iterable[GameEvent]) -> None:
        """Send events in emission order to every watcher of `game_id`."""

        async with self._lock:
            watchers = list(self._watchers.get(game_id, ()))
        if not watchers:
            return

        messages = [{"game_id": game_id, **event.to_fields()} for event in events]
        dropped: list[WebSocket] = []
        for ws in watchers:
            try:
                for message in messages:
                    await ws.send_json(message)
            except Exception:
                logger.debug("Dropping websocket for game %s after a failed send", game_id, exc_info=True)
                dropped.append(ws)

        if dropped:
            async with self._lock:
                self._forget(game_id, dropped)

    def _forget(self, game_id: str, sockets: Iterable[WebSocket]) -> None:
        watchers = self._watchers.get(game_id)
        if watchers is None:
            return
        watchers.difference_update(sockets)
        if not watchers:
            del self._watchers[game_id]


hub = GameWebSocketHub()
