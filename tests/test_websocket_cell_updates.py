from __future__ import annotations

import asyncio

import fakeredis
from fastapi.testclient import TestClient

from gridmerge.core.coords import Coordinate
from gridmerge.core.events import GameEvent
from gridmerge.websocket_hub import GameWebSocketHub


def test_ws_receives_cell_changes(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> None:
    client, _ = client_and_redis
    game_id = client.post("/game", json={}).json()["game_id"]

    with client.websocket_connect(f"/ws/game/{game_id}") as ws:
        res = client.post(f"/game/{game_id}/activate", json={"i": 1, "j": 0})
        assert res.status_code == 200

        msg = ws.receive_json()
        assert msg["type"] == "cell_changed"
        assert msg["game_id"] == game_id
        assert (msg["i"], msg["j"], msg["value"]) == ("1", "0", "")

        res = client.post(f"/game/{game_id}/activate", json={"i": -1, "j": 0})
        assert res.json()["action"] == "place"

        msg = ws.receive_json()
        assert msg["type"] == "cell_changed"
        assert (msg["i"], msg["j"], msg["value"]) == ("-1", "0", "2")


class _FakeSocket:
    def __init__(self, *, fail: bool = False) -> None:
        self.sent: list[dict[str, str]] = []
        self.fail = fail

    async def accept(self) -> None:
        pass

    async def send_json(self, data: dict[str, str]) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)


def test_hub_sends_events_in_order_and_drops_failed_sockets() -> None:
    hub = GameWebSocketHub()
    good, broken = _FakeSocket(), _FakeSocket(fail=True)
    events = [
        GameEvent.now(type="CELL_CHANGED", coordinate=Coordinate(1, 1), value=8),
        GameEvent.now(type="VICTORY", coordinate=Coordinate(1, 1), value=8),
    ]

    async def _run() -> None:
        await hub.connect("g1", good)
        await hub.connect("g1", broken)
        await hub.broadcast("g1", events)
        await hub.broadcast("other", events)

    asyncio.run(_run())

    assert [(m["game_id"], m["type"], m["value"]) for m in good.sent] == [
        ("g1", "cell_changed", "8"),
        ("g1", "victory", "8"),
    ]
    assert hub.watcher_count("g1") == 1

    asyncio.run(hub.disconnect("g1", good))
    assert hub.watcher_count("g1") == 0
