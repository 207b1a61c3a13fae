from __future__ import annotations

from uuid import uuid4

import fakeredis
import pytest
import redis

from gridmerge.api.models import PersistedGame
from gridmerge.config import GameConfig
from gridmerge.core.coords import Coordinate
from gridmerge.engine import InteractionEngine
from gridmerge.game_store import (
    GAME_KEY_PREFIX,
    create_game,
    delete_game,
    get_game,
    list_games,
    load_or_create_game,
    make_persist_hook,
    save_game,
    session_from_record,
)

from conftest import scripted_luck

BOARD = scripted_luck({(1, 0): 2, (0, 1): 2})


def test_create_game_persists_fresh_state(redis_client) -> None:
    state, session = create_game(r=redis_client, config=GameConfig(), luck=BOARD)

    loaded = get_game(r=redis_client, game_id=state.game_id)
    assert loaded == state
    assert loaded.inventory is None
    assert (loaded.player_position.i, loaded.player_position.j) == (0, 0)
    assert session.store.is_discovered(Coordinate(0, 0))


def test_engine_hook_round_trips_through_redis(redis_client) -> None:
    config = GameConfig()
    state, session = create_game(r=redis_client, config=config, luck=BOARD)
    engine = InteractionEngine(
        session,
        config=config,
        persist=make_persist_hook(r=redis_client, game_id=state.game_id, created_at=state.created_at),
    )

    assert engine.handle_activation(Coordinate(1, 0)).saved is True
    assert engine.handle_activation(Coordinate(1, 1)).action == "place"
    assert engine.handle_activation(Coordinate(1, 1)).action == "pickup"
    session.store.get(Coordinate(-1, -1))

    loaded = get_game(r=redis_client, game_id=state.game_id)
    restored = session_from_record(record=loaded, config=config, luck=BOARD)

    assert restored.inventory.peek() == 2
    assert restored.position == session.position
    # (-1, -1) was discovered after the last save.
    assert restored.store.snapshot() == [e for e in session.store.snapshot() if e[0] != Coordinate(-1, -1)]
    assert restored.store.get(Coordinate(1, 0)).value is None
    assert loaded.created_at == state.created_at


def test_missing_save_is_none(redis_client) -> None:
    assert get_game(r=redis_client, game_id=uuid4()) is None


@pytest.mark.parametrize(
    "raw",
    [
        "not json at all",
        '{"inventory": 2}',
        '{"game_id": "nope", "created_at": "2025-01-01T00:00:00Z", "last_updated_at": "2025-01-01T00:00:00Z"}',
    ],
)
def test_malformed_save_is_treated_as_no_save(redis_client, raw: str) -> None:
    gid = uuid4()
    redis_client.set(f"{GAME_KEY_PREFIX}{gid}", raw)

    assert get_game(r=redis_client, game_id=gid) is None


def test_undecodable_save_is_treated_as_no_save() -> None:
    server = fakeredis.FakeServer()
    raw_client = fakeredis.FakeRedis(server=server)
    r = fakeredis.FakeRedis(server=server, decode_responses=True)
    gid = uuid4()
    raw_client.set(f"{GAME_KEY_PREFIX}{gid}", b"\xff\xfe{corrupt")

    assert get_game(r=r, game_id=gid) is None

    state, session = load_or_create_game(r=r, config=GameConfig(), game_id=gid, luck=BOARD)
    assert state.game_id == gid
    assert session.inventory.is_empty()
    assert get_game(r=r, game_id=gid) == state


def test_load_or_create_falls_back_to_fresh_game(redis_client) -> None:
    gid = uuid4()
    redis_client.set(f"{GAME_KEY_PREFIX}{gid}", "{corrupt")

    state, session = load_or_create_game(r=redis_client, config=GameConfig(), game_id=gid, luck=BOARD)

    assert state.game_id == gid
    assert session.inventory.is_empty()
    assert get_game(r=redis_client, game_id=gid) is not None


def test_load_or_create_resumes_existing_game(redis_client) -> None:
    state, session = create_game(r=redis_client, config=GameConfig(), luck=BOARD)
    InteractionEngine(
        session,
        persist=make_persist_hook(r=redis_client, game_id=state.game_id, created_at=state.created_at),
    ).handle_activation(Coordinate(0, 1))

    again, resumed = load_or_create_game(r=redis_client, config=GameConfig(), game_id=state.game_id, luck=BOARD)

    assert again.inventory == 2
    assert resumed.inventory.peek() == 2
    assert resumed.store.get(Coordinate(0, 1)).value is None


def test_save_failure_is_reported_not_raised(redis_client, monkeypatch: pytest.MonkeyPatch) -> None:
    state, session = create_game(r=redis_client, config=GameConfig(), luck=BOARD)

    def _boom(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise redis.ConnectionError("storage unavailable")

    monkeypatch.setattr(redis_client, "set", _boom)

    assert save_game(r=redis_client, state=state) is False

    engine = InteractionEngine(
        session,
        persist=make_persist_hook(r=redis_client, game_id=state.game_id, created_at=state.created_at),
    )
    result = engine.handle_activation(Coordinate(1, 0))
    assert result.accepted
    assert result.saved is False
    assert session.inventory.peek() == 2


def test_read_failure_means_no_save(redis_client, monkeypatch: pytest.MonkeyPatch) -> None:
    def _boom(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise redis.ConnectionError("storage unavailable")

    monkeypatch.setattr(redis_client, "get", _boom)

    assert get_game(r=redis_client, game_id=uuid4()) is None


def test_delete_and_list_games(redis_client) -> None:
    a, _ = create_game(r=redis_client, config=GameConfig(), luck=BOARD)
    b, _ = create_game(r=redis_client, config=GameConfig(), luck=BOARD)

    ids = {g.game_id for g in list_games(r=redis_client)}
    assert ids == {a.game_id, b.game_id}

    assert delete_game(r=redis_client, game_id=a.game_id)
    assert not delete_game(r=redis_client, game_id=a.game_id)
    assert [g.game_id for g in list_games(r=redis_client)] == [b.game_id]


def test_persisted_game_json_shape() -> None:
    state = PersistedGame.model_validate(
        {
            "game_id": uuid4(),
            "created_at": "2025-01-01T00:00:00Z",
            "last_updated_at": "2025-01-01T00:00:00Z",
            "inventory": 4,
            "player_position": {"i": -2, "j": 3},
            "cells": [{"i": -2, "j": 3, "value": None}, {"i": -1, "j": 3, "value": 8}],
        }
    )

    assert PersistedGame.model_validate_json(state.model_dump_json()) == state
    assert state.cells[1].coordinate == Coordinate(-1, 3)
