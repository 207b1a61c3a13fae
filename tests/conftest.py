from __future__ import annotations

from collections.abc import Callable, Generator, Mapping

import fakeredis
import pytest
from fastapi.testclient import TestClient

from gridmerge.config import GameConfig
from gridmerge.core.coords import Coordinate
from gridmerge.core.grid_store import GridStateStore
from gridmerge.core.luck import LuckFn
from gridmerge.core.session import GameSession
from gridmerge.core.spawner import INITIAL_VALUE_SUFFIX, DeterministicSpawner


def scripted_luck(tokens: Mapping[tuple[int, int], int]) -> LuckFn:
    """Luck oracle that spawns exactly `tokens` ({(i, j): 2 or 4}) and nothing else."""

    keys = {Coordinate(i, j).key: v for (i, j), v in tokens.items()}

    def _luck(seed: str) -> float:
        if seed.endswith(INITIAL_VALUE_SUFFIX):
            value = keys.get(seed[: -len(INITIAL_VALUE_SUFFIX)])
            return 0.0 if value == 2 else 0.9
        return 0.0 if seed in keys else 0.99

    return _luck


@pytest.fixture()
def make_session() -> Callable[..., GameSession]:
    """Build a session whose procedural cells are exactly the given tokens."""

    def _make(tokens: Mapping[tuple[int, int], int] | None = None, *, inventory: int | None = None) -> GameSession:
        session = GameSession(store=GridStateStore(DeterministicSpawner(luck=scripted_luck(tokens or {}))))
        session.inventory.set(inventory)
        return session

    return _make


@pytest.fixture()
def redis_client() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def client_and_redis() -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    """FastAPI TestClient backed by fakeredis, with a scripted board around the origin.

    Board: 2 at (1, 0), 2 at (0, 1), 4 at (1, 1); everything else empty.
    """

    from gridmerge.api.deps import get_config, get_luck, get_redis
    from gridmerge.main import app

    r = fakeredis.FakeRedis(decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    app.dependency_overrides[get_config] = lambda: GameConfig(victory_threshold=4)
    app.dependency_overrides[get_luck] = lambda: scripted_luck({(1, 0): 2, (0, 1): 2, (1, 1): 4})
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
