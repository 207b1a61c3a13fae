from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID, uuid4

import redis
from pydantic import ValidationError

from gridmerge.api.models import CellRecord, PersistedGame, PositionModel
from gridmerge.config import GameConfig
from gridmerge.core.coords import Coordinate
from gridmerge.core.grid_store import GridStateStore
from gridmerge.core.inventory import InventorySlot
from gridmerge.core.luck import LuckFn, sha256_luck
from gridmerge.core.session import GameSession
from gridmerge.core.spawner import DeterministicSpawner
from gridmerge.engine import PersistFn

logger = logging.getLogger(__name__)

GAMES_SET_KEY = "gridmerge:games"
GAME_KEY_PREFIX = "gridmerge:game:"  # + {uuid}


def _now() -> datetime:
    return datetime.now(tz=UTC)


def _game_key(game_id: UUID) -> str:
    return f"{GAME_KEY_PREFIX}{game_id}"


def make_spawner(*, config: GameConfig, luck: LuckFn = sha256_luck) -> DeterministicSpawner:
    return DeterministicSpawner(
        luck=luck,
        spawn_probability=config.spawn_probability,
        double_probability=config.double_probability,
    )


def new_session(*, config: GameConfig, luck: LuckFn = sha256_luck) -> GameSession:
    return GameSession(store=GridStateStore(make_spawner(config=config, luck=luck)))


def session_to_record(*, session: GameSession, game_id: UUID, created_at: datetime) -> PersistedGame:
    return PersistedGame(
        game_id=game_id,
        created_at=created_at,
        last_updated_at=_now(),
        inventory=session.inventory.peek(),
        player_position=PositionModel(i=session.position.i, j=session.position.j),
        cells=[CellRecord(i=c.i, j=c.j, value=v) for c, v in session.store.snapshot()],
    )


def session_from_record(*, record: PersistedGame, config: GameConfig, luck: LuckFn = sha256_luck) -> GameSession:
    store = GridStateStore(make_spawner(config=config, luck=luck))
    store.restore((c.coordinate, c.value) for c in record.cells)
    return GameSession(
        store=store,
        inventory=InventorySlot(record.inventory),
        position=Coordinate(record.player_position.i, record.player_position.j),
    )


def save_game(*, r: redis.Redis, state: PersistedGame) -> bool:
    """Best-effort write. Failures are logged and reported, never raised."""

    try:
        r.set(_game_key(state.game_id), state.model_dump_json())
        r.sadd(GAMES_SET_KEY, str(state.game_id))
    except redis.RedisError:
        logger.exception("Failed to save game %s", state.game_id)
        return False
    logger.debug("Saved game %s (%d cells)", state.game_id, len(state.cells))
    return True


def get_game(*, r: redis.Redis, game_id: UUID) -> PersistedGame | None:
    """Load a save. Missing, unreadable, or malformed records all mean "no save found"."""

    try:
        raw = r.get(_game_key(game_id))
    except redis.RedisError:
        logger.exception("Failed to read game %s", game_id)
        return None
    except UnicodeDecodeError:
        # decode_responses=True decodes inside the client, before pydantic sees the bytes.
        logger.warning("Discarding undecodable save for game %s", game_id)
        return None
    if not raw:
        return None
    try:
        return PersistedGame.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("Discarding malformed save for game %s: %s", game_id, e.errors()[:1])
        return None


def create_game(
    *,
    r: redis.Redis,
    config: GameConfig,
    game_id: UUID | None = None,
    luck: LuckFn = sha256_luck,
) -> tuple[PersistedGame, GameSession]:
    """Start a fresh game (player at the origin, empty hands) and persist it."""

    session = new_session(config=config, luck=luck)
    # Discover the starting cell so a save always has something to restore.
    session.store.get(session.position)
    state = session_to_record(session=session, game_id=game_id or uuid4(), created_at=_now())
    save_game(r=r, state=state)
    return state, session


def load_or_create_game(
    *,
    r: redis.Redis,
    config: GameConfig,
    game_id: UUID,
    luck: LuckFn = sha256_luck,
) -> tuple[PersistedGame, GameSession]:
    state = get_game(r=r, game_id=game_id)
    if state is None:
        logger.info("No usable save for game %s; starting fresh", game_id)
        return create_game(r=r, config=config, game_id=game_id, luck=luck)
    return state, session_from_record(record=state, config=config, luck=luck)


def make_persist_hook(*, r: redis.Redis, game_id: UUID, created_at: datetime) -> PersistFn:
    """Persistence callback for InteractionEngine: snapshot + save after each transition."""

    def _persist(session: GameSession) -> bool:
        return save_game(r=r, state=session_to_record(session=session, game_id=game_id, created_at=created_at))

    return _persist


def delete_game(*, r: redis.Redis, game_id: UUID) -> bool:
    removed = r.delete(_game_key(game_id))
    r.srem(GAMES_SET_KEY, str(game_id))
    return bool(removed)


def list_games(*, r: redis.Redis) -> list[PersistedGame]:
    ids = sorted(r.smembers(GAMES_SET_KEY))
    out: list[PersistedGame] = []
    for sid in ids:
        try:
            gid = UUID(sid)
        except ValueError:
            continue
        state = get_game(r=r, game_id=gid)
        if state is not None:
            out.append(state)
    out.sort(key=lambda s: s.created_at, reverse=True)
    return out
