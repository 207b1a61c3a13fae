from __future__ import annotations

from typing import Callable
from uuid import UUID

import redis
from fastapi import APIRouter, Depends, HTTPException, Response, WebSocket, WebSocketDisconnect, status

from gridmerge.api.deps import get_config, get_luck, get_redis
from gridmerge.api.models import (
    ActivateRequest,
    ActivationResponse,
    CellEvent,
    CellsResponse,
    CellView,
    GameCreateRequest,
    GameListResponse,
    PersistedGame,
    PositionModel,
    PositionRequest,
)
from gridmerge.config import GameConfig
from gridmerge.core.coords import Coordinate, cell_bounds
from gridmerge.core.luck import LuckFn
from gridmerge.engine import ActivationResult, InteractionEngine
from gridmerge.game_store import (
    create_game,
    delete_game,
    get_game,
    list_games,
    load_or_create_game,
    make_persist_hook,
    save_game,
    session_from_record,
    session_to_record,
)
from gridmerge.streams import cell_stream_key, stream_listener
from gridmerge.websocket_hub import hub

router = APIRouter()


def _require_state(*, r: redis.Redis, game_id: UUID) -> PersistedGame:
    state = get_game(r=r, game_id=game_id)
    if state is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return state


def _run_engine(
    *,
    r: redis.Redis,
    config: GameConfig,
    luck: LuckFn,
    game_id: UUID,
    apply: Callable[[InteractionEngine], ActivationResult],
) -> tuple[ActivationResult, ActivationResponse]:
    """Load the save, apply one event, and answer with the resulting state.

    The engine persists and publishes to the cell stream itself on accepted transitions.
    """

    state = _require_state(r=r, game_id=game_id)
    session = session_from_record(record=state, config=config, luck=luck)
    engine = InteractionEngine(
        session,
        config=config,
        persist=make_persist_hook(r=r, game_id=game_id, created_at=state.created_at),
        listeners=[stream_listener(r=r, game_id=game_id)],
    )
    result = apply(engine)

    return result, ActivationResponse(
        accepted=result.accepted,
        message=result.message,
        action=result.action,
        mutated_coordinates=[PositionModel(i=c.i, j=c.j) for c in result.mutated_coordinates],
        events=[
            CellEvent(type=e.type.lower(), i=e.coordinate.i, j=e.coordinate.j, value=e.value) for e in result.events
        ],
        victory=result.victory,
        saved=result.saved,
        state=session_to_record(session=session, game_id=game_id, created_at=state.created_at),
    )


@router.websocket("/ws/game/{game_id}")
async def game_updates_ws(websocket: WebSocket, game_id: UUID) -> None:
    gid = str(game_id)
    await hub.connect(gid, websocket)

    try:
        # Keep the socket open; client can optionally send pings.
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await hub.disconnect(gid, websocket)
    except Exception:
        await hub.disconnect(gid, websocket)
        raise


@router.get("/healthcheck")
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/game", response_model=PersistedGame, status_code=status.HTTP_201_CREATED)
async def create_game_route(
    payload: GameCreateRequest | None = None,
    r: redis.Redis = Depends(get_redis),
    config: GameConfig = Depends(get_config),
    luck: LuckFn = Depends(get_luck),
) -> PersistedGame:
    if payload is not None and payload.game_id is not None:
        state, _ = load_or_create_game(r=r, config=config, game_id=payload.game_id, luck=luck)
    else:
        state, _ = create_game(r=r, config=config, luck=luck)
    return state


@router.get("/game", response_model=GameListResponse)
async def list_games_route(r: redis.Redis = Depends(get_redis)) -> GameListResponse:
    return GameListResponse(games=list_games(r=r))


@router.get("/game/{game_id}", response_model=PersistedGame)
async def get_game_route(game_id: UUID, r: redis.Redis = Depends(get_redis)) -> PersistedGame:
    return _require_state(r=r, game_id=game_id)


@router.delete("/game/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
async def reset_game_route(game_id: UUID, r: redis.Redis = Depends(get_redis)) -> Response:
    if not delete_game(r=r, game_id=game_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/game/{game_id}/cells", response_model=CellsResponse)
async def cells_route(
    game_id: UUID,
    size: int | None = None,
    r: redis.Redis = Depends(get_redis),
    config: GameConfig = Depends(get_config),
    luck: LuckFn = Depends(get_luck),
) -> CellsResponse:
    """Cells around the player, for renderers. Newly seen cells are discovered and saved."""

    if size is not None and (size < 1 or size > 32):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="size must be 1..32")

    state = _require_state(r=r, game_id=game_id)
    session = session_from_record(record=state, config=config, luck=luck)
    known = len(session.store)
    cells = session.store.neighborhood(session.position, size or config.neighborhood_size)
    if len(session.store) != known:
        save_game(r=r, state=session_to_record(session=session, game_id=game_id, created_at=state.created_at))

    views = [
        CellView(
            i=cell.coordinate.i,
            j=cell.coordinate.j,
            value=cell.value,
            bounds=cell_bounds(
                cell.coordinate,
                origin_lat=config.origin_lat,
                origin_lng=config.origin_lng,
                cell_degrees=config.cell_degrees,
            ),
            in_reach=session.position.distance_to(cell.coordinate) <= config.proximity_radius,
        )
        for cell in cells
    ]
    return CellsResponse(
        game_id=game_id,
        player_position=PositionModel(i=session.position.i, j=session.position.j),
        inventory=session.inventory.peek(),
        cells=views,
    )


@router.post("/game/{game_id}/activate", response_model=ActivationResponse)
async def activate_route(
    game_id: UUID,
    payload: ActivateRequest,
    r: redis.Redis = Depends(get_redis),
    config: GameConfig = Depends(get_config),
    luck: LuckFn = Depends(get_luck),
) -> ActivationResponse:
    target = Coordinate(payload.i, payload.j)
    result, resp = _run_engine(
        r=r,
        config=config,
        luck=luck,
        game_id=game_id,
        apply=lambda engine: engine.handle_activation(target),
    )
    if result.accepted:
        await hub.broadcast(str(game_id), result.events)
    return resp


@router.post("/game/{game_id}/position", response_model=ActivationResponse)
async def position_route(
    game_id: UUID,
    payload: PositionRequest,
    r: redis.Redis = Depends(get_redis),
    config: GameConfig = Depends(get_config),
    luck: LuckFn = Depends(get_luck),
) -> ActivationResponse:
    result, resp = _run_engine(
        r=r,
        config=config,
        luck=luck,
        game_id=game_id,
        apply=lambda engine: engine.handle_position(lat=payload.lat, lng=payload.lng),
    )
    if result.accepted:
        await hub.broadcast(str(game_id), result.events)
    return resp


@router.get("/games/{game_id}/cell_changes")
async def get_cell_changes_route(
    game_id: UUID,
    count: int = 20,
    start: str = "-",
    end: str = "+",
    r: redis.Redis = Depends(get_redis),
) -> dict[str, object]:
    """Debug endpoint: read the game's cell change Redis Stream."""

    if count < 1 or count > 200:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="count must be between 1 and 200")

    stream_key = cell_stream_key(game_id)
    try:
        entries = r.xrange(stream_key, min=start, max=end, count=count)
    except redis.RedisError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e

    messages = [{"id": mid, "fields": fields} for mid, fields in entries]
    return {"game_id": str(game_id), "stream": stream_key, "messages": messages}
