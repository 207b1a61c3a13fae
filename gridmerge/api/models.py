from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from gridmerge.core.coords import Coordinate


class CellRecord(BaseModel):
    i: int
    j: int
    # None = discovered but empty.
    value: int | None = None

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.i, self.j)


class PositionModel(BaseModel):
    i: int = 0
    j: int = 0


class PersistedGame(BaseModel):
    """Durable snapshot of one player's progress.

    Only coordinate -> value pairs are stored; anything a renderer attaches to a cell
    is rebuilt from these on load.
    """

    game_id: UUID
    created_at: datetime
    last_updated_at: datetime

    inventory: int | None = None
    player_position: PositionModel = Field(default_factory=PositionModel)

    # Every discovered cell. Undiscovered cells regenerate on demand.
    cells: list[CellRecord] = Field(default_factory=list)


class GameCreateRequest(BaseModel):
    # Resume this game if a readable save exists; otherwise start it fresh.
    game_id: UUID | None = None


class ActivateRequest(BaseModel):
    i: int
    j: int


class PositionRequest(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class CellEvent(BaseModel):
    type: str
    i: int
    j: int
    value: int | None = None


class ActivationResponse(BaseModel):
    accepted: bool
    message: str
    action: str | None = None
    mutated_coordinates: list[PositionModel] = Field(default_factory=list)
    events: list[CellEvent] = Field(default_factory=list)
    victory: bool = False
    saved: bool | None = None
    state: PersistedGame


class CellView(BaseModel):
    i: int
    j: int
    value: int | None = None
    # [[south, west], [north, east]] in degrees.
    bounds: tuple[tuple[float, float], tuple[float, float]]
    in_reach: bool


class CellsResponse(BaseModel):
    game_id: UUID
    player_position: PositionModel
    inventory: int | None = None
    cells: list[CellView]


class GameListResponse(BaseModel):
    games: list[PersistedGame]
