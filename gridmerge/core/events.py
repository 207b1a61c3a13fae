from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Literal

from gridmerge.core.coords import Coordinate

EventType = Literal[
    "CELL_CHANGED",
    "PLAYER_MOVED",
    "VICTORY",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    """Notification emitted after an accepted transition.

    - CELL_CHANGED: `coordinate` now holds `value` (None = empty).
    - PLAYER_MOVED: the player now stands on `coordinate`.
    - VICTORY: a combine at `coordinate` produced `value` at or above the threshold.
    """

    type: EventType
    coordinate: Coordinate
    value: int | None
    ts: datetime

    @staticmethod
    def now(*, type: EventType, coordinate: Coordinate, value: int | None = None) -> "GameEvent":
        return GameEvent(type=type, coordinate=coordinate, value=value, ts=datetime.now(timezone.utc))

    def to_fields(self) -> dict[str, str]:
        """Flat string fields, suitable for a Redis Stream entry or a websocket payload."""

        return {
            "type": self.type.lower(),
            "i": str(self.coordinate.i),
            "j": str(self.coordinate.j),
            "value": "" if self.value is None else str(self.value),
            "ts": self.ts.isoformat(),
        }


EventListener = Callable[[GameEvent], None]
