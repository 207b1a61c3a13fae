from __future__ import annotations

from dataclasses import dataclass, field

from gridmerge.core.coords import ORIGIN, Coordinate
from gridmerge.core.grid_store import GridStateStore
from gridmerge.core.inventory import InventorySlot


@dataclass(slots=True)
class GameSession:
    """Everything a single player's game owns.

    Built once (fresh or restored) and handed to the engine and the persistence layer.
    """

    store: GridStateStore
    inventory: InventorySlot = field(default_factory=InventorySlot)
    position: Coordinate = ORIGIN
