from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from gridmerge.core.coords import Coordinate
from gridmerge.core.spawner import DeterministicSpawner

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Cell:
    coordinate: Coordinate
    value: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.value is None


class GridStateStore:
    """Sparse, lazily discovered map of cells.

    A cell is discovered the first time it is read (or written). Discovery asks the
    spawner once; afterwards only gameplay writes change the stored value.
    """

    def __init__(self, spawner: DeterministicSpawner | None) -> None:
        self._spawner = spawner
        self._cells: dict[Coordinate, Cell] = {}

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, coord: object) -> bool:
        return coord in self._cells

    def is_discovered(self, coord: Coordinate) -> bool:
        return coord in self._cells

    def get(self, coord: Coordinate) -> Cell:
        cell = self._cells.get(coord)
        if cell is None:
            if self._spawner is None:
                raise RuntimeError("GridStateStore has no spawner; cannot discover cells.")
            cell = Cell(coordinate=coord, value=self._spawner.spawn(coord))
            self._cells[coord] = cell
        return cell

    def set(self, coord: Coordinate, value: int | None) -> Cell:
        cell = self.get(coord)
        cell.value = value
        return cell

    def neighborhood(self, center: Coordinate, size: int) -> list[Cell]:
        """Discover and return the half-open window [center-size, center+size) on both axes."""

        return [
            self.get(center.offset(di, dj))
            for di in range(-size, size)
            for dj in range(-size, size)
        ]

    def snapshot(self) -> list[tuple[Coordinate, int | None]]:
        # Stable order keeps persisted records diff-friendly.
        return [(c, self._cells[c].value) for c in sorted(self._cells)]

    def restore(self, entries: Iterable[tuple[Coordinate, int | None]]) -> None:
        self._cells.clear()
        for coord, value in entries:
            self._cells[coord] = Cell(coordinate=coord, value=value)
        logger.debug("Restored %d cells", len(self._cells))
