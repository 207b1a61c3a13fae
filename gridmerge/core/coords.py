from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True, slots=True, order=True)
class Coordinate:
    """A grid cell. `i` runs along latitude, `j` along longitude."""

    i: int
    j: int

    @property
    def key(self) -> str:
        # Seed string handed to the luck oracle.
        return f"{self.i},{self.j}"

    def distance_to(self, other: "Coordinate") -> int:
        """King-move (Chebyshev) distance."""

        return max(abs(self.i - other.i), abs(self.j - other.j))

    def offset(self, di: int, dj: int) -> "Coordinate":
        return Coordinate(self.i + di, self.j + dj)


ORIGIN = Coordinate(0, 0)

# In cell units. A point on a cell edge belongs to the cell to its north/east.
_EDGE_EPSILON = 1e-7


def latlng_to_cell(
    *,
    lat: float,
    lng: float,
    origin_lat: float,
    origin_lng: float,
    cell_degrees: float,
) -> Coordinate:
    """Quantize a raw position onto the grid by flooring per axis.

    The nudge keeps corners produced by `cell_bounds` from rounding into the
    neighbouring cell.
    """

    return Coordinate(
        math.floor((lat - origin_lat) / cell_degrees + _EDGE_EPSILON),
        math.floor((lng - origin_lng) / cell_degrees + _EDGE_EPSILON),
    )


def cell_bounds(
    coord: Coordinate,
    *,
    origin_lat: float,
    origin_lng: float,
    cell_degrees: float,
) -> tuple[tuple[float, float], tuple[float, float]]:
    """Return ((south, west), (north, east)) for a cell."""

    south = origin_lat + coord.i * cell_degrees
    west = origin_lng + coord.j * cell_degrees
    return (south, west), (south + cell_degrees, west + cell_degrees)
