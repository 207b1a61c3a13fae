from __future__ import annotations

from dataclasses import dataclass

from gridmerge.core.coords import Coordinate
from gridmerge.core.luck import LuckFn, sha256_luck

INITIAL_VALUE_SUFFIX = ":initialValue"


@dataclass(frozen=True, slots=True)
class DeterministicSpawner:
    """Pure mapping from a coordinate to its procedural starting token.

    - `spawn_probability`: chance a cell holds a token at all.
    - `double_probability`: chance a spawned token is a 2 rather than a 4.
    """

    luck: LuckFn = sha256_luck
    spawn_probability: float = 0.2
    double_probability: float = 0.8

    def spawn(self, coord: Coordinate) -> int | None:
        key = coord.key
        if self.luck(key) >= self.spawn_probability:
            return None
        return 2 if self.luck(key + INITIAL_VALUE_SUFFIX) < self.double_probability else 4
